"""agentmine: Redmine for AI agents.

Track tasks in a local SQLite database, describe agents and skills in
``.agentmine/config.yaml``, and launch agent clients against a prompt.
"""

from agentmine._version import __version__

# Core entry point
from agentmine.project import InitResult, Project, init_project, parse_task_id

# Task types
from agentmine.models.task import AssigneeType, TaskInfo, TaskPriority, TaskStatus, TaskType

# Session types
from agentmine.models.session import AgentRun, RunResult, SessionInfo, SessionStatus

# Configuration
from agentmine.models.config import (
    AgentDefinition,
    AgentmineConfig,
    SkillDefinition,
    SkillSource,
    default_config,
)

# Exceptions
from agentmine.exceptions import (
    AgentExecutionError,
    AgentmineError,
    AgentNotFoundError,
    CircularDependencyError,
    ConfigNotFoundError,
    InvalidAgentDefinitionError,
    InvalidConfigError,
    InvalidTaskIdError,
    InvalidTransitionError,
    ProjectNotInitializedError,
    SkillLoadError,
    SkillNotFoundError,
    TaskDependencyError,
    TaskNotFoundError,
)

__all__ = [
    "__version__",
    # Core
    "Project",
    "InitResult",
    "init_project",
    "parse_task_id",
    # Tasks
    "TaskInfo",
    "TaskStatus",
    "TaskPriority",
    "TaskType",
    "AssigneeType",
    # Sessions
    "SessionInfo",
    "SessionStatus",
    "RunResult",
    "AgentRun",
    # Configuration
    "AgentmineConfig",
    "AgentDefinition",
    "SkillDefinition",
    "SkillSource",
    "default_config",
    # Exceptions
    "AgentmineError",
    "ProjectNotInitializedError",
    "ConfigNotFoundError",
    "InvalidConfigError",
    "TaskNotFoundError",
    "InvalidTaskIdError",
    "InvalidTransitionError",
    "TaskDependencyError",
    "CircularDependencyError",
    "AgentNotFoundError",
    "InvalidAgentDefinitionError",
    "AgentExecutionError",
    "SkillNotFoundError",
    "SkillLoadError",
]
