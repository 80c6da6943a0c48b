"""agentmine exception hierarchy.

All agentmine-specific exceptions inherit from AgentmineError.
"""

from __future__ import annotations


class AgentmineError(Exception):
    """Base exception for all agentmine errors."""


class ProjectNotInitializedError(AgentmineError):
    """Raised when a command needs a project that has not been initialized."""

    def __init__(self, root: str) -> None:
        self.root = root
        super().__init__(
            f"agentmine is not initialized in {root}. Run 'agentmine init' first."
        )


class ConfigNotFoundError(AgentmineError):
    """Raised when the project config file does not exist."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Config file not found: {path}")


class InvalidConfigError(AgentmineError):
    """Raised when the project config cannot be parsed or validated."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Invalid configuration: {reason}")


class TaskNotFoundError(AgentmineError):
    """Raised when a task id lookup fails."""

    def __init__(self, task_id: int) -> None:
        self.task_id = task_id
        super().__init__(f"Task #{task_id} not found")


class InvalidTaskIdError(AgentmineError):
    """Raised when a task id is not a positive integer."""

    def __init__(self, raw: str) -> None:
        self.raw = raw
        super().__init__(f"Invalid task id: {raw!r}")


class InvalidTransitionError(AgentmineError):
    """Raised when a task cannot move from its current status."""

    def __init__(self, task_id: int, current: str, target: str) -> None:
        self.task_id = task_id
        self.current = current
        self.target = target
        super().__init__(
            f"Task #{task_id} cannot move from '{current}' to '{target}'"
        )


class AgentNotFoundError(AgentmineError):
    """Raised when an agent name is not defined in the project config."""

    def __init__(self, agent_name: str, available: list[str] | None = None) -> None:
        self.agent_name = agent_name
        self.available = available or []
        super().__init__(f'Agent "{agent_name}" not found')


class InvalidAgentDefinitionError(AgentmineError):
    """Raised when an agent definition is missing required fields."""

    def __init__(self, agent_name: str, reason: str) -> None:
        self.agent_name = agent_name
        self.reason = reason
        super().__init__(f'Invalid agent definition for "{agent_name}": {reason}')


class AgentExecutionError(AgentmineError):
    """Raised when an agent client cannot be launched."""


class SkillNotFoundError(AgentmineError):
    """Raised when a skill is neither builtin nor defined in the project."""

    def __init__(self, skill_name: str) -> None:
        self.skill_name = skill_name
        super().__init__(f'Skill "{skill_name}" not found')


class SkillLoadError(AgentmineError):
    """Raised when a project skill's prompt cannot be loaded."""


class CircularDependencyError(AgentmineError):
    """Raised when re-parenting a task would make it its own ancestor."""

    def __init__(self, task_id: int, parent_id: int) -> None:
        self.task_id = task_id
        self.parent_id = parent_id
        super().__init__(
            f"Setting task #{parent_id} as parent of task #{task_id} "
            "would create a circular dependency"
        )


class TaskDependencyError(AgentmineError):
    """Raised when a dependency between two tasks cannot be added."""

    def __init__(self, task_id: int, depends_on_task_id: int, reason: str) -> None:
        self.task_id = task_id
        self.depends_on_task_id = depends_on_task_id
        self.reason = reason
        super().__init__(
            f"Cannot add dependency: task #{task_id} depends on "
            f"#{depends_on_task_id} - {reason}"
        )
