"""Project: the main user-facing entry point for agentmine.

A Project ties together the SQLite task database and the YAML project
configuration under ``<root>/.agentmine/``.  Open one with
:meth:`Project.open` and close it when done (or use it as a context
manager).
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from sqlalchemy import Engine
from sqlalchemy.orm import Session

from agentmine.exceptions import (
    AgentExecutionError,
    AgentNotFoundError,
    CircularDependencyError,
    ConfigNotFoundError,
    InvalidAgentDefinitionError,
    InvalidTaskIdError,
    InvalidTransitionError,
    ProjectNotInitializedError,
    SkillNotFoundError,
    TaskDependencyError,
    TaskNotFoundError,
)
from agentmine.models.config import AgentDefinition, AgentmineConfig, SkillDefinition, SkillSource, default_config
from agentmine.models.session import AgentRun, RunResult, SessionInfo, SessionStatus
from agentmine.models.task import AssigneeType, TaskInfo, TaskPriority, TaskStatus, TaskType, as_utc
from agentmine.runner import build_command, format_command, run_command
from agentmine.skills import BUILTIN_SKILLS, resolve_prompt
from agentmine.storage.config_file import (
    agentmine_dir,
    config_path,
    default_db_path,
    load_config,
    save_config,
    skills_dir,
)
from agentmine.storage.engine import create_agentmine_engine, create_session_factory, init_db
from agentmine.storage.schema import SessionRow, TaskDependencyRow, TaskRow
from agentmine.storage.sqlite import (
    SqliteSessionRepository,
    SqliteTaskDependencyRepository,
    SqliteTaskRepository,
)

logger = logging.getLogger(__name__)

CommandRunner = Callable[..., RunResult]


def _now() -> datetime:
    return datetime.now(timezone.utc)


def parse_task_id(raw: str | int) -> int:
    """Parse a user-supplied task id such as ``"12"`` or ``"#12"``.

    Raises:
        InvalidTaskIdError: If *raw* is not a positive integer.
    """
    if isinstance(raw, int):
        value = raw
    else:
        text = raw.strip().lstrip("#")
        if not (text.isascii() and text.isdigit()):
            raise InvalidTaskIdError(raw)
        value = int(text)
    if value <= 0:
        raise InvalidTaskIdError(str(raw))
    return value


@dataclass(frozen=True)
class InitResult:
    """Result of :func:`init_project`."""

    path: Path
    created: bool
    config_written: bool


def init_project(
    root: str | Path = ".",
    *,
    name: str | None = None,
    force: bool = False,
    db_path: str | None = None,
) -> InitResult:
    """Create ``.agentmine/`` with a default config, skills dir, and database.

    A project that already has a ``config.yaml`` is left alone unless
    *force* is set, in which case the config is rewritten (tasks are kept).
    A ``.agentmine/`` holding only a database, as left by commands run
    before ``init``, is completed.
    """
    root_path = Path(root).resolve()
    target = agentmine_dir(root_path)
    existed = config_path(root_path).is_file()

    if existed and not force:
        logger.info("%s already has a config; leaving it untouched", target)
        return InitResult(path=target, created=False, config_written=False)

    skills_dir(root_path).mkdir(parents=True, exist_ok=True)
    project_name = name or root_path.name or "my-project"
    save_config(default_config(project_name), root_path)

    db_file = db_path or str(default_db_path(root_path))
    if db_file != ":memory:":
        Path(db_file).parent.mkdir(parents=True, exist_ok=True)
    engine = create_agentmine_engine(db_file)
    try:
        init_db(engine)
    finally:
        engine.dispose()

    return InitResult(path=target, created=not existed, config_written=True)


class Project:
    """Task database plus project configuration.

    Construct via :meth:`Project.open`, not directly.
    """

    def __init__(
        self,
        *,
        root: Path,
        engine: Engine | None,
        session: Session,
        task_repo: SqliteTaskRepository,
        dependency_repo: SqliteTaskDependencyRepository,
        session_repo: SqliteSessionRepository,
        config: AgentmineConfig | None = None,
    ) -> None:
        self._root = root
        self._engine = engine
        self._session = session
        self._task_repo = task_repo
        self._dependency_repo = dependency_repo
        self._session_repo = session_repo
        self._config = config
        self._closed = False

    @classmethod
    def open(
        cls,
        root: str | Path = ".",
        *,
        db_path: str | None = None,
        config: AgentmineConfig | None = None,
    ) -> Project:
        """Open (or create) the project database under *root*.

        Args:
            root: Project directory containing ``.agentmine/``.
            db_path: SQLite path.  Defaults to ``<root>/.agentmine/data.db``;
                ``":memory:"`` for an in-memory database.
            config: Explicit configuration.  When None it is loaded lazily
                from ``.agentmine/config.yaml``.
        """
        root_path = Path(root).resolve()
        if db_path is None:
            db_file = default_db_path(root_path)
            db_file.parent.mkdir(parents=True, exist_ok=True)
            db_path = str(db_file)
        elif db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        engine = create_agentmine_engine(db_path)
        init_db(engine)
        session = create_session_factory(engine)()
        logger.debug("Opened project at %s (db=%s)", root_path, db_path)

        return cls(
            root=root_path,
            engine=engine,
            session=session,
            task_repo=SqliteTaskRepository(session),
            dependency_repo=SqliteTaskDependencyRepository(session),
            session_repo=SqliteSessionRepository(session),
            config=config,
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def root(self) -> Path:
        return self._root

    @property
    def has_config(self) -> bool:
        return self._config is not None or config_path(self._root).is_file()

    @property
    def config(self) -> AgentmineConfig:
        """The project configuration.

        Raises:
            ConfigNotFoundError: If no config was given and none exists on disk.
            InvalidConfigError: If the config file is malformed.
        """
        if self._config is None:
            self._config = load_config(self._root)
        return self._config

    def _require_config(self) -> AgentmineConfig:
        try:
            return self.config
        except ConfigNotFoundError:
            raise ProjectNotInitializedError(str(self._root)) from None

    def _config_or_default(self) -> AgentmineConfig:
        try:
            return self.config
        except ConfigNotFoundError:
            return AgentmineConfig()

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def add_task(
        self,
        title: str,
        *,
        description: str | None = None,
        priority: TaskPriority | str = TaskPriority.MEDIUM,
        type: TaskType | str = TaskType.TASK,
        parent_id: int | None = None,
    ) -> TaskInfo:
        """Create a new open task."""
        title = title.strip()
        if not title:
            raise ValueError("Task title must not be empty")
        if parent_id is not None and self._task_repo.get(parent_id) is None:
            raise TaskNotFoundError(parent_id)

        now = _now()
        row = TaskRow(
            title=title,
            description=description,
            status=TaskStatus.OPEN,
            priority=TaskPriority(priority),
            type=TaskType(type),
            parent_id=parent_id,
            created_at=now,
            updated_at=now,
        )
        self._task_repo.save(row)
        self._session.commit()
        logger.info("Created task #%d", row.id)
        return TaskInfo.model_validate(row)

    def _require_task(self, task_id: int | str) -> TaskRow:
        tid = parse_task_id(task_id)
        row = self._task_repo.get(tid)
        if row is None:
            raise TaskNotFoundError(tid)
        return row

    def get_task(self, task_id: int | str) -> TaskInfo:
        return TaskInfo.model_validate(self._require_task(task_id))

    def list_tasks(
        self,
        *,
        status: TaskStatus | str | None = None,
        include_closed: bool = False,
        limit: int | None = None,
    ) -> list[TaskInfo]:
        """List tasks newest first.

        Done and cancelled tasks are hidden unless *include_closed* is set
        or *status* asks for them explicitly.
        """
        if status is not None:
            rows = self._task_repo.list(statuses=[TaskStatus(status)], limit=limit)
        elif include_closed:
            rows = self._task_repo.list(limit=limit)
        else:
            rows = self._task_repo.list(
                exclude_statuses=[TaskStatus.DONE, TaskStatus.CANCELLED], limit=limit
            )
        return [TaskInfo.model_validate(r) for r in rows]

    def get_subtasks(self, task_id: int | str) -> list[TaskInfo]:
        row = self._require_task(task_id)
        return [TaskInfo.model_validate(r) for r in self._task_repo.get_children(row.id)]

    def start_task(self, task_id: int | str) -> TaskInfo:
        """Move a task to ``in_progress`` and assign its branch name."""
        row = self._require_task(task_id)
        if row.status.is_closed:
            raise InvalidTransitionError(row.id, row.status.value, TaskStatus.IN_PROGRESS.value)
        self._set_status(row, TaskStatus.IN_PROGRESS)
        self._session.commit()
        logger.info("Started task #%d on branch %s", row.id, row.branch_name)
        return TaskInfo.model_validate(row)

    def complete_task(self, task_id: int | str) -> TaskInfo:
        """Mark a task ``done``.  Already-done tasks are returned unchanged."""
        row = self._require_task(task_id)
        if row.status == TaskStatus.DONE:
            return TaskInfo.model_validate(row)
        if row.status == TaskStatus.CANCELLED:
            raise InvalidTransitionError(row.id, row.status.value, TaskStatus.DONE.value)
        self._set_status(row, TaskStatus.DONE)
        self._session.commit()
        logger.info("Completed task #%d", row.id)
        return TaskInfo.model_validate(row)

    def update_task(
        self,
        task_id: int | str,
        *,
        title: str | None = None,
        description: str | None = None,
        status: TaskStatus | str | None = None,
        priority: TaskPriority | str | None = None,
        type: TaskType | str | None = None,
        parent_id: int | str | None = None,
    ) -> TaskInfo:
        """Change any of a task's fields.  Arguments left as None are kept.

        Unlike :meth:`start_task` and :meth:`complete_task`, any status may
        be set here, including ``review`` and ``cancelled``.

        Raises:
            TaskNotFoundError: If the task or the new parent does not exist.
            CircularDependencyError: If the new parent is the task itself
                or one of its descendants.
        """
        row = self._require_task(task_id)
        if parent_id is not None:
            parent = self._require_task(parent_id)
            if self._would_create_cycle(row.id, parent.id):
                raise CircularDependencyError(row.id, parent.id)
            row.parent_id = parent.id
        if title is not None:
            title = title.strip()
            if not title:
                raise ValueError("Task title must not be empty")
            row.title = title
        if description is not None:
            row.description = description
        if priority is not None:
            row.priority = TaskPriority(priority)
        if type is not None:
            row.type = TaskType(type)

        row.updated_at = _now()
        if status is not None and TaskStatus(status) != row.status:
            self._set_status(row, TaskStatus(status))
        else:
            self._task_repo.save(row)
        self._session.commit()
        logger.info("Updated task #%d", row.id)
        return TaskInfo.model_validate(row)

    def assign_task(
        self,
        task_id: int | str,
        assignee: str,
        *,
        assignee_type: AssigneeType | str = AssigneeType.AI,
    ) -> TaskInfo:
        row = self._require_task(task_id)
        row.assignee_name = assignee
        row.assignee_type = AssigneeType(assignee_type)
        row.updated_at = _now()
        self._task_repo.save(row)
        self._session.commit()
        return TaskInfo.model_validate(row)

    def count_tasks_by_status(self) -> dict[TaskStatus, int]:
        return self._task_repo.count_by_status()

    def _set_status(self, row: TaskRow, status: TaskStatus) -> None:
        now = _now()
        row.status = status
        row.updated_at = now
        if status == TaskStatus.IN_PROGRESS:
            if row.started_at is None:
                row.started_at = now
            if row.branch_name is None:
                row.branch_name = f"{self._config_or_default().git.branch_prefix}{row.id}"
        if status == TaskStatus.DONE:
            row.completed_at = now
        else:
            row.completed_at = None
        self._task_repo.save(row)
        self._propagate_status(row, status)

    def _propagate_status(self, row: TaskRow, new_status: TaskStatus) -> None:
        """Carry a child's status change up the parent chain.

        A started child moves an open parent to in_progress; once every
        child is done, the parent is done too.
        """
        seen: set[int] = {row.id}
        child = row
        while child.parent_id is not None and child.parent_id not in seen:
            parent = self._task_repo.get(child.parent_id)
            if parent is None:
                return
            seen.add(parent.id)
            now = _now()

            if new_status == TaskStatus.IN_PROGRESS:
                if parent.status != TaskStatus.OPEN:
                    return
                parent.status = TaskStatus.IN_PROGRESS
                parent.started_at = parent.started_at or now
            elif new_status == TaskStatus.DONE:
                if parent.status == TaskStatus.DONE:
                    return
                siblings = self._task_repo.get_children(parent.id)
                if not all(s.status == TaskStatus.DONE for s in siblings):
                    return
                parent.status = TaskStatus.DONE
                parent.completed_at = now
            else:
                return

            parent.updated_at = now
            self._task_repo.save(parent)
            logger.debug("Propagated %s to parent task #%d", new_status.value, parent.id)
            child = parent

    def _would_create_cycle(self, task_id: int, parent_id: int) -> bool:
        current: int | None = parent_id
        visited: set[int] = set()
        while current is not None:
            if current == task_id or current in visited:
                return True
            visited.add(current)
            ancestor = self._task_repo.get(current)
            current = ancestor.parent_id if ancestor is not None else None
        return False

    # ------------------------------------------------------------------
    # Dependencies
    # ------------------------------------------------------------------

    def add_dependency(self, task_id: int | str, depends_on: int | str) -> None:
        """Record that *task_id* is blocked until *depends_on* is done.

        Adding an edge that already exists is a no-op.

        Raises:
            TaskNotFoundError: If either task does not exist.
            TaskDependencyError: If the tasks are the same, or the edge
                would close a dependency cycle.
        """
        tid = parse_task_id(task_id)
        dep = parse_task_id(depends_on)
        if tid == dep:
            raise TaskDependencyError(tid, dep, "a task cannot depend on itself")
        self._require_task(tid)
        self._require_task(dep)
        if self._dependency_repo.get(tid, dep) is not None:
            return
        if self._depends_on(dep, tid):
            raise TaskDependencyError(tid, dep, "would create a circular dependency")

        self._dependency_repo.save(
            TaskDependencyRow(task_id=tid, depends_on_task_id=dep, created_at=_now())
        )
        self._session.commit()
        logger.info("Task #%d now depends on #%d", tid, dep)

    def remove_dependency(self, task_id: int | str, depends_on: int | str) -> bool:
        """Drop the edge if present.  Returns whether one was removed."""
        row = self._dependency_repo.get(parse_task_id(task_id), parse_task_id(depends_on))
        if row is None:
            return False
        self._dependency_repo.delete(row)
        self._session.commit()
        return True

    def get_dependencies(self, task_id: int | str) -> list[TaskInfo]:
        """Tasks that must be done before *task_id* (its blockers)."""
        row = self._require_task(task_id)
        return [TaskInfo.model_validate(r) for r in self._dependency_repo.get_blockers(row.id)]

    def get_dependents(self, task_id: int | str) -> list[TaskInfo]:
        """Tasks waiting on *task_id*."""
        row = self._require_task(task_id)
        return [TaskInfo.model_validate(r) for r in self._dependency_repo.get_blocked(row.id)]

    def is_blocked(self, task_id: int | str) -> bool:
        row = self._require_task(task_id)
        return any(
            r.status != TaskStatus.DONE for r in self._dependency_repo.get_blockers(row.id)
        )

    def next_task(self) -> TaskInfo | None:
        """The open, unblocked task to work on next.

        Highest priority wins; ties go to the oldest task.
        """
        rank = {p: i for i, p in enumerate(TaskPriority)}
        candidates = [
            row for row in self._task_repo.list(statuses=[TaskStatus.OPEN])
            if not self.is_blocked(row.id)
        ]
        if not candidates:
            return None
        best = min(
            candidates,
            key=lambda r: (-rank[r.priority], as_utc(r.created_at), r.id),
        )
        return TaskInfo.model_validate(best)

    def _depends_on(self, start: int, target: int) -> bool:
        """True if *start* reaches *target* by following dependency edges."""
        queue = deque([start])
        visited: set[int] = set()
        while queue:
            current = queue.popleft()
            if current == target:
                return True
            if current in visited:
                continue
            visited.add(current)
            queue.extend(self._dependency_repo.get_blocker_ids(current))
        return False

    # ------------------------------------------------------------------
    # Agents
    # ------------------------------------------------------------------

    def list_agents(self) -> list[AgentDefinition]:
        """Agents from the project config, in file order.

        Raises:
            ProjectNotInitializedError: If there is no config.yaml.
        """
        return list(self._require_config().agents.values())

    def get_agent(self, name: str) -> AgentDefinition:
        """Look up agent *name* and check it can be launched.

        Raises:
            ProjectNotInitializedError: If there is no config.yaml.
            AgentNotFoundError: If *name* is not configured.
            InvalidAgentDefinitionError: If the agent has no client or model.
        """
        agents = self._require_config().agents
        agent = agents.get(name)
        if agent is None:
            raise AgentNotFoundError(name, available=sorted(agents))
        if not agent.client.strip():
            raise InvalidAgentDefinitionError(name, "client is required")
        if not agent.model.strip():
            raise InvalidAgentDefinitionError(name, "model is required")
        return agent

    def run_agent(
        self,
        name: str,
        prompt: str,
        *,
        task_id: int | str | None = None,
        dry_run: bool = False,
        runner: Optional[CommandRunner] = None,
    ) -> AgentRun:
        """Run agent *name* with *prompt* and record the session.

        Args:
            name: Agent name from the project config.
            prompt: Prompt text handed to the agent client.
            task_id: Optional task to link the session to.
            dry_run: Build the command but do not execute or record it.
            runner: Callable ``(argv, cwd=...) -> RunResult``; defaults to
                :func:`agentmine.runner.run_command`.

        Raises:
            ProjectNotInitializedError: If there is no config.yaml.
            AgentNotFoundError: If *name* is not configured.
            TaskNotFoundError: If *task_id* does not exist.
            AgentExecutionError: If the client cannot be launched.

        A session whose runner raises is recorded as failed (or cancelled
        on KeyboardInterrupt) before the exception propagates.
        """
        agent = self.get_agent(name)
        linked_task = self._require_task(task_id).id if task_id is not None else None
        argv = build_command(agent, prompt)
        if dry_run:
            return AgentRun(agent_name=agent.name, command=argv)

        row = SessionRow(
            task_id=linked_task,
            agent_name=agent.name,
            status=SessionStatus.RUNNING,
            command=format_command(argv),
            input=prompt,
            started_at=_now(),
        )
        self._session_repo.save(row)
        self._session.commit()

        run = runner or run_command
        try:
            result = run(argv, cwd=self._root)
        except AgentExecutionError as e:
            self._finish_session(row, SessionStatus.FAILED, output=str(e), exit_code=None)
            raise
        except KeyboardInterrupt:
            self._finish_session(row, SessionStatus.CANCELLED, output=None, exit_code=None)
            raise
        except Exception as e:
            self._finish_session(row, SessionStatus.FAILED, output=f"{type(e).__name__}: {e}", exit_code=None)
            raise

        status = SessionStatus.COMPLETED if result.ok else SessionStatus.FAILED
        self._finish_session(row, status, output=result.output, exit_code=result.exit_code)
        return AgentRun(
            agent_name=agent.name,
            command=argv,
            session=SessionInfo.model_validate(row),
            result=result,
        )

    def _finish_session(
        self,
        row: SessionRow,
        status: SessionStatus,
        *,
        output: str | None,
        exit_code: int | None,
    ) -> None:
        row.status = status
        row.output = output
        row.exit_code = exit_code
        row.completed_at = _now()
        self._session_repo.save(row)
        self._session.commit()
        logger.info("Session #%d %s", row.id, status.value)

    def list_sessions(
        self,
        *,
        agent_name: str | None = None,
        status: SessionStatus | str | None = None,
        limit: int | None = 20,
    ) -> list[SessionInfo]:
        rows = self._session_repo.list(
            agent_name=agent_name,
            status=SessionStatus(status) if status is not None else None,
            limit=limit,
        )
        return [SessionInfo.model_validate(r) for r in rows]

    def get_session(self, session_id: int) -> SessionInfo | None:
        row = self._session_repo.get(session_id)
        return SessionInfo.model_validate(row) if row is not None else None

    # ------------------------------------------------------------------
    # Skills
    # ------------------------------------------------------------------

    def list_skills(self) -> list[SkillDefinition]:
        """Builtin skills followed by project-defined (non-builtin) skills."""
        skills = list(BUILTIN_SKILLS.values())
        if self.has_config:
            skills += [
                s for s in self.config.skills.values()
                if s.source != SkillSource.BUILTIN and s.name not in BUILTIN_SKILLS
            ]
        return skills

    def get_skill(self, name: str) -> SkillDefinition:
        builtin = BUILTIN_SKILLS.get(name)
        if builtin is not None:
            return builtin
        if self.has_config:
            skill = self.config.skills.get(name)
            if skill is not None and skill.source != SkillSource.BUILTIN:
                return skill
        raise SkillNotFoundError(name)

    def resolve_skill_prompt(self, name: str) -> str:
        return resolve_prompt(self.get_skill(name), skills_dir(self._root))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the session and dispose the engine."""
        if self._closed:
            return
        self._closed = True
        self._session.close()
        if self._engine is not None:
            self._engine.dispose()

    def __enter__(self) -> Project:
        return self

    def __exit__(self, exc_type: type | None, exc_val: BaseException | None, exc_tb: object) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"Project(root={str(self._root)!r}, {state})"
