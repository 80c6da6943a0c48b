"""Abstract repository interfaces for agentmine storage.

Defines ABC interfaces for all database operations. No SQLAlchemy
imports here -- pure abstract contracts.

Concrete implementations are in sqlite.py.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from agentmine.models.session import SessionStatus
    from agentmine.models.task import TaskStatus
    from agentmine.storage.schema import SessionRow, TaskDependencyRow, TaskRow


class TaskRepository(ABC):
    """Abstract interface for task storage operations."""

    @abstractmethod
    def get(self, task_id: int) -> TaskRow | None:
        """Get a task by id. Returns None if not found."""
        ...

    @abstractmethod
    def save(self, task: TaskRow) -> None:
        """Add or update a task and flush so the id is assigned."""
        ...

    @abstractmethod
    def list(
        self,
        *,
        statuses: Sequence[TaskStatus] | None = None,
        exclude_statuses: Sequence[TaskStatus] | None = None,
        limit: int | None = None,
    ) -> Sequence[TaskRow]:
        """List tasks, newest first.

        Args:
            statuses: If set, only include tasks in these statuses.
            exclude_statuses: If set, drop tasks in these statuses.
            limit: Maximum number of tasks to return.
        """
        ...

    @abstractmethod
    def get_children(self, parent_id: int) -> Sequence[TaskRow]:
        """Get all tasks whose parent_id is the given id."""
        ...

    @abstractmethod
    def count_by_status(self) -> dict[TaskStatus, int]:
        """Count tasks per status. Every status is present, zero if unused."""
        ...


class TaskDependencyRepository(ABC):
    """Abstract interface for task dependency edges."""

    @abstractmethod
    def get(self, task_id: int, depends_on_task_id: int) -> TaskDependencyRow | None:
        ...

    @abstractmethod
    def save(self, row: TaskDependencyRow) -> None:
        ...

    @abstractmethod
    def delete(self, row: TaskDependencyRow) -> None:
        ...

    @abstractmethod
    def get_blockers(self, task_id: int) -> Sequence[TaskRow]:
        """Tasks that *task_id* depends on, ordered by id."""
        ...

    @abstractmethod
    def get_blocked(self, task_id: int) -> Sequence[TaskRow]:
        """Tasks that depend on *task_id*, ordered by id."""
        ...

    @abstractmethod
    def get_blocker_ids(self, task_id: int) -> Sequence[int]:
        ...


class SessionRepository(ABC):
    """Abstract interface for agent run session storage."""

    @abstractmethod
    def get(self, session_id: int) -> SessionRow | None:
        ...

    @abstractmethod
    def save(self, row: SessionRow) -> None:
        ...

    @abstractmethod
    def list(
        self,
        *,
        agent_name: str | None = None,
        status: SessionStatus | None = None,
        limit: int | None = None,
    ) -> Sequence[SessionRow]:
        """List sessions, most recently started first."""
        ...
