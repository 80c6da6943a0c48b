"""SQLite implementations of repository interfaces.

All repositories use SQLAlchemy 2.0-style queries (select() + session.execute()).
Each repository takes a Session in its constructor.
"""

from __future__ import annotations

from typing import Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from agentmine.models.session import SessionStatus
from agentmine.models.task import TaskStatus
from agentmine.storage.repositories import SessionRepository, TaskDependencyRepository, TaskRepository
from agentmine.storage.schema import SessionRow, TaskDependencyRow, TaskRow


class SqliteTaskRepository(TaskRepository):
    """SQLite implementation of task repository."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, task_id: int) -> TaskRow | None:
        stmt = select(TaskRow).where(TaskRow.id == task_id)
        return self._session.execute(stmt).scalar_one_or_none()

    def save(self, task: TaskRow) -> None:
        self._session.add(task)
        self._session.flush()

    def list(
        self,
        *,
        statuses: Sequence[TaskStatus] | None = None,
        exclude_statuses: Sequence[TaskStatus] | None = None,
        limit: int | None = None,
    ) -> Sequence[TaskRow]:
        stmt = select(TaskRow)
        if statuses:
            stmt = stmt.where(TaskRow.status.in_(list(statuses)))
        if exclude_statuses:
            stmt = stmt.where(TaskRow.status.not_in(list(exclude_statuses)))
        # id breaks ties between tasks created within the same timestamp
        stmt = stmt.order_by(TaskRow.created_at.desc(), TaskRow.id.desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self._session.execute(stmt).scalars().all())

    def get_children(self, parent_id: int) -> Sequence[TaskRow]:
        stmt = select(TaskRow).where(TaskRow.parent_id == parent_id).order_by(TaskRow.id)
        return list(self._session.execute(stmt).scalars().all())

    def count_by_status(self) -> dict[TaskStatus, int]:
        stmt = select(TaskRow.status, func.count()).group_by(TaskRow.status)
        counts = {status: 0 for status in TaskStatus}
        for status, count in self._session.execute(stmt).all():
            counts[TaskStatus(status)] = int(count)
        return counts


class SqliteTaskDependencyRepository(TaskDependencyRepository):
    """SQLite implementation of task dependency repository."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, task_id: int, depends_on_task_id: int) -> TaskDependencyRow | None:
        stmt = select(TaskDependencyRow).where(
            TaskDependencyRow.task_id == task_id,
            TaskDependencyRow.depends_on_task_id == depends_on_task_id,
        )
        return self._session.execute(stmt).scalar_one_or_none()

    def save(self, row: TaskDependencyRow) -> None:
        self._session.add(row)
        self._session.flush()

    def delete(self, row: TaskDependencyRow) -> None:
        self._session.delete(row)
        self._session.flush()

    def get_blockers(self, task_id: int) -> Sequence[TaskRow]:
        stmt = (
            select(TaskRow)
            .join(TaskDependencyRow, TaskDependencyRow.depends_on_task_id == TaskRow.id)
            .where(TaskDependencyRow.task_id == task_id)
            .order_by(TaskRow.id)
        )
        return list(self._session.execute(stmt).scalars().all())

    def get_blocked(self, task_id: int) -> Sequence[TaskRow]:
        stmt = (
            select(TaskRow)
            .join(TaskDependencyRow, TaskDependencyRow.task_id == TaskRow.id)
            .where(TaskDependencyRow.depends_on_task_id == task_id)
            .order_by(TaskRow.id)
        )
        return list(self._session.execute(stmt).scalars().all())

    def get_blocker_ids(self, task_id: int) -> Sequence[int]:
        stmt = select(TaskDependencyRow.depends_on_task_id).where(
            TaskDependencyRow.task_id == task_id
        )
        return list(self._session.execute(stmt).scalars().all())


class SqliteSessionRepository(SessionRepository):
    """SQLite implementation of agent run session repository."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, session_id: int) -> SessionRow | None:
        stmt = select(SessionRow).where(SessionRow.id == session_id)
        return self._session.execute(stmt).scalar_one_or_none()

    def save(self, row: SessionRow) -> None:
        self._session.add(row)
        self._session.flush()

    def list(
        self,
        *,
        agent_name: str | None = None,
        status: SessionStatus | None = None,
        limit: int | None = None,
    ) -> Sequence[SessionRow]:
        stmt = select(SessionRow)
        if agent_name is not None:
            stmt = stmt.where(SessionRow.agent_name == agent_name)
        if status is not None:
            stmt = stmt.where(SessionRow.status == status)
        stmt = stmt.order_by(SessionRow.started_at.desc(), SessionRow.id.desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self._session.execute(stmt).scalars().all())
