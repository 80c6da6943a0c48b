"""Task domain model for agentmine.

TaskInfo is the SDK-facing model returned when querying tasks.
TaskStatus, TaskPriority, TaskType and AssigneeType are the enums shared
with the ORM schema.
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, field_validator


def as_utc(value: datetime | None) -> datetime | None:
    """Return *value* as an aware UTC datetime.

    SQLite hands back naive datetimes; those are already UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class TaskStatus(str, enum.Enum):
    """Lifecycle states of a task."""

    OPEN = "open"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    DONE = "done"
    CANCELLED = "cancelled"

    def __str__(self) -> str:
        return self.value

    @property
    def is_closed(self) -> bool:
        return self in (TaskStatus.DONE, TaskStatus.CANCELLED)


class TaskPriority(str, enum.Enum):
    """Task priority, lowest to highest."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    def __str__(self) -> str:
        return self.value


class TaskType(str, enum.Enum):
    """Kind of work a task represents."""

    TASK = "task"
    FEATURE = "feature"
    BUG = "bug"
    REFACTOR = "refactor"

    def __str__(self) -> str:
        return self.value


class AssigneeType(str, enum.Enum):
    """Who a task is assigned to."""

    AI = "ai"
    HUMAN = "human"

    def __str__(self) -> str:
        return self.value


class TaskInfo(BaseModel):
    """SDK-facing task information.

    Not an ORM model -- used for data transfer only.
    """

    id: int
    title: str
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.OPEN
    priority: TaskPriority = TaskPriority.MEDIUM
    type: TaskType = TaskType.TASK
    assignee_type: Optional[AssigneeType] = None
    assignee_name: Optional[str] = None
    branch_name: Optional[str] = None
    parent_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

    @field_validator("created_at", "updated_at", "started_at", "completed_at")
    @classmethod
    def _as_utc(cls, v: datetime | None) -> datetime | None:
        return as_utc(v)

    @property
    def label(self) -> str:
        return f"#{self.id}"

    def __str__(self) -> str:
        title = self.title
        if len(title) > 60:
            title = title[:57] + "..."
        return f"{self.label} {title}"

    def __repr__(self) -> str:
        return f"TaskInfo({self.label} {self.status.value} {self.title!r})"
