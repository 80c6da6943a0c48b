"""Agent run session models.

Provides:
- SessionStatus: lifecycle of a recorded agent run
- SessionInfo: Pydantic model for a stored session row
- RunResult: Frozen dataclass for the outcome of launching a client command
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from agentmine.models.task import as_utc


class SessionStatus(str, enum.Enum):
    """States of an agent run session."""

    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    def __str__(self) -> str:
        return self.value


class SessionInfo(BaseModel):
    """One recorded agent run."""

    id: int
    task_id: Optional[int] = None
    agent_name: str
    status: SessionStatus
    command: str
    input: Optional[str] = None
    output: Optional[str] = None
    exit_code: Optional[int] = None
    started_at: datetime
    completed_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

    @field_validator("started_at", "completed_at")
    @classmethod
    def _as_utc(cls, v: datetime | None) -> datetime | None:
        return as_utc(v)


@dataclass(frozen=True)
class RunResult:
    """Result of running an agent client command.

    Attributes:
        exit_code: Process exit status.
        output: Combined stdout and stderr text.
    """

    exit_code: int
    output: str

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


@dataclass(frozen=True)
class AgentRun:
    """Outcome of ``Project.run_agent``.

    Attributes:
        agent_name: The agent that was resolved.
        command: The argv that was (or, for a dry run, would be) executed.
        session: The recorded session; None for a dry run.
        result: The process result; None for a dry run.
    """

    agent_name: str
    command: list[str]
    session: SessionInfo | None = None
    result: RunResult | None = None

    @property
    def dry_run(self) -> bool:
        return self.session is None
