"""Shared test fixtures for agentmine.

Provides in-memory SQLite engine, session, repository and project fixtures.
"""

import pytest
from sqlalchemy.orm import Session, sessionmaker

from agentmine.models.config import default_config
from agentmine.models.session import RunResult
from agentmine.storage.engine import create_agentmine_engine, init_db
from agentmine.storage.sqlite import (
    SqliteSessionRepository,
    SqliteTaskDependencyRepository,
    SqliteTaskRepository,
)


@pytest.fixture
def engine():
    """In-memory SQLite engine with all tables created."""
    eng = create_agentmine_engine(":memory:")
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session(engine):
    """Session with automatic rollback after each test."""
    SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)
    sess = SessionLocal()
    yield sess
    sess.rollback()
    sess.close()


@pytest.fixture
def task_repo(session: Session) -> SqliteTaskRepository:
    return SqliteTaskRepository(session)


@pytest.fixture
def dependency_repo(session: Session) -> SqliteTaskDependencyRepository:
    return SqliteTaskDependencyRepository(session)


@pytest.fixture
def session_repo(session: Session) -> SqliteSessionRepository:
    return SqliteSessionRepository(session)


@pytest.fixture
def project(tmp_path):
    """In-memory project rooted at a temp dir, with the default config."""
    from agentmine import Project

    p = Project.open(tmp_path, db_path=":memory:", config=default_config("demo"))
    yield p
    p.close()


@pytest.fixture
def bare_project(tmp_path):
    """In-memory project with no config.yaml on disk."""
    from agentmine import Project

    p = Project.open(tmp_path, db_path=":memory:")
    yield p
    p.close()


# ------------------------------------------------------------------
# Shared test helpers
# ------------------------------------------------------------------

class FakeRunner:
    """Stand-in for run_command that records calls instead of spawning."""

    def __init__(self, exit_code: int = 0, output: str = "done\n") -> None:
        self.exit_code = exit_code
        self.output = output
        self.calls: list[tuple[list[str], object]] = []

    def __call__(self, argv, cwd=None, timeout=None) -> RunResult:
        self.calls.append((list(argv), cwd))
        return RunResult(exit_code=self.exit_code, output=self.output)


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()
