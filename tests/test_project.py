"""Tests for the Project facade: tasks, status propagation, agents, skills."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from agentmine import (
    AgentExecutionError,
    AgentmineConfig,
    AgentNotFoundError,
    CircularDependencyError,
    InvalidAgentDefinitionError,
    InvalidTaskIdError,
    InvalidTransitionError,
    Project,
    ProjectNotInitializedError,
    SessionStatus,
    SkillNotFoundError,
    TaskDependencyError,
    TaskNotFoundError,
    TaskPriority,
    TaskStatus,
    TaskType,
    init_project,
    parse_task_id,
)
from agentmine.storage.config_file import config_path, skills_dir


# ---------------------------------------------------------------------------
# Task ids
# ---------------------------------------------------------------------------

class TestParseTaskId:

    def test_plain_number(self):
        assert parse_task_id("12") == 12

    def test_hash_prefix(self):
        assert parse_task_id("#7") == 7

    def test_int_passthrough(self):
        assert parse_task_id(3) == 3

    @given(n=st.integers(min_value=1, max_value=10**12))
    def test_any_positive_id(self, n):
        assert parse_task_id(str(n)) == n
        assert parse_task_id(f"#{n}") == n

    @pytest.mark.parametrize("raw", ["abc", "", "0", "-1", "1.5", "#", "\u00b2", "#\u00b3", "\u0661\u0662"])
    def test_rejects_non_positive_integers(self, raw):
        with pytest.raises(InvalidTaskIdError):
            parse_task_id(raw)


# ---------------------------------------------------------------------------
# Task CRUD
# ---------------------------------------------------------------------------

class TestAddTask:

    def test_first_task_gets_id_one(self, project):
        info = project.add_task("Write docs")
        assert info.id == 1
        assert info.label == "#1"
        assert info.status == TaskStatus.OPEN
        assert info.priority == TaskPriority.MEDIUM
        assert info.type == TaskType.TASK

    def test_fields_are_stored(self, project):
        info = project.add_task(
            "Fix login",
            description="Users are logged out",
            priority="high",
            type="bug",
        )
        fetched = project.get_task(info.id)
        assert fetched.title == "Fix login"
        assert fetched.description == "Users are logged out"
        assert fetched.priority == TaskPriority.HIGH
        assert fetched.type == TaskType.BUG

    def test_title_is_stripped(self, project):
        assert project.add_task("  padded  ").title == "padded"

    def test_empty_title_rejected(self, project):
        with pytest.raises(ValueError):
            project.add_task("   ")

    def test_missing_parent_rejected(self, project):
        with pytest.raises(TaskNotFoundError):
            project.add_task("child", parent_id=42)


class TestGetTask:

    def test_lookup_with_hash(self, project):
        project.add_task("A")
        assert project.get_task("#1").title == "A"

    def test_unknown_id(self, project):
        with pytest.raises(TaskNotFoundError) as exc_info:
            project.get_task("99")
        assert exc_info.value.task_id == 99
        assert str(exc_info.value) == "Task #99 not found"

    def test_invalid_id(self, project):
        with pytest.raises(InvalidTaskIdError):
            project.get_task("abc")


class TestListTasks:

    def test_newest_first(self, project):
        project.add_task("first")
        project.add_task("second")
        titles = [t.title for t in project.list_tasks()]
        assert titles == ["second", "first"]

    def test_done_hidden_by_default(self, project):
        project.add_task("keep")
        gone = project.add_task("finish me")
        project.complete_task(gone.id)

        assert [t.title for t in project.list_tasks()] == ["keep"]
        assert len(project.list_tasks(include_closed=True)) == 2

    def test_status_filter(self, project):
        project.add_task("a")
        b = project.add_task("b")
        project.start_task(b.id)

        in_progress = project.list_tasks(status="in_progress")
        assert [t.title for t in in_progress] == ["b"]

    def test_status_filter_shows_done(self, project):
        t = project.add_task("x")
        project.complete_task(t.id)
        assert [t.title for t in project.list_tasks(status=TaskStatus.DONE)] == ["x"]

    def test_limit(self, project):
        for i in range(5):
            project.add_task(f"t{i}")
        assert len(project.list_tasks(limit=2)) == 2

    def test_count_by_status(self, project):
        project.add_task("a")
        b = project.add_task("b")
        project.start_task(b.id)

        counts = project.count_tasks_by_status()
        assert counts[TaskStatus.OPEN] == 1
        assert counts[TaskStatus.IN_PROGRESS] == 1
        assert counts[TaskStatus.DONE] == 0
        assert set(counts) == set(TaskStatus)


class TestTransitions:

    def test_start_sets_branch_and_timestamp(self, project):
        t = project.add_task("feature")
        started = project.start_task(t.id)
        assert started.status == TaskStatus.IN_PROGRESS
        assert started.branch_name == "task-1"
        assert started.started_at is not None

    def test_branch_prefix_from_config(self, tmp_path):
        config = AgentmineConfig.model_validate({"git": {"branch_prefix": "work/"}})
        with Project.open(tmp_path, db_path=":memory:", config=config) as p:
            t = p.add_task("x")
            assert p.start_task(t.id).branch_name == "work/1"

    def test_restart_keeps_started_at(self, project):
        t = project.add_task("x")
        first = project.start_task(t.id)
        second = project.start_task(t.id)
        assert second.started_at == first.started_at

    def test_start_done_task_rejected(self, project):
        t = project.add_task("x")
        project.complete_task(t.id)
        with pytest.raises(InvalidTransitionError):
            project.start_task(t.id)

    def test_complete_sets_timestamp(self, project):
        t = project.add_task("x")
        done = project.complete_task(t.id)
        assert done.status == TaskStatus.DONE
        assert done.completed_at is not None

    def test_complete_twice_is_noop(self, project):
        t = project.add_task("x")
        first = project.complete_task(t.id)
        second = project.complete_task(t.id)
        assert second.completed_at == first.completed_at

    def test_timestamps_survive_reopen(self, tmp_path):
        db = str(tmp_path / "tasks.db")
        with Project.open(tmp_path, db_path=db) as p:
            created = p.start_task(p.add_task("x").id)
        with Project.open(tmp_path, db_path=db) as p:
            loaded = p.get_task(created.id)
        assert loaded.created_at == created.created_at
        assert loaded.started_at == created.started_at
        assert loaded.started_at.tzinfo is not None

    def test_assign(self, project):
        t = project.add_task("x")
        info = project.assign_task(t.id, "alice", assignee_type="human")
        assert info.assignee_name == "alice"
        assert str(info.assignee_type) == "human"


class TestStatusPropagation:

    def test_started_child_starts_parent(self, project):
        parent = project.add_task("epic")
        child = project.add_task("step", parent_id=parent.id)

        project.start_task(child.id)

        assert project.get_task(parent.id).status == TaskStatus.IN_PROGRESS

    def test_parent_done_when_all_children_done(self, project):
        parent = project.add_task("epic")
        a = project.add_task("a", parent_id=parent.id)
        b = project.add_task("b", parent_id=parent.id)

        project.complete_task(a.id)
        assert project.get_task(parent.id).status == TaskStatus.OPEN

        project.complete_task(b.id)
        assert project.get_task(parent.id).status == TaskStatus.DONE

    def test_cancelled_child_keeps_parent_open(self, project):
        parent = project.add_task("epic")
        a = project.add_task("a", parent_id=parent.id)
        b = project.add_task("b", parent_id=parent.id)

        project.update_task(b.id, status="cancelled")
        project.complete_task(a.id)

        assert project.get_task(parent.id).status == TaskStatus.OPEN

    def test_propagates_through_grandparent(self, project):
        root = project.add_task("root")
        mid = project.add_task("mid", parent_id=root.id)
        leaf = project.add_task("leaf", parent_id=mid.id)

        project.start_task(leaf.id)
        assert project.get_task(root.id).status == TaskStatus.IN_PROGRESS

        project.complete_task(leaf.id)
        assert project.get_task(mid.id).status == TaskStatus.DONE
        assert project.get_task(root.id).status == TaskStatus.DONE

    def test_subtasks(self, project):
        parent = project.add_task("epic")
        project.add_task("a", parent_id=parent.id)
        project.add_task("b", parent_id=parent.id)
        assert [t.title for t in project.get_subtasks(parent.id)] == ["a", "b"]


class TestUpdateTask:

    def test_fields(self, project):
        t = project.add_task("old")
        info = project.update_task(t.id, title=" new ", priority="high", type="bug", description="d")
        assert (info.title, info.priority, info.type, info.description) == (
            "new", TaskPriority.HIGH, TaskType.BUG, "d"
        )

    @pytest.mark.parametrize("status", [TaskStatus.REVIEW, TaskStatus.CANCELLED])
    def test_reaches_any_status(self, project, status):
        t = project.add_task("x")
        assert project.update_task(t.id, status=status.value).status == status

    def test_in_progress_sets_branch(self, project):
        t = project.add_task("x")
        info = project.update_task(t.id, status="in_progress")
        assert info.branch_name == "task-1"
        assert info.started_at is not None

    def test_reopen_clears_completed_at(self, project):
        t = project.add_task("x")
        project.complete_task(t.id)
        assert project.update_task(t.id, status="open").completed_at is None

    def test_reparent(self, project):
        a = project.add_task("a")
        b = project.add_task("b")
        assert project.update_task(b.id, parent_id=f"#{a.id}").parent_id == a.id

    def test_parent_cycle_rejected(self, project):
        root = project.add_task("root")
        child = project.add_task("child", parent_id=root.id)
        with pytest.raises(CircularDependencyError):
            project.update_task(root.id, parent_id=child.id)
        with pytest.raises(CircularDependencyError):
            project.update_task(root.id, parent_id=root.id)
        assert project.get_task(root.id).parent_id is None

    def test_unknown_parent(self, project):
        t = project.add_task("x")
        with pytest.raises(TaskNotFoundError):
            project.update_task(t.id, parent_id=42)


class TestDependencies:

    def test_add_and_query(self, project):
        a = project.add_task("a")
        b = project.add_task("b")
        project.add_dependency(a.id, b.id)

        assert [t.id for t in project.get_dependencies(a.id)] == [b.id]
        assert [t.id for t in project.get_dependents(b.id)] == [a.id]
        assert project.is_blocked(a.id)
        assert not project.is_blocked(b.id)

    def test_done_blocker_unblocks(self, project):
        a = project.add_task("a")
        b = project.add_task("b")
        project.add_dependency(a.id, b.id)
        project.complete_task(b.id)
        assert not project.is_blocked(a.id)

    def test_duplicate_is_noop(self, project):
        a = project.add_task("a")
        b = project.add_task("b")
        project.add_dependency(a.id, b.id)
        project.add_dependency(f"#{a.id}", str(b.id))
        assert len(project.get_dependencies(a.id)) == 1

    def test_self_dependency_rejected(self, project):
        a = project.add_task("a")
        with pytest.raises(TaskDependencyError, match="itself"):
            project.add_dependency(a.id, a.id)

    def test_direct_cycle_rejected(self, project):
        a = project.add_task("a")
        b = project.add_task("b")
        project.add_dependency(a.id, b.id)
        with pytest.raises(TaskDependencyError, match="circular"):
            project.add_dependency(b.id, a.id)

    def test_transitive_cycle_rejected(self, project):
        a, b, c = (project.add_task(n) for n in "abc")
        project.add_dependency(a.id, b.id)
        project.add_dependency(b.id, c.id)
        with pytest.raises(TaskDependencyError) as exc_info:
            project.add_dependency(c.id, a.id)
        assert exc_info.value.task_id == c.id
        assert exc_info.value.depends_on_task_id == a.id
        assert project.get_dependencies(c.id) == []

    def test_unknown_task(self, project):
        a = project.add_task("a")
        with pytest.raises(TaskNotFoundError):
            project.add_dependency(a.id, 99)

    def test_remove(self, project):
        a = project.add_task("a")
        b = project.add_task("b")
        project.add_dependency(a.id, b.id)
        assert project.remove_dependency(a.id, b.id)
        assert not project.remove_dependency(a.id, b.id)
        assert not project.is_blocked(a.id)


class TestNextTask:

    def test_empty(self, project):
        assert project.next_task() is None

    def test_highest_priority_first(self, project):
        project.add_task("low", priority="low")
        project.add_task("critical", priority="critical")
        project.add_task("high", priority="high")
        assert project.next_task().title == "critical"

    def test_oldest_wins_ties(self, project):
        project.add_task("first")
        project.add_task("second")
        assert project.next_task().title == "first"

    def test_skips_blocked_and_started(self, project):
        urgent = project.add_task("urgent", priority="critical")
        blocker = project.add_task("blocker", priority="low")
        busy = project.add_task("busy", priority="high")
        project.add_dependency(urgent.id, blocker.id)
        project.start_task(busy.id)

        assert project.next_task().id == blocker.id

        project.complete_task(blocker.id)
        assert project.next_task().id == urgent.id


# ---------------------------------------------------------------------------
# Agents
# ---------------------------------------------------------------------------

class TestAgents:

    def test_default_agents(self, project):
        assert [a.name for a in project.list_agents()] == ["coder", "reviewer"]

    def test_unknown_agent_lists_available(self, project):
        with pytest.raises(AgentNotFoundError) as exc_info:
            project.get_agent("ghost")
        assert exc_info.value.available == ["coder", "reviewer"]

    def test_missing_config(self, bare_project):
        with pytest.raises(ProjectNotInitializedError):
            bare_project.list_agents()

    def test_blank_client_rejected(self, tmp_path):
        config = AgentmineConfig.model_validate({"agents": {"bad": {"client": " "}}})
        with Project.open(tmp_path, db_path=":memory:", config=config) as p:
            with pytest.raises(InvalidAgentDefinitionError, match="client is required"):
                p.get_agent("bad")

    def test_dry_run_records_nothing(self, project, fake_runner):
        run = project.run_agent("coder", "hello", dry_run=True, runner=fake_runner)
        assert run.dry_run
        assert run.command[0] == "claude"
        assert run.command[-2:] == ["-p", "hello"]
        assert fake_runner.calls == []
        assert project.list_sessions() == []

    def test_run_records_completed_session(self, project, fake_runner):
        run = project.run_agent("coder", "hello", runner=fake_runner)

        assert run.result.ok
        assert run.session.status == SessionStatus.COMPLETED
        assert run.session.output == "done\n"
        assert fake_runner.calls[0][1] == project.root

        sessions = project.list_sessions()
        assert len(sessions) == 1
        assert sessions[0].input == "hello"
        assert sessions[0].exit_code == 0

    def test_nonzero_exit_marks_failed(self, project, fake_runner):
        fake_runner.exit_code = 2
        run = project.run_agent("coder", "hello", runner=fake_runner)
        assert not run.result.ok
        assert run.session.status == SessionStatus.FAILED
        assert run.session.exit_code == 2

    def test_launch_failure_recorded(self, project):
        def broken(argv, cwd=None):
            raise AgentExecutionError("Agent client 'claude' not found on PATH")

        with pytest.raises(AgentExecutionError):
            project.run_agent("coder", "hello", runner=broken)

        (recorded,) = project.list_sessions()
        assert recorded.status == SessionStatus.FAILED
        assert "not found" in recorded.output

    def test_unexpected_runner_error_marks_failed(self, project):
        def garbled(argv, cwd=None):
            raise UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")

        with pytest.raises(UnicodeDecodeError):
            project.run_agent("coder", "hello", runner=garbled)

        (recorded,) = project.list_sessions()
        assert recorded.status == SessionStatus.FAILED
        assert recorded.completed_at is not None
        assert "UnicodeDecodeError" in recorded.output

    def test_run_linked_to_task(self, project, fake_runner):
        t = project.add_task("x")
        run = project.run_agent("reviewer", "look", task_id=f"#{t.id}", runner=fake_runner)
        assert run.session.task_id == t.id

    def test_run_with_unknown_task(self, project, fake_runner):
        with pytest.raises(TaskNotFoundError):
            project.run_agent("coder", "hello", task_id=5, runner=fake_runner)
        assert fake_runner.calls == []

    def test_sessions_filtered_by_agent(self, project, fake_runner):
        project.run_agent("coder", "one", runner=fake_runner)
        project.run_agent("reviewer", "two", runner=fake_runner)
        assert [s.input for s in project.list_sessions(agent_name="reviewer")] == ["two"]

    def test_sessions_filtered_by_status(self, project, fake_runner):
        project.run_agent("coder", "one", runner=fake_runner)
        fake_runner.exit_code = 1
        project.run_agent("coder", "two", runner=fake_runner)
        failed = project.list_sessions(status="failed")
        assert [s.input for s in failed] == ["two"]

    def test_get_session(self, project, fake_runner):
        run = project.run_agent("coder", "one", runner=fake_runner)
        assert project.get_session(run.session.id) == run.session
        assert project.get_session(999) is None


# ---------------------------------------------------------------------------
# Skills
# ---------------------------------------------------------------------------

class TestSkills:

    def test_builtins_without_config(self, bare_project):
        names = [s.name for s in bare_project.list_skills()]
        assert names == ["commit", "test", "review", "debug"]

    def test_project_skill_listed_after_builtins(self, tmp_path):
        config = AgentmineConfig.model_validate(
            {"skills": {"deploy": {"source": "local", "prompt": "Ship it."}}}
        )
        with Project.open(tmp_path, db_path=":memory:", config=config) as p:
            assert [s.name for s in p.list_skills()][-1] == "deploy"
            assert p.resolve_skill_prompt("deploy") == "Ship it."

    def test_local_skill_file(self, tmp_path):
        config = AgentmineConfig.model_validate({"skills": {"lint": {"source": "local"}}})
        skills_dir(tmp_path).mkdir(parents=True)
        (skills_dir(tmp_path) / "lint.md").write_text("Run the linter.\n", encoding="utf-8")
        with Project.open(tmp_path, db_path=":memory:", config=config) as p:
            assert p.resolve_skill_prompt("lint") == "Run the linter."

    def test_unknown_skill(self, project):
        with pytest.raises(SkillNotFoundError):
            project.get_skill("nope")


# ---------------------------------------------------------------------------
# init_project
# ---------------------------------------------------------------------------

class TestInitProject:

    def test_creates_layout(self, tmp_path):
        result = init_project(tmp_path)
        assert result.created
        assert config_path(tmp_path).is_file()
        assert skills_dir(tmp_path).is_dir()
        assert (tmp_path / ".agentmine" / "data.db").is_file()

    def test_project_name_defaults_to_dir(self, tmp_path):
        root = tmp_path / "shop"
        root.mkdir()
        init_project(root)
        with Project.open(root) as p:
            assert p.config.project.name == "shop"

    def test_second_init_leaves_config(self, tmp_path):
        init_project(tmp_path, name="first")
        config_path(tmp_path).write_text("project:\n  name: edited\n", encoding="utf-8")

        result = init_project(tmp_path, name="second")

        assert not result.config_written
        assert "edited" in config_path(tmp_path).read_text(encoding="utf-8")

    def test_force_rewrites_config_keeps_tasks(self, tmp_path):
        init_project(tmp_path)
        with Project.open(tmp_path) as p:
            p.add_task("survivor")

        result = init_project(tmp_path, name="renamed", force=True)

        assert result.config_written and not result.created
        with Project.open(tmp_path) as p:
            assert p.config.project.name == "renamed"
            assert [t.title for t in p.list_tasks()] == ["survivor"]
