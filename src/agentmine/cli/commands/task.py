"""agentmine task -- add, list, inspect and move tasks."""

from __future__ import annotations

import click
from rich.markup import escape

from agentmine.cli.arguments import expect_args
from agentmine.cli.formatting import (
    echo,
    format_not_found,
    format_task_detail,
    format_task_table,
)
from agentmine.models.task import AssigneeType, TaskPriority, TaskStatus, TaskType


def _choices(enum_cls: type) -> click.Choice:
    return click.Choice([m.value for m in enum_cls], case_sensitive=False)


@click.group()
def task() -> None:
    """Manage tasks."""


@task.command("add")
@click.argument("args", nargs=-1, metavar="TITLE")
@click.option("-d", "--description", default=None, help="Task description.")
@click.option("-p", "--priority", type=_choices(TaskPriority), default="medium", show_default=True, help="Priority.")
@click.option("-t", "--type", "task_type", type=_choices(TaskType), default="task", show_default=True, help="Task type.")
@click.option("--parent", "parent_id", type=int, default=None, help="Parent task id.")
@click.pass_context
def add(
    ctx: click.Context,
    args: tuple[str, ...],
    description: str | None,
    priority: str,
    task_type: str,
    parent_id: int | None,
) -> None:
    """Add a new task."""
    from agentmine.cli import _project_session

    (title,) = expect_args(args, exact=1)
    with _project_session(ctx) as (project, console):
        echo(console, f"Adding task: {title}")
        info = project.add_task(
            title,
            description=description,
            priority=priority.lower(),
            type=task_type.lower(),
            parent_id=parent_id,
        )
        console.print(f"[green]Created task[/green] [cyan]{info.label}[/cyan]", highlight=False)


@task.command("list", context_settings={"allow_extra_args": True})
@click.option("-s", "--status", type=_choices(TaskStatus), default=None, help="Only show tasks in this status.")
@click.option("-a", "--all", "show_all", is_flag=True, help="Include done and cancelled tasks.")
@click.option("-n", "--limit", type=int, default=None, help="Maximum number of tasks to show.")
@click.pass_context
def list_(ctx: click.Context, status: str | None, show_all: bool, limit: int | None) -> None:
    """List tasks."""
    from agentmine.cli import _project_session

    with _project_session(ctx) as (project, console):
        console.print("Listing tasks...", highlight=False)
        tasks = project.list_tasks(
            status=status.lower() if status else None,
            include_closed=show_all,
            limit=limit,
        )
        format_task_table(tasks, console)


@task.command("show")
@click.argument("args", nargs=-1, metavar="ID")
@click.pass_context
def show(ctx: click.Context, args: tuple[str, ...]) -> None:
    """Show task details."""
    from agentmine.cli import _project_session
    from agentmine.exceptions import InvalidTaskIdError, TaskNotFoundError

    (task_id,) = expect_args(args, exact=1)
    with _project_session(ctx) as (project, console):
        echo(console, f"Showing task: {task_id}")
        try:
            info = project.get_task(task_id)
        except (TaskNotFoundError, InvalidTaskIdError) as e:
            format_not_found(str(e), console)
            return
        format_task_detail(info, console)
        subtasks = project.get_subtasks(info.id)
        if subtasks:
            console.print("[bold]Subtasks:[/bold]")
            format_task_table(subtasks, console)
        blockers = project.get_dependencies(info.id)
        if blockers:
            console.print("[bold]Depends on:[/bold]")
            format_task_table(blockers, console)
        dependents = project.get_dependents(info.id)
        if dependents:
            console.print("[bold]Blocks:[/bold]")
            format_task_table(dependents, console)


@task.command("start")
@click.argument("args", nargs=-1, metavar="ID")
@click.pass_context
def start(ctx: click.Context, args: tuple[str, ...]) -> None:
    """Start working on a task."""
    from agentmine.cli import _project_session
    from agentmine.exceptions import InvalidTaskIdError, TaskNotFoundError

    (task_id,) = expect_args(args, exact=1)
    with _project_session(ctx) as (project, console):
        echo(console, f"Starting task: {task_id}")
        try:
            info = project.start_task(task_id)
        except (TaskNotFoundError, InvalidTaskIdError) as e:
            format_not_found(str(e), console)
            return
        console.print(f"[green]Started task[/green] [cyan]{info.label}[/cyan]", highlight=False)
        console.print(f"[dim]  Status: {info.status.value}[/dim]")
        if info.branch_name:
            console.print(f"[dim]  Branch: {escape(info.branch_name)}[/dim]", highlight=False)


@task.command("done")
@click.argument("args", nargs=-1, metavar="ID")
@click.pass_context
def done(ctx: click.Context, args: tuple[str, ...]) -> None:
    """Mark task as done."""
    from agentmine.cli import _project_session
    from agentmine.exceptions import InvalidTaskIdError, TaskNotFoundError

    (task_id,) = expect_args(args, exact=1)
    with _project_session(ctx) as (project, console):
        echo(console, f"Completing task: {task_id}")
        try:
            info = project.complete_task(task_id)
        except (TaskNotFoundError, InvalidTaskIdError) as e:
            format_not_found(str(e), console)
            return
        console.print(f"[green]Completed task[/green] [cyan]{info.label}[/cyan]", highlight=False)


@task.command("assign")
@click.argument("args", nargs=-1, metavar="ID ASSIGNEE")
@click.option("--ai", "assignee_type", flag_value=AssigneeType.AI.value, default=True, help="Assign to an AI agent (default).")
@click.option("--human", "assignee_type", flag_value=AssigneeType.HUMAN.value, help="Assign to a human.")
@click.pass_context
def assign(ctx: click.Context, args: tuple[str, ...], assignee_type: str) -> None:
    """Assign task to agent or human."""
    from agentmine.cli import _project_session
    from agentmine.exceptions import InvalidTaskIdError, TaskNotFoundError

    task_id, assignee = expect_args(args, exact=2)
    with _project_session(ctx) as (project, console):
        try:
            info = project.assign_task(task_id, assignee, assignee_type=assignee_type)
        except (TaskNotFoundError, InvalidTaskIdError) as e:
            format_not_found(str(e), console)
            return
        console.print(
            f"[green]Assigned task[/green] [cyan]{info.label}[/cyan] to",
            highlight=False,
            end=" ",
        )
        echo(console, f"{assignee} ({info.assignee_type.value})")


@task.command("update")
@click.argument("args", nargs=-1, metavar="ID")
@click.option("--title", default=None, help="New title.")
@click.option("-d", "--description", default=None, help="New description.")
@click.option("-s", "--status", type=_choices(TaskStatus), default=None, help="New status.")
@click.option("-p", "--priority", type=_choices(TaskPriority), default=None, help="New priority.")
@click.option("-t", "--type", "task_type", type=_choices(TaskType), default=None, help="New task type.")
@click.option("--parent", "parent_id", default=None, help="New parent task id.")
@click.pass_context
def update(
    ctx: click.Context,
    args: tuple[str, ...],
    title: str | None,
    description: str | None,
    status: str | None,
    priority: str | None,
    task_type: str | None,
    parent_id: str | None,
) -> None:
    """Change a task's fields or status."""
    from agentmine.cli import _project_session
    from agentmine.exceptions import InvalidTaskIdError, TaskNotFoundError

    (task_id,) = expect_args(args, exact=1)
    with _project_session(ctx) as (project, console):
        try:
            info = project.update_task(
                task_id,
                title=title,
                description=description,
                status=status.lower() if status else None,
                priority=priority.lower() if priority else None,
                type=task_type.lower() if task_type else None,
                parent_id=parent_id,
            )
        except (TaskNotFoundError, InvalidTaskIdError) as e:
            format_not_found(str(e), console)
            return
        console.print(f"[green]Updated task[/green] [cyan]{info.label}[/cyan]", highlight=False)
        console.print(f"[dim]  Status: {info.status.value}[/dim]")


@task.command("depend")
@click.argument("args", nargs=-1, metavar="ID DEPENDS_ON")
@click.option("--remove", is_flag=True, help="Remove the dependency instead of adding it.")
@click.pass_context
def depend(ctx: click.Context, args: tuple[str, ...], remove: bool) -> None:
    """Make a task wait until another task is done."""
    from agentmine.cli import _project_session
    from agentmine.exceptions import InvalidTaskIdError, TaskNotFoundError

    task_id, depends_on = expect_args(args, exact=2)
    with _project_session(ctx) as (project, console):
        try:
            if remove:
                removed = project.remove_dependency(task_id, depends_on)
            else:
                project.add_dependency(task_id, depends_on)
        except (TaskNotFoundError, InvalidTaskIdError) as e:
            format_not_found(str(e), console)
            return
        tid, dep = escape(task_id.lstrip("#")), escape(depends_on.lstrip("#"))
        if not remove:
            console.print(f"[green]Task[/green] [cyan]#{tid}[/cyan] now depends on [cyan]#{dep}[/cyan]", highlight=False)
        elif removed:
            console.print(f"[green]Removed dependency[/green] [cyan]#{tid}[/cyan] -> [cyan]#{dep}[/cyan]", highlight=False)
        else:
            console.print(f"[dim]Task #{tid} does not depend on #{dep}[/dim]", highlight=False)


@task.command("next", context_settings={"allow_extra_args": True})
@click.pass_context
def next_(ctx: click.Context) -> None:
    """Show the next open, unblocked task."""
    from agentmine.cli import _project_session

    with _project_session(ctx) as (project, console):
        info = project.next_task()
        if info is None:
            console.print("[dim]No open, unblocked tasks.[/dim]")
            return
        format_task_detail(info, console)
