"""agentmine agent -- inspect configured agents and run them."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click
from rich.markup import escape

from agentmine.cli.arguments import expect_args
from agentmine.cli.formatting import (
    echo,
    format_agent_detail,
    format_agent_table,
    format_not_found,
    format_session_table,
    format_warning,
)
from agentmine.models.session import SessionStatus

if TYPE_CHECKING:
    from rich.console import Console


def _warn_missing_config(console: Console) -> None:
    format_warning("No .agentmine/config.yaml found", console)
    console.print("[dim]  Run 'agentmine init' first[/dim]", highlight=False)


@click.group()
def agent() -> None:
    """Manage AI agents."""


@agent.command("list", context_settings={"allow_extra_args": True})
@click.pass_context
def list_(ctx: click.Context) -> None:
    """List defined agents."""
    from agentmine.cli import _project_session
    from agentmine.exceptions import ProjectNotInitializedError

    with _project_session(ctx) as (project, console):
        console.print("Listing agents...", highlight=False)
        try:
            agents = project.list_agents()
        except ProjectNotInitializedError:
            _warn_missing_config(console)
            return
        format_agent_table(agents, console)


@agent.command("show")
@click.argument("args", nargs=-1, metavar="NAME")
@click.pass_context
def show(ctx: click.Context, args: tuple[str, ...]) -> None:
    """Show agent details."""
    from agentmine.cli import _project_session
    from agentmine.exceptions import AgentNotFoundError, ProjectNotInitializedError

    (name,) = expect_args(args, exact=1)
    with _project_session(ctx) as (project, console):
        try:
            definition = project.get_agent(name)
        except ProjectNotInitializedError:
            _warn_missing_config(console)
            return
        except AgentNotFoundError as e:
            format_not_found(str(e), console)
            return
        format_agent_detail(definition, console)


@agent.command("run")
@click.argument("args", nargs=-1, metavar="NAME PROMPT...")
@click.option("--task", "task_id", default=None, help="Link the session to this task id.")
@click.option("--dry-run", is_flag=True, help="Print the command without running it.")
@click.pass_context
def run(ctx: click.Context, args: tuple[str, ...], task_id: str | None, dry_run: bool) -> None:
    """Run an agent with a prompt."""
    from agentmine.cli import _project_session
    from agentmine.exceptions import (
        AgentNotFoundError,
        InvalidTaskIdError,
        ProjectNotInitializedError,
        TaskNotFoundError,
    )
    from agentmine.runner import format_command

    name, *words = expect_args(args, minimum=2)
    prompt = " ".join(words)
    with _project_session(ctx) as (project, console):
        echo(console, f"Running agent {name} with prompt: {prompt}")
        try:
            result = project.run_agent(name, prompt, task_id=task_id, dry_run=dry_run)
        except ProjectNotInitializedError:
            _warn_missing_config(console)
            return
        except AgentNotFoundError as e:
            format_not_found(str(e), console)
            if e.available:
                console.print(f"[dim]  Available: {escape(', '.join(e.available))}[/dim]", highlight=False)
            return
        except (TaskNotFoundError, InvalidTaskIdError) as e:
            format_not_found(str(e), console)
            return

        if result.dry_run:
            console.print("[dim]Would run:[/dim]")
            echo(console, f"  {format_command(result.command)}")
            return

        session, outcome = result.session, result.result
        if outcome.output:
            echo(console, outcome.output.rstrip("\n"))
        style = "green" if outcome.ok else "red"
        console.print(
            f"[{style}]Session #{session.id} {session.status.value}[/{style}]"
            f" [dim](exit code {outcome.exit_code})[/dim]",
            highlight=False,
        )
        if not outcome.ok:
            raise SystemExit(1)


@agent.command("sessions")
@click.option("--agent", "agent_name", default=None, help="Only show sessions of this agent.")
@click.option(
    "-s",
    "--status",
    type=click.Choice([s.value for s in SessionStatus], case_sensitive=False),
    default=None,
    help="Only show sessions in this status.",
)
@click.option("-n", "--limit", type=int, default=20, show_default=True, help="Maximum number of sessions.")
@click.pass_context
def sessions(ctx: click.Context, agent_name: str | None, status: str | None, limit: int) -> None:
    """List recorded agent sessions."""
    from agentmine.cli import _project_session

    with _project_session(ctx) as (project, console):
        rows = project.list_sessions(
            agent_name=agent_name,
            status=status.lower() if status else None,
            limit=limit,
        )
        format_session_table(rows, console)
