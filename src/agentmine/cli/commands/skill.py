"""agentmine skill -- builtin and project skills."""

from __future__ import annotations

import click
from rich.markup import escape

from agentmine.cli.arguments import expect_args
from agentmine.cli.formatting import (
    echo,
    format_not_found,
    format_skill_detail,
    format_skill_table,
    format_warning,
)


@click.group()
def skill() -> None:
    """Manage skills."""


@skill.command("list", context_settings={"allow_extra_args": True})
@click.pass_context
def list_(ctx: click.Context) -> None:
    """List available skills."""
    from agentmine.cli import _project_session

    with _project_session(ctx) as (project, console):
        console.print("Listing skills...", highlight=False)
        format_skill_table(project.list_skills(), console)


@skill.command("show")
@click.argument("args", nargs=-1, metavar="NAME")
@click.pass_context
def show(ctx: click.Context, args: tuple[str, ...]) -> None:
    """Show a skill and its prompt."""
    from agentmine.cli import _project_session
    from agentmine.exceptions import SkillLoadError, SkillNotFoundError

    (name,) = expect_args(args, exact=1)
    with _project_session(ctx) as (project, console):
        try:
            definition = project.get_skill(name)
        except SkillNotFoundError as e:
            format_not_found(str(e), console)
            return
        try:
            prompt = project.resolve_skill_prompt(name)
        except SkillLoadError as e:
            format_warning(str(e), console)
            prompt = None
        format_skill_detail(definition, prompt, console)


@skill.command("run")
@click.argument("args", nargs=-1, metavar="NAME")
@click.option("--agent", "agent_name", default=None, help="Hand the skill prompt to this agent.")
@click.option("--dry-run", is_flag=True, help="With --agent, print the command without running it.")
@click.pass_context
def run(ctx: click.Context, args: tuple[str, ...], agent_name: str | None, dry_run: bool) -> None:
    """Run a skill."""
    from agentmine.cli import _project_session
    from agentmine.exceptions import AgentNotFoundError, ProjectNotInitializedError, SkillNotFoundError
    from agentmine.runner import format_command

    (name,) = expect_args(args, exact=1)
    with _project_session(ctx) as (project, console):
        echo(console, f"Running skill: {name}")
        try:
            prompt = project.resolve_skill_prompt(name)
        except SkillNotFoundError as e:
            format_not_found(str(e), console)
            return

        if agent_name is None:
            console.print("[dim]Prompt:[/dim]")
            echo(console, prompt)
            return

        try:
            result = project.run_agent(agent_name, prompt, dry_run=dry_run)
        except ProjectNotInitializedError:
            format_warning("No .agentmine/config.yaml found", console)
            console.print("[dim]  Run 'agentmine init' first[/dim]", highlight=False)
            return
        except AgentNotFoundError as e:
            format_not_found(str(e), console)
            return

        if result.dry_run:
            console.print("[dim]Would run:[/dim]")
            echo(console, f"  {format_command(result.command)}")
            return
        if result.result.output:
            echo(console, result.result.output.rstrip("\n"))
        style = "green" if result.result.ok else "red"
        console.print(
            f"[{style}]Session #{result.session.id} {result.session.status.value}[/{style}]"
            f" [dim]({escape(agent_name)}, exit code {result.result.exit_code})[/dim]",
            highlight=False,
        )
        if not result.result.ok:
            raise SystemExit(1)
