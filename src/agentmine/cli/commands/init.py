"""agentmine init -- set up .agentmine/ in the project directory."""

from __future__ import annotations

import click
from rich.markup import escape

from agentmine.cli.formatting import format_error, format_warning, get_console


@click.command(context_settings={"allow_extra_args": True})
@click.option("-n", "--name", default=None, help="Project name (default: directory name).")
@click.option("--force", is_flag=True, help="Rewrite config.yaml if already initialized.")
@click.pass_context
def init(ctx: click.Context, name: str | None, force: bool) -> None:
    """Initialize agentmine in current directory."""
    from agentmine.project import init_project

    console = get_console()
    console.print("Initializing agentmine...", highlight=False)

    try:
        obj = ctx.find_root().obj
        result = init_project(obj["root"], name=name, force=force, db_path=obj.get("db_path"))
    except Exception as e:
        format_error(str(e), console)
        raise SystemExit(1) from None

    if not result.config_written:
        format_warning(f"agentmine is already initialized in {result.path}", console)
        console.print("[dim]  Use --force to rewrite config.yaml[/dim]")
        return

    verb = "Initialized" if result.created else "Reinitialized"
    console.print(f"[green]{verb} agentmine in[/green] [cyan]{escape(str(result.path))}[/cyan]", highlight=False)
    console.print()
    console.print("Created:")
    console.print("[dim]  .agentmine/[/dim]")
    console.print("[dim]  ├── config.yaml[/dim]")
    console.print("[dim]  ├── data.db[/dim]")
    console.print("[dim]  └── skills/[/dim]")
    console.print()
    console.print("Next steps:")
    console.print('[cyan]  agentmine task add "Your first task"[/cyan]', highlight=False)
