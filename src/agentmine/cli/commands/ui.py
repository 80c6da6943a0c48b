"""agentmine ui -- report where the web UI is served."""

from __future__ import annotations

import click

from agentmine.cli.formatting import format_status_counts
from agentmine.models.config import DEFAULT_UI_PORT


@click.command(context_settings={"allow_extra_args": True})
@click.option("-p", "--port", type=click.IntRange(1, 65535), default=None, help=f"Port (default: config ui.port or {DEFAULT_UI_PORT}).")
@click.pass_context
def ui(ctx: click.Context, port: int | None) -> None:
    """Start web UI."""
    from agentmine.cli import _project_session

    with _project_session(ctx) as (project, console):
        if port is None:
            port = project.config.ui.port if project.has_config else DEFAULT_UI_PORT
        console.print(f"Starting web UI on http://localhost:{port}", highlight=False)
        format_status_counts(project.count_tasks_by_status(), console)
        console.print("[dim]The web UI is not bundled with this build; no server was started.[/dim]")
