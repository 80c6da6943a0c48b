"""agentmine CLI -- terminal interface for the agentmine project manager.

Loaded via the ``agentmine`` entry point defined in pyproject.toml, or
``python -m agentmine``.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import TYPE_CHECKING

import click

from agentmine._version import __version__
from agentmine.cli.formatting import format_error, get_console

if TYPE_CHECKING:
    from collections.abc import Iterator

    from rich.console import Console

    from agentmine.project import Project


@click.group()
@click.version_option(
    __version__,
    "--version",
    prog_name="agentmine",
    message="%(prog)s version %(version)s",
)
@click.option(
    "--root",
    default=".",
    envvar="AGENTMINE_ROOT",
    type=click.Path(file_okay=False),
    help="Project directory containing .agentmine/.",
)
@click.option(
    "--db",
    default=None,
    envvar="AGENTMINE_DB",
    help="Path to the task database (default: <root>/.agentmine/data.db).",
)
@click.option("--debug", is_flag=True, help="Log debug output to stderr.")
@click.pass_context
def cli(ctx: click.Context, root: str, db: str | None, debug: bool) -> None:
    """AI Project Manager - Redmine for AI agents."""
    if debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format="[%(name)s] %(levelname)s: %(message)s",
            stream=sys.stderr,
        )
    ctx.ensure_object(dict)
    ctx.obj["root"] = root
    ctx.obj["db_path"] = db


def _get_project(ctx: click.Context) -> "Project":
    """Open a Project from Click context."""
    from agentmine.project import Project

    obj = ctx.find_root().obj or {}
    return Project.open(obj.get("root", "."), db_path=obj.get("db_path"))


@contextmanager
def _project_session(ctx: click.Context) -> Iterator[tuple[Project, Console]]:
    """Context manager that opens a Project, yields (project, console), and handles cleanup.

    Ensures the project is closed on exit and formats exceptions as CLI errors.
    Commands with special exception handling can catch specific errors inside
    the ``with`` block before this context manager's generic handler runs.
    """
    console = get_console()
    try:
        project = _get_project(ctx)
        try:
            yield project, console
        finally:
            project.close()
    except (SystemExit, click.exceptions.Exit, click.Abort, click.ClickException):
        raise
    except Exception as e:
        format_error(str(e), console)
        raise SystemExit(1) from None


# Register subcommands after cli group is defined
from agentmine.cli.commands.init import init  # noqa: E402
from agentmine.cli.commands.task import task  # noqa: E402
from agentmine.cli.commands.agent import agent  # noqa: E402
from agentmine.cli.commands.skill import skill  # noqa: E402
from agentmine.cli.commands.ui import ui  # noqa: E402

cli.add_command(init)
cli.add_command(task)
cli.add_command(agent)
cli.add_command(skill)
cli.add_command(ui)
