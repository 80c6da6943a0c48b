"""Rich formatting helpers for the agentmine CLI.

Provides functions that format SDK data structures for terminal display.
Rich auto-detects TTY and degrades gracefully when piped (no ANSI codes).
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

if TYPE_CHECKING:
    from agentmine.models.config import AgentDefinition, SkillDefinition
    from agentmine.models.session import SessionInfo
    from agentmine.models.task import TaskInfo, TaskStatus

STATUS_STYLES = {
    "open": "blue",
    "in_progress": "yellow",
    "review": "magenta",
    "done": "green",
    "cancelled": "dim",
    "running": "yellow",
    "completed": "green",
    "failed": "red",
}

PRIORITY_STYLES = {
    "low": "dim",
    "medium": "white",
    "high": "yellow",
    "critical": "red",
}


def get_console() -> Console:
    """Create a Rich Console that auto-detects TTY for graceful pipe degradation."""
    return Console(stderr=False)


def echo(console: Console, text: str) -> None:
    """Print user-supplied text verbatim: no markup, emoji, highlighting or wrapping."""
    console.print(text, markup=False, emoji=False, highlight=False, soft_wrap=True)


def _styled(value: str, styles: dict[str, str]) -> str:
    style = styles.get(value)
    return f"[{style}]{value}[/{style}]" if style else value


def _when(value: datetime | None) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else "-"


def _truncate(text: str, width: int) -> str:
    return text if len(text) <= width else text[: width - 3] + "..."


def format_task_table(tasks: list[TaskInfo], console: Console) -> None:
    """Display tasks as a compact table."""
    if not tasks:
        console.print("[dim]No tasks found. Create one with:[/dim]")
        console.print('[cyan]  agentmine task add "Your task"[/cyan]', highlight=False)
        return

    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Status", no_wrap=True)
    table.add_column("Priority", no_wrap=True)
    table.add_column("Type")
    table.add_column("Assignee")
    table.add_column("Title")

    for task in tasks:
        if task.assignee_type is not None:
            assignee = f"{task.assignee_type.value}:{escape(task.assignee_name or '')}"
        else:
            assignee = "[dim]-[/dim]"
        table.add_row(
            task.label,
            _styled(task.status.value, STATUS_STYLES),
            _styled(task.priority.value, PRIORITY_STYLES),
            task.type.value,
            assignee,
            escape(_truncate(task.title, 40)),
        )

    console.print(table)


def format_task_detail(task: TaskInfo, console: Console) -> None:
    """Display every field of a single task."""
    console.print()
    console.print(f"[cyan]{task.label}[/cyan] [bold]{escape(task.title)}[/bold]")
    console.print()
    console.print(f"  Status:    {_styled(task.status.value, STATUS_STYLES)}")
    console.print(f"  Priority:  {_styled(task.priority.value, PRIORITY_STYLES)}")
    console.print(f"  Type:      {task.type.value}")
    if task.assignee_name:
        console.print(
            f"  Assignee:  {escape(task.assignee_name)} ({task.assignee_type.value})"
        )
    else:
        console.print("  Assignee:  -")
    console.print(f"  Branch:    {escape(task.branch_name or '-')}")
    if task.parent_id is not None:
        console.print(f"  Parent:    #{task.parent_id}")
    console.print(f"  Created:   {_when(task.created_at)}")
    if task.started_at:
        console.print(f"  Started:   {_when(task.started_at)}")
    if task.completed_at:
        console.print(f"  Completed: {_when(task.completed_at)}")
    if task.description:
        console.print()
        console.print("[dim]Description:[/dim]")
        echo(console, task.description)
    console.print()


def format_status_counts(counts: dict[TaskStatus, int], console: Console) -> None:
    """One-line summary of tasks per status."""
    parts = [
        f"{_styled(status.value, STATUS_STYLES)} {count}"
        for status, count in counts.items()
    ]
    console.print("Tasks: " + "  ".join(parts))


def format_agent_table(agents: list[AgentDefinition], console: Console) -> None:
    if not agents:
        console.print("[dim]No agents configured.[/dim]")
        return

    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Client")
    table.add_column("Model")
    table.add_column("Description")
    table.add_column("Skills")

    for agent in agents:
        table.add_row(
            escape(agent.name),
            escape(agent.client),
            escape(agent.model),
            escape(agent.description),
            escape(", ".join(agent.skills)),
        )

    console.print(table)


def format_agent_detail(agent: AgentDefinition, console: Console) -> None:
    console.print()
    header = f"[cyan]{escape(agent.name)}[/cyan]"
    if agent.description:
        header += f" [dim]-[/dim] {escape(agent.description)}"
    console.print(header)
    console.print()
    console.print(f"  Client:  {escape(agent.client)}")
    console.print(f"  Model:   {escape(agent.model)}")
    console.print(f"  Tools:   {escape(', '.join(agent.tools) or '-')}")
    console.print(f"  Skills:  {escape(', '.join(agent.skills) or '-')}")
    if agent.system_prompt:
        console.print()
        console.print("[dim]System prompt:[/dim]")
        echo(console, agent.system_prompt)
    console.print()


def format_session_table(sessions: list[SessionInfo], console: Console) -> None:
    if not sessions:
        console.print("[dim]No sessions recorded.[/dim]")
        return

    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Agent")
    table.add_column("Status", no_wrap=True)
    table.add_column("Task")
    table.add_column("Exit", justify="right")
    table.add_column("Started", style="dim")
    table.add_column("Prompt")

    for s in sessions:
        table.add_row(
            f"#{s.id}",
            escape(s.agent_name),
            _styled(s.status.value, STATUS_STYLES),
            f"#{s.task_id}" if s.task_id is not None else "-",
            str(s.exit_code) if s.exit_code is not None else "-",
            _when(s.started_at),
            escape(_truncate(s.input or "", 40)),
        )

    console.print(table)


def format_skill_table(skills: list[SkillDefinition], console: Console) -> None:
    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Source")
    table.add_column("Description")

    for skill in skills:
        description = skill.description or skill.path or skill.url or "-"
        source = skill.source.value
        table.add_row(
            escape(skill.name),
            f"[dim]{source}[/dim]" if source == "builtin" else source,
            escape(description),
        )

    console.print(table)


def format_skill_detail(skill: SkillDefinition, prompt: str | None, console: Console) -> None:
    console.print()
    console.print(f"[cyan]{escape(skill.name)}[/cyan] [dim]({skill.source.value})[/dim]")
    console.print()
    if skill.description:
        console.print(f"  Description: {escape(skill.description)}")
    if skill.path:
        console.print(f"  Path:        {escape(skill.path)}")
    if skill.url:
        console.print(f"  URL:         {escape(skill.url)}")
    if prompt:
        console.print()
        console.print("[dim]Prompt:[/dim]")
        echo(console, prompt)
    console.print()


def format_not_found(message: str, console: Console) -> None:
    """Report a lookup miss that does not fail the command."""
    console.print(f"[red]{escape(message)}[/red]", highlight=False)


def format_warning(message: str, console: Console) -> None:
    console.print(f"[yellow]Warning:[/yellow] {escape(message)}", highlight=False)


def format_error(message: str, console: Console) -> None:
    """Display an error message."""
    console.print(f"[red]Error:[/red] {escape(message)}", highlight=False, soft_wrap=True)
