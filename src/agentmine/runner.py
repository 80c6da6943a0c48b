"""Launching agent clients.

Agents are not called over an API: each one names a command-line client
(claude-code, codex, gemini, or any executable on PATH) which is started
with the prompt as an argument.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from pathlib import Path

from agentmine.exceptions import AgentExecutionError
from agentmine.models.config import AgentDefinition
from agentmine.models.session import RunResult

logger = logging.getLogger(__name__)


def build_command(agent: AgentDefinition, prompt: str) -> list[str]:
    """Build the argv that runs *agent* with *prompt*.

    The prompt is passed as a single argument, never through a shell.
    """
    client = agent.client.lower()

    if client in ("claude-code", "claude"):
        argv = ["claude", "--model", agent.model]
        if agent.system_prompt:
            argv += ["--append-system-prompt", agent.system_prompt]
        if agent.tools:
            argv += ["--allowedTools", ",".join(agent.tools)]
        return argv + ["-p", prompt]

    if client == "codex":
        return ["codex", "exec", "-m", agent.model, prompt]

    if client in ("gemini", "gemini-cli"):
        return ["gemini", "-m", agent.model, "-p", prompt]

    # Generic client: assume a CLI tool with the same name
    return [agent.client, prompt]


def format_command(argv: list[str]) -> str:
    """Render argv as a copy-pasteable shell line."""
    return shlex.join(argv)


def run_command(argv: list[str], cwd: str | Path | None = None, timeout: float | None = None) -> RunResult:
    """Run *argv* to completion, capturing combined stdout/stderr.

    Output is decoded as UTF-8; undecodable bytes become U+FFFD.

    Raises:
        AgentExecutionError: If the executable is missing, cannot be
            started, or exceeds *timeout* seconds.
    """
    logger.info("Running %s", format_command(argv))
    try:
        completed = subprocess.run(
            argv,
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
        )
    except FileNotFoundError as e:
        raise AgentExecutionError(
            f"Agent client '{argv[0]}' not found on PATH"
        ) from e
    except subprocess.TimeoutExpired as e:
        raise AgentExecutionError(
            f"Agent client '{argv[0]}' timed out after {timeout}s"
        ) from e
    except OSError as e:
        raise AgentExecutionError(f"Cannot start '{argv[0]}': {e}") from e

    logger.debug("%s exited with %d", argv[0], completed.returncode)
    return RunResult(exit_code=completed.returncode, output=completed.stdout or "")
