"""Positional argument count checks for agentmine commands.

Commands collect their positionals with ``nargs=-1`` and validate the count
here, so a wrong count is reported the same way for every command.
"""

from __future__ import annotations

import click


class ArgumentCountError(click.UsageError):
    """Raised when a command receives the wrong number of positional arguments.

    Click renders it with the command's usage line and exits with status 2.
    """

    def __init__(
        self,
        received: int,
        *,
        exact: int | None = None,
        minimum: int | None = None,
        ctx: click.Context | None = None,
    ) -> None:
        self.received = received
        self.exact = exact
        self.minimum = minimum
        if exact is not None:
            message = f"accepts {exact} arg(s), received {received}"
        else:
            message = f"requires at least {minimum} arg(s), only received {received}"
        super().__init__(message, ctx=ctx)


def expect_args(
    args: tuple[str, ...],
    *,
    exact: int | None = None,
    minimum: int | None = None,
) -> tuple[str, ...]:
    """Return *args* unchanged if the count is acceptable.

    Exactly one of *exact* / *minimum* must be given.

    Raises:
        ArgumentCountError: If the count does not match.
    """
    if (exact is None) == (minimum is None):
        raise ValueError("pass exactly one of exact= or minimum=")

    ctx = click.get_current_context(silent=True)
    if exact is not None and len(args) != exact:
        raise ArgumentCountError(len(args), exact=exact, ctx=ctx)
    if minimum is not None and len(args) < minimum:
        raise ArgumentCountError(len(args), minimum=minimum, ctx=ctx)
    return args
