"""Allow ``python -m agentmine`` to behave like the ``agentmine`` script."""

from agentmine.cli import cli

if __name__ == "__main__":
    cli()
