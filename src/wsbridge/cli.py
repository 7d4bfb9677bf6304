"""wsbridge CLI entrypoint."""

from __future__ import annotations

import click

from wsbridge import __version__


@click.group()
@click.version_option(version=__version__, prog_name="wsbridge")
def main() -> None:
    """wsbridge: expose a workspace to AI agents as MCP tools."""


# Register subcommands
from wsbridge.cli_commands import register_commands  # noqa: E402

register_commands(main)

if __name__ == "__main__":
    main()
