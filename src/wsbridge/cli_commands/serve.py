"""``wsbridge serve``: answer JSON-RPC requests on stdin/stdout."""

from __future__ import annotations

import asyncio
from pathlib import Path

import click

from wsbridge.cli_commands._bootstrap import bootstrap, config_option, root_option


@click.command()
@config_option
@root_option
def serve(config_path: Path | None, root: Path | None) -> None:
    """Serve the workspace over stdio until stdin closes."""
    from wsbridge.core.handler import RequestHandler
    from wsbridge.transport.stdio import StdioServer

    server = StdioServer(RequestHandler(bootstrap(config_path, root)))
    asyncio.run(server.serve())
