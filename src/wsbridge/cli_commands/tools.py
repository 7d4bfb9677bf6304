"""``wsbridge tools``: list tools and invoke them once from the shell."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import TYPE_CHECKING

import click

from wsbridge.cli_commands._bootstrap import bootstrap, config_option, root_option
from wsbridge.cli_commands._output import console, print_envelope, print_tools_table

if TYPE_CHECKING:
    from wsbridge.protocol.models import ToolResponse


@click.group()
def tools() -> None:
    """Inspect and call workspace tools."""


@tools.command("list")
@config_option
@root_option
@click.option("--json", "as_json", is_flag=True, help="Print the raw tools/list payload.")
def list_tools(config_path: Path | None, root: Path | None, as_json: bool) -> None:
    """List registered tools."""
    from wsbridge.core.handler import RequestHandler

    handler = RequestHandler(bootstrap(config_path, root))
    listing = handler.list_tools()

    if as_json:
        console.print_json(json.dumps({"tools": listing}))
        return
    print_tools_table(listing)


@tools.command("call")
@click.argument("name")
@click.option(
    "--args",
    "raw_args",
    default="{}",
    help="Tool arguments as a JSON object.",
)
@config_option
@root_option
@click.option("--json", "as_json", is_flag=True, help="Print the full result envelope.")
def call(
    name: str,
    raw_args: str,
    config_path: Path | None,
    root: Path | None,
    as_json: bool,
) -> None:
    """Run tool NAME once through the full interceptor pipeline."""
    from wsbridge.core.handler import RequestHandler

    try:
        arguments = json.loads(raw_args)
    except json.JSONDecodeError as exc:
        raise click.BadParameter(f"not valid JSON: {exc}", param_hint="--args") from exc
    if not isinstance(arguments, dict):
        raise click.BadParameter("must be a JSON object", param_hint="--args")

    handler = RequestHandler(bootstrap(config_path, root))

    async def _call() -> ToolResponse:
        envelope = await handler.call_tool(name, arguments, method="cli")
        await handler.context.deferred.drain()
        return envelope

    envelope = asyncio.run(_call())
    print_envelope(envelope, as_json=as_json)
    if envelope.is_error:
        raise SystemExit(1)
