"""Shared startup for CLI commands: config, logging, telemetry, context."""

from __future__ import annotations

from pathlib import Path

import click

from wsbridge.config import BridgeConfig, load_config
from wsbridge.core.context import BridgeContext, build_context
from wsbridge.errors import ConfigError
from wsbridge.utils.log import setup_logging
from wsbridge.utils.telemetry import configure_telemetry

config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML configuration file.",
)
root_option = click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Workspace root (overrides the config file; defaults to the current directory).",
)


def bootstrap(config_path: Path | None, root: Path | None) -> BridgeContext:
    """Load configuration and build the bridge, or exit with a CLI error."""
    try:
        config: BridgeConfig = load_config(config_path, workspace_root=root)
    except ConfigError as exc:
        raise click.ClickException(f"Configuration error: {exc}") from exc

    setup_logging(config.logging.level)

    if config.telemetry.enabled:
        try:
            configure_telemetry(config.telemetry, service_name=config.server.name)
        except ImportError as exc:
            raise click.ClickException(str(exc)) from exc

    return build_context(config)
