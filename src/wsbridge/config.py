"""Bridge configuration: pydantic models plus the YAML loader.

A configuration file is optional; every field has a default so that
``BridgeConfig()`` describes a working bridge rooted at the current
directory.
"""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from wsbridge.errors import ConfigError


class ServerSettings(BaseModel):
    """Identity reported during protocol negotiation."""

    name: str = "wsbridge"
    version: str = "0.1.0"
    protocol_version: str = "2024-11-05"


class CacheSettings(BaseModel):
    """Content cache and response cache options."""

    enabled: bool = Field(default=True, description="Keep decoded file text in memory.")
    verify_on_read: bool = Field(
        default=True,
        description="Compare size/mtime with the store before serving a cached entry.",
    )
    max_items: int = Field(default=1000, ge=1)
    cache_responses: bool = Field(
        default=False,
        description="Serve repeated read-only tool calls from the response cache.",
    )
    response_ttl: float = Field(default=30.0, gt=0, description="Seconds.")


class LimitSettings(BaseModel):
    max_file_read_characters: int = Field(default=100_000, ge=1)


class ThresholdSettings(BaseModel):
    """When operations count as slow enough to log."""

    slow_interceptor_ms: float = 10.0
    slow_request_ms: float = 50.0
    log_truncation_length: int = 100


class EditorSettings(BaseModel):
    open_after_write: bool = True
    command: str | None = Field(
        default=None,
        description="Command used to show a file, e.g. 'code -r {path}'.",
    )


class PolicyAction(str, Enum):
    """Action a policy rule prescribes for a tool."""

    ALLOW = "allow"
    DENY = "deny"


class ToolPolicy(BaseModel):
    """A single rule matching tool names to an action."""

    pattern: str = Field(..., description="Tool name or glob pattern (e.g. 'replace_*').")
    action: PolicyAction
    reason: str = ""


class PolicySettings(BaseModel):
    enabled: bool = False
    default_action: PolicyAction = PolicyAction.ALLOW
    policies: list[ToolPolicy] = Field(
        default_factory=list,
        description="Ordered policy rules (first match wins).",
    )


class LoggingSettings(BaseModel):
    level: str = "INFO"


class TelemetrySettings(BaseModel):
    enabled: bool = False
    export_to_console: bool = False
    otlp_endpoint: str | None = None


class BridgeConfig(BaseModel):
    """Top-level configuration for a bridge process."""

    workspace_root: Path = Field(default_factory=Path.cwd)
    server: ServerSettings = Field(default_factory=ServerSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    limits: LimitSettings = Field(default_factory=LimitSettings)
    thresholds: ThresholdSettings = Field(default_factory=ThresholdSettings)
    editor: EditorSettings = Field(default_factory=EditorSettings)
    policy: PolicySettings = Field(default_factory=PolicySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)


def load_config(path: Path | None = None, **overrides: Any) -> BridgeConfig:
    """Read YAML, interpolate env vars, apply *overrides*, and validate.

    Environment variables in the form ``${VAR}`` or ``$VAR`` are expanded
    with :func:`os.path.expandvars` before parsing. A relative
    ``workspace_root`` is resolved against the config file's directory.

    Raises:
        ConfigError: On read errors, YAML parse errors, or validation failures.
    """
    data: dict[str, Any] = {}
    if path is not None:
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"Cannot read {path}: {exc}") from exc

        try:
            loaded: Any = yaml.safe_load(os.path.expandvars(raw))
        except yaml.YAMLError as exc:
            raise ConfigError(f"YAML parse error: {exc}") from exc

        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigError("Config YAML must be a mapping")
        data = loaded

        root = data.get("workspace_root")
        if isinstance(root, str) and not Path(root).is_absolute():
            data["workspace_root"] = str(path.parent / root)

    data.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return BridgeConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc
