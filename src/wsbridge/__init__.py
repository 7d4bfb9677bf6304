"""Workspace Bridge: exposes a local workspace to AI agents as MCP tools."""

from __future__ import annotations

from typing import TYPE_CHECKING

__version__ = "0.1.0"

if TYPE_CHECKING:
    from wsbridge.core.context import BridgeContext as BridgeContext
    from wsbridge.core.context import build_context as build_context
    from wsbridge.core.handler import RequestHandler as RequestHandler

_LAZY_EXPORTS = {
    "BridgeContext": "wsbridge.core.context",
    "build_context": "wsbridge.core.context",
    "RequestHandler": "wsbridge.core.handler",
}


def __getattr__(name: str) -> object:
    module_path = _LAZY_EXPORTS.get(name)
    if module_path is not None:
        import importlib

        mod = importlib.import_module(module_path)
        return getattr(mod, name)
    raise AttributeError(f"module 'wsbridge' has no attribute {name!r}")
