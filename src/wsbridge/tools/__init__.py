"""Tool implementations exposed through the registry."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from wsbridge.tools.base import FileTool
from wsbridge.tools.files import FILE_TOOLS

if TYPE_CHECKING:
    from wsbridge.config import LimitSettings
    from wsbridge.core.deferred import DeferredEffects
    from wsbridge.core.registry import ToolRegistry
    from wsbridge.workspace.binding import FileBinding
    from wsbridge.workspace.cache import ContentCache
    from wsbridge.workspace.paths import Workspace


def register_file_tools(
    registry: ToolRegistry,
    *,
    workspace: Workspace,
    binding: FileBinding,
    cache: ContentCache,
    deferred: DeferredEffects,
    limits: LimitSettings,
) -> list[FileTool[Any]]:
    """Instantiate every file tool and register its definition."""
    tools: list[FileTool[Any]] = []
    for tool_cls in FILE_TOOLS:
        tool = tool_cls(workspace, binding, cache, deferred, limits)
        registry.register(tool.definition())
        tools.append(tool)
    return tools


__all__ = ["FILE_TOOLS", "FileTool", "register_file_tools"]
