"""ToolRegistry: the name-to-definition map consulted for every call."""

from __future__ import annotations

from typing import TYPE_CHECKING

from wsbridge.errors import DuplicateNameError

if TYPE_CHECKING:
    from wsbridge.protocol.models import ToolDefinition


class ToolRegistry:
    """Holds tool definitions in registration order.

    Populated once while the :class:`~wsbridge.core.context.BridgeContext`
    is built and read-only afterwards.

    Usage::

        registry = ToolRegistry()
        registry.register(definition)

        registry.lookup("read_file")   # definition or None
        registry.list_all()            # registration order
    """

    def __init__(self) -> None:
        self._tools: dict[str, ToolDefinition] = {}

    def register(self, definition: ToolDefinition) -> None:
        """Add *definition*; names must be unique."""
        if definition.name in self._tools:
            raise DuplicateNameError(definition.name)
        self._tools[definition.name] = definition

    def lookup(self, name: str) -> ToolDefinition | None:
        return self._tools.get(name)

    def list_all(self) -> list[ToolDefinition]:
        return list(self._tools.values())

    def names(self) -> list[str]:
        return list(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
