"""Protocol layer: MCP tool envelopes and JSON-RPC framing."""

from wsbridge.protocol.models import (
    ContentItem,
    EmbeddedResource,
    JsonRpcError,
    JsonRpcRequest,
    JsonRpcResponse,
    ToolAnnotations,
    ToolDefinition,
    ToolHandler,
    ToolResponse,
)

__all__ = [
    "ContentItem",
    "EmbeddedResource",
    "JsonRpcError",
    "JsonRpcRequest",
    "JsonRpcResponse",
    "ToolAnnotations",
    "ToolDefinition",
    "ToolHandler",
    "ToolResponse",
]
