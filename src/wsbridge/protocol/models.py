"""Protocol models: JSON-RPC 2.0 messages, tool definitions, result envelopes.

Field names are snake_case in Python and camelCase on the wire (aliases),
so ``model_dump(by_alias=True, exclude_none=True)`` produces exactly the
shape MCP clients expect.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# JSON-RPC 2.0 envelope
# ---------------------------------------------------------------------------

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class JsonRpcRequest(BaseModel):
    """A JSON-RPC 2.0 request (or notification, when ``id`` is absent)."""

    jsonrpc: Literal["2.0"] = "2.0"
    method: str
    id: int | str | None = None
    params: dict[str, Any] = {}

    @property
    def is_notification(self) -> bool:
        return self.id is None


class JsonRpcError(BaseModel):
    """A JSON-RPC 2.0 error object."""

    code: int
    message: str
    data: Any = None


class JsonRpcResponse(BaseModel):
    """A JSON-RPC 2.0 response message."""

    jsonrpc: str = "2.0"
    id: int | str | None = None
    result: dict[str, Any] | None = None
    error: JsonRpcError | None = None

    def to_wire(self) -> dict[str, Any]:
        """Dump with exactly one of ``result`` / ``error`` present."""
        data: dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            data["error"] = self.error.model_dump(exclude_none=True)
        else:
            data["result"] = self.result if self.result is not None else {}
        return data


# ---------------------------------------------------------------------------
# Tool result envelope
# ---------------------------------------------------------------------------

ContentType = Literal["text", "image", "audio", "resource_link", "resource"]


class EmbeddedResource(BaseModel):
    """Resource body embedded in a ``resource`` content item."""

    model_config = ConfigDict(populate_by_name=True)

    uri: str
    mime_type: str | None = Field(default=None, alias="mimeType")
    text: str | None = None
    blob: str | None = None


class ContentItem(BaseModel):
    """One piece of content in a tool result."""

    model_config = ConfigDict(populate_by_name=True)

    type: ContentType
    text: str | None = None
    data: str | None = Field(default=None, description="Base64 payload for image/audio.")
    mime_type: str | None = Field(default=None, alias="mimeType")
    uri: str | None = None
    name: str | None = None
    description: str | None = None
    resource: EmbeddedResource | None = None
    annotations: dict[str, Any] | None = None

    @classmethod
    def of_text(cls, text: str) -> ContentItem:
        return cls(type="text", text=text)


class ToolResponse(BaseModel):
    """The universal result envelope returned by every tool."""

    model_config = ConfigDict(populate_by_name=True)

    content: list[ContentItem] = []
    is_error: bool = Field(default=False, alias="isError")
    structured_content: dict[str, Any] | None = Field(default=None, alias="structuredContent")

    @property
    def text(self) -> str:
        """Concatenated text of all text items."""
        return "".join(item.text or "" for item in self.content if item.type == "text")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Tool definitions
# ---------------------------------------------------------------------------

ToolHandler = Callable[[dict[str, Any]], Awaitable[ToolResponse]]


class ToolAnnotations(BaseModel):
    """Hints describing tool behaviour; unknown keys are kept."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    read_only: bool | None = Field(default=None, alias="readOnly")
    destructive: bool | None = None
    long_running: bool | None = Field(default=None, alias="longRunning")


class ToolDefinition(BaseModel):
    """A registered tool: metadata plus the coroutine that runs it."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    description: str = ""
    input_schema: dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}},
        alias="inputSchema",
    )
    output_schema: dict[str, Any] | None = Field(default=None, alias="outputSchema")
    title: str | None = None
    annotations: ToolAnnotations | None = None
    handler: ToolHandler = Field(exclude=True, repr=False)

    @property
    def display_title(self) -> str:
        """``title`` if set, else the name in Title Case (``read_file`` -> ``Read File``)."""
        if self.title:
            return self.title
        return " ".join(word.capitalize() for word in self.name.split("_"))

    @property
    def read_only(self) -> bool:
        return bool(self.annotations and self.annotations.read_only)

    async def handle(self, args: dict[str, Any]) -> ToolResponse:
        return await self.handler(args)

    def to_listing(self) -> dict[str, Any]:
        """Return the ``tools/list`` entry for this tool."""
        entry: dict[str, Any] = {
            "name": self.name,
            "title": self.display_title,
            "description": self.description,
            "inputSchema": self.input_schema,
        }
        if self.output_schema:
            entry["outputSchema"] = self.output_schema
        if self.annotations:
            entry["annotations"] = self.annotations.model_dump(by_alias=True, exclude_none=True)
        return entry
