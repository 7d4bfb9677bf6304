"""Response builder: uniform success/failure envelopes and JSON-RPC framing.

Everything here is a pure function; identical inputs produce structurally
identical outputs.
"""

from __future__ import annotations

import json
from typing import Any

from wsbridge.errors import BridgeError
from wsbridge.protocol.models import (
    ContentItem,
    JsonRpcError,
    JsonRpcResponse,
    ToolResponse,
)

CANCELLED_MESSAGE = "Request cancelled by interceptor"
INTERNAL_ERROR_MESSAGE = "Internal error while executing tool"


def serialize(data: Any) -> str:
    """Render *data* as envelope text: strings verbatim, everything else JSON."""
    if isinstance(data, str):
        return data
    return json.dumps(data, indent=2, sort_keys=True, ensure_ascii=False, default=str)


def success(data: Any, *, structured_content: dict[str, Any] | None = None) -> ToolResponse:
    """Build a successful envelope with a single text item."""
    return ToolResponse(
        content=[ContentItem.of_text(serialize(data))],
        is_error=False,
        structured_content=structured_content,
    )


def failure(message: str) -> ToolResponse:
    """Build an error envelope with a single text item."""
    return ToolResponse(content=[ContentItem.of_text(message)], is_error=True)


def cancelled() -> ToolResponse:
    return failure(CANCELLED_MESSAGE)


def from_exception(exc: BaseException) -> ToolResponse:
    """Convert *exc* into a failure envelope.

    Bridge errors carry messages written for the caller; anything else is
    reported generically so internals never leak into the response.
    """
    if isinstance(exc, BridgeError):
        return failure(str(exc))
    return failure(INTERNAL_ERROR_MESSAGE)


def jsonrpc_result(result: dict[str, Any], request_id: int | str | None) -> JsonRpcResponse:
    return JsonRpcResponse(id=request_id, result=result)


def jsonrpc_error(
    code: int,
    message: str,
    request_id: int | str | None,
    data: Any = None,
) -> JsonRpcResponse:
    return JsonRpcResponse(
        id=request_id,
        error=JsonRpcError(code=code, message=message, data=data),
    )
