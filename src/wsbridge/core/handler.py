"""RequestHandler: the entry point a transport calls for every message.

Tool calls flow through registry lookup, the interceptor before-phase,
execution (or a cached response), and the after-phase. Protocol
meta-requests (``initialize``, ``tools/list``, ``status``, ``ping``) only
read registry metadata and never touch the chain.

Nothing raised below this layer reaches the transport: every failure
becomes a failure envelope (or a JSON-RPC error for malformed messages).
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any

from opentelemetry import trace
from pydantic import ValidationError

from wsbridge.core.interceptors import RequestContext, ResponseContext
from wsbridge.errors import InterceptorError, UnknownToolError
from wsbridge.protocol import responses
from wsbridge.protocol.models import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    JsonRpcRequest,
)
from wsbridge.utils.telemetry import (
    ATTR_CACHE_HIT,
    ATTR_CANCELLED,
    ATTR_CORRELATION_ID,
    ATTR_IS_ERROR,
    ATTR_STATUS_CODE,
    ATTR_TOOL_NAME,
    get_tracer,
)

if TYPE_CHECKING:
    from wsbridge.core.context import BridgeContext
    from wsbridge.protocol.models import ToolResponse

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)


class _UnknownMethod(Exception):
    """JSON-RPC method this handler does not implement."""


class _InvalidParams(Exception):
    pass


def _echoable_id(message: Any) -> int | str | None:
    """The id to echo in an error reply; ``None`` unless it is a valid JSON-RPC id."""
    if not isinstance(message, dict):
        return None
    request_id = message.get("id")
    if isinstance(request_id, bool) or not isinstance(request_id, int | str):
        return None
    return request_id


class RequestHandler:
    """Orchestrates registry, interceptor chain, and tool execution.

    Usage::

        ctx = build_context(load_config(path))
        handler = RequestHandler(ctx)

        envelope = await handler.call_tool("get_file_text_by_path", {...})
        reply = await handler.handle_jsonrpc({"jsonrpc": "2.0", ...})
    """

    def __init__(self, context: BridgeContext) -> None:
        self._ctx = context
        logger.debug(
            "RequestHandler ready with %d tools and %d interceptors",
            len(context.registry),
            len(context.chain),
        )

    @property
    def context(self) -> BridgeContext:
        return self._ctx

    # -- meta requests ---------------------------------------------------------

    def list_tools(self) -> list[dict[str, Any]]:
        """Tool definitions in registration order, in ``tools/list`` form."""
        return [definition.to_listing() for definition in self._ctx.registry.list_all()]

    def initialize(self) -> dict[str, Any]:
        server = self._ctx.config.server
        return {
            "protocolVersion": server.protocol_version,
            "capabilities": {"tools": {"listChanged": False}},
            "serverInfo": {"name": server.name, "version": server.version},
            "environment": self._environment(),
        }

    def status(self) -> dict[str, Any]:
        return {
            "status": "running",
            "environment": self._environment(),
            "tools": len(self._ctx.registry),
            "cachedFiles": len(self._ctx.cache),
            "pendingDeferred": self._ctx.deferred.pending,
        }

    def _environment(self) -> dict[str, Any]:
        root = str(self._ctx.workspace.root)
        return {"workspaceRoot": root, "currentDirectory": root}

    # -- tool calls --------------------------------------------------------------

    async def call_tool(
        self,
        tool_name: str,
        params: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> ToolResponse:
        """Execute *tool_name* and return only the envelope."""
        result = await self.execute(tool_name, params, **kwargs)
        return result.response

    async def execute(
        self,
        tool_name: str,
        params: dict[str, Any] | None = None,
        *,
        method: str = "tools/call",
        path: str = "",
        correlation_id: int | str | None = None,
    ) -> ResponseContext:
        """Run one invocation through the full pipeline.

        Status codes: 200 for anything the tool or chain decided (including
        failure envelopes and cancellations), 404 for unknown tools, 500 when
        an interceptor or the pipeline itself failed.
        """
        with _tracer.start_as_current_span("tool.call") as span:
            span.set_attribute(ATTR_TOOL_NAME, tool_name)
            if correlation_id is not None:
                span.set_attribute(ATTR_CORRELATION_ID, str(correlation_id))

            result = await self._execute(tool_name, params or {}, method, path, correlation_id)

            span.set_attribute(ATTR_IS_ERROR, result.response.is_error)
            span.set_attribute(ATTR_STATUS_CODE, result.status_code)
            return result

    async def _execute(
        self,
        tool_name: str,
        params: dict[str, Any],
        method: str,
        path: str,
        correlation_id: int | str | None,
    ) -> ResponseContext:
        definition = self._ctx.registry.lookup(tool_name)
        if definition is None:
            logger.warning("Unknown tool requested: %s", tool_name)
            return ResponseContext(
                response=responses.from_exception(UnknownToolError(tool_name)),
                status_code=404,
            )

        request = RequestContext(
            tool_name=tool_name,
            params=params,
            method=method,
            path=path,
            correlation_id=correlation_id,
        )

        started = time.perf_counter()
        try:
            processed = await self._ctx.chain.process_before(request)
        except InterceptorError as exc:
            logger.error("Before-phase failed for %s: %s", tool_name, exc, exc_info=exc.__cause__)
            return ResponseContext(
                response=responses.failure(f"Request aborted by interceptor {exc.interceptor}"),
                status_code=500,
            )
        before_ms = (time.perf_counter() - started) * 1000

        span = trace.get_current_span()
        if processed is None:
            span.set_attribute(ATTR_CANCELLED, True)
            return ResponseContext(response=responses.cancelled(), status_code=200)

        if processed.cached_response is not None:
            span.set_attribute(ATTR_CACHE_HIT, True)
            logger.info(
                "Using cached response for %s (%.2fms)",
                tool_name,
                (time.perf_counter() - started) * 1000,
            )
            return ResponseContext(response=processed.cached_response, status_code=200)

        logger.debug("Executing tool: %s", tool_name)
        try:
            envelope = await definition.handle(processed.params)
        except Exception as exc:
            logger.error("Tool execution error: %s", tool_name, exc_info=exc)
            envelope = responses.from_exception(exc)

        after_started = time.perf_counter()
        try:
            result = await self._ctx.chain.process_after(
                processed, ResponseContext(response=envelope, status_code=200)
            )
        except InterceptorError as exc:
            logger.error("After-phase failed for %s: %s", tool_name, exc, exc_info=exc.__cause__)
            return ResponseContext(
                response=responses.failure(f"Request aborted by interceptor {exc.interceptor}"),
                status_code=500,
            )
        after_ms = (time.perf_counter() - after_started) * 1000

        total_ms = (time.perf_counter() - started) * 1000
        if total_ms > self._ctx.config.thresholds.slow_request_ms:
            logger.info(
                "Interceptor chain processing for %s: before=%.2fms, after=%.2fms, total=%.2fms",
                tool_name,
                before_ms,
                after_ms,
                total_ms,
            )
        return result

    # -- JSON-RPC ------------------------------------------------------------------

    async def handle_jsonrpc(self, message: Any) -> dict[str, Any] | None:
        """Dispatch one decoded JSON-RPC message.

        Returns the response to send, or ``None`` for notifications.
        """
        request_id = _echoable_id(message)
        try:
            request = JsonRpcRequest.model_validate(message)
        except ValidationError as exc:
            return responses.jsonrpc_error(
                INVALID_REQUEST, "Invalid Request", request_id, data=str(exc)
            ).to_wire()

        if request.is_notification:
            logger.debug("Notification received: %s", request.method)
            return None

        try:
            result = await self._dispatch(request)
        except _InvalidParams as exc:
            return responses.jsonrpc_error(INVALID_PARAMS, str(exc), request.id).to_wire()
        except _UnknownMethod:
            return responses.jsonrpc_error(
                METHOD_NOT_FOUND, f"Method not found: {request.method}", request.id
            ).to_wire()
        except Exception:
            logger.exception("Error processing %s request", request.method)
            return responses.jsonrpc_error(
                INTERNAL_ERROR, "Internal error", request.id
            ).to_wire()

        return responses.jsonrpc_result(result, request.id).to_wire()

    async def _dispatch(self, request: JsonRpcRequest) -> dict[str, Any]:
        method = request.method
        if method == "initialize":
            logger.info("Processing initialize request")
            return self.initialize()
        if method == "ping":
            return {}
        if method == "status":
            return self.status()
        if method == "tools/list":
            tools = self.list_tools()
            logger.info("Tools list requested (%d tools)", len(tools))
            return {"tools": tools}
        if method == "tools/call":
            name = request.params.get("name")
            if not isinstance(name, str) or not name:
                raise _InvalidParams("tools/call requires a 'name' string")
            arguments = request.params.get("arguments") or {}
            if not isinstance(arguments, dict):
                raise _InvalidParams("tools/call 'arguments' must be an object")
            envelope = await self.call_tool(
                name, arguments, method=method, correlation_id=request.id
            )
            return envelope.to_wire()
        raise _UnknownMethod(method)
