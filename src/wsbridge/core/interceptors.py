"""Interceptor chain: ordered before/after hooks around tool execution.

Each invocation moves through::

    PENDING -> BEFORE -> CANCELLED | CACHE_HIT | EXECUTING -> AFTER -> DONE

Before-hooks run in registration order, each receiving the context the
previous one returned. A hook may

- return a (possibly new) context to continue,
- return the context with ``cached_response`` set to short-circuit
  execution (remaining before-hooks are skipped, and the cached envelope is
  returned without an after-phase),
- return ``None`` to cancel the invocation.

After-hooks run in registration order for every real execution.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from pydantic import BaseModel, Field

from wsbridge.errors import DuplicateNameError, InterceptorError
from wsbridge.protocol.models import ToolResponse
from wsbridge.utils.telemetry import get_tracer

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)


class Phase(str, Enum):
    PENDING = "pending"
    BEFORE = "before"
    CANCELLED = "cancelled"
    CACHE_HIT = "cache_hit"
    EXECUTING = "executing"
    AFTER = "after"
    DONE = "done"


class RequestContext(BaseModel):
    """Per-invocation request state passed through the before-phase."""

    tool_name: str
    params: dict[str, Any] = Field(default_factory=dict)
    method: str = "tools/call"
    path: str = ""
    correlation_id: int | str | None = None
    cached_response: ToolResponse | None = None
    annotations: dict[str, Any] = Field(
        default_factory=dict,
        description="Scratch space for interceptors to hand data to later ones.",
    )
    phase: Phase = Phase.PENDING


class ResponseContext(BaseModel):
    """Tool result plus transport status, passed through the after-phase."""

    response: ToolResponse
    status_code: int = 200


@runtime_checkable
class Interceptor(Protocol):
    """A named participant in the chain."""

    name: str

    async def before_request(self, context: RequestContext) -> RequestContext | None:
        """Return the context to continue, or ``None`` to cancel."""
        ...

    async def after_response(
        self, request: RequestContext, response: ResponseContext
    ) -> ResponseContext:
        """Return the (possibly rewritten) response."""
        ...


class BaseInterceptor:
    """Pass-through hooks; subclasses override the side they care about."""

    name = "base"

    async def before_request(self, context: RequestContext) -> RequestContext | None:
        return context

    async def after_response(
        self, request: RequestContext, response: ResponseContext
    ) -> ResponseContext:
        return response


class InterceptorChain:
    """Runs the registered interceptors around each tool invocation.

    Built once with the :class:`~wsbridge.core.context.BridgeContext`;
    interceptors hold their own state but the chain itself is read-only
    after construction.
    """

    def __init__(
        self,
        interceptors: Iterable[Interceptor] = (),
        *,
        slow_interceptor_ms: float = 10.0,
    ) -> None:
        self._interceptors: list[Interceptor] = []
        self._slow_ms = slow_interceptor_ms
        for interceptor in interceptors:
            self.register(interceptor)

    def register(self, interceptor: Interceptor) -> None:
        if any(i.name == interceptor.name for i in self._interceptors):
            raise DuplicateNameError(interceptor.name, kind="interceptor")
        self._interceptors.append(interceptor)

    @property
    def interceptors(self) -> tuple[Interceptor, ...]:
        return tuple(self._interceptors)

    def __len__(self) -> int:
        return len(self._interceptors)

    async def process_before(self, context: RequestContext) -> RequestContext | None:
        """Run the before-phase.

        Returns ``None`` when an interceptor cancelled the call; otherwise the
        final context, whose ``phase`` is ``CACHE_HIT`` or ``EXECUTING``.

        Raises:
            InterceptorError: An interceptor raised; the invocation is aborted.
        """
        current = context
        current.phase = Phase.BEFORE
        with _tracer.start_as_current_span("interceptors.before"):
            for interceptor in self._interceptors:
                started = time.perf_counter()
                try:
                    result = await interceptor.before_request(current)
                except Exception as exc:
                    raise InterceptorError(interceptor.name, str(exc)) from exc
                self._check_slow(interceptor.name, "before", started)

                if result is None:
                    logger.info(
                        "Request for %s cancelled by interceptor %s",
                        current.tool_name,
                        interceptor.name,
                    )
                    current.phase = Phase.CANCELLED
                    return None

                current = result
                if current.cached_response is not None:
                    logger.debug(
                        "Interceptor %s supplied a cached response for %s",
                        interceptor.name,
                        current.tool_name,
                    )
                    current.phase = Phase.CACHE_HIT
                    return current

        current.phase = Phase.EXECUTING
        return current

    async def process_after(
        self, request: RequestContext, response: ResponseContext
    ) -> ResponseContext:
        """Run the after-phase in registration order.

        Raises:
            InterceptorError: An interceptor raised; the invocation is aborted.
        """
        request.phase = Phase.AFTER
        current = response
        with _tracer.start_as_current_span("interceptors.after"):
            for interceptor in self._interceptors:
                started = time.perf_counter()
                try:
                    current = await interceptor.after_response(request, current)
                except Exception as exc:
                    raise InterceptorError(interceptor.name, str(exc)) from exc
                self._check_slow(interceptor.name, "after", started)
        request.phase = Phase.DONE
        return current

    def _check_slow(self, name: str, hook: str, started: float) -> None:
        elapsed_ms = (time.perf_counter() - started) * 1000
        if elapsed_ms > self._slow_ms:
            logger.info("Slow interceptor %s (%s): %.2fms", name, hook, elapsed_ms)
