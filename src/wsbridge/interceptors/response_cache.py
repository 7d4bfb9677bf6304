"""ResponseCacheInterceptor: serves repeated read-only calls from memory.

Only tools whose names are in ``cacheable`` (the read-only ones) are stored,
keyed by name and canonical JSON of the params. Error envelopes are never
stored. Any call to another tool may change the workspace, so it clears the
whole store before it runs.

A hit attaches the stored envelope to the request context; the handler then
returns it without running the tool or the after-phase.
"""

from __future__ import annotations

import json
import logging
import time
from collections import OrderedDict
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING

from wsbridge.core.interceptors import BaseInterceptor

if TYPE_CHECKING:
    from wsbridge.core.interceptors import RequestContext, ResponseContext
    from wsbridge.protocol.models import ToolResponse

logger = logging.getLogger(__name__)


class ResponseCacheInterceptor(BaseInterceptor):
    name = "response_cache"

    def __init__(
        self,
        cacheable: Iterable[str],
        *,
        ttl: float = 30.0,
        max_items: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._cacheable = frozenset(cacheable)
        self._ttl = ttl
        self._max_items = max_items
        self._clock = clock
        self._store: OrderedDict[str, tuple[float, ToolResponse]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._store)

    def clear(self) -> None:
        self._store.clear()

    async def before_request(self, context: RequestContext) -> RequestContext | None:
        if context.tool_name not in self._cacheable:
            if self._store:
                logger.debug("Clearing response cache before %s", context.tool_name)
                self._store.clear()
            return context

        key = self._key(context)
        hit = self._store.get(key)
        if hit is None:
            return context

        stored_at, response = hit
        if self._clock() - stored_at > self._ttl:
            del self._store[key]
            return context

        self._store.move_to_end(key)
        return context.model_copy(update={"cached_response": response.model_copy(deep=True)})

    async def after_response(
        self, request: RequestContext, response: ResponseContext
    ) -> ResponseContext:
        if request.tool_name in self._cacheable and not response.response.is_error:
            key = self._key(request)
            self._store[key] = (self._clock(), response.response.model_copy(deep=True))
            self._store.move_to_end(key)
            while len(self._store) > self._max_items:
                self._store.popitem(last=False)
        return response

    @staticmethod
    def _key(context: RequestContext) -> str:
        params = json.dumps(context.params, sort_keys=True, default=str)
        return f"{context.tool_name}:{params}"
