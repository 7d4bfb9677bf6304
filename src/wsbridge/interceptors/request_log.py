"""RequestLogInterceptor: one log line per call and per outcome."""

from __future__ import annotations

import json
import logging
import time
from typing import TYPE_CHECKING

from wsbridge.core.interceptors import BaseInterceptor
from wsbridge.utils.log import truncate

if TYPE_CHECKING:
    from wsbridge.core.interceptors import RequestContext, ResponseContext

logger = logging.getLogger(__name__)


class RequestLogInterceptor(BaseInterceptor):
    """Logs tool calls with truncated params and stamps ``started_at``."""

    name = "request_log"

    def __init__(self, *, truncation_length: int = 100) -> None:
        self._truncation_length = truncation_length

    async def before_request(self, context: RequestContext) -> RequestContext | None:
        context.annotations["started_at"] = time.perf_counter()
        params = json.dumps(context.params, ensure_ascii=False, default=str)
        logger.info(
            "-> %s %s", context.tool_name, truncate(params, self._truncation_length)
        )
        return context

    async def after_response(
        self, request: RequestContext, response: ResponseContext
    ) -> ResponseContext:
        started = request.annotations.get("started_at")
        elapsed = f" in {(time.perf_counter() - started) * 1000:.2f}ms" if started is not None else ""
        outcome = "error" if response.response.is_error else "ok"
        logger.info(
            "<- %s %s (%d)%s", request.tool_name, outcome, response.status_code, elapsed
        )
        if response.response.is_error:
            logger.debug(
                "%s failed: %s",
                request.tool_name,
                truncate(response.response.text, self._truncation_length),
            )
        return response
