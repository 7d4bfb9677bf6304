"""StdioServer: newline-delimited JSON-RPC over stdin/stdout.

Each input line is one JSON-RPC message; each reply is written as one JSON
line. Reading uses ``loop.run_in_executor`` so a blocked ``readline`` never
stalls deferred tasks running on the event loop.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from wsbridge.protocol import responses
from wsbridge.protocol.models import INTERNAL_ERROR, PARSE_ERROR

if TYPE_CHECKING:
    from wsbridge.core.handler import RequestHandler

logger = logging.getLogger(__name__)


class StdioServer:
    """Serves one :class:`RequestHandler` until the input stream closes."""

    def __init__(
        self,
        handler: RequestHandler,
        *,
        read_line: Callable[[], str] | None = None,
        write: Callable[[str], Any] | None = None,
    ) -> None:
        self._handler = handler
        self._read_line = read_line or sys.stdin.readline
        self._write = write or self._write_stdout

    async def serve(self) -> None:
        """Process messages until EOF, then wait for deferred work to finish."""
        loop = asyncio.get_running_loop()
        logger.info("Serving over stdio (workspace: %s)", self._handler.context.workspace.root)
        while True:
            line: str = await loop.run_in_executor(None, self._read_line)
            if not line:
                break
            line = line.strip()
            if not line:
                continue
            reply = await self.handle_line(line)
            if reply is not None:
                self._write(json.dumps(reply, ensure_ascii=False) + "\n")

        await self._handler.context.deferred.drain()
        logger.info("Input closed; stdio server stopped")

    async def handle_line(self, line: str) -> dict[str, Any] | None:
        try:
            message = json.loads(line)
        except json.JSONDecodeError as exc:
            logger.warning("Unparseable message: %s", exc)
            return responses.jsonrpc_error(PARSE_ERROR, "Parse error", None).to_wire()
        try:
            return await self._handler.handle_jsonrpc(message)
        except Exception:
            logger.exception("Unhandled error while processing message")
            return responses.jsonrpc_error(INTERNAL_ERROR, "Internal error", None).to_wire()

    @staticmethod
    def _write_stdout(data: str) -> None:
        sys.stdout.write(data)
        sys.stdout.flush()
