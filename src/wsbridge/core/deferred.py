"""DeferredEffects: follow-up work scheduled after a tool has answered.

File-mutating tools write the authoritative copy, build their response, and
hand the rest to :meth:`DeferredEffects.after_write`. The cache refresh and
the editor open then run as independent background tasks once the handler
has returned.

These tasks carry no ordering guarantee relative to later requests. A client
that writes and immediately reads the same path may race the refresh; that
read either sees the previous entry's validation fail or falls through to the
store. A refresh that fails invalidates the entry instead of leaving it
stale.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Coroutine
    from pathlib import Path
    from typing import Any

    from wsbridge.workspace.binding import FileBinding, FileStat
    from wsbridge.workspace.cache import ContentCache

logger = logging.getLogger(__name__)


class DeferredEffects:
    """Spawns and tracks fire-and-forget follow-ups to file writes."""

    def __init__(
        self,
        cache: ContentCache,
        binding: FileBinding,
        *,
        open_in_editor: bool = True,
    ) -> None:
        self._cache = cache
        self._binding = binding
        self._open_in_editor = open_in_editor
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def after_write(
        self,
        path: Path,
        text: str,
        origin_tool: str,
        *,
        written: FileStat | None = None,
        refresh: bool = True,
    ) -> None:
        """Schedule the cache refresh and editor open for *path*.

        *written* is the store's marker taken right after the write; the
        refresh gives up if the file no longer carries it. With
        ``refresh=False`` the entry is dropped instead of refreshed.

        Must be called from inside the running event loop.
        """
        if refresh:
            update = self._cache.update_cache(path, text, written)
            task = self._spawn(update, f"cache-refresh:{path}")
            task.add_done_callback(functools.partial(self._on_refresh_done, path))
        else:
            self._cache.invalidate(path)

        if self._open_in_editor:
            show = self._spawn(self._binding.open_in_editor(path, origin_tool), f"open:{path}")
            show.add_done_callback(functools.partial(self._on_open_done, path))

    async def drain(self) -> None:
        """Wait for every pending task (shutdown and tests)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _spawn(self, coro: Coroutine[Any, Any, None], name: str) -> asyncio.Task[None]:
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _on_refresh_done(self, path: Path, task: asyncio.Task[None]) -> None:
        if task.cancelled():
            self._cache.invalidate(path)
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Error updating cache for file: %s", path, exc_info=exc)
            self._cache.invalidate(path)

    @staticmethod
    def _on_open_done(path: Path, task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("Could not open %s in editor: %s", path, exc)
