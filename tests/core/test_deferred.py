"""Tests for DeferredEffects."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

import pytest

from wsbridge.core.deferred import DeferredEffects
from wsbridge.workspace.cache import ContentCache

FILE = Path("/ws/a.txt")


class TestAfterWrite:
    async def test_refreshes_cache_and_opens_editor(self, memory_binding: Any) -> None:
        memory_binding.put(FILE, "new")
        cache = ContentCache(memory_binding)
        deferred = DeferredEffects(cache, memory_binding)

        deferred.after_write(FILE, "new", origin_tool="rewrite_file_content")
        assert deferred.pending == 2
        await deferred.drain()

        assert deferred.pending == 0
        entry = cache.get(FILE)
        assert entry is not None and entry.text == "new"
        assert memory_binding.opened == [(str(FILE), "rewrite_file_content")]

    async def test_tasks_do_not_run_before_yield(self, memory_binding: Any) -> None:
        memory_binding.put(FILE, "new")
        cache = ContentCache(memory_binding)
        deferred = DeferredEffects(cache, memory_binding)

        deferred.after_write(FILE, "new", origin_tool="t")
        assert FILE not in cache
        assert memory_binding.opened == []
        await deferred.drain()

    async def test_editor_disabled(self, memory_binding: Any) -> None:
        memory_binding.put(FILE, "new")
        deferred = DeferredEffects(ContentCache(memory_binding), memory_binding, open_in_editor=False)

        deferred.after_write(FILE, "new", origin_tool="t")
        assert deferred.pending == 1
        await deferred.drain()
        assert memory_binding.opened == []

    async def test_failed_refresh_invalidates(
        self, memory_binding: Any, caplog: pytest.LogCaptureFixture
    ) -> None:
        memory_binding.put(FILE, "old")
        cache = ContentCache(memory_binding)
        await cache.read(FILE)
        deferred = DeferredEffects(cache, memory_binding, open_in_editor=False)

        # Store changed again before the refresh ran: sizes disagree.
        memory_binding.put(FILE, "something much longer")
        with caplog.at_level(logging.ERROR, logger="wsbridge.core.deferred"):
            deferred.after_write(FILE, "mine", origin_tool="t")
            await deferred.drain()

        assert FILE not in cache
        assert "Error updating cache for file" in caplog.text

    async def test_editor_failure_only_logged(
        self, memory_binding: Any, caplog: pytest.LogCaptureFixture
    ) -> None:
        async def broken_open(path: Path, origin_tool: str) -> None:
            raise OSError("no editor")

        memory_binding.put(FILE, "x")
        memory_binding.open_in_editor = broken_open
        cache = ContentCache(memory_binding)
        deferred = DeferredEffects(cache, memory_binding)

        with caplog.at_level(logging.WARNING, logger="wsbridge.core.deferred"):
            deferred.after_write(FILE, "x", origin_tool="t")
            await deferred.drain()

        assert FILE in cache
        assert "Could not open" in caplog.text

    async def test_cancelled_refresh_invalidates(self, memory_binding: Any) -> None:
        memory_binding.put(FILE, "old")
        cache = ContentCache(memory_binding)
        await cache.read(FILE)
        deferred = DeferredEffects(cache, memory_binding, open_in_editor=False)

        deferred.after_write(FILE, "old", origin_tool="t")
        for task in asyncio.all_tasks():
            if task.get_name().startswith("cache-refresh:"):
                task.cancel()
        await deferred.drain()

        assert FILE not in cache

    async def test_without_refresh_drops_entry(self, memory_binding: Any) -> None:
        memory_binding.put(FILE, "old")
        cache = ContentCache(memory_binding)
        await cache.read(FILE)
        deferred = DeferredEffects(cache, memory_binding)

        deferred.after_write(FILE, "new", origin_tool="t", refresh=False)
        assert FILE not in cache
        assert deferred.pending == 1
        await deferred.drain()
        assert memory_binding.opened == [(str(FILE), "t")]
