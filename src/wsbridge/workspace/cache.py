"""ContentCache: path-keyed cache of decoded file text.

Entries are frozen :class:`CacheEntry` objects and are only ever replaced by
a single dict assignment, so an interleaved reader sees either the old entry
or the new one, never a mix.

The cache trusts an entry only while it reflects the last text this process
wrote or read. Whenever that cannot be confirmed the entry is dropped and the
next read goes back to the :class:`~wsbridge.workspace.binding.FileBinding`.
"""

from __future__ import annotations

import logging
import os
from collections import OrderedDict
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from wsbridge.errors import CacheUpdateError

if TYPE_CHECKING:
    from wsbridge.workspace.binding import FileBinding, FileStat

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    path: str
    text: str
    size: int
    mtime_ns: int


def cache_key(path: Path | str) -> str:
    return os.path.normcase(os.path.abspath(path))


class ContentCache:
    """Decoded-text cache in front of a :class:`FileBinding`.

    Args:
        binding: The authoritative store.
        enabled: When ``False`` every read goes straight to *binding*.
        verify_on_read: Re-``stat`` before serving an entry and drop it if the
            size or mtime changed underneath us.
        max_items: Least-recently-used entries are evicted beyond this bound.
    """

    def __init__(
        self,
        binding: FileBinding,
        *,
        enabled: bool = True,
        verify_on_read: bool = True,
        max_items: int = 1000,
    ) -> None:
        self._binding = binding
        self._enabled = enabled
        self._verify = verify_on_read
        self._max_items = max_items
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()

    @property
    def enabled(self) -> bool:
        return self._enabled

    async def read(self, path: Path, force_utf8: bool = True) -> str:
        """Return the text of *path*, from memory when the entry is valid.

        Raises:
            DecodeError: The file is binary or not decodable.
            NotFoundError: The file does not exist.
        """
        if not self._enabled:
            return await self._binding.read_text(path, force_utf8=force_utf8)

        key = cache_key(path)
        entry = self._entries.get(key)
        if entry is not None:
            if not self._verify or await self._still_valid(path, entry):
                if key in self._entries:
                    self._entries.move_to_end(key)
                return entry.text
            logger.debug("Cache entry for %s changed on disk; re-reading", path)
            if self._entries.get(key) is entry:
                self.invalidate(path)

        before = self._entries.get(key)
        # Stat before reading: if the file changes in between, the stored
        # marker is older than the content and the next read re-validates.
        stat = await self._binding.stat(path)
        text = await self._binding.read_text(path, force_utf8=force_utf8)
        # A write-through that landed while we awaited is newer than this read.
        if self._entries.get(key) is before:
            self._store(CacheEntry(path=key, text=text, size=stat.size, mtime_ns=stat.mtime_ns))
        return text

    async def update_cache(self, path: Path, text: str, written: FileStat | None = None) -> None:
        """Replace (or insert) the entry for *path* after this process wrote *text*.

        *written* is the store's marker taken right after the write. When given,
        the entry is only stored if the file still carries that marker.

        Raises:
            CacheUpdateError: The store no longer matches what this process
                wrote, meaning another write landed in between. Callers must
                invalidate.
        """
        if not self._enabled:
            return

        stat = await self._binding.stat(path)
        if written is not None and (stat.size, stat.mtime_ns) != (written.size, written.mtime_ns):
            raise CacheUpdateError(str(path), "file changed on disk after the write")
        expected = len(text.encode("utf-8"))
        if stat.size != expected:
            raise CacheUpdateError(str(path), f"store has {stat.size} bytes, expected {expected}")
        self._store(
            CacheEntry(path=cache_key(path), text=text, size=stat.size, mtime_ns=stat.mtime_ns)
        )

    def invalidate(self, path: Path | str) -> None:
        """Drop the entry for *path* (no-op if absent)."""
        if self._entries.pop(cache_key(path), None) is not None:
            logger.debug("Invalidated cache entry: %s", path)

    def get(self, path: Path | str) -> CacheEntry | None:
        """Peek at the entry for *path* without validating it."""
        return self._entries.get(cache_key(path))

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, str | Path):
            return False
        return cache_key(path) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    async def _still_valid(self, path: Path, entry: CacheEntry) -> bool:
        try:
            stat = await self._binding.stat(path)
        except Exception:
            logger.debug("stat failed for cached %s", path, exc_info=True)
            return False
        return stat.size == entry.size and stat.mtime_ns == entry.mtime_ns

    def _store(self, entry: CacheEntry) -> None:
        self._entries[entry.path] = entry
        self._entries.move_to_end(entry.path)
        while len(self._entries) > self._max_items:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Evicted cache entry: %s", evicted)
