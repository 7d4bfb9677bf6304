"""Workspace layer: file binding, content cache, and positional edits."""

from wsbridge.workspace.binding import (
    DirectoryEntry,
    FileBinding,
    FileStat,
    LocalFileBinding,
)
from wsbridge.workspace.cache import CacheEntry, ContentCache
from wsbridge.workspace.paths import Workspace

__all__ = [
    "CacheEntry",
    "ContentCache",
    "DirectoryEntry",
    "FileBinding",
    "FileStat",
    "LocalFileBinding",
    "Workspace",
]
