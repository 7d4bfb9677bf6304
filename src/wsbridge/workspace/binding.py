"""File bindings: the authoritative store behind every file tool.

:class:`FileBinding` is the async protocol the cache and the tools consume.
:class:`LocalFileBinding` implements it on the local filesystem, running
blocking calls in worker threads so the event loop stays responsive.
"""

from __future__ import annotations

import asyncio
import codecs
import logging
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

from wsbridge.errors import DecodeError, IoError, NotFoundError

logger = logging.getLogger(__name__)

# Byte-order marks sniffed when the caller does not force UTF-8.
_BOMS: tuple[tuple[bytes, str], ...] = (
    (codecs.BOM_UTF32_LE, "utf-32"),
    (codecs.BOM_UTF32_BE, "utf-32"),
    (codecs.BOM_UTF8, "utf-8-sig"),
    (codecs.BOM_UTF16_LE, "utf-16"),
    (codecs.BOM_UTF16_BE, "utf-16"),
)

_BINARY_SNIFF_BYTES = 8000


@dataclass(frozen=True)
class FileStat:
    size: int
    mtime_ns: int
    is_directory: bool = False


@dataclass(frozen=True)
class DirectoryEntry:
    name: str
    is_directory: bool


@runtime_checkable
class FileBinding(Protocol):
    """Async access to the authoritative copy of workspace files."""

    async def read_text(self, path: Path, *, force_utf8: bool = True) -> str:
        """Read and decode *path*; raises ``NotFoundError`` or ``DecodeError``."""
        ...

    async def write_text(
        self,
        path: Path,
        text: str,
        *,
        must_exist: bool = True,
        create_if_absent: bool = False,
    ) -> None:
        """Write *text* as UTF-8; raises ``NotFoundError`` or ``IoError``."""
        ...

    async def list_directory(self, path: Path) -> list[DirectoryEntry]: ...

    async def stat(self, path: Path) -> FileStat: ...

    async def exists(self, path: Path) -> bool: ...

    async def open_in_editor(self, path: Path, origin_tool: str) -> None:
        """Show *path* to the user. Fire-and-forget; the result is never consumed."""
        ...


def decode_text(data: bytes, path: str, *, force_utf8: bool = True) -> str:
    """Decode raw file bytes, rejecting binary content.

    With *force_utf8* the bytes must be strict UTF-8. Otherwise a BOM picks
    the codec and UTF-8 is the fallback. A leading UTF-8 BOM is dropped
    either way, so a file rewritten from the decoded text loses it.
    """
    encoding = "utf-8-sig"
    if not force_utf8:
        for bom, codec in _BOMS:
            if data.startswith(bom):
                encoding = codec
                break

    if encoding == "utf-8-sig" and b"\x00" in data[:_BINARY_SNIFF_BYTES]:
        raise DecodeError(path, "binary content")

    try:
        return data.decode(encoding)
    except UnicodeDecodeError as exc:
        raise DecodeError(path, f"not valid {encoding}") from exc


class LocalFileBinding:
    """:class:`FileBinding` backed by the local filesystem.

    Satisfies the :class:`FileBinding` protocol.

    *editor_command* is a shell-style template such as ``"code -r {path}"``;
    without one, :meth:`open_in_editor` only logs.
    """

    def __init__(self, *, editor_command: str | None = None) -> None:
        self._editor_command = editor_command

    async def read_text(self, path: Path, *, force_utf8: bool = True) -> str:
        data = await asyncio.to_thread(self._read_bytes, path)
        return decode_text(data, str(path), force_utf8=force_utf8)

    async def write_text(
        self,
        path: Path,
        text: str,
        *,
        must_exist: bool = True,
        create_if_absent: bool = False,
    ) -> None:
        await asyncio.to_thread(
            self._write_bytes, path, text.encode("utf-8"), must_exist, create_if_absent
        )

    async def list_directory(self, path: Path) -> list[DirectoryEntry]:
        return await asyncio.to_thread(self._list_directory, path)

    async def stat(self, path: Path) -> FileStat:
        return await asyncio.to_thread(self._stat, path)

    async def exists(self, path: Path) -> bool:
        return await asyncio.to_thread(path.exists)

    async def open_in_editor(self, path: Path, origin_tool: str) -> None:
        if not self._editor_command:
            logger.debug("No editor command configured; %s touched %s", origin_tool, path)
            return

        parts = shlex.split(self._editor_command.format(path=str(path)))
        process = await asyncio.create_subprocess_exec(
            *parts,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.DEVNULL,
        )
        code = await process.wait()
        if code != 0:
            logger.warning("Editor command exited with %d for %s", code, path)
        else:
            logger.debug("Opened %s in editor (from %s)", path, origin_tool)

    # -- blocking helpers (run in worker threads) ---------------------------

    @staticmethod
    def _read_bytes(path: Path) -> bytes:
        try:
            return path.read_bytes()
        except FileNotFoundError as exc:
            raise NotFoundError(f"File not found: {path}") from exc
        except OSError as exc:
            raise IoError(str(path), "reading", str(exc)) from exc

    @staticmethod
    def _write_bytes(path: Path, data: bytes, must_exist: bool, create_if_absent: bool) -> None:
        exists = path.exists()
        if not exists and (must_exist or not create_if_absent):
            raise NotFoundError(f"File not found: {path}")
        try:
            if not exists:
                path.parent.mkdir(parents=True, exist_ok=True)
            # Bytes, so line endings are written exactly as given.
            path.write_bytes(data)
        except OSError as exc:
            raise IoError(str(path), "writing", str(exc)) from exc

    @staticmethod
    def _list_directory(path: Path) -> list[DirectoryEntry]:
        try:
            return [
                DirectoryEntry(name=child.name, is_directory=child.is_dir())
                for child in path.iterdir()
            ]
        except FileNotFoundError as exc:
            raise NotFoundError(f"Directory not found: {path}") from exc
        except OSError as exc:
            raise IoError(str(path), "listing", str(exc)) from exc

    @staticmethod
    def _stat(path: Path) -> FileStat:
        try:
            st = path.stat()
        except FileNotFoundError as exc:
            raise NotFoundError(f"File not found: {path}") from exc
        except OSError as exc:
            raise IoError(str(path), "inspecting", str(exc)) from exc
        return FileStat(size=st.st_size, mtime_ns=st.st_mtime_ns, is_directory=path.is_dir())
