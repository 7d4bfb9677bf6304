"""Shared fixtures: a bridge over a temporary workspace."""

from __future__ import annotations

from pathlib import Path

import pytest

from wsbridge.config import BridgeConfig, EditorSettings
from wsbridge.core.context import BridgeContext, build_context
from wsbridge.core.handler import RequestHandler
from wsbridge.errors import IoError, NotFoundError
from wsbridge.workspace.binding import DirectoryEntry, FileStat


@pytest.fixture
def workspace_root(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def config(workspace_root: Path) -> BridgeConfig:
    return BridgeConfig(
        workspace_root=workspace_root,
        editor=EditorSettings(open_after_write=False),
    )


@pytest.fixture
def bridge(config: BridgeConfig) -> BridgeContext:
    return build_context(config)


@pytest.fixture
def handler(bridge: BridgeContext) -> RequestHandler:
    return RequestHandler(bridge)


class MemoryBinding:
    """In-memory FileBinding that counts store reads and records editor opens."""

    def __init__(self, files: dict[str, str] | None = None) -> None:
        self.files: dict[str, str] = dict(files or {})
        self.mtimes: dict[str, int] = {path: 1 for path in self.files}
        self.reads = 0
        self.opened: list[tuple[str, str]] = []
        self.fail_stat = False
        self._clock = 1

    def put(self, path: Path | str, text: str) -> None:
        """Change a file behind the cache's back."""
        self._clock += 1
        self.files[str(path)] = text
        self.mtimes[str(path)] = self._clock

    async def read_text(self, path: Path, *, force_utf8: bool = True) -> str:
        self.reads += 1
        try:
            return self.files[str(path)]
        except KeyError:
            raise NotFoundError(f"File not found: {path}") from None

    async def write_text(
        self,
        path: Path,
        text: str,
        *,
        must_exist: bool = True,
        create_if_absent: bool = False,
    ) -> None:
        if str(path) not in self.files and (must_exist or not create_if_absent):
            raise NotFoundError(f"File not found: {path}")
        self.put(path, text)

    async def list_directory(self, path: Path) -> list[DirectoryEntry]:
        prefix = str(path).rstrip("/") + "/"
        names = {p[len(prefix):].split("/")[0] for p in self.files if p.startswith(prefix)}
        return [
            DirectoryEntry(name=name, is_directory=f"{prefix}{name}" not in self.files)
            for name in sorted(names)
        ]

    async def stat(self, path: Path) -> FileStat:
        if self.fail_stat:
            raise IoError(str(path), "inspecting", "stat failed")
        key = str(path)
        if key not in self.files:
            raise NotFoundError(f"File not found: {path}")
        return FileStat(size=len(self.files[key].encode("utf-8")), mtime_ns=self.mtimes[key])

    async def exists(self, path: Path) -> bool:
        return str(path) in self.files

    async def open_in_editor(self, path: Path, origin_tool: str) -> None:
        self.opened.append((str(path), origin_tool))


@pytest.fixture
def memory_binding() -> MemoryBinding:
    return MemoryBinding()
