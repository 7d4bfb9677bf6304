"""Tests for Workspace path resolution."""

from __future__ import annotations

from pathlib import Path

import pytest

from wsbridge.errors import PathOutsideWorkspaceError
from wsbridge.workspace.paths import Workspace


class TestResolve:
    def test_relative_path(self, tmp_path: Path) -> None:
        ws = Workspace(tmp_path)
        assert ws.resolve("src/a.py") == tmp_path.resolve() / "src" / "a.py"

    def test_empty_is_root(self, tmp_path: Path) -> None:
        ws = Workspace(tmp_path)
        assert ws.resolve("") == tmp_path.resolve()

    def test_absolute_inside_root(self, tmp_path: Path) -> None:
        ws = Workspace(tmp_path)
        inside = tmp_path.resolve() / "x.txt"
        assert ws.resolve(str(inside)) == inside

    def test_parent_escape_rejected(self, tmp_path: Path) -> None:
        ws = Workspace(tmp_path / "root")
        with pytest.raises(PathOutsideWorkspaceError, match="outside project directory"):
            ws.resolve("../secret.txt")

    def test_absolute_outside_rejected(self, tmp_path: Path) -> None:
        ws = Workspace(tmp_path / "root")
        with pytest.raises(PathOutsideWorkspaceError):
            ws.resolve(str(tmp_path / "other.txt"))

    def test_dotdot_that_stays_inside(self, tmp_path: Path) -> None:
        ws = Workspace(tmp_path)
        assert ws.resolve("a/../b.txt") == tmp_path.resolve() / "b.txt"

    def test_symlink_escape_rejected(self, tmp_path: Path) -> None:
        root = tmp_path / "root"
        root.mkdir()
        (tmp_path / "outside").mkdir()
        (root / "link").symlink_to(tmp_path / "outside", target_is_directory=True)

        ws = Workspace(root)
        with pytest.raises(PathOutsideWorkspaceError):
            ws.resolve("link/file.txt")


class TestRelative:
    def test_relative_posix(self, tmp_path: Path) -> None:
        ws = Workspace(tmp_path)
        assert ws.relative(ws.root / "a" / "b.txt") == "a/b.txt"

    def test_root_is_dot(self, tmp_path: Path) -> None:
        ws = Workspace(tmp_path)
        assert ws.relative(ws.root) == "."
