"""Workspace: maps project-relative paths to absolute ones and back."""

from __future__ import annotations

import os
from pathlib import Path

from wsbridge.errors import PathOutsideWorkspaceError


class Workspace:
    """The single directory tree a bridge process exposes."""

    def __init__(self, root: Path | str) -> None:
        self._root = Path(root).expanduser().resolve()

    @property
    def root(self) -> Path:
        return self._root

    def resolve(self, path_in_project: str) -> Path:
        """Return the absolute path for *path_in_project*.

        Absolute inputs are accepted as long as they stay inside the root.
        ``..`` segments and symlinks are resolved before the check.
        """
        candidate = Path(path_in_project.strip() or ".")
        if not candidate.is_absolute():
            candidate = self._root / candidate
        resolved = candidate.resolve()
        if not self.contains(resolved):
            raise PathOutsideWorkspaceError(path_in_project)
        return resolved

    def contains(self, path: Path) -> bool:
        return path == self._root or self._root in path.parents

    def relative(self, path: Path | str) -> str:
        """Project-relative POSIX form of *path* (``"."`` for the root)."""
        rel = os.path.relpath(Path(path), self._root)
        return Path(rel).as_posix()
