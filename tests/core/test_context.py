"""Tests for build_context."""

from __future__ import annotations

from pathlib import Path

import pytest

from wsbridge.config import BridgeConfig, CacheSettings, PolicySettings
from wsbridge.core.context import build_context
from wsbridge.core.interceptors import BaseInterceptor
from wsbridge.errors import DuplicateNameError
from wsbridge.workspace.binding import LocalFileBinding


class Extra(BaseInterceptor):
    name = "extra"


class TestBuildContext:
    def test_defaults(self, workspace_root: Path) -> None:
        ctx = build_context(BridgeConfig(workspace_root=workspace_root))
        assert isinstance(ctx.binding, LocalFileBinding)
        assert ctx.workspace.root == workspace_root.resolve()
        assert len(ctx.registry) == 7
        assert [i.name for i in ctx.chain.interceptors] == ["request_log"]

    def test_optional_interceptors_in_order(self, workspace_root: Path) -> None:
        ctx = build_context(
            BridgeConfig(
                workspace_root=workspace_root,
                policy=PolicySettings(enabled=True),
                cache=CacheSettings(cache_responses=True),
            ),
            interceptors=[Extra()],
        )
        assert [i.name for i in ctx.chain.interceptors] == [
            "request_log",
            "policy",
            "response_cache",
            "extra",
        ]

    def test_custom_binding(self, workspace_root: Path, memory_binding: object) -> None:
        ctx = build_context(BridgeConfig(workspace_root=workspace_root), binding=memory_binding)  # type: ignore[arg-type]
        assert ctx.binding is memory_binding

    def test_duplicate_interceptor_rejected(self, workspace_root: Path) -> None:
        with pytest.raises(DuplicateNameError):
            build_context(
                BridgeConfig(workspace_root=workspace_root),
                interceptors=[Extra(), Extra()],
            )

    def test_contexts_are_independent(self, workspace_root: Path) -> None:
        config = BridgeConfig(workspace_root=workspace_root)
        first = build_context(config)
        second = build_context(config)
        assert first.registry is not second.registry
        assert first.cache is not second.cache
