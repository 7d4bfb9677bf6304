"""BridgeContext: everything a request handler needs, built once.

The context replaces process-wide singletons. :func:`build_context` wires the
binding, cache, deferred effects, registry and interceptor chain at startup;
after that the registry and chain are only read.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from wsbridge.core.deferred import DeferredEffects
from wsbridge.core.interceptors import InterceptorChain
from wsbridge.core.registry import ToolRegistry
from wsbridge.interceptors import (
    PolicyInterceptor,
    RequestLogInterceptor,
    ResponseCacheInterceptor,
)
from wsbridge.tools import register_file_tools
from wsbridge.workspace.binding import LocalFileBinding
from wsbridge.workspace.cache import ContentCache
from wsbridge.workspace.paths import Workspace

if TYPE_CHECKING:
    from collections.abc import Iterable

    from wsbridge.config import BridgeConfig
    from wsbridge.core.interceptors import Interceptor
    from wsbridge.workspace.binding import FileBinding


@dataclass(frozen=True)
class BridgeContext:
    config: BridgeConfig
    workspace: Workspace
    binding: FileBinding
    cache: ContentCache
    deferred: DeferredEffects
    registry: ToolRegistry
    chain: InterceptorChain


def build_context(
    config: BridgeConfig,
    *,
    binding: FileBinding | None = None,
    interceptors: Iterable[Interceptor] = (),
) -> BridgeContext:
    """Construct the bridge for *config*.

    Built-in interceptors are registered in this order: ``request_log``,
    ``policy`` (when enabled), ``response_cache`` (when enabled), followed by
    any extra *interceptors*.
    """
    workspace = Workspace(config.workspace_root)
    if binding is None:
        binding = LocalFileBinding(editor_command=config.editor.command)

    cache = ContentCache(
        binding,
        enabled=config.cache.enabled,
        verify_on_read=config.cache.verify_on_read,
        max_items=config.cache.max_items,
    )
    deferred = DeferredEffects(cache, binding, open_in_editor=config.editor.open_after_write)

    registry = ToolRegistry()
    register_file_tools(
        registry,
        workspace=workspace,
        binding=binding,
        cache=cache,
        deferred=deferred,
        limits=config.limits,
    )

    chain = InterceptorChain(slow_interceptor_ms=config.thresholds.slow_interceptor_ms)
    chain.register(
        RequestLogInterceptor(truncation_length=config.thresholds.log_truncation_length)
    )
    if config.policy.enabled:
        chain.register(PolicyInterceptor(config.policy))
    if config.cache.cache_responses:
        chain.register(
            ResponseCacheInterceptor(
                [d.name for d in registry.list_all() if d.read_only],
                ttl=config.cache.response_ttl,
                max_items=config.cache.max_items,
            )
        )
    for interceptor in interceptors:
        chain.register(interceptor)

    return BridgeContext(
        config=config,
        workspace=workspace,
        binding=binding,
        cache=cache,
        deferred=deferred,
        registry=registry,
        chain=chain,
    )
