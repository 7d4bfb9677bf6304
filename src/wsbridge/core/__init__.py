"""Core pipeline: registry, interceptor chain, deferred effects.

:mod:`wsbridge.core.context` and :mod:`wsbridge.core.handler` sit on top of
the built-in interceptors and tools, so they are imported by full path.
"""

from wsbridge.core.deferred import DeferredEffects
from wsbridge.core.interceptors import (
    BaseInterceptor,
    Interceptor,
    InterceptorChain,
    Phase,
    RequestContext,
    ResponseContext,
)
from wsbridge.core.registry import ToolRegistry

__all__ = [
    "BaseInterceptor",
    "DeferredEffects",
    "Interceptor",
    "InterceptorChain",
    "Phase",
    "RequestContext",
    "ResponseContext",
    "ToolRegistry",
]
