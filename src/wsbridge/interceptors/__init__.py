"""Built-in interceptors."""

from wsbridge.interceptors.policy import PolicyEngine, PolicyInterceptor
from wsbridge.interceptors.request_log import RequestLogInterceptor
from wsbridge.interceptors.response_cache import ResponseCacheInterceptor

__all__ = [
    "PolicyEngine",
    "PolicyInterceptor",
    "RequestLogInterceptor",
    "ResponseCacheInterceptor",
]
