"""Tracing for the request pipeline.

Modules grab a tracer with :func:`get_tracer` and open spans around tool
calls and interceptor phases. The OpenTelemetry API hands out no-op tracers
until :func:`configure_telemetry` installs an SDK provider, so tracing costs
nothing when it is switched off.

Exporting spans needs the ``otel`` extra (``pip install wsbridge[otel]``).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from opentelemetry import trace

if TYPE_CHECKING:
    from wsbridge.config import TelemetrySettings

# Span attribute keys
ATTR_TOOL_NAME = "wsbridge.tool.name"
ATTR_CORRELATION_ID = "wsbridge.correlation_id"
ATTR_CACHE_HIT = "wsbridge.cache_hit"
ATTR_CANCELLED = "wsbridge.cancelled"
ATTR_IS_ERROR = "wsbridge.is_error"
ATTR_STATUS_CODE = "wsbridge.status_code"

_INSTRUMENTATION_NAME = "wsbridge"

_SDK_HINT = "Install the tracing extra: pip install wsbridge[otel]"


def get_tracer(name: str | None = None) -> trace.Tracer:
    return trace.get_tracer(name or _INSTRUMENTATION_NAME)


def configure_telemetry(settings: TelemetrySettings, *, service_name: str = "wsbridge") -> None:
    """Install an SDK tracer provider that exports according to *settings*.

    The console exporter writes to stdout, which the stdio transport owns;
    enable it only for ``wsbridge tools call``.

    Raises:
        ImportError: ``opentelemetry-sdk`` (or, for OTLP, the exporter
            package) is not installed.
    """
    try:
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import (
            BatchSpanProcessor,
            ConsoleSpanExporter,
            SimpleSpanProcessor,
        )
    except ImportError as exc:
        raise ImportError(f"opentelemetry-sdk is required for tracing. {_SDK_HINT}") from exc

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))

    if settings.export_to_console:
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))

    if settings.otlp_endpoint:
        try:
            from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
                OTLPSpanExporter,
            )
        except ImportError as exc:
            raise ImportError(
                f"opentelemetry-exporter-otlp is required for OTLP export. {_SDK_HINT}"
            ) from exc
        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.otlp_endpoint))
        )

    trace.set_tracer_provider(provider)
