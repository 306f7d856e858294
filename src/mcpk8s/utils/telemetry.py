"""OpenTelemetry tracing for the MCP server.

Instrumented code only depends on ``opentelemetry-api``; without a
configured SDK every span is a no-op.  ``mcpk8s serve --otlp-endpoint``
calls :func:`configure_telemetry`, which needs the ``otel`` extra
(``pip install mcp-k8s-server[otel]``).

Spans produced by the server:

- ``mcp.request`` per dispatched message (method, request id, error code)
- ``mcp.tools.call`` per tool invocation (tool name, is-error flag)
- ``mcp.response.write`` per framed response (framing)

Exported spans never go to stdout, which carries the protocol stream.
"""

from __future__ import annotations

import sys
from typing import Any

from opentelemetry import trace

ATTR_METHOD = "mcp.method"
ATTR_REQUEST_ID = "mcp.request.id"
ATTR_ERROR_CODE = "mcp.error.code"
ATTR_FRAMING = "mcp.framing"
ATTR_TOOL_NAME = "mcp.tool.name"
ATTR_TOOL_IS_ERROR = "mcp.tool.is_error"

_INSTRUMENTATION_NAME = "mcpk8s"

_SDK_HINT = "Install it with: pip install mcp-k8s-server[otel]"


def get_tracer(name: str | None = None) -> trace.Tracer:
    """Tracer for *name* (defaults to the package instrumentation scope)."""
    return trace.get_tracer(name or _INSTRUMENTATION_NAME)


def request_id_attribute(request_id: Any) -> str:
    """JSON-RPC ids are strings, numbers or null; span attributes want a string."""
    return "null" if request_id is None else str(request_id)


def configure_telemetry(
    *,
    service_name: str = "mcp-k8s-server",
    export_to_console: bool = True,
    otlp_endpoint: str | None = None,
) -> None:
    """Install a global tracer provider.

    Console export writes JSON spans to stderr through a synchronous
    processor; OTLP export batches spans to *otlp_endpoint* over gRPC.

    Raises:
        ImportError: ``opentelemetry-sdk`` (or, for OTLP,
            ``opentelemetry-exporter-otlp``) is not installed.
    """
    try:
        from opentelemetry.sdk.resources import Resource  # pyright: ignore[reportMissingImports]
        from opentelemetry.sdk.trace import TracerProvider  # pyright: ignore[reportMissingImports]
        from opentelemetry.sdk.trace.export import (  # pyright: ignore[reportMissingImports]
            BatchSpanProcessor,
            ConsoleSpanExporter,
            SimpleSpanProcessor,
        )
    except ImportError as exc:
        msg = f"opentelemetry-sdk is required for configure_telemetry(). {_SDK_HINT}"
        raise ImportError(msg) from exc

    processors: list[Any] = []
    if export_to_console:
        processors.append(SimpleSpanProcessor(ConsoleSpanExporter(out=sys.stderr)))
    if otlp_endpoint:
        processors.append(BatchSpanProcessor(_otlp_exporter(otlp_endpoint)))

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    for processor in processors:
        provider.add_span_processor(processor)
    trace.set_tracer_provider(provider)


def _otlp_exporter(endpoint: str) -> Any:
    try:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (  # pyright: ignore[reportMissingImports]
            OTLPSpanExporter,
        )
    except ImportError as exc:
        msg = f"opentelemetry-exporter-otlp is required for OTLP export. {_SDK_HINT}"
        raise ImportError(msg) from exc
    return OTLPSpanExporter(endpoint=endpoint)
