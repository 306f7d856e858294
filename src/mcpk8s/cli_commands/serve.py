"""``mcpk8s serve`` — run the MCP server on stdin/stdout."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
import sys

import click

from mcpk8s.protocol.errors import ProtocolError

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@click.command()
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="INFO",
    envvar="LOG_LEVEL",
    show_default=True,
    help="Log level (logs go to stderr).",
)
@click.option(
    "--otlp-endpoint",
    default=None,
    envvar="OTEL_EXPORTER_OTLP_ENDPOINT",
    help="Export traces via OTLP/gRPC to this endpoint (requires the otel extra).",
)
def serve(log_level: str, otlp_endpoint: str | None) -> None:
    """Serve Kubernetes tools over stdio (Content-Length framed or NDJSON)."""
    # stdout carries the protocol stream
    logging.basicConfig(stream=sys.stderr, level=log_level.upper(), format=LOG_FORMAT)

    if otlp_endpoint:
        from mcpk8s.utils.telemetry import configure_telemetry

        configure_telemetry(export_to_console=False, otlp_endpoint=otlp_endpoint)

    try:
        asyncio.run(_serve())
    except KeyboardInterrupt:
        logger.info("Server stopped (interrupted)")
    except (OSError, ProtocolError) as exc:
        logger.error("Server exited with error: %s", exc)
        sys.exit(1)


async def _serve() -> None:
    from mcpk8s.app import Application
    from mcpk8s.protocol.transport import open_stdio

    app = Application()
    reader, writer = await open_stdio()

    task = asyncio.current_task()
    loop = asyncio.get_running_loop()
    if task is not None:
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError):
                loop.add_signal_handler(sig, task.cancel)

    try:
        await app.server.run(reader, writer)
    except asyncio.CancelledError:
        logger.info("Server stopped (signal)")
    finally:
        await app.close()
