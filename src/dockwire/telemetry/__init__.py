"""
Telemetry module for dockwire.

Structured logging goes through structlog and tracing through the
OpenTelemetry API. Spans are non-recording until a tracer provider is
installed, for example by :func:`configure_telemetry`.
"""

from opentelemetry.trace.status import Status, StatusCode

from dockwire.telemetry.config import configure_telemetry
from dockwire.telemetry.facade import LoggingFacade, TracingFacade


def get_telemetry(name: str) -> tuple:
    """
    Get tracer and logger instances for the given name.

    Args:
        name: The name to use for the tracer and logger

    Returns:
        A tuple containing a tracer and logger
    """
    return TracingFacade(name), LoggingFacade(name)


__all__ = [
    "LoggingFacade",
    "Status",
    "StatusCode",
    "TracingFacade",
    "configure_telemetry",
    "get_telemetry",
]
