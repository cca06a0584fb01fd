"""
Facades over OpenTelemetry tracing and structlog logging.

Transport code only talks to these two classes, so the underlying libraries
can be configured (or left unconfigured) by the application.
"""

from typing import Any, Dict, Optional

import structlog
from opentelemetry import trace


class TracingFacade:
    """Thin wrapper around an OpenTelemetry tracer."""

    def __init__(self, name: str):
        """
        Initialize a new tracing facade.

        Args:
            name: The name of the tracer
        """
        self.name = name
        self.tracer = trace.get_tracer(name)

    def start_span(self, name: str, attributes: Optional[Dict[str, Any]] = None):
        """
        Start a new span that is not made current.

        Args:
            name: The name of the span
            attributes: Optional attributes to set on the span

        Returns:
            The new span
        """
        return self.tracer.start_span(name, attributes=attributes)

    def start_as_current_span(
        self, name: str, attributes: Optional[Dict[str, Any]] = None
    ):
        """
        Start a new span and make it current for the duration of a with block.

        Args:
            name: The name of the span
            attributes: Optional attributes to set on the span

        Returns:
            A context manager yielding the span
        """
        return self.tracer.start_as_current_span(name, attributes=attributes)


class LoggingFacade:
    """Thin wrapper around a structlog logger."""

    def __init__(self, name: str, logger: Any = None):
        """
        Initialize a new logging facade.

        Args:
            name: The name of the logger
            logger: An already-bound structlog logger to wrap
        """
        self.name = name
        self.logger = logger if logger is not None else structlog.get_logger(name)

    def bind(self, **kwargs: Any) -> "LoggingFacade":
        """Return a facade whose entries always carry ``kwargs``."""
        return LoggingFacade(self.name, self.logger.bind(**kwargs))

    def debug(self, event: str, **kwargs: Any) -> None:
        self.logger.debug(event, **kwargs)

    def info(self, event: str, **kwargs: Any) -> None:
        self.logger.info(event, **kwargs)

    def warning(self, event: str, **kwargs: Any) -> None:
        self.logger.warning(event, **kwargs)

    def error(self, event: str, **kwargs: Any) -> None:
        self.logger.error(event, **kwargs)

    def critical(self, event: str, **kwargs: Any) -> None:
        self.logger.critical(event, **kwargs)
