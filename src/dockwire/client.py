"""
Core dockwire client implementation.
"""

from types import TracebackType
from typing import Any, Dict, Optional, Type, Union

import httpx

from dockwire.commands import Operation, get_handler
from dockwire.config import TransportSettings, load_endpoint_from_env
from dockwire.endpoint import EndpointDescriptor
from dockwire.telemetry import get_telemetry
from dockwire.transport.http.transport import ConnectionTransport
from dockwire.transport.manager import TransportManager

BASE_URL = "http://docker"


class DaemonClient:
    """
    Runs daemon operations, each over its own fresh connection.

    The client owns its transport manager: it initializes it on construction
    and shuts it down in :meth:`close` (or on leaving a ``with`` block).
    """

    def __init__(
        self,
        endpoint: Union[EndpointDescriptor, str, None] = None,
        settings: Optional[TransportSettings] = None,
        config: Optional[Dict[str, Any]] = None,
        enable_telemetry: bool = True,
    ):
        """Initialize the client and its transport.

        Args:
            endpoint: The daemon endpoint or URI; read from DOCKER_HOST and
                friends when omitted.
            settings: Explicit transport settings.
            config: Configuration dictionary for the transport settings.
            enable_telemetry: Whether to trace and log operations.
        """
        if endpoint is None:
            endpoint = load_endpoint_from_env()

        self._tracer, self._logger = (
            get_telemetry("dockwire.client") if enable_telemetry else (None, None)
        )
        self.manager = TransportManager(settings=settings, config=config)
        self.manager.initialize(endpoint)
        self._http = httpx.Client(
            transport=ConnectionTransport(self.manager.connection_provider()),
            base_url=BASE_URL,
            timeout=None,
        )

    @property
    def http(self) -> httpx.Client:
        return self._http

    def execute(self, operation: Union[Operation, str], **params: Any) -> Any:
        """Run one daemon operation.

        Args:
            operation: The operation to run.
            **params: Operation-specific parameters.

        Returns:
            The operation's decoded result.

        Raises:
            UnsupportedOperationError: If the operation has no handler.
            DaemonError: If the daemon answered with an error status.
            TransportError: If no connection could be established.
        """
        handler = get_handler(operation)
        name = handler.__name__

        if self._tracer:
            with self._tracer.start_as_current_span(
                "dockwire.execute", {"dockwire.operation": name}
            ) as span:
                try:
                    return self._perform(name, handler, params)
                except Exception as e:
                    span.record_exception(e)
                    raise
        return self._perform(name, handler, params)

    def _perform(self, name: str, handler: Any, params: Dict[str, Any]) -> Any:
        if self._logger:
            self._logger.debug("operation.start", operation=name)
        try:
            result = handler(self._http, **params)
        except Exception as e:
            if self._logger:
                self._logger.error(
                    "operation.error",
                    operation=name,
                    error=str(e),
                    error_type=type(e).__name__,
                )
            raise
        if self._logger:
            self._logger.debug("operation.complete", operation=name)
        return result

    def ping(self) -> str:
        return self.execute(Operation.PING)

    def version(self) -> Dict[str, Any]:
        return self.execute(Operation.VERSION)

    def info(self) -> Dict[str, Any]:
        return self.execute(Operation.INFO)

    def close(self) -> None:
        """Close the HTTP client and shut down the transport."""
        self._http.close()
        self.manager.shutdown()

    def __enter__(self) -> "DaemonClient":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        self.close()
