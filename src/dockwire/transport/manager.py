"""
The transport manager.

A :class:`TransportManager` owns exactly one transport strategy, and through
it one worker pool, for its whole lifetime. It is an ordinary object: create
it, initialize it once, hand it (or its connection provider) to the command
layer, and shut it down before exiting.
"""

import threading
from types import TracebackType
from typing import Any, Dict, Optional, Type, Union

from dockwire.config import TransportSettings
from dockwire.endpoint import EndpointDescriptor, parse_endpoint
from dockwire.errors import (
    AlreadyInitializedError,
    ConfigurationError,
    NotInitializedError,
)
from dockwire.telemetry import get_telemetry
from dockwire.transport.connection import Connection
from dockwire.transport.provider import ConnectionProvider
from dockwire.transport.registry import StrategyRegistry, default_registry
from dockwire.transport.strategy import TransportStrategy


class TransportManager:
    """Selects the transport strategy and owns its lifecycle."""

    def __init__(
        self,
        settings: Optional[TransportSettings] = None,
        config: Optional[Dict[str, Any]] = None,
        registry: Optional[StrategyRegistry] = None,
    ):
        """Create an uninitialized manager.

        Args:
            settings: Explicit transport settings.
            config: Configuration dictionary used when ``settings`` is not
                given; missing keys fall back to ``DOCKWIRE_*`` variables.
            registry: Strategy registry; defaults to the built-in strategies.
        """
        self.settings = settings or TransportSettings.from_config(config)
        self._registry = registry or default_registry()
        self._strategy: Optional[TransportStrategy] = None
        self._endpoint: Optional[EndpointDescriptor] = None
        self._shut_down = False
        self._lock = threading.Lock()
        _, self._logger = get_telemetry("dockwire.transport.manager")

    @property
    def endpoint(self) -> Optional[EndpointDescriptor]:
        return self._endpoint

    @property
    def strategy(self) -> Optional[TransportStrategy]:
        return self._strategy

    @property
    def initialized(self) -> bool:
        return self._strategy is not None and not self._shut_down

    def initialize(self, endpoint: Union[EndpointDescriptor, str, None]) -> None:
        """Select and start the strategy serving ``endpoint``.

        Args:
            endpoint: The resolved endpoint, or a URI to parse.

        Raises:
            ConfigurationError: If the endpoint is missing or its scheme is
                not recognized.
            AlreadyInitializedError: If the manager was initialized before.
            UnsupportedPlatformError: If the selected transport cannot run on
                this platform. The manager stays uninitialized.
        """
        if endpoint is None:
            raise ConfigurationError("No endpoint was specified")
        if isinstance(endpoint, str):
            endpoint = parse_endpoint(endpoint)
        if not isinstance(endpoint, EndpointDescriptor):
            raise ConfigurationError(f"Not an endpoint descriptor: {endpoint!r}")

        with self._lock:
            if self._strategy is not None:
                raise AlreadyInitializedError(
                    f"Transport manager already initialized for {self._endpoint.uri}"
                )

            strategy = self._registry.create_strategy(endpoint, self.settings)
            strategy.init()

            self._strategy = strategy
            self._endpoint = endpoint

        self._logger.info(
            "transport.initialized",
            endpoint=endpoint.uri,
            scheme=endpoint.scheme.value,
            strategy=strategy.name,
            workers=self.settings.workers,
        )

    def acquire_connection(self) -> Connection:
        """Open a fresh connection through the active strategy.

        Blocks until the connection (and TLS session, if any) is ready.

        Raises:
            NotInitializedError: If :meth:`initialize` has not succeeded, or
                the manager has been shut down.
        """
        strategy = self._strategy
        if strategy is None:
            raise NotInitializedError(
                "Transport manager not initialized. You probably forgot to call initialize()!"
            )
        if self._shut_down:
            raise NotInitializedError("Transport manager has been shut down")
        return strategy.connect()

    def connection_provider(self) -> ConnectionProvider:
        return ConnectionProvider(self)

    def shutdown(self) -> None:
        """Release the worker pool. Safe to call more than once."""
        with self._lock:
            if self._strategy is None or self._shut_down:
                return
            self._shut_down = True
            strategy = self._strategy

        strategy.shutdown()
        self._logger.info("transport.shutdown", endpoint=self._endpoint.uri)

    def __enter__(self) -> "TransportManager":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        self.shutdown()
