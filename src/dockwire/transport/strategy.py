"""
Base class for transport strategies.

A strategy knows how to build the worker pool for one transport kind and how
to open one connection over it. Subclasses provide the raw socket; the base
class applies the connect timeout, installs the framing template and cleans
up after failures.
"""

import abc
from typing import Optional

import anyio
from anyio.abc import ByteStream

from dockwire.concurrency import Worker, WorkerPool
from dockwire.config import TransportSettings
from dockwire.endpoint import EndpointDescriptor
from dockwire.errors import NotInitializedError
from dockwire.telemetry import get_telemetry
from dockwire.transport.connection import Connection
from dockwire.transport.errors import ConnectionTimeoutError, TransportError
from dockwire.transport.http.codec import HttpClientCodec

_tracer, _logger = get_telemetry("dockwire.transport.strategy")


class TransportStrategy(abc.ABC):
    """How to reach the daemon over one kind of transport."""

    name: str = "abstract"

    def __init__(self, endpoint: EndpointDescriptor, settings: TransportSettings):
        self.endpoint = endpoint
        self.settings = settings
        self.pool: Optional[WorkerPool] = None

    def check_platform(self) -> None:
        """Raise UnsupportedPlatformError if this transport cannot run here."""

    def init(self) -> WorkerPool:
        """Check the platform and start this strategy's worker pool.

        Returns:
            The started pool.

        Raises:
            UnsupportedPlatformError: If the transport is unavailable.
        """
        self.check_platform()
        self.pool = WorkerPool(
            size=self.settings.workers,
            backend=self.settings.backend,
            grace_period=self.settings.shutdown_grace_period,
            name=self.name,
        ).start()
        return self.pool

    def initialize_connection(self, connection: Connection) -> None:
        """Install the stages every new connection starts with."""
        connection.pipeline.add_last(HttpClientCodec())

    def validate(self) -> None:
        """Reject endpoints that can never be connected to."""

    @abc.abstractmethod
    async def open_stream(self) -> ByteStream:
        """Open the raw socket stream. Runs on a worker loop."""

    async def secure_connection(self, connection: Connection) -> None:
        """Hook for strategies that wrap the raw stream before use."""

    def connect(self) -> Connection:
        """Open a fresh connection, blocking until it is ready.

        Raises:
            NotInitializedError: If :meth:`init` has not run or the pool stopped.
            ConfigurationError: If the endpoint cannot be connected to.
            ConnectionRefusedError: If nothing is listening.
            ConnectionTimeoutError: If the connect timeout expired.
            TlsSetupError: If a required secure session could not be set up.
        """
        if self.pool is None:
            raise NotInitializedError(f"{self.name} strategy was not initialized")
        self.validate()
        worker = self.pool.next_worker()
        return worker.call(self._connect, worker)

    async def _connect(self, worker: Worker) -> Connection:
        endpoint = self.endpoint.uri
        timeout = self.settings.connect_timeout
        stream: Optional[ByteStream] = None
        connection: Optional[Connection] = None
        stage = "connect"

        with _tracer.start_as_current_span(
            "dockwire.connect", {"dockwire.endpoint": endpoint, "dockwire.strategy": self.name}
        ):
            try:
                with anyio.fail_after(timeout):
                    stream = await self.open_stream()
                    connection = Connection(stream, worker, self.endpoint)
                    self.initialize_connection(connection)
                    stage = "tls"
                    await self.secure_connection(connection)
            except BaseException as e:
                if connection is not None:
                    await connection.abort()
                elif stream is not None:
                    await anyio.aclose_forcefully(stream)

                if isinstance(e, TimeoutError):
                    _logger.warning(
                        "connection.failed", endpoint=endpoint, stage=stage, error="timeout"
                    )
                    step = "TLS handshake with" if stage == "tls" else "Connection to"
                    raise ConnectionTimeoutError(
                        f"{step} {endpoint} timed out after {timeout}s",
                        endpoint=endpoint,
                        stage=stage,
                    ) from e
                if isinstance(e, TransportError):
                    _logger.warning(
                        "connection.failed",
                        endpoint=endpoint,
                        stage=e.stage,
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                raise

        _logger.debug(
            "connection.opened",
            endpoint=endpoint,
            connection_id=connection.id,
            worker=worker.index,
            pipeline=connection.pipeline.names(),
        )
        return connection

    def shutdown(self) -> None:
        if self.pool is not None:
            self.pool.shutdown()
