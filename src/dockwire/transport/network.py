"""
Network strategy: talk to the daemon over TCP, with TLS for secured endpoints.
"""

import builtins
from typing import Optional

import anyio
from anyio.abc import ByteStream

from dockwire.concurrency import WorkerPool
from dockwire.config import TransportSettings
from dockwire.endpoint import NO_PORT, EndpointDescriptor
from dockwire.errors import ConfigurationError
from dockwire.transport.connection import Connection
from dockwire.transport.errors import ConnectionError, ConnectionRefusedError
from dockwire.transport.strategy import TransportStrategy
from dockwire.transport.tls import TlsNegotiator


def _was_refused(exc: BaseException) -> bool:
    # anyio reports failed attempts as OSError caused by the per-address errors.
    candidates = [exc, exc.__cause__]
    cause = exc.__cause__
    if cause is not None and hasattr(cause, "exceptions"):
        candidates.extend(cause.exceptions)
    return any(isinstance(c, builtins.ConnectionRefusedError) for c in candidates)


class NetworkStrategy(TransportStrategy):
    """Connects to ``endpoint.host:endpoint.port``."""

    name = "network"

    def __init__(self, endpoint: EndpointDescriptor, settings: TransportSettings):
        super().__init__(endpoint, settings)
        self.negotiator: Optional[TlsNegotiator] = None

    def init(self) -> WorkerPool:
        pool = super().init()
        if self.endpoint.scheme.is_secure:
            self.negotiator = TlsNegotiator(
                self.endpoint.host, self.endpoint.port, self.endpoint.tls
            )
        return pool

    def validate(self) -> None:
        if self.endpoint.port in (None, NO_PORT):
            raise ConfigurationError(f"No port configured for {self.endpoint.host}")

    async def open_stream(self) -> ByteStream:
        endpoint = self.endpoint.uri
        try:
            return await anyio.connect_tcp(self.endpoint.host, self.endpoint.port)
        except TimeoutError:
            raise
        except OSError as e:
            if _was_refused(e):
                raise ConnectionRefusedError(
                    f"Connection to {endpoint} refused", endpoint=endpoint, stage="connect"
                ) from e
            raise ConnectionError(
                f"Cannot connect to {endpoint}: {e}", endpoint=endpoint, stage="connect"
            ) from e

    async def secure_connection(self, connection: Connection) -> None:
        """Install the secure session in front of every other stage."""
        if self.negotiator is None:
            return
        session = await self.negotiator.negotiate(connection.transport_stream)
        connection.pipeline.add_first(session)
