"""
Local-socket strategy: talk to the daemon over its Unix-domain socket.

Local sockets are trusted through filesystem permissions, so no TLS stage is
ever installed and TLS material in the endpoint is ignored.
"""

import builtins
import socket

import anyio
from anyio.abc import ByteStream

from dockwire.transport.errors import (
    ConnectionError,
    ConnectionRefusedError,
    UnsupportedPlatformError,
)
from dockwire.transport.strategy import TransportStrategy


def has_unix_sockets() -> bool:
    return hasattr(socket, "AF_UNIX")


class LocalSocketStrategy(TransportStrategy):
    """Connects to ``endpoint.socket_path``."""

    name = "local"

    @property
    def socket_path(self) -> str:
        return self.endpoint.socket_path

    def check_platform(self) -> None:
        if not has_unix_sockets():
            raise UnsupportedPlatformError(
                "Unix-domain sockets are not available on this platform",
                endpoint=self.endpoint.uri,
                stage="init",
            )

    async def open_stream(self) -> ByteStream:
        endpoint = self.endpoint.uri
        try:
            return await anyio.connect_unix(self.socket_path)
        except (FileNotFoundError, builtins.ConnectionRefusedError) as e:
            raise ConnectionRefusedError(
                f"No daemon listening at {self.socket_path}",
                endpoint=endpoint,
                stage="connect",
            ) from e
        except TimeoutError:
            raise
        except OSError as e:
            raise ConnectionError(
                f"Cannot connect to {self.socket_path}: {e}",
                endpoint=endpoint,
                stage="connect",
            ) from e
