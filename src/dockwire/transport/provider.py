"""
The connection provider handed to the command layer.
"""

from typing import TYPE_CHECKING

from dockwire.transport.connection import Connection
from dockwire.transport.pipeline import LoggingStage

if TYPE_CHECKING:
    from dockwire.transport.manager import TransportManager


class ConnectionProvider:
    """Hands out fresh, instrumented connections.

    Every call opens a new connection; the caller owns it and must close it
    after its single exchange.
    """

    def __init__(self, manager: "TransportManager"):
        self._manager = manager

    @property
    def manager(self) -> "TransportManager":
        return self._manager

    def get_connection(self) -> Connection:
        connection = self._manager.acquire_connection()
        connection.pipeline.add_last(LoggingStage(connection.id))
        return connection
