"""
httpx transport backed by dockwire connections.

Plugging :class:`ConnectionTransport` into an ``httpx.Client`` gives the
command layer ordinary httpx requests and responses, while every request
travels over its own fresh connection from a :class:`ConnectionProvider`.
"""

from typing import TYPE_CHECKING, Iterator

import httpx

if TYPE_CHECKING:
    from dockwire.transport.connection import Connection
    from dockwire.transport.provider import ConnectionProvider


class ConnectionByteStream(httpx.SyncByteStream):
    """Response body read lazily from a connection, which it then closes."""

    def __init__(self, connection: "Connection"):
        self._connection = connection

    def __iter__(self) -> Iterator[bytes]:
        yield from self._connection.iter_body()

    def close(self) -> None:
        self._connection.close()


class ConnectionTransport(httpx.BaseTransport):
    """Sends each request over a new connection. No pooling, no retries."""

    def __init__(self, provider: "ConnectionProvider"):
        self._provider = provider

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        connection = self._provider.get_connection()
        try:
            head = connection.request(
                request.method,
                request.url.raw_path.decode("ascii"),
                headers=request.headers.raw,
                body=request.read(),
            )
        except BaseException:
            connection.close()
            raise

        return httpx.Response(
            status_code=head.status_code,
            headers=head.headers,
            stream=ConnectionByteStream(connection),
            extensions={
                "http_version": b"HTTP/" + head.http_version,
                "reason_phrase": head.reason,
                "connection_id": connection.id,
            },
        )
