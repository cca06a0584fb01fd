"""
HTTP/1.1 framing stage.

The codec does not transform bytes; it turns one request into wire bytes and
finds the response head and body boundaries in whatever the stages below it
deliver, so it always sees plaintext.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

import anyio
import h11
from anyio.abc import ByteStream

from dockwire.transport.errors import ProtocolError

HeaderList = List[Tuple[bytes, bytes]]


@dataclass(frozen=True)
class ResponseHead:
    """Status line and headers of one HTTP response."""

    status_code: int
    reason: bytes = b""
    headers: HeaderList = field(default_factory=list)
    http_version: bytes = b"1.1"

    def get_header(self, name: str) -> Optional[bytes]:
        key = name.lower().encode("ascii")
        for header, value in self.headers:
            if header.lower() == key:
                return value
        return None


def _normalize_headers(headers: Iterable[Tuple]) -> HeaderList:
    normalized = []
    for name, value in headers:
        if isinstance(name, str):
            name = name.encode("latin-1")
        if isinstance(value, str):
            value = value.encode("latin-1")
        normalized.append((name, value))
    return normalized


class HttpClientCodec:
    """Request/response framing for a single HTTP exchange."""

    name = "http-codec"

    def __init__(self, max_receive_size: int = 65536):
        self.max_receive_size = max_receive_size
        self._conn = h11.Connection(our_role=h11.CLIENT)

    def wrap(self, stream: ByteStream) -> ByteStream:
        return stream

    async def send_request(
        self,
        stream: ByteStream,
        method: str,
        target: str,
        headers: Iterable[Tuple] = (),
        body: bytes = b"",
        host: str = "localhost",
    ) -> None:
        """Frame and send one complete request.

        A Host header is added when missing, and a Content-Length header when
        a body is given without any framing header.

        Raises:
            ProtocolError: If the request cannot be framed.
        """
        header_list = _normalize_headers(headers)
        names = {name.lower() for name, _ in header_list}
        if b"host" not in names:
            header_list.insert(0, (b"host", host.encode("idna")))
        if body and not names & {b"content-length", b"transfer-encoding"}:
            header_list.append((b"content-length", str(len(body)).encode("ascii")))

        try:
            data = self._conn.send(
                h11.Request(method=method, target=target, headers=header_list)
            )
            if body:
                data += self._conn.send(h11.Data(data=body))
            data += self._conn.send(h11.EndOfMessage())
        except h11.LocalProtocolError as e:
            raise ProtocolError(f"Cannot frame request: {e}", stage="http") from e

        await stream.send(data)

    async def receive_response(self, stream: ByteStream) -> ResponseHead:
        """Read until the final response head has arrived.

        Raises:
            ProtocolError: If the peer closes early or sends invalid HTTP.
        """
        while True:
            event = await self._next_event(stream)
            if isinstance(event, h11.InformationalResponse):
                continue
            if isinstance(event, h11.Response):
                return ResponseHead(
                    status_code=event.status_code,
                    reason=bytes(event.reason),
                    headers=[(bytes(k), bytes(v)) for k, v in event.headers],
                    http_version=bytes(event.http_version),
                )
            raise ProtocolError(
                f"Connection closed before a response was received: {event!r}",
                stage="http",
            )

    async def receive_body_chunk(self, stream: ByteStream) -> Optional[bytes]:
        """Return the next body chunk, or None once the body is complete."""
        event = await self._next_event(stream)
        if isinstance(event, h11.Data):
            return bytes(event.data)
        if isinstance(event, (h11.EndOfMessage, h11.ConnectionClosed)):
            return None
        if event is h11.PAUSED:
            return None
        raise ProtocolError(f"Unexpected HTTP event in body: {event!r}", stage="http")

    async def _next_event(self, stream: ByteStream):
        while True:
            try:
                event = self._conn.next_event()
            except h11.RemoteProtocolError as e:
                raise ProtocolError(f"Invalid HTTP from peer: {e}", stage="http") from e

            if event is not h11.NEED_DATA:
                return event

            try:
                data = await stream.receive(self.max_receive_size)
            except anyio.EndOfStream:
                data = b""
            self._conn.receive_data(data)
