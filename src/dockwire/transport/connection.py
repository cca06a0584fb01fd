"""
Single-use connections.

A :class:`Connection` wraps one physical socket stream opened on a worker
event loop. Coroutine methods (``asend``, ``arequest`` ...) must run on that
loop; the plain methods (``send``, ``request`` ...) are for caller threads and
block while the worker runs the coroutine.
"""

import uuid
from contextlib import contextmanager
from types import TracebackType
from typing import Iterable, Iterator, Optional, Tuple, Type

import anyio
from anyio.abc import ByteStream

from dockwire.concurrency import Worker
from dockwire.endpoint import EndpointDescriptor, Scheme
from dockwire.errors import NotInitializedError
from dockwire.telemetry import get_telemetry
from dockwire.transport.errors import ConnectionError, MessageError
from dockwire.transport.http.codec import HttpClientCodec, ResponseHead
from dockwire.transport.pipeline import Pipeline

_, _logger = get_telemetry("dockwire.transport.connection")


@contextmanager
def _io_errors(endpoint: str) -> Iterator[None]:
    try:
        yield
    except (anyio.BrokenResourceError, anyio.ClosedResourceError) as e:
        raise ConnectionError(
            f"Connection to {endpoint} is no longer usable", endpoint=endpoint, stage="io"
        ) from e
    except OSError as e:
        raise ConnectionError(
            f"I/O error on connection to {endpoint}: {e}", endpoint=endpoint, stage="io"
        ) from e


class Connection:
    """One physical, single-use byte stream to the daemon."""

    def __init__(self, stream: ByteStream, worker: Worker, endpoint: EndpointDescriptor):
        self.id = uuid.uuid4().hex[:12]
        self.endpoint = endpoint
        self.worker = worker
        self.transport_stream = stream
        self.pipeline = Pipeline(on_change=self._rebuild)
        self._stream = stream
        self._closed = False
        self._logger = _logger.bind(connection_id=self.id, endpoint=endpoint.uri)
        worker.track(self)

    def _rebuild(self) -> None:
        self._stream = self.pipeline.build(self.transport_stream)

    @property
    def stream(self) -> ByteStream:
        """The stream at the application end of the pipeline."""
        return self._stream

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def codec(self) -> HttpClientCodec:
        codec = self.pipeline.get(HttpClientCodec.name)
        if codec is None:
            raise MessageError(
                "Connection has no HTTP framing stage",
                endpoint=self.endpoint.uri,
                stage="http",
            )
        return codec

    @property
    def host_header(self) -> str:
        if self.endpoint.scheme is Scheme.LOCAL:
            return "localhost"
        return self.endpoint.host

    def _check_open(self) -> None:
        if self._closed:
            raise ConnectionError(
                f"Connection {self.id} is closed", endpoint=self.endpoint.uri, stage="io"
            )

    # Coroutines; run these on the worker loop.

    async def asend(self, data: bytes) -> None:
        self._check_open()
        with _io_errors(self.endpoint.uri):
            await self._stream.send(data)

    async def areceive(self, max_bytes: int = 65536) -> bytes:
        """Receive up to ``max_bytes``; returns b"" once the peer has closed."""
        self._check_open()
        with _io_errors(self.endpoint.uri):
            try:
                return await self._stream.receive(max_bytes)
            except anyio.EndOfStream:
                return b""

    async def arequest(
        self,
        method: str,
        target: str,
        headers: Iterable[Tuple] = (),
        body: bytes = b"",
    ) -> ResponseHead:
        """Send one HTTP request and wait for the response head."""
        self._check_open()
        codec = self.codec
        with _io_errors(self.endpoint.uri):
            await codec.send_request(
                self._stream, method, target, headers, body, host=self.host_header
            )
            head = await codec.receive_response(self._stream)
        self._logger.debug(
            "connection.response", method=method, target=target, status=head.status_code
        )
        return head

    async def aread_body_chunk(self) -> Optional[bytes]:
        self._check_open()
        with _io_errors(self.endpoint.uri):
            return await self.codec.receive_body_chunk(self._stream)

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            with _io_errors(self.endpoint.uri), anyio.CancelScope(shield=True):
                await self._stream.aclose()
        finally:
            self.worker.release(self)
            self._logger.debug("connection.closed")

    async def abort(self) -> None:
        """Close the connection without waiting for a graceful shutdown."""
        if self._closed:
            return
        self._closed = True
        try:
            await anyio.aclose_forcefully(self._stream)
        finally:
            self.worker.release(self)
            self._logger.debug("connection.aborted")

    # Blocking facade for caller threads.

    def send(self, data: bytes) -> None:
        self.worker.call(self.asend, data)

    def receive(self, max_bytes: int = 65536) -> bytes:
        return self.worker.call(self.areceive, max_bytes)

    def request(
        self,
        method: str,
        target: str,
        headers: Iterable[Tuple] = (),
        body: bytes = b"",
    ) -> ResponseHead:
        return self.worker.call(self.arequest, method, target, headers, body)

    def read_body_chunk(self) -> Optional[bytes]:
        return self.worker.call(self.aread_body_chunk)

    def iter_body(self) -> Iterator[bytes]:
        while True:
            chunk = self.read_body_chunk()
            if chunk is None:
                return
            if chunk:
                yield chunk

    def read_body(self) -> bytes:
        return b"".join(self.iter_body())

    def close(self) -> None:
        """Close the connection. Safe to call more than once."""
        if self._closed:
            return
        try:
            self.worker.call(self.aclose)
        except (RuntimeError, NotInitializedError):
            # The worker loop is gone; the pool already closed the socket.
            self._closed = True
            self.worker.release(self)

    def __enter__(self) -> "Connection":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"<Connection {self.id} {self.endpoint.uri} {state} {self.pipeline!r}>"
