"""
Connection pipelines and the instrumentation stage.
"""

from typing import Any, Callable, Dict, Iterator, List, Optional

from anyio.abc import ByteStream

from dockwire.telemetry import LoggingFacade, get_telemetry
from dockwire.transport.protocol import Stage

PREVIEW_BYTES = 64


class Pipeline:
    """Ordered, named processing stages of one connection.

    The first stage sits nearest the socket. Adding a stage rebuilds the
    connection's data path through the ``on_change`` callback.
    """

    def __init__(self, on_change: Optional[Callable[[], None]] = None):
        self._stages: List[Stage] = []
        self._on_change = on_change

    def add_first(self, stage: Stage) -> "Pipeline":
        self._check_name(stage)
        self._stages.insert(0, stage)
        self._changed()
        return self

    def add_last(self, stage: Stage) -> "Pipeline":
        self._check_name(stage)
        self._stages.append(stage)
        self._changed()
        return self

    def get(self, name: str) -> Optional[Stage]:
        for stage in self._stages:
            if stage.name == name:
                return stage
        return None

    def first(self) -> Optional[Stage]:
        return self._stages[0] if self._stages else None

    def names(self) -> List[str]:
        return [stage.name for stage in self._stages]

    def build(self, stream: ByteStream) -> ByteStream:
        """Layer every stage over ``stream`` in order and return the result."""
        for stage in self._stages:
            stream = stage.wrap(stream)
        return stream

    def _check_name(self, stage: Stage) -> None:
        if self.get(stage.name) is not None:
            raise ValueError(f"Duplicate pipeline stage: {stage.name}")

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()

    def __contains__(self, name: str) -> bool:
        return self.get(name) is not None

    def __iter__(self) -> Iterator[Stage]:
        return iter(list(self._stages))

    def __len__(self) -> int:
        return len(self._stages)

    def __repr__(self) -> str:
        return f"Pipeline({' -> '.join(self.names())})"


class ObservedStream(ByteStream):
    """Byte stream that logs traffic and passes it through unchanged."""

    def __init__(self, inner: ByteStream, logger: LoggingFacade):
        self.inner = inner
        self.logger = logger
        self.bytes_sent = 0
        self.bytes_received = 0

    async def send(self, item: bytes) -> None:
        await self.inner.send(item)
        self.bytes_sent += len(item)
        self.logger.debug(
            "connection.bytes_sent",
            size=len(item),
            total=self.bytes_sent,
            preview=bytes(item[:PREVIEW_BYTES]),
        )

    async def receive(self, max_bytes: int = 65536) -> bytes:
        data = await self.inner.receive(max_bytes)
        self.bytes_received += len(data)
        self.logger.debug(
            "connection.bytes_received",
            size=len(data),
            total=self.bytes_received,
            preview=bytes(data[:PREVIEW_BYTES]),
        )
        return data

    async def send_eof(self) -> None:
        await self.inner.send_eof()

    async def aclose(self) -> None:
        await self.inner.aclose()
        self.logger.debug(
            "connection.stream_closed",
            bytes_sent=self.bytes_sent,
            bytes_received=self.bytes_received,
        )

    @property
    def extra_attributes(self) -> Dict[Any, Callable[[], Any]]:
        return self.inner.extra_attributes


class LoggingStage:
    """Instrumentation stage tagging all traffic with a connection id."""

    name = "logging"

    def __init__(self, connection_id: str, logger: Optional[LoggingFacade] = None):
        self.connection_id = connection_id
        if logger is None:
            _, logger = get_telemetry("dockwire.transport.connection")
        self.logger = logger.bind(connection_id=connection_id)
        self.stream: Optional[ObservedStream] = None

    def wrap(self, stream: ByteStream) -> ByteStream:
        self.stream = ObservedStream(stream, self.logger)
        return self.stream
