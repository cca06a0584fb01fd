"""
Tests for connection pipelines and the logging stage.
"""

from unittest.mock import MagicMock

import anyio
import pytest
from anyio.abc import ByteStream

from dockwire.telemetry import LoggingFacade
from dockwire.transport.pipeline import LoggingStage, ObservedStream, Pipeline
from dockwire.transport.protocol import Stage


class RecordingStream(ByteStream):
    """In-memory byte stream recording what is sent."""

    def __init__(self, incoming=()):
        self.sent = []
        self.incoming = list(incoming)
        self.closed = False
        self.eof_sent = False

    async def send(self, item: bytes) -> None:
        self.sent.append(item)

    async def receive(self, max_bytes: int = 65536) -> bytes:
        if not self.incoming:
            raise anyio.EndOfStream
        return self.incoming.pop(0)

    async def send_eof(self) -> None:
        self.eof_sent = True

    async def aclose(self) -> None:
        self.closed = True


class NamedStage:
    def __init__(self, name, trail):
        self.name = name
        self.trail = trail

    def wrap(self, stream):
        self.trail.append((self.name, stream))
        return stream


def test_stages_satisfy_protocol():
    assert isinstance(LoggingStage("abc"), Stage)
    assert isinstance(NamedStage("x", []), Stage)


def test_pipeline_ordering():
    pipeline = Pipeline()
    pipeline.add_last(NamedStage("codec", []))
    pipeline.add_last(NamedStage("logging", []))
    pipeline.add_first(NamedStage("tls", []))

    assert pipeline.names() == ["tls", "codec", "logging"]
    assert pipeline.first().name == "tls"
    assert len(pipeline) == 3
    assert "codec" in pipeline
    assert "missing" not in pipeline
    assert pipeline.get("missing") is None
    assert repr(pipeline) == "Pipeline(tls -> codec -> logging)"


def test_pipeline_rejects_duplicate_names():
    pipeline = Pipeline().add_last(NamedStage("codec", []))
    with pytest.raises(ValueError):
        pipeline.add_first(NamedStage("codec", []))
    assert len(pipeline) == 1


def test_pipeline_build_order():
    """Test that the first stage sees the raw stream."""
    trail = []
    pipeline = Pipeline()
    pipeline.add_last(NamedStage("b", trail)).add_first(NamedStage("a", trail))
    raw = RecordingStream()

    assert pipeline.build(raw) is raw
    assert [name for name, _ in trail] == ["a", "b"]


def test_pipeline_change_callback():
    on_change = MagicMock()
    pipeline = Pipeline(on_change=on_change)

    pipeline.add_last(NamedStage("a", []))
    pipeline.add_first(NamedStage("b", []))

    assert on_change.call_count == 2


def test_empty_pipeline():
    pipeline = Pipeline()
    raw = RecordingStream()
    assert pipeline.first() is None
    assert pipeline.build(raw) is raw
    assert list(pipeline) == []


@pytest.mark.asyncio
async def test_logging_stage_passes_bytes_unchanged():
    raw = RecordingStream(incoming=[b"HTTP/1.1 200 OK\r\n", b"\r\n"])
    logger = MagicMock(spec=LoggingFacade)
    logger.bind.return_value = logger
    stage = LoggingStage("conn-1", logger=logger)

    stream = stage.wrap(raw)
    await stream.send(b"GET /_ping HTTP/1.1\r\n\r\n")
    first = await stream.receive()
    second = await stream.receive()

    assert raw.sent == [b"GET /_ping HTTP/1.1\r\n\r\n"]
    assert first + second == b"HTTP/1.1 200 OK\r\n\r\n"
    assert stage.stream.bytes_sent == len(b"GET /_ping HTTP/1.1\r\n\r\n")
    assert stage.stream.bytes_received == 19
    logger.bind.assert_called_once_with(connection_id="conn-1")


@pytest.mark.asyncio
async def test_observed_stream_logs_traffic():
    raw = RecordingStream(incoming=[b"pong"])
    logger = MagicMock(spec=LoggingFacade)
    stream = ObservedStream(raw, logger)

    await stream.send(b"ping")
    await stream.receive()
    await stream.send_eof()
    await stream.aclose()

    events = [call.args[0] for call in logger.debug.call_args_list]
    assert events == [
        "connection.bytes_sent",
        "connection.bytes_received",
        "connection.stream_closed",
    ]
    assert logger.debug.call_args_list[0].kwargs["preview"] == b"ping"
    assert raw.eof_sent
    assert raw.closed


@pytest.mark.asyncio
async def test_observed_stream_propagates_end_of_stream():
    stream = ObservedStream(RecordingStream(), MagicMock(spec=LoggingFacade))
    with pytest.raises(anyio.EndOfStream):
        await stream.receive()
