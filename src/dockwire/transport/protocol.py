"""
Protocols for the transport layer.

A connection's data path is an ordered list of stages. Each stage receives
the byte stream produced by the stage before it (the first stage receives the
raw socket stream) and returns the stream the next stage builds on.
"""

from typing import Protocol, runtime_checkable

from anyio.abc import ByteStream


@runtime_checkable
class Stage(Protocol):
    """One named processing stage in a connection pipeline."""

    name: str

    def wrap(self, stream: ByteStream) -> ByteStream:
        """Return the stream seen by the stages after this one.

        Args:
            stream: The stream produced by the previous stage.

        Returns:
            A stream layered on ``stream``, or ``stream`` itself for stages
            that do not transform bytes.
        """
        ...
