"""
HTTP framing for dockwire connections.

:class:`HttpClientCodec` is the framing stage installed on every connection;
:class:`ConnectionTransport` adapts connections to httpx.
"""

from dockwire.transport.http.codec import HttpClientCodec, ResponseHead
from dockwire.transport.http.transport import ConnectionByteStream, ConnectionTransport

__all__ = [
    "ConnectionByteStream",
    "ConnectionTransport",
    "HttpClientCodec",
    "ResponseHead",
]
