"""
Error hierarchy for the transport layer.

Every transport error may carry the endpoint it was raised for and the stage
(``connect``, ``tls`` or ``http``) that failed, so callers can log it without
re-deriving context.
"""

from typing import Optional

from dockwire.errors import DockwireError


class TransportError(DockwireError):
    """Base class for all transport-related errors."""

    def __init__(
        self,
        message: str,
        *,
        endpoint: Optional[str] = None,
        stage: Optional[str] = None,
    ):
        super().__init__(message)
        self.endpoint = endpoint
        self.stage = stage


class ConnectionError(TransportError):
    """Error establishing or maintaining a connection."""


class ConnectionTimeoutError(ConnectionError):
    """Connection attempt timed out."""


class ConnectionRefusedError(ConnectionError):
    """Nothing is listening at the target address or socket path."""


class MessageError(TransportError):
    """Error related to the bytes exchanged over a connection."""


class ProtocolError(MessageError):
    """The peer sent traffic that is not valid HTTP/1.1."""


class TransportSpecificError(TransportError):
    """Base class for transport-specific errors."""


class TlsSetupError(TransportSpecificError):
    """A secure session could not be established.

    Raised for unusable certificate material, TLS engine failures and peer
    identity mismatches. The connection attempt is aborted.
    """


class UnsupportedPlatformError(TransportSpecificError):
    """The selected transport is not available on this platform."""
