"""
Transport layer for dockwire.

This package selects how to reach the daemon (Unix-domain socket or TCP,
optionally TLS), runs the worker pool that drives the sockets, and hands out
one fresh connection per logical operation.
"""

from dockwire.transport.connection import Connection
from dockwire.transport.errors import (
    ConnectionError,
    ConnectionRefusedError,
    ConnectionTimeoutError,
    MessageError,
    ProtocolError,
    TlsSetupError,
    TransportError,
    TransportSpecificError,
    UnsupportedPlatformError,
)
from dockwire.transport.local import LocalSocketStrategy
from dockwire.transport.manager import TransportManager
from dockwire.transport.network import NetworkStrategy
from dockwire.transport.pipeline import LoggingStage, Pipeline
from dockwire.transport.protocol import Stage
from dockwire.transport.provider import ConnectionProvider
from dockwire.transport.registry import StrategyRegistry, default_registry
from dockwire.transport.strategy import TransportStrategy
from dockwire.transport.tls import SecureSessionStage, TlsNegotiator

__all__ = [
    "Connection",
    "ConnectionProvider",
    "LocalSocketStrategy",
    "LoggingStage",
    "NetworkStrategy",
    "Pipeline",
    "SecureSessionStage",
    "Stage",
    "StrategyRegistry",
    "TlsNegotiator",
    "TransportManager",
    "TransportStrategy",
    "default_registry",
    "TransportError",
    "ConnectionError",
    "ConnectionTimeoutError",
    "ConnectionRefusedError",
    "MessageError",
    "ProtocolError",
    "TransportSpecificError",
    "TlsSetupError",
    "UnsupportedPlatformError",
]
