"""
dockwire: transport selection and connection lifecycle for container daemon
clients.
"""

from dockwire.client import DaemonClient
from dockwire.commands import Operation
from dockwire.config import TransportSettings, load_endpoint_from_env
from dockwire.endpoint import EndpointDescriptor, Scheme, TlsConfig, parse_endpoint
from dockwire.errors import (
    AlreadyInitializedError,
    ConfigurationError,
    DaemonError,
    DockwireError,
    NotInitializedError,
    UnsupportedOperationError,
)
from dockwire.transport import Connection, ConnectionProvider, TransportManager

__version__ = "0.1.0"

__all__ = [
    "DaemonClient",
    "Operation",
    "TransportSettings",
    "load_endpoint_from_env",
    "EndpointDescriptor",
    "Scheme",
    "TlsConfig",
    "parse_endpoint",
    "Connection",
    "ConnectionProvider",
    "TransportManager",
    "DockwireError",
    "ConfigurationError",
    "DaemonError",
    "NotInitializedError",
    "AlreadyInitializedError",
    "UnsupportedOperationError",
]
