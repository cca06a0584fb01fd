"""
Endpoint descriptors.

An :class:`EndpointDescriptor` is the already-resolved target of a client:
which transport kind to use and where to find the daemon. It carries no
behavior beyond validation and parsing.
"""

import enum
import os
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit

from dockwire.errors import ConfigurationError

DEFAULT_SOCKET_PATH = "/var/run/docker.sock"

#: Sentinel for "no port could be resolved for this endpoint".
NO_PORT = -1


class Scheme(str, enum.Enum):
    """Transport kind selected by an endpoint."""

    LOCAL = "local"
    NETWORK = "network"
    NETWORK_SECURE = "network-secure"

    @property
    def is_secure(self) -> bool:
        return self is Scheme.NETWORK_SECURE


@dataclass(frozen=True)
class TlsConfig:
    """Certificate, key and trust material for a client-mode TLS session."""

    ca_cert: Optional[str] = None
    """Path to the CA bundle used to verify the daemon certificate."""

    client_cert: Optional[str] = None
    """Path to the client certificate presented to the daemon."""

    client_key: Optional[str] = None
    """Path to the private key for ``client_cert``."""

    @classmethod
    def from_cert_path(cls, cert_path: str) -> "TlsConfig":
        """Build a config from a directory holding ca.pem, cert.pem and key.pem.

        Args:
            cert_path: Directory containing the certificate triple.

        Returns:
            A TlsConfig pointing at the files in that directory.
        """
        cert_path = os.path.expanduser(cert_path)
        return cls(
            ca_cert=os.path.join(cert_path, "ca.pem"),
            client_cert=os.path.join(cert_path, "cert.pem"),
            client_key=os.path.join(cert_path, "key.pem"),
        )


@dataclass(frozen=True)
class EndpointDescriptor:
    """Resolved daemon endpoint.

    ``socket_path`` is meaningful only for :attr:`Scheme.LOCAL`; ``host`` and
    ``port`` only for the network schemes. A port of :data:`NO_PORT` means no
    port could be resolved.
    """

    scheme: Scheme
    host: str = ""
    port: int = NO_PORT
    socket_path: str = ""
    tls: Optional[TlsConfig] = None

    def __post_init__(self):
        if not isinstance(self.scheme, Scheme):
            raise ConfigurationError(f"Unrecognized endpoint scheme: {self.scheme!r}")
        if self.scheme is Scheme.LOCAL:
            if not self.socket_path:
                raise ConfigurationError("Local endpoint requires a socket path")
        elif not self.host:
            raise ConfigurationError(f"{self.scheme.value} endpoint requires a host")

    @property
    def uri(self) -> str:
        """Render the endpoint as a URI, for logs and error messages."""
        if self.scheme is Scheme.LOCAL:
            return f"unix://{self.socket_path}"
        prefix = "https" if self.scheme.is_secure else "http"
        if self.port == NO_PORT:
            return f"{prefix}://{self.host}"
        return f"{prefix}://{self.host}:{self.port}"

    @classmethod
    def local(cls, socket_path: str = DEFAULT_SOCKET_PATH) -> "EndpointDescriptor":
        return cls(scheme=Scheme.LOCAL, socket_path=socket_path)

    @classmethod
    def network(
        cls, host: str, port: int = NO_PORT, tls: Optional[TlsConfig] = None
    ) -> "EndpointDescriptor":
        scheme = Scheme.NETWORK_SECURE if tls is not None else Scheme.NETWORK
        return cls(scheme=scheme, host=host, port=port, tls=tls)


def parse_endpoint(uri: str, tls: Optional[TlsConfig] = None) -> EndpointDescriptor:
    """Parse a daemon URI into an endpoint descriptor.

    Supported forms are ``unix:///path``, ``http://host[:port]``,
    ``https://host[:port]`` and ``tcp://host[:port]``. A ``tcp`` URI is secured
    when TLS material is supplied.

    Args:
        uri: The endpoint URI.
        tls: Optional TLS material, kept for the secured network scheme only.

    Returns:
        The parsed endpoint.

    Raises:
        ConfigurationError: If the URI is empty, has an unknown scheme, or
            names a network endpoint without a host.
    """
    if not uri:
        raise ConfigurationError("No endpoint URI configured")

    parts = urlsplit(uri.strip())
    scheme = parts.scheme.lower()

    if scheme == "unix":
        path = parts.path or parts.netloc
        if not path or path == "/":
            path = DEFAULT_SOCKET_PATH
        return EndpointDescriptor(scheme=Scheme.LOCAL, socket_path=path)

    if scheme == "http":
        kind = Scheme.NETWORK
    elif scheme == "https":
        kind = Scheme.NETWORK_SECURE
    elif scheme == "tcp":
        kind = Scheme.NETWORK_SECURE if tls is not None else Scheme.NETWORK
    else:
        raise ConfigurationError(f"Unrecognized endpoint scheme in {uri!r}")

    try:
        port = parts.port
    except ValueError as e:
        raise ConfigurationError(f"Invalid port in {uri!r}: {e}") from e

    if not parts.hostname:
        raise ConfigurationError(f"No host configured in {uri!r}")

    return EndpointDescriptor(
        scheme=kind,
        host=parts.hostname,
        port=NO_PORT if port is None else port,
        tls=tls if kind.is_secure else None,
    )
