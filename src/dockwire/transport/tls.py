"""
TLS negotiation for network connections.

Peer verification is always on: the daemon certificate must chain to the
configured trust material and its subject must match the target host under
the standard HTTPS identity rules (IP addresses included). Neither check can
be switched off through this module.
"""

import ssl
import threading
from typing import Any, Dict, Optional, Tuple

import anyio
from anyio.abc import ByteStream
from anyio.streams.tls import TLSAttribute, TLSStream

from dockwire.endpoint import TlsConfig
from dockwire.telemetry import get_telemetry
from dockwire.transport.errors import TlsSetupError

_tracer, _logger = get_telemetry("dockwire.transport.tls")


class SecureSessionStage:
    """Pipeline stage holding an established client-mode TLS session.

    The session wraps the raw socket, so this stage only accepts the raw
    socket stream as input and therefore can only be the first stage.
    """

    name = "tls"

    def __init__(self, tls_stream: TLSStream, server_hostname: str):
        self.tls_stream = tls_stream
        self.server_hostname = server_hostname

    def wrap(self, stream: ByteStream) -> ByteStream:
        if stream is not self.tls_stream.transport_stream:
            raise TlsSetupError(
                "Secure session must be the first stage of the pipeline", stage="tls"
            )
        return self.tls_stream

    @property
    def peer_certificate(self) -> Optional[Dict[str, Any]]:
        return self.tls_stream.extra(TLSAttribute.peer_certificate, None)

    @property
    def subject_alt_names(self) -> Tuple[str, ...]:
        cert = self.peer_certificate or {}
        return tuple(value for _, value in cert.get("subjectAltName", ()))

    @property
    def cipher(self) -> Optional[Tuple[str, str, int]]:
        return self.tls_stream.extra(TLSAttribute.cipher, None)

    @property
    def tls_version(self) -> Optional[str]:
        return self.tls_stream.extra(TLSAttribute.tls_version, None)


class TlsNegotiator:
    """Builds secure sessions for one network endpoint."""

    def __init__(self, host: str, port: int, tls: Optional[TlsConfig] = None):
        self.host = host
        self.port = port
        self.tls = tls or TlsConfig()
        self._context: Optional[ssl.SSLContext] = None
        self._lock = threading.Lock()

    def create_ssl_context(self) -> ssl.SSLContext:
        """Build a client context from the configured material.

        Raises:
            TlsSetupError: If the trust or key material cannot be loaded.
        """
        endpoint = f"{self.host}:{self.port}"
        try:
            context = ssl.create_default_context(
                ssl.Purpose.SERVER_AUTH, cafile=self.tls.ca_cert
            )
            if self.tls.client_cert:
                context.load_cert_chain(
                    certfile=self.tls.client_cert, keyfile=self.tls.client_key
                )
        except (OSError, ValueError) as e:
            raise TlsSetupError(
                f"Cannot load TLS material for {endpoint}: {e}",
                endpoint=endpoint,
                stage="tls",
            ) from e

        context.verify_mode = ssl.CERT_REQUIRED
        context.check_hostname = True
        return context

    @property
    def ssl_context(self) -> ssl.SSLContext:
        with self._lock:
            if self._context is None:
                self._context = self.create_ssl_context()
            return self._context

    async def negotiate(self, stream: ByteStream) -> SecureSessionStage:
        """Run the client handshake over ``stream``.

        The caller owns ``stream`` and must close it if this raises.

        Raises:
            TlsSetupError: If the context cannot be built, the handshake fails,
                or the peer identity does not match the target host.
        """
        endpoint = f"{self.host}:{self.port}"
        context = self.ssl_context

        with _tracer.start_as_current_span(
            "dockwire.tls_handshake", {"net.peer.name": self.host, "net.peer.port": self.port}
        ):
            try:
                tls_stream = await TLSStream.wrap(
                    stream,
                    server_side=False,
                    hostname=self.host,
                    ssl_context=context,
                    standard_compatible=False,
                )
            except ssl.SSLCertVerificationError as e:
                raise TlsSetupError(
                    f"Certificate verification failed for {endpoint}: {e.verify_message}",
                    endpoint=endpoint,
                    stage="tls",
                ) from e
            except (ssl.SSLError, OSError, anyio.BrokenResourceError, anyio.EndOfStream) as e:
                raise TlsSetupError(
                    f"TLS handshake with {endpoint} failed: {e!r}",
                    endpoint=endpoint,
                    stage="tls",
                ) from e

        session = SecureSessionStage(tls_stream, self.host)
        _logger.debug(
            "tls.established",
            endpoint=endpoint,
            tls_version=session.tls_version,
            cipher=session.cipher[0] if session.cipher else None,
        )
        return session
