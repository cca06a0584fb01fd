"""
Pytest configuration for dockwire tests.

This module contains fixtures for running mock daemons over Unix-domain
sockets, plain TCP and TLS, plus transport settings tuned for fast tests.
"""

import os
import shutil
import tempfile
from unittest.mock import MagicMock

import pytest
import structlog

from dockwire.config import TransportSettings
from dockwire.endpoint import EndpointDescriptor, TlsConfig
from dockwire.transport.manager import TransportManager
from tests.certs import build_bundle
from tests.mock_daemon import MockDaemon


@pytest.fixture(autouse=True)
def reset_structlog():
    """Undo any structlog configuration a test installed."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def settings():
    """Transport settings with short timeouts."""
    return TransportSettings(connect_timeout=2.0, workers=2, shutdown_grace_period=0.2)


@pytest.fixture
def socket_dir():
    """A short temporary directory; AF_UNIX paths are limited to ~100 bytes."""
    path = tempfile.mkdtemp(prefix="dw-")
    yield path
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def unix_daemon(socket_dir):
    """Mock daemon listening on a Unix-domain socket."""
    daemon = MockDaemon().start_unix(os.path.join(socket_dir, "docker.sock"))
    yield daemon
    daemon.stop()


@pytest.fixture
def local_endpoint(unix_daemon):
    return EndpointDescriptor.local(unix_daemon.socket_path)


@pytest.fixture
def tcp_daemon():
    """Mock daemon listening on 127.0.0.1 without TLS."""
    daemon = MockDaemon().start_tcp()
    yield daemon
    daemon.stop()


@pytest.fixture(scope="session")
def certs(tmp_path_factory):
    """CA, client and server certificates for the TLS tests."""
    return build_bundle(str(tmp_path_factory.mktemp("certs")))


@pytest.fixture
def tls_config(certs):
    return TlsConfig.from_cert_path(certs.directory)


@pytest.fixture
def tls_daemon(certs):
    """Mock daemon on 127.0.0.1 whose certificate names 127.0.0.1."""
    daemon = MockDaemon(ssl_context=certs.server_context()).start_tcp()
    yield daemon
    daemon.stop()


@pytest.fixture
def mismatched_tls_daemon(certs):
    """Mock daemon on 127.0.0.1 whose certificate names another address."""
    daemon = MockDaemon(ssl_context=certs.server_context(mismatched=True)).start_tcp()
    yield daemon
    daemon.stop()


@pytest.fixture
def manager(settings):
    """An uninitialized transport manager, shut down after the test."""
    manager = TransportManager(settings=settings)
    yield manager
    manager.shutdown()


# Mock Telemetry
@pytest.fixture
def mock_telemetry(monkeypatch):
    """Fixture providing mock telemetry components."""
    mock_tracer = MagicMock()
    mock_span = MagicMock()
    mock_span.__enter__.return_value = mock_span
    mock_tracer.start_as_current_span.return_value = mock_span
    mock_tracer.start_span.return_value = mock_span

    mock_logger = MagicMock()

    mock_get_telemetry = MagicMock(return_value=(mock_tracer, mock_logger))
    monkeypatch.setattr("dockwire.client.get_telemetry", mock_get_telemetry)

    return mock_tracer, mock_logger
