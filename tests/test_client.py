"""
Unit tests for the DaemonClient class.
"""

import pytest

from dockwire import DaemonClient, Operation
from dockwire.endpoint import DEFAULT_SOCKET_PATH, Scheme
from dockwire.errors import (
    ConfigurationError,
    DaemonError,
    UnsupportedOperationError,
)
from dockwire.transport.errors import ConnectionRefusedError


@pytest.fixture
def client(local_endpoint, settings):
    client = DaemonClient(local_endpoint, settings=settings)
    yield client
    client.close()


# Initialization Tests
def test_init_initializes_transport(client, local_endpoint):
    assert client.manager.initialized
    assert client.manager.endpoint is local_endpoint


def test_init_from_uri(unix_daemon, settings):
    with DaemonClient(f"unix://{unix_daemon.socket_path}", settings=settings) as client:
        assert client.manager.endpoint.scheme is Scheme.LOCAL
        assert client.ping() == "OK"


def test_init_from_env(monkeypatch, settings):
    monkeypatch.delenv("DOCKER_HOST", raising=False)
    monkeypatch.delenv("DOCKER_TLS_VERIFY", raising=False)
    with DaemonClient(settings=settings) as client:
        assert client.manager.endpoint.socket_path == DEFAULT_SOCKET_PATH


def test_init_with_invalid_endpoint(settings):
    with pytest.raises(ConfigurationError):
        DaemonClient("ftp://example.com", settings=settings)


def test_init_with_config(local_endpoint):
    with DaemonClient(local_endpoint, config={"workers": 1}) as client:
        assert client.manager.settings.workers == 1
        assert len(client.manager.strategy.pool.workers) == 1


# Operation Tests
def test_ping(client, unix_daemon):
    assert client.ping() == "OK"
    assert unix_daemon.requests[0].path == "/_ping"


def test_version_and_info(client):
    assert client.version()["ApiVersion"] == "1.41"
    assert client.info()["Name"] == "mock"


def test_execute_with_params(client, unix_daemon):
    unix_daemon.add_route("GET", "/containers/json", [{"Id": "abc"}])

    result = client.execute(Operation.LIST_CONTAINERS, all=True)

    assert result == [{"Id": "abc"}]
    assert unix_daemon.requests[-1].target == "/containers/json?all=1"


def test_execute_unsupported(client, unix_daemon):
    with pytest.raises(UnsupportedOperationError):
        client.execute(Operation.EVENTS)
    assert unix_daemon.requests == []


def test_execute_daemon_error(client, unix_daemon):
    unix_daemon.add_route(
        "GET", "/containers/web/json", {"message": "No such container: web"}, status=404
    )
    with pytest.raises(DaemonError) as exc_info:
        client.execute(Operation.INSPECT_CONTAINER, container_id="web")
    assert exc_info.value.status_code == 404


def test_each_operation_uses_fresh_connection(client, unix_daemon):
    client.ping()
    client.ping()
    assert unix_daemon.accepted == 2
    assert client.manager.strategy.pool.live_connections() == 0


def test_execute_without_daemon(socket_dir, settings):
    with DaemonClient(f"unix://{socket_dir}/missing.sock", settings=settings) as client:
        with pytest.raises(ConnectionRefusedError):
            client.ping()


# Telemetry Tests
def test_execute_traces_and_logs(mock_telemetry, local_endpoint, settings):
    mock_tracer, mock_logger = mock_telemetry

    with DaemonClient(local_endpoint, settings=settings) as client:
        client.ping()

    mock_tracer.start_as_current_span.assert_called_once_with(
        "dockwire.execute", {"dockwire.operation": "ping"}
    )
    events = [call.args[0] for call in mock_logger.debug.call_args_list]
    assert events == ["operation.start", "operation.complete"]


def test_execute_logs_errors(mock_telemetry, local_endpoint, settings):
    mock_tracer, mock_logger = mock_telemetry
    span = mock_tracer.start_as_current_span.return_value

    with DaemonClient(local_endpoint, settings=settings) as client:
        with pytest.raises(DaemonError):
            client.execute(Operation.INSPECT_IMAGE, name="missing")

    span.record_exception.assert_called_once()
    mock_logger.error.assert_called_once()
    assert mock_logger.error.call_args.args[0] == "operation.error"


def test_execute_without_telemetry(local_endpoint, settings):
    with DaemonClient(local_endpoint, settings=settings, enable_telemetry=False) as client:
        assert client.ping() == "OK"


# Lifecycle Tests
def test_close_shuts_down_transport(local_endpoint, settings):
    client = DaemonClient(local_endpoint, settings=settings)
    pool = client.manager.strategy.pool
    client.close()

    assert pool.stopped
    assert not client.manager.initialized
