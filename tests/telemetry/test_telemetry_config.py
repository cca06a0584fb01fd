"""
Tests for telemetry configuration.
"""

import json
import logging
from unittest.mock import patch

import pytest
import structlog

from dockwire.errors import ConfigurationError
from dockwire.telemetry.config import (
    _add_trace_context,
    configure_telemetry,
    get_env_bool,
    get_env_dict,
)


def test_get_env_bool(monkeypatch):
    monkeypatch.delenv("DOCKWIRE_TEST_BOOL", raising=False)
    assert get_env_bool("DOCKWIRE_TEST_BOOL") is False
    assert get_env_bool("DOCKWIRE_TEST_BOOL", True) is True

    for value in ("true", "1", "Yes", "T"):
        monkeypatch.setenv("DOCKWIRE_TEST_BOOL", value)
        assert get_env_bool("DOCKWIRE_TEST_BOOL") is True

    monkeypatch.setenv("DOCKWIRE_TEST_BOOL", "off")
    assert get_env_bool("DOCKWIRE_TEST_BOOL") is False


def test_get_env_dict(monkeypatch):
    monkeypatch.setenv("DOCKWIRE_TEST_DICT", "a=1, b = 2,broken")
    assert get_env_dict("DOCKWIRE_TEST_DICT") == {"a": "1", "b": "2"}

    monkeypatch.delenv("DOCKWIRE_TEST_DICT")
    assert get_env_dict("DOCKWIRE_TEST_DICT", {"x": "y"}) == {"x": "y"}


@patch("dockwire.telemetry.config.trace.set_tracer_provider")
def test_configure_telemetry(set_provider, monkeypatch):
    monkeypatch.delenv("OTEL_SDK_DISABLED", raising=False)
    monkeypatch.setenv("OTEL_RESOURCE_ATTRIBUTES", "deployment.environment=test")

    enabled = configure_telemetry(
        service_name="dockwire-test", resource_attributes={"team": "infra"}
    )

    assert enabled is True
    provider = set_provider.call_args.args[0]
    attributes = provider.resource.attributes
    assert attributes["service.name"] == "dockwire-test"
    assert attributes["deployment.environment"] == "test"
    assert attributes["team"] == "infra"


@patch("dockwire.telemetry.config.trace.set_tracer_provider")
def test_configure_telemetry_disabled(set_provider, monkeypatch):
    monkeypatch.setenv("OTEL_SDK_DISABLED", "true")

    assert configure_telemetry() is False
    set_provider.assert_not_called()


@patch("dockwire.telemetry.config.trace.set_tracer_provider")
def test_configure_unknown_exporter(set_provider):
    with pytest.raises(ConfigurationError):
        configure_telemetry(trace_exporters=["zipkin"])


def test_configure_unknown_log_level():
    with pytest.raises(ConfigurationError):
        configure_telemetry(trace_enabled=False, log_level="chatty")


def test_configured_logs_are_json():
    def capture(_, __, event_dict):
        captured.append(dict(event_dict))
        return event_dict

    captured = []
    configure_telemetry(trace_enabled=False, log_level="DEBUG", log_processors=[capture])
    stdlib_logger = logging.getLogger("dockwire.test")
    stdlib_logger.setLevel(logging.DEBUG)
    try:
        structlog.get_logger("dockwire.test").info("transport.initialized", workers=2)
    finally:
        stdlib_logger.setLevel(logging.NOTSET)

    assert captured[0]["event"] == "transport.initialized"
    assert captured[0]["level"] == "info"
    assert captured[0]["logger"] == "dockwire.test"
    assert "timestamp" in captured[0]
    json.dumps(captured[0])


def test_add_trace_context_without_span():
    event = _add_trace_context(None, None, {"event": "x"})
    assert event == {"event": "x"}
