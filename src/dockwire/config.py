"""
Configuration helpers for dockwire.

Values are resolved in order: explicit instance configuration, then
``DOCKWIRE_*`` environment variables, then defaults. The endpoint itself can
be loaded from the conventional ``DOCKER_HOST`` / ``DOCKER_TLS_VERIFY`` /
``DOCKER_CERT_PATH`` variables.
"""

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

from dockwire.endpoint import (
    DEFAULT_SOCKET_PATH,
    EndpointDescriptor,
    TlsConfig,
    parse_endpoint,
)
from dockwire.errors import ConfigurationError

ENV_PREFIX = "DOCKWIRE_"

_TRUE_VALUES = ("true", "1", "yes", "y", "t")


def get_env_config(key: str) -> Optional[str]:
    """Get a configuration value from the environment.

    Args:
        key: The configuration key, e.g. ``connect_timeout``.

    Returns:
        The value of ``DOCKWIRE_<KEY>``, or None if unset.
    """
    return os.environ.get(f"{ENV_PREFIX}{key.upper()}")


def merge_configs(*configs: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Merge configuration dictionaries, later ones taking precedence."""
    result: Dict[str, Any] = {}
    for config in configs:
        if config:
            result.update(config)
    return result


def _resolve(config: Dict[str, Any], key: str, default: Any) -> Any:
    if key in config and config[key] is not None:
        return config[key]
    env_value = get_env_config(key)
    if env_value is not None:
        return env_value
    return default


@dataclass(frozen=True)
class TransportSettings:
    """Tunables for the transport manager and its worker pool."""

    connect_timeout: float = 10.0
    workers: int = 2
    shutdown_grace_period: float = 2.0
    backend: str = "asyncio"

    def __post_init__(self):
        if self.connect_timeout <= 0:
            raise ConfigurationError(
                f"connect_timeout must be positive, got {self.connect_timeout}"
            )
        if self.workers < 1:
            raise ConfigurationError(f"workers must be at least 1, got {self.workers}")
        if self.shutdown_grace_period < 0:
            raise ConfigurationError(
                "shutdown_grace_period must not be negative, "
                f"got {self.shutdown_grace_period}"
            )

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None) -> "TransportSettings":
        """Resolve settings from instance config, the environment and defaults.

        Raises:
            ConfigurationError: If a value cannot be converted or is out of range.
        """
        config = config or {}
        defaults = cls()
        try:
            return cls(
                connect_timeout=float(
                    _resolve(config, "connect_timeout", defaults.connect_timeout)
                ),
                workers=int(_resolve(config, "workers", defaults.workers)),
                shutdown_grace_period=float(
                    _resolve(
                        config, "shutdown_grace_period", defaults.shutdown_grace_period
                    )
                ),
                backend=str(_resolve(config, "backend", defaults.backend)),
            )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid transport setting: {e}") from e


def load_endpoint_from_env() -> EndpointDescriptor:
    """Build an endpoint from DOCKER_HOST, DOCKER_TLS_VERIFY and DOCKER_CERT_PATH.

    Returns:
        The endpoint; the local default socket when DOCKER_HOST is unset.

    Raises:
        ConfigurationError: If DOCKER_HOST cannot be parsed, or TLS
            verification is requested without a certificate path.
    """
    host = os.environ.get("DOCKER_HOST", "").strip() or f"unix://{DEFAULT_SOCKET_PATH}"

    tls = None
    verify = os.environ.get("DOCKER_TLS_VERIFY", "").strip().lower()
    if verify in _TRUE_VALUES:
        cert_path = os.environ.get("DOCKER_CERT_PATH", "").strip()
        if not cert_path:
            raise ConfigurationError("DOCKER_TLS_VERIFY is set but DOCKER_CERT_PATH is not")
        tls = TlsConfig.from_cert_path(cert_path)

    return parse_endpoint(host, tls=tls)
