"""
Registry of transport strategies.

Maps each endpoint scheme to the strategy class that serves it. The transport
manager consults a registry once, at initialization.
"""

from typing import Dict, List, Type

from dockwire.config import TransportSettings
from dockwire.endpoint import EndpointDescriptor, Scheme
from dockwire.errors import ConfigurationError
from dockwire.transport.local import LocalSocketStrategy
from dockwire.transport.network import NetworkStrategy
from dockwire.transport.strategy import TransportStrategy


class StrategyRegistry:
    """Registry for transport strategies."""

    def __init__(self):
        """Initialize a new, empty strategy registry."""
        self._strategies: Dict[Scheme, Type[TransportStrategy]] = {}

    def register(self, scheme: Scheme, strategy: Type[TransportStrategy]) -> None:
        """Register a strategy class.

        Args:
            scheme: The endpoint scheme the strategy serves.
            strategy: The strategy class.
        """
        self._strategies[scheme] = strategy

    def get(self, scheme: Scheme) -> Type[TransportStrategy]:
        """Get the strategy class for a scheme.

        Args:
            scheme: The endpoint scheme.

        Returns:
            The strategy class.

        Raises:
            ConfigurationError: If no strategy serves the scheme.
        """
        try:
            return self._strategies[scheme]
        except (KeyError, TypeError):
            raise ConfigurationError(f"No transport strategy for scheme {scheme!r}") from None

    def get_registered_schemes(self) -> List[Scheme]:
        return list(self._strategies)

    def create_strategy(
        self, endpoint: EndpointDescriptor, settings: TransportSettings
    ) -> TransportStrategy:
        """Create the strategy serving ``endpoint``.

        Args:
            endpoint: The resolved endpoint.
            settings: Transport settings handed to the strategy.

        Returns:
            A new, not yet initialized strategy.

        Raises:
            ConfigurationError: If no strategy serves the endpoint's scheme.
        """
        return self.get(endpoint.scheme)(endpoint, settings)


def default_registry() -> StrategyRegistry:
    """Return a registry with the built-in local and network strategies."""
    registry = StrategyRegistry()
    registry.register(Scheme.LOCAL, LocalSocketStrategy)
    registry.register(Scheme.NETWORK, NetworkStrategy)
    registry.register(Scheme.NETWORK_SECURE, NetworkStrategy)
    return registry
