"""
Error hierarchy for dockwire.

Lifecycle and configuration errors live here; transport failures live in
:mod:`dockwire.transport.errors` and share the same base class.
"""


class DockwireError(Exception):
    """Base class for all dockwire errors."""


class ConfigurationError(DockwireError):
    """Missing or invalid endpoint or transport configuration.

    Always fatal to the operation that raised it and never retried.
    """


class NotInitializedError(DockwireError):
    """A connection was requested from a manager that is not running."""


class AlreadyInitializedError(DockwireError):
    """The transport manager was initialized more than once."""


class DaemonError(DockwireError):
    """The daemon answered with an error status."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        super().__init__(f"Daemon returned {status_code}: {message}")


class UnsupportedOperationError(DockwireError):
    """The requested daemon operation has no handler."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Operation not supported: {operation}")
