"""
Exceptions raised by the hostkit connection manager.

Configuration problems (InvalidCredentials, NotConfigured) are raised straight
to the caller. Connection, statement and transaction failures wrap the driver
error that caused them.
"""


class HostkitError(Exception):
    """Base class for all hostkit errors."""

    pass


class DatabaseError(HostkitError):
    """Base class for connection manager errors."""

    pass


class InvalidCredentials(DatabaseError, ValueError):
    """Raised when configure() receives an empty address/principal or a missing secret."""

    pass


class NotConfigured(DatabaseError, RuntimeError):
    """Raised when a connection is requested before configure() was called."""

    pass


class ConnectionFailed(DatabaseError):
    """Raised when the driver cannot open the connection or the health probe errors."""

    pass


class StatementError(DatabaseError):
    """Raised when the driver rejects statement text."""

    pass


class TransactionError(DatabaseError):
    """Raised when a transaction boundary is rejected."""

    pass


__all__ = [
    "HostkitError",
    "DatabaseError",
    "InvalidCredentials",
    "NotConfigured",
    "ConnectionFailed",
    "StatementError",
    "TransactionError",
]
