"""
hostkit

Process-wide helpers for a hosted application: a leveled operator log that
mirrors to console and log files, and a managed single database connection
with explicit transaction control.
"""

from hostkit.core.database import ConnectionManager, Credentials
from hostkit.core.drivers import SQLiteDriver
from hostkit.core.exceptions import (
    ConnectionFailed,
    DatabaseError,
    HostkitError,
    InvalidCredentials,
    NotConfigured,
    StatementError,
    TransactionError,
)
from hostkit.utils.log_sink import LogEntry, LogLevel, LogSink

__version__ = "1.0.0"

__all__ = [
    # Connection management
    "ConnectionManager",
    "Credentials",
    "SQLiteDriver",
    # Errors
    "HostkitError",
    "DatabaseError",
    "InvalidCredentials",
    "NotConfigured",
    "ConnectionFailed",
    "StatementError",
    "TransactionError",
    # Operator log
    "LogEntry",
    "LogLevel",
    "LogSink",
]
