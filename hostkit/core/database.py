"""
Database connection management for hostkit.

This module handles:
- Storing the credentials of a single database connection
- Establishing that connection lazily, on first use
- Explicit transaction boundaries (begin/commit/rollback)
- Best-effort shutdown

A ConnectionManager owns at most one live connection. The host process
creates one, passes it to whatever needs the database, and closes it on
shutdown.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, Optional, Type

from hostkit.core.config import Config
from hostkit.core.drivers import Driver, DriverConnection, PreparedStatement, SQLiteDriver, Statement
from hostkit.core.exceptions import (
    ConnectionFailed,
    DatabaseError,
    InvalidCredentials,
    NotConfigured,
    StatementError,
    TransactionError,
)
from hostkit.utils.log_sink import DiagnosticSink, LogLevel, LogSink
from hostkit.utils.logging_config import get_logger

logger = get_logger(__name__)


def _is_blank(value: Optional[str]) -> bool:
    return value is None or str(value).strip() == ""


@dataclass(frozen=True)
class Credentials:
    """Address, principal and secret used to open the connection."""

    address: str
    principal: str
    secret: str = field(repr=False)

    @classmethod
    def validated(
        cls, address: Optional[str], principal: Optional[str], secret: Optional[str]
    ) -> "Credentials":
        """
        Build credentials after checking every field.

        An empty-string secret is allowed (passwordless accounts); only a
        missing one is rejected.

        Raises:
            InvalidCredentials: If address or principal is missing/blank, or
                secret is None.
        """
        if _is_blank(address):
            raise InvalidCredentials("Database address cannot be null or empty.")
        if _is_blank(principal):
            raise InvalidCredentials("Database user cannot be null or empty.")
        if secret is None:
            raise InvalidCredentials("Database password cannot be null.")
        return cls(address=address, principal=principal, secret=secret)


class ConnectionManager:
    """
    Single lazily-established database connection with transaction control.

    Args:
        sink: Receives operator diagnostics via emit(level, message).
            Defaults to a LogSink built from Config.
        driver: Opens connections. Defaults to SQLiteDriver.
        health_check_timeout: Seconds allowed for is_healthy().
            Defaults to Config.DB_HEALTH_CHECK_TIMEOUT.
        strict_transactions: Reject begin_transaction() while a transaction
            is already open. Off by default: a nested begin silently reuses
            the open transaction. Defaults to Config.DB_STRICT_TRANSACTIONS.
    """

    def __init__(
        self,
        sink: Optional[DiagnosticSink] = None,
        driver: Optional[Driver] = None,
        *,
        health_check_timeout: Optional[int] = None,
        strict_transactions: Optional[bool] = None,
    ) -> None:
        self._sink = sink if sink is not None else LogSink()
        self._driver = driver if driver is not None else SQLiteDriver()
        self._health_check_timeout = (
            Config.DB_HEALTH_CHECK_TIMEOUT if health_check_timeout is None else health_check_timeout
        )
        self._strict_transactions = (
            Config.DB_STRICT_TRANSACTIONS if strict_transactions is None else strict_transactions
        )
        self._credentials: Optional[Credentials] = None
        self._connection: Optional[DriverConnection] = None
        self._in_transaction = False
        self._lock = threading.Lock()

    def __enter__(self) -> "ConnectionManager":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close_connection()

    @property
    def sink(self) -> DiagnosticSink:
        return self._sink

    @property
    def is_configured(self) -> bool:
        return self._credentials is not None

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    @property
    def in_transaction(self) -> bool:
        """True between begin_transaction() and commit/rollback."""
        return self._in_transaction

    def configure(
        self, address: Optional[str], principal: Optional[str], secret: Optional[str]
    ) -> None:
        """
        Store credentials for the next connection attempt.

        Replaces earlier credentials. An already-open connection is left
        untouched. Nothing is logged and no connection is attempted.

        Raises:
            InvalidCredentials: See Credentials.validated().
        """
        self._credentials = Credentials.validated(address, principal, secret)

    def configure_from_env(self) -> None:
        """Configure from DB_URL, DB_USER and DB_PASSWORD."""
        self.configure(Config.DB_URL, Config.DB_USER, Config.DB_PASSWORD)

    def acquire_connection(self) -> DriverConnection:
        """
        Return the live connection, establishing it first if needed.

        Raises:
            NotConfigured: If configure() was never called.
            ConnectionFailed: If the driver cannot connect. The manager stays
                without a connection so a later call can try again.
        """
        if self._credentials is None:
            raise NotConfigured("configure() must be called before using the database.")

        connection = self._connection
        if connection is not None:
            return connection

        with self._lock:
            if self._connection is None:
                self._connection = self._establish(self._credentials)
            return self._connection

    def create_statement(self) -> Statement:
        connection = self.acquire_connection()
        try:
            return connection.create_statement()
        except Exception as exc:
            raise self._failure(StatementError, "Failed to create statement", exc) from exc

    def prepare_statement(self, text: str) -> PreparedStatement:
        """
        Prepare a query template with positional placeholders.

        Binding values happens on the returned statement.

        Raises:
            StatementError: If the driver rejects the text.
        """
        connection = self.acquire_connection()
        try:
            return connection.prepare_statement(text)
        except Exception as exc:
            raise self._failure(StatementError, "Failed to prepare statement", exc) from exc

    def is_healthy(self) -> bool:
        """
        Probe the connection within the health-check timeout.

        An unhealthy connection is reported as False. Only a probe that
        itself errors raises ConnectionFailed.
        """
        connection = self.acquire_connection()
        try:
            return bool(connection.is_valid(self._health_check_timeout))
        except Exception as exc:
            raise self._failure(ConnectionFailed, "Health check failed", exc) from exc

    def begin_transaction(self) -> None:
        connection = self.acquire_connection()
        if self._in_transaction and self._strict_transactions:
            message = "A transaction is already active on this connection"
            self._sink.emit(LogLevel.ERROR, message)
            raise TransactionError(message)

        try:
            connection.set_auto_commit(False)
        except Exception as exc:
            raise self._failure(TransactionError, "Failed to begin transaction", exc) from exc
        self._in_transaction = True

    def commit_transaction(self) -> None:
        # No begin check here: the driver reports a missing transaction itself
        connection = self.acquire_connection()
        try:
            connection.commit()
            connection.set_auto_commit(True)
        except Exception as exc:
            raise self._failure(TransactionError, "Failed to commit transaction", exc) from exc
        self._in_transaction = False

    def rollback_transaction(self) -> None:
        connection = self.acquire_connection()
        try:
            connection.rollback()
            connection.set_auto_commit(True)
        except Exception as exc:
            raise self._failure(TransactionError, "Failed to roll back transaction", exc) from exc
        self._in_transaction = False

    @contextmanager
    def transaction(self) -> Iterator[DriverConnection]:
        """
        Provide a transactional scope around a series of operations.

        Commits when the block finishes. When the block or the commit
        raises, rolls back and re-raises the original exception, leaving
        the connection in autocommit mode.
        """
        self.begin_transaction()
        try:
            yield self.acquire_connection()
        except Exception:
            self._rollback_quietly()
            raise

        try:
            self.commit_transaction()
        except TransactionError:
            self._rollback_quietly()
            raise

    def _rollback_quietly(self) -> None:
        # The caller re-raises the error that triggered the rollback
        try:
            self.rollback_transaction()
        except DatabaseError:
            logger.warning("transaction_rollback_failed", exc_info=True)

    def close_connection(self) -> None:
        """
        Close the connection if one is open.

        The handle is dropped even when closing fails; that failure is
        reported as a warning and never raised.
        """
        with self._lock:
            connection = self._connection
            if connection is None:
                return
            self._connection = None
            self._in_transaction = False

            try:
                connection.close()
            except Exception as exc:
                self._sink.emit(
                    LogLevel.WARNING, f"Failed to close connection to the database: {exc}"
                )
                logger.debug("db_close_failed", exc_info=True)
                return

        self._sink.emit(LogLevel.INFO, "Connection to the database was closed successfully.")

    def _establish(self, credentials: Credentials) -> DriverConnection:
        logger.debug("db_connect_attempt", principal=credentials.principal)
        try:
            connection = self._driver.connect(
                credentials.address, credentials.principal, credentials.secret
            )
        except Exception as exc:
            raise self._failure(ConnectionFailed, "Connection to the database failed", exc) from exc

        self._in_transaction = False
        self._sink.emit(LogLevel.INFO, "Connection to the database was established successfully.")
        return connection

    def _failure(
        self, error_cls: Type[DatabaseError], message: str, exc: Exception
    ) -> DatabaseError:
        self._sink.emit(LogLevel.ERROR, f"{message}: {exc}")
        logger.debug("db_operation_failed", operation=message, error=str(exc))
        return error_cls(f"{message}: {exc}")


__all__ = ["ConnectionManager", "Credentials"]
