"""
Database transport for the hostkit connection manager.

The manager talks to a driver through the small protocols below. Any client
library can be plugged in by adapting it to this shape. The bundled
SQLiteDriver wraps the standard sqlite3 module.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any, Iterable, List, Optional, Protocol, Sequence

MEMORY_DATABASE = ":memory:"


class Statement(Protocol):
    def execute(self, sql: str, params: Sequence[Any] = ()) -> Any:
        ...

    def close(self) -> None:
        ...


class PreparedStatement(Protocol):
    text: str

    def execute(self, params: Sequence[Any] = ()) -> Any:
        ...

    def close(self) -> None:
        ...


class DriverConnection(Protocol):
    """A live connection as seen by the connection manager."""

    @property
    def auto_commit(self) -> bool:
        ...

    def create_statement(self) -> Statement:
        ...

    def prepare_statement(self, text: str) -> PreparedStatement:
        ...

    def is_valid(self, timeout: int) -> bool:
        ...

    def set_auto_commit(self, enabled: bool) -> None:
        ...

    def commit(self) -> None:
        ...

    def rollback(self) -> None:
        ...

    def close(self) -> None:
        ...


class Driver(Protocol):
    def connect(self, address: str, principal: str, secret: str) -> DriverConnection:
        ...


def resolve_sqlite_path(address: str) -> str:
    """
    Map a connection address to a sqlite3 database argument.

    Supported forms:
        sqlite:///data/app.db     -> data/app.db
        sqlite:////var/app.db     -> /var/app.db
        sqlite:///:memory:        -> :memory:
        sqlite::memory:           -> :memory:
        data/app.db               -> data/app.db

    Raises:
        sqlite3.OperationalError: If the address uses another scheme.
    """
    if address.startswith("sqlite:///"):
        return address[len("sqlite:///"):]
    if address.startswith("sqlite://"):
        raise sqlite3.OperationalError(f"sqlite addresses take no host: {address}")
    if address.startswith("sqlite:"):
        return address[len("sqlite:"):]
    if "://" in address:
        scheme = address.split("://", 1)[0]
        raise sqlite3.OperationalError(f"unsupported address scheme for sqlite: {scheme}")
    return address


class SQLiteStatement:
    """General statement: executes any SQL text handed to it."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._cursor: Optional[sqlite3.Cursor] = None

    def execute(self, sql: str, params: Sequence[Any] = ()) -> sqlite3.Cursor:
        self._cursor = self._conn.execute(sql, params)
        return self._cursor

    def execute_query(self, sql: str, params: Sequence[Any] = ()) -> List[sqlite3.Row]:
        return self.execute(sql, params).fetchall()

    def execute_update(self, sql: str, params: Sequence[Any] = ()) -> int:
        return self.execute(sql, params).rowcount

    def close(self) -> None:
        if self._cursor is not None:
            self._cursor.close()
            self._cursor = None


class SQLitePreparedStatement:
    """Statement bound to one query template with positional (?) placeholders."""

    def __init__(self, conn: sqlite3.Connection, text: str) -> None:
        self._conn = conn
        self.text = text
        self._cursor: Optional[sqlite3.Cursor] = None

    def execute(self, params: Sequence[Any] = ()) -> sqlite3.Cursor:
        self._cursor = self._conn.execute(self.text, params)
        return self._cursor

    def execute_query(self, params: Sequence[Any] = ()) -> List[sqlite3.Row]:
        return self.execute(params).fetchall()

    def execute_update(self, params: Sequence[Any] = ()) -> int:
        return self.execute(params).rowcount

    def execute_many(self, rows: Iterable[Sequence[Any]]) -> int:
        self._cursor = self._conn.executemany(self.text, rows)
        return self._cursor.rowcount

    def close(self) -> None:
        if self._cursor is not None:
            self._cursor.close()
            self._cursor = None


class SQLiteConnection:
    """
    sqlite3 connection with explicit autocommit/manual transaction control.

    sqlite3 runs with isolation_level=None, so nothing is begun implicitly.
    Manual mode issues BEGIN and re-opens a transaction after every commit or
    rollback; leaving manual mode commits whatever is pending.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._auto_commit = True
        self._closed = False

    @property
    def auto_commit(self) -> bool:
        return self._auto_commit

    @property
    def raw(self) -> sqlite3.Connection:
        return self._conn

    def create_statement(self) -> SQLiteStatement:
        self._ensure_open()
        return SQLiteStatement(self._conn)

    def prepare_statement(self, text: str) -> SQLitePreparedStatement:
        self._ensure_open()
        self._compile(text)
        return SQLitePreparedStatement(self._conn, text)

    def is_valid(self, timeout: int) -> bool:
        """Probe with SELECT 1. The timeout is only checked for sign; a local database does not block."""
        if timeout < 0:
            raise ValueError("timeout must not be negative")
        if self._closed:
            return False
        try:
            self._conn.execute("SELECT 1").fetchone()
        except sqlite3.ProgrammingError:
            return False
        return True

    def set_auto_commit(self, enabled: bool) -> None:
        self._ensure_open()
        if enabled == self._auto_commit:
            return
        if enabled:
            if self._conn.in_transaction:
                self._conn.execute("COMMIT")
        else:
            self._conn.execute("BEGIN")
        self._auto_commit = enabled

    def commit(self) -> None:
        self._ensure_open()
        # Raises "cannot commit - no transaction is active" in autocommit mode
        self._conn.execute("COMMIT")
        if not self._auto_commit:
            self._conn.execute("BEGIN")

    def rollback(self) -> None:
        self._ensure_open()
        self._conn.execute("ROLLBACK")
        if not self._auto_commit:
            self._conn.execute("BEGIN")

    def close(self) -> None:
        if self._closed:
            return
        self._conn.close()
        self._closed = True

    def _ensure_open(self) -> None:
        if self._closed:
            raise sqlite3.ProgrammingError("Cannot operate on a closed database.")

    def _compile(self, text: str) -> None:
        # EXPLAIN compiles the statement without running it. A binding count
        # mismatch is only reported after a successful compile, so it means
        # the text itself is valid.
        try:
            self._conn.execute(f"EXPLAIN {text}").close()
        except sqlite3.ProgrammingError as exc:
            if not str(exc).startswith("Incorrect number of bindings"):
                raise


class SQLiteDriver:
    """Driver for the standard library sqlite3 module."""

    def __init__(self, timeout: float = 5.0) -> None:
        self.timeout = timeout

    def connect(self, address: str, principal: str, secret: str) -> SQLiteConnection:
        # SQLite has no authentication; principal and secret are not used
        database = resolve_sqlite_path(address)
        if database != MEMORY_DATABASE:
            Path(database).parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(
            database,
            timeout=self.timeout,
            isolation_level=None,
            check_same_thread=False,
        )
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return SQLiteConnection(conn)


__all__ = [
    "Driver",
    "DriverConnection",
    "PreparedStatement",
    "SQLiteConnection",
    "SQLiteDriver",
    "SQLitePreparedStatement",
    "SQLiteStatement",
    "Statement",
    "resolve_sqlite_path",
]
