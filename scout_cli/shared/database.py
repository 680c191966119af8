"""MySQL connection handling and the query executor used by every tool."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Protocol, Sequence

import pymysql
from pymysql.cursors import DictCursor

from .config import AppConfig, ConnectionSettings
from .exceptions import DatabaseConnectionError, QueryError

Row = dict[str, Any]


class QueryExecutor(Protocol):
    """Anything that runs parameterised read-only SQL and returns dict rows."""

    def execute(self, sql: str, params: Sequence[Any] = ()) -> list[Row]:
        ...


class MySQLExecutor:
    """QueryExecutor backed by a single PyMySQL connection.

    Statements run one at a time on the owned connection; the session is put in
    read-only transaction mode right after connecting.
    """

    def __init__(self, connection: pymysql.connections.Connection, *, database: str | None = None) -> None:
        self._connection = connection
        self.database = database

    def execute(self, sql: str, params: Sequence[Any] = ()) -> list[Row]:
        bindings = tuple(params) if params else None
        try:
            with self._connection.cursor() as cursor:
                cursor.execute(sql, bindings)
                rows = cursor.fetchall() if cursor.description else ()
        except pymysql.MySQLError as exc:
            raise QueryError(_driver_message(exc)) from exc
        return [dict(row) for row in rows]

    def close(self) -> None:
        try:
            self._connection.close()
        except pymysql.MySQLError:  # pragma: no cover - already closed by the server
            pass


class RecordingExecutor:
    """Wrap another executor and remember every statement it was asked to run."""

    def __init__(self, inner: QueryExecutor) -> None:
        self._inner = inner
        self.statements: list[str] = []

    def execute(self, sql: str, params: Sequence[Any] = ()) -> list[Row]:
        self.statements.append(sql)
        return self._inner.execute(sql, params)


def _connection_kwargs(settings: ConnectionSettings, database: str | None) -> dict[str, Any]:
    kwargs: dict[str, Any] = {
        "host": settings.host,
        "port": settings.port,
        "user": settings.user,
        "password": settings.password,
        "connect_timeout": settings.connect_timeout,
        "read_timeout": settings.read_timeout,
        "cursorclass": DictCursor,
        "charset": "utf8mb4",
        "autocommit": True,
    }
    target = database or settings.database
    if target:
        kwargs["database"] = target
    if settings.ssl:
        kwargs["ssl"] = {}
    return kwargs


def _driver_message(exc: pymysql.MySQLError) -> str:
    args = getattr(exc, "args", ())
    if len(args) >= 2:
        return f"({args[0]}) {args[1]}"
    return str(exc)


@contextmanager
def open_executor(config: AppConfig, database: str | None = None) -> Iterator[MySQLExecutor]:
    """Yield a read-only executor connected to the configured server."""
    target = database or config.connection.database
    try:
        connection = pymysql.connect(**_connection_kwargs(config.connection, target))
    except pymysql.MySQLError as exc:
        where = f"{config.connection.host}:{config.connection.port}"
        raise DatabaseConnectionError(f"Cannot connect to MySQL at {where}: {_driver_message(exc)}") from exc

    executor = MySQLExecutor(connection, database=target)
    try:
        executor.execute("SET SESSION TRANSACTION READ ONLY")
        yield executor
    finally:
        executor.close()
