from __future__ import annotations

from typing import Any

import pymysql
import pytest

from scout_cli.shared import database
from scout_cli.shared.config import AppConfig
from scout_cli.shared.database import MySQLExecutor, RecordingExecutor, open_executor
from scout_cli.shared.exceptions import DatabaseConnectionError, QueryError


class FakeCursor:
    def __init__(self, connection: FakeConnection) -> None:
        self.connection = connection
        self.description: tuple[Any, ...] | None = None
        self._rows: list[dict[str, Any]] = []

    def __enter__(self) -> FakeCursor:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        return None

    def execute(self, sql: str, params: Any) -> None:
        self.connection.executed.append((sql, params))
        if self.connection.error is not None:
            raise self.connection.error
        if sql.startswith("SELECT"):
            self.description = (("value",),)
            self._rows = [{"value": 1}]

    def fetchall(self) -> list[dict[str, Any]]:
        return self._rows


class FakeConnection:
    def __init__(self) -> None:
        self.executed: list[tuple[str, Any]] = []
        self.error: Exception | None = None
        self.closed = False

    def cursor(self) -> FakeCursor:
        return FakeCursor(self)

    def close(self) -> None:
        self.closed = True


def test_executor_returns_dict_rows_and_binds_params() -> None:
    connection = FakeConnection()
    executor = MySQLExecutor(connection, database="shop")  # type: ignore[arg-type]

    rows = executor.execute("SELECT %s AS value", (1,))

    assert rows == [{"value": 1}]
    assert connection.executed == [("SELECT %s AS value", (1,))]


def test_executor_returns_empty_list_without_result_set() -> None:
    connection = FakeConnection()
    executor = MySQLExecutor(connection)  # type: ignore[arg-type]

    assert executor.execute("SET SESSION TRANSACTION READ ONLY") == []
    assert connection.executed[0][1] is None


def test_executor_wraps_driver_errors() -> None:
    connection = FakeConnection()
    connection.error = pymysql.err.ProgrammingError(1146, "Table 'shop.nope' doesn't exist")
    executor = MySQLExecutor(connection)  # type: ignore[arg-type]

    with pytest.raises(QueryError, match=r"\(1146\) Table 'shop.nope' doesn't exist"):
        executor.execute("SELECT * FROM nope")


def test_open_executor_sets_read_only_session(monkeypatch: pytest.MonkeyPatch, app_config: AppConfig) -> None:
    connection = FakeConnection()
    seen: dict[str, Any] = {}

    def fake_connect(**kwargs: Any) -> FakeConnection:
        seen.update(kwargs)
        return connection

    monkeypatch.setattr(database.pymysql, "connect", fake_connect)

    with open_executor(app_config, "analytics") as executor:
        assert executor.database == "analytics"

    assert seen["database"] == "analytics"
    assert seen["host"] == "localhost"
    assert seen["read_timeout"] == 60
    assert seen["cursorclass"] is pymysql.cursors.DictCursor
    assert "ssl" not in seen
    assert connection.executed[0][0] == "SET SESSION TRANSACTION READ ONLY"
    assert connection.closed is True


def test_open_executor_falls_back_to_configured_database(
    monkeypatch: pytest.MonkeyPatch, app_config: AppConfig
) -> None:
    seen: dict[str, Any] = {}

    def fake_connect(**kwargs: Any) -> FakeConnection:
        seen.update(kwargs)
        return FakeConnection()

    monkeypatch.setattr(database.pymysql, "connect", fake_connect)

    with open_executor(app_config):
        pass

    assert seen["database"] == "shop"


def test_open_executor_reports_unreachable_server(
    monkeypatch: pytest.MonkeyPatch, app_config: AppConfig
) -> None:
    def refuse(**kwargs: Any) -> FakeConnection:
        raise pymysql.err.OperationalError(2003, "Can't connect to MySQL server")

    monkeypatch.setattr(database.pymysql, "connect", refuse)

    with pytest.raises(DatabaseConnectionError, match="Cannot connect to MySQL at localhost:3306"):
        with open_executor(app_config):
            pass  # pragma: no cover


def test_recording_executor_keeps_statement_order(fake_executor) -> None:
    fake_executor.on("SELECT 1", [{"one": 1}])
    recorder = RecordingExecutor(fake_executor)

    assert recorder.execute("SELECT 1") == [{"one": 1}]
    recorder.execute("SHOW TABLES")

    assert recorder.statements == ["SELECT 1", "SHOW TABLES"]
    assert fake_executor.statements == ["SELECT 1", "SHOW TABLES"]
