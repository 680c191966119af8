"""Shared pytest fixtures for the scout tool tests.

`FakeExecutor` stands in for a MySQL connection: statements are routed by
substring to canned rows (or a callable producing them) and every call is
recorded. `catalog_executor` wires it to a small two-database catalog so the
schema, analysis, and discovery paths can run without a server.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any

import pytest

from scout_cli.shared import paths
from scout_cli.shared.cache import CacheStore
from scout_cli.shared.config import AppConfig, load_config
from scout_cli.shared.logging import get_logger

Rows = list[dict[str, Any]]


class FakeExecutor:
    def __init__(self) -> None:
        self.routes: list[tuple[str, Any]] = []
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    def on(self, fragment: str, result: Any) -> FakeExecutor:
        self.routes.append((fragment, result))
        return self

    def execute(self, sql: str, params: Sequence[Any] = ()) -> Rows:
        bindings = tuple(params or ())
        self.calls.append((sql, bindings))
        for fragment, result in self.routes:
            if fragment not in sql:
                continue
            if isinstance(result, Exception):
                raise result
            if callable(result):
                result = result(sql, bindings)
            return [dict(row) for row in result]
        return []

    @property
    def statements(self) -> list[str]:
        return [sql for sql, _ in self.calls]

    def count(self, fragment: str) -> int:
        return sum(1 for sql in self.statements if fragment in sql)


class FrozenClock:
    def __init__(self, start: datetime) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> None:
        self.current += timedelta(**kwargs)


def _column(
    name: str,
    data_type: str,
    key: str = "",
    extra: str = "",
    *,
    nullable: bool = False,
) -> dict[str, Any]:
    return {
        "column_name": name,
        "data_type": data_type,
        "column_type": {"int": "int(11)", "varchar": "varchar(255)", "decimal": "decimal(10,2)"}.get(
            data_type, data_type
        ),
        "is_nullable": "YES" if nullable else "NO",
        "column_key": key,
        "column_default": None,
        "extra": extra,
        "column_comment": "",
        "character_maximum_length": 255 if data_type == "varchar" else None,
        "numeric_precision": 10 if data_type in {"int", "decimal"} else None,
    }


def _fk(source: str, column: str, target: str, target_column: str) -> dict[str, Any]:
    return {
        "source_table": source,
        "source_column": column,
        "target_table": target,
        "target_column": target_column,
        "constraint_name": f"fk_{source}_{column}",
        "update_rule": "CASCADE",
        "delete_rule": "RESTRICT",
    }


_ID = ("id", "int", "PRI", "auto_increment")

CATALOG: dict[str, dict[str, Any]] = {
    "shop": {
        "tables": {
            "customers": {
                "rows": 120,
                "data_length": 16384,
                "columns": [
                    _column(*_ID),
                    _column("customer_name", "varchar"),
                    _column("email", "varchar", nullable=True),
                ],
                "sample": [
                    {"id": 1, "customer_name": "Ada", "email": "ada@example.com"},
                    {"id": 2, "customer_name": "Grace", "email": None},
                ],
            },
            "orders": {
                "rows": 5000,
                "data_length": 262144,
                "columns": [
                    _column(*_ID),
                    _column("customer_id", "int", "MUL"),
                    _column("total_amount", "decimal"),
                    _column("created_at", "datetime"),
                ],
                "sample": [
                    {"id": 1, "customer_id": 1, "total_amount": Decimal("19.99"), "created_at": datetime(2025, 1, 2, 10)},
                    {"id": 2, "customer_id": 2, "total_amount": Decimal("5.00"), "created_at": datetime(2025, 1, 3, 11)},
                ],
            },
            "events": {
                "rows": 20000,
                "data_length": 1048576,
                "columns": [
                    _column(*_ID),
                    _column("user_id", "int", "MUL"),
                    _column("event_type", "varchar"),
                    _column("created_at", "datetime"),
                ],
                "sample": [
                    {"id": 1, "user_id": 1, "event_type": "login", "created_at": datetime(2025, 1, 1, 9)},
                    {"id": 2, "user_id": 2, "event_type": "purchase", "created_at": datetime(2025, 1, 1, 10)},
                    {"id": 3, "user_id": 1, "event_type": "login", "created_at": datetime(2025, 1, 2, 9)},
                ],
            },
        },
        "foreign_keys": [
            _fk("orders", "customer_id", "customers", "id"),
            _fk("events", "user_id", "customers", "id"),
        ],
    },
    "analytics": {
        "tables": {
            "customers": {
                "rows": 80,
                "data_length": 8192,
                "columns": [_column(*_ID), _column("customer_name", "varchar")],
                "sample": [{"id": 7, "customer_name": "Linus"}],
            },
            "page_views": {
                "rows": 90000,
                "data_length": 4194304,
                "columns": [
                    _column(*_ID),
                    _column("user_id", "int"),
                    _column("page_type", "varchar"),
                    _column("viewed_at", "timestamp"),
                ],
                "sample": [
                    {"id": 1, "user_id": 7, "page_type": "home", "viewed_at": datetime(2025, 2, 1, 8)},
                ],
            },
        },
        "foreign_keys": [],
    },
}

_QUALIFIED = re.compile(r"`([^`]+)`\.`([^`]+)`")


def _target(sql: str) -> tuple[str, str]:
    match = _QUALIFIED.search(sql)
    assert match, f"expected a qualified table in {sql!r}"
    return match.group(1), match.group(2)


def _describe_rows(database: str, table: str) -> Rows:
    return [
        {
            "Field": column["column_name"],
            "Type": column["column_type"],
            "Null": column["is_nullable"],
            "Key": column["column_key"],
            "Default": column["column_default"],
            "Extra": column["extra"],
        }
        for column in CATALOG[database]["tables"][table]["columns"]
    ]


def build_catalog_executor() -> FakeExecutor:
    def stats(sql: str, params: tuple[Any, ...]) -> Rows:
        database, limit = params
        tables = CATALOG.get(database, {"tables": {}})["tables"]
        rows = [
            {
                "table_name": name,
                "engine": "InnoDB",
                "table_rows": info["rows"],
                "data_length": info["data_length"],
                "index_length": 0,
                "auto_increment": info["rows"] + 1,
                "create_time": None,
                "update_time": None,
                "table_comment": "",
            }
            for name, info in tables.items()
        ]
        rows.sort(key=lambda row: row["data_length"], reverse=True)
        return rows[:limit]

    def foreign_keys(sql: str, params: tuple[Any, ...]) -> Rows:
        edges = CATALOG.get(params[0], {"foreign_keys": []})["foreign_keys"]
        if len(params) > 1:
            edges = [edge for edge in edges if edge["source_table"] == params[1]]
        return edges

    def referenced_by(sql: str, params: tuple[Any, ...]) -> Rows:
        database, table = params
        return [
            {
                "referencing_table": edge["source_table"],
                "referencing_column": edge["source_column"],
                "referenced_column": edge["target_column"],
                "constraint_name": edge["constraint_name"],
            }
            for edge in CATALOG[database]["foreign_keys"]
            if edge["target_table"] == table
        ]

    def columns(sql: str, params: tuple[Any, ...]) -> Rows:
        database, table = params
        return CATALOG[database]["tables"][table]["columns"]

    def sample(sql: str, params: tuple[Any, ...]) -> Rows:
        database, table = _target(sql)
        limit = int(sql.rsplit("LIMIT", 1)[1])
        return CATALOG[database]["tables"][table]["sample"][:limit]

    def count(sql: str, params: tuple[Any, ...]) -> Rows:
        database, table = _target(sql)
        return [{"total": CATALOG[database]["tables"][table]["rows"]}]

    def describe(sql: str, params: tuple[Any, ...]) -> Rows:
        return _describe_rows(*_target(sql))

    def indexes(sql: str, params: tuple[Any, ...]) -> Rows:
        database, table = _target(sql)
        return [{"Key_name": "PRIMARY", "Column_name": "id", "Seq_in_index": 1, "Non_unique": 0, "Index_type": "BTREE"}]

    def constraints(sql: str, params: tuple[Any, ...]) -> Rows:
        database, table = params
        rows = [{"constraint_name": "PRIMARY", "constraint_type": "PRIMARY KEY", "column_name": "id"}]
        rows.extend(
            {"constraint_name": edge["constraint_name"], "constraint_type": "FOREIGN KEY", "column_name": edge["source_column"]}
            for edge in CATALOG[database]["foreign_keys"]
            if edge["source_table"] == table
        )
        return rows

    def table_names(sql: str, params: tuple[Any, ...]) -> Rows:
        database = sql.rsplit("`", 2)[1]
        return [{f"Tables_in_{database}": name} for name in CATALOG[database]["tables"]]

    def sizes(sql: str, params: tuple[Any, ...]) -> Rows:
        return [
            {"table_name": name, "table_rows": info["rows"], "size_mb": round(info["data_length"] / 1048576, 2)}
            for name, info in CATALOG[params[0]]["tables"].items()
        ]

    executor = FakeExecutor()
    executor.on("SHOW DATABASES", [{"Database": "information_schema"}, {"Database": "shop"}, {"Database": "analytics"}, {"Database": "mysql"}])
    executor.on("t.ENGINE", stats)
    executor.on("AS target_table", foreign_keys)
    executor.on("REFERENCED_TABLE_SCHEMA", referenced_by)
    executor.on("TABLE_CONSTRAINTS", constraints)
    executor.on("information_schema.COLUMNS", columns)
    executor.on("size_mb", sizes)
    executor.on("SELECT COUNT(*)", count)
    executor.on("SELECT * FROM", sample)
    executor.on("DESCRIBE", describe)
    executor.on("SHOW INDEX", indexes)
    executor.on("SHOW TABLES", table_names)
    return executor


@pytest.fixture()
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture()
def catalog_executor() -> FakeExecutor:
    return build_catalog_executor()


@pytest.fixture()
def catalog() -> dict[str, dict[str, Any]]:
    return CATALOG


@pytest.fixture()
def scout_env(tmp_path: Path) -> dict[str, str]:
    return {
        paths.CONFIG_FILE_ENV: str(tmp_path / "config.yaml"),
        paths.CACHE_DIR_ENV: str(tmp_path / "cache"),
        "MYSQL_DATABASE": "shop",
    }


@pytest.fixture()
def app_config(scout_env: dict[str, str]) -> AppConfig:
    return load_config(env=scout_env)


@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock(datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture()
def cache(app_config: AppConfig, clock: FrozenClock) -> CacheStore:
    return CacheStore(app_config.cache, logger=get_logger(name="cache"), server="localhost:3306", clock=clock)


@pytest.fixture()
def executor_factory(catalog_executor: FakeExecutor) -> Callable[[str | None], Any]:
    """Executor factory for `call_tool` that records which database each call targeted."""

    opened: list[str | None] = []

    @contextmanager
    def _factory(database: str | None) -> Iterator[FakeExecutor]:
        opened.append(database)
        yield catalog_executor

    _factory.opened = opened  # type: ignore[attr-defined]
    return _factory


@pytest.fixture()
def disabled_cache(app_config: AppConfig, clock: FrozenClock) -> CacheStore:
    return CacheStore(app_config.with_cache_enabled(False).cache, logger=get_logger(), clock=clock)
