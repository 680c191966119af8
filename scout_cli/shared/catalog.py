"""Typed information_schema rows and the catalog queries that produce them."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Mapping, Sequence

from .database import QueryExecutor, Row
from .utils import qualified_name, quote_identifier

SYSTEM_SCHEMAS = frozenset({"information_schema", "performance_schema", "mysql", "sys"})

SHOW_DATABASES_SQL = "SHOW DATABASES"

TABLE_STATS_SQL = """
SELECT
    t.TABLE_NAME AS table_name,
    t.ENGINE AS engine,
    t.TABLE_ROWS AS table_rows,
    t.DATA_LENGTH AS data_length,
    t.INDEX_LENGTH AS index_length,
    t.AUTO_INCREMENT AS auto_increment,
    t.CREATE_TIME AS create_time,
    t.UPDATE_TIME AS update_time,
    t.TABLE_COMMENT AS table_comment
FROM information_schema.TABLES t
WHERE t.TABLE_SCHEMA = %s
ORDER BY (COALESCE(t.DATA_LENGTH, 0) + COALESCE(t.INDEX_LENGTH, 0)) DESC, t.TABLE_NAME
LIMIT %s
""".strip()

TABLE_SIZES_SQL = """
SELECT
    TABLE_NAME AS table_name,
    TABLE_ROWS AS table_rows,
    ROUND((COALESCE(DATA_LENGTH, 0) + COALESCE(INDEX_LENGTH, 0)) / 1024 / 1024, 2) AS size_mb
FROM information_schema.TABLES
WHERE TABLE_SCHEMA = %s
ORDER BY (COALESCE(DATA_LENGTH, 0) + COALESCE(INDEX_LENGTH, 0)) DESC
""".strip()

FOREIGN_KEYS_SQL = """
SELECT
    kcu.TABLE_NAME AS source_table,
    kcu.COLUMN_NAME AS source_column,
    kcu.REFERENCED_TABLE_NAME AS target_table,
    kcu.REFERENCED_COLUMN_NAME AS target_column,
    kcu.CONSTRAINT_NAME AS constraint_name,
    rc.UPDATE_RULE AS update_rule,
    rc.DELETE_RULE AS delete_rule
FROM information_schema.KEY_COLUMN_USAGE kcu
LEFT JOIN information_schema.REFERENTIAL_CONSTRAINTS rc
    ON rc.CONSTRAINT_SCHEMA = kcu.CONSTRAINT_SCHEMA
    AND rc.CONSTRAINT_NAME = kcu.CONSTRAINT_NAME
WHERE kcu.TABLE_SCHEMA = %s
    AND kcu.REFERENCED_TABLE_SCHEMA = kcu.TABLE_SCHEMA
    AND kcu.REFERENCED_TABLE_NAME IS NOT NULL
""".strip()

FOREIGN_KEYS_ORDER = "ORDER BY kcu.TABLE_NAME, kcu.CONSTRAINT_NAME, kcu.ORDINAL_POSITION"

REFERENCED_BY_SQL = """
SELECT
    TABLE_NAME AS referencing_table,
    COLUMN_NAME AS referencing_column,
    REFERENCED_COLUMN_NAME AS referenced_column,
    CONSTRAINT_NAME AS constraint_name
FROM information_schema.KEY_COLUMN_USAGE
WHERE REFERENCED_TABLE_SCHEMA = %s AND REFERENCED_TABLE_NAME = %s
ORDER BY TABLE_NAME, CONSTRAINT_NAME, ORDINAL_POSITION
""".strip()

COLUMNS_SQL = """
SELECT
    COLUMN_NAME AS column_name,
    DATA_TYPE AS data_type,
    COLUMN_TYPE AS column_type,
    IS_NULLABLE AS is_nullable,
    COLUMN_KEY AS column_key,
    COLUMN_DEFAULT AS column_default,
    EXTRA AS extra,
    COLUMN_COMMENT AS column_comment,
    CHARACTER_MAXIMUM_LENGTH AS character_maximum_length,
    NUMERIC_PRECISION AS numeric_precision
FROM information_schema.COLUMNS
WHERE TABLE_SCHEMA = %s AND TABLE_NAME = %s
ORDER BY ORDINAL_POSITION
""".strip()

CONSTRAINTS_SQL = """
SELECT
    tc.CONSTRAINT_NAME AS constraint_name,
    tc.CONSTRAINT_TYPE AS constraint_type,
    kcu.COLUMN_NAME AS column_name
FROM information_schema.TABLE_CONSTRAINTS tc
LEFT JOIN information_schema.KEY_COLUMN_USAGE kcu
    ON kcu.CONSTRAINT_SCHEMA = tc.CONSTRAINT_SCHEMA
    AND kcu.CONSTRAINT_NAME = tc.CONSTRAINT_NAME
    AND kcu.TABLE_NAME = tc.TABLE_NAME
WHERE tc.TABLE_SCHEMA = %s AND tc.TABLE_NAME = %s
ORDER BY tc.CONSTRAINT_NAME, kcu.ORDINAL_POSITION
""".strip()


def _field(row: Mapping[str, Any], name: str, default: Any = None) -> Any:
    """Read a catalog field regardless of the case the server labelled it with."""
    if name in row:
        return row[name]
    upper = name.upper()
    if upper in row:
        return row[upper]
    return default


def _optional_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    return int(value)


@dataclass(frozen=True, slots=True)
class ColumnRow:
    """One column as described by information_schema.COLUMNS or DESCRIBE."""

    name: str
    data_type: str
    nullable: bool
    key: str = ""
    extra: str = ""
    default: Any = None
    comment: str = ""
    max_length: int | None = None
    numeric_precision: int | None = None
    column_type: str | None = None

    @property
    def is_primary_key(self) -> bool:
        return self.key.upper() == "PRI"

    @property
    def is_auto_increment(self) -> bool:
        return "auto_increment" in self.extra.lower()

    @classmethod
    def from_catalog(cls, row: Mapping[str, Any]) -> ColumnRow:
        return cls(
            name=str(_field(row, "column_name")),
            data_type=str(_field(row, "data_type") or "").lower(),
            nullable=str(_field(row, "is_nullable", "NO")).upper() == "YES",
            key=str(_field(row, "column_key") or ""),
            extra=str(_field(row, "extra") or ""),
            default=_field(row, "column_default"),
            comment=str(_field(row, "column_comment") or ""),
            max_length=_optional_int(_field(row, "character_maximum_length")),
            numeric_precision=_optional_int(_field(row, "numeric_precision")),
            column_type=_field(row, "column_type"),
        )

    @classmethod
    def from_describe(cls, row: Mapping[str, Any]) -> ColumnRow:
        column_type = str(row.get("Type") or "")
        return cls(
            name=str(row["Field"]),
            data_type=column_type.split("(", 1)[0].split(" ", 1)[0].lower(),
            nullable=str(row.get("Null") or "NO").upper() == "YES",
            key=str(row.get("Key") or ""),
            extra=str(row.get("Extra") or ""),
            default=row.get("Default"),
            column_type=column_type,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class ForeignKeyRow:
    """A directed foreign-key edge between two tables of one database."""

    source_table: str
    source_column: str
    target_table: str
    target_column: str
    constraint_name: str | None = None
    update_rule: str | None = None
    delete_rule: str | None = None

    @classmethod
    def from_catalog(cls, row: Mapping[str, Any]) -> ForeignKeyRow:
        return cls(
            source_table=str(_field(row, "source_table")),
            source_column=str(_field(row, "source_column")),
            target_table=str(_field(row, "target_table")),
            target_column=str(_field(row, "target_column")),
            constraint_name=_field(row, "constraint_name"),
            update_rule=_field(row, "update_rule"),
            delete_rule=_field(row, "delete_rule"),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class TableStatsRow:
    """Table-level statistics from information_schema.TABLES."""

    name: str
    engine: str | None = None
    row_count: int | None = None
    data_length: int | None = None
    index_length: int | None = None
    auto_increment: int | None = None
    create_time: Any = None
    update_time: Any = None
    comment: str = ""

    @property
    def total_size(self) -> int:
        return (self.data_length or 0) + (self.index_length or 0)

    @classmethod
    def from_catalog(cls, row: Mapping[str, Any]) -> TableStatsRow:
        return cls(
            name=str(_field(row, "table_name")),
            engine=_field(row, "engine"),
            row_count=_optional_int(_field(row, "table_rows")),
            data_length=_optional_int(_field(row, "data_length")),
            index_length=_optional_int(_field(row, "index_length")),
            auto_increment=_optional_int(_field(row, "auto_increment")),
            create_time=_field(row, "create_time"),
            update_time=_field(row, "update_time"),
            comment=str(_field(row, "table_comment") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Catalog fetchers


def fetch_database_names(executor: QueryExecutor) -> list[str]:
    """Return user databases visible to the connection, system schemas excluded."""
    rows = executor.execute(SHOW_DATABASES_SQL)
    names = [str(_first_value(row)) for row in rows]
    return [name for name in names if name.lower() not in SYSTEM_SCHEMAS]


def fetch_table_stats(executor: QueryExecutor, database: str, limit: int) -> list[TableStatsRow]:
    """Return at most `limit` tables, largest on-disk size first."""
    rows = executor.execute(TABLE_STATS_SQL, (database, limit))
    stats = [TableStatsRow.from_catalog(row) for row in rows]
    stats.sort(key=lambda table: table.total_size, reverse=True)
    return stats[:limit]


def fetch_table_sizes(executor: QueryExecutor, database: str) -> list[Row]:
    return executor.execute(TABLE_SIZES_SQL, (database,))


def fetch_foreign_keys(
    executor: QueryExecutor, database: str, table: str | None = None
) -> list[ForeignKeyRow]:
    """Return outgoing foreign keys for a whole database or a single table."""
    if table is None:
        rows = executor.execute(f"{FOREIGN_KEYS_SQL}\n{FOREIGN_KEYS_ORDER}", (database,))
    else:
        rows = executor.execute(
            f"{FOREIGN_KEYS_SQL}\n    AND kcu.TABLE_NAME = %s\n{FOREIGN_KEYS_ORDER}",
            (database, table),
        )
    return [ForeignKeyRow.from_catalog(row) for row in rows]


def fetch_referenced_by(executor: QueryExecutor, database: str, table: str) -> list[Row]:
    rows = executor.execute(REFERENCED_BY_SQL, (database, table))
    return [
        {
            "referencing_table": _field(row, "referencing_table"),
            "referencing_column": _field(row, "referencing_column"),
            "referenced_column": _field(row, "referenced_column"),
            "constraint_name": _field(row, "constraint_name"),
        }
        for row in rows
    ]


def fetch_columns(executor: QueryExecutor, database: str, table: str) -> list[ColumnRow]:
    rows = executor.execute(COLUMNS_SQL, (database, table))
    return [ColumnRow.from_catalog(row) for row in rows]


def describe_table(executor: QueryExecutor, database: str | None, table: str) -> list[ColumnRow]:
    rows = executor.execute(f"DESCRIBE {qualified_name(database, table)}")
    return [ColumnRow.from_describe(row) for row in rows]


def fetch_indexes(executor: QueryExecutor, database: str | None, table: str) -> list[Row]:
    rows = executor.execute(f"SHOW INDEX FROM {qualified_name(database, table)}")
    return [
        {
            "name": row.get("Key_name"),
            "column": row.get("Column_name"),
            "sequence": row.get("Seq_in_index"),
            "unique": str(row.get("Non_unique", 1)) == "0",
            "index_type": row.get("Index_type"),
        }
        for row in rows
    ]


def fetch_constraints(executor: QueryExecutor, database: str, table: str) -> list[Row]:
    rows = executor.execute(CONSTRAINTS_SQL, (database, table))
    return [
        {
            "constraint_name": _field(row, "constraint_name"),
            "constraint_type": _field(row, "constraint_type"),
            "column_name": _field(row, "column_name"),
        }
        for row in rows
    ]


def fetch_sample_rows(
    executor: QueryExecutor, database: str | None, table: str, limit: int
) -> list[Row]:
    # LIMIT is inlined as a validated int; MySQL rejects placeholders there on some versions.
    return executor.execute(f"SELECT * FROM {qualified_name(database, table)} LIMIT {int(limit)}")


def count_rows(executor: QueryExecutor, database: str | None, table: str) -> int:
    rows = executor.execute(f"SELECT COUNT(*) AS total FROM {qualified_name(database, table)}")
    if not rows:
        return 0
    return int(_field(rows[0], "total", 0) or 0)


def list_tables(executor: QueryExecutor, database: str) -> list[str]:
    rows = executor.execute(f"SHOW TABLES FROM {quote_identifier(database)}")
    return [str(_first_value(row)) for row in rows]


def _first_value(row: Mapping[str, Any]) -> Any:
    for value in row.values():
        return value
    return None


def columns_to_dicts(columns: Sequence[ColumnRow]) -> list[dict[str, Any]]:
    return [column.to_dict() for column in columns]
