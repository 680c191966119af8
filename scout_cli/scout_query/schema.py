"""Schema inspection for a single table or a whole database."""

from __future__ import annotations

from typing import Any

from scout_cli.scout_analyze.graph import build_relationship_graph
from scout_cli.shared import catalog
from scout_cli.shared.cache import SCHEMA_DIR, CacheStore, write_provenance
from scout_cli.shared.database import QueryExecutor
from scout_cli.shared.dataframe import profile_rows
from scout_cli.shared.exceptions import ValidationError
from scout_cli.shared.utils import split_qualified_table

from .types import DATABASE_OVERVIEW_TTL, DEFAULT_SAMPLE_SIZE, MAX_SAMPLE_SIZE, TABLE_SCHEMA_TTL


def get_schema(
    executor: QueryExecutor,
    cache: CacheStore,
    *,
    database: str | None,
    table: str | None = None,
    include_relationships: bool = True,
    include_sample_data: bool = False,
    sample_size: int = DEFAULT_SAMPLE_SIZE,
) -> dict[str, Any]:
    """Return table detail when `table` is given, otherwise a database overview.

    `table` may use `database.table` notation. Both views are served from the
    schema cache while fresh and written back to it on a miss.
    """
    if isinstance(sample_size, bool) or not isinstance(sample_size, int) or sample_size < 1:
        raise ValidationError("sample_size must be a positive integer.")
    sample_size = min(sample_size, MAX_SAMPLE_SIZE)

    if table:
        target_db, table_name = split_qualified_table(table, database)
        if not target_db:
            raise ValidationError(f"No database selected for table '{table}'.")
        return _table_detail(
            executor,
            cache,
            database=target_db,
            table=table_name,
            include_relationships=include_relationships,
            include_sample_data=include_sample_data,
            sample_size=sample_size,
        )
    if not database:
        raise ValidationError("No database selected; pass a database to inspect.")
    return _database_overview(executor, cache, database=database, include_relationships=include_relationships)


def _table_detail(
    executor: QueryExecutor,
    cache: CacheStore,
    *,
    database: str,
    table: str,
    include_relationships: bool,
    include_sample_data: bool,
    sample_size: int,
) -> dict[str, Any]:
    fingerprint = ["table", table, include_relationships, include_sample_data, sample_size]
    hit = cache.read("table-schema", SCHEMA_DIR, scope=database, fingerprint=fingerprint, ttl=TABLE_SCHEMA_TTL)
    if hit is not None:
        return {**hit.payload, "cache": hit.provenance()}

    columns = catalog.describe_table(executor, database, table)
    document: dict[str, Any] = {
        "database": database,
        "table": table,
        "columns": catalog.columns_to_dicts(columns),
        "indexes": catalog.fetch_indexes(executor, database, table),
        "relationships": {"foreign_keys": [], "referenced_by": []},
        "constraints": [],
    }

    if include_relationships:
        document["relationships"] = {
            "foreign_keys": [edge.to_dict() for edge in catalog.fetch_foreign_keys(executor, database, table)],
            "referenced_by": catalog.fetch_referenced_by(executor, database, table),
        }
        document["constraints"] = catalog.fetch_constraints(executor, database, table)

    if include_sample_data:
        sample = catalog.fetch_sample_rows(executor, database, table, sample_size)
        total = catalog.count_rows(executor, database, table)
        profile = profile_rows(sample, total_rows=total, columns=[column.name for column in columns])
        for column in columns:
            profile["columns"][column.name].update(
                {"data_type": column.column_type or column.data_type, "nullable": column.nullable}
            )
        document["data_profile"] = profile
        document["sample_data"] = sample

    path = cache.write(document, "table-schema", SCHEMA_DIR, scope=database, fingerprint=fingerprint)
    if path is not None:
        document["cache"] = write_provenance(path)
    return document


def _database_overview(
    executor: QueryExecutor,
    cache: CacheStore,
    *,
    database: str,
    include_relationships: bool,
) -> dict[str, Any]:
    fingerprint = ["overview", include_relationships]
    hit = cache.read(
        "database-overview", SCHEMA_DIR, scope=database, fingerprint=fingerprint, ttl=DATABASE_OVERVIEW_TTL
    )
    if hit is not None:
        return {**hit.payload, "cache": hit.provenance()}

    document: dict[str, Any] = {"database": database, "tables": catalog.list_tables(executor, database)}
    if include_relationships:
        edges = catalog.fetch_foreign_keys(executor, database)
        document["table_sizes"] = catalog.fetch_table_sizes(executor, database)
        document["relationships"] = [edge.to_dict() for edge in edges]
        document["relationship_graph"] = build_relationship_graph(edges).to_dict()

    path = cache.write(document, "database-overview", SCHEMA_DIR, scope=database, fingerprint=fingerprint)
    if path is not None:
        document["cache"] = write_provenance(path)
    return document
