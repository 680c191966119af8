"""Read-only statement execution for scout-query."""

from __future__ import annotations

import time
from typing import Any, Sequence

from scout_cli.shared.cache import CacheStore, queries_subdir, write_provenance
from scout_cli.shared.database import QueryExecutor
from scout_cli.shared.exceptions import NotReadOnlyError, QueryError, QueryTooLongError, ValidationError

from .types import MAX_QUERY_LENGTH, READ_ONLY_PREFIXES, QueryResult


def validate_sql(sql: str) -> str:
    """Reject anything that is not a single read-only statement form, before touching the server."""
    if not isinstance(sql, str) or not sql.strip():
        raise ValidationError("Query text must not be empty.")
    if not sql.strip().lower().startswith(READ_ONLY_PREFIXES):
        raise NotReadOnlyError("Only read-only queries (SELECT, SHOW, DESCRIBE, EXPLAIN) are allowed")
    if len(sql) > MAX_QUERY_LENGTH:
        raise QueryTooLongError(f"Query too long (max {MAX_QUERY_LENGTH:,} characters)")
    return sql


def execute_query(executor: QueryExecutor, sql: str, params: Sequence[Any] = ()) -> QueryResult:
    validate_sql(sql)
    bindings = tuple(params or ())
    started = time.perf_counter()
    try:
        rows = executor.execute(sql, bindings)
    except QueryError as exc:
        raise QueryError(f"Query failed: {exc}") from exc
    elapsed_ms = (time.perf_counter() - started) * 1000
    return QueryResult(sql=sql, params=bindings, rows=rows, execution_time_ms=elapsed_ms)


def run_query(
    executor: QueryExecutor,
    cache: CacheStore,
    *,
    sql: str,
    params: Sequence[Any] = (),
    database: str | None = None,
) -> dict[str, Any]:
    """Execute a read-only statement and record the result under the day's query cache."""
    result = execute_query(executor, sql, params)
    document = result.to_dict()
    path = cache.write(
        document,
        "query",
        queries_subdir(cache.now()),
        scope=database,
        fingerprint=[result.sql, list(result.params)],
    )
    if path is not None:
        document["cache"] = write_provenance(path)
    return document
