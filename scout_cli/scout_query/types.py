"""Data structures shared across scout-query modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Sequence

from scout_cli.shared.database import Row

READ_ONLY_PREFIXES = ("select", "show", "describe", "explain", "desc")
MAX_QUERY_LENGTH = 10_000
SLOW_QUERY_MS = 1000

DEFAULT_SAMPLE_SIZE = 100
MAX_SAMPLE_SIZE = 1000

TABLE_SCHEMA_TTL = timedelta(hours=1)
DATABASE_OVERVIEW_TTL = timedelta(hours=2)


@dataclass(frozen=True, slots=True)
class QueryResult:
    """Rows returned by one read-only statement plus its timing."""

    sql: str
    params: Sequence[Any]
    rows: list[Row] = field(default_factory=list)
    execution_time_ms: float = 0.0

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def verb(self) -> str:
        return self.sql.strip().split(None, 1)[0].upper()

    @property
    def columns(self) -> list[str]:
        return list(self.rows[0].keys()) if self.rows else []

    def summary(self) -> str:
        return (
            f"Executed {self.verb} query returning {self.row_count} rows "
            f"in {self.execution_time_ms:.0f}ms"
        )

    def performance(self) -> str:
        if self.execution_time_ms > SLOW_QUERY_MS:
            return "Consider adding indexes if this query runs frequently"
        return "Good performance"

    def to_dict(self) -> dict[str, Any]:
        return {
            "sql": self.sql,
            "params": list(self.params),
            "row_count": self.row_count,
            "execution_time_ms": round(self.execution_time_ms, 3),
            "rows": self.rows,
            "summary": self.summary(),
            "performance": self.performance(),
        }
