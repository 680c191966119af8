"""Request and report datatypes for scout-discover."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import timedelta
from typing import Any, Mapping, Sequence

from scout_cli.scout_analyze.types import ROLE_TYPES, RelationshipGraph, TableClassification
from scout_cli.shared.catalog import ColumnRow, ForeignKeyRow, TableStatsRow
from scout_cli.shared.database import Row
from scout_cli.shared.exceptions import ValidationError

FOCUS_AREAS = ("user_behavior", "sales_analytics", "engagement", "general")
DETAIL_LEVELS = ("summary", "detailed", "full")

MAX_TABLES_LIMIT = 100
SAMPLE_LIMIT_MAX = 10
PAGE_SIZE_MAX = 10

DISCOVERY_TTL = timedelta(hours=4)
TOKEN_WARNING_THRESHOLD = 20_000
TOOL_NAME = "mysql_discover_analytics"


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True, slots=True)
class DiscoveryRequest:
    """Validated arguments for one discovery call."""

    databases: tuple[str, ...] | None = None
    focus_area: str = "general"
    detail_level: str = "summary"
    max_tables_per_db: int = 20
    sample_data_limit: int = 3
    page: int = 1
    page_size: int = 5
    cross_database_analysis: bool = True
    include_recommendations: bool = True

    def __post_init__(self) -> None:
        if self.databases is not None:
            if isinstance(self.databases, str) or not isinstance(self.databases, Sequence):
                raise ValidationError("databases must be a list of database names.")
            if not self.databases:
                raise ValidationError("databases, when given, must not be empty.")
            if not all(isinstance(name, str) and name for name in self.databases):
                raise ValidationError("databases must contain only non-empty strings.")
            object.__setattr__(self, "databases", tuple(self.databases))
        if self.focus_area not in FOCUS_AREAS:
            raise ValidationError(f"focus_area must be one of {', '.join(FOCUS_AREAS)}.")
        if self.detail_level not in DETAIL_LEVELS:
            raise ValidationError(f"detail_level must be one of {', '.join(DETAIL_LEVELS)}.")
        if not _is_int(self.max_tables_per_db) or not 1 <= self.max_tables_per_db <= MAX_TABLES_LIMIT:
            raise ValidationError(f"max_tables_per_db must be between 1 and {MAX_TABLES_LIMIT}.")
        if not _is_int(self.sample_data_limit) or not 0 <= self.sample_data_limit <= SAMPLE_LIMIT_MAX:
            raise ValidationError(f"sample_data_limit must be between 0 and {SAMPLE_LIMIT_MAX}.")
        if not _is_int(self.page) or self.page < 1:
            raise ValidationError("page must be an integer of at least 1.")
        if not _is_int(self.page_size) or not 1 <= self.page_size <= PAGE_SIZE_MAX:
            raise ValidationError(f"page_size must be between 1 and {PAGE_SIZE_MAX}.")
        for flag in ("cross_database_analysis", "include_recommendations"):
            if not isinstance(getattr(self, flag), bool):
                raise ValidationError(f"{flag} must be true or false.")

    @classmethod
    def from_arguments(cls, arguments: Mapping[str, Any]) -> DiscoveryRequest:
        """Build a request from tool-call arguments, applying defaults for absent keys."""
        known = {name for name in cls.__dataclass_fields__}
        unknown = sorted(set(arguments) - known)
        if unknown:
            raise ValidationError(f"Unknown discovery arguments: {', '.join(unknown)}")
        return cls(**dict(arguments))

    def fingerprint(self) -> list[Any]:
        return [
            self.focus_area,
            self.detail_level,
            self.page,
            self.page_size,
            self.max_tables_per_db,
            self.sample_data_limit,
            sorted(self.databases) if self.databases else "all",
            self.cross_database_analysis,
            self.include_recommendations,
        ]

    def to_arguments(self) -> dict[str, Any]:
        arguments: dict[str, Any] = {
            "focus_area": self.focus_area,
            "detail_level": self.detail_level,
            "max_tables_per_db": self.max_tables_per_db,
            "sample_data_limit": self.sample_data_limit,
            "page": self.page,
            "page_size": self.page_size,
            "cross_database_analysis": self.cross_database_analysis,
            "include_recommendations": self.include_recommendations,
        }
        if self.databases:
            arguments["databases"] = list(self.databases)
        return arguments

    def next_page(self) -> DiscoveryRequest:
        return replace(self, page=self.page + 1)


@dataclass(frozen=True, slots=True)
class Pagination:
    current_page: int
    total_pages: int
    page_size: int
    total_databases: int
    current_page_databases: int
    has_next_page: bool
    has_previous_page: bool
    next_page_call: dict[str, Any] | None = None

    @classmethod
    def compute(cls, request: DiscoveryRequest, all_databases: Sequence[str]) -> tuple[Pagination, list[str]]:
        """Slice the database list for `request.page`; out-of-range pages give an empty slice."""
        total = len(all_databases)
        total_pages = math.ceil(total / request.page_size)
        start = (request.page - 1) * request.page_size
        paged = list(all_databases[start : start + request.page_size])
        has_next = request.page < total_pages
        next_call = (
            {"tool": TOOL_NAME, "arguments": request.next_page().to_arguments()} if has_next else None
        )
        pagination = cls(
            current_page=request.page,
            total_pages=total_pages,
            page_size=request.page_size,
            total_databases=total,
            current_page_databases=len(paged),
            has_next_page=has_next,
            has_previous_page=request.page > 1,
            next_page_call=next_call,
        )
        return pagination, paged

    def to_dict(self) -> dict[str, Any]:
        return {
            "current_page": self.current_page,
            "total_pages": self.total_pages,
            "page_size": self.page_size,
            "total_databases": self.total_databases,
            "current_page_databases": self.current_page_databases,
            "has_next_page": self.has_next_page,
            "has_previous_page": self.has_previous_page,
            "next_page_call": self.next_page_call,
        }


@dataclass(frozen=True, slots=True)
class TableAnalysis:
    """One table of a database analysis; columns, samples, and insights depend on detail level."""

    database: str
    stats: TableStatsRow
    classification: TableClassification
    columns: tuple[ColumnRow, ...] | None = None
    sample_data: tuple[Row, ...] | None = None
    insights: tuple[str, ...] | None = None

    @property
    def name(self) -> str:
        return self.stats.name

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            **self.stats.to_dict(),
            "database": self.database,
            "analysis": self.classification.to_dict(),
        }
        if self.columns is not None:
            payload["columns"] = [column.to_dict() for column in self.columns]
        if self.sample_data is not None:
            payload["sample_data"] = list(self.sample_data)
        if self.insights is not None:
            payload["insights"] = list(self.insights)
        return payload


@dataclass(frozen=True, slots=True)
class DatabaseSummary:
    total_tables: int
    fact_tables: int
    dimension_tables: int
    user_tables: int
    event_tables: int
    lookup_tables: int
    role_counts: Mapping[str, int]
    relationships: int
    largest_tables: tuple[str, ...]
    architecture: str

    @classmethod
    def build(
        cls, tables: Sequence[TableAnalysis], relationships: Sequence[ForeignKeyRow]
    ) -> DatabaseSummary:
        role_counts = {role: 0 for role in ROLE_TYPES}
        for table in tables:
            role_counts[table.classification.role_type] += 1
        fact_tables = sum(1 for table in tables if table.classification.is_fact_table)
        # sorted() is stable, so equal row counts keep catalog order.
        largest = sorted(tables, key=lambda table: table.stats.row_count or 0, reverse=True)[:5]
        return cls(
            total_tables=len(tables),
            fact_tables=fact_tables,
            dimension_tables=sum(1 for table in tables if table.classification.is_dimension_table),
            user_tables=sum(1 for table in tables if table.classification.is_user_table),
            event_tables=sum(1 for table in tables if table.classification.is_event_table),
            lookup_tables=sum(1 for table in tables if table.classification.is_lookup_table),
            role_counts=role_counts,
            relationships=len(relationships),
            largest_tables=tuple(table.name for table in largest),
            architecture="star_schema" if fact_tables > 0 else "normalized",
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_tables": self.total_tables,
            "fact_tables": self.fact_tables,
            "dimension_tables": self.dimension_tables,
            "user_tables": self.user_tables,
            "event_tables": self.event_tables,
            "lookup_tables": self.lookup_tables,
            "role_counts": dict(self.role_counts),
            "relationships": self.relationships,
            "largest_tables": list(self.largest_tables),
            "architecture": self.architecture,
        }


@dataclass(frozen=True, slots=True)
class DatabaseAnalysis:
    name: str
    tables: Mapping[str, TableAnalysis]
    relationships: tuple[ForeignKeyRow, ...]
    graph: RelationshipGraph
    summary: DatabaseSummary
    executed_queries: tuple[str, ...] = field(default_factory=tuple)

    def tables_with(self, trait: str) -> list[TableAnalysis]:
        return [table for table in self.tables.values() if trait in table.classification.traits]

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "tables": {name: table.to_dict() for name, table in self.tables.items()},
            "relationships": [edge.to_dict() for edge in self.relationships],
            "relationship_graph": self.graph.to_dict(),
            "summary": self.summary.to_dict(),
        }
