"""The analyze-tables operation: relationships, user behavior, and data flow views."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence

from scout_cli.shared import catalog
from scout_cli.shared.cache import TABLE_ANALYSIS_DIR, CacheStore, write_provenance
from scout_cli.shared.catalog import ColumnRow, ForeignKeyRow
from scout_cli.shared.database import QueryExecutor
from scout_cli.shared.dataframe import behavior_profiles
from scout_cli.shared.exceptions import ValidationError
from scout_cli.shared.utils import split_qualified_table

from .classifier import assign_column_roles
from .joins import suggest_joins

ANALYSIS_TYPES = ("relationships", "user_behavior", "data_flow")
BEHAVIOR_SAMPLE_ROWS = 50


@dataclass(frozen=True, slots=True)
class TableRef:
    requested: str
    database: str
    name: str


def _resolve_tables(tables: Sequence[str], database: str | None) -> list[TableRef]:
    refs: list[TableRef] = []
    for requested in tables:
        if not isinstance(requested, str) or not requested.strip():
            raise ValidationError("Table names must be non-empty strings.")
        db, name = split_qualified_table(requested.strip(), database)
        if not db:
            raise ValidationError(
                f"No database given for table '{requested}'; pass a database or use database.table."
            )
        refs.append(TableRef(requested=requested, database=db, name=name))
    return refs


def analyze_tables(
    executor: QueryExecutor,
    cache: CacheStore,
    *,
    tables: Sequence[str],
    analysis_type: str = "relationships",
    database: str | None,
) -> dict[str, Any]:
    """Run one of the table analyses and record the result in the cache."""
    if not tables:
        raise ValidationError("Tables array is required and cannot be empty.")
    handler = _ANALYZERS.get(analysis_type)
    if handler is None:
        raise ValidationError(
            f"Unknown analysis type: {analysis_type} (expected one of {', '.join(ANALYSIS_TYPES)})"
        )
    refs = _resolve_tables(tables, database)

    document = {"analysis_type": analysis_type, "database": database, **handler(executor, refs)}

    path = cache.write(
        document,
        "table-analysis",
        TABLE_ANALYSIS_DIR,
        scope=database,
        fingerprint=[analysis_type, [ref.requested for ref in refs]],
    )
    if path is not None:
        document["cache"] = write_provenance(path)
    return document


# ----- relationships ------------------------------------------------------------------------


def _join_labels(refs: Sequence[TableRef]) -> list[str]:
    if len({ref.database for ref in refs}) > 1:
        return [f"{ref.database}.{ref.name}" for ref in refs]
    return [ref.name for ref in refs]


def _analyze_relationships(executor: QueryExecutor, refs: Sequence[TableRef]) -> dict[str, Any]:
    labels = _join_labels(refs)
    columns_by_table: dict[str, list[ColumnRow]] = {}
    keys_by_table: dict[str, list[ForeignKeyRow]] = {}
    tables: dict[str, Any] = {}
    for ref, label in zip(refs, labels):
        columns = catalog.describe_table(executor, ref.database, ref.name)
        foreign_keys = catalog.fetch_foreign_keys(executor, ref.database, ref.name)
        row_count = catalog.count_rows(executor, ref.database, ref.name)
        columns_by_table[label] = columns
        keys_by_table[label] = foreign_keys
        tables[ref.requested] = {
            "columns": catalog.columns_to_dicts(columns),
            "foreign_keys": [edge.to_dict() for edge in foreign_keys],
            "row_count": row_count,
        }

    suggestions = suggest_joins(labels, columns_by_table, keys_by_table)
    return {
        "tables": tables,
        "join_suggestions": [suggestion.to_dict() for suggestion in suggestions],
        "query_recommendations": _relationship_recommendations(suggestions),
    }


def _relationship_recommendations(suggestions: Sequence[Any]) -> list[dict[str, str]]:
    recommendations = [
        {
            "title": f"Join {suggestion.from_table} with {suggestion.to_table}",
            "description": f"Combine rows through a {suggestion.relationship.replace('_', ' ')} relationship",
            "example": (
                f"SELECT * FROM {suggestion.from_table} {suggestion.join_type} {suggestion.to_table} "
                f"ON {suggestion.condition} LIMIT 100"
            ),
        }
        for suggestion in suggestions
        if suggestion.relationship == "foreign_key"
    ]
    recommendations.append(
        {
            "title": "Cross-Table User Analysis",
            "description": "Join related tables to get comprehensive user insights",
            "example": (
                "SELECT u.*, COUNT(e.id) AS event_count FROM users u "
                "LEFT JOIN events e ON u.id = e.user_id GROUP BY u.id"
            ),
        }
    )
    return recommendations


# ----- user behavior ------------------------------------------------------------------------


def _analyze_user_behavior(executor: QueryExecutor, refs: Sequence[TableRef]) -> dict[str, Any]:
    tables: dict[str, Any] = {}
    for ref in refs:
        columns = catalog.describe_table(executor, ref.database, ref.name)
        sample = catalog.fetch_sample_rows(executor, ref.database, ref.name, BEHAVIOR_SAMPLE_ROWS)
        roles = assign_column_roles(columns)
        types_by_name = {column.name: column.column_type or column.data_type for column in columns}
        profiles = behavior_profiles(sample, roles.behavior)
        tables[ref.requested] = {
            "table": ref.name,
            "columns": catalog.columns_to_dicts(columns),
            "user_columns": list(roles.user),
            "time_columns": list(roles.time),
            "behavior_columns": [
                {"column": name, "data_type": types_by_name.get(name), **profiles[name]}
                for name in roles.behavior
            ],
            "sample_data": sample,
        }

    return {
        "tables": tables,
        "patterns": _behavior_patterns(tables),
        "recommendations": _behavior_recommendations(tables),
    }


def _behavior_patterns(tables: Mapping[str, Any]) -> list[dict[str, str]]:
    patterns: list[dict[str, str]] = []
    for requested, info in tables.items():
        table = info["table"]
        if info["user_columns"] and info["time_columns"]:
            user_col = info["user_columns"][0]
            time_col = info["time_columns"][0]
            patterns.append(
                {
                    "pattern": "user_timeline",
                    "table": requested,
                    "description": "Track user actions over time",
                    "suggested_query": (
                        f"SELECT {user_col}, DATE({time_col}) AS activity_date, COUNT(*) AS action_count "
                        f"FROM {table} GROUP BY {user_col}, DATE({time_col}) ORDER BY activity_date DESC"
                    ),
                }
            )
        if info["behavior_columns"]:
            behavior_col = info["behavior_columns"][0]["column"]
            patterns.append(
                {
                    "pattern": "behavior_analysis",
                    "table": requested,
                    "description": "Analyze user behavior patterns",
                    "suggested_query": (
                        f"SELECT {behavior_col}, COUNT(*) AS frequency FROM {table} "
                        f"GROUP BY {behavior_col} ORDER BY frequency DESC"
                    ),
                }
            )
    return patterns


def _behavior_recommendations(tables: Mapping[str, Any]) -> list[dict[str, str]]:
    table, user_col, time_col = "events", "user_id", "created_at"
    for info in tables.values():
        if info["user_columns"] and info["time_columns"]:
            table, user_col, time_col = info["table"], info["user_columns"][0], info["time_columns"][0]
            break
    return [
        {
            "title": "User Activity Over Time",
            "description": "Track how user engagement changes over time periods",
            "example": (
                f"SELECT DATE({time_col}) AS date, COUNT(DISTINCT {user_col}) AS active_users "
                f"FROM {table} GROUP BY DATE({time_col})"
            ),
        },
        {
            "title": "User Funnel Analysis",
            "description": "Analyze user progression through different stages",
            "example": (
                f"WITH funnel AS (SELECT {user_col}, MIN({time_col}) AS first_action, "
                f"MAX({time_col}) AS last_action FROM {table} GROUP BY {user_col}) "
                "SELECT COUNT(*) FROM funnel"
            ),
        },
    ]


# ----- data flow ----------------------------------------------------------------------------


def _analyze_data_flow(executor: QueryExecutor, refs: Sequence[TableRef]) -> dict[str, Any]:
    tables: dict[str, Any] = {}
    flows: list[dict[str, str]] = []
    for ref in refs:
        columns = catalog.describe_table(executor, ref.database, ref.name)
        foreign_keys = catalog.fetch_foreign_keys(executor, ref.database, ref.name)
        referenced_by = catalog.fetch_referenced_by(executor, ref.database, ref.name)
        tables[ref.requested] = {
            "columns": catalog.columns_to_dicts(columns),
            "foreign_keys": [edge.to_dict() for edge in foreign_keys],
            "referenced_by": referenced_by,
        }
        flows.extend(
            {
                "from": edge.target_table,
                "to": ref.name,
                "relationship": "parent_to_child",
                "column": edge.source_column,
                "parent_column": edge.target_column,
            }
            for edge in foreign_keys
        )

    return {
        "tables": tables,
        "data_flow": flows,
        "recommendations": [
            {
                "title": f"Trace {flow['from']} into {flow['to']}",
                "description": "Count child rows per parent row along a foreign key",
                "example": (
                    f"SELECT p.{flow['parent_column']}, COUNT(c.{flow['column']}) AS child_rows "
                    f"FROM {flow['from']} p LEFT JOIN {flow['to']} c ON c.{flow['column']} = p.{flow['parent_column']} "
                    f"GROUP BY p.{flow['parent_column']} ORDER BY child_rows DESC"
                ),
            }
            for flow in flows
        ],
    }


_ANALYZERS: dict[str, Callable[[QueryExecutor, Sequence[TableRef]], dict[str, Any]]] = {
    "relationships": _analyze_relationships,
    "user_behavior": _analyze_user_behavior,
    "data_flow": _analyze_data_flow,
}
