"""Heuristic table classification from column names and declared types."""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Mapping, Sequence

from scout_cli.shared.catalog import ColumnRow

from .types import (
    ROLE_DIMENSION_TABLE,
    ROLE_FACT_TABLE,
    ROLE_LOOKUP_TABLE,
    ROLE_UNKNOWN,
    ROLE_USER_DIMENSION,
    ROLE_USER_EVENTS,
    ClassificationRule,
    ColumnRoles,
    TableClassification,
)

ROLE_KEYWORDS: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "user": ("user", "customer", "account", "person", "member", "client"),
        "time": ("created", "updated", "modified", "deleted", "time", "date"),
        "behavior": ("action", "event", "activity", "status", "type", "category", "state"),
        "metric": ("count", "amount", "total", "sum", "avg", "price", "cost", "revenue", "quantity"),
        "dimension": ("name", "title", "description", "label", "category"),
    }
)

TEMPORAL_TYPES = frozenset({"date", "time", "datetime", "timestamp", "year"})

# Order matters: the first rule whose predicate holds decides the role.
ROLE_RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule(ROLE_USER_DIMENSION, 0.9, lambda roles, n_cols, n_samples: bool(roles.user) and not roles.time),
    ClassificationRule(
        ROLE_USER_EVENTS,
        0.95,
        lambda roles, n_cols, n_samples: bool(roles.user) and bool(roles.time) and bool(roles.behavior),
    ),
    ClassificationRule(ROLE_FACT_TABLE, 0.8, lambda roles, n_cols, n_samples: len(roles.metric) > len(roles.dimension)),
    ClassificationRule(
        ROLE_DIMENSION_TABLE, 0.7, lambda roles, n_cols, n_samples: bool(roles.dimension) and n_cols < 10
    ),
    ClassificationRule(ROLE_LOOKUP_TABLE, 0.6, lambda roles, n_cols, n_samples: n_cols < 5 and n_samples < 100),
)


def _matches(name: str, role: str) -> bool:
    return any(keyword in name for keyword in ROLE_KEYWORDS[role])


def assign_column_roles(columns: Sequence[ColumnRow]) -> ColumnRoles:
    """Bucket column names by role; a column may land in several buckets."""
    buckets: dict[str, list[str]] = {
        "identifier": [],
        "user": [],
        "time": [],
        "behavior": [],
        "metric": [],
        "dimension": [],
    }
    for column in columns:
        lowered = column.name.lower()
        if column.is_primary_key or column.is_auto_increment:
            buckets["identifier"].append(column.name)
        if _matches(lowered, "user"):
            buckets["user"].append(column.name)
        if column.data_type.lower() in TEMPORAL_TYPES or _matches(lowered, "time"):
            buckets["time"].append(column.name)
        for role in ("behavior", "metric", "dimension"):
            if _matches(lowered, role):
                buckets[role].append(column.name)
    return ColumnRoles(**{role: tuple(names) for role, names in buckets.items()})


def classify_table(
    table_name: str,
    columns: Sequence[ColumnRow],
    sample_rows: Sequence[Mapping[str, Any]] = (),
    focus_area: str = "general",
) -> TableClassification:
    """Classify a table by the first rule of ROLE_RULES its columns satisfy.

    Deterministic for identical inputs. With no column data every table falls
    through to the lookup rule.
    """
    roles = assign_column_roles(columns)
    n_cols = len(columns)
    n_samples = len(sample_rows)
    for rule in ROLE_RULES:
        if rule.predicate(roles, n_cols, n_samples):
            return TableClassification(
                table_name=table_name,
                role_type=rule.role_type,
                confidence=rule.confidence,
                roles=roles,
                focus_area=focus_area,
            )
    return TableClassification(
        table_name=table_name,
        role_type=ROLE_UNKNOWN,
        confidence=0.0,
        roles=roles,
        focus_area=focus_area,
    )
