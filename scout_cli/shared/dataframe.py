"""Pandas helpers for profiling sampled table rows."""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Sequence

import pandas as pd

SAMPLE_VALUES_LIMIT = 5


def rows_to_frame(rows: Sequence[Mapping[str, Any]], columns: Iterable[str] | None = None) -> pd.DataFrame:
    """Build an object-typed DataFrame so driver values (Decimal, datetime) pass through untouched."""
    frame = pd.DataFrame.from_records(list(rows), columns=list(columns) if columns is not None else None)
    return frame.astype(object)


def _distinct_values(series: pd.Series, limit: int) -> list[Any]:
    values: list[Any] = []
    for value in series.dropna():
        if value not in values:
            values.append(value)
            if len(values) >= limit:
                break
    return values


def profile_column(series: pd.Series, *, sample_limit: int = SAMPLE_VALUES_LIMIT) -> dict[str, Any]:
    non_null = series.dropna()
    return {
        "non_null": int(non_null.size),
        "null_count": int(series.size - non_null.size),
        "unique_values": int(non_null.nunique()),
        "sample_values": _distinct_values(series, sample_limit),
    }


def profile_rows(
    rows: Sequence[Mapping[str, Any]],
    *,
    total_rows: int,
    columns: Iterable[str] | None = None,
) -> dict[str, Any]:
    """Per-column completeness and cardinality over a sample of rows."""
    frame = rows_to_frame(rows, columns)
    return {
        "total_rows": total_rows,
        "sample_size": int(len(frame)),
        "columns": {str(name): profile_column(frame[name]) for name in frame.columns},
    }


def behavior_profiles(rows: Sequence[Mapping[str, Any]], column_names: Sequence[str]) -> dict[str, Any]:
    """Sample values and distinct counts for the behavior columns of a table."""
    if not column_names:
        return {}
    frame = rows_to_frame(rows)
    profiles: dict[str, Any] = {}
    for name in column_names:
        if name not in frame.columns:
            profiles[name] = {"sample_values": [], "unique_count": 0}
            continue
        series = frame[name]
        profiles[name] = {
            "sample_values": _distinct_values(series, SAMPLE_VALUES_LIMIT),
            "unique_count": int(series.dropna().nunique()),
        }
    return profiles
