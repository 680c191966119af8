"""Join suggestions for a set of tables, from declared keys or shared column names.

Table labels are bare names when every table lives in one database, or
`database.table` when they span several. Foreign keys never cross databases,
so a declared key only matches a table in its own database.
"""

from __future__ import annotations

from typing import Mapping, Sequence

from scout_cli.shared.catalog import ColumnRow, ForeignKeyRow
from scout_cli.shared.utils import split_qualified_table

from .types import JoinSuggestion


def _first_edge_to(edges: Sequence[ForeignKeyRow], source: str, target: str) -> ForeignKeyRow | None:
    source_database, _ = split_qualified_table(source, None)
    target_database, target_name = split_qualified_table(target, None)
    if source_database != target_database:
        return None
    for edge in edges:
        if edge.target_table == target_name:
            return edge
    return None


def common_columns(left: Sequence[ColumnRow], right: Sequence[ColumnRow]) -> list[str]:
    """Case-insensitive name intersection, in the left table's column order."""
    right_names = {column.name.lower() for column in right}
    return [column.name.lower() for column in left if column.name.lower() in right_names]


def suggest_joins(
    tables: Sequence[str],
    columns_by_table: Mapping[str, Sequence[ColumnRow]],
    foreign_keys_by_table: Mapping[str, Sequence[ForeignKeyRow]],
) -> list[JoinSuggestion]:
    """Suggest at most one join per unordered pair of tables, in request order.

    A foreign key from the earlier table to the later one wins, then the
    reverse direction, then an inferred join over shared column names.
    """
    suggestions: list[JoinSuggestion] = []
    tables = list(dict.fromkeys(tables))
    for index, left in enumerate(tables):
        for right in tables[index + 1 :]:
            forward = _first_edge_to(foreign_keys_by_table.get(left, ()), left, right)
            backward = _first_edge_to(foreign_keys_by_table.get(right, ()), right, left)
            if forward is not None:
                suggestions.append(
                    JoinSuggestion(
                        from_table=left,
                        to_table=right,
                        condition=f"{left}.{forward.source_column} = {right}.{forward.target_column}",
                        relationship="foreign_key",
                    )
                )
            elif backward is not None:
                suggestions.append(
                    JoinSuggestion(
                        from_table=right,
                        to_table=left,
                        condition=f"{right}.{backward.source_column} = {left}.{backward.target_column}",
                        relationship="foreign_key",
                    )
                )
            else:
                shared = common_columns(columns_by_table.get(left, ()), columns_by_table.get(right, ()))
                if shared:
                    suggestions.append(
                        JoinSuggestion(
                            from_table=left,
                            to_table=right,
                            condition=" AND ".join(f"{left}.{name} = {right}.{name}" for name in shared),
                            relationship="inferred",
                            common_columns=tuple(shared),
                        )
                    )
    return suggestions
