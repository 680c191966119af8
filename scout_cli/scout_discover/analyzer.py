"""Analyze one database: catalog stats, classification, relationship graph, and summary."""

from __future__ import annotations

from typing import Sequence

from scout_cli.scout_analyze.classifier import classify_table
from scout_cli.scout_analyze.graph import build_relationship_graph
from scout_cli.scout_analyze.types import RelationshipGraph
from scout_cli.shared import catalog
from scout_cli.shared.catalog import ColumnRow, TableStatsRow
from scout_cli.shared.database import QueryExecutor, RecordingExecutor, Row
from scout_cli.shared.logging import Logger

from .types import DatabaseAnalysis, DatabaseSummary, TableAnalysis

LARGE_TABLE_ROWS = 1_000_000
CENTRAL_TABLE_INCOMING = 3
HIGHLY_CONNECTED_OUTGOING = 5
NULLABLE_RATIO_WARNING = 0.7


def table_insights(
    stats: TableStatsRow,
    columns: Sequence[ColumnRow],
    graph: RelationshipGraph,
) -> list[str]:
    insights: list[str] = []
    if (stats.row_count or 0) > LARGE_TABLE_ROWS:
        insights.append(f"Large table with {stats.row_count:,} rows - consider partitioning strategies")

    incoming = graph.incoming_count(stats.name)
    if incoming > CENTRAL_TABLE_INCOMING:
        insights.append(f"Central table with {incoming} incoming relationships - likely a core dimension")

    outgoing = graph.outgoing_count(stats.name)
    if outgoing > HIGHLY_CONNECTED_OUTGOING:
        insights.append(f"Highly connected table with {outgoing} foreign keys - potential fact table")

    nullable = sum(1 for column in columns if column.nullable)
    if columns and nullable > len(columns) * NULLABLE_RATIO_WARNING:
        ratio = round(nullable / len(columns) * 100)
        insights.append(f"High nullable column ratio ({ratio}%) - check data completeness")
    return insights


def analyze_database(
    executor: QueryExecutor,
    database: str,
    *,
    focus_area: str = "general",
    detail_level: str = "summary",
    max_tables: int = 20,
    sample_limit: int = 3,
    logger: Logger | None = None,
) -> DatabaseAnalysis:
    """Classify the largest tables of `database` at the requested detail level.

    summary classifies from table statistics only, detailed adds the column
    catalog, full also samples rows and derives per-table insights. Executor
    failures propagate unchanged.
    """
    recorder = RecordingExecutor(executor)
    stats = catalog.fetch_table_stats(recorder, database, max_tables)
    relationships = tuple(catalog.fetch_foreign_keys(recorder, database))
    graph = build_relationship_graph(relationships)
    if logger is not None:
        logger.debug(f"{database}: {len(stats)} table(s), {len(relationships)} foreign key(s)")

    tables: dict[str, TableAnalysis] = {}
    for table_stats in stats:
        columns: list[ColumnRow] = []
        sample: list[Row] = []
        if detail_level != "summary":
            columns = catalog.fetch_columns(recorder, database, table_stats.name)
            if detail_level == "full" and sample_limit > 0:
                sample = catalog.fetch_sample_rows(recorder, database, table_stats.name, sample_limit)

        classification = classify_table(table_stats.name, columns, sample, focus_area)
        tables[table_stats.name] = TableAnalysis(
            database=database,
            stats=table_stats,
            classification=classification,
            columns=tuple(columns) if detail_level != "summary" else None,
            sample_data=tuple(sample) if detail_level == "full" else None,
            insights=tuple(table_insights(table_stats, columns, graph)) if detail_level == "full" else None,
        )

    return DatabaseAnalysis(
        name=database,
        tables=tables,
        relationships=relationships,
        graph=graph,
        summary=DatabaseSummary.build(list(tables.values()), relationships),
        executed_queries=tuple(recorder.statements),
    )
