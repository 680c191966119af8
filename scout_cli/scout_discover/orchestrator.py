"""Paginated, cache-backed discovery across the databases of one server."""

from __future__ import annotations

import math
from datetime import timezone
from typing import Any, Mapping

from scout_cli.shared import catalog
from scout_cli.shared.cache import DISCOVERY_DIR, CacheStore, write_provenance
from scout_cli.shared.database import QueryExecutor
from scout_cli.shared.logging import Logger, get_logger
from scout_cli.shared.utils import dump_json

from .analyzer import analyze_database
from .recommendations import analytics_insights, recommended_queries
from .types import DISCOVERY_TTL, TOKEN_WARNING_THRESHOLD, DatabaseAnalysis, DiscoveryRequest, Pagination

OPERATION = "database-discovery"


def cross_database_insights(databases: Mapping[str, DatabaseAnalysis]) -> list[dict[str, Any]]:
    """Tables repeated across databases and user data spread over several databases."""
    insights: list[dict[str, Any]] = []
    locations: dict[str, list[str]] = {}
    for name, analysis in databases.items():
        for table in analysis.tables:
            locations.setdefault(table, []).append(name)

    for table, found_in in locations.items():
        if len(found_in) > 1:
            insights.append(
                {
                    "pattern": "duplicate_table_structure",
                    "table": table,
                    "databases": found_in,
                    "recommendation": (
                        f"Table '{table}' exists in {len(found_in)} databases - consider data partitioning strategy"
                    ),
                }
            )

    user_databases = [
        name
        for name, analysis in databases.items()
        if analysis.summary.user_tables > 0 or analysis.summary.event_tables > 0
    ]
    if len(user_databases) > 1:
        insights.append(
            {
                "pattern": "distributed_user_data",
                "databases": user_databases,
                "recommendation": (
                    "User data is distributed across multiple databases - "
                    "consider cross-database user journey analysis"
                ),
            }
        )
    return insights


def estimate_tokens(document: Any) -> int:
    return math.ceil(len(dump_json(document)) / 4)


def _size_guidance(request: DiscoveryRequest, tokens: int) -> dict[str, Any]:
    return {
        "approximate_tokens": tokens,
        "size_warning": (
            "Large response detected. Consider using smaller page_size or detail_level='summary' "
            "for faster processing."
        ),
        "suggestions": [
            f"Use page_size={max(1, request.page_size // 2)} for smaller chunks",
            "Use detail_level='summary' for overview only",
            "Filter to specific databases with the 'databases' parameter",
        ],
    }


def discover_analytics(
    executor: QueryExecutor,
    cache: CacheStore,
    request: DiscoveryRequest,
    *,
    server: Mapping[str, Any] | None = None,
    logger: Logger | None = None,
) -> dict[str, Any]:
    """Run (or replay from cache) a discovery report for one page of databases."""
    logger = logger or get_logger(name="discover")
    fingerprint = request.fingerprint()

    hit = cache.read(OPERATION, DISCOVERY_DIR, scope="server", fingerprint=fingerprint, ttl=DISCOVERY_TTL)
    if hit is not None:
        logger.debug("Serving discovery report from cache.")
        return {**hit.payload, "cache": hit.provenance()}

    executed: list[str] = []
    if request.databases:
        all_databases = list(request.databases)
    else:
        executed.append(catalog.SHOW_DATABASES_SQL)
        all_databases = catalog.fetch_database_names(executor)

    pagination, paged = Pagination.compute(request, all_databases)
    logger.info(
        f"Analyzing {len(paged)} of {len(all_databases)} database(s) "
        f"(page {pagination.current_page}/{pagination.total_pages}, {request.detail_level})."
    )

    analyses: dict[str, DatabaseAnalysis] = {}
    for name in paged:
        analysis = analyze_database(
            executor,
            name,
            focus_area=request.focus_area,
            detail_level=request.detail_level,
            max_tables=request.max_tables_per_db,
            sample_limit=request.sample_data_limit,
            logger=logger,
        )
        analyses[name] = analysis
        executed.extend(analysis.executed_queries)

    report: dict[str, Any] = {
        "server": dict(server or {}),
        "all_databases": all_databases,
        "analyzed_databases": paged,
        "focus_area": request.focus_area,
        "detail_level": request.detail_level,
        "discovery_timestamp": cache.now().astimezone(timezone.utc).isoformat(),
        "databases": {name: analysis.to_dict() for name, analysis in analyses.items()},
        "cross_database_insights": [],
        "analytics_insights": [],
        "recommended_queries": [],
        "executed_queries": executed,
        "pagination": pagination.to_dict(),
    }

    if request.cross_database_analysis and len(analyses) > 1:
        report["cross_database_insights"] = cross_database_insights(analyses)

    if request.include_recommendations:
        report["analytics_insights"] = analytics_insights(analyses, request.focus_area)
        report["recommended_queries"] = recommended_queries(analyses, request.focus_area)

    path = cache.write(report, OPERATION, DISCOVERY_DIR, scope="server", fingerprint=fingerprint)
    if path is not None:
        report["cache"] = write_provenance(path)

    tokens = estimate_tokens(report)
    if tokens > TOKEN_WARNING_THRESHOLD:
        logger.warning(f"Discovery report is roughly {tokens:,} tokens; see response_info for narrowing options.")
        report["response_info"] = _size_guidance(request, tokens)
    return report
