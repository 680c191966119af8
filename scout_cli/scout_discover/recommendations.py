"""Analytics insights and starter queries derived from classified databases."""

from __future__ import annotations

from typing import Any, Mapping

from .types import DatabaseAnalysis

USER_FOCUS_AREAS = ("user_behavior", "engagement")
COMPLEX_SCHEMA_RELATIONSHIPS = 10


def analytics_insights(databases: Mapping[str, DatabaseAnalysis], focus_area: str) -> list[dict[str, str]]:
    names = list(databases)
    total_tables = sum(analysis.summary.total_tables for analysis in databases.values())
    insights = [
        {
            "category": "Server Overview",
            "insight": f"Analyzed {len(names)} databases with {total_tables} total tables",
            "recommendation": (
                f"Server contains {', '.join(names) or 'no analyzed databases'} - "
                "use database.table syntax for cross-database queries"
            ),
        }
    ]

    star_schemas = [name for name, analysis in databases.items() if analysis.summary.architecture == "star_schema"]
    if star_schemas:
        insights.append(
            {
                "category": "Analytics Architecture",
                "insight": f"Star schema detected in: {', '.join(star_schemas)}",
                "recommendation": "These databases are optimized for analytical queries and reporting",
            }
        )

    if focus_area in USER_FOCUS_AREAS:
        user_databases = [name for name, analysis in databases.items() if analysis.summary.user_tables > 0]
        if user_databases:
            insights.append(
                {
                    "category": "User Analytics Ready",
                    "insight": f"User data found in: {', '.join(user_databases)}",
                    "recommendation": "Suited to cross-database user behavior analysis and journey mapping",
                }
            )

    for name, analysis in databases.items():
        if analysis.summary.relationships > COMPLEX_SCHEMA_RELATIONSHIPS:
            insights.append(
                {
                    "category": "Complex Schema",
                    "insight": f"{analysis.summary.relationships} relationships detected in {name}",
                    "recommendation": "Use CTEs and proper indexing for multi-table analytical queries",
                }
            )
    return insights


def recommended_queries(databases: Mapping[str, DatabaseAnalysis], focus_area: str) -> list[dict[str, str]]:
    queries: list[dict[str, str]] = []
    queries.extend(_user_activity_queries(databases))
    queries.extend(_time_series_query(databases))
    if focus_area == "user_behavior":
        queries.extend(_cross_database_user_query(databases))
    if databases:
        queries.append(_size_comparison_query(databases))
    return queries


def _user_activity_queries(databases: Mapping[str, DatabaseAnalysis]) -> list[dict[str, str]]:
    for name, analysis in databases.items():
        users = analysis.tables_with("user")
        events = analysis.tables_with("event")
        if not users or not events:
            continue
        event = events[0].classification
        user_col = (event.roles.user or users[0].classification.roles.user or ("user_id",))[0]
        time_col = (event.roles.time or ("created_at",))[0]
        table = f"{name}.{event.table_name}"
        return [
            {
                "title": "User Activity Timeline",
                "description": "Track user engagement over time",
                "sql": (
                    f"SELECT\n  DATE({time_col}) AS activity_date,\n"
                    f"  COUNT(DISTINCT {user_col}) AS active_users,\n  COUNT(*) AS total_events\n"
                    f"FROM {table}\nWHERE {time_col} >= DATE_SUB(NOW(), INTERVAL 30 DAY)\n"
                    f"GROUP BY DATE({time_col})\nORDER BY activity_date DESC"
                ),
                "use_case": "Daily active user tracking and engagement trends",
            },
            {
                "title": "User Behavior Cohort Analysis",
                "description": "Analyze user retention by first-activity cohort",
                "sql": (
                    "WITH user_cohorts AS (\n"
                    f"  SELECT {user_col}, DATE_FORMAT(MIN({time_col}), '%Y-%m') AS signup_month\n"
                    f"  FROM {table}\n  GROUP BY {user_col}\n),\n"
                    "cohort_activity AS (\n"
                    f"  SELECT uc.signup_month, DATE_FORMAT(e.{time_col}, '%Y-%m') AS activity_month,\n"
                    f"    COUNT(DISTINCT e.{user_col}) AS active_users\n"
                    f"  FROM user_cohorts uc\n  JOIN {table} e ON uc.{user_col} = e.{user_col}\n"
                    f"  GROUP BY uc.signup_month, DATE_FORMAT(e.{time_col}, '%Y-%m')\n)\n"
                    "SELECT signup_month, activity_month, active_users\n"
                    "FROM cohort_activity\nORDER BY signup_month, activity_month"
                ),
                "use_case": "Understanding user retention patterns over time",
            },
        ]
    return []


def _time_series_query(databases: Mapping[str, DatabaseAnalysis]) -> list[dict[str, str]]:
    for name, analysis in databases.items():
        for table in analysis.tables_with("fact"):
            roles = table.classification.roles
            if not roles.time or not roles.metric:
                continue
            time_col, metric_col = roles.time[0], roles.metric[0]
            return [
                {
                    "title": "Time Series Analysis",
                    "description": f"Analyze {metric_col} trends over time",
                    "sql": (
                        f"SELECT\n  DATE_FORMAT({time_col}, '%Y-%m') AS period,\n  COUNT(*) AS record_count,\n"
                        f"  SUM({metric_col}) AS total_{metric_col},\n  AVG({metric_col}) AS avg_{metric_col}\n"
                        f"FROM {name}.{table.name}\n"
                        f"WHERE {time_col} >= DATE_SUB(NOW(), INTERVAL 12 MONTH)\n"
                        f"GROUP BY DATE_FORMAT({time_col}, '%Y-%m')\nORDER BY period"
                    ),
                    "use_case": "Monthly performance tracking and trend analysis",
                }
            ]
    return []


def _cross_database_user_query(databases: Mapping[str, DatabaseAnalysis]) -> list[dict[str, str]]:
    user_sources = [(name, analysis.tables_with("user")) for name, analysis in databases.items()]
    event_sources = [(name, analysis.tables_with("event")) for name, analysis in databases.items()]
    user_sources = [(name, tables) for name, tables in user_sources if tables]
    event_sources = [(name, tables) for name, tables in event_sources if tables]
    if not user_sources or not event_sources:
        return []

    user_db, user_tables = user_sources[0]
    user_table = user_tables[0].classification
    user_col = (user_table.roles.user or ("user_id",))[0]
    joins: list[str] = []
    selects: list[str] = []
    for index, (event_db, event_tables) in enumerate(event_sources[:2], start=1):
        event = event_tables[0].classification
        event_user_col = (event.roles.user or ("user_id",))[0]
        event_id = (event.roles.identifier or ("id",))[0]
        selects.append(f"  COUNT(DISTINCT e{index}.{event_id}) AS events_{event_db}")
        joins.append(
            f"LEFT JOIN {event_db}.{event.table_name} e{index} ON u.{user_col} = e{index}.{event_user_col}"
        )
    sql = (
        f"SELECT\n  u.{user_col},\n"
        + ",\n".join(selects)
        + f"\nFROM {user_db}.{user_table.table_name} u\n"
        + "\n".join(joins)
        + f"\nGROUP BY u.{user_col}"
    )
    return [
        {
            "title": "Cross-Database User Activity",
            "description": "Analyze user activity across multiple databases",
            "sql": sql,
            "use_case": "Understanding user engagement across different application components",
        }
    ]


def _size_comparison_query(databases: Mapping[str, Any]) -> dict[str, str]:
    quoted = ", ".join("'" + name.replace("'", "''") + "'" for name in databases)
    return {
        "title": "Database Size Comparison",
        "description": "Compare table sizes across databases",
        "sql": (
            "SELECT\n  TABLE_SCHEMA AS database_name,\n  TABLE_NAME,\n  TABLE_ROWS,\n"
            "  ROUND((DATA_LENGTH + INDEX_LENGTH) / 1024 / 1024, 2) AS size_mb\n"
            "FROM information_schema.TABLES\n"
            f"WHERE TABLE_SCHEMA IN ({quoted})\n"
            "ORDER BY (DATA_LENGTH + INDEX_LENGTH) DESC\nLIMIT 20"
        ),
        "use_case": "Identifying largest tables for optimization and resource planning",
    }
