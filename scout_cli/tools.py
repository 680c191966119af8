"""Tool registry and dispatch: the surface an agent calls by tool name."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, ContextManager, Mapping, Sequence

import click

from scout_cli.scout_analyze.tables import ANALYSIS_TYPES, analyze_tables
from scout_cli.scout_discover.orchestrator import discover_analytics
from scout_cli.scout_discover.types import DiscoveryRequest
from scout_cli.scout_query.executor import run_query, validate_sql
from scout_cli.scout_query.schema import get_schema
from scout_cli.scout_query.types import DEFAULT_SAMPLE_SIZE
from scout_cli.shared.cache import CacheStore
from scout_cli.shared.cli import CLIContext, common_cli_options, handle_cli_errors, pass_cli_context
from scout_cli.shared.config import AppConfig
from scout_cli.shared.database import QueryExecutor, open_executor
from scout_cli.shared.exceptions import ScoutError, ValidationError
from scout_cli.shared.logging import Logger, get_logger
from scout_cli.shared.utils import dump_json

ExecutorFactory = Callable[[str | None], ContextManager[QueryExecutor]]


@dataclass(frozen=True, slots=True)
class ToolContext:
    config: AppConfig
    cache: CacheStore
    executor_factory: ExecutorFactory
    logger: Logger


@dataclass(frozen=True, slots=True)
class ToolSpec:
    """Static metadata describing a callable tool."""

    name: str
    description: str
    handler: Callable[[ToolContext, Mapping[str, Any]], dict[str, Any]]
    arguments: Mapping[str, str]


@dataclass(frozen=True, slots=True)
class ToolResponse:
    text: str
    is_error: bool = False


# ----- Argument helpers ---------------------------------------------------------------------


def _optional_str(arguments: Mapping[str, Any], key: str) -> str | None:
    value = arguments.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"'{key}' must be a string.")
    return value or None


def _bool(arguments: Mapping[str, Any], key: str, default: bool) -> bool:
    value = arguments.get(key, default)
    if not isinstance(value, bool):
        raise ValidationError(f"'{key}' must be true or false.")
    return value


def _string_list(arguments: Mapping[str, Any], key: str) -> list[str]:
    value = arguments.get(key)
    if not isinstance(value, Sequence) or isinstance(value, str):
        raise ValidationError(f"'{key}' must be an array of strings.")
    if not all(isinstance(item, str) for item in value):
        raise ValidationError(f"'{key}' must contain only strings.")
    return list(value)


def _database(ctx: ToolContext, arguments: Mapping[str, Any]) -> str | None:
    return _optional_str(arguments, "database") or ctx.config.connection.database


def _server(config: AppConfig) -> dict[str, Any]:
    return {"host": config.connection.host, "port": config.connection.port}


# ----- Handlers -----------------------------------------------------------------------------


def _handle_query(ctx: ToolContext, arguments: Mapping[str, Any]) -> dict[str, Any]:
    sql = arguments.get("query")
    if not isinstance(sql, str):
        raise ValidationError("'query' is required and must be a string.")
    validate_sql(sql)
    params = arguments.get("params", [])
    if not isinstance(params, Sequence) or isinstance(params, str):
        raise ValidationError("'params' must be an array.")
    database = _database(ctx, arguments)
    with ctx.executor_factory(database) as executor:
        return run_query(executor, ctx.cache, sql=sql, params=tuple(params), database=database)


def _handle_schema(ctx: ToolContext, arguments: Mapping[str, Any]) -> dict[str, Any]:
    database = _database(ctx, arguments)
    table = _optional_str(arguments, "table")
    include_relationships = _bool(arguments, "include_relationships", True)
    include_sample_data = _bool(arguments, "include_sample_data", False)
    sample_size = arguments.get("sample_size", DEFAULT_SAMPLE_SIZE)
    with ctx.executor_factory(database) as executor:
        return get_schema(
            executor,
            ctx.cache,
            database=database,
            table=table,
            include_relationships=include_relationships,
            include_sample_data=include_sample_data,
            sample_size=sample_size,
        )


def _handle_analyze_tables(ctx: ToolContext, arguments: Mapping[str, Any]) -> dict[str, Any]:
    tables = _string_list(arguments, "tables")
    if not tables:
        raise ValidationError("Tables array is required and cannot be empty.")
    analysis_type = arguments.get("analysis_type", "relationships")
    if analysis_type not in ANALYSIS_TYPES:
        raise ValidationError(f"Unknown analysis type: {analysis_type}")
    database = _database(ctx, arguments)
    with ctx.executor_factory(database) as executor:
        return analyze_tables(
            executor,
            ctx.cache,
            tables=tables,
            analysis_type=analysis_type,
            database=database,
        )


def _handle_discover(ctx: ToolContext, arguments: Mapping[str, Any]) -> dict[str, Any]:
    request = DiscoveryRequest.from_arguments(arguments)
    with ctx.executor_factory(None) as executor:
        return discover_analytics(
            executor,
            ctx.cache,
            request,
            server=_server(ctx.config),
            logger=ctx.logger.child("discover"),
        )


_TOOL_SPECS: Sequence[ToolSpec] = (
    ToolSpec(
        name="mysql_query",
        description="Execute a read-only SQL statement (SELECT, SHOW, DESCRIBE, EXPLAIN).",
        handler=_handle_query,
        arguments={
            "query": "SQL text (required).",
            "params": "Positional parameter values bound to %s placeholders.",
            "database": "Database to run against (defaults to the configured one).",
        },
    ),
    ToolSpec(
        name="mysql_schema",
        description="Show table detail (columns, indexes, keys, optional sample profile) or a database overview.",
        handler=_handle_schema,
        arguments={
            "database": "Database to inspect (defaults to the configured one).",
            "table": "Table name or database.table; omit for a database overview.",
            "include_relationships": "Include foreign keys and the relationship graph (default true).",
            "include_sample_data": "Include sample rows and a data profile (default false).",
            "sample_size": "Sample rows to fetch, 1-1000 (default 100).",
        },
    ),
    ToolSpec(
        name="mysql_analyze_tables",
        description="Analyze relationships, user behavior, or data flow for a set of tables.",
        handler=_handle_analyze_tables,
        arguments={
            "tables": "Table names to analyze (required, non-empty).",
            "analysis_type": "relationships, user_behavior, or data_flow (default relationships).",
            "database": "Database holding the tables (defaults to the configured one).",
        },
    ),
    ToolSpec(
        name="mysql_discover_analytics",
        description="Discover and classify databases with analytics insights. Use summary mode first for large servers.",
        handler=_handle_discover,
        arguments={
            "databases": "Databases to analyze (default: every non-system database).",
            "focus_area": "user_behavior, sales_analytics, engagement, or general (default general).",
            "detail_level": "summary, detailed, or full (default summary).",
            "max_tables_per_db": "Tables per database, 1-100 (default 20).",
            "sample_data_limit": "Sample rows per table at full detail, 0-10 (default 3).",
            "page": "Page of databases, 1-based (default 1).",
            "page_size": "Databases per page, 1-10 (default 5).",
            "cross_database_analysis": "Look for patterns across databases (default true).",
            "include_recommendations": "Include insights and starter queries (default true).",
        },
    ),
)

_SPECS_BY_NAME: dict[str, ToolSpec] = {spec.name: spec for spec in _TOOL_SPECS}


def all_specs() -> Sequence[ToolSpec]:
    return _TOOL_SPECS


def get_spec(name: str) -> ToolSpec:
    try:
        return _SPECS_BY_NAME[name]
    except KeyError as exc:
        raise ValidationError(f"Unknown tool: {name}") from exc


def call_tool(
    name: str,
    arguments: Mapping[str, Any] | None,
    *,
    config: AppConfig,
    cache: CacheStore,
    executor_factory: ExecutorFactory | None = None,
    logger: Logger | None = None,
) -> ToolResponse:
    """Dispatch a tool call; project errors come back as an error response, never as exceptions."""
    logger = logger or get_logger(name="tools")
    factory = executor_factory or (lambda database: open_executor(config, database))
    ctx = ToolContext(config=config, cache=cache, executor_factory=factory, logger=logger)
    try:
        spec = get_spec(name)
        if arguments is not None and not isinstance(arguments, Mapping):
            raise ValidationError("Tool arguments must be an object.")
        document = spec.handler(ctx, arguments or {})
    except ScoutError as exc:
        logger.error(f"{name} failed: {exc}")
        return ToolResponse(text=f"Error: {exc}", is_error=True)
    return ToolResponse(text=dump_json(document))


# ----- CLI ----------------------------------------------------------------------------------


@click.group(help="List and call the agent-facing MySQL tools.")
@common_cli_options
@handle_cli_errors
def cli(cli_ctx: CLIContext) -> None:
    cli_ctx.logger.debug("scout-tools group initialised.")


@cli.command("list")
@pass_cli_context
def list_tools(cli_ctx: CLIContext) -> None:
    """Print the available tools and their arguments."""
    for spec in all_specs():
        click.echo(f"{spec.name}: {spec.description}")
        for argument, help_text in spec.arguments.items():
            click.echo(f"    {argument}: {help_text}")


@cli.command("call")
@click.argument("name")
@click.option("--args", "raw_arguments", default="{}", show_default=True, help="Tool arguments as a JSON object.")
@pass_cli_context
def call(cli_ctx: CLIContext, name: str, raw_arguments: str) -> None:
    """Call tool NAME and print its text response."""
    try:
        arguments = json.loads(raw_arguments)
    except json.JSONDecodeError as exc:
        raise click.BadParameter(f"not valid JSON ({exc})", param_hint="--args") from exc
    response = call_tool(
        name,
        arguments,
        config=cli_ctx.config,
        cache=cli_ctx.cache,
        logger=cli_ctx.logger.child("tools"),
    )
    click.echo(response.text)
    if response.is_error:
        raise click.exceptions.Exit(1)


main = cli
