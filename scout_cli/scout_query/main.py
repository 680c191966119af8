"""scout-query CLI entrypoint."""

from __future__ import annotations

from collections.abc import Iterable

import click

from scout_cli.shared.cli import CLIContext, common_cli_options, echo_json, handle_cli_errors, pass_cli_context
from scout_cli.shared.database import open_executor

from . import render
from .executor import run_query, validate_sql
from .schema import get_schema
from .types import DEFAULT_SAMPLE_SIZE

OUTPUT_FORMAT_CHOICES = ("table", "json")


@click.group(help="Run read-only SQL and inspect schemas on a MySQL server.")
@common_cli_options
@handle_cli_errors
def cli(cli_ctx: CLIContext) -> None:
    """Primary Click group for scout-query commands."""
    cli_ctx.logger.debug("scout-query group initialised in read-only mode.")


@cli.command("sql")
@click.argument("query", type=str)
@click.option(
    "-p",
    "--param",
    "params",
    multiple=True,
    metavar="VALUE",
    help="Bind a positional %s parameter (repeatable, in order).",
)
@click.option(
    "--format",
    "output_format",
    default="json",
    show_default=True,
    type=click.Choice(OUTPUT_FORMAT_CHOICES),
)
@pass_cli_context
@handle_cli_errors
def run_sql(cli_ctx: CLIContext, query: str, params: Iterable[str], output_format: str) -> None:
    """Execute a read-only statement (SELECT, SHOW, DESCRIBE, EXPLAIN)."""
    validate_sql(query)
    database = cli_ctx.config.connection.database
    with open_executor(cli_ctx.config, database) as executor:
        document = run_query(executor, cli_ctx.cache, sql=query, params=tuple(params), database=database)
    render.render_query_document(document, output_format=output_format, logger=cli_ctx.logger)


@cli.command("schema")
@click.option("--table", "table", type=str, help="Inspect a single table (name or database.table).")
@click.option(
    "--relationships/--no-relationships",
    "include_relationships",
    default=True,
    show_default=True,
    help="Include foreign keys, constraints, and the relationship graph.",
)
@click.option("--sample", "include_sample_data", is_flag=True, help="Include sample rows and a data profile.")
@click.option("--sample-size", type=click.IntRange(min=1), default=DEFAULT_SAMPLE_SIZE, show_default=True)
@pass_cli_context
@handle_cli_errors
def show_schema(
    cli_ctx: CLIContext,
    table: str | None,
    include_relationships: bool,
    include_sample_data: bool,
    sample_size: int,
) -> None:
    """Display table detail or a database overview as JSON."""
    database = cli_ctx.config.connection.database
    with open_executor(cli_ctx.config, database) as executor:
        document = get_schema(
            executor,
            cli_ctx.cache,
            database=database,
            table=table,
            include_relationships=include_relationships,
            include_sample_data=include_sample_data,
            sample_size=sample_size,
        )
    echo_json(document)


@cli.command("cache-prune")
@click.option(
    "--retention-days",
    type=click.IntRange(min=0),
    help="Delete entries older than this many days (defaults to the configured retention).",
)
@pass_cli_context
@handle_cli_errors
def cache_prune(cli_ctx: CLIContext, retention_days: int | None) -> None:
    """Remove expired entries from the on-disk cache."""
    if not cli_ctx.cache.enabled:
        cli_ctx.logger.warning("Cache is disabled; nothing to prune.")
        return
    removed = cli_ctx.cache.prune(retention_days)
    cli_ctx.logger.success(f"Removed {removed} cache entr{'y' if removed == 1 else 'ies'} from {cli_ctx.cache.base_dir}")


main = cli
