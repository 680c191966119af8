"""scout-discover CLI entrypoint."""

from __future__ import annotations

from typing import Sequence

import click

from scout_cli.shared.cli import (
    CLIContext,
    common_cli_options,
    echo_json,
    handle_cli_errors,
    pass_cli_context,
    server_label,
)
from scout_cli.shared.database import open_executor

from .orchestrator import discover_analytics
from .types import (
    DETAIL_LEVELS,
    FOCUS_AREAS,
    MAX_TABLES_LIMIT,
    PAGE_SIZE_MAX,
    SAMPLE_LIMIT_MAX,
    DiscoveryRequest,
)


@click.group(help="Discover and classify the databases on a MySQL server.")
@common_cli_options
@handle_cli_errors
def cli(cli_ctx: CLIContext) -> None:
    """Primary Click group for scout-discover commands."""
    cli_ctx.logger.debug(f"scout-discover group initialised for {server_label(cli_ctx.config)}.")


@cli.command("run")
@click.option("--db", "databases", multiple=True, help="Database to analyze (repeatable; default: all).")
@click.option("--focus", "focus_area", type=click.Choice(FOCUS_AREAS), default="general", show_default=True)
@click.option("--detail", "detail_level", type=click.Choice(DETAIL_LEVELS), default="summary", show_default=True)
@click.option(
    "--max-tables",
    "max_tables_per_db",
    type=click.IntRange(1, MAX_TABLES_LIMIT),
    default=20,
    show_default=True,
)
@click.option(
    "--sample-limit",
    "sample_data_limit",
    type=click.IntRange(0, SAMPLE_LIMIT_MAX),
    default=3,
    show_default=True,
)
@click.option("--page", type=click.IntRange(min=1), default=1, show_default=True)
@click.option("--page-size", type=click.IntRange(1, PAGE_SIZE_MAX), default=5, show_default=True)
@click.option("--cross-database/--no-cross-database", "cross_database_analysis", default=True, show_default=True)
@click.option("--recommendations/--no-recommendations", "include_recommendations", default=True, show_default=True)
@pass_cli_context
@handle_cli_errors
def run_discovery(
    cli_ctx: CLIContext,
    databases: Sequence[str],
    focus_area: str,
    detail_level: str,
    max_tables_per_db: int,
    sample_data_limit: int,
    page: int,
    page_size: int,
    cross_database_analysis: bool,
    include_recommendations: bool,
) -> None:
    """Print a discovery report for one page of databases as JSON."""
    request = DiscoveryRequest(
        databases=tuple(databases) or None,
        focus_area=focus_area,
        detail_level=detail_level,
        max_tables_per_db=max_tables_per_db,
        sample_data_limit=sample_data_limit,
        page=page,
        page_size=page_size,
        cross_database_analysis=cross_database_analysis,
        include_recommendations=include_recommendations,
    )
    connection = cli_ctx.config.connection
    with open_executor(cli_ctx.config) as executor:
        report = discover_analytics(
            executor,
            cli_ctx.cache,
            request,
            server={"host": connection.host, "port": connection.port},
            logger=cli_ctx.logger.child("discover"),
        )
    echo_json(report)


main = cli
