"""scout-analyze CLI entrypoint."""

from __future__ import annotations

from typing import Sequence

import click

from scout_cli.shared.cli import CLIContext, common_cli_options, echo_json, handle_cli_errors, pass_cli_context
from scout_cli.shared.database import open_executor

from .tables import ANALYSIS_TYPES, analyze_tables


@click.group(help="Analyze how a set of MySQL tables relate to each other.")
@common_cli_options
@handle_cli_errors
def cli(cli_ctx: CLIContext) -> None:
    """Primary Click group for scout-analyze commands."""
    cli_ctx.logger.debug("scout-analyze group initialised.")


@cli.command("tables")
@click.argument("tables", nargs=-1, required=True)
@click.option(
    "--type",
    "analysis_type",
    default="relationships",
    show_default=True,
    type=click.Choice(ANALYSIS_TYPES),
)
@pass_cli_context
@handle_cli_errors
def run_tables(cli_ctx: CLIContext, tables: Sequence[str], analysis_type: str) -> None:
    """Analyze TABLES (names or database.table) and print a JSON document."""
    database = cli_ctx.config.connection.database
    cli_ctx.logger.info(f"Running {analysis_type} analysis on {len(tables)} table(s).")
    with open_executor(cli_ctx.config, database) as executor:
        document = analyze_tables(
            executor,
            cli_ctx.cache,
            tables=list(tables),
            analysis_type=analysis_type,
            database=database,
        )
    echo_json(document)


main = cli
