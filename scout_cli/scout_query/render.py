"""Output rendering helpers for scout-query."""

from __future__ import annotations

import sys
from typing import Any, Mapping

from rich import box
from rich.console import Console
from rich.table import Table

from scout_cli.shared.logging import Logger
from scout_cli.shared.utils import dump_json, json_default


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (str, int, float)):
        return str(value)
    return str(json_default(value))


def render_query_document(
    document: Mapping[str, Any],
    *,
    output_format: str,
    logger: Logger,
    stream=None,
) -> None:
    """Render a run-query document as a table or as JSON."""
    output_stream = stream or sys.stdout
    if output_format == "json":
        print(dump_json(document), file=output_stream)
        return

    rows = document.get("rows") or []
    if not rows:
        print("No rows returned.", file=output_stream)
    else:
        console = Console(file=output_stream, highlight=False, force_terminal=False, width=200)
        table = Table(box=box.SIMPLE, show_header=True, header_style="bold")
        columns = list(rows[0].keys())
        for name in columns:
            table.add_column(str(name))
        for row in rows:
            table.add_row(*(_cell(row.get(name)) for name in columns))
        console.print(table)
    logger.info(str(document.get("summary", "")))
    if document.get("performance") and document["performance"] != "Good performance":
        logger.warning(str(document["performance"]))
