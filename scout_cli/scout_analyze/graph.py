"""Build the bidirectional table graph from foreign-key edges."""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterable

from scout_cli.shared.catalog import ForeignKeyRow

from .types import GraphLink, GraphNode, RelationshipGraph


def build_relationship_graph(edges: Iterable[ForeignKeyRow]) -> RelationshipGraph:
    """Index each edge under both endpoints.

    The source table gets a `references` link and the target table gets the
    mirrored `referenced_by` link; a self-referencing edge lands in both lists
    of the same node. Link order follows edge order.
    """
    references: dict[str, list[GraphLink]] = {}
    referenced_by: dict[str, list[GraphLink]] = {}

    for edge in edges:
        for table in (edge.source_table, edge.target_table):
            references.setdefault(table, [])
            referenced_by.setdefault(table, [])
        references[edge.source_table].append(
            GraphLink(table=edge.target_table, via_column=edge.source_column, target_column=edge.target_column)
        )
        referenced_by[edge.target_table].append(
            GraphLink(table=edge.source_table, via_column=edge.source_column, target_column=edge.target_column)
        )

    nodes = {
        table: GraphNode(references=tuple(references[table]), referenced_by=tuple(referenced_by[table]))
        for table in references
    }
    return RelationshipGraph(nodes=MappingProxyType(nodes))
