from __future__ import annotations

import pytest

from scout_cli.scout_analyze.graph import build_relationship_graph
from scout_cli.shared.catalog import ForeignKeyRow


def _edge(source: str, column: str, target: str, target_column: str = "id") -> ForeignKeyRow:
    return ForeignKeyRow(source_table=source, source_column=column, target_table=target, target_column=target_column)


def test_edges_are_indexed_under_both_endpoints() -> None:
    graph = build_relationship_graph(
        [_edge("orders", "customer_id", "customers"), _edge("events", "user_id", "customers")]
    )

    assert len(graph) == 3
    assert "orders" in graph and "customers" in graph
    assert graph.incoming_count("customers") == 2
    assert graph.outgoing_count("customers") == 0
    assert graph.outgoing_count("orders") == 1
    link = graph.node("orders").references[0]
    assert (link.table, link.via_column, link.target_column) == ("customers", "customer_id", "id")
    assert [link.table for link in graph.node("customers").referenced_by] == ["orders", "events"]


def test_self_reference_lands_in_both_lists() -> None:
    graph = build_relationship_graph([_edge("employees", "manager_id", "employees")])

    node = graph.node("employees")
    assert len(node.references) == 1
    assert len(node.referenced_by) == 1


def test_unknown_table_has_empty_node() -> None:
    graph = build_relationship_graph([])

    assert len(graph) == 0
    assert graph.incoming_count("ghost") == 0
    assert graph.to_dict() == {}


def test_graph_is_read_only() -> None:
    graph = build_relationship_graph([_edge("orders", "customer_id", "customers")])

    with pytest.raises(TypeError):
        graph.nodes["extra"] = graph.node("orders")  # type: ignore[index]


def test_graph_to_dict() -> None:
    graph = build_relationship_graph([_edge("orders", "customer_id", "customers")])

    assert graph.to_dict() == {
        "orders": {
            "references": [{"table": "customers", "via_column": "customer_id", "target_column": "id"}],
            "referenced_by": [],
        },
        "customers": {
            "references": [],
            "referenced_by": [{"table": "orders", "via_column": "customer_id", "target_column": "id"}],
        },
    }
