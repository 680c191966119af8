from __future__ import annotations

import pytest

from scout_cli.scout_query.schema import get_schema
from scout_cli.shared.exceptions import ValidationError


def test_table_detail_with_relationships(catalog_executor, cache) -> None:
    document = get_schema(catalog_executor, cache, database="shop", table="orders")

    assert document["database"] == "shop"
    assert document["table"] == "orders"
    assert [column["name"] for column in document["columns"]] == ["id", "customer_id", "total_amount", "created_at"]
    assert document["indexes"][0]["name"] == "PRIMARY"
    assert document["relationships"]["foreign_keys"][0]["target_table"] == "customers"
    assert document["relationships"]["referenced_by"] == []
    assert {row["constraint_type"] for row in document["constraints"]} == {"PRIMARY KEY", "FOREIGN KEY"}
    assert "data_profile" not in document
    assert document["cache"]["note"] == "Result written to cache."


def test_table_detail_without_relationships_skips_catalog_joins(catalog_executor, cache) -> None:
    document = get_schema(
        catalog_executor, cache, database="shop", table="customers", include_relationships=False
    )

    assert document["relationships"] == {"foreign_keys": [], "referenced_by": []}
    assert document["constraints"] == []
    assert catalog_executor.count("KEY_COLUMN_USAGE") == 0


def test_referenced_by_lists_child_tables(catalog_executor, cache) -> None:
    document = get_schema(catalog_executor, cache, database="shop", table="customers")

    referencing = [row["referencing_table"] for row in document["relationships"]["referenced_by"]]
    assert referencing == ["orders", "events"]


def test_sample_data_adds_profile(catalog_executor, cache) -> None:
    document = get_schema(
        catalog_executor, cache, database="shop", table="customers", include_sample_data=True, sample_size=5
    )

    assert len(document["sample_data"]) == 2
    profile = document["data_profile"]
    assert profile["total_rows"] == 120
    assert profile["sample_size"] == 2
    email = profile["columns"]["email"]
    assert email["null_count"] == 1
    assert email["nullable"] is True
    assert email["data_type"] == "varchar(255)"
    assert "LIMIT 5" in catalog_executor.statements[-2]


def test_sample_size_is_capped(catalog_executor, cache) -> None:
    get_schema(catalog_executor, cache, database="shop", table="events", include_sample_data=True, sample_size=5000)

    assert catalog_executor.count("LIMIT 1000") == 1


@pytest.mark.parametrize("sample_size", [0, -3, "10", True])
def test_invalid_sample_size_rejected_before_io(catalog_executor, cache, sample_size) -> None:
    with pytest.raises(ValidationError):
        get_schema(catalog_executor, cache, database="shop", table="orders", sample_size=sample_size)
    assert catalog_executor.calls == []


def test_qualified_table_name_overrides_database(catalog_executor, cache) -> None:
    document = get_schema(catalog_executor, cache, database="shop", table="analytics.page_views")

    assert document["database"] == "analytics"
    assert document["table"] == "page_views"
    assert catalog_executor.statements[0] == "DESCRIBE `analytics`.`page_views`"


def test_missing_database_is_rejected(catalog_executor, cache) -> None:
    with pytest.raises(ValidationError):
        get_schema(catalog_executor, cache, database=None, table="orders")
    with pytest.raises(ValidationError):
        get_schema(catalog_executor, cache, database=None)
    assert catalog_executor.calls == []


def test_table_detail_served_from_cache_while_fresh(catalog_executor, cache, clock) -> None:
    first = get_schema(catalog_executor, cache, database="shop", table="orders")
    calls = len(catalog_executor.calls)
    clock.advance(minutes=30)

    second = get_schema(catalog_executor, cache, database="shop", table="orders")

    assert len(catalog_executor.calls) == calls
    assert second["columns"] == first["columns"]
    assert second["cache"]["age_hours"] == 0.5
    assert second["cache"]["ttl_hours"] == 1.0

    clock.advance(hours=1)
    get_schema(catalog_executor, cache, database="shop", table="orders")
    assert len(catalog_executor.calls) > calls


def test_different_options_use_different_entries(catalog_executor, cache) -> None:
    get_schema(catalog_executor, cache, database="shop", table="orders")
    calls = len(catalog_executor.calls)

    get_schema(catalog_executor, cache, database="shop", table="orders", include_relationships=False)

    assert len(catalog_executor.calls) > calls


def test_database_overview(catalog_executor, cache) -> None:
    document = get_schema(catalog_executor, cache, database="shop")

    assert document["tables"] == ["customers", "orders", "events"]
    assert len(document["relationships"]) == 2
    assert {row["table_name"] for row in document["table_sizes"]} == {"customers", "orders", "events"}
    graph = document["relationship_graph"]
    assert [link["table"] for link in graph["customers"]["referenced_by"]] == ["orders", "events"]
    assert graph["orders"]["references"] == [
        {"table": "customers", "via_column": "customer_id", "target_column": "id"}
    ]


def test_database_overview_without_relationships(catalog_executor, cache, clock) -> None:
    document = get_schema(catalog_executor, cache, database="analytics", include_relationships=False)

    assert document == {
        "database": "analytics",
        "tables": ["customers", "page_views"],
        "cache": document["cache"],
    }

    clock.advance(minutes=90)
    cached = get_schema(catalog_executor, cache, database="analytics", include_relationships=False)
    assert cached["cache"]["ttl_hours"] == 2.0
    assert catalog_executor.count("SHOW TABLES") == 1
