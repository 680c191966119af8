from __future__ import annotations

from decimal import Decimal

from scout_cli.shared.dataframe import behavior_profiles, profile_rows, rows_to_frame


def test_rows_to_frame_keeps_driver_values() -> None:
    frame = rows_to_frame([{"amount": Decimal("1.50"), "n": 1}])

    assert frame.loc[0, "amount"] == Decimal("1.50")
    assert isinstance(frame.loc[0, "amount"], Decimal)


def test_profile_rows_counts_nulls_and_distinct_values() -> None:
    rows = [
        {"id": 1, "email": "a@example.com", "plan": "pro"},
        {"id": 2, "email": None, "plan": "pro"},
        {"id": 3, "email": "c@example.com", "plan": "free"},
    ]

    profile = profile_rows(rows, total_rows=120)

    assert profile["total_rows"] == 120
    assert profile["sample_size"] == 3
    email = profile["columns"]["email"]
    assert email["non_null"] == 2
    assert email["null_count"] == 1
    assert profile["columns"]["plan"]["unique_values"] == 2
    assert profile["columns"]["plan"]["sample_values"] == ["pro", "free"]


def test_profile_rows_with_no_sample_keeps_declared_columns() -> None:
    profile = profile_rows([], total_rows=0, columns=["id", "name"])

    assert profile["sample_size"] == 0
    assert profile["columns"]["name"] == {
        "non_null": 0,
        "null_count": 0,
        "unique_values": 0,
        "sample_values": [],
    }


def test_sample_values_are_capped_at_five() -> None:
    rows = [{"event_type": f"e{index}"} for index in range(8)]

    profile = profile_rows(rows, total_rows=8)

    assert profile["columns"]["event_type"]["sample_values"] == ["e0", "e1", "e2", "e3", "e4"]
    assert profile["columns"]["event_type"]["unique_values"] == 8


def test_behavior_profiles_tolerate_missing_columns() -> None:
    rows = [{"event_type": "login"}, {"event_type": "login"}, {"event_type": "purchase"}]

    profiles = behavior_profiles(rows, ["event_type", "action"])

    assert profiles["event_type"] == {"sample_values": ["login", "purchase"], "unique_count": 2}
    assert profiles["action"] == {"sample_values": [], "unique_count": 0}
    assert behavior_profiles(rows, []) == {}
