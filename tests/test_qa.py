"""Tests for fact vs. detail reconciliation."""

from __future__ import annotations

import logging

import pytest

from salon_bonus.aggregate import aggregate_facts
from salon_bonus.facts.transform import parse_fact_rows
from salon_bonus.qa import check_fact_reconciliation, reconciliation_frame


@pytest.fixture
def mismatched(make_fact_row, make_detail):
    """Facts that reconcile, drift within tolerance, drift beyond it, or lack details."""
    facts, _ = parse_fact_rows(
        [
            make_fact_row("s-1", "loreal", "2024-01", 100.0, 0, [make_detail("A", 100.0)]),
            make_fact_row("s-1", "loreal", "2024-02", 100.0, 0, [make_detail("A", 99.995)]),
            make_fact_row("s-2", "loreal", "2024-01", 100.0, 0, [make_detail("A", 90.0)]),
            make_fact_row("s-3", "loreal", "2024-01", 100.0),
        ]
    )
    return facts


def test_warns_only_beyond_tolerance(mismatched, caplog: pytest.LogCaptureFixture) -> None:
    """Test that only differences above the tolerance produce warnings."""
    with caplog.at_level(logging.WARNING):
        warnings = check_fact_reconciliation(mismatched, tolerance=0.01)

    assert [(w.salon_id, w.period) for w in warnings] == [("s-2", "2024-01"), ("s-3", "2024-01")]
    assert warnings[0].difference == pytest.approx(10.0)
    assert "Integrity check" in caplog.text


def test_fact_without_details_is_reported(make_fact_row) -> None:
    """Test that a non-zero total with no brand lines is a detail sum of 0."""
    facts, _ = parse_fact_rows([make_fact_row("s-1", "loreal", "2024-01", 1_000.0)])

    (warning,) = check_fact_reconciliation(facts)

    assert warning.fact_turnover == 1_000.0
    assert warning.detail_turnover == 0.0
    assert warning.difference == 1_000.0


def test_zero_fact_without_details_reconciles(make_fact_row) -> None:
    """Test that an empty fact with no brand lines raises nothing."""
    facts, _ = parse_fact_rows([make_fact_row("s-1", "loreal", "2024-01", 0.0)])

    assert check_fact_reconciliation(facts) == []


def test_zero_tolerance_catches_small_drift(mismatched) -> None:
    """Test that a zero tolerance also reports sub-cent drift."""
    warnings = check_fact_reconciliation(mismatched, tolerance=0.0)

    assert {w.salon_id for w in warnings} == {"s-1", "s-2", "s-3"}


def test_reconciliation_frame(mismatched) -> None:
    """Test the per-salon fact vs. detail frame."""
    frame = reconciliation_frame(aggregate_facts(mismatched)).set_index("salon_id")

    assert frame.loc["s-2", "difference"] == pytest.approx(10.0)
    assert frame.loc["s-3", "detail_turnover"] == 0.0
    assert list(frame.columns) == ["fact_turnover", "detail_turnover", "difference"]
