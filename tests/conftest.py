"""Shared fixtures: a small salon chain with two years of bonus facts."""

from __future__ import annotations

from typing import Any, Callable, Optional

import pytest

from salon_bonus.config import BonusConfig
from salon_bonus.store import MemoryStore

GROWTH_SUPPLIER = "loreal"


def fact_row(
    salon_id: str,
    supplier_id: str,
    period: str,
    total: float,
    loyalty: float = 0.0,
    details: Optional[list[dict[str, Any]]] = None,
    row_id: int = 0,
) -> dict[str, Any]:
    """Raw fact row as the store returns it."""
    return {
        "id": row_id,
        "salon_id": salon_id,
        "supplier_id": supplier_id,
        "period": period,
        "total_turnover": total,
        "loyalty_bonus_amount": loyalty,
        "calculation_details": {"details": details or []},
    }


def detail(brand: str, turnover: float, loyalty: float = 0.0, group: str = "") -> dict[str, Any]:
    return {"brand": brand, "turnover": turnover, "loyalty": loyalty, "product_group": group}


@pytest.fixture
def make_fact_row() -> Callable[..., dict[str, Any]]:
    return fact_row


@pytest.fixture
def make_detail() -> Callable[..., dict[str, Any]]:
    return detail


@pytest.fixture
def chain_rows() -> list[dict[str, Any]]:
    """Two salons, two suppliers, 2023 and 2024.

    Salon A buys 100 000 from the growth supplier in 2024 vs. 90 000 in 2023.
    Salon B buys 100 000 in 2024 vs. 90 000 calculated in 2023, but has a
    baseline override of 120 000 for 2023.
    """
    rows = [
        fact_row(
            "s-a", "loreal", "2024-01", 60_000, 3_000,
            [detail("Kerastase", 40_000, 2_000, "produkt"), detail("Majirel", 20_000, 1_000, "kjemi")],
        ),
        fact_row(
            "s-a", "loreal", "2024-02", 40_000, 2_000,
            [detail("Majirel", 40_000, 2_000, "kjemi")],
        ),
        fact_row(
            "s-a", "wella", "2024-01", 10_000, 500,
            [detail("Koleston", 10_000, 500, "kjemi")],
        ),
        fact_row(
            "s-a", "loreal", "2023-06", 90_000, 4_500,
            [
                detail("Majirel", 50_000, 2_500, "kjemi"),
                detail("Kerastase", 30_000, 1_500, "produkt"),
                detail("Redken", 10_000, 500, "produkt"),
            ],
        ),
        fact_row(
            "s-b", "loreal", "2024-03", 100_000, 5_000,
            [detail("Majirel", 100_000, 5_000, "kjemi")],
        ),
        fact_row(
            "s-b", "loreal", "2023-03", 90_000, 4_500,
            [detail("Majirel", 90_000, 4_500, "kjemi")],
        ),
    ]
    for i, row in enumerate(rows, start=1):
        row["id"] = i
    return rows


@pytest.fixture
def chain_store(chain_rows: list[dict[str, Any]]) -> MemoryStore:
    return MemoryStore(
        facts=chain_rows,
        overrides=[
            {
                "salon_id": "s-b",
                "supplier_id": "loreal",
                "year": 2023,
                "override_turnover": 120_000,
                "reason": "Ny eier",
            }
        ],
        salons=[{"id": "s-a", "name": "Salong A"}],
        suppliers=[{"id": "loreal", "name": "L'Oréal"}, {"id": "wella", "name": "Wella"}],
    )


@pytest.fixture
def config() -> BonusConfig:
    return BonusConfig(growth_supplier_id=GROWTH_SUPPLIER)
