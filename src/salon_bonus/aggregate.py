"""Mart layer: aggregate bonus facts by salon, supplier, brand and month.

Facts are folded into two frames:

- **fact grain** (salon x supplier x period): ``total_turnover`` and
  ``loyalty_bonus_amount``. Source of truth for salon and chain totals.
- **detail grain** (salon x supplier x period x brand x kjemi flag):
  ``turnover`` and ``loyalty`` from the embedded brand details. Source of
  truth for brand breakdowns and the monthly chart.

Facts sharing (salon_id, supplier_id, period) are summed, not replaced: the
store does not guarantee uniqueness at that grain. Aggregation is
order-independent and applies no rounding.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Optional

import numpy as np
import pandas as pd

from salon_bonus.models import BonusFact

logger = logging.getLogger(__name__)

FACT_KEY = ["salon_id", "supplier_id", "period"]
FACT_VALUES = ["total_turnover", "loyalty_bonus_amount"]
DETAIL_KEY = FACT_KEY + ["brand", "is_kjemi"]
DETAIL_VALUES = ["turnover", "loyalty"]
BRAND_COLUMNS = ["brand", "kjemi", "produkt", "total", "loyalty_bonus"]


def _sum_by(df: pd.DataFrame, keys: list[str], values: list[str]) -> pd.DataFrame:
    """Group ``df`` by ``keys`` and sum ``values``; keys stay as columns."""
    if df.empty:
        empty = pd.DataFrame(columns=keys + values)
        return empty.astype({v: float for v in values})
    return df.groupby(keys, as_index=False, sort=True)[values].sum()


def facts_to_frame(facts: Iterable[BonusFact]) -> pd.DataFrame:
    """One row per fact with its fact-level amounts."""
    records = [
        (f.salon_id, f.supplier_id, f.period, f.total_turnover, f.loyalty_bonus_amount)
        for f in facts
    ]
    df = pd.DataFrame.from_records(records, columns=FACT_KEY + FACT_VALUES)
    return df.astype({v: float for v in FACT_VALUES})


def details_to_frame(facts: Iterable[BonusFact]) -> pd.DataFrame:
    """One row per brand detail, keyed by its fact."""
    records = [
        (f.salon_id, f.supplier_id, f.period, d.brand, d.is_kjemi, d.turnover, d.loyalty)
        for f in facts
        for d in f.details
    ]
    df = pd.DataFrame.from_records(records, columns=DETAIL_KEY + DETAIL_VALUES)
    return df.astype({v: float for v in DETAIL_VALUES})


@dataclass(frozen=True)
class BonusAggregate:
    """Aggregated facts at fact grain and brand-detail grain.

    Attributes:
        facts: Columns salon_id, supplier_id, period, total_turnover,
            loyalty_bonus_amount. Unique per (salon_id, supplier_id, period).
        details: Columns salon_id, supplier_id, period, brand, is_kjemi,
            turnover, loyalty.
    """

    facts: pd.DataFrame
    details: pd.DataFrame

    def _filtered(
        self,
        df: pd.DataFrame,
        salon_id: Optional[str] = None,
        supplier_id: Optional[str] = None,
    ) -> pd.DataFrame:
        if salon_id is not None:
            df = df[df["salon_id"] == salon_id]
        if supplier_id is not None:
            df = df[df["supplier_id"] == supplier_id]
        return df

    def restrict(
        self, salon_id: Optional[str] = None, supplier_id: Optional[str] = None
    ) -> BonusAggregate:
        """Return the aggregate limited to one salon and/or supplier."""
        return BonusAggregate(
            facts=self._filtered(self.facts, salon_id, supplier_id).reset_index(drop=True),
            details=self._filtered(self.details, salon_id, supplier_id).reset_index(drop=True),
        )

    @property
    def is_empty(self) -> bool:
        return self.facts.empty

    def salon_ids(self) -> list[str]:
        """Distinct salon ids, sorted."""
        return sorted(str(s) for s in self.facts["salon_id"].unique())

    def chain_totals(self) -> tuple[float, float]:
        """Return (total turnover, total loyalty bonus) over all facts.

        Summed from the per-salon totals in salon order, so the chain figure
        equals the sum of the overview rows exactly.
        """
        totals = self.salon_totals()
        return (
            sum((float(v) for v in totals["turnover"]), 0.0),
            sum((float(v) for v in totals["loyalty_bonus"]), 0.0),
        )

    def salon_totals(self) -> pd.DataFrame:
        """Per-salon totals.

        Returns:
            DataFrame with salon_id, turnover (fact level), loyalty_bonus and
            detail_turnover (sum of brand details).

        """
        totals = _sum_by(self.facts, ["salon_id"], FACT_VALUES).rename(
            columns={"total_turnover": "turnover", "loyalty_bonus_amount": "loyalty_bonus"}
        )
        detail = _sum_by(self.details, ["salon_id"], ["turnover"]).rename(
            columns={"turnover": "detail_turnover"}
        )
        out = totals.merge(detail, on="salon_id", how="left")
        out["detail_turnover"] = out["detail_turnover"].astype(float).fillna(0.0)
        return out

    def supplier_totals(self, salon_id: Optional[str] = None) -> pd.DataFrame:
        """Per-supplier turnover and loyalty bonus, largest turnover first."""
        df = self._filtered(self.facts, salon_id=salon_id)
        out = _sum_by(df, ["supplier_id"], FACT_VALUES).rename(
            columns={"total_turnover": "turnover", "loyalty_bonus_amount": "loyalty_bonus"}
        )
        return out.sort_values(
            ["turnover", "supplier_id"], ascending=[False, True], kind="mergesort"
        ).reset_index(drop=True)

    def supplier_turnover_by_salon(self, supplier_id: str) -> dict[str, float]:
        """Fact-level turnover of one supplier, per salon."""
        df = self._filtered(self.facts, supplier_id=supplier_id)
        sums = df.groupby("salon_id")["total_turnover"].sum()
        return {str(salon): float(value) for salon, value in sums.items()}

    def supplier_turnover(self, salon_id: str, supplier_id: str) -> float:
        """Fact-level turnover of one supplier at one salon.

        Same reduction as ``supplier_turnover_by_salon``.
        """
        return self.supplier_turnover_by_salon(supplier_id).get(salon_id, 0.0)

    def salon_summary(self, salon_id: str) -> tuple[float, float, float]:
        """Return (turnover, loyalty bonus, detail turnover) of one salon.

        Read from ``salon_totals``; zeros when the salon has no facts.
        """
        totals = self.salon_totals()
        match = totals[totals["salon_id"] == salon_id]
        if match.empty:
            return 0.0, 0.0, 0.0
        row = match.iloc[0]
        return float(row["turnover"]), float(row["loyalty_bonus"]), float(row["detail_turnover"])

    def detail_turnover(
        self, salon_id: Optional[str] = None, supplier_id: Optional[str] = None
    ) -> float:
        """Sum of brand-detail turnover under the given restriction."""
        df = self._filtered(self.details, salon_id=salon_id, supplier_id=supplier_id)
        return float(df["turnover"].sum())

    def brand_totals(
        self, salon_id: Optional[str] = None, supplier_id: Optional[str] = None
    ) -> pd.DataFrame:
        """Per-brand kjemi / produkt split, largest total first.

        Returns:
            DataFrame with brand, kjemi, produkt, total (= kjemi + produkt)
            and loyalty_bonus.

        """
        df = self._filtered(self.details, salon_id=salon_id, supplier_id=supplier_id)
        if df.empty:
            return pd.DataFrame(columns=BRAND_COLUMNS).astype(
                {c: float for c in BRAND_COLUMNS if c != "brand"}
            )

        is_kjemi = df["is_kjemi"].astype(bool).to_numpy()
        df = df.assign(
            kjemi=np.where(is_kjemi, df["turnover"].to_numpy(), 0.0),
            produkt=np.where(is_kjemi, 0.0, df["turnover"].to_numpy()),
        )
        out = df.groupby("brand", as_index=False, sort=True)[["kjemi", "produkt", "loyalty"]].sum()
        out["total"] = out["kjemi"] + out["produkt"]
        out = out.rename(columns={"loyalty": "loyalty_bonus"})
        out = out.sort_values(["total", "brand"], ascending=[False, True], kind="mergesort")
        return out.reset_index(drop=True)[BRAND_COLUMNS]

    def brand_turnover(
        self, salon_id: Optional[str] = None, supplier_id: Optional[str] = None
    ) -> dict[str, float]:
        """Brand-detail turnover per brand."""
        df = self._filtered(self.details, salon_id=salon_id, supplier_id=supplier_id)
        sums = df.groupby("brand")["turnover"].sum()
        return {str(brand): float(value) for brand, value in sums.items()}

    def monthly_by_brand(
        self, salon_id: Optional[str] = None, supplier_id: Optional[str] = None
    ) -> pd.DataFrame:
        """Turnover per (period, brand), positive values only, sorted by period."""
        df = self._filtered(self.details, salon_id=salon_id, supplier_id=supplier_id)
        out = _sum_by(df, ["period", "brand"], ["turnover"])
        out = out[out["turnover"] > 0]
        return out.sort_values(["period", "brand"], kind="mergesort").reset_index(drop=True)

    def monthly_by_supplier(self, salon_id: Optional[str] = None) -> dict[str, dict[str, float]]:
        """Fact-level turnover per supplier per period."""
        df = self._filtered(self.facts, salon_id=salon_id)
        out: dict[str, dict[str, float]] = {}
        for row in _sum_by(df, ["supplier_id", "period"], ["total_turnover"]).itertuples(
            index=False
        ):
            out.setdefault(str(row.supplier_id), {})[str(row.period)] = float(row.total_turnover)
        return out

    def nested(self) -> dict[str, dict[str, dict[str, dict[str, float]]]]:
        """Brand-detail turnover as salon -> supplier -> brand -> period -> turnover."""
        grouped = _sum_by(self.details, ["salon_id", "supplier_id", "brand", "period"], ["turnover"])
        out: dict[str, dict[str, dict[str, dict[str, float]]]] = {}
        for row in grouped.itertuples(index=False):
            brands = out.setdefault(str(row.salon_id), {}).setdefault(str(row.supplier_id), {})
            brands.setdefault(str(row.brand), {})[str(row.period)] = float(row.turnover)
        return out


def aggregate_facts(facts: Iterable[BonusFact]) -> BonusAggregate:
    """Fold facts into a BonusAggregate.

    Args:
        facts: Validated facts, in any order.

    Returns:
        BonusAggregate with duplicate fact keys summed.

    Examples:
        >>> agg = aggregate_facts(batch.facts)
        >>> agg.salon_totals().head()

    """
    facts = list(facts)
    fact_df = _sum_by(facts_to_frame(facts), FACT_KEY, FACT_VALUES)
    detail_df = _sum_by(details_to_frame(facts), DETAIL_KEY, DETAIL_VALUES)

    duplicates = len(facts) - len(fact_df)
    if duplicates:
        logger.info("Summed %d fact(s) sharing a salon/supplier/period key", duplicates)
    logger.debug(
        "Aggregated %d fact(s) into %d fact row(s), %d detail row(s)",
        len(facts),
        len(fact_df),
        len(detail_df),
    )
    return BonusAggregate(facts=fact_df, details=detail_df)
