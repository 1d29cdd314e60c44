"""Tiered year-over-year growth bonus.

Only one supplier (``BonusConfig.growth_supplier_id``) pays a growth bonus.
The bonus rate depends on how much that supplier's turnover at a salon grew
compared with the previous year:

    growth >= 10 %   tier 3   10.0 %
    growth >=  5 %   tier 2    5.0 %
    growth >=  0 %   tier 1    2.5 %
    growth <   0 %   tier 0    none

Lower bounds are inclusive. A salon with no previous-year turnover but
purchases this year is a new customer and gets tier 3. No purchases this year
means no bonus.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from salon_bonus.models import BaselineOverride, GrowthBonusResult, TierTarget
from salon_bonus.overrides import resolve_prior_turnover

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GrowthTier:
    """Minimum growth (percent, inclusive) for a tier and the rate it pays."""

    tier: int
    min_growth_percent: float
    bonus_rate: float


DEFAULT_TIERS: tuple[GrowthTier, ...] = (
    GrowthTier(tier=3, min_growth_percent=10.0, bonus_rate=0.10),
    GrowthTier(tier=2, min_growth_percent=5.0, bonus_rate=0.05),
    GrowthTier(tier=1, min_growth_percent=0.0, bonus_rate=0.025),
)


def growth_percent(current: float, prior: float) -> float:
    """Growth of ``current`` over ``prior`` in percent; 0 when prior is 0.

    Multiplies before dividing so round numbers land exactly on tier bounds.

    Examples:
        >>> growth_percent(105.0, 100.0)
        5.0
        >>> growth_percent(50.0, 0.0)
        0.0

    """
    if prior == 0:
        return 0.0
    return (current - prior) * 100 / prior


class GrowthBonusCalculator:
    """Computes the growth bonus for the configured growth supplier.

    Example:
        >>> calc = GrowthBonusCalculator("loreal")
        >>> calc.compute(100_000.0, 90_000.0).tier
        3

    """

    def __init__(self, supplier_id: str, tiers: tuple[GrowthTier, ...] = DEFAULT_TIERS) -> None:
        if not supplier_id:
            raise ValueError("supplier_id must be set")
        if not tiers:
            raise ValueError("at least one growth tier is required")
        self.supplier_id = supplier_id
        self.tiers = tuple(sorted(tiers, key=lambda t: t.min_growth_percent, reverse=True))

    def applies_to(self, supplier_id: Optional[str]) -> bool:
        return supplier_id == self.supplier_id

    @property
    def top_tier(self) -> GrowthTier:
        return self.tiers[0]

    def tier_for(self, growth: float) -> Optional[GrowthTier]:
        """Highest tier whose lower bound ``growth`` reaches, or None."""
        for tier in self.tiers:
            if growth >= tier.min_growth_percent:
                return tier
        return None

    def compute(
        self,
        current: float,
        prior: float,
        override: Optional[BaselineOverride] = None,
    ) -> GrowthBonusResult:
        """Compute the growth bonus for one salon.

        Args:
            current: Growth-supplier turnover in the report year.
            prior: Growth-supplier turnover calculated from the previous
                year's facts.
            override: Baseline override for the previous year; replaces
                ``prior`` when given.

        Returns:
            GrowthBonusResult with tier, rate, bonus and progress figures.

        Raises:
            ValueError: If a turnover is negative.

        """
        if current < 0 or prior < 0:
            raise ValueError(f"turnover must not be negative (current={current}, prior={prior})")

        baseline = resolve_prior_turnover(prior, override)
        is_new_customer = baseline == 0 and current > 0
        growth = growth_percent(current, baseline)

        if current == 0:
            selected = None
        elif is_new_customer:
            selected = self.top_tier
        else:
            selected = self.tier_for(growth)

        tier = selected.tier if selected is not None else 0
        rate = selected.bonus_rate if selected is not None else 0.0

        return GrowthBonusResult(
            current_turnover=current,
            prev_turnover=baseline,
            is_new_customer=is_new_customer,
            growth_percent=growth,
            tier=tier,
            bonus_rate=rate,
            bonus_amount=current * rate,
            calculated_prev_turnover=prior,
            has_override=override is not None,
            override_reason=override.reason if override is not None else None,
            progress_percent=current * 100 / baseline if baseline > 0 else 0.0,
            remaining_to_match=max(baseline - current, 0.0),
        )

    def targets(self, current: float, prior: float) -> list[TierTarget]:
        """Turnover needed for each tier, highest tier first.

        ``prior`` is the baseline actually compared against (already
        overridden where applicable). Empty when there is no baseline.

        Raises:
            ValueError: If a turnover is negative.

        """
        if current < 0 or prior < 0:
            raise ValueError(f"turnover must not be negative (current={current}, prior={prior})")
        if prior == 0:
            return []

        out = []
        for tier in self.tiers:
            target = prior * (100 + tier.min_growth_percent) / 100
            out.append(
                TierTarget(
                    tier=tier.tier,
                    threshold_percent=tier.min_growth_percent,
                    bonus_rate=tier.bonus_rate,
                    target_turnover=target,
                    amount_needed=max(target - current, 0.0),
                    potential_bonus=max(target, current) * tier.bonus_rate,
                )
            )
        return out
