"""Brand-level breakdown of a salon's turnover and loyalty bonus.

Each brand's loyalty bonus is split between kjemi (chemical) and produkt
(retail) in proportion to their turnover. The previous year's brand turnover
is scaled by one correction factor, derived from the baseline override and
the previous year's brand-detail total, so brand trends agree with the
corrected baseline.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from salon_bonus.aggregate import BonusAggregate
from salon_bonus.models import BaselineOverride, BrandBonusBreakdown

logger = logging.getLogger(__name__)


def allocate_bonus(loyalty: float, kjemi: float, produkt: float) -> tuple[float, float]:
    """Split ``loyalty`` into (kjemi_bonus, produkt_bonus) by turnover share.

    The produkt share is the remainder, so the two always add up to
    ``loyalty`` exactly.

    Examples:
        >>> allocate_bonus(50.0, 300.0, 700.0)
        (15.0, 35.0)
        >>> allocate_bonus(50.0, 0.0, 0.0)
        (0.0, 0.0)

    """
    total = kjemi + produkt
    if total == 0:
        return 0.0, 0.0
    kjemi_bonus = loyalty * kjemi / total
    return kjemi_bonus, loyalty - kjemi_bonus


def correction_factor(
    override: Optional[BaselineOverride], calculated_prior_total: float
) -> float:
    """Ratio of the override to the calculated previous-year total.

    1.0 when there is no override or nothing to scale.
    """
    if override is None or calculated_prior_total == 0:
        return 1.0
    return override.override_turnover / calculated_prior_total


def build_brand_breakdown(
    current: BonusAggregate,
    prior: BonusAggregate,
    override: Optional[BaselineOverride] = None,
) -> tuple[list[BrandBonusBreakdown], float]:
    """Build the brand breakdown for one salon and supplier.

    Args:
        current: Report-year aggregate, restricted to the salon and supplier.
        prior: Previous-year aggregate under the same restriction.
        override: Previous-year baseline override, if any.

    Returns:
        Tuple of (breakdown sorted by total descending, correction factor).
        Brands without report-year turnover are not listed.

    """
    brands = current.brand_totals()
    prior_by_brand = prior.brand_turnover()
    factor = correction_factor(override, prior.detail_turnover())
    if factor != 1.0:
        logger.debug("Applying baseline correction factor %.6f to brand history", factor)

    if brands.empty:
        return [], factor

    prev = brands["brand"].map(prior_by_brand).fillna(0.0).to_numpy(dtype=float) * factor
    totals = brands["total"].to_numpy(dtype=float)
    with np.errstate(divide="ignore", invalid="ignore"):
        trend = np.where(prev > 0, (totals - prev) * 100 / prev, 0.0)

    out = []
    for row, prev_total, trend_percent in zip(brands.itertuples(index=False), prev, trend):
        kjemi_bonus, produkt_bonus = allocate_bonus(
            float(row.loyalty_bonus), float(row.kjemi), float(row.produkt)
        )
        out.append(
            BrandBonusBreakdown(
                brand=str(row.brand),
                kjemi=float(row.kjemi),
                produkt=float(row.produkt),
                total=float(row.total),
                loyalty_bonus=float(row.loyalty_bonus),
                kjemi_bonus=kjemi_bonus,
                produkt_bonus=produkt_bonus,
                prev_year_total=float(prev_total),
                trend_percent=float(trend_percent),
            )
        )
    return out, factor
