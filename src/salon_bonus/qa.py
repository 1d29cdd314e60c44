"""Integrity checks on bonus facts.

A fact's ``total_turnover`` should equal the sum of its brand details. The
two are computed upstream and can drift; this module reports where they do
without changing either figure.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

import pandas as pd

from salon_bonus.aggregate import BonusAggregate
from salon_bonus.config import DEFAULT_RECONCILE_TOLERANCE
from salon_bonus.exceptions import IntegrityWarning
from salon_bonus.models import BonusFact

logger = logging.getLogger(__name__)


def check_fact_reconciliation(
    facts: Iterable[BonusFact],
    tolerance: float = DEFAULT_RECONCILE_TOLERANCE,
) -> list[IntegrityWarning]:
    """Return one IntegrityWarning per fact whose details do not add up.

    A fact without detail lines reconciles against a detail sum of 0, so a
    non-zero total with no brand lines is reported.

    Args:
        facts: Validated facts.
        tolerance: Largest absolute difference still accepted.

    Returns:
        Warnings in input order (empty if everything reconciles).

    """
    warnings = []
    for fact in facts:
        detail = fact.detail_turnover
        if abs(fact.total_turnover - detail) > tolerance:
            warnings.append(
                IntegrityWarning(
                    salon_id=fact.salon_id,
                    supplier_id=fact.supplier_id,
                    period=fact.period,
                    fact_turnover=fact.total_turnover,
                    detail_turnover=detail,
                )
            )

    for w in warnings:
        logger.warning("Integrity check: %s", w)
    return warnings


def reconciliation_frame(aggregate: BonusAggregate) -> pd.DataFrame:
    """Per-salon fact turnover vs. detail turnover.

    Returns:
        DataFrame with salon_id, fact_turnover, detail_turnover and
        difference (fact minus detail).

    """
    totals = aggregate.salon_totals()
    out = pd.DataFrame(
        {
            "salon_id": totals["salon_id"],
            "fact_turnover": totals["turnover"].astype(float),
            "detail_turnover": totals["detail_turnover"].astype(float),
        }
    )
    out["difference"] = out["fact_turnover"] - out["detail_turnover"]
    return out.reset_index(drop=True)
