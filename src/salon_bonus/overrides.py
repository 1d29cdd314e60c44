"""Baseline override lookup.

A baseline override is a manually entered prior-year turnover for one
(salon, supplier, year). When present it always replaces the turnover
calculated from that year's facts in the growth-bonus comparison, whether it
is larger or smaller. Absence is the normal case.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

from salon_bonus.exceptions import DataQualityError
from salon_bonus.models import BaselineOverride, QuarantinedRecord
from salon_bonus.utils import to_amount

if TYPE_CHECKING:
    from salon_bonus.store import BonusStore

logger = logging.getLogger(__name__)


def parse_override_row(row: Any, supplier_id: str, year: int) -> BaselineOverride:
    """Validate one raw override row.

    Raises:
        DataQualityError: If the salon id is missing or the turnover is not a
            positive number.

    """
    if not isinstance(row, dict):
        raise DataQualityError(f"override row is {type(row).__name__}, not an object")
    salon_id = row.get("salon_id")
    if not salon_id:
        raise DataQualityError("override row without salon_id")
    try:
        turnover = to_amount(row.get("override_turnover"))
    except ValueError as e:
        raise DataQualityError(f"override_turnover: {e}") from e
    if turnover <= 0:
        raise DataQualityError(f"override_turnover must be positive, got {turnover}")

    reason = row.get("reason")
    return BaselineOverride(
        salon_id=str(salon_id),
        supplier_id=str(row.get("supplier_id") or supplier_id),
        year=year,
        override_turnover=turnover,
        reason=reason if isinstance(reason, str) else "",
    )


@dataclass(frozen=True)
class OverrideSet:
    """Overrides for one supplier and baseline year, keyed by salon id."""

    supplier_id: str
    year: int
    overrides: dict[str, BaselineOverride] = field(default_factory=dict)
    quarantined: list[QuarantinedRecord] = field(default_factory=list)

    def get(self, salon_id: str) -> Optional[BaselineOverride]:
        return self.overrides.get(salon_id)


class BaselineOverrideResolver:
    """Looks up baseline overrides in the store.

    Example:
        >>> resolver = BaselineOverrideResolver(store)
        >>> resolver.resolve("salon-1", "loreal", 2023)
        BaselineOverride(salon_id='salon-1', supplier_id='loreal', year=2023, ...)

    """

    def __init__(self, store: BonusStore) -> None:
        self.store = store

    def resolve(self, salon_id: str, supplier_id: str, year: int) -> Optional[BaselineOverride]:
        """Return the override for (salon, supplier, year), or None.

        Raises:
            DataFetchError: If the store request fails.

        """
        found = self._load(supplier_id, year, salon_id)
        return found.get(salon_id)

    def resolve_many(
        self, supplier_id: str, year: int, salon_id: Optional[str] = None
    ) -> OverrideSet:
        """Return every override for a supplier and baseline year.

        ``salon_id`` narrows the lookup to one salon but keeps the
        quarantine list, unlike ``resolve``.

        Raises:
            DataFetchError: If the store request fails.

        """
        return self._load(supplier_id, year, salon_id)

    def _load(self, supplier_id: str, year: int, salon_id: Optional[str]) -> OverrideSet:
        rows = self.store.fetch_overrides(supplier_id, year, salon_id=salon_id)

        overrides: dict[str, BaselineOverride] = {}
        quarantined: list[QuarantinedRecord] = []
        for row in rows:
            try:
                override = parse_override_row(row, supplier_id, year)
            except DataQualityError as e:
                logger.warning("Ignoring baseline override row: %s", e)
                quarantined.append(QuarantinedRecord(kind="override", reason=str(e), record=row))
                continue
            if override.salon_id in overrides:
                logger.warning(
                    "Duplicate baseline override for salon %s / supplier %s / %d; keeping the first",
                    override.salon_id,
                    supplier_id,
                    year,
                )
                continue
            overrides[override.salon_id] = override

        logger.debug(
            "Loaded %d baseline override(s) for supplier %s / %d", len(overrides), supplier_id, year
        )
        return OverrideSet(
            supplier_id=supplier_id, year=year, overrides=overrides, quarantined=quarantined
        )


def resolve_prior_turnover(calculated: float, override: Optional[BaselineOverride]) -> float:
    """Return the prior-year turnover to compare against.

    The override wins whenever it exists, regardless of the calculated value.

    Examples:
        >>> resolve_prior_turnover(90_000.0, None)
        90000.0

    """
    if override is not None:
        return override.override_turnover
    return calculated
