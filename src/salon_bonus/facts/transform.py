"""Core layer: validate raw fact rows into BonusFact records.

The store hands back loosely-typed rows whose ``calculation_details`` payload
is free-form JSON. This module turns them into BonusFact / BrandDetail
records and quarantines whatever cannot be trusted:

- a fact row with a missing id, a bad period or an invalid amount is dropped
  as a whole;
- a detail entry that is not an object or has a non-numeric amount is dropped
  on its own, the rest of the fact is kept.

Missing amounts count as 0, a missing brand becomes "Ukjent" and a missing
product group is treated as retail product.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from salon_bonus.exceptions import DataQualityError
from salon_bonus.models import UNKNOWN_BRAND, BonusFact, BrandDetail, QuarantinedRecord
from salon_bonus.utils import is_valid_period, to_amount

logger = logging.getLogger(__name__)


def _required_id(row: dict[str, Any], key: str) -> str:
    value = row.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise DataQualityError(f"missing {key}")
    return str(value)


def _amount(payload: dict[str, Any], key: str) -> float:
    try:
        return to_amount(payload.get(key))
    except ValueError as e:
        raise DataQualityError(f"{key}: {e}") from e


def _detail_entries(payload: Any) -> list[Any]:
    """Extract the list of detail entries from a calculation_details payload."""
    if payload is None:
        return []
    if isinstance(payload, dict):
        entries = payload.get("details")
        if entries is None:
            return []
        if not isinstance(entries, list):
            raise DataQualityError("calculation_details.details is not a list")
        return entries
    if isinstance(payload, list):
        return payload
    raise DataQualityError(f"calculation_details has unsupported type {type(payload).__name__}")


def parse_detail(entry: Any) -> BrandDetail:
    """Validate one detail entry.

    Raises:
        DataQualityError: If the entry is not an object or an amount is not numeric.

    """
    if not isinstance(entry, dict):
        raise DataQualityError(f"detail entry is {type(entry).__name__}, not an object")

    brand = entry.get("brand")
    if not isinstance(brand, str) or not brand.strip():
        brand = UNKNOWN_BRAND
    group = entry.get("product_group")

    return BrandDetail(
        brand=brand.strip(),
        turnover=_amount(entry, "turnover"),
        loyalty=_amount(entry, "loyalty"),
        product_group=group.strip() if isinstance(group, str) else "",
    )


def parse_fact_row(row: Any) -> tuple[BonusFact, list[QuarantinedRecord]]:
    """Validate one raw fact row.

    Args:
        row: Raw row from the store.

    Returns:
        Tuple of (fact, quarantined detail entries).

    Raises:
        DataQualityError: If the row itself cannot be used.

    """
    if not isinstance(row, dict):
        raise DataQualityError(f"fact row is {type(row).__name__}, not an object")

    salon_id = _required_id(row, "salon_id")
    supplier_id = _required_id(row, "supplier_id")
    period = row.get("period")
    if not is_valid_period(period):
        raise DataQualityError(f"invalid period {period!r}")

    total_turnover = _amount(row, "total_turnover")
    loyalty = _amount(row, "loyalty_bonus_amount")
    if total_turnover < 0:
        raise DataQualityError(f"negative total_turnover {total_turnover}")
    if loyalty < 0:
        raise DataQualityError(f"negative loyalty_bonus_amount {loyalty}")

    details: list[BrandDetail] = []
    quarantined: list[QuarantinedRecord] = []
    for entry in _detail_entries(row.get("calculation_details")):
        try:
            details.append(parse_detail(entry))
        except DataQualityError as e:
            quarantined.append(QuarantinedRecord(kind="detail", reason=str(e), record=entry))

    fact = BonusFact(
        salon_id=salon_id,
        supplier_id=supplier_id,
        period=period,
        total_turnover=total_turnover,
        loyalty_bonus_amount=loyalty,
        details=tuple(details),
    )
    return fact, quarantined


def parse_fact_rows(
    rows: Iterable[Any],
) -> tuple[list[BonusFact], list[QuarantinedRecord]]:
    """Validate raw fact rows, quarantining the malformed ones.

    Args:
        rows: Raw rows as returned by the paged retriever.

    Returns:
        Tuple of (valid facts, quarantined records).

    """
    facts: list[BonusFact] = []
    quarantined: list[QuarantinedRecord] = []

    for row in rows:
        try:
            fact, bad_details = parse_fact_row(row)
        except DataQualityError as e:
            quarantined.append(QuarantinedRecord(kind="fact", reason=str(e), record=row))
            continue
        facts.append(fact)
        quarantined.extend(bad_details)

    if quarantined:
        logger.warning(
            "Quarantined %d malformed record(s) out of %d fact row(s)",
            len(quarantined),
            len(facts) + sum(1 for q in quarantined if q.kind == "fact"),
        )
        for q in quarantined:
            logger.debug("Quarantined %s: %s", q.kind, q.reason)

    return facts, quarantined
