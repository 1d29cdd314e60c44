"""Core fact fetch: raw pages in, validated BonusFacts out."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from salon_bonus.config import DEFAULT_PAGE_SIZE
from salon_bonus.facts.extract import FactFilter, fetch_fact_rows
from salon_bonus.facts.transform import parse_fact_rows
from salon_bonus.models import BonusFact, QuarantinedRecord

if TYPE_CHECKING:
    from salon_bonus.store import BonusStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FactBatch:
    """Validated facts for one filter plus whatever was quarantined."""

    filter: FactFilter
    facts: list[BonusFact] = field(default_factory=list)
    quarantined: list[QuarantinedRecord] = field(default_factory=list)


def fetch_facts(
    store: BonusStore,
    flt: FactFilter,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> FactBatch:
    """Fetch and validate every fact matching ``flt``.

    Args:
        store: Data store.
        flt: Period range and optional supplier/salon restriction.
        page_size: Rows per range request.

    Returns:
        FactBatch with the valid facts and the quarantined records.

    Raises:
        DataFetchError: If any page request fails.

    """
    rows = fetch_fact_rows(store, flt, page_size=page_size)
    facts, quarantined = parse_fact_rows(rows)
    logger.debug("Validated %d fact(s) for %s to %s", len(facts), flt.start_period, flt.end_period)
    return FactBatch(filter=flt, facts=facts, quarantined=quarantined)
