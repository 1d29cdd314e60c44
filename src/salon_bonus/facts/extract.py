"""Raw layer: paged retrieval of bonus fact rows.

The store caps every response, so the full result set for a filter is read
with sequential range-bounded requests ``[0, P), [P, 2P), ...`` until a page
comes back shorter than ``P``. A page of exactly ``P`` rows is never taken as
the last one, so a result set of ``3P`` rows costs four requests.

Any failing page aborts the retrieval; rows already read are discarded.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

import requests

from salon_bonus.config import DEFAULT_PAGE_SIZE
from salon_bonus.exceptions import DataFetchError
from salon_bonus.utils import parse_period, year_bounds

if TYPE_CHECKING:
    from salon_bonus.store import BonusStore

logger = logging.getLogger(__name__)

PageFetcher = Callable[[int, int], list[dict[str, Any]]]


@dataclass(frozen=True)
class FactFilter:
    """Filter for bonus fact rows.

    Attributes:
        start_period: First period, YYYY-MM (inclusive).
        end_period: Last period, YYYY-MM (inclusive).
        supplier_id: Restrict to one supplier, or None for all.
        salon_id: Restrict to one salon, or None for all.
    """

    start_period: str
    end_period: str
    supplier_id: Optional[str] = None
    salon_id: Optional[str] = None

    def __post_init__(self) -> None:
        start = parse_period(self.start_period)
        end = parse_period(self.end_period)
        if start > end:
            raise ValueError(
                f"Start period {self.start_period} is after end period {self.end_period}"
            )

    @classmethod
    def for_year(
        cls,
        year: int,
        supplier_id: Optional[str] = None,
        salon_id: Optional[str] = None,
    ) -> FactFilter:
        """Filter covering January to December of ``year``.

        Examples:
            >>> FactFilter.for_year(2024).end_period
            '2024-12'

        """
        start, end = year_bounds(year)
        return cls(start_period=start, end_period=end, supplier_id=supplier_id, salon_id=salon_id)

    def matches(self, row: dict[str, Any]) -> bool:
        """Return True if a raw fact row falls inside this filter."""
        period = row.get("period")
        if not isinstance(period, str) or not (self.start_period <= period <= self.end_period):
            return False
        if self.supplier_id is not None and row.get("supplier_id") != self.supplier_id:
            return False
        if self.salon_id is not None and row.get("salon_id") != self.salon_id:
            return False
        return True


def fetch_all_pages(
    fetch_page: PageFetcher,
    page_size: int = DEFAULT_PAGE_SIZE,
    label: str = "rows",
) -> list[dict[str, Any]]:
    """Read every row behind ``fetch_page`` with sequential range requests.

    Args:
        fetch_page: Callable taking a half-open range ``(start, stop)`` and
            returning at most ``stop - start`` rows.
        page_size: Rows per request.
        label: What is being fetched, for log messages.

    Returns:
        All rows, in the order the pages returned them.

    Raises:
        ValueError: If page_size is not positive.
        DataFetchError: If any page request fails or a page is larger than
            requested. No partial result is returned.

    """
    if page_size <= 0:
        raise ValueError(f"page_size must be positive, got {page_size}")

    rows: list[dict[str, Any]] = []
    page = 0
    while True:
        start = page * page_size
        stop = start + page_size
        try:
            batch = fetch_page(start, stop)
        except DataFetchError as e:
            logger.error("Fetching %s failed on page %d [%d, %d): %s", label, page, start, stop, e)
            raise
        except (requests.RequestException, OSError, ValueError) as e:
            logger.error("Fetching %s failed on page %d [%d, %d): %s", label, page, start, stop, e)
            raise DataFetchError(f"Page {page} of {label} failed: {e}") from e

        if len(batch) > page_size:
            raise DataFetchError(
                f"Page {page} of {label} returned {len(batch)} rows for a range of {page_size}; "
                f"the store ignored the requested range"
            )

        logger.debug("Fetched %s page %d: %d row(s)", label, page, len(batch))
        rows.extend(batch)
        if len(batch) < page_size:
            break
        page += 1

    logger.info("Fetched %d %s in %d page(s)", len(rows), label, page + 1)
    return rows


def fetch_fact_rows(
    store: BonusStore,
    flt: FactFilter,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> list[dict[str, Any]]:
    """Fetch every raw fact row matching ``flt`` from the store.

    Args:
        store: Data store implementing ``fetch_fact_page``.
        flt: Period range and optional supplier/salon restriction.
        page_size: Rows per range request.

    Returns:
        Raw fact rows as returned by the store.

    Raises:
        DataFetchError: If any page request fails.

    """
    logger.info(
        "Fetching facts for %s to %s (supplier=%s, salon=%s)",
        flt.start_period,
        flt.end_period,
        flt.supplier_id or "all",
        flt.salon_id or "all",
    )
    return fetch_all_pages(
        lambda start, stop: store.fetch_fact_page(flt, start, stop),
        page_size=page_size,
        label="bonus facts",
    )
