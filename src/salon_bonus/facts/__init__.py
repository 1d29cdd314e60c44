"""Bonus fact domain module.

Bonus facts are precomputed per salon x supplier x month rows with an
embedded brand-detail payload. This module reads them from the store:

- **extract**: paged range retrieval of raw rows (``fetch_fact_rows``)
- **transform**: validation into BonusFact / BrandDetail with quarantine
- **core**: ``fetch_facts`` combining the two

Example:
    >>> from salon_bonus.facts import FactFilter, fetch_facts
    >>> batch = fetch_facts(store, FactFilter.for_year(2024, supplier_id="loreal"))
    >>> len(batch.facts)
"""

from salon_bonus.facts.core import FactBatch, fetch_facts
from salon_bonus.facts.extract import FactFilter, fetch_all_pages, fetch_fact_rows

__all__ = ["FactBatch", "FactFilter", "fetch_all_pages", "fetch_fact_rows", "fetch_facts"]
