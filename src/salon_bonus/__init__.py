"""Salon bonus core - loyalty and growth bonus calculation for a salon chain.

This package turns precomputed monthly bonus facts into the figures the
bonus dashboard shows:

- **Facts**: paged retrieval and validation of salon x supplier x month rows
- **Aggregate**: totals per salon, supplier, brand and month (pandas)
- **Growth**: tiered year-over-year growth bonus for one supplier
- **Breakdown**: brand-level kjemi / produkt split of the loyalty bonus
- **API**: report functions returning a ReportResult

Module Structure:
    salon_bonus.facts: Fact retrieval (facts.extract, facts.transform, facts.core)
    salon_bonus.store: BonusStore protocol, PostgrestStore and MemoryStore
    salon_bonus.overrides: Baseline override lookup
    salon_bonus.directory: Salon and supplier display names
    salon_bonus.aggregate: BonusAggregate
    salon_bonus.growth: GrowthBonusCalculator
    salon_bonus.breakdown: Brand breakdown and bonus allocation
    salon_bonus.qa: Fact vs. detail reconciliation
    salon_bonus.api: Report functions

Quick Start:
    >>> from salon_bonus import BonusConfig, PostgrestStore, get_salon_bonus_overview
    >>>
    >>> store = PostgrestStore.from_env()
    >>> config = BonusConfig.from_env()
    >>>
    >>> result = get_salon_bonus_overview(store, config, 2024)
    >>> for row in result.unwrap():
    ...     print(row.salon_name, row.total_bonus)
"""

__version__ = "0.1.0"

from salon_bonus.api import (
    ALL_SUPPLIERS,
    get_chain_totals,
    get_monthly_brand_turnover,
    get_salon_bonus_overview,
    get_salon_detail,
)
from salon_bonus.config import BonusConfig
from salon_bonus.exceptions import (
    BonusAPIError,
    ConfigError,
    DataFetchError,
    DataQualityError,
    IntegrityWarning,
    MissingReferenceError,
)
from salon_bonus.models import ReportResult
from salon_bonus.store import MemoryStore, PostgrestStore

__all__ = [
    "ALL_SUPPLIERS",
    "BonusAPIError",
    "BonusConfig",
    "ConfigError",
    "DataFetchError",
    "DataQualityError",
    "IntegrityWarning",
    "MemoryStore",
    "MissingReferenceError",
    "PostgrestStore",
    "ReportResult",
    "__version__",
    "get_chain_totals",
    "get_monthly_brand_turnover",
    "get_salon_bonus_overview",
    "get_salon_detail",
]
