"""Public API for salon bonus reports.

Each report function fetches a fresh snapshot from the store (current-year
facts, previous-year facts, baseline overrides and the name directory), then
computes the report as a pure function of that snapshot. Snapshot loads run
in parallel; paging within one load is sequential.

A failed store request never yields zeroed totals: the report comes back with
``value=None`` and the DataFetchError on ``ReportResult.error``. Invalid
arguments (a year that is not YYYY) raise ValueError before any fetch.

Growth bonus for year Y compares the growth supplier's turnover in Y with
Y-1, using baseline overrides recorded for Y-1.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Any, Optional

from salon_bonus.aggregate import BonusAggregate, aggregate_facts
from salon_bonus.breakdown import build_brand_breakdown
from salon_bonus.directory import Directory
from salon_bonus.exceptions import DataFetchError
from salon_bonus.facts import FactBatch, FactFilter, fetch_facts
from salon_bonus.growth import GrowthBonusCalculator
from salon_bonus.models import (
    AggregatedSalonBonus,
    ChainTotals,
    GrowthBonusResult,
    MonthlyBrandTurnover,
    ReportResult,
    SalonDetail,
    SupplierBonusSummary,
)
from salon_bonus.overrides import BaselineOverrideResolver, OverrideSet
from salon_bonus.qa import check_fact_reconciliation

if TYPE_CHECKING:
    from salon_bonus.config import BonusConfig
    from salon_bonus.store import BonusStore

logger = logging.getLogger(__name__)

ALL_SUPPLIERS = "all"


def _supplier_or_none(supplier_filter: Optional[str]) -> Optional[str]:
    if supplier_filter is None or supplier_filter == ALL_SUPPLIERS:
        return None
    return supplier_filter


def _check_year(year: int) -> None:
    """Reject report years that cannot be written as YYYY for both Y and Y-1.

    Raises:
        ValueError: If ``year`` is not an int in 1001..9999.

    """
    if isinstance(year, bool) or not isinstance(year, int) or not 1001 <= year <= 9999:
        raise ValueError(f"Invalid report year {year!r}. Expected a four-digit year")


def _run_loads(config: BonusConfig, loads: dict[str, Callable[[], Any]]) -> dict[str, Any]:
    """Run independent snapshot loads, in parallel when configured to.

    Raises:
        DataFetchError: From the first failing load.

    """
    if config.fetch_workers == 1 or len(loads) == 1:
        return {name: load() for name, load in loads.items()}
    with ThreadPoolExecutor(
        max_workers=min(config.fetch_workers, len(loads)), thread_name_prefix="bonus-fetch"
    ) as pool:
        futures = {name: pool.submit(load) for name, load in loads.items()}
        return {name: future.result() for name, future in futures.items()}


def _facts_loader(
    store: BonusStore, config: BonusConfig, flt: FactFilter
) -> Callable[[], FactBatch]:
    return lambda: fetch_facts(store, flt, page_size=config.page_size)


def _growth_by_salon(
    calc: GrowthBonusCalculator,
    current: BonusAggregate,
    prior: BonusAggregate,
    overrides: OverrideSet,
) -> dict[str, GrowthBonusResult]:
    """Growth result for every salon buying from the growth supplier this year."""
    current_by_salon = current.supplier_turnover_by_salon(calc.supplier_id)
    prior_by_salon = prior.supplier_turnover_by_salon(calc.supplier_id)
    return {
        salon_id: calc.compute(turnover, prior_by_salon.get(salon_id, 0.0), overrides.get(salon_id))
        for salon_id, turnover in current_by_salon.items()
    }


def get_salon_bonus_overview(
    store: BonusStore,
    config: BonusConfig,
    year: int,
    supplier_filter: Optional[str] = None,
) -> ReportResult[list[AggregatedSalonBonus]]:
    """Per-salon bonus summary for every salon with facts in ``year``.

    Args:
        store: Data store.
        config: Bonus configuration.
        year: Report year.
        supplier_filter: Supplier id, or None / ``ALL_SUPPLIERS`` for all.
            Growth bonus is only included when the filter covers the growth
            supplier.

    Returns:
        ReportResult with one AggregatedSalonBonus per salon, in no
        particular order.

    Raises:
        ValueError: If ``year`` is not a four-digit year. Store failures are
            returned on the result, not raised.

    Examples:
        >>> result = get_salon_bonus_overview(store, config, 2024)
        >>> for row in result.unwrap():
        ...     print(row.salon_name, row.total_bonus)

    """
    _check_year(year)
    supplier_id = _supplier_or_none(supplier_filter)
    calc = GrowthBonusCalculator(config.growth_supplier_id)
    with_growth = supplier_id is None or calc.applies_to(supplier_id)
    resolver = BaselineOverrideResolver(store)

    loads: dict[str, Callable[[], Any]] = {
        "current": _facts_loader(store, config, FactFilter.for_year(year, supplier_id=supplier_id)),
        "directory": lambda: Directory.load(store, config.placeholder_name),
    }
    if with_growth:
        loads["prior"] = _facts_loader(
            store, config, FactFilter.for_year(year - 1, supplier_id=calc.supplier_id)
        )
        loads["overrides"] = lambda: resolver.resolve_many(calc.supplier_id, year - 1)

    logger.info("Building salon bonus overview for %d (supplier=%s)", year, supplier_id or "all")
    try:
        snap = _run_loads(config, loads)
    except DataFetchError as e:
        logger.error("Salon bonus overview for %d failed: %s", year, e)
        return ReportResult(error=e)

    current_batch: FactBatch = snap["current"]
    directory: Directory = snap["directory"]
    current = aggregate_facts(current_batch.facts)
    quarantined = list(current_batch.quarantined)

    growth: dict[str, GrowthBonusResult] = {}
    if with_growth:
        prior_batch: FactBatch = snap["prior"]
        overrides: OverrideSet = snap["overrides"]
        quarantined += prior_batch.quarantined + overrides.quarantined
        growth = _growth_by_salon(calc, current, aggregate_facts(prior_batch.facts), overrides)

    rows = []
    for row in current.salon_totals().itertuples(index=False):
        salon_id = str(row.salon_id)
        growth_bonus = growth[salon_id].bonus_amount if salon_id in growth else 0.0
        loyalty = float(row.loyalty_bonus)
        rows.append(
            AggregatedSalonBonus(
                salon_id=salon_id,
                salon_name=directory.salon_name(salon_id),
                turnover=float(row.turnover),
                loyalty_bonus=loyalty,
                growth_bonus=growth_bonus,
                total_bonus=loyalty + growth_bonus,
                detail_turnover=float(row.detail_turnover),
            )
        )

    logger.info("Salon bonus overview for %d: %d salon(s)", year, len(rows))
    return ReportResult(
        value=rows,
        integrity_warnings=check_fact_reconciliation(
            current_batch.facts, config.reconcile_tolerance
        ),
        missing_references=directory.missing,
        quarantined=quarantined,
    )


def get_salon_detail(
    store: BonusStore,
    config: BonusConfig,
    salon_id: str,
    year: int,
    supplier_id: Optional[str] = None,
) -> ReportResult[SalonDetail]:
    """Detail view for one salon.

    Args:
        store: Data store.
        config: Bonus configuration.
        salon_id: Salon to report on.
        year: Report year.
        supplier_id: Supplier for the brand breakdown. Defaults to the growth
            supplier; ``ALL_SUPPLIERS`` covers every supplier and applies no
            baseline correction.

    Returns:
        ReportResult with a SalonDetail. ``growth`` is None when the salon
        has no growth-supplier turnover in ``year``.

    Raises:
        ValueError: If ``year`` is not a four-digit year.

    """
    _check_year(year)
    calc = GrowthBonusCalculator(config.growth_supplier_id)
    breakdown_supplier = supplier_id or calc.supplier_id
    resolver = BaselineOverrideResolver(store)

    loads: dict[str, Callable[[], Any]] = {
        "current": _facts_loader(store, config, FactFilter.for_year(year, salon_id=salon_id)),
        "prior": _facts_loader(store, config, FactFilter.for_year(year - 1, salon_id=salon_id)),
        "directory": lambda: Directory.load(store, config.placeholder_name),
        "growth_overrides": lambda: resolver.resolve_many(calc.supplier_id, year - 1, salon_id),
    }
    if breakdown_supplier not in (ALL_SUPPLIERS, calc.supplier_id):
        loads["breakdown_overrides"] = lambda: resolver.resolve_many(
            breakdown_supplier, year - 1, salon_id
        )

    logger.info("Building salon detail for %s / %d", salon_id, year)
    try:
        snap = _run_loads(config, loads)
    except DataFetchError as e:
        logger.error("Salon detail for %s / %d failed: %s", salon_id, year, e)
        return ReportResult(error=e)

    current_batch: FactBatch = snap["current"]
    prior_batch: FactBatch = snap["prior"]
    directory: Directory = snap["directory"]
    growth_overrides: OverrideSet = snap["growth_overrides"]
    quarantined = current_batch.quarantined + prior_batch.quarantined + growth_overrides.quarantined

    current = aggregate_facts(current_batch.facts)
    prior = aggregate_facts(prior_batch.facts)

    # Growth
    growth = None
    targets = []
    growth_turnover = current.supplier_turnover(salon_id, calc.supplier_id)
    if growth_turnover > 0:
        growth = calc.compute(
            growth_turnover,
            prior.supplier_turnover(salon_id, calc.supplier_id),
            growth_overrides.get(salon_id),
        )
        targets = calc.targets(growth.current_turnover, growth.prev_turnover)

    # Brand breakdown
    if breakdown_supplier == ALL_SUPPLIERS:
        breakdown, factor = build_brand_breakdown(current, prior, None)
    else:
        if breakdown_supplier == calc.supplier_id:
            breakdown_overrides = growth_overrides
        else:
            breakdown_overrides = snap["breakdown_overrides"]
            quarantined += breakdown_overrides.quarantined
        breakdown, factor = build_brand_breakdown(
            current.restrict(supplier_id=breakdown_supplier),
            prior.restrict(supplier_id=breakdown_supplier),
            breakdown_overrides.get(salon_id),
        )

    # Suppliers
    monthly = current.monthly_by_supplier(salon_id)
    suppliers = [
        SupplierBonusSummary(
            supplier_id=str(row.supplier_id),
            supplier_name=directory.supplier_name(str(row.supplier_id)),
            turnover=float(row.turnover),
            loyalty_bonus=float(row.loyalty_bonus),
            monthly_turnover=monthly.get(str(row.supplier_id), {}),
        )
        for row in current.supplier_totals(salon_id).itertuples(index=False)
    ]

    turnover, loyalty, detail_turnover = current.salon_summary(salon_id)
    growth_bonus = growth.bonus_amount if growth is not None else 0.0
    salon_name = directory.salon_name(salon_id)
    summary = AggregatedSalonBonus(
        salon_id=salon_id,
        salon_name=salon_name,
        turnover=turnover,
        loyalty_bonus=loyalty,
        growth_bonus=growth_bonus,
        total_bonus=loyalty + growth_bonus,
        detail_turnover=detail_turnover,
    )

    detail = SalonDetail(
        salon_id=salon_id,
        salon_name=salon_name,
        year=year,
        summary=summary,
        suppliers=suppliers,
        breakdown=breakdown,
        breakdown_supplier_id=breakdown_supplier,
        correction_factor=factor,
        growth=growth,
        growth_targets=targets,
    )
    return ReportResult(
        value=detail,
        integrity_warnings=check_fact_reconciliation(
            current_batch.facts, config.reconcile_tolerance
        ),
        missing_references=directory.missing,
        quarantined=quarantined,
    )


def get_chain_totals(
    store: BonusStore,
    config: BonusConfig,
    year: int,
    supplier_filter: Optional[str] = None,
) -> ReportResult[ChainTotals]:
    """Chain-wide totals for ``year``.

    ``previous_year_turnover`` is the uncorrected fact turnover of
    ``year - 1`` under the same supplier filter. The growth bonus is the sum
    of the per-salon growth bonuses, computed exactly as in the overview.

    Raises:
        ValueError: If ``year`` is not a four-digit year.

    """
    _check_year(year)
    supplier_id = _supplier_or_none(supplier_filter)
    calc = GrowthBonusCalculator(config.growth_supplier_id)
    with_growth = supplier_id is None or calc.applies_to(supplier_id)
    resolver = BaselineOverrideResolver(store)

    loads: dict[str, Callable[[], Any]] = {
        "current": _facts_loader(store, config, FactFilter.for_year(year, supplier_id=supplier_id)),
        "prior": _facts_loader(
            store, config, FactFilter.for_year(year - 1, supplier_id=supplier_id)
        ),
    }
    if with_growth:
        loads["overrides"] = lambda: resolver.resolve_many(calc.supplier_id, year - 1)

    logger.info("Building chain totals for %d (supplier=%s)", year, supplier_id or "all")
    try:
        snap = _run_loads(config, loads)
    except DataFetchError as e:
        logger.error("Chain totals for %d failed: %s", year, e)
        return ReportResult(error=e)

    current_batch: FactBatch = snap["current"]
    prior_batch: FactBatch = snap["prior"]
    quarantined = current_batch.quarantined + prior_batch.quarantined
    current = aggregate_facts(current_batch.facts)
    prior = aggregate_facts(prior_batch.facts)

    growth_bonus = 0.0
    if with_growth:
        overrides: OverrideSet = snap["overrides"]
        quarantined += overrides.quarantined
        growth = _growth_by_salon(calc, current, prior, overrides)
        growth_bonus = sum(g.bonus_amount for g in growth.values())

    turnover, loyalty = current.chain_totals()
    previous_turnover, _ = prior.chain_totals()
    totals = ChainTotals(
        total_turnover=turnover,
        loyalty_bonus=loyalty,
        growth_bonus=growth_bonus,
        total_bonus=loyalty + growth_bonus,
        previous_year_turnover=previous_turnover,
    )
    return ReportResult(
        value=totals,
        integrity_warnings=check_fact_reconciliation(
            current_batch.facts, config.reconcile_tolerance
        ),
        quarantined=quarantined,
    )


def get_monthly_brand_turnover(
    store: BonusStore,
    config: BonusConfig,
    year: int,
    supplier_filter: Optional[str] = None,
) -> ReportResult[list[MonthlyBrandTurnover]]:
    """Brand turnover per month for the purchase chart, sorted by period.

    Raises:
        ValueError: If ``year`` is not a four-digit year.

    """
    _check_year(year)
    supplier_id = _supplier_or_none(supplier_filter)
    flt = FactFilter.for_year(year, supplier_id=supplier_id)
    try:
        batch = fetch_facts(store, flt, page_size=config.page_size)
    except DataFetchError as e:
        logger.error("Monthly brand turnover for %d failed: %s", year, e)
        return ReportResult(error=e)

    monthly = aggregate_facts(batch.facts).monthly_by_brand()
    rows = [
        MonthlyBrandTurnover(period=str(r.period), brand=str(r.brand), turnover=float(r.turnover))
        for r in monthly.itertuples(index=False)
    ]
    return ReportResult(
        value=rows,
        integrity_warnings=check_fact_reconciliation(batch.facts, config.reconcile_tolerance),
        quarantined=list(batch.quarantined),
    )
