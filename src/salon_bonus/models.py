"""Records consumed and produced by the bonus core.

Input records (BonusFact, BrandDetail, BaselineOverride) are immutable
snapshots of store rows validated at the retrieval boundary. Derived records
are rebuilt on every report call and only carry primitive fields, so they can
be handed to the presentation layer as-is or via ``to_dict()``.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, is_dataclass
from typing import Any, Generic, Optional, TypeVar

from salon_bonus.exceptions import BonusAPIError, IntegrityWarning, MissingReferenceError

KJEMI = "kjemi"
UNKNOWN_BRAND = "Ukjent"

T = TypeVar("T")


# --------------------------------------------------------------------------- #
# Input records
# --------------------------------------------------------------------------- #


@dataclass(frozen=True)
class BrandDetail:
    """One brand line of a fact's embedded detail payload.

    Attributes:
        brand: Brand name ("Ukjent" when the payload had none).
        turnover: Brand turnover for the period.
        loyalty: Loyalty bonus attributed to the brand.
        product_group: "kjemi" for chemical products, anything else is retail.
    """

    brand: str
    turnover: float
    loyalty: float = 0.0
    product_group: str = ""

    @property
    def is_kjemi(self) -> bool:
        return self.product_group.strip().lower() == KJEMI


@dataclass(frozen=True)
class BonusFact:
    """One salon x supplier x period row of precomputed bonus data.

    Attributes:
        salon_id: Salon identifier.
        supplier_id: Supplier identifier.
        period: Calendar month, YYYY-MM.
        total_turnover: Turnover for the period (>= 0).
        loyalty_bonus_amount: Loyalty bonus computed upstream (>= 0).
        details: Brand lines; their turnover is expected, not guaranteed,
            to add up to total_turnover.
    """

    salon_id: str
    supplier_id: str
    period: str
    total_turnover: float
    loyalty_bonus_amount: float
    details: tuple[BrandDetail, ...] = ()

    @property
    def detail_turnover(self) -> float:
        return sum((d.turnover for d in self.details), 0.0)


@dataclass(frozen=True)
class BaselineOverride:
    """Manual correction of a prior year's turnover for one salon and supplier."""

    salon_id: str
    supplier_id: str
    year: int
    override_turnover: float
    reason: str = ""


@dataclass(frozen=True)
class QuarantinedRecord:
    """A raw record rejected at the retrieval boundary.

    Attributes:
        kind: "fact", "detail" or "override".
        reason: Why the record was rejected.
        record: The raw payload as received from the store.
    """

    kind: str
    reason: str
    record: Any = None


# --------------------------------------------------------------------------- #
# Derived records
# --------------------------------------------------------------------------- #


@dataclass(frozen=True)
class AggregatedSalonBonus:
    """Per-salon bonus summary for the chain-wide overview.

    ``turnover`` is the fact-level total; ``detail_turnover`` the sum of the
    brand details. They should match and are both kept so a mismatch stays
    visible.
    """

    salon_id: str
    salon_name: str
    turnover: float
    loyalty_bonus: float
    growth_bonus: float
    total_bonus: float
    detail_turnover: float = 0.0


@dataclass(frozen=True)
class BrandBonusBreakdown:
    """Brand-level turnover and bonus split for one salon."""

    brand: str
    kjemi: float
    produkt: float
    total: float
    loyalty_bonus: float
    kjemi_bonus: float
    produkt_bonus: float
    prev_year_total: float
    trend_percent: float


@dataclass(frozen=True)
class GrowthBonusResult:
    """Outcome of the tiered year-over-year growth bonus.

    Attributes:
        current_turnover: Growth-supplier turnover in the report year.
        prev_turnover: Baseline used for the comparison (override if any).
        is_new_customer: No baseline but purchases this year.
        growth_percent: Growth vs. baseline in percent (0 when no baseline).
        tier: 0 (no bonus) to 3.
        bonus_rate: Rate applied to current_turnover.
        bonus_amount: current_turnover x bonus_rate.
        calculated_prev_turnover: Baseline summed from prior-year facts.
        has_override: Whether a manual baseline override was applied.
        override_reason: Audit text of the override, if any.
        progress_percent: current / baseline in percent (0 when no baseline).
        remaining_to_match: Turnover still missing to equal the baseline.
    """

    current_turnover: float
    prev_turnover: float
    is_new_customer: bool
    growth_percent: float
    tier: int
    bonus_rate: float
    bonus_amount: float
    calculated_prev_turnover: float = 0.0
    has_override: bool = False
    override_reason: Optional[str] = None
    progress_percent: float = 0.0
    remaining_to_match: float = 0.0


@dataclass(frozen=True)
class TierTarget:
    """Turnover needed to reach a growth tier, and the bonus it would pay."""

    tier: int
    threshold_percent: float
    bonus_rate: float
    target_turnover: float
    amount_needed: float
    potential_bonus: float


@dataclass(frozen=True)
class SupplierBonusSummary:
    """One supplier's share of a salon's purchases."""

    supplier_id: str
    supplier_name: str
    turnover: float
    loyalty_bonus: float
    monthly_turnover: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class MonthlyBrandTurnover:
    """Turnover of one brand in one month (purchase chart feed)."""

    period: str
    brand: str
    turnover: float


@dataclass(frozen=True)
class ChainTotals:
    """Chain-wide bonus totals for a year."""

    total_turnover: float
    loyalty_bonus: float
    growth_bonus: float
    total_bonus: float
    previous_year_turnover: float


@dataclass(frozen=True)
class SalonDetail:
    """Everything the per-salon detail view shows."""

    salon_id: str
    salon_name: str
    year: int
    summary: AggregatedSalonBonus
    suppliers: list[SupplierBonusSummary]
    breakdown: list[BrandBonusBreakdown]
    breakdown_supplier_id: str
    correction_factor: float
    growth: Optional[GrowthBonusResult]
    growth_targets: list[TierTarget] = field(default_factory=list)


# --------------------------------------------------------------------------- #
# Report envelope
# --------------------------------------------------------------------------- #


def _plain(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


@dataclass
class ReportResult(Generic[T]):
    """Outcome of a report call.

    A failed report carries ``value=None`` and the error; it never carries
    zeroed totals. Non-fatal findings are listed alongside the value.

    Attributes:
        value: The report payload, or None if the report failed.
        error: The error that aborted the report, if any.
        integrity_warnings: Facts whose detail sum does not match their total.
        missing_references: Salon/supplier ids absent from the directory.
        quarantined: Raw records rejected at the retrieval boundary.
    """

    value: Optional[T] = None
    error: Optional[BonusAPIError] = None
    integrity_warnings: list[IntegrityWarning] = field(default_factory=list)
    missing_references: list[MissingReferenceError] = field(default_factory=list)
    quarantined: list[QuarantinedRecord] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def error_kind(self) -> Optional[str]:
        """Class name of the error, e.g. "DataFetchError", or None on success."""
        return type(self.error).__name__ if self.error is not None else None

    def unwrap(self) -> T:
        """Return the value, re-raising the error if the report failed."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]

    def to_dict(self) -> dict[str, Any]:
        """Render the result as plain dicts, lists and primitives."""
        return {
            "ok": self.ok,
            "error_kind": self.error_kind,
            "error": str(self.error) if self.error is not None else None,
            "value": _plain(self.value),
            "integrity_warnings": [
                {
                    "salon_id": w.salon_id,
                    "supplier_id": w.supplier_id,
                    "period": w.period,
                    "fact_turnover": w.fact_turnover,
                    "detail_turnover": w.detail_turnover,
                }
                for w in self.integrity_warnings
            ],
            "missing_references": [
                {"kind": m.kind, "id": m.ref_id} for m in self.missing_references
            ],
            "quarantined": [
                {"kind": q.kind, "reason": q.reason} for q in self.quarantined
            ],
        }
