"""Domain-specific exceptions for the salon bonus core.

This module defines custom exceptions that are part of the public API.
All exceptions inherit from BonusAPIError for easy catching.

Some of these are raised (ConfigError, DataFetchError), others are collected
and surfaced on a report result instead of aborting it
(MissingReferenceError, IntegrityWarning).
"""

from __future__ import annotations


class BonusAPIError(Exception):
    """Base exception for all salon bonus errors.

    Users can catch this exception to handle any error raised by the package.
    """

    pass


class ConfigError(BonusAPIError):
    """Raised when there is a configuration error.

    This exception is raised when:
    - Required environment variables are missing
    - Invalid configuration values are provided (e.g. a non-positive page size)
    """

    pass


class DataQualityError(BonusAPIError):
    """Raised when a raw record from the store cannot be validated.

    The transform layer raises this for a single malformed row or detail entry
    and turns it into a quarantine entry; it never aborts a whole report.
    """

    pass


class DataFetchError(BonusAPIError):
    """Raised when a request to the data store fails.

    This exception is raised when:
    - A page request returns a non-2xx status
    - The network connection fails after the session's own retries
    - The store returns a body that is not the expected JSON array

    Retrieval is aborted on the first failure and partial results are discarded.
    """

    pass


class MissingReferenceError(BonusAPIError):
    """A fact references a salon or supplier id absent from the directory.

    Collected rather than raised: the report substitutes a placeholder
    display name and carries one instance per distinct missing id.

    Attributes:
        kind: "salon" or "supplier".
        ref_id: The id that could not be resolved.
    """

    def __init__(self, kind: str, ref_id: str) -> None:
        super().__init__(f"Unknown {kind} id {ref_id!r}")
        self.kind = kind
        self.ref_id = ref_id


class IntegrityWarning(UserWarning):
    """Brand-detail turnover does not reconcile with the fact's total.

    Logged and surfaced for audit; computation continues with the detail
    figures for brand breakdowns and the fact figure for totals.
    A fact with no brand lines counts as a detail sum of 0.

    Attributes:
        salon_id: Salon of the offending fact.
        supplier_id: Supplier of the offending fact.
        period: Period (YYYY-MM) of the offending fact.
        fact_turnover: The fact-level total_turnover.
        detail_turnover: Sum of the fact's brand-detail turnover.
    """

    def __init__(
        self,
        salon_id: str,
        supplier_id: str,
        period: str,
        fact_turnover: float,
        detail_turnover: float,
    ) -> None:
        super().__init__(
            f"Salon {salon_id} / supplier {supplier_id} / {period}: "
            f"fact turnover {fact_turnover:.2f} != detail turnover {detail_turnover:.2f}"
        )
        self.salon_id = salon_id
        self.supplier_id = supplier_id
        self.period = period
        self.fact_turnover = fact_turnover
        self.detail_turnover = detail_turnover

    @property
    def difference(self) -> float:
        """Fact total minus detail sum."""
        return self.fact_turnover - self.detail_turnover
