"""Unified configuration for the salon bonus core.

This module provides a single, simple configuration class used by the
retriever, the growth calculator and the report functions. Connection
settings for the data store live with the store client
(see ``salon_bonus.store.PostgrestStore.from_env``).
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from salon_bonus.exceptions import ConfigError

DEFAULT_PAGE_SIZE = 1000
DEFAULT_PLACEHOLDER_NAME = "Ukjent"
DEFAULT_RECONCILE_TOLERANCE = 0.01
DEFAULT_FETCH_WORKERS = 4


@dataclass(frozen=True)
class BonusConfig:
    """Settings for the bonus calculation core.

    Attributes:
        growth_supplier_id: The one supplier whose turnover earns a growth
            bonus. Injected here so the rule can be retargeted without
            touching the calculation.
        page_size: Rows per range request when paging through facts.
        placeholder_name: Display name used for ids missing from the directory.
        reconcile_tolerance: Absolute difference between a fact's total and
            its detail sum above which an IntegrityWarning is raised.
        fetch_workers: Parallel snapshot loads per report (1 = sequential).

    Environment Variables:
        BONUS_GROWTH_SUPPLIER_ID: required by ``from_env``.
        BONUS_PAGE_SIZE, BONUS_PLACEHOLDER_NAME, BONUS_RECONCILE_TOLERANCE,
        BONUS_FETCH_WORKERS: optional overrides.
    """

    growth_supplier_id: str
    page_size: int = DEFAULT_PAGE_SIZE
    placeholder_name: str = DEFAULT_PLACEHOLDER_NAME
    reconcile_tolerance: float = DEFAULT_RECONCILE_TOLERANCE
    fetch_workers: int = DEFAULT_FETCH_WORKERS

    def __post_init__(self) -> None:
        if not self.growth_supplier_id:
            raise ConfigError("growth_supplier_id must be set")
        if self.page_size <= 0:
            raise ConfigError(f"page_size must be positive, got {self.page_size}")
        if self.reconcile_tolerance < 0:
            raise ConfigError(
                f"reconcile_tolerance must not be negative, got {self.reconcile_tolerance}"
            )
        if self.fetch_workers < 1:
            raise ConfigError(f"fetch_workers must be at least 1, got {self.fetch_workers}")

    @classmethod
    def from_env(cls) -> BonusConfig:
        """Create BonusConfig from ``BONUS_*`` environment variables.

        Returns:
            BonusConfig instance.

        Raises:
            ConfigError: If BONUS_GROWTH_SUPPLIER_ID is missing or a numeric
                variable cannot be parsed.

        Examples:
            >>> os.environ["BONUS_GROWTH_SUPPLIER_ID"] = "loreal"
            >>> BonusConfig.from_env().page_size
            1000

        """
        supplier_id = os.environ.get("BONUS_GROWTH_SUPPLIER_ID")
        if not supplier_id:
            raise ConfigError("BONUS_GROWTH_SUPPLIER_ID environment variable must be set.")

        try:
            page_size = int(os.environ.get("BONUS_PAGE_SIZE", DEFAULT_PAGE_SIZE))
            tolerance = float(
                os.environ.get("BONUS_RECONCILE_TOLERANCE", DEFAULT_RECONCILE_TOLERANCE)
            )
            workers = int(os.environ.get("BONUS_FETCH_WORKERS", DEFAULT_FETCH_WORKERS))
        except ValueError as e:
            raise ConfigError(f"Invalid numeric BONUS_* setting: {e}") from e

        return cls(
            growth_supplier_id=supplier_id,
            page_size=page_size,
            placeholder_name=os.environ.get("BONUS_PLACEHOLDER_NAME", DEFAULT_PLACEHOLDER_NAME),
            reconcile_tolerance=tolerance,
            fetch_workers=workers,
        )
