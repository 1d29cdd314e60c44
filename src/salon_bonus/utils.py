"""Shared helpers for bonus periods.

Bonus facts are keyed by calendar month in ``YYYY-MM`` form. This module
parses and validates those strings and builds the year ranges the reports
query.

Examples:
    >>> year_bounds(2024)
    ('2024-01', '2024-12')
    >>> period_year("2024-07")
    2024

"""

from __future__ import annotations

import math
import re
from typing import Any

PERIOD_RE = re.compile(r"^(?P<year>\d{4})-(?P<month>0[1-9]|1[0-2])$")


def is_valid_period(value: Any) -> bool:
    """Return True if value is a ``YYYY-MM`` string with a real month."""
    return isinstance(value, str) and PERIOD_RE.match(value) is not None


def parse_period(s: str) -> tuple[int, int]:
    """Parse a period string in YYYY-MM format.

    Args:
        s: Period string, e.g. "2024-03".

    Returns:
        Tuple of (year, month).

    Raises:
        ValueError: If the string is not in YYYY-MM format.

    Examples:
        >>> parse_period("2024-03")
        (2024, 3)

    """
    match = PERIOD_RE.match(s) if isinstance(s, str) else None
    if match is None:
        raise ValueError(f"Invalid period {s!r}. Expected YYYY-MM")
    return int(match.group("year")), int(match.group("month"))


def period_year(s: str) -> int:
    """Return the calendar year of a period string."""
    return parse_period(s)[0]


def year_bounds(year: int) -> tuple[str, str]:
    """Return the inclusive (first, last) periods of a calendar year."""
    return f"{year:04d}-01", f"{year:04d}-12"


def to_amount(value: Any) -> float:
    """Convert a raw monetary value from the store to float.

    ``None`` counts as 0. Numeric strings are accepted because PostgREST may
    serialise ``numeric`` columns as text.

    Raises:
        ValueError: If the value is a bool, not numeric, NaN or infinite.

    """
    if value is None:
        return 0.0
    if isinstance(value, bool):
        raise ValueError(f"Expected a number, got bool {value!r}")
    if isinstance(value, (int, float)):
        amount = float(value)
    elif isinstance(value, str):
        try:
            amount = float(value.strip())
        except ValueError as e:
            raise ValueError(f"Expected a number, got {value!r}") from e
    else:
        raise ValueError(f"Expected a number, got {type(value).__name__}")
    if not math.isfinite(amount):
        raise ValueError(f"Expected a finite number, got {value!r}")
    return amount
