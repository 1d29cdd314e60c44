"""Salon and supplier directory for resolving display names.

Facts only carry ids. The directory maps them to display names; an id the
directory does not know gets a placeholder name and is recorded as a
MissingReferenceError instead of failing the report.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from salon_bonus.config import DEFAULT_PLACEHOLDER_NAME
from salon_bonus.exceptions import MissingReferenceError

if TYPE_CHECKING:
    from salon_bonus.store import BonusStore

logger = logging.getLogger(__name__)


def _names_by_id(rows: list[dict[str, Any]]) -> dict[str, str]:
    names: dict[str, str] = {}
    for row in rows:
        ref_id = row.get("id")
        name = row.get("name")
        if ref_id is None or not isinstance(name, str) or not name.strip():
            continue
        names[str(ref_id)] = name.strip()
    return names


class Directory:
    """Registry of salon and supplier display names.

    Example:
        >>> directory = Directory({"s1": "Salong Sentrum"}, {"x": "L'Oréal"})
        >>> directory.salon_name("s1")
        'Salong Sentrum'
        >>> directory.salon_name("s9")
        'Ukjent'
        >>> [m.ref_id for m in directory.missing]
        ['s9']

    """

    def __init__(
        self,
        salons: dict[str, str],
        suppliers: dict[str, str],
        placeholder: str = DEFAULT_PLACEHOLDER_NAME,
    ) -> None:
        self._salons = dict(salons)
        self._suppliers = dict(suppliers)
        self.placeholder = placeholder
        self._missing: dict[tuple[str, str], MissingReferenceError] = {}

    @classmethod
    def load(cls, store: BonusStore, placeholder: str = DEFAULT_PLACEHOLDER_NAME) -> Directory:
        """Load both directories from the store.

        Raises:
            DataFetchError: If either store request fails.

        """
        salons = _names_by_id(store.fetch_salons())
        suppliers = _names_by_id(store.fetch_suppliers())
        logger.debug("Loaded directory: %d salon(s), %d supplier(s)", len(salons), len(suppliers))
        return cls(salons, suppliers, placeholder=placeholder)

    def _lookup(self, kind: str, names: dict[str, str], ref_id: str) -> str:
        name = names.get(ref_id)
        if name is not None:
            return name
        key = (kind, ref_id)
        if key not in self._missing:
            logger.warning("Unknown %s id %s; using placeholder %r", kind, ref_id, self.placeholder)
            self._missing[key] = MissingReferenceError(kind, ref_id)
        return self.placeholder

    def salon_name(self, salon_id: str) -> str:
        """Return the salon's display name, or the placeholder."""
        return self._lookup("salon", self._salons, salon_id)

    def supplier_name(self, supplier_id: str) -> str:
        """Return the supplier's display name, or the placeholder."""
        return self._lookup("supplier", self._suppliers, supplier_id)

    @property
    def missing(self) -> list[MissingReferenceError]:
        """One MissingReferenceError per distinct unresolved id, in lookup order."""
        return list(self._missing.values())
