"""Data-store access for bonus facts, baseline overrides and directories.

Two implementations of the ``BonusStore`` protocol live here:

- ``PostgrestStore`` talks to the PostgREST endpoint in front of the
  dashboard database over HTTP. Range-bounded requests use the
  ``Range-Unit`` / ``Range`` headers and a stable ``order=id.asc``.
- ``MemoryStore`` serves raw rows from memory with the same filter and range
  semantics, for tests and local runs.

Environment (PostgrestStore.from_env):
  BONUS_STORE_URL: base URL of the project, e.g. https://xyz.supabase.co
  BONUS_STORE_KEY: API key sent as ``apikey`` and bearer token
  BONUS_TIMEOUT=60   # seconds
  BONUS_RETRIES=3

Retries live in this layer only (the HTTP adapter); the retriever above it
never retries a failed page.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Optional, Protocol

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from salon_bonus.config import DEFAULT_PAGE_SIZE
from salon_bonus.exceptions import ConfigError, DataFetchError
from salon_bonus.facts.extract import FactFilter, fetch_all_pages

logger = logging.getLogger(__name__)

FACTS_TABLE = "bonus_calculations"
OVERRIDES_TABLE = "bonus_baseline_overrides"
SALONS_TABLE = "salons"
SUPPLIERS_TABLE = "leverandorer"

FACT_COLUMNS = (
    "id,salon_id,supplier_id,period,total_turnover,loyalty_bonus_amount,calculation_details"
)
OVERRIDE_COLUMNS = "salon_id,supplier_id,year,override_turnover,reason"


class BonusStore(Protocol):
    """What the bonus core needs from the data layer."""

    def fetch_fact_page(self, flt: FactFilter, start: int, stop: int) -> list[dict[str, Any]]:
        """Return fact rows ``[start, stop)`` of the rows matching ``flt``."""
        ...

    def fetch_overrides(
        self, supplier_id: str, year: int, salon_id: Optional[str] = None
    ) -> list[dict[str, Any]]:
        """Return baseline override rows for a supplier and baseline year."""
        ...

    def fetch_salons(self) -> list[dict[str, Any]]:
        """Return salon directory rows ``{"id", "name"}``."""
        ...

    def fetch_suppliers(self) -> list[dict[str, Any]]:
        """Return supplier directory rows ``{"id", "name"}``."""
        ...


# --- HTTP resiliency ---
DEFAULT_TIMEOUT = float(os.environ.get("BONUS_TIMEOUT", "60"))
DEFAULT_RETRIES = int(os.environ.get("BONUS_RETRIES", "3"))


def make_session(
    timeout: float = DEFAULT_TIMEOUT, retries: int = DEFAULT_RETRIES
) -> requests.Session:
    """Create a requests Session with retry logic and default timeout.

    Configures the session with:
    - Retry adapter for HTTP/HTTPS with exponential backoff
    - Default timeout for all requests
    - Retries on 429, 500, 502, 503, 504 status codes

    Args:
        timeout: Default timeout in seconds for all requests.
        retries: Number of retry attempts.

    Returns:
        Configured requests.Session object.

    """
    s = requests.Session()
    retry = Retry(
        total=retries,
        connect=retries,
        read=retries,
        status=retries,
        backoff_factor=0.8,  # 0.8, 1.6, 3.2, ...
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=frozenset({"GET", "HEAD", "OPTIONS"}),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    s.mount("http://", adapter)
    s.mount("https://", adapter)
    # Default timeouts via a wrapper
    orig_request = s.request

    def timed_request(method: str, url: str, **kwargs: Any) -> requests.Response:
        kwargs.setdefault("timeout", timeout)
        return orig_request(method, url, **kwargs)

    s.request = timed_request  # type: ignore[method-assign,assignment]
    return s


def ensure_ok(resp: requests.Response, msg: str) -> None:
    """Raise DataFetchError unless the response status is 2xx.

    Args:
        resp: HTTP response object to check.
        msg: Error message prefix.

    Raises:
        DataFetchError: If response status code is not in 200-299 range.

    """
    if not (200 <= resp.status_code < 300):
        raise DataFetchError(f"{msg}. HTTP {resp.status_code}: {resp.text[:400]}")


class PostgrestStore:
    """BonusStore backed by a PostgREST HTTP endpoint.

    Example:
        >>> store = PostgrestStore.from_env()
        >>> page = store.fetch_fact_page(FactFilter.for_year(2024), 0, 1000)

    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
        retries: int = DEFAULT_RETRIES,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        """Initialize the store client.

        Args:
            base_url: Project base URL; ``/rest/v1/<table>`` is appended.
            api_key: API key for the ``apikey`` and ``Authorization`` headers.
            session: Optional pre-built session (a retrying one is made otherwise).
            timeout: Default request timeout in seconds.
            retries: Transport-level retry attempts.
            page_size: Page size for directory and override reads.

        """
        if not base_url:
            raise ConfigError("base_url must be set")
        self.base_url = base_url.rstrip("/")
        self.page_size = page_size
        self.session = session if session is not None else make_session(timeout, retries)
        self.session.headers.update(
            {
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Accept": "application/json",
            }
        )

    @classmethod
    def from_env(cls) -> PostgrestStore:
        """Create a store from BONUS_STORE_URL / BONUS_STORE_KEY.

        Raises:
            ConfigError: If either variable is missing.

        """
        base_url = os.environ.get("BONUS_STORE_URL")
        api_key = os.environ.get("BONUS_STORE_KEY")
        if not base_url or not api_key:
            raise ConfigError(
                "BONUS_STORE_URL and BONUS_STORE_KEY environment variables must be set."
            )
        return cls(base_url=base_url, api_key=api_key)

    def _get(
        self,
        table: str,
        params: list[tuple[str, str]],
        start: Optional[int] = None,
        stop: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        """GET rows from a table, optionally bounded to ``[start, stop)``."""
        url = f"{self.base_url}/rest/v1/{table}"
        headers: dict[str, str] = {}
        if start is not None and stop is not None:
            headers["Range-Unit"] = "items"
            headers["Range"] = f"{start}-{stop - 1}"

        try:
            resp = self.session.get(url, params=params, headers=headers)
        except requests.RequestException as e:
            raise DataFetchError(f"GET {table} failed: {e}") from e

        # Offset past the last row
        if resp.status_code == 416:
            return []
        ensure_ok(resp, f"GET {table} failed")

        try:
            data = resp.json()
        except ValueError as e:
            raise DataFetchError(f"GET {table} returned a non-JSON body: {e}") from e
        if not isinstance(data, list):
            raise DataFetchError(f"GET {table} returned {type(data).__name__}, expected a list")
        return data

    def _get_all(self, table: str, params: list[tuple[str, str]]) -> list[dict[str, Any]]:
        return fetch_all_pages(
            lambda start, stop: self._get(table, params, start, stop),
            page_size=self.page_size,
            label=table,
        )

    def fetch_fact_page(self, flt: FactFilter, start: int, stop: int) -> list[dict[str, Any]]:
        params = [
            ("select", FACT_COLUMNS),
            ("period", f"gte.{flt.start_period}"),
            ("period", f"lte.{flt.end_period}"),
            ("order", "id.asc"),
        ]
        if flt.supplier_id is not None:
            params.append(("supplier_id", f"eq.{flt.supplier_id}"))
        if flt.salon_id is not None:
            params.append(("salon_id", f"eq.{flt.salon_id}"))
        return self._get(FACTS_TABLE, params, start, stop)

    def fetch_overrides(
        self, supplier_id: str, year: int, salon_id: Optional[str] = None
    ) -> list[dict[str, Any]]:
        params = [
            ("select", OVERRIDE_COLUMNS),
            ("supplier_id", f"eq.{supplier_id}"),
            ("year", f"eq.{year}"),
            ("order", "salon_id.asc"),
        ]
        if salon_id is not None:
            params.append(("salon_id", f"eq.{salon_id}"))
        return self._get_all(OVERRIDES_TABLE, params)

    def fetch_salons(self) -> list[dict[str, Any]]:
        return self._get_all(SALONS_TABLE, [("select", "id,name"), ("order", "id.asc")])

    def fetch_suppliers(self) -> list[dict[str, Any]]:
        rows = self._get_all(SUPPLIERS_TABLE, [("select", "id,navn"), ("order", "id.asc")])
        return [{"id": r.get("id"), "name": r.get("navn")} for r in rows]


class MemoryStore:
    """BonusStore serving raw rows from memory.

    Honours the same filters and half-open ranges as the HTTP store. Every
    fact page request is recorded in ``page_requests``; setting
    ``fail_on_page`` makes that page index raise DataFetchError.

    Example:
        >>> store = MemoryStore(facts=[{"salon_id": "s1", "supplier_id": "x",
        ...                             "period": "2024-01", "total_turnover": 10}])
        >>> store.fetch_fact_page(FactFilter.for_year(2024), 0, 1000)[0]["salon_id"]
        's1'

    """

    def __init__(
        self,
        facts: Optional[list[dict[str, Any]]] = None,
        overrides: Optional[list[dict[str, Any]]] = None,
        salons: Optional[list[dict[str, Any]]] = None,
        suppliers: Optional[list[dict[str, Any]]] = None,
        fail_on_page: Optional[int] = None,
    ) -> None:
        self.facts = list(facts or [])
        self.overrides = list(overrides or [])
        self.salons = list(salons or [])
        self.suppliers = list(suppliers or [])
        self.fail_on_page = fail_on_page
        self.page_requests: list[tuple[int, int]] = []

    def fetch_fact_page(self, flt: FactFilter, start: int, stop: int) -> list[dict[str, Any]]:
        self.page_requests.append((start, stop))
        if self.fail_on_page is not None and start // max(stop - start, 1) == self.fail_on_page:
            raise DataFetchError(f"Simulated failure on range [{start}, {stop})")
        matching = [row for row in self.facts if flt.matches(row)]
        return [dict(row) for row in matching[start:stop]]

    def fetch_overrides(
        self, supplier_id: str, year: int, salon_id: Optional[str] = None
    ) -> list[dict[str, Any]]:
        return [
            dict(row)
            for row in self.overrides
            if row.get("supplier_id") == supplier_id
            and row.get("year") == year
            and (salon_id is None or row.get("salon_id") == salon_id)
        ]

    def fetch_salons(self) -> list[dict[str, Any]]:
        return [dict(row) for row in self.salons]

    def fetch_suppliers(self) -> list[dict[str, Any]]:
        return [dict(row) for row in self.suppliers]
