"""Tests for the PostgREST store client, using a fake session."""

from __future__ import annotations

from typing import Any, Optional

import pytest
import requests

from salon_bonus.exceptions import ConfigError, DataFetchError
from salon_bonus.facts import FactFilter, fetch_facts
from salon_bonus.store import FACTS_TABLE, PostgrestStore, ensure_ok


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, text: str = "") -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self) -> Any:
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:
    """Serves table rows honouring the Range header."""

    def __init__(self, tables: Optional[dict[str, list[dict]]] = None) -> None:
        self.headers: dict[str, str] = {}
        self.tables = tables or {}
        self.calls: list[tuple[str, list, dict]] = []
        self.response: Optional[FakeResponse] = None

    def get(self, url: str, params=None, headers=None) -> FakeResponse:
        self.calls.append((url, params, headers))
        if self.response is not None:
            return self.response
        rows = self.tables.get(url.rsplit("/", 1)[-1], [])
        first, last = (int(x) for x in headers["Range"].split("-"))
        if first >= len(rows) and rows:
            return FakeResponse(416, text="Requested range not satisfiable")
        return FakeResponse(200, rows[first : last + 1])


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


def _store(session: FakeSession, page_size: int = 1000) -> PostgrestStore:
    return PostgrestStore("https://db.example.com/", "secret", session=session, page_size=page_size)


class TestPostgrestStore:
    def test_auth_headers(self, session) -> None:
        """Test that the API key is sent as apikey and bearer token."""
        _store(session)

        assert session.headers["apikey"] == "secret"
        assert session.headers["Authorization"] == "Bearer secret"

    def test_fact_page_request(self, session) -> None:
        """Test the URL, filters, order and Range header of a fact page."""
        store = _store(session)

        store.fetch_fact_page(FactFilter.for_year(2024, supplier_id="loreal"), 1000, 2000)

        url, params, headers = session.calls[0]
        assert url == f"https://db.example.com/rest/v1/{FACTS_TABLE}"
        assert ("period", "gte.2024-01") in params
        assert ("period", "lte.2024-12") in params
        assert ("supplier_id", "eq.loreal") in params
        assert ("order", "id.asc") in params
        assert headers == {"Range-Unit": "items", "Range": "1000-1999"}

    def test_paging_through_store(self, make_fact_row) -> None:
        """Test paging fact rows through the PostgREST client."""
        rows = [make_fact_row(f"s-{i}", "loreal", "2024-01", 1.0, row_id=i) for i in range(4)]
        session = FakeSession({FACTS_TABLE: rows})

        batch = fetch_facts(_store(session), FactFilter.for_year(2024), page_size=2)

        assert len(batch.facts) == 4
        assert [c[2]["Range"] for c in session.calls] == ["0-1", "2-3", "4-5"]

    def test_range_past_end_is_empty(self, session) -> None:
        """Test that HTTP 416 is an empty page."""
        session.response = FakeResponse(416)

        assert _store(session).fetch_salons() == []

    def test_http_error(self, session) -> None:
        """Test that an HTTP error status raises DataFetchError."""
        session.response = FakeResponse(500, text="boom")

        with pytest.raises(DataFetchError, match="HTTP 500"):
            _store(session).fetch_fact_page(FactFilter.for_year(2024), 0, 10)

    def test_non_list_body(self, session) -> None:
        """Test that a JSON object body is rejected."""
        session.response = FakeResponse(200, {"message": "nope"})

        with pytest.raises(DataFetchError, match="expected a list"):
            _store(session).fetch_salons()

    def test_non_json_body(self, session) -> None:
        """Test that a body that is not JSON is rejected."""
        session.response = FakeResponse(200, ValueError("bad json"))

        with pytest.raises(DataFetchError, match="non-JSON"):
            _store(session).fetch_salons()

    def test_connection_error(self, session, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that a connection error is wrapped in DataFetchError."""
        def fail(*args, **kwargs):
            raise requests.ConnectionError("unreachable")

        monkeypatch.setattr(session, "get", fail)

        with pytest.raises(DataFetchError, match="unreachable"):
            _store(session).fetch_fact_page(FactFilter.for_year(2024), 0, 10)

    def test_supplier_names_are_mapped(self) -> None:
        """Test that supplier rows are mapped to id and name."""
        session = FakeSession({"leverandorer": [{"id": "loreal", "navn": "L'Oréal"}]})

        assert _store(session).fetch_suppliers() == [{"id": "loreal", "name": "L'Oréal"}]

    def test_overrides_filter(self, session) -> None:
        """Test the filters sent for an override lookup."""
        _store(session).fetch_overrides("loreal", 2023, salon_id="s-1")

        _, params, _ = session.calls[0]
        assert ("supplier_id", "eq.loreal") in params
        assert ("year", "eq.2023") in params
        assert ("salon_id", "eq.s-1") in params


class TestFromEnv:
    def test_missing_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that missing credentials raise ConfigError."""
        monkeypatch.delenv("BONUS_STORE_URL", raising=False)
        monkeypatch.delenv("BONUS_STORE_KEY", raising=False)

        with pytest.raises(ConfigError):
            PostgrestStore.from_env()

    def test_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test building the store from BONUS_STORE_* variables."""
        monkeypatch.setenv("BONUS_STORE_URL", "https://db.example.com")
        monkeypatch.setenv("BONUS_STORE_KEY", "secret")

        store = PostgrestStore.from_env()

        assert store.base_url == "https://db.example.com"
        assert store.session.headers["apikey"] == "secret"


def test_ensure_ok() -> None:
    """Test that ensure_ok passes 2xx and raises on errors."""
    ensure_ok(FakeResponse(204), "ok")
    with pytest.raises(DataFetchError, match="HTTP 404"):
        ensure_ok(FakeResponse(404, text="missing"), "lookup failed")
