"""Tests for period helpers, amount parsing and configuration."""

import math

import pytest

from salon_bonus.config import BonusConfig
from salon_bonus.exceptions import ConfigError
from salon_bonus.utils import is_valid_period, parse_period, period_year, to_amount, year_bounds


def test_parse_period() -> None:
    """Test splitting a YYYY-MM period."""
    assert parse_period("2024-03") == (2024, 3)
    assert period_year("2023-12") == 2023


@pytest.mark.parametrize("value", ["2024-3", "2024-13", "2024-00", "24-01", "", None, 202401])
def test_invalid_periods(value) -> None:
    """Test that malformed periods are rejected."""
    assert not is_valid_period(value)
    with pytest.raises(ValueError):
        parse_period(value)


def test_year_bounds() -> None:
    """Test the first and last period of a year."""
    assert year_bounds(2024) == ("2024-01", "2024-12")


class TestToAmount:
    def test_numbers_and_strings(self) -> None:
        """Test numbers, numeric strings and None as amounts."""
        assert to_amount(10) == 10.0
        assert to_amount(" 12.5 ") == 12.5
        assert to_amount(None) == 0.0

    @pytest.mark.parametrize("value", [True, "abc", [], {}, math.nan, math.inf, "inf"])
    def test_rejected(self, value) -> None:
        """Test that non-numeric and non-finite amounts raise ValueError."""
        with pytest.raises(ValueError):
            to_amount(value)


class TestBonusConfig:
    def test_defaults(self) -> None:
        """Test the default configuration values."""
        config = BonusConfig(growth_supplier_id="loreal")

        assert config.page_size == 1000
        assert config.placeholder_name == "Ukjent"
        assert config.reconcile_tolerance == 0.01

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"growth_supplier_id": ""},
            {"growth_supplier_id": "x", "page_size": 0},
            {"growth_supplier_id": "x", "reconcile_tolerance": -1.0},
            {"growth_supplier_id": "x", "fetch_workers": 0},
        ],
    )
    def test_invalid(self, kwargs) -> None:
        """Test that invalid settings raise ConfigError."""
        with pytest.raises(ConfigError):
            BonusConfig(**kwargs)

    def test_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test reading the configuration from BONUS_* variables."""
        monkeypatch.setenv("BONUS_GROWTH_SUPPLIER_ID", "loreal")
        monkeypatch.setenv("BONUS_PAGE_SIZE", "250")
        monkeypatch.setenv("BONUS_FETCH_WORKERS", "1")

        config = BonusConfig.from_env()

        assert (config.growth_supplier_id, config.page_size, config.fetch_workers) == ("loreal", 250, 1)

    def test_from_env_requires_supplier(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that the growth supplier must be set."""
        monkeypatch.delenv("BONUS_GROWTH_SUPPLIER_ID", raising=False)

        with pytest.raises(ConfigError):
            BonusConfig.from_env()

    def test_from_env_bad_number(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that a non-numeric page size raises ConfigError."""
        monkeypatch.setenv("BONUS_GROWTH_SUPPLIER_ID", "loreal")
        monkeypatch.setenv("BONUS_PAGE_SIZE", "many")

        with pytest.raises(ConfigError):
            BonusConfig.from_env()
