"""Tests for the tiered growth bonus."""

from __future__ import annotations

import pytest

from salon_bonus.growth import DEFAULT_TIERS, GrowthBonusCalculator, GrowthTier, growth_percent
from salon_bonus.models import BaselineOverride


@pytest.fixture
def calc() -> GrowthBonusCalculator:
    return GrowthBonusCalculator("loreal")


class TestTiers:
    @pytest.mark.parametrize(
        "current, tier, rate",
        [
            (111_000.0, 3, 0.10),
            (110_000.0, 3, 0.10),
            (109_999.0, 2, 0.05),
            (105_000.0, 2, 0.05),
            (104_999.0, 1, 0.025),
            (100_000.0, 1, 0.025),
            (99_999.0, 0, 0.0),
        ],
    )
    def test_tier_boundaries(self, calc, current: float, tier: int, rate: float) -> None:
        """Test the tier picked at and around each threshold."""
        result = calc.compute(current, 100_000.0)

        assert result.tier == tier
        assert result.bonus_rate == rate
        assert result.bonus_amount == pytest.approx(current * rate)

    def test_exact_percent_boundaries(self) -> None:
        """Test that 5 and 10 percent growth come out exact."""
        assert growth_percent(105.0, 100.0) == 5.0
        assert growth_percent(110.0, 100.0) == 10.0
        assert growth_percent(315.0, 300.0) == 5.0
        assert growth_percent(330.0, 300.0) == 10.0

    def test_monotonic_in_current(self, calc) -> None:
        """Test that more turnover never gives a lower tier."""
        tiers = [calc.compute(float(c), 80_000.0).tier for c in range(0, 120_001, 1_000)]
        assert tiers == sorted(tiers)

    def test_new_customer(self, calc) -> None:
        """Test that no baseline puts a buying salon in the top tier."""
        result = calc.compute(25_000.0, 0.0)

        assert result.is_new_customer
        assert result.tier == 3
        assert result.growth_percent == 0.0
        assert result.bonus_amount == pytest.approx(2_500.0)

    @pytest.mark.parametrize("prior", [0.0, 50_000.0])
    def test_no_purchases_no_bonus(self, calc, prior: float) -> None:
        """Test that zero turnover gives tier 0 whatever the baseline."""
        result = calc.compute(0.0, prior)

        assert result.tier == 0
        assert result.bonus_amount == 0.0
        assert not result.is_new_customer

    def test_negative_turnover_rejected(self, calc) -> None:
        """Test that negative turnover raises ValueError."""
        with pytest.raises(ValueError):
            calc.compute(-1.0, 100.0)

    def test_custom_tiers(self) -> None:
        """Test a calculator built with its own tier table."""
        calc = GrowthBonusCalculator("x", tiers=(GrowthTier(1, 0.0, 0.01), GrowthTier(2, 20.0, 0.2)))

        assert calc.compute(120.0, 100.0).tier == 2
        assert calc.compute(119.0, 100.0).tier == 1

    def test_default_tiers_are_highest_first(self) -> None:
        """Test the order of the default tiers."""
        assert [t.tier for t in DEFAULT_TIERS] == [3, 2, 1]


class TestScenarios:
    def test_growth_above_ten_percent(self, calc) -> None:
        """Test a salon growing 11 percent over last year."""
        result = calc.compute(100_000.0, 90_000.0)

        assert result.growth_percent == pytest.approx(11.11, abs=0.01)
        assert result.tier == 3
        assert result.bonus_rate == 0.10
        assert result.bonus_amount == pytest.approx(10_000.0)
        assert result.progress_percent == pytest.approx(111.11, abs=0.01)
        assert result.remaining_to_match == 0.0

    def test_override_replaces_baseline(self, calc) -> None:
        """Test that an override replaces last year's calculated turnover."""
        override = BaselineOverride("s-a", "loreal", 2023, 120_000.0, "Ny eier")

        result = calc.compute(100_000.0, 90_000.0, override)

        assert result.prev_turnover == 120_000.0
        assert result.calculated_prev_turnover == 90_000.0
        assert result.has_override
        assert result.override_reason == "Ny eier"
        assert result.growth_percent == pytest.approx(-16.67, abs=0.01)
        assert result.tier == 0
        assert result.bonus_amount == 0.0
        assert result.remaining_to_match == 20_000.0


class TestTargets:
    def test_targets_from_baseline(self, calc) -> None:
        """Test targets and amounts needed for each tier."""
        targets = calc.targets(95_000.0, 100_000.0)

        assert [t.tier for t in targets] == [3, 2, 1]
        top = targets[0]
        assert top.target_turnover == pytest.approx(110_000.0)
        assert top.amount_needed == pytest.approx(15_000.0)
        assert top.potential_bonus == pytest.approx(11_000.0)
        assert targets[2].amount_needed == pytest.approx(5_000.0)

    def test_reached_tier_needs_nothing(self, calc) -> None:
        """Test that reached tiers need no more turnover."""
        targets = calc.targets(120_000.0, 100_000.0)

        assert all(t.amount_needed == 0.0 for t in targets)
        assert targets[0].potential_bonus == pytest.approx(12_000.0)

    def test_no_baseline_no_targets(self, calc) -> None:
        """Test that there are no targets without a baseline."""
        assert calc.targets(10_000.0, 0.0) == []
