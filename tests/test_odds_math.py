"""
Tests for backend/core/odds_math.py

Run with: pytest tests/test_odds_math.py -v
"""

import math

import pytest

from backend.core.odds_math import (
    NEUTRAL_PROB,
    allocate_arbitrage_stakes,
    american_to_decimal,
    arbitrage_profit_pct,
    arbitrage_total,
    decimal_to_american,
    decimal_to_implied,
    fair_implied_probability,
    hold_pct,
    implied_to_decimal,
    is_value_bet,
)
from backend.core.quotes import Quote


def _offers(*prices):
    return [Quote.from_decimal("Team A", f"Book{i}", p) for i, p in enumerate(prices)]


class TestConversion:
    """Decimal ↔ implied ↔ American."""

    def test_round_trip(self):
        for d in (1.01, 1.5, 1.95, 2.0, 3.75, 11.0):
            assert implied_to_decimal(decimal_to_implied(d)) == pytest.approx(d)

    def test_degenerate_inputs_are_neutral(self):
        assert decimal_to_implied(0.0) == 0.0
        assert decimal_to_implied(-2.0) == 0.0
        assert implied_to_decimal(0.0) == 2.0

    def test_american_to_decimal(self):
        assert american_to_decimal(150) == pytest.approx(2.5)
        assert american_to_decimal(-110) == pytest.approx(1.9091, abs=1e-4)
        assert american_to_decimal(100) == pytest.approx(2.0)

    def test_american_magnitude_guard(self):
        with pytest.raises(ValueError):
            american_to_decimal(50)

    def test_decimal_to_american(self):
        assert decimal_to_american(2.5) == 150
        assert decimal_to_american(1.5) == -200
        assert decimal_to_american(2.0) == 100

    def test_decimal_to_american_rejects_even_or_below(self):
        with pytest.raises(ValueError):
            decimal_to_american(1.0)


class TestFairImpliedProbability:
    """Fair baseline from a selection's offers."""

    def test_best_price_baseline(self):
        offers = _offers(1.90, 2.05, 1.95)
        assert fair_implied_probability(offers) == pytest.approx(1 / 2.05)

    @pytest.mark.parametrize("prices", [(1.5,), (2.1, 2.0), (1.01, 9.5, 3.3, 3.3)])
    def test_best_equals_inverse_of_max(self, prices):
        offers = _offers(*prices)
        assert fair_implied_probability(offers, use_best=True) == pytest.approx(1 / max(prices))

    def test_average_baseline(self):
        offers = _offers(2.0, 4.0)
        assert fair_implied_probability(offers, use_best=False) == pytest.approx((0.5 + 0.25) / 2)

    def test_empty_is_neutral(self):
        assert fair_implied_probability([]) == NEUTRAL_PROB
        assert fair_implied_probability([], use_best=False) == NEUTRAL_PROB


class TestIsValueBet:
    """Inclusive minimum-edge test."""

    def test_clear_value(self):
        assert is_value_bet(0.45, 0.50)

    def test_below_threshold(self):
        assert not is_value_bet(0.495, 0.50)

    def test_boundary_is_inclusive(self):
        assert is_value_bet(0.49, 0.50, 0.01)

    def test_negative_edge(self):
        assert not is_value_bet(0.55, 0.50)

    def test_custom_threshold(self):
        assert not is_value_bet(0.47, 0.50, min_edge=0.05)
        assert is_value_bet(0.44, 0.50, min_edge=0.05)


class TestTwoWayMarkets:
    """Hold, arbitrage total and stake split."""

    def test_hold_on_standard_juice(self):
        assert hold_pct(1.95, 1.95) == pytest.approx(2.564, abs=0.01)

    def test_arbitrage_profit(self):
        total = arbitrage_total(2.10, 2.10)
        assert total == pytest.approx(0.9524, abs=1e-4)
        assert arbitrage_profit_pct(total) == pytest.approx(5.0, abs=0.01)

    def test_no_profit_when_total_not_below_one(self):
        assert arbitrage_profit_pct(1.0) == 0.0
        assert arbitrage_profit_pct(1.05) == 0.0
        assert arbitrage_profit_pct(0.0) == 0.0

    def test_stake_split_equalises_payout(self):
        split = allocate_arbitrage_stakes(2.20, 2.00, 100.0)
        assert split.is_arbitrage
        assert split.stake_a + split.stake_b == pytest.approx(100.0)
        assert split.stake_a * 2.20 == pytest.approx(split.stake_b * 2.00)
        assert split.payout == pytest.approx(split.stake_a * 2.20)
        assert split.profit == pytest.approx(split.payout - 100.0)
        assert split.profit > 0

    def test_zero_stake_is_safe(self):
        split = allocate_arbitrage_stakes(2.10, 2.10, 0.0)
        assert split.is_arbitrage
        assert split.stake_a == split.stake_b == split.profit == 0.0

    def test_not_an_arb_reports_no_profit(self):
        split = allocate_arbitrage_stakes(1.91, 1.91, 100.0)
        assert not split.is_arbitrage
        assert split.profit == 0.0
        assert split.profit_pct == 0.0

    def test_degenerate_prices_never_nan(self):
        split = allocate_arbitrage_stakes(0.0, 0.0, 100.0)
        for value in (split.total, split.stake_a, split.stake_b, split.payout, split.profit):
            assert math.isfinite(value)
