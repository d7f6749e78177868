"""
Tests for backend/core/kelly.py

Run with: pytest tests/test_kelly.py -v
"""

import itertools

import pytest

from backend.core.kelly import (
    KELLY_MULTIPLIERS,
    kelly_stake,
    kelly_stake_amount,
    validate_kelly_multiplier,
)


class TestKellyStake:
    """Fractional Kelly sizing."""

    def test_full_kelly(self):
        # b = 1.1, p = 0.55 → (0.605 - 0.45) / 1.1
        assert kelly_stake(2.10, 0.55, 1) == pytest.approx(0.155 / 1.1)

    def test_half_and_quarter_scale_linearly(self):
        full = kelly_stake(2.10, 0.55, 1)
        assert kelly_stake(2.10, 0.55, 0.5) == pytest.approx(full / 2)
        assert kelly_stake(2.10, 0.55, 0.25) == pytest.approx(full / 4)

    def test_negative_edge_is_zero(self):
        assert kelly_stake(1.91, 0.45, 1) == 0.0

    def test_break_even_is_zero(self):
        # (d-1)·p - (1-p) == 0 exactly at p = 1/d
        assert kelly_stake(2.0, 0.5, 1) == 0.0

    @pytest.mark.parametrize("odds", [1.0, 0.9, 0.0])
    def test_no_payout_is_zero(self, odds):
        assert kelly_stake(odds, 0.9, 1) == 0.0

    def test_certain_win_capped_at_full_bankroll(self):
        assert kelly_stake(5.0, 1.0, 1) == pytest.approx(1.0)
        assert kelly_stake(5.0, 1.0, 1) <= 1.0

    def test_zero_whenever_edge_non_positive(self):
        for d, p in itertools.product((1.2, 1.9, 2.5, 6.0), (0.0, 0.1, 0.3, 0.4, 0.5)):
            if (d - 1) * p - (1 - p) <= 0:
                for f in KELLY_MULTIPLIERS:
                    assert kelly_stake(d, p, f) == 0.0

    def test_output_always_in_unit_interval(self):
        for d, p, f in itertools.product(
            (1.01, 1.5, 2.0, 3.0, 10.0, 100.0),
            (0.0, 0.2, 0.5, 0.8, 1.0),
            KELLY_MULTIPLIERS,
        ):
            assert 0.0 <= kelly_stake(d, p, f) <= 1.0

    def test_rejects_custom_multiplier(self):
        with pytest.raises(ValueError):
            kelly_stake(2.10, 0.55, 0.33)


class TestHelpers:

    def test_validate_accepts_int_and_float(self):
        assert validate_kelly_multiplier(1) == 1.0
        assert validate_kelly_multiplier(0.25) == 0.25

    def test_validate_rejects_other_values(self):
        with pytest.raises(ValueError):
            validate_kelly_multiplier(2)

    def test_stake_amount(self):
        assert kelly_stake_amount(1000.0, 0.05) == pytest.approx(50.0)

    def test_stake_amount_without_bankroll(self):
        assert kelly_stake_amount(0.0, 0.05) == 0.0
        assert kelly_stake_amount(1000.0, 0.0) == 0.0
