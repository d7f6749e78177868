"""Kelly criterion sizing — the single source of truth for bet sizing math.

All functions here are **pure**: no I/O, no logging.
Import from this module; never reimplement Kelly locally in services.

Two functions cover the sizing contexts in the pipeline:

1. :func:`kelly_stake` — fractional Kelly for a simple win/loss bet.
2. :func:`kelly_stake_amount` — the same fraction expressed in currency.

Design decisions
----------------
* **Fractional Kelly** is restricted to the three multipliers the
  presentation layer offers: full (1), half (0.5) and quarter (0.25).  The
  system never derives a custom multiplier.
* The output is clamped to ``[0, 1]``: a negative-edge bet is sized at zero
  and no recommendation ever exceeds the whole bankroll.
* ``decimal_odds <= 1`` has no positive payout, so the Kelly ratio would
  divide by a non-positive number.  That case is sized at zero.

Run tests with::

    pytest tests/test_kelly.py -v
"""

from __future__ import annotations

from typing import Final, Tuple

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

#: Permitted fractional Kelly multipliers (full, half, quarter).
KELLY_MULTIPLIERS: Final[Tuple[float, ...]] = (1.0, 0.5, 0.25)

#: Multiplier used when a caller supplies a bankroll but no multiplier.
DEFAULT_KELLY_MULTIPLIER: Final[float] = 0.5

#: Hard ceiling on any recommendation (100% of bankroll).
MAX_KELLY_FRACTION: Final[float] = 1.0


def validate_kelly_multiplier(fraction: float) -> float:
    """Return ``fraction`` as a float if it is one of :data:`KELLY_MULTIPLIERS`.

    Raises:
        ValueError: For any other value.
    """
    value = float(fraction)
    if value not in KELLY_MULTIPLIERS:
        raise ValueError(
            f"Kelly multiplier must be one of {KELLY_MULTIPLIERS}, got {fraction!r}."
        )
    return value


# ---------------------------------------------------------------------------
# Standard Kelly
# ---------------------------------------------------------------------------


def kelly_stake(
    decimal_odds: float,
    your_probability: float,
    fraction: float = DEFAULT_KELLY_MULTIPLIER,
) -> float:
    """Fraction of bankroll to stake on a win/loss bet.

    The Kelly criterion maximises long-run log-wealth::

        b  = decimal_odds − 1          (profit per unit staked)
        q  = 1 − p
        f* = (b · p − q) / b

    The result is ``max(0, f*) × fraction`` capped at
    :data:`MAX_KELLY_FRACTION`.

    Args:
        decimal_odds: Price of the bet.
        your_probability: Believed probability of winning, in ``[0, 1]``.
        fraction: One of :data:`KELLY_MULTIPLIERS`.

    Returns:
        Stake fraction in ``[0, 1]``.  0.0 for negative-edge bets and for
        ``decimal_odds <= 1``.

    Raises:
        ValueError: If ``fraction`` is not a permitted multiplier.

    Examples::

        kelly_stake(2.10, 0.55, 1.0)   → 0.141
        kelly_stake(2.10, 0.55, 0.5)   → 0.070
        kelly_stake(1.91, 0.45, 1.0)   → 0.000  (negative EV)
    """
    multiplier = validate_kelly_multiplier(fraction)

    profit_per_unit = decimal_odds - 1.0
    if profit_per_unit <= 0.0:
        return 0.0

    loss_prob = 1.0 - your_probability
    full_kelly = (profit_per_unit * your_probability - loss_prob) / profit_per_unit

    return min(max(0.0, full_kelly) * multiplier, MAX_KELLY_FRACTION)


def kelly_stake_amount(bankroll: float, stake_fraction: float) -> float:
    """Currency amount for a Kelly fraction; 0.0 for a non-positive bankroll."""
    if bankroll <= 0.0 or stake_fraction <= 0.0:
        return 0.0
    return bankroll * min(stake_fraction, MAX_KELLY_FRACTION)
