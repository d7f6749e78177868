"""Fundamental odds mathematics — the single source of truth.

Every function here is **pure**: no I/O, no logging, no side effects.
Import from this module; never reimplement locally in services.

The three pillars exposed are:

1. **Odds conversion** — decimal ↔ implied probability ↔ American.
2. **Value detection** — fair-probability baseline and the +EV test.
3. **Two-way market arithmetic** — hold, arbitrage total, profit and the
   stake split that locks in an arbitrage.

Design decisions
----------------
* Decimal odds are the working format.  The Odds API is queried with
  ``oddsFormat=decimal`` and Polymarket probabilities convert directly via
  ``1 / p``.  American odds exist only for display and the converter.
* The fair baseline defaults to the **best** price in the market
  (``1 / max(odds)``) rather than a de-vigged consensus.  This is what the
  scanner ranks by; the averaged alternative is kept for callers that want
  a softer baseline.
* Degenerate inputs (no offers, non-positive odds, zero totals) return a
  neutral value instead of raising or producing ``inf``/``nan``.  The
  aggregator and scanner rely on this to never abort a batch.

Run tests with::

    pytest tests/test_odds_math.py -v
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Iterable, Protocol

# ---------------------------------------------------------------------------
# Module-level constants
# ---------------------------------------------------------------------------

#: Baseline probability returned when a selection has no offers.
NEUTRAL_PROB: Final[float] = 0.5

#: Minimum edge (in probability points) for an offer to count as value.
#: One percentage point suppresses noise from book-side rounding.
DEFAULT_MIN_EDGE: Final[float] = 0.01

#: Float slack applied to the inclusive edge comparison so that
#: ``fair - offered == 0.01`` survives binary rounding.
_EDGE_EPSILON: Final[float] = 1e-12

#: Decimal price substituted for a zero-probability prediction-market outcome.
EVEN_MONEY: Final[float] = 2.0


class _Priced(Protocol):
    decimal_odds: float


# ---------------------------------------------------------------------------
# Odds conversion
# ---------------------------------------------------------------------------


def decimal_to_implied(decimal_odds: float) -> float:
    """Implied probability of a decimal price (vig-inclusive).

    Examples::

        decimal_to_implied(2.50) → 0.40
        decimal_to_implied(1.95) → 0.5128

    Returns:
        ``1 / decimal_odds``, or 0.0 for non-positive input.
    """
    if decimal_odds <= 0.0:
        return 0.0
    return 1.0 / decimal_odds


def implied_to_decimal(probability: float) -> float:
    """Decimal price for a probability; :data:`EVEN_MONEY` when ``p <= 0``."""
    if probability <= 0.0:
        return EVEN_MONEY
    return 1.0 / probability


def american_to_decimal(american: int | float) -> float:
    """Convert American odds to decimal format.

    Examples::

        american_to_decimal(-110) → 1.9091
        american_to_decimal(+150) → 2.5000

    Raises:
        ValueError: If ``|american| < 100``, which is not a representable
            American odds value.
    """
    if abs(american) < 100:
        raise ValueError(
            f"Invalid American odds {american!r}: magnitude must be ≥ 100."
        )
    if american > 0:
        return american / 100.0 + 1.0
    return 100.0 / abs(american) + 1.0


def decimal_to_american(decimal_odds: float) -> int:
    """Convert decimal odds to the nearest American integer.

    Values ≥ 2.0 map to positive (underdog) prices, values below 2.0 to
    negative (favourite) prices.  Use the result for display only.

    Raises:
        ValueError: If ``decimal_odds <= 1.0`` (no finite American price).
    """
    if decimal_odds <= 1.0:
        raise ValueError(
            f"Decimal odds {decimal_odds!r} must be > 1.0 to have an American price."
        )
    if decimal_odds >= 2.0:
        return round((decimal_odds - 1.0) * 100)
    return round(-100.0 / (decimal_odds - 1.0))


# ---------------------------------------------------------------------------
# Value detection
# ---------------------------------------------------------------------------


def fair_implied_probability(offers: Iterable[_Priced], use_best: bool = True) -> float:
    """Baseline probability for one selection.

    Args:
        offers: Quotes for a single selection across books.
        use_best: When true, treat the single best price as the consensus
            and return ``1 / max(decimal_odds)``.  When false, return the
            arithmetic mean of ``1 / decimal_odds``.

    Returns:
        The baseline in ``(0, 1]``, or :data:`NEUTRAL_PROB` for an empty
        offer set.
    """
    prices = [o.decimal_odds for o in offers if o.decimal_odds > 0.0]
    if not prices:
        return NEUTRAL_PROB
    if use_best:
        return 1.0 / max(prices)
    return sum(1.0 / p for p in prices) / len(prices)


def is_value_bet(
    offered_implied_prob: float,
    fair_implied_prob: float,
    min_edge: float = DEFAULT_MIN_EDGE,
) -> bool:
    """True when an offer beats the fair baseline by at least ``min_edge``.

    A lower implied probability means a bigger payout for the same outcome,
    so the book is pricing it more generously than the baseline.  The
    threshold is inclusive.
    """
    return fair_implied_prob - offered_implied_prob >= min_edge - _EDGE_EPSILON


# ---------------------------------------------------------------------------
# Two-way market arithmetic
# ---------------------------------------------------------------------------


def arbitrage_total(odds_a: float, odds_b: float) -> float:
    """Sum of implied probabilities across the two sides of a market.

    Below 1.0 the pair is an arbitrage; above 1.0 the excess is the hold.
    Non-positive prices contribute nothing rather than dividing by zero.
    """
    return decimal_to_implied(odds_a) + decimal_to_implied(odds_b)


def hold_pct(odds_a: float, odds_b: float) -> float:
    """Bookmaker margin of a two-way price pair, in percent.

    Example::

        hold_pct(1.95, 1.95) → 2.56
        hold_pct(2.10, 2.10) → -4.76   (negative hold: arbitrage)
    """
    return (arbitrage_total(odds_a, odds_b) - 1.0) * 100.0


def arbitrage_profit_pct(total: float) -> float:
    """Guaranteed return, in percent of total stake, for an implied total.

    Returns 0.0 when ``total`` is not a profitable (or not a valid) total.
    """
    if total <= 0.0 or total >= 1.0:
        return 0.0
    return (1.0 / total - 1.0) * 100.0


@dataclass(frozen=True, slots=True)
class ArbitrageSplit:
    """Stake allocation across both legs of a two-way arbitrage.

    Attributes:
        is_arbitrage: Whether the implied total is below 1.0.
        total: Sum of implied probabilities.
        profit_pct: Guaranteed return in percent (0.0 when not an arb).
        stake_a: Amount to place on side A.
        stake_b: Amount to place on side B.
        payout: Return collected whichever side wins.
        profit: ``payout - (stake_a + stake_b)``; 0.0 when not an arb.
    """

    is_arbitrage: bool
    total: float
    profit_pct: float
    stake_a: float
    stake_b: float
    payout: float
    profit: float


def allocate_arbitrage_stakes(
    odds_a: float,
    odds_b: float,
    total_stake: float,
) -> ArbitrageSplit:
    """Split ``total_stake`` so both outcomes return the same payout.

    Each leg receives a share proportional to its implied probability::

        stake_i = total_stake × (1 / odds_i) / (1 / odds_a + 1 / odds_b)

    which makes ``stake_a × odds_a == stake_b × odds_b == total_stake / total``.

    A zero or negative total stake, or a degenerate price pair, yields an
    all-zero split rather than a division error.
    """
    total = arbitrage_total(odds_a, odds_b)
    is_arb = 0.0 < total < 1.0
    profit_pct = arbitrage_profit_pct(total)

    if total_stake <= 0.0 or total <= 0.0:
        return ArbitrageSplit(is_arb, total, profit_pct, 0.0, 0.0, 0.0, 0.0)

    stake_a = total_stake * decimal_to_implied(odds_a) / total
    stake_b = total_stake * decimal_to_implied(odds_b) / total
    payout = total_stake / total
    profit = payout - total_stake if is_arb else 0.0
    return ArbitrageSplit(is_arb, total, profit_pct, stake_a, stake_b, payout, profit)
