"""
Cross-book opportunity scanner.

Four independent, stateless scans over one refresh cycle's enriched events:

    value bets    every selection flagged +EV, ranked by edge
    arbitrage     every cross-book quote pair on a two-way moneyline whose
                  implied total is below 1, ranked by guaranteed profit
    low hold      the best price per side of a two-way moneyline, when the
                  two come from different books and the hold is under 5%
    middles       Over A / Under B total pairs with A < B whose gap holds at
                  least one integer final score

Arbitrage and low hold only look at moneylines with exactly two selections.
Three-way markets (soccer 1X2) are skipped entirely.

Any record that fails to compute is logged and dropped; a scan never raises.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, TypeVar

from backend.core.kelly import kelly_stake_amount
from backend.core.odds_math import arbitrage_profit_pct, arbitrage_total, hold_pct
from backend.core.quotes import EnrichedEvent, MarketType, Selection
from backend.core.sport_config import DEFAULT_THRESHOLDS, ScanThresholds

logger = logging.getLogger(__name__)

T = TypeVar("T")

OVER = "Over"
UNDER = "Under"


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ValueBet:
    """A selection whose best price beats the fair baseline."""

    event_id: str
    event_name: str
    selection: str
    market_type: MarketType
    odds: float
    book: str
    edge_pct: float
    kelly_pct: Optional[float] = None
    stake_amount: Optional[float] = None


@dataclass(frozen=True)
class ArbitragePair:
    """Two prices at different books that lock in a profit."""

    event_id: str
    event_name: str
    outcome1: str
    outcome2: str
    book1: str
    book2: str
    odds1: float
    odds2: float
    profit_pct: float


@dataclass(frozen=True)
class LowHoldPair:
    """Best two-way prices from different books with a small combined margin."""

    event_id: str
    event_name: str
    outcome1: str
    outcome2: str
    book1: str
    book2: str
    odds1: float
    odds2: float
    hold_pct: float


@dataclass(frozen=True)
class MiddleOpportunity:
    """An Over and an Under at offset lines that can both win.

    ``window`` is the inclusive winning range as text: ``"52"`` or ``"52-54"``.
    """

    event_id: str
    event_name: str
    side1: str
    side2: str
    book1: str
    book2: str
    odds1: float
    odds2: float
    window_start: int
    window_end: int
    window: str

    @property
    def window_size(self) -> int:
        return self.window_end - self.window_start + 1


@dataclass
class OpportunityReport:
    """All four ranked lists for one snapshot."""

    value_bets: List[ValueBet] = field(default_factory=list)
    arbitrage: List[ArbitragePair] = field(default_factory=list)
    low_hold: List[LowHoldPair] = field(default_factory=list)
    middles: List[MiddleOpportunity] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.value_bets) + len(self.arbitrage) + len(self.low_hold) + len(self.middles)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _safe_collect(
    events: Iterable[EnrichedEvent],
    scan_one: Callable[[EnrichedEvent], Iterable[T]],
    scan_name: str,
) -> List[T]:
    """Run ``scan_one`` per event, dropping any event that raises."""
    out: List[T] = []
    for ev in events:
        try:
            out.extend(scan_one(ev))
        except (ValueError, ArithmeticError, KeyError) as exc:
            logger.error(
                "%s scan failed for event %s (%s): %s",
                scan_name, ev.event_id, ev.name, exc, exc_info=True,
            )
    return out


def _binary_moneyline(ev: EnrichedEvent) -> Optional[Tuple[Selection, Selection]]:
    """The two h2h selections, or None unless there are exactly two."""
    if len(ev.h2h) != 2:
        return None
    first, second = ev.h2h.values()
    return first, second


# ---------------------------------------------------------------------------
# Value bets
# ---------------------------------------------------------------------------

def find_value_bets(
    events: Sequence[EnrichedEvent],
    bankroll: Optional[float] = None,
) -> List[ValueBet]:
    """Flatten every value-flagged selection and rank by edge, highest first."""

    def _scan(ev: EnrichedEvent) -> List[ValueBet]:
        bets = []
        for market in ev.markets():
            for sel in market.values():
                if not sel.is_value:
                    continue
                kelly_pct = sel.kelly_fraction * 100.0 if sel.kelly_fraction else None
                stake = None
                if bankroll and sel.kelly_fraction:
                    stake = kelly_stake_amount(bankroll, sel.kelly_fraction)
                bets.append(
                    ValueBet(
                        event_id=ev.event_id,
                        event_name=ev.name,
                        selection=sel.label,
                        market_type=sel.key.market_type,
                        odds=sel.best_odds,
                        book=sel.best_book,
                        edge_pct=sel.edge * 100.0,
                        kelly_pct=kelly_pct,
                        stake_amount=stake,
                    )
                )
        return bets

    out = _safe_collect(events, _scan, "value")
    out.sort(key=lambda b: b.edge_pct, reverse=True)
    return out


# ---------------------------------------------------------------------------
# Arbitrage
# ---------------------------------------------------------------------------

def find_arbitrage(events: Sequence[EnrichedEvent]) -> List[ArbitragePair]:
    """Every cross-book quote pair on a two-way moneyline with total < 1.

    Pairs are not deduplicated: the same two outcomes appear once per
    qualifying book combination.
    """

    def _scan(ev: EnrichedEvent) -> List[ArbitragePair]:
        sides = _binary_moneyline(ev)
        if sides is None:
            return []
        sel1, sel2 = sides
        pairs = []
        for q1 in sel1.offers:
            for q2 in sel2.offers:
                if q1.book == q2.book:
                    continue
                total = arbitrage_total(q1.decimal_odds, q2.decimal_odds)
                if total < 1.0:
                    pairs.append(
                        ArbitragePair(
                            event_id=ev.event_id,
                            event_name=ev.name,
                            outcome1=sel1.label,
                            outcome2=sel2.label,
                            book1=q1.book,
                            book2=q2.book,
                            odds1=q1.decimal_odds,
                            odds2=q2.decimal_odds,
                            profit_pct=arbitrage_profit_pct(total),
                        )
                    )
        return pairs

    out = _safe_collect(events, _scan, "arbitrage")
    out.sort(key=lambda a: a.profit_pct, reverse=True)
    return out


# ---------------------------------------------------------------------------
# Low hold
# ---------------------------------------------------------------------------

def find_low_hold(
    events: Sequence[EnrichedEvent],
    thresholds: ScanThresholds = DEFAULT_THRESHOLDS,
) -> List[LowHoldPair]:
    """Best price per side of a two-way moneyline, lowest hold first."""

    def _scan(ev: EnrichedEvent) -> List[LowHoldPair]:
        sides = _binary_moneyline(ev)
        if sides is None:
            return []
        sel1, sel2 = sides
        if sel1.best_book == sel2.best_book:
            return []
        hold = hold_pct(sel1.best_odds, sel2.best_odds)
        if hold >= thresholds.low_hold_pct:
            return []
        return [
            LowHoldPair(
                event_id=ev.event_id,
                event_name=ev.name,
                outcome1=sel1.label,
                outcome2=sel2.label,
                book1=sel1.best_book,
                book2=sel2.best_book,
                odds1=sel1.best_odds,
                odds2=sel2.best_odds,
                hold_pct=hold,
            )
        ]

    out = _safe_collect(events, _scan, "low-hold")
    out.sort(key=lambda h: h.hold_pct)
    return out


# ---------------------------------------------------------------------------
# Middles
# ---------------------------------------------------------------------------

def middle_window(over_point: float, under_point: float) -> Optional[Tuple[int, int]]:
    """Inclusive integer range that wins both an Over and an Under.

    Returns None when the lines do not leave a gap (``over >= under``) or
    the gap contains no integer strictly between the two lines.

    Examples::

        middle_window(51.5, 52.5) → (52, 52)
        middle_window(51.5, 52.0) → None
        middle_window(47.5, 51.5) → (48, 51)
    """
    if over_point >= under_point:
        return None
    start = math.ceil(over_point + 0.5)
    end = math.floor(under_point - 0.5)
    if start > end:
        return None
    return start, end


def format_window(start: int, end: int) -> str:
    return f"{start}" if start == end else f"{start}-{end}"


def find_middles(events: Sequence[EnrichedEvent]) -> List[MiddleOpportunity]:
    """Over/Under total pairs at different books with a winnable gap.

    Each selection contributes its best price.  Results are ordered by
    window size (widest first), then event name.
    """

    def _scan(ev: EnrichedEvent) -> List[MiddleOpportunity]:
        if not ev.totals:
            return []
        overs = [s for s in ev.totals.values() if s.key.name == OVER]
        unders = [s for s in ev.totals.values() if s.key.name == UNDER]
        found = []
        for over in overs:
            for under in unders:
                if over.point is None or under.point is None:
                    continue
                if over.best_book == under.best_book:
                    continue
                window = middle_window(over.point, under.point)
                if window is None:
                    continue
                start, end = window
                found.append(
                    MiddleOpportunity(
                        event_id=ev.event_id,
                        event_name=ev.name,
                        side1=over.label,
                        side2=under.label,
                        book1=over.best_book,
                        book2=under.best_book,
                        odds1=over.best_odds,
                        odds2=under.best_odds,
                        window_start=start,
                        window_end=end,
                        window=format_window(start, end),
                    )
                )
        return found

    out = _safe_collect(events, _scan, "middle")
    out.sort(key=lambda m: (-m.window_size, m.event_name))
    return out


# ---------------------------------------------------------------------------
# All scans
# ---------------------------------------------------------------------------

def scan_opportunities(
    events: Sequence[EnrichedEvent],
    bankroll: Optional[float] = None,
    thresholds: ScanThresholds = DEFAULT_THRESHOLDS,
) -> OpportunityReport:
    """Run all four scans over the same snapshot."""
    report = OpportunityReport(
        value_bets=find_value_bets(events, bankroll=bankroll),
        arbitrage=find_arbitrage(events),
        low_hold=find_low_hold(events, thresholds=thresholds),
        middles=find_middles(events),
    )
    logger.info(
        "Scanned %d events: %d value, %d arb, %d low-hold, %d middles",
        len(events), len(report.value_bets), len(report.arbitrage),
        len(report.low_hold), len(report.middles),
    )
    return report
