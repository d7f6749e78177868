"""
Selection aggregator: groups one event's raw quotes into comparable selections.

For each event:
    1. Drop malformed quotes (sportsbook price <= 1.0, bad probabilities).
    2. Partition the rest by market family, then by SelectionKey.
    3. Per group: best price, fair baseline (1 / best price), value flag.
    4. Optionally size the best price with fractional Kelly.

Kelly sizing uses the caller's probability when one is given and the fair
baseline otherwise.  Without an override that means market consensus stands
in for personal edge; this is a known approximation and is kept as is.

Events are independent of each other.  ``enrich_events`` maps over them
and skips any event that fails, so one bad event never aborts the batch.
"""

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence

from backend.core.kelly import kelly_stake, validate_kelly_multiplier
from backend.core.odds_math import fair_implied_probability, is_value_bet
from backend.core.quotes import (
    EnrichedEvent,
    Event,
    MarketType,
    Quote,
    Selection,
    SelectionKey,
    SelectionMap,
)
from backend.core.sport_config import DEFAULT_THRESHOLDS, ScanThresholds

logger = logging.getLogger(__name__)


def _best_quote(offers: Sequence[Quote]) -> Quote:
    # Last quote wins ties, so a later book can break a same-book pairing.
    best = offers[0]
    for q in offers[1:]:
        if q.decimal_odds >= best.decimal_odds:
            best = q
    return best


def build_selection(
    key: SelectionKey,
    offers: Sequence[Quote],
    bankroll: Optional[float] = None,
    kelly_multiplier: Optional[float] = None,
    your_prob: Optional[float] = None,
    thresholds: ScanThresholds = DEFAULT_THRESHOLDS,
) -> Selection:
    """Derive best price, fair baseline, value flag and Kelly for one group.

    Raises:
        ValueError: If ``offers`` is empty (never happens for groups built
            by :func:`group_quotes`).
    """
    if not offers:
        raise ValueError(f"No quotes for selection {key.label!r}")

    best = _best_quote(offers)
    fair = fair_implied_probability(offers, use_best=True)
    is_value = is_value_bet(best.implied_prob, fair, thresholds.min_edge)

    kelly_fraction: Optional[float] = None
    if bankroll and kelly_multiplier:
        prob = your_prob if your_prob is not None else fair
        kelly_fraction = kelly_stake(best.decimal_odds, prob, kelly_multiplier)

    return Selection(
        key=key,
        offers=tuple(offers),
        best_odds=best.decimal_odds,
        best_book=best.book,
        best_implied_prob=best.implied_prob,
        fair_implied_prob=fair,
        is_value=is_value,
        kelly_fraction=kelly_fraction,
    )


def group_quotes(quotes: Iterable[Quote]) -> Dict[MarketType, Dict[SelectionKey, List[Quote]]]:
    """Partition well-formed quotes by market family, then by selection key."""
    groups: Dict[MarketType, Dict[SelectionKey, List[Quote]]] = {
        MarketType.H2H: defaultdict(list),
        MarketType.SPREADS: defaultdict(list),
        MarketType.TOTALS: defaultdict(list),
    }
    for q in quotes:
        if not q.is_well_formed:
            logger.debug(
                "Dropping malformed quote %s @ %s (odds=%s, prob=%s)",
                q.name, q.book, q.decimal_odds, q.implied_prob,
            )
            continue
        key = SelectionKey.for_quote(q)
        groups[key.market_type][key].append(q)
    return groups


def enrich_event(
    event: Event,
    bankroll: Optional[float] = None,
    kelly_multiplier: Optional[float] = None,
    your_prob: Optional[float] = None,
    thresholds: ScanThresholds = DEFAULT_THRESHOLDS,
) -> EnrichedEvent:
    """Build the three per-market selection maps for one event.

    Args:
        event: Event with its flat quote tuple.
        bankroll: Optional bankroll; Kelly is computed only when this is
            positive and ``kelly_multiplier`` is given.
        kelly_multiplier: 1, 0.5 or 0.25.
        your_prob: Optional subjective probability replacing the fair
            baseline in the Kelly formula.
        thresholds: Value-bet edge threshold.

    Returns:
        EnrichedEvent whose ``spreads`` / ``totals`` are ``None`` when the
        event has no quotes in that family.
    """
    groups = group_quotes(event.quotes)

    def _build(family: MarketType) -> SelectionMap:
        return {
            key: build_selection(
                key, offers,
                bankroll=bankroll,
                kelly_multiplier=kelly_multiplier,
                your_prob=your_prob,
                thresholds=thresholds,
            )
            for key, offers in groups[family].items()
        }

    h2h = _build(MarketType.H2H)
    spreads = _build(MarketType.SPREADS) or None
    totals = _build(MarketType.TOTALS) or None

    return EnrichedEvent(event=event, h2h=h2h, spreads=spreads, totals=totals)


def enrich_events(
    events: Iterable[Event],
    bankroll: Optional[float] = None,
    kelly_multiplier: Optional[float] = None,
    your_prob: Optional[float] = None,
    thresholds: ScanThresholds = DEFAULT_THRESHOLDS,
) -> List[EnrichedEvent]:
    """Enrich every event independently, skipping any that fail.

    Raises:
        ValueError: If ``kelly_multiplier`` is not a permitted value,
            checked once before any event is enriched.
    """
    if kelly_multiplier is not None:
        kelly_multiplier = validate_kelly_multiplier(kelly_multiplier)

    enriched: List[EnrichedEvent] = []
    for event in events:
        try:
            enriched.append(
                enrich_event(
                    event,
                    bankroll=bankroll,
                    kelly_multiplier=kelly_multiplier,
                    your_prob=your_prob,
                    thresholds=thresholds,
                )
            )
        except (ValueError, ArithmeticError) as exc:
            logger.error("Skipping event %s (%s): %s", event.event_id, event.name, exc, exc_info=True)
    return enriched
