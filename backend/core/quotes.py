"""Normalized quote model shared by every feed, the aggregator and the scanner.

A :class:`Quote` is one book's price for one outcome of one market on one
event.  Feeds emit :class:`Event` objects carrying flat quote tuples; the
aggregator groups those quotes into :class:`Selection` records keyed by
:class:`SelectionKey` and wraps them in an :class:`EnrichedEvent`.

Design choices
--------------
* Every type is a plain dataclass with ``str``-valued enums so records
  serialize to JSON without custom encoders.
* :class:`SelectionKey` is an explicit ``(market_type, name, point)`` tuple
  rather than a formatted string.  ``"Team A +3.5"`` and ``"Team A 3.5"``
  can never collide or diverge because the point is compared as a float.
* Events are immutable.  A refresh builds a new set of events; nothing is
  patched in place.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Optional, Tuple


class MarketType(str, Enum):
    """The three closed market families the engine understands."""

    H2H = "h2h"
    SPREADS = "spreads"
    TOTALS = "totals"


class SourceCategory(str, Enum):
    SPORTSBOOK = "sportsbook"
    POLYMARKET = "polymarket"


@dataclass(frozen=True, slots=True)
class Quote:
    """One book's price for one outcome.

    Attributes:
        name: Outcome name as the feed reports it (``"Team A"``, ``"Over"``,
            ``"Yes"``).
        book: Human-readable book identifier (``"DraftKings"``).
        decimal_odds: Payout multiple per unit staked, stake included.
        implied_prob: ``1 / decimal_odds`` for sportsbook quotes; the raw
            venue probability for prediction-market quotes.
        market_type: :class:`MarketType` of the parent market.
        point: Line for spread / total markets; ``None`` for moneylines.
        source: Where the quote came from.
    """

    name: str
    book: str
    decimal_odds: float
    implied_prob: float
    market_type: MarketType = MarketType.H2H
    point: Optional[float] = None
    source: SourceCategory = SourceCategory.SPORTSBOOK

    @classmethod
    def from_decimal(
        cls,
        name: str,
        book: str,
        decimal_odds: float,
        *,
        market_type: MarketType = MarketType.H2H,
        point: Optional[float] = None,
        source: SourceCategory = SourceCategory.SPORTSBOOK,
    ) -> "Quote":
        """Build a quote from a decimal price, deriving the implied probability."""
        implied = 1.0 / decimal_odds if decimal_odds > 0 else 0.0
        return cls(
            name=name,
            book=book,
            decimal_odds=decimal_odds,
            implied_prob=implied,
            market_type=market_type,
            point=point,
            source=source,
        )

    @classmethod
    def from_probability(
        cls,
        name: str,
        book: str,
        probability: float,
        *,
        market_type: MarketType = MarketType.H2H,
        source: SourceCategory = SourceCategory.POLYMARKET,
    ) -> "Quote":
        """Build a quote from a probability-native price.

        A non-positive probability has no finite decimal price; it is mapped
        to even money (2.0) so the quote stays comparable.
        """
        decimal_odds = 1.0 / probability if probability > 0 else 2.0
        return cls(
            name=name,
            book=book,
            decimal_odds=decimal_odds,
            implied_prob=probability,
            market_type=market_type,
            point=None,
            source=source,
        )

    @property
    def has_line(self) -> bool:
        return self.point is not None

    @property
    def is_well_formed(self) -> bool:
        """False for quotes that must be discarded before aggregation."""
        if not (math.isfinite(self.decimal_odds) and math.isfinite(self.implied_prob)):
            return False
        if not (0.0 < self.implied_prob <= 1.0):
            return False
        if self.source is SourceCategory.SPORTSBOOK:
            return self.decimal_odds > 1.0
        return self.decimal_odds >= 1.0


@dataclass(frozen=True, slots=True)
class SelectionKey:
    """Composite grouping key for one bettable proposition.

    Head-to-head keys carry ``point=None``.  Spread and total keys include
    the line so quotes at different points on the same side stay apart.
    """

    market_type: MarketType
    name: str
    point: Optional[float] = None

    @classmethod
    def for_quote(cls, quote: Quote) -> "SelectionKey":
        # A spread/total quote without a line is grouped with the moneyline.
        if quote.market_type is not MarketType.H2H and quote.point is not None:
            return cls(quote.market_type, quote.name, float(quote.point))
        return cls(MarketType.H2H, quote.name, None)

    @property
    def label(self) -> str:
        """Display label: ``"Team A"``, ``"Team A +3.5"``, ``"Over 51.5"``."""
        if self.point is None:
            return self.name
        if self.market_type is MarketType.SPREADS:
            return f"{self.name} {_format_point(self.point, signed=True)}"
        return f"{self.name} {_format_point(self.point)}"


def _format_point(point: float, signed: bool = False) -> str:
    text = f"{point:g}"
    if signed and point > 0:
        return f"+{text}"
    return text


@dataclass(frozen=True, slots=True)
class Event:
    """One contest or question, rebuilt wholesale on every refresh."""

    event_id: str
    name: str
    sport: str
    commence_time: Optional[datetime]
    quotes: Tuple[Quote, ...] = ()


@dataclass(frozen=True, slots=True)
class Selection:
    """All quotes for one proposition, plus the values derived from them.

    Attributes:
        key: The grouping key shared by every member quote.
        offers: Every member quote, in feed order.
        best_odds: Highest decimal price among ``offers``.
        best_book: Book posting ``best_odds`` (last book on ties).
        best_implied_prob: Implied probability of the best quote.
        fair_implied_prob: Baseline probability used to judge value.
        is_value: ``fair_implied_prob - best_implied_prob >= min_edge``.
        kelly_fraction: Fraction of bankroll to stake, or ``None`` when no
            sizing parameters were supplied.
    """

    key: SelectionKey
    offers: Tuple[Quote, ...]
    best_odds: float
    best_book: str
    best_implied_prob: float
    fair_implied_prob: float
    is_value: bool
    kelly_fraction: Optional[float] = None

    def __post_init__(self) -> None:
        if not self.offers:
            raise ValueError(f"Selection {self.key.label!r} has no member quotes")

    @property
    def label(self) -> str:
        return self.key.label

    @property
    def point(self) -> Optional[float]:
        return self.key.point

    @property
    def edge(self) -> float:
        return self.fair_implied_prob - self.best_implied_prob


SelectionMap = Dict[SelectionKey, Selection]


@dataclass(frozen=True, slots=True)
class EnrichedEvent:
    """An :class:`Event` with its quotes grouped per market family.

    ``spreads`` and ``totals`` are ``None`` when the event has no quotes in
    that family; ``h2h`` is always a mapping, possibly empty.
    """

    event: Event
    h2h: SelectionMap = field(default_factory=dict)
    spreads: Optional[SelectionMap] = None
    totals: Optional[SelectionMap] = None

    @property
    def event_id(self) -> str:
        return self.event.event_id

    @property
    def name(self) -> str:
        return self.event.name

    def markets(self) -> Tuple[SelectionMap, ...]:
        """The populated mappings in h2h, spreads, totals order."""
        return tuple(m for m in (self.h2h, self.spreads, self.totals) if m)
