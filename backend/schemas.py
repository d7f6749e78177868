"""
Pydantic response schemas for the odds edge API.

The engine works on dataclasses; these models are the serialized mirror the
API returns.  Each ``from_*`` constructor copies a core record field by field
so the OpenAPI docs describe exactly what the presentation layer receives.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from backend.core.books import get_book_link
from backend.core.quotes import EnrichedEvent, Quote, Selection, SelectionMap
from backend.core.sport_config import SportConfig
from backend.services.scanner import (
    ArbitragePair,
    LowHoldPair,
    MiddleOpportunity,
    OpportunityReport,
    ValueBet,
)
from backend.services.snapshot import OddsSnapshot

MarketTypeName = Literal["h2h", "spreads", "totals"]


# ---------------------------------------------------------------------------
# Events and selections
# ---------------------------------------------------------------------------

class OfferResponse(BaseModel):
    book: str
    decimal_odds: float
    implied_prob: float
    source: Literal["sportsbook", "polymarket"]

    @classmethod
    def from_quote(cls, q: Quote) -> "OfferResponse":
        return cls(
            book=q.book,
            decimal_odds=q.decimal_odds,
            implied_prob=q.implied_prob,
            source=q.source.value,
        )


class SelectionResponse(BaseModel):
    """One selection as shown in the "all books" view."""

    label: str = Field(..., description='e.g. "Over 51.5" or "Team A +3.5"')
    market_type: MarketTypeName
    name: str
    point: Optional[float] = None
    best_odds: float
    best_book: str
    best_book_url: str
    fair_implied_prob: float
    is_value: bool
    kelly_fraction: Optional[float] = Field(None, ge=0.0, le=1.0)
    all_offers: List[OfferResponse]

    @classmethod
    def from_selection(cls, sel: Selection) -> "SelectionResponse":
        return cls(
            label=sel.label,
            market_type=sel.key.market_type.value,
            name=sel.key.name,
            point=sel.point,
            best_odds=sel.best_odds,
            best_book=sel.best_book,
            best_book_url=get_book_link(sel.best_book),
            fair_implied_prob=sel.fair_implied_prob,
            is_value=sel.is_value,
            kelly_fraction=sel.kelly_fraction,
            all_offers=[OfferResponse.from_quote(q) for q in sel.offers],
        )


def _selection_map(selections: Optional[SelectionMap]) -> Optional[Dict[str, SelectionResponse]]:
    if selections is None:
        return None
    return {key.label: SelectionResponse.from_selection(sel) for key, sel in selections.items()}


class EventResponse(BaseModel):
    event_id: str
    event_name: str
    sport: str
    commence_time: Optional[datetime] = None
    outcomes_by_selection: Dict[str, SelectionResponse]
    spreads_by_selection: Optional[Dict[str, SelectionResponse]] = None
    totals_by_selection: Optional[Dict[str, SelectionResponse]] = None

    @classmethod
    def from_enriched(cls, ev: EnrichedEvent) -> "EventResponse":
        return cls(
            event_id=ev.event_id,
            event_name=ev.name,
            sport=ev.event.sport,
            commence_time=ev.event.commence_time,
            outcomes_by_selection=_selection_map(ev.h2h) or {},
            spreads_by_selection=_selection_map(ev.spreads),
            totals_by_selection=_selection_map(ev.totals),
        )


# ---------------------------------------------------------------------------
# Opportunities
# ---------------------------------------------------------------------------

class ValueBetResponse(BaseModel):
    event_id: str
    event_name: str
    selection: str
    market_type: MarketTypeName
    odds: float
    book: str
    book_url: str
    edge_pct: float
    kelly_pct: Optional[float] = None
    stake_amount: Optional[float] = None

    @classmethod
    def from_record(cls, v: ValueBet) -> "ValueBetResponse":
        return cls(
            event_id=v.event_id,
            event_name=v.event_name,
            selection=v.selection,
            market_type=v.market_type.value,
            odds=v.odds,
            book=v.book,
            book_url=get_book_link(v.book),
            edge_pct=v.edge_pct,
            kelly_pct=v.kelly_pct,
            stake_amount=v.stake_amount,
        )


class TwoLegResponse(BaseModel):
    """Shared shape of arbitrage and low-hold pairs."""

    event_id: str
    event_name: str
    outcome1: str
    outcome2: str
    book1: str
    book2: str
    book1_url: str
    book2_url: str
    odds1: float
    odds2: float


class ArbitrageResponse(TwoLegResponse):
    profit_pct: float

    @classmethod
    def from_record(cls, a: ArbitragePair) -> "ArbitrageResponse":
        return cls(
            event_id=a.event_id,
            event_name=a.event_name,
            outcome1=a.outcome1,
            outcome2=a.outcome2,
            book1=a.book1,
            book2=a.book2,
            book1_url=get_book_link(a.book1),
            book2_url=get_book_link(a.book2),
            odds1=a.odds1,
            odds2=a.odds2,
            profit_pct=a.profit_pct,
        )


class LowHoldResponse(TwoLegResponse):
    hold_pct: float

    @classmethod
    def from_record(cls, h: LowHoldPair) -> "LowHoldResponse":
        return cls(
            event_id=h.event_id,
            event_name=h.event_name,
            outcome1=h.outcome1,
            outcome2=h.outcome2,
            book1=h.book1,
            book2=h.book2,
            book1_url=get_book_link(h.book1),
            book2_url=get_book_link(h.book2),
            odds1=h.odds1,
            odds2=h.odds2,
            hold_pct=h.hold_pct,
        )


class MiddleResponse(BaseModel):
    event_id: str
    event_name: str
    side1: str = Field(..., description='e.g. "Over 51.5"')
    side2: str = Field(..., description='e.g. "Under 52.5"')
    book1: str
    book2: str
    odds1: float
    odds2: float
    window_start: int
    window_end: int
    middle_zone: str = Field(..., description='e.g. "52 wins both"')

    @classmethod
    def from_record(cls, m: MiddleOpportunity) -> "MiddleResponse":
        return cls(
            event_id=m.event_id,
            event_name=m.event_name,
            side1=m.side1,
            side2=m.side2,
            book1=m.book1,
            book2=m.book2,
            odds1=m.odds1,
            odds2=m.odds2,
            window_start=m.window_start,
            window_end=m.window_end,
            middle_zone=f"{m.window} wins both",
        )


class OpportunitiesResponse(BaseModel):
    value_bets: List[ValueBetResponse]
    arbitrage: List[ArbitrageResponse]
    low_hold: List[LowHoldResponse]
    middles: List[MiddleResponse]

    @classmethod
    def from_report(cls, r: OpportunityReport) -> "OpportunitiesResponse":
        return cls(
            value_bets=[ValueBetResponse.from_record(v) for v in r.value_bets],
            arbitrage=[ArbitrageResponse.from_record(a) for a in r.arbitrage],
            low_hold=[LowHoldResponse.from_record(h) for h in r.low_hold],
            middles=[MiddleResponse.from_record(m) for m in r.middles],
        )


class OddsSnapshotResponse(BaseModel):
    """Payload for GET /api/odds."""

    sport: str
    sportsbook_events: List[EventResponse]
    polymarket_events: List[EventResponse]
    opportunities: OpportunitiesResponse
    timestamp: datetime
    errors: List[str] = Field(default_factory=list)

    @classmethod
    def from_snapshot(cls, s: OddsSnapshot) -> "OddsSnapshotResponse":
        return cls(
            sport=s.sport,
            sportsbook_events=[EventResponse.from_enriched(e) for e in s.sportsbook_events],
            polymarket_events=[EventResponse.from_enriched(e) for e in s.polymarket_events],
            opportunities=OpportunitiesResponse.from_report(s.opportunities),
            timestamp=s.timestamp,
            errors=list(s.errors),
        )


# ---------------------------------------------------------------------------
# Registry and calculators
# ---------------------------------------------------------------------------

class SportResponse(BaseModel):
    id: str
    label: str
    three_way: bool = False

    @classmethod
    def from_config(cls, cfg: SportConfig) -> "SportResponse":
        return cls(id=cfg.sport_id, label=cfg.label, three_way=cfg.three_way)


class ArbitrageCalcResponse(BaseModel):
    is_arbitrage: bool
    total_implied: float
    profit_pct: float
    stake1: float
    stake2: float
    payout: float
    profit: float


class KellyCalcResponse(BaseModel):
    kelly_fraction: float = Field(..., ge=0.0, le=1.0)
    kelly_pct: float
    stake: float


class OddsConversionResponse(BaseModel):
    decimal: float
    implied_pct: float
    american: Optional[int] = Field(None, description="None when decimal <= 1.0")
