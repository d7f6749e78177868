"""
Tests for the refresh cycle orchestration (backend/services/snapshot.py).

Feeds are replaced with MagicMock clients.
Run with: pytest tests/test_snapshot.py -v
"""

from unittest.mock import MagicMock

import pytest

from backend.core.quotes import Event, Quote
from backend.services.odds import FeedAuthError, FeedRateLimitError
from backend.services.snapshot import build_snapshot


def _sportsbook_event():
    return Event(
        event_id="nba-1",
        name="Away @ Home",
        sport="basketball_nba",
        commence_time=None,
        quotes=(
            Quote.from_decimal("Home", "BookA", 2.10),
            Quote.from_decimal("Away", "BookB", 2.10),
        ),
    )


def _polymarket_event():
    return Event(
        event_id="901-m1",
        name="Will Home win?",
        sport="polymarket",
        commence_time=None,
        quotes=(
            Quote.from_probability("Yes", "Polymarket", 0.55),
            Quote.from_probability("No", "Polymarket", 0.45),
        ),
    )


def _clients(sportsbook=None, polymarket=None, sportsbook_error=None, polymarket_error=None):
    odds = MagicMock()
    if sportsbook_error is not None:
        odds.get_events.side_effect = sportsbook_error
    else:
        odds.get_events.return_value = sportsbook if sportsbook is not None else []
    poly = MagicMock()
    if polymarket_error is not None:
        poly.get_events.side_effect = polymarket_error
    else:
        poly.get_events.return_value = polymarket if polymarket is not None else []
    return odds, poly


class TestBuildSnapshot:
    """One refresh: fetch both feeds, enrich, scan."""

    def test_both_feeds_combined(self):
        odds, poly = _clients([_sportsbook_event()], [_polymarket_event()])
        snap = build_snapshot("basketball_nba", odds_client=odds, polymarket_client=poly)

        odds.get_events.assert_called_once_with("basketball_nba")
        assert snap.sport == "basketball_nba"
        assert len(snap.sportsbook_events) == 1
        assert len(snap.polymarket_events) == 1
        assert len(snap.opportunities.arbitrage) == 1
        assert snap.errors == []
        assert snap.timestamp.tzinfo is not None

    def test_zero_events_everywhere(self):
        odds, poly = _clients()
        snap = build_snapshot("icehockey_nhl", odds_client=odds, polymarket_client=poly)
        assert snap.sportsbook_events == []
        assert snap.polymarket_events == []
        assert snap.opportunities.total == 0

    def test_polymarket_failure_is_silent(self):
        odds, poly = _clients([_sportsbook_event()], polymarket_error=RuntimeError("boom"))
        snap = build_snapshot("basketball_nba", odds_client=odds, polymarket_client=poly)
        assert len(snap.sportsbook_events) == 1
        assert snap.polymarket_events == []
        assert snap.errors == []

    def test_sportsbook_error_propagates(self):
        odds, poly = _clients(sportsbook_error=FeedRateLimitError("quota"), polymarket=[_polymarket_event()])
        with pytest.raises(FeedRateLimitError):
            build_snapshot("basketball_nba", odds_client=odds, polymarket_client=poly)

    def test_sportsbook_error_recorded_when_tolerated(self):
        odds, poly = _clients(sportsbook_error=FeedAuthError("bad key"), polymarket=[_polymarket_event()])
        snap = build_snapshot(
            "basketball_nba", odds_client=odds, polymarket_client=poly, raise_on_feed_error=False,
        )
        assert snap.errors == ["bad key"]
        assert snap.sportsbook_events == []
        assert len(snap.polymarket_events) == 1

    def test_sizing_applies_to_sportsbook_only(self):
        odds, poly = _clients([_sportsbook_event()], [_polymarket_event()])
        snap = build_snapshot(
            "basketball_nba", bankroll=1000, kelly_multiplier=0.5,
            odds_client=odds, polymarket_client=poly,
        )
        for sel in snap.sportsbook_events[0].h2h.values():
            assert sel.kelly_fraction is not None
        for sel in snap.polymarket_events[0].h2h.values():
            assert sel.kelly_fraction is None

    def test_multiplier_without_bankroll_is_ignored(self):
        odds, poly = _clients([_sportsbook_event()])
        snap = build_snapshot("basketball_nba", kelly_multiplier=0.25, odds_client=odds, polymarket_client=poly)
        for sel in snap.sportsbook_events[0].h2h.values():
            assert sel.kelly_fraction is None

    def test_invalid_multiplier(self):
        odds, poly = _clients()
        with pytest.raises(ValueError):
            build_snapshot("basketball_nba", bankroll=100, kelly_multiplier=0.3,
                           odds_client=odds, polymarket_client=poly)
        odds.get_events.assert_not_called()

    def test_negative_bankroll(self):
        odds, poly = _clients()
        with pytest.raises(ValueError):
            build_snapshot("basketball_nba", bankroll=-1, odds_client=odds, polymarket_client=poly)
