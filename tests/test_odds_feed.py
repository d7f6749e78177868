"""
Tests for the sportsbook feed client (backend/services/odds.py).

HTTP is mocked at the requests.Session level; no network access.
Run with: pytest tests/test_odds_feed.py -v
"""

from unittest.mock import MagicMock

import pytest
import requests

from backend.core.quotes import MarketType, SourceCategory
from backend.services.odds import (
    FeedAuthError,
    FeedError,
    FeedRateLimitError,
    OddsAPIClient,
    classify_http_error,
    normalize_event,
    parse_commence_time,
)


RAW_EVENT = {
    "id": "abc123",
    "sport_key": "americanfootball_nfl",
    "commence_time": "2026-09-10T00:20:00Z",
    "home_team": "Kansas City Chiefs",
    "away_team": "Baltimore Ravens",
    "bookmakers": [
        {
            "key": "draftkings",
            "title": "DraftKings",
            "markets": [
                {
                    "key": "h2h",
                    "outcomes": [
                        {"name": "Kansas City Chiefs", "price": 1.67},
                        {"name": "Baltimore Ravens", "price": 2.25},
                    ],
                },
                {
                    "key": "spreads",
                    "outcomes": [
                        {"name": "Kansas City Chiefs", "price": 1.91, "point": -3.5},
                        {"name": "Baltimore Ravens", "price": 1.91, "point": 3.5},
                    ],
                },
            ],
        },
        {
            "key": "fanduel",
            "markets": [
                {
                    "key": "totals",
                    "outcomes": [
                        {"name": "Over", "price": 1.95, "point": 46.5},
                        {"name": "Under", "price": "bad"},
                        {"name": "Under", "price": 1.0, "point": 46.5},
                    ],
                },
            ],
        },
    ],
}


def _response(status=200, payload=None, text="", headers=None):
    resp = MagicMock()
    resp.status_code = status
    resp.ok = status < 400
    resp.text = text
    resp.headers = headers or {}
    resp.json.return_value = payload if payload is not None else []
    return resp


def _client(response=None, side_effect=None, api_key="test-key"):
    session = MagicMock()
    if side_effect is not None:
        session.get.side_effect = side_effect
    else:
        session.get.return_value = response
    return OddsAPIClient(api_key=api_key, session=session), session


class TestNormalizeEvent:
    """Odds API JSON → Event of sportsbook quotes."""

    def test_event_fields(self):
        ev = normalize_event(RAW_EVENT)
        assert ev.event_id == "abc123"
        assert ev.name == "Baltimore Ravens @ Kansas City Chiefs"
        assert ev.sport == "americanfootball_nfl"
        assert ev.commence_time.year == 2026
        assert ev.commence_time.utcoffset().total_seconds() == 0

    def test_quotes_flattened(self):
        ev = normalize_event(RAW_EVENT)
        # 2 h2h + 2 spreads + 1 valid total; the bad and 1.0 prices are dropped.
        assert len(ev.quotes) == 5
        assert all(q.source is SourceCategory.SPORTSBOOK for q in ev.quotes)

    def test_market_type_and_point(self):
        ev = normalize_event(RAW_EVENT)
        spreads = [q for q in ev.quotes if q.market_type is MarketType.SPREADS]
        assert sorted(q.point for q in spreads) == [-3.5, 3.5]
        [over] = [q for q in ev.quotes if q.market_type is MarketType.TOTALS]
        assert over.name == "Over"
        assert over.point == 46.5

    def test_book_title_with_key_fallback(self):
        ev = normalize_event(RAW_EVENT)
        assert {q.book for q in ev.quotes} == {"DraftKings", "fanduel"}

    def test_implied_probability_derived(self):
        ev = normalize_event(RAW_EVENT)
        q = ev.quotes[0]
        assert q.implied_prob == pytest.approx(1 / 1.67)

    def test_unparseable_point_drops_only_that_outcome(self):
        raw = {
            "id": "pt1",
            "home_team": "H",
            "away_team": "A",
            "bookmakers": [
                {
                    "title": "DraftKings",
                    "markets": [
                        {"key": "h2h", "outcomes": [
                            {"name": "H", "price": 1.9},
                            {"name": "A", "price": 2.0},
                        ]},
                        {"key": "totals", "outcomes": [
                            {"name": "Over", "price": 1.91, "point": "n/a"},
                            {"name": "Under", "price": 1.91, "point": 47.5},
                        ]},
                    ],
                }
            ],
        }
        ev = normalize_event(raw)
        assert [(q.name, q.point) for q in ev.quotes] == [("H", None), ("A", None), ("Under", 47.5)]

    def test_unparseable_point_does_not_abort_feed(self):
        raw = {
            "id": "pt2",
            "home_team": "H",
            "away_team": "A",
            "bookmakers": [{"title": "FanDuel", "markets": [{"key": "spreads", "outcomes": [
                {"name": "H", "price": 1.91, "point": {"bad": 1}},
                {"name": "A", "price": 1.91, "point": "3.5"},
            ]}]}],
        }
        client, _ = _client(_response(payload=[RAW_EVENT, raw]))
        events = client.get_events("americanfootball_nfl")
        assert len(events) == 2
        [spread] = events[1].quotes
        assert spread.point == 3.5

    def test_empty_event(self):
        ev = normalize_event({"id": "x", "home_team": "H", "away_team": "A"})
        assert ev.quotes == ()
        assert ev.commence_time is None


class TestCommenceTime:

    def test_z_suffix(self):
        assert parse_commence_time("2026-01-01T18:00:00Z").hour == 18

    def test_garbage_is_none(self):
        assert parse_commence_time("tomorrow") is None
        assert parse_commence_time(None) is None


class TestErrorClassification:
    """Non-OK responses map to actionable error categories."""

    def test_unauthorized(self):
        err = classify_http_error(401, "Unauthorized")
        assert isinstance(err, FeedAuthError)
        assert err.status_code == 401
        assert "THE_ODDS_API_KEY" in err.message

    def test_invalid_key_body(self):
        assert isinstance(classify_http_error(403, "Invalid API key"), FeedAuthError)

    def test_rate_limited(self):
        err = classify_http_error(429, "")
        assert isinstance(err, FeedRateLimitError)
        assert err.status_code == 429

    def test_rate_limit_checked_first(self):
        err = classify_http_error(401, "Rate limit exceeded for invalid api key")
        assert isinstance(err, FeedRateLimitError)

    def test_other_errors_are_bad_gateway(self):
        err = classify_http_error(500, "Internal Server Error")
        assert type(err) is FeedError
        assert err.status_code == 502
        assert "500" in err.message


class TestOddsAPIClient:
    """Request shape and failure handling."""

    def test_fetches_decimal_odds(self):
        client, session = _client(_response(payload=[RAW_EVENT]))
        events = client.get_events("americanfootball_nfl")

        assert len(events) == 1
        args, kwargs = session.get.call_args
        assert args[0].endswith("/sports/americanfootball_nfl/odds/")
        assert kwargs["params"]["oddsFormat"] == "decimal"
        assert kwargs["params"]["markets"] == "h2h,spreads,totals"
        assert kwargs["params"]["apiKey"] == "test-key"
        assert kwargs["timeout"] == client.timeout

    def test_disabled_without_key(self):
        client, session = _client(_response(payload=[RAW_EVENT]), api_key="")
        assert not client.enabled
        assert client.get_events("basketball_nba") == []
        session.get.assert_not_called()

    @pytest.mark.parametrize(
        "status, exc_type",
        [(401, FeedAuthError), (429, FeedRateLimitError), (500, FeedError)],
    )
    def test_http_errors_raise(self, status, exc_type):
        client, _ = _client(_response(status=status, text="nope"))
        with pytest.raises(exc_type):
            client.get_events("basketball_nba")

    def test_network_error_becomes_feed_error(self):
        client, _ = _client(side_effect=requests.exceptions.ConnectionError("down"))
        with pytest.raises(FeedError) as info:
            client.get_events("basketball_nba")
        assert info.value.status_code == 502

    def test_invalid_json(self):
        resp = _response()
        resp.json.side_effect = ValueError("no json")
        client, _ = _client(resp)
        with pytest.raises(FeedError):
            client.get_raw_odds("basketball_nba")

    def test_empty_slate(self):
        client, _ = _client(_response(payload=[]))
        assert client.get_events("basketball_nba") == []
