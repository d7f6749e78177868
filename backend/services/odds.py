"""
The Odds API integration — the sportsbook feed.
https://the-odds-api.com/

Every bookmaker outcome in the response becomes one normalized ``Quote``.
Odds are requested in decimal format so no conversion is needed; any price
at or below 1.0 is malformed and dropped here, before aggregation.

Failure policy
--------------
This is the primary feed.  HTTP failures are raised, not swallowed, and
carry a category the API layer can turn into an actionable message:

  FeedAuthError       401 — missing or invalid API key
  FeedRateLimitError  429 — monthly quota or burst limit hit
  FeedError           anything else (network, 5xx, bad JSON)

A missing ``THE_ODDS_API_KEY`` is not an error: the feed is simply
disabled and contributes no events.
"""

import logging
import os
from datetime import datetime
from typing import Dict, List, Optional

import requests

from backend.core.quotes import Event, MarketType, Quote, SourceCategory

logger = logging.getLogger(__name__)

API_KEY = os.getenv("THE_ODDS_API_KEY")
BASE_URL = "https://api.the-odds-api.com/v4"
DEFAULT_REGIONS = os.getenv("ODDS_API_REGIONS", "us")
DEFAULT_MARKETS = "h2h,spreads,totals"
REQUEST_TIMEOUT = float(os.getenv("ODDS_API_TIMEOUT", "10"))

_MARKET_KEYS: Dict[str, MarketType] = {
    "h2h": MarketType.H2H,
    "spreads": MarketType.SPREADS,
    "totals": MarketType.TOTALS,
}


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class FeedError(Exception):
    """Sportsbook feed failure with an HTTP-style status for the API layer."""

    status_code = 502

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class FeedAuthError(FeedError):
    status_code = 401


class FeedRateLimitError(FeedError):
    status_code = 429


def classify_http_error(status: int, body: str) -> FeedError:
    """Map a non-OK Odds API response to the matching FeedError subclass."""
    lowered = body.lower()
    if status == 429 or "rate limit" in lowered:
        return FeedRateLimitError(
            "Odds API rate limit reached (500 free/month). Try again later."
        )
    if status == 401 or "invalid api" in lowered:
        return FeedAuthError("Invalid Odds API key. Check THE_ODDS_API_KEY in .env")
    return FeedError(f"Odds API error {status}: {body[:300]}")


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------

def parse_commence_time(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp (``Z`` suffix allowed); None if unparseable."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, TypeError):
        logger.debug("Unparseable commence_time %r", value)
        return None


def normalize_event(raw: Dict) -> Event:
    """Flatten one Odds API event into an ``Event`` of sportsbook quotes.

    The event name is ``"Away @ Home"``.  The book identifier is the
    bookmaker's display title.  Outcomes with a missing, non-numeric or
    ``<= 1.0`` price, or an unparseable point, are dropped individually.
    """
    quotes: List[Quote] = []
    dropped = 0

    for bookmaker in raw.get("bookmakers", []):
        book = bookmaker.get("title") or bookmaker.get("key", "")
        for market in bookmaker.get("markets", []):
            market_type = _MARKET_KEYS.get(market.get("key"), MarketType.H2H)
            for outcome in market.get("outcomes", []):
                point = outcome.get("point")
                try:
                    price = float(outcome.get("price"))
                    point = float(point) if point is not None else None
                except (TypeError, ValueError):
                    dropped += 1
                    continue
                if price <= 1.0:
                    dropped += 1
                    continue
                quotes.append(
                    Quote.from_decimal(
                        outcome.get("name", ""),
                        book,
                        price,
                        market_type=market_type,
                        point=point,
                        source=SourceCategory.SPORTSBOOK,
                    )
                )

    if dropped:
        logger.debug("Dropped %d malformed outcomes for event %s", dropped, raw.get("id"))

    return Event(
        event_id=str(raw.get("id", "")),
        name=f"{raw.get('away_team', '')} @ {raw.get('home_team', '')}",
        sport=raw.get("sport_key", ""),
        commence_time=parse_commence_time(raw.get("commence_time")),
        quotes=tuple(quotes),
    )


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class OddsAPIClient:
    """Client for The Odds API"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        regions: str = DEFAULT_REGIONS,
        timeout: float = REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key if api_key is not None else API_KEY
        self.regions = regions
        self.timeout = timeout
        self._session = session or requests.Session()

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def get_raw_odds(self, sport: str, markets: str = DEFAULT_MARKETS) -> List[Dict]:
        """
        Fetch raw odds JSON for one sport.

        Raises:
            FeedAuthError / FeedRateLimitError / FeedError on failure.
        """
        url = f"{BASE_URL}/sports/{sport}/odds/"
        params = {
            "apiKey": self.api_key,
            "regions": self.regions,
            "markets": markets,
            "oddsFormat": "decimal",
        }

        try:
            response = self._session.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error("Odds API request failed: %s", e)
            raise FeedError(f"Odds API unreachable: {e}") from e

        if not response.ok:
            error = classify_http_error(response.status_code, response.text or "")
            logger.error("Odds API error %d: %s", response.status_code, error.message)
            raise error

        try:
            data = response.json()
        except ValueError as e:
            raise FeedError(f"Odds API returned invalid JSON: {e}") from e

        remaining = response.headers.get("x-requests-remaining")
        used = response.headers.get("x-requests-used")
        logger.info(
            "Odds API: %d events fetched for %s. Quota: %s used, %s remaining",
            len(data), sport, used, remaining,
        )
        return data

    def get_events(self, sport: str) -> List[Event]:
        """Fetch and normalize one sport; ``[]`` when no API key is set."""
        if not self.enabled:
            logger.info("THE_ODDS_API_KEY not set; sportsbook feed disabled")
            return []
        return [normalize_event(raw) for raw in self.get_raw_odds(sport)]
