"""
Polymarket Gamma API integration — the prediction-market feed (no key required).

Each Polymarket *market* inside an event becomes its own ``Event`` whose
quotes are the market's outcomes priced from ``outcomePrices``.  Gamma
returns both ``outcomes`` and ``outcomePrices`` as JSON-encoded strings, e.g.
``'["Yes", "No"]'`` and ``'["0.62", "0.38"]'``.

This is the secondary feed: every failure is logged and degrades to "no
data from this source".  Nothing here raises to the caller.
"""

import json
import logging
import os
from typing import Dict, List, Optional

import requests

from backend.core.quotes import Event, MarketType, Quote, SourceCategory
from backend.services.odds import parse_commence_time

logger = logging.getLogger(__name__)

GAMMA_URL = "https://gamma-api.polymarket.com"
BOOK_NAME = "Polymarket"
SPORT_TAG = "polymarket"
EVENT_LIMIT = int(os.getenv("POLYMARKET_EVENT_LIMIT", "20"))
REQUEST_TIMEOUT = float(os.getenv("POLYMARKET_TIMEOUT", "10"))

#: Price assumed for an outcome listed without a price.
_MISSING_PRICE = 0.5


def _decode_list(value, default: str) -> list:
    """Decode a Gamma list field that may arrive as a JSON string or a list."""
    if isinstance(value, list):
        return value
    decoded = json.loads(value or default)
    if not isinstance(decoded, list):
        raise ValueError(f"expected a JSON list, got {type(decoded).__name__}")
    return decoded


def parse_market(event: Dict, market: Dict) -> Optional[Event]:
    """Turn one Gamma market into an ``Event``; None if it cannot be parsed."""
    try:
        names = _decode_list(market.get("outcomes"), "[]")
        prices = [float(p) for p in _decode_list(market.get("outcomePrices"), "[0.5,0.5]")]
    except (ValueError, TypeError) as exc:
        logger.debug("Skipping Polymarket market %s: %s", market.get("id"), exc)
        return None

    quotes = []
    for i, name in enumerate(names):
        prob = prices[i] if i < len(prices) else _MISSING_PRICE
        quotes.append(
            Quote.from_probability(
                str(name),
                BOOK_NAME,
                prob,
                market_type=MarketType.H2H,
                source=SourceCategory.POLYMARKET,
            )
        )

    if not quotes:
        return None

    return Event(
        event_id=f"{event.get('id')}-{market.get('id')}",
        name=event.get("title", ""),
        sport=SPORT_TAG,
        commence_time=parse_commence_time(event.get("startDate")),
        quotes=tuple(quotes),
    )


class PolymarketClient:
    """Client for the Polymarket Gamma API"""

    def __init__(
        self,
        timeout: float = REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.timeout = timeout
        self._session = session or requests.Session()

    def _get(self, path: str, params: Optional[Dict] = None):
        response = self._session.get(f"{GAMMA_URL}{path}", params=params, timeout=self.timeout)
        if not response.ok:
            logger.warning("Polymarket %s returned HTTP %d", path, response.status_code)
            return None
        data = response.json()
        if not isinstance(data, list):
            logger.warning("Polymarket %s returned %s, expected a list", path, type(data).__name__)
            return None
        return [item for item in data if isinstance(item, dict)]

    def get_sports(self) -> List[Dict]:
        """List Polymarket sports as ``{"id", "label"}`` dicts; ``[]`` on failure."""
        try:
            data = self._get("/sports")
        except (requests.exceptions.RequestException, ValueError) as exc:
            logger.warning("Polymarket sports lookup failed: %s", exc)
            return []
        if not data:
            return []
        return [{"id": s.get("id"), "label": s.get("name", "")} for s in data]

    def get_events(self, series_id: Optional[int] = None, limit: int = EVENT_LIMIT) -> List[Event]:
        """
        Fetch active events and flatten each market into an ``Event``.

        Returns ``[]`` on any HTTP or decoding failure.
        """
        params: Dict = {"active": "true", "closed": "false", "limit": limit}
        if series_id:
            params["series_id"] = series_id

        try:
            data = self._get("/events", params=params)
        except (requests.exceptions.RequestException, ValueError) as exc:
            logger.warning("Polymarket events fetch failed: %s", exc)
            return []
        if not data:
            return []

        events: List[Event] = []
        for ev in data:
            markets = ev.get("markets")
            if not isinstance(markets, list):
                continue
            for market in markets:
                if not isinstance(market, dict):
                    continue
                parsed = parse_market(ev, market)
                if parsed is not None:
                    events.append(parsed)

        logger.info("Polymarket: %d markets from %d events", len(events), len(data))
        return events
