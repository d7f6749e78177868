"""
Snapshot orchestration — one refresh cycle.

Workflow:
    1. Fetch the sportsbook feed (The Odds API) and the prediction-market
       feed (Polymarket) concurrently; neither waits on the other.
    2. Enrich every event with the selection aggregator.  Sizing parameters
       (bankroll, Kelly multiplier) only apply to sportsbook events.
    3. Run the four opportunity scans over the sportsbook events.
    4. Return a plain-data ``OddsSnapshot``.

Error policy
------------
  Sportsbook feed failure: FeedError subclasses propagate (the API turns
      them into 401 / 429 / 502).  With ``raise_on_feed_error=False`` the
      error is recorded on the snapshot instead and whatever Polymarket
      supplied is still returned.
  Polymarket failure: logged, contributes no events, never surfaced.

Nothing is cached; a changed bankroll or Kelly multiplier simply re-runs
steps 2-3 on a new fetch.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from backend.core.kelly import validate_kelly_multiplier
from backend.core.quotes import EnrichedEvent, Event
from backend.core.sport_config import DEFAULT_THRESHOLDS, ScanThresholds
from backend.services.aggregator import enrich_events
from backend.services.odds import FeedError, OddsAPIClient
from backend.services.polymarket import PolymarketClient
from backend.services.scanner import OpportunityReport, scan_opportunities

logger = logging.getLogger(__name__)


@dataclass
class OddsSnapshot:
    """Everything the presentation layer needs for one refresh."""

    sport: str
    sportsbook_events: List[EnrichedEvent] = field(default_factory=list)
    polymarket_events: List[EnrichedEvent] = field(default_factory=list)
    opportunities: OpportunityReport = field(default_factory=OpportunityReport)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    errors: List[str] = field(default_factory=list)


def _fetch_polymarket(client: PolymarketClient) -> List[Event]:
    try:
        return client.get_events()
    except Exception as exc:
        # Secondary feed: never allowed to break the cycle.
        logger.warning("Polymarket feed failed, continuing without it: %s", exc, exc_info=True)
        return []


def build_snapshot(
    sport: str,
    bankroll: Optional[float] = None,
    kelly_multiplier: Optional[float] = None,
    odds_client: Optional[OddsAPIClient] = None,
    polymarket_client: Optional[PolymarketClient] = None,
    thresholds: ScanThresholds = DEFAULT_THRESHOLDS,
    raise_on_feed_error: bool = True,
) -> OddsSnapshot:
    """
    Fetch both feeds, enrich, and scan.

    Args:
        sport: The Odds API sport key; passed through uninterpreted.
        bankroll: Optional non-negative bankroll.
        kelly_multiplier: 1, 0.5 or 0.25.  Ignored without a bankroll.
        odds_client / polymarket_client: Injected clients (tests, CLI).
        thresholds: Value-edge and low-hold cut-offs.
        raise_on_feed_error: Re-raise sportsbook FeedErrors (default) or
            record them on ``OddsSnapshot.errors``.

    Raises:
        ValueError: If ``bankroll`` is negative or ``kelly_multiplier`` is
            not a permitted value.
        FeedError: Sportsbook feed failure, when ``raise_on_feed_error``.
    """
    if bankroll is not None and bankroll < 0:
        raise ValueError(f"bankroll must be non-negative, got {bankroll!r}")
    if kelly_multiplier is not None:
        kelly_multiplier = validate_kelly_multiplier(kelly_multiplier)

    odds_client = odds_client or OddsAPIClient()
    polymarket_client = polymarket_client or PolymarketClient()

    logger.info("Building snapshot for %s (bankroll=%s, kelly=%s)", sport, bankroll, kelly_multiplier)
    snapshot = OddsSnapshot(sport=sport)

    with ThreadPoolExecutor(max_workers=2) as pool:
        sportsbook_future = pool.submit(odds_client.get_events, sport)
        polymarket_future = pool.submit(_fetch_polymarket, polymarket_client)

        polymarket_raw = polymarket_future.result()
        try:
            sportsbook_raw = sportsbook_future.result()
        except FeedError as exc:
            if raise_on_feed_error:
                raise
            logger.error("Sportsbook feed failed (%d): %s", exc.status_code, exc.message)
            snapshot.errors.append(exc.message)
            sportsbook_raw = []

    sizing = {}
    if bankroll and kelly_multiplier:
        sizing = {"bankroll": bankroll, "kelly_multiplier": kelly_multiplier}

    snapshot.sportsbook_events = enrich_events(sportsbook_raw, thresholds=thresholds, **sizing)
    snapshot.polymarket_events = enrich_events(polymarket_raw, thresholds=thresholds)
    snapshot.opportunities = scan_opportunities(
        snapshot.sportsbook_events,
        bankroll=bankroll or None,
        thresholds=thresholds,
    )

    logger.info(
        "Snapshot %s: %d sportsbook events, %d polymarket markets, %d opportunities",
        sport, len(snapshot.sportsbook_events), len(snapshot.polymarket_events),
        snapshot.opportunities.total,
    )
    return snapshot
