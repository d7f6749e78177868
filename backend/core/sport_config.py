"""Sport-level configuration — supported feeds and scanner thresholds.

This module is the **registry** for every constant the presentation layer
and the scanner share.  Nowhere else in the codebase should sport keys or
opportunity thresholds be hard-coded.

Architecture
------------
:class:`SportConfig` is a frozen dataclass describing one sport the
sportsbook feed can be queried for.  :data:`SPORTS` lists them in display
order.  The core never interprets the sport key; it is passed through to
The Odds API untouched.

:class:`ScanThresholds` carries the editorial cut-offs the aggregator and
scanner apply.  Override via :func:`dataclasses.replace`::

    from dataclasses import replace
    from backend.core.sport_config import DEFAULT_THRESHOLDS

    strict = replace(DEFAULT_THRESHOLDS, min_edge=0.02)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Optional, Tuple

from backend.core.odds_math import DEFAULT_MIN_EDGE


@dataclass(frozen=True)
class SportConfig:
    """One entry in the sport selector.

    Attributes:
        sport_id: The Odds API ``sport_key`` (``"basketball_nba"``).
        label: Short display name (``"NBA"``).
        three_way: True for sports whose moneyline usually has a draw
            outcome.  Those markets are never scanned for arbitrage or
            low hold; the flag is informational for the dashboard.
    """

    sport_id: str
    label: str
    three_way: bool = False


SPORTS: Final[Tuple[SportConfig, ...]] = (
    SportConfig("americanfootball_nfl", "NFL"),
    SportConfig("americanfootball_ncaaf", "NCAAF"),
    SportConfig("basketball_nba", "NBA"),
    SportConfig("basketball_ncaab", "NCAAB"),
    SportConfig("basketball_wnba", "WNBA"),
    SportConfig("baseball_mlb", "MLB"),
    SportConfig("icehockey_nhl", "NHL"),
    SportConfig("mma_ufc", "UFC"),
    SportConfig("soccer_epl", "EPL", three_way=True),
    SportConfig("soccer_mls", "MLS", three_way=True),
    SportConfig("americanfootball_nfl_preseason", "NFL Preseason"),
    SportConfig("basketball_nba_preseason", "NBA Preseason"),
)

DEFAULT_SPORT_ID: Final[str] = SPORTS[0].sport_id


def get_sport(sport_id: str) -> Optional[SportConfig]:
    """Registry lookup; ``None`` for keys the selector does not list."""
    for sport in SPORTS:
        if sport.sport_id == sport_id:
            return sport
    return None


@dataclass(frozen=True)
class ScanThresholds:
    """Cut-offs for value detection and the low-hold report.

    Attributes:
        min_edge: Minimum ``fair - offered`` probability gap for a value
            bet.  Inclusive.
        low_hold_pct: Pairs whose hold is strictly below this percentage
            are reported.  Distinct from arbitrage, where hold is negative.
    """

    min_edge: float = DEFAULT_MIN_EDGE
    low_hold_pct: float = 5.0


DEFAULT_THRESHOLDS: Final[ScanThresholds] = ScanThresholds()
