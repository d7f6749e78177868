"""Sportsbook landing pages used for "bet now" links in the API and dashboard."""

from __future__ import annotations

from typing import Dict, Final
from urllib.parse import quote_plus

BOOK_LINKS: Final[Dict[str, str]] = {
    "DraftKings": "https://sportsbook.draftkings.com",
    "FanDuel": "https://sportsbook.fanduel.com",
    "BetMGM": "https://sportsbook.betmgm.com",
    "BetRivers": "https://www.betrivers.com",
    "BetOnline.ag": "https://www.betonline.ag",
    "MyBookie.ag": "https://www.mybookie.ag",
    "BetUS": "https://www.betus.com.pa",
    "LowVig.ag": "https://lowvig.ag",
    "Betway": "https://sports.betway.com",
    "PointsBet": "https://pointsbet.com",
    "Unibet": "https://www.unibet.com/sportsbook",
    "Caesars": "https://www.caesars.com/sportsbook",
    "Borgata": "https://www.borgataonline.com/sportsbook",
    "Bet365": "https://www.bet365.com",
    "William Hill": "https://www.williamhill.com",
    "Barstool": "https://www.barstoolsportsbook.com",
    "WynnBET": "https://www.wynnbet.com",
    "SuperBook": "https://superbook.com",
    "Polymarket": "https://polymarket.com",
}


def get_book_link(book: str) -> str:
    """Landing page for ``book``, or a web search when it is not listed."""
    link = BOOK_LINKS.get(book)
    if link:
        return link
    return f"https://www.google.com/search?q={quote_plus(book + ' sportsbook')}"
