"""
FastAPI application for the odds edge scanner
Serves the enriched odds snapshot, the opportunity lists and the calculators
"""

from fastapi import FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List, Literal, Optional
import logging
import os

from dotenv import load_dotenv

load_dotenv()

from backend.core.kelly import kelly_stake, kelly_stake_amount
from backend.core.odds_math import (
    allocate_arbitrage_stakes,
    decimal_to_american,
    decimal_to_implied,
)
from backend.core.sport_config import DEFAULT_SPORT_ID, SPORTS
from backend.services.odds import FeedError
from backend.services.polymarket import PolymarketClient
from backend.services.snapshot import build_snapshot
from backend.schemas import (
    ArbitrageCalcResponse,
    KellyCalcResponse,
    OddsConversionResponse,
    OddsSnapshotResponse,
    OpportunitiesResponse,
    SportResponse,
)

# Logging setup
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

DEFAULT_SPORT = os.getenv("DEFAULT_SPORT", DEFAULT_SPORT_ID)
KellyParam = Literal["1", "0.5", "0.25"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    logger.info("Starting odds edge scanner (default sport %s)", DEFAULT_SPORT)
    if not os.getenv("THE_ODDS_API_KEY"):
        logger.warning("THE_ODDS_API_KEY not set; only Polymarket data will be served")
    yield
    logger.info("Shutting down odds edge scanner")


app = FastAPI(
    title="Odds Edge Scanner",
    description="Sportsbook + prediction-market line shopping, +EV and arbitrage scanner",
    version="1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv(
        "CORS_ORIGINS", "http://localhost:3000,http://localhost:8501"
    ).split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _feed_error_response(exc: FeedError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": "Odds API error", "details": exc.message},
    )


def _snapshot(sport: str, bankroll: Optional[float], kelly: Optional[str]):
    # Kelly is only meaningful alongside a bankroll.
    multiplier = float(kelly) if bankroll and kelly else None
    return build_snapshot(sport, bankroll=bankroll, kelly_multiplier=multiplier)


# ============================================================================
# PUBLIC ENDPOINTS
# ============================================================================

@app.get("/")
async def root():
    """Health check"""
    return {
        "app": "Odds Edge Scanner",
        "version": "1.0",
        "status": "operational",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "sportsbook_feed": "configured" if os.getenv("THE_ODDS_API_KEY") else "disabled",
        "polymarket_feed": "enabled",
    }


@app.get("/api/sports", response_model=List[SportResponse])
def get_sports():
    """Sports the sportsbook feed can be queried for."""
    return [SportResponse.from_config(s) for s in SPORTS]


@app.get("/api/polymarket/sports")
def get_polymarket_sports():
    """Sports listed by Polymarket; empty when the venue is unreachable."""
    return PolymarketClient().get_sports()


# ============================================================================
# ODDS SNAPSHOT
# ============================================================================

@app.get("/api/odds", response_model=OddsSnapshotResponse)
def get_odds(
    sport: str = Query(default=DEFAULT_SPORT),
    bankroll: Optional[float] = Query(default=None, ge=0),
    kelly: Optional[KellyParam] = Query(default=None),
):
    """
    Enriched sportsbook and Polymarket events plus all four opportunity lists.

    Sportsbook feed failures return 401 (bad key), 429 (quota) or 502.
    Polymarket failures are silent.
    """
    try:
        snapshot = _snapshot(sport, bankroll, kelly)
    except FeedError as exc:
        return _feed_error_response(exc)
    return OddsSnapshotResponse.from_snapshot(snapshot)


@app.get("/api/opportunities", response_model=OpportunitiesResponse)
def get_opportunities(
    sport: str = Query(default=DEFAULT_SPORT),
    bankroll: Optional[float] = Query(default=None, ge=0),
    kelly: Optional[KellyParam] = Query(default=None),
):
    """Only the ranked value / arbitrage / low-hold / middle lists."""
    try:
        snapshot = _snapshot(sport, bankroll, kelly)
    except FeedError as exc:
        return _feed_error_response(exc)
    return OpportunitiesResponse.from_report(snapshot.opportunities)


# ============================================================================
# CALCULATORS
# ============================================================================

@app.get("/api/calculators/arbitrage", response_model=ArbitrageCalcResponse)
def calc_arbitrage(
    odds1: float = Query(..., gt=1.0),
    odds2: float = Query(..., gt=1.0),
    stake: float = Query(default=100.0, ge=0),
):
    """Whether two prices arb, and how to split ``stake`` across them."""
    split = allocate_arbitrage_stakes(odds1, odds2, stake)
    return ArbitrageCalcResponse(
        is_arbitrage=split.is_arbitrage,
        total_implied=split.total,
        profit_pct=split.profit_pct,
        stake1=split.stake_a,
        stake2=split.stake_b,
        payout=split.payout,
        profit=split.profit,
    )


@app.get("/api/calculators/kelly", response_model=KellyCalcResponse)
def calc_kelly(
    odds: float = Query(..., gt=0),
    prob: float = Query(..., ge=0, le=1, description="Your win probability (0-1)"),
    bankroll: float = Query(default=0.0, ge=0),
    fraction: KellyParam = Query(default="0.5"),
):
    """Fractional Kelly stake for a single bet."""
    f = kelly_stake(odds, prob, float(fraction))
    return KellyCalcResponse(
        kelly_fraction=f,
        kelly_pct=f * 100.0,
        stake=kelly_stake_amount(bankroll, f),
    )


@app.get("/api/calculators/odds", response_model=OddsConversionResponse)
def calc_odds(decimal: float = Query(..., gt=0)):
    """Decimal price → implied percentage and American odds."""
    return OddsConversionResponse(
        decimal=decimal,
        implied_pct=decimal_to_implied(decimal) * 100.0,
        american=decimal_to_american(decimal) if decimal > 1.0 else None,
    )


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Catch-all exception handler"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "type": type(exc).__name__}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
