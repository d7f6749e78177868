"""
scan.py — Run one refresh cycle from the command line and print the results.

Both feeds are fetched exactly as the API does it.  A sportsbook feed error
is printed as a warning and whatever Polymarket returned is still scanned.

Usage
-----
  python scripts/scan.py                                  # default sport
  python scripts/scan.py --sport basketball_nba
  python scripts/scan.py --bankroll 1000 --kelly 0.25     # with Kelly sizing
  python scripts/scan.py --json                           # full snapshot as JSON
"""

import argparse
import logging
import os
import sys
from pathlib import Path

# Ensure the project root (one level up from scripts/) is on sys.path so that
# `from backend.xxx import ...` resolves correctly when the script is run
# directly (e.g.  python scripts/scan.py).
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from dotenv import load_dotenv

load_dotenv()

from backend.core.sport_config import DEFAULT_SPORT_ID, SPORTS
from backend.schemas import OddsSnapshotResponse
from backend.services.snapshot import build_snapshot


def _print_report(snapshot, limit: int) -> None:
    opps = snapshot.opportunities

    print(f"\n{snapshot.sport}: {len(snapshot.sportsbook_events)} sportsbook events, "
          f"{len(snapshot.polymarket_events)} Polymarket markets")
    for err in snapshot.errors:
        print(f"  ⚠️  {err}")

    print(f"\n+EV bets ({len(opps.value_bets)})")
    for v in opps.value_bets[:limit]:
        kelly = f"  kelly {v.kelly_pct:.1f}%" if v.kelly_pct else ""
        print(f"  {v.edge_pct:5.2f}%  {v.event_name}: {v.selection} @ {v.odds:.2f} ({v.book}){kelly}")

    print(f"\nArbitrage ({len(opps.arbitrage)})")
    for a in opps.arbitrage[:limit]:
        print(f"  +{a.profit_pct:.2f}%  {a.event_name}: {a.outcome1} {a.odds1:.2f} ({a.book1}) / "
              f"{a.outcome2} {a.odds2:.2f} ({a.book2})")

    print(f"\nLow hold ({len(opps.low_hold)})")
    for h in opps.low_hold[:limit]:
        print(f"  {h.hold_pct:.2f}%  {h.event_name}: {h.book1} {h.odds1:.2f} / {h.book2} {h.odds2:.2f}")

    print(f"\nMiddles ({len(opps.middles)})")
    for m in opps.middles[:limit]:
        print(f"  {m.window} wins both  {m.event_name}: {m.side1} ({m.book1}) / {m.side2} ({m.book2})")


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Scan sportsbook and Polymarket odds for value, arbitrage and middles."
    )
    parser.add_argument(
        "--sport",
        default=os.getenv("DEFAULT_SPORT", DEFAULT_SPORT_ID),
        help="The Odds API sport key (known: %s)" % ", ".join(s.sport_id for s in SPORTS),
    )
    parser.add_argument("--bankroll", type=float, default=None, help="Bankroll for Kelly sizing.")
    parser.add_argument(
        "--kelly",
        type=float,
        choices=[1.0, 0.5, 0.25],
        default=0.5,
        help="Kelly multiplier (full / half / quarter).  Used only with --bankroll.",
    )
    parser.add_argument("--limit", type=int, default=10, help="Rows per list.")
    parser.add_argument("--json", action="store_true", help="Print the full snapshot as JSON.")
    args = parser.parse_args()

    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "WARNING"),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )

    try:
        snapshot = build_snapshot(
            args.sport,
            bankroll=args.bankroll,
            kelly_multiplier=args.kelly if args.bankroll else None,
            raise_on_feed_error=False,
        )
    except ValueError as e:
        print(f"❌ Error: {e}")
        sys.exit(2)

    if args.json:
        print(OddsSnapshotResponse.from_snapshot(snapshot).model_dump_json(indent=2))
        return

    _print_report(snapshot, args.limit)


if __name__ == "__main__":
    main()
