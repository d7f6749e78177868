"""
Streamlit Dashboard for the Odds Edge Scanner
Best prices, +EV bets, arbitrage, low-hold pairs and middles from the API
"""

import os
import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import streamlit as st
from dotenv import load_dotenv

from dashboard.utils import api_get, fmt_american, offers_frame, records_frame

load_dotenv()

DEFAULT_SPORT = os.getenv("DEFAULT_SPORT", "americanfootball_nfl")

st.set_page_config(
    page_title="Odds Edge Scanner",
    page_icon="📈",
    layout="wide",
    initial_sidebar_state="expanded",
)


# ==============================================================================
# SIDEBAR
# ==============================================================================

with st.sidebar:
    st.title("📈 Odds Edge")
    st.caption("Sportsbooks + Polymarket")

    sports = api_get("/api/sports") or [{"id": DEFAULT_SPORT, "label": DEFAULT_SPORT}]
    labels = {s["id"]: s["label"] for s in sports}
    ids = list(labels)
    sport = st.selectbox(
        "Sport",
        ids,
        index=ids.index(DEFAULT_SPORT) if DEFAULT_SPORT in ids else 0,
        format_func=lambda s: labels.get(s, s),
    )

    bankroll = st.number_input("Bankroll ($)", min_value=0.0, value=0.0, step=50.0)
    kelly = st.radio(
        "Kelly",
        ["1", "0.5", "0.25"],
        index=1,
        format_func=lambda k: {"1": "Full", "0.5": "Half", "0.25": "Quarter"}[k],
        horizontal=True,
    )

    if st.button("🔄 Refresh"):
        st.rerun()

params = {"sport": sport}
if bankroll > 0:
    params["bankroll"] = bankroll
    params["kelly"] = kelly

data = api_get("/api/odds", params=params)
if data is None:
    st.stop()

for err in data.get("errors", []):
    st.warning(err)

st.caption(f"Updated {data['timestamp']}")

opps = data["opportunities"]
tab_opps, tab_books, tab_poly, tab_calc = st.tabs(
    ["🎯 Opportunities", "📚 All Books", "🔮 Polymarket", "🧮 Calculators"]
)


# ==============================================================================
# OPPORTUNITIES
# ==============================================================================

with tab_opps:
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("+EV bets", len(opps["value_bets"]))
    c2.metric("Arbitrage", len(opps["arbitrage"]))
    c3.metric("Low hold", len(opps["low_hold"]))
    c4.metric("Middles", len(opps["middles"]))

    st.subheader("+EV bets")
    df = records_frame(opps["value_bets"], {
        "event_name": "Event", "selection": "Selection", "odds": "Odds",
        "book": "Book", "edge_pct": "Edge %", "kelly_pct": "Kelly %",
        "stake_amount": "Stake $",
    })
    if df is None:
        st.info("No +EV bets right now.")
    else:
        st.dataframe(df, use_container_width=True, hide_index=True)

    st.subheader("Arbitrage")
    df = records_frame(opps["arbitrage"][:10], {
        "event_name": "Event", "outcome1": "Side 1", "book1": "Book 1", "odds1": "Odds 1",
        "outcome2": "Side 2", "book2": "Book 2", "odds2": "Odds 2", "profit_pct": "Profit %",
    })
    if df is None:
        st.info("No arb right now. These pairs disappear in seconds.")
    else:
        st.dataframe(df, use_container_width=True, hide_index=True)

    left, right = st.columns(2)
    with left:
        st.subheader("Low hold (<5%)")
        df = records_frame(opps["low_hold"], {
            "event_name": "Event", "book1": "Book 1", "odds1": "Odds 1",
            "book2": "Book 2", "odds2": "Odds 2", "hold_pct": "Hold %",
        })
        if df is None:
            st.info("No low-hold events.")
        else:
            st.dataframe(df, use_container_width=True, hide_index=True)
    with right:
        st.subheader("Middles")
        df = records_frame(opps["middles"], {
            "event_name": "Event", "side1": "Over", "book1": "Book", "side2": "Under",
            "book2": "Book ", "middle_zone": "Window",
        })
        if df is None:
            st.info("No middles found.")
        else:
            st.dataframe(df, use_container_width=True, hide_index=True)


# ==============================================================================
# ALL BOOKS
# ==============================================================================

def _render_event(ev: dict) -> None:
    with st.expander(f"{ev['event_name']} — {ev.get('commence_time') or 'TBD'}"):
        for title, key in (
            ("Moneyline", "outcomes_by_selection"),
            ("Spreads", "spreads_by_selection"),
            ("Totals", "totals_by_selection"),
        ):
            selections = ev.get(key)
            if not selections:
                continue
            st.markdown(f"**{title}**")
            best = ", ".join(
                f"{label}: {sel['best_odds']:.2f} ({fmt_american(sel['best_odds'])}) @ {sel['best_book']}"
                + (" ✅" if sel["is_value"] else "")
                for label, sel in selections.items()
            )
            st.caption(best)
            st.dataframe(offers_frame(selections), use_container_width=True)


with tab_books:
    if not data["sportsbook_events"]:
        st.info("No sportsbook events. Set THE_ODDS_API_KEY to enable the feed.")
    for ev in data["sportsbook_events"]:
        _render_event(ev)


with tab_poly:
    if not data["polymarket_events"]:
        st.info("No Polymarket markets available.")
    for ev in data["polymarket_events"]:
        _render_event(ev)


# ==============================================================================
# CALCULATORS
# ==============================================================================

with tab_calc:
    a, k, o = st.columns(3)

    with a:
        st.subheader("Arbitrage")
        o1 = st.number_input("Odds 1", value=2.10, min_value=1.01, key="arb_o1")
        o2 = st.number_input("Odds 2", value=2.10, min_value=1.01, key="arb_o2")
        stake = st.number_input("Total stake ($)", value=100.0, min_value=0.0, key="arb_stake")
        res = api_get("/api/calculators/arbitrage", {"odds1": o1, "odds2": o2, "stake": stake})
        if res and res["is_arbitrage"]:
            st.success(
                f"+{res['profit_pct']:.2f}% profit · ${res['profit']:.2f} "
                f"(${res['stake1']:.2f} / ${res['stake2']:.2f})"
            )
        elif res:
            st.info("No arb")

    with k:
        st.subheader("Kelly")
        odds = st.number_input("Decimal odds", value=2.50, min_value=1.01, key="k_odds")
        prob = st.number_input("Your prob (%)", value=45.0, min_value=0.0, max_value=100.0, key="k_prob")
        br = st.number_input("Bankroll ($)", value=1000.0, min_value=0.0, key="k_br")
        frac = st.selectbox("Fraction", ["1", "0.5", "0.25"], index=1, key="k_frac")
        res = api_get(
            "/api/calculators/kelly",
            {"odds": odds, "prob": prob / 100.0, "bankroll": br, "fraction": frac},
        )
        if res:
            st.success(f"{res['kelly_pct']:.1f}% · ${res['stake']:.2f}")

    with o:
        st.subheader("Odds converter")
        dec = st.number_input("Decimal", value=2.50, min_value=1.01, key="conv_dec")
        res = api_get("/api/calculators/odds", {"decimal": dec})
        if res:
            st.write(f"Implied: {res['implied_pct']:.1f}%")
            american = res["american"]
            st.write(f"American: {'+' if american and american > 0 else ''}{american}")
