"""Shared utilities for the dashboard."""

import os
from typing import Dict, List, Optional

import pandas as pd
import requests
import streamlit as st
from dotenv import load_dotenv

from backend.core.odds_math import decimal_to_american

load_dotenv()

_API_URL = os.getenv("API_URL", "http://localhost:8000")


def api_get(endpoint: str, params: dict = None):
    """GET a JSON endpoint; shows the API's own error detail on failure."""
    try:
        r = requests.get(f"{_API_URL}{endpoint}", params=params, timeout=30)
    except requests.RequestException as exc:
        st.error(f"Request failed: {exc}")
        return None
    if not r.ok:
        try:
            body = r.json()
            detail = body.get("details") or body.get("detail") or r.text
        except ValueError:
            detail = r.text
        st.error(f"API {r.status_code}: {detail}")
        return None
    return r.json()


def fmt_american(decimal_odds: float) -> str:
    """American odds for display; "—" when the price has none."""
    if decimal_odds <= 1.0:
        return "—"
    american = decimal_to_american(decimal_odds)
    return f"+{american}" if american > 0 else str(american)


def records_frame(records: List[Dict], columns: Dict[str, str]) -> Optional[pd.DataFrame]:
    """Project API records onto ``columns`` (source key → header)."""
    if not records:
        return None
    df = pd.DataFrame(records)
    present = [c for c in columns if c in df.columns]
    return df[present].rename(columns=columns)


def offers_frame(selections: Dict[str, Dict]) -> Optional[pd.DataFrame]:
    """Books × selections price grid for one market of one event."""
    if not selections:
        return None
    grid: Dict[str, Dict[str, float]] = {}
    for label, sel in selections.items():
        for offer in sel["all_offers"]:
            grid.setdefault(offer["book"], {})[label] = offer["decimal_odds"]
    return pd.DataFrame(grid).T.sort_index()
