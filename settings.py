"""Persistence helpers for analytics display settings."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from periods import GRANULARITIES

DEFAULT_SETTINGS_PATH = "data/analytics_settings.json"

DEFAULT_SETTINGS: dict[str, Any] = {
    "currency": "USD",
    "granularity": "monthly",
    "densify_heatmap": True,
    "bill_window_days": 7,
}


def _normalize_settings(raw: Any) -> dict[str, Any]:
    out = dict(DEFAULT_SETTINGS)
    if not isinstance(raw, dict):
        return out

    currency = str(raw.get("currency") or "").strip().upper()
    if currency.isalpha() and 2 <= len(currency) <= 5:
        out["currency"] = currency

    granularity = str(raw.get("granularity") or "").strip().lower()
    if granularity in GRANULARITIES:
        out["granularity"] = granularity

    if isinstance(raw.get("densify_heatmap"), bool):
        out["densify_heatmap"] = raw["densify_heatmap"]

    window = raw.get("bill_window_days")
    if isinstance(window, int) and not isinstance(window, bool) and window >= 0:
        out["bill_window_days"] = window
    return out


def load_settings(path: str = DEFAULT_SETTINGS_PATH) -> dict[str, Any]:
    """Load settings from disk; missing files and bad values fall back to defaults."""
    target = Path(path).expanduser()
    if not target.exists():
        return dict(DEFAULT_SETTINGS)
    payload = json.loads(target.read_text(encoding="utf-8"))
    return _normalize_settings(payload)


def save_settings(path: str, settings: dict[str, Any]) -> Path:
    """Save normalized settings to disk and return the saved path."""
    target = Path(path).expanduser()
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(
        json.dumps(_normalize_settings(settings), indent=2, ensure_ascii=True),
        encoding="utf-8",
    )
    return target
