"""Exchange-rate lookup used to convert records before aggregation."""

from __future__ import annotations

import functools
import logging
from typing import Any

import requests

from currency import RateLookup

logger = logging.getLogger(__name__)

FXRATES_CONVERT_URL = "https://api.fxratesapi.com/convert"


def _safe_json_response(response: requests.Response) -> dict[str, Any]:
    try:
        payload = response.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}


def fetch_exchange_rate(
    from_currency: str,
    to_currency: str,
    date: str | None = None,
    timeout: float = 8.0,
) -> float | None:
    """Rate for one unit of ``from_currency`` in ``to_currency`` on ``date`` (YYYY-MM-DD)."""
    source = str(from_currency or "").strip().upper()
    target = str(to_currency or "").strip().upper()
    if not source or not target:
        return None
    if source == target:
        return 1.0

    params = {"from": source, "to": target, "amount": 1}
    if date:
        params["date"] = date
    try:
        response = requests.get(FXRATES_CONVERT_URL, params=params, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as exc:
        logger.warning("exchange rate request %s->%s failed: %s", source, target, exc)
        return None

    payload = _safe_json_response(response)
    rate = payload.get("info", {}).get("rate") if isinstance(payload.get("info"), dict) else None
    if rate is None:
        rate = payload.get("result")
    try:
        return float(rate) if rate is not None else None
    except (TypeError, ValueError):
        logger.warning("unexpected exchange rate payload for %s->%s: %r", source, target, rate)
        return None


def make_rate_lookup(timeout: float = 8.0) -> RateLookup:
    """Cached ``rate(from, to, date)`` callable for one conversion pass."""

    @functools.lru_cache(maxsize=4096)
    def lookup(from_currency: str, to_currency: str, date: str) -> float | None:
        return fetch_exchange_rate(from_currency, to_currency, date or None, timeout=timeout)

    return lookup
