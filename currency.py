"""Currency symbols, amount formatting and record conversion."""

from __future__ import annotations

import logging
import math
from typing import Any, Callable

import pandas as pd

logger = logging.getLogger(__name__)

CURRENCY_SYMBOLS = {
    "INR": "₹",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "USD": "$",
    "CAD": "C$",
    "AUD": "A$",
    "CHF": "CHF",
    "CNY": "¥",
    "KRW": "₩",
}

RateLookup = Callable[[str, str, str], Any]


def currency_symbol(currency: str) -> str:
    """Display symbol for an ISO code, the code itself when unknown."""
    code = str(currency or "").strip().upper()
    return CURRENCY_SYMBOLS.get(code, str(currency or ""))


def _finite_or_zero(amount: Any) -> float:
    try:
        value = float(amount)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(value) or math.isinf(value):
        return 0.0
    return value


def format_amount(amount: Any, currency: str) -> str:
    """Return ``symbol + amount`` with two decimals; bad amounts render as 0.00."""
    return f"{currency_symbol(currency)}{_finite_or_zero(amount):.2f}"


def _valid_rate(rate: Any) -> float | None:
    try:
        value = float(rate)
    except (TypeError, ValueError):
        return None
    if math.isnan(value) or math.isinf(value) or value <= 0:
        return None
    return value


def convert_records(
    records: pd.DataFrame,
    target_currency: str,
    rate_lookup: RateLookup,
) -> pd.DataFrame:
    """Convert normalized records into ``target_currency``.

    ``rate_lookup(from, to, date)`` is called once per distinct currency/date
    pair. Rows without a usable rate are dropped.
    """
    target = str(target_currency).strip().upper()
    if records.empty:
        return records.copy()

    out = records.copy()
    out["currency"] = out["currency"].astype(str).str.strip().str.upper()
    day_keys = pd.to_datetime(out["date"], errors="coerce").dt.strftime("%Y-%m-%d")

    rates: dict[tuple[str, str], float | None] = {}
    for currency, day in sorted(set(zip(out["currency"], day_keys.fillna("")))):
        if currency == target:
            rates[(currency, day)] = 1.0
            continue
        try:
            rate = _valid_rate(rate_lookup(currency, target, day))
        except Exception as exc:
            logger.warning("rate lookup %s->%s on %s failed: %s", currency, target, day, exc)
            rate = None
        rates[(currency, day)] = rate

    factors = pd.Series(
        [rates.get((c, d)) for c, d in zip(out["currency"], day_keys.fillna(""))],
        index=out.index,
        dtype="float64",
    )
    missing = int(factors.isna().sum())
    if missing:
        logger.warning("dropped %d record(s) without a %s exchange rate", missing, target)

    out = out[factors.notna()].copy()
    out["amount"] = out["amount"] * factors[factors.notna()]
    out["currency"] = target
    return out.reset_index(drop=True)
