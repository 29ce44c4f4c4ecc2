"""Category breakdown aggregation."""

from __future__ import annotations

from typing import Any

import pandas as pd

from records import RecordsInput, normalize_records


def _shares(frame: pd.DataFrame) -> list[dict[str, Any]]:
    if frame.empty:
        return []
    totals = frame.groupby("category", sort=False)["amount"].sum()
    total = float(totals.sum())
    if total <= 0:
        return []
    return [
        {
            "category": str(category),
            "value": float(value),
            "percent_of_total": float(value) / total * 100.0,
        }
        for category, value in totals.items()
    ]


def category_breakdown(records: RecordsInput, transaction_type: str) -> list[dict[str, Any]]:
    """Per-category totals and percentage share for one transaction type."""
    df = normalize_records(records)
    wanted = str(transaction_type).strip().lower()
    return _shares(df[df["type"] == wanted])


def top_categories(shares: list[dict[str, Any]], n: int = 5) -> list[dict[str, Any]]:
    """Largest ``n`` shares, value descending then name."""
    ordered = sorted(shares, key=lambda share: (-share["value"], share["category"]))
    return ordered[: max(int(n), 0)]


def category_breakdown_by_currency(
    records: RecordsInput, transaction_type: str
) -> dict[str, list[dict[str, Any]]]:
    """Breakdown computed separately for every currency in unconverted record sets."""
    df = normalize_records(records)
    wanted = str(transaction_type).strip().lower()
    df = df[df["type"] == wanted]
    out: dict[str, list[dict[str, Any]]] = {}
    for currency, group in df.groupby("currency", sort=True):
        shares = _shares(group)
        if shares:
            out[str(currency)] = shares
    return out
