"""Calendar activity heatmap: daily counts, streaks and activity rate."""

from __future__ import annotations

import datetime
from typing import Any, Iterable

import pandas as pd

from insights import heatmap_insights
from periods import reference_date
from records import RecordsInput, normalize_records

COLOR_THRESHOLDS = (0.2, 0.4, 0.6, 0.8)


def heatmap_days(records: RecordsInput, year: int) -> list[dict[str, Any]]:
    """Sparse per-day activity for one calendar year, chronological."""
    df = normalize_records(records)
    df = df[df["date"].dt.year == int(year)]
    if df.empty:
        return []

    keys = df["date"].dt.strftime("%Y-%m-%d")
    grouped = df.groupby(keys).agg(count=("amount", "size"), amount=("amount", "sum")).sort_index()
    categories = {day: sorted(set(values)) for day, values in df.groupby(keys)["category"]}
    return [
        {
            "date": str(day),
            "count": int(row["count"]),
            "amount": float(row["amount"]),
            "categories": categories[day],
        }
        for day, row in grouped.iterrows()
    ]


def densify_days(
    days: list[dict[str, Any]], start: datetime.date, end: datetime.date
) -> list[dict[str, Any]]:
    """Every calendar day from ``start`` to ``end``; days without activity get count 0."""
    by_date = {day["date"]: day for day in days}
    out = []
    for stamp in pd.date_range(start, end, freq="D"):
        key = stamp.strftime("%Y-%m-%d")
        out.append(by_date.get(key, {"date": key, "count": 0, "amount": 0.0, "categories": []}))
    return out


def streak_stats(counts: Iterable[int]) -> dict[str, int]:
    """Longest run of non-zero counts and the run ending at the last element."""
    values = list(counts)
    max_streak = 0
    running = 0
    for count in values:
        if count > 0:
            running += 1
            max_streak = max(max_streak, running)
        else:
            running = 0

    current_streak = 0
    for count in reversed(values):
        if count <= 0:
            break
        current_streak += 1
    return {"max_streak": max_streak, "current_streak": current_streak}


def _empty_stats() -> dict[str, Any]:
    return {
        "total_days": 0,
        "active_days": 0,
        "activity_rate": 0.0,
        "peak_day": None,
        "max_streak": 0,
        "current_streak": 0,
    }


def activity_stats(
    days: list[dict[str, Any]],
    year: int,
    now=None,
    densify: bool = True,
) -> dict[str, Any]:
    """Totals, activity rate, peak day and streaks over a year of heatmap days.

    With ``densify`` the range runs from January 1st to December 31st, or to
    ``now`` when it falls inside ``year``, so days without records break
    streaks. Without it only the days present in ``days`` are scanned.
    """
    ordered = sorted(days, key=lambda day: day["date"])
    if not any(day["count"] > 0 for day in ordered):
        return _empty_stats()

    if densify:
        start = datetime.date(int(year), 1, 1)
        end = datetime.date(int(year), 12, 31)
        today = reference_date(now)
        if today.year == int(year):
            last_active = datetime.date.fromisoformat(ordered[-1]["date"])
            end = max(today, last_active)
        ordered = densify_days(ordered, start, end)

    total_days = len(ordered)
    active_days = sum(1 for day in ordered if day["count"] > 0)

    peak = ordered[0]
    for day in ordered[1:]:
        if day["count"] > peak["count"]:
            peak = day

    stats = streak_stats(day["count"] for day in ordered)
    return {
        "total_days": total_days,
        "active_days": active_days,
        "activity_rate": round(active_days / total_days * 100.0, 1) if total_days else 0.0,
        "peak_day": {"date": peak["date"], "count": peak["count"]} if peak["count"] > 0 else None,
        "max_streak": stats["max_streak"],
        "current_streak": stats["current_streak"],
    }


def color_bin(count: int, max_count: int) -> int:
    """Display level 0-5; 0 means no activity."""
    if count <= 0 or max_count <= 0:
        return 0
    percentage = count / max_count
    for level, threshold in enumerate(COLOR_THRESHOLDS, start=1):
        if percentage <= threshold:
            return level
    return 5


def available_years(records: RecordsInput, now=None) -> list[int]:
    """Years with records, newest first."""
    df = normalize_records(records)
    if df.empty:
        return [reference_date(now).year]
    return sorted({int(y) for y in df["date"].dt.year.unique()}, reverse=True)


def heatmap(records: RecordsInput, year: int, now=None, densify: bool = True) -> dict[str, Any]:
    """Heatmap days with display levels, activity statistics and insights."""
    now = reference_date(now)
    days = heatmap_days(records, year)
    max_count = max((day["count"] for day in days), default=0)
    for day in days:
        day["level"] = color_bin(day["count"], max_count)
    stats = activity_stats(days, year, now=now, densify=densify)
    return {"days": days, "stats": stats, "insights": heatmap_insights(stats)}
