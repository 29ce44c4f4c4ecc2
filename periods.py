"""Time-period bucketing, savings trend and period comparison."""

from __future__ import annotations

import calendar
import datetime
from typing import Any

import pandas as pd

from records import RecordsInput, filter_by_date_range, normalize_records

GRANULARITIES = ("monthly", "quarterly", "half-yearly", "yearly")
MONTH_NAMES = [
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
]
QUARTER_LABELS = ["Q1", "Q2", "Q3", "Q4"]
HALF_LABELS = ["H1", "H2"]

SAVINGS_TARGET_FACTOR = 1.1
STABLE_CHANGE_PCT = 5.0

_EXPENSE_TYPES = ("expense", "bill")
_MONTHS_PER_PERIOD = {"monthly": 1, "quarterly": 3, "half-yearly": 6, "yearly": 12}


def _check_granularity(granularity: str) -> str:
    value = str(granularity or "").strip().lower()
    if value not in GRANULARITIES:
        raise ValueError(f"Unsupported granularity: {granularity}")
    return value


def reference_date(now=None) -> datetime.date:
    """``now`` as a date; the system date when omitted."""
    if now is None:
        return datetime.date.today()
    if isinstance(now, datetime.datetime):
        return now.date()
    return now


def _month_index(sub_period: str) -> int:
    text = str(sub_period).strip().capitalize()
    if text not in MONTH_NAMES:
        raise ValueError(f"Unknown month sub-period: {sub_period}")
    return MONTH_NAMES.index(text)


def _ordinal(sub_period: str, prefix: str, limit: int) -> int:
    text = str(sub_period).strip().upper()
    if not text.startswith(prefix) or not text[1:].isdigit() or not 1 <= int(text[1:]) <= limit:
        raise ValueError(f"Unknown sub-period: {sub_period}")
    return int(text[1:])


def _year(sub_period: str) -> int:
    text = str(sub_period).strip()
    if not (len(text) == 4 and text.isdigit()):
        raise ValueError(f"Unknown year sub-period: {sub_period}")
    return int(text)


def default_sub_period(granularity: str, now=None) -> str:
    """Sub-period containing ``now`` for the given granularity."""
    granularity = _check_granularity(granularity)
    today = reference_date(now)
    month = today.month - 1
    if granularity == "monthly":
        return MONTH_NAMES[month]
    if granularity == "quarterly":
        return f"Q{month // 3 + 1}"
    if granularity == "half-yearly":
        return "H1" if month < 6 else "H2"
    return str(today.year)


def resolve_year(granularity: str, sub_period: str | None = None, now=None) -> int:
    """Calendar year a sub-period refers to.

    Month names after the current month point at the previous year.
    """
    granularity = _check_granularity(granularity)
    today = reference_date(now)
    sub_period = sub_period or default_sub_period(granularity, today)
    if granularity == "monthly":
        return today.year - 1 if _month_index(sub_period) > today.month - 1 else today.year
    if granularity == "quarterly":
        _ordinal(sub_period, "Q", 4)
    elif granularity == "half-yearly":
        _ordinal(sub_period, "H", 2)
    else:
        return _year(sub_period)
    return today.year


def _first_month(granularity: str, sub_period: str) -> int:
    """1-based first calendar month of a sub-period."""
    if granularity == "monthly":
        return _month_index(sub_period) + 1
    if granularity == "quarterly":
        return (_ordinal(sub_period, "Q", 4) - 1) * 3 + 1
    if granularity == "half-yearly":
        return (_ordinal(sub_period, "H", 2) - 1) * 6 + 1
    return 1


def period_date_range(
    granularity: str, sub_period: str | None = None, now=None
) -> tuple[datetime.date, datetime.date]:
    """Inclusive first and last day of the selected sub-period."""
    granularity = _check_granularity(granularity)
    sub_period = sub_period or default_sub_period(granularity, now)
    year = resolve_year(granularity, sub_period, now)
    first = _first_month(granularity, sub_period)
    last = first + _MONTHS_PER_PERIOD[granularity] - 1
    return (
        datetime.date(year, first, 1),
        datetime.date(year, last, calendar.monthrange(year, last)[1]),
    )


def display_label(granularity: str, sub_period: str | None = None, now=None) -> str:
    """Sub-period with its resolved year, e.g. ``March 2025``."""
    granularity = _check_granularity(granularity)
    sub_period = sub_period or default_sub_period(granularity, now)
    year = resolve_year(granularity, sub_period, now)
    if granularity == "yearly":
        return str(year)
    if granularity == "monthly":
        return f"{MONTH_NAMES[_month_index(sub_period)]} {year}"
    return f"{str(sub_period).strip().upper()} {year}"


def sub_period_options(granularity: str, now=None, years_back: int = 6) -> list[str]:
    granularity = _check_granularity(granularity)
    if granularity == "monthly":
        return list(MONTH_NAMES)
    if granularity == "quarterly":
        return list(QUARTER_LABELS)
    if granularity == "half-yearly":
        return list(HALF_LABELS)
    year = reference_date(now).year
    return [str(year - offset) for offset in range(max(int(years_back), 1))]


def period_label(value, granularity: str) -> str:
    """Bucket label of a single date."""
    granularity = _check_granularity(granularity)
    month = value.month
    if granularity == "monthly":
        return MONTH_NAMES[month - 1]
    if granularity == "quarterly":
        return QUARTER_LABELS[(month - 1) // 3]
    if granularity == "half-yearly":
        return HALF_LABELS[(month - 1) // 6]
    return str(value.year)


def _label_series(dates: pd.Series, granularity: str) -> pd.Series:
    months = dates.dt.month
    if granularity == "monthly":
        return months.map(lambda m: MONTH_NAMES[m - 1])
    if granularity == "quarterly":
        return months.map(lambda m: QUARTER_LABELS[(m - 1) // 3])
    if granularity == "half-yearly":
        return months.map(lambda m: HALF_LABELS[(m - 1) // 6])
    return dates.dt.year.astype(str)


def _sum_by_label(frame: pd.DataFrame, keys: pd.Series, labels: list[str]) -> list[dict[str, Any]]:
    work = pd.DataFrame(
        {
            "label": keys,
            "income": frame["amount"].where(frame["type"] == "income", 0.0),
            "expense": frame["amount"].where(frame["type"].isin(_EXPENSE_TYPES), 0.0),
        }
    )
    grouped = work.groupby("label")[["income", "expense"]].sum().reindex(labels).fillna(0.0)
    out = []
    for label, row in grouped.iterrows():
        income = float(row["income"])
        expense = float(row["expense"])
        out.append({"label": str(label), "income": income, "expense": expense, "net": income - expense})
    return out


def bucket_records(
    records: RecordsInput,
    granularity: str,
    sub_period: str | None = None,
    now=None,
    year: int | None = None,
) -> list[dict[str, Any]]:
    """Income / expense / net per period bucket, in chronological order.

    Monthly, quarterly and half-yearly views cover every bucket of the year the
    sub-period resolves to (``year`` overrides it). Yearly views hold one bucket
    per calendar year present in the records.
    """
    granularity = _check_granularity(granularity)
    df = normalize_records(records)
    if df.empty:
        return []

    if granularity == "yearly":
        years = sorted(df["date"].dt.year.unique())
        return _sum_by_label(df, _label_series(df["date"], granularity), [str(y) for y in years])

    if year is None:
        year = resolve_year(granularity, sub_period, now)
    in_year = df[df["date"].dt.year == int(year)]
    labels = {
        "monthly": MONTH_NAMES,
        "quarterly": QUARTER_LABELS,
        "half-yearly": HALF_LABELS,
    }[granularity]
    return _sum_by_label(in_year, _label_series(in_year["date"], granularity), list(labels))


def current_bucket(
    buckets: list[dict[str, Any]],
    granularity: str,
    sub_period: str | None = None,
    now=None,
) -> dict[str, Any] | None:
    """Bucket matching the selected (or default) sub-period."""
    granularity = _check_granularity(granularity)
    wanted = sub_period or default_sub_period(granularity, now)
    if granularity == "monthly":
        wanted = MONTH_NAMES[_month_index(wanted)]
    else:
        wanted = str(wanted).strip().upper()
    for bucket in buckets:
        if bucket["label"] == wanted:
            return bucket
    return None


def drilldown_buckets(
    records: RecordsInput,
    granularity: str,
    sub_period: str | None = None,
    now=None,
    active_only: bool = False,
) -> list[dict[str, Any]]:
    """Chart series inside one sub-period: days of a month, months otherwise."""
    granularity = _check_granularity(granularity)
    df = normalize_records(records)
    if df.empty:
        return []
    start, end = period_date_range(granularity, sub_period, now)
    window = filter_by_date_range(df, start, end)

    if granularity == "monthly":
        keys = window["date"].dt.strftime("%d/%m")
        labels = [
            f"{day:02d}/{start.month:02d}"
            for day in range(1, calendar.monthrange(start.year, start.month)[1] + 1)
        ]
    else:
        keys = _label_series(window["date"], "monthly")
        labels = MONTH_NAMES[start.month - 1 : end.month]

    buckets = _sum_by_label(window, keys, labels)
    if active_only:
        buckets = [b for b in buckets if b["income"] > 0 or b["expense"] > 0]
    return buckets


def savings_trend(buckets: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Project buckets to savings points with a 10% stretch target."""
    return [
        {
            "label": bucket["label"],
            "savings": bucket["net"],
            "income": bucket["income"],
            "expenses": bucket["expense"],
            "target": bucket["net"] * SAVINGS_TARGET_FACTOR,
        }
        for bucket in buckets
    ]


def savings_summary(trend: list[dict[str, Any]]) -> dict[str, Any]:
    if not trend:
        return {
            "total_savings": 0.0,
            "average_savings": 0.0,
            "positive_periods": 0,
            "negative_periods": 0,
            "active_periods": 0,
            "best_period": None,
            "worst_period": None,
        }
    total = float(sum(point["savings"] for point in trend))
    best = max(trend, key=lambda point: point["savings"])
    worst = min(trend, key=lambda point: point["savings"])
    return {
        "total_savings": total,
        "average_savings": round(total / len(trend), 2),
        "positive_periods": sum(1 for point in trend if point["savings"] > 0),
        "negative_periods": sum(1 for point in trend if point["savings"] < 0),
        "active_periods": sum(1 for point in trend if point["income"] > 0 or point["expenses"] > 0),
        "best_period": {"label": best["label"], "savings": best["savings"]},
        "worst_period": {"label": worst["label"], "savings": worst["savings"]},
    }


def _previous_sub_period(granularity: str, sub_period: str, year: int) -> tuple[str, int]:
    if granularity == "monthly":
        month = _month_index(sub_period)
        return (MONTH_NAMES[11], year - 1) if month == 0 else (MONTH_NAMES[month - 1], year)
    if granularity == "quarterly":
        quarter = _ordinal(sub_period, "Q", 4)
        return ("Q4", year - 1) if quarter == 1 else (f"Q{quarter - 1}", year)
    if granularity == "half-yearly":
        half = _ordinal(sub_period, "H", 2)
        return ("H2", year - 1) if half == 1 else ("H1", year)
    return str(year - 1), year - 1


def _expense_by_month(df: pd.DataFrame) -> pd.Series:
    spend = df[df["type"].isin(_EXPENSE_TYPES)]
    return spend.groupby([spend["date"].dt.year, spend["date"].dt.month])["amount"].sum()


def _expense_by_day(df: pd.DataFrame, year: int, month: int) -> list[float]:
    spend = df[
        df["type"].isin(_EXPENSE_TYPES)
        & (df["date"].dt.year == year)
        & (df["date"].dt.month == month)
    ]
    per_day = spend.groupby(spend["date"].dt.day)["amount"].sum()
    days = calendar.monthrange(year, month)[1]
    return [float(per_day.get(day, 0.0)) for day in range(1, days + 1)]


def period_comparison(
    records: RecordsInput,
    granularity: str,
    sub_period: str | None = None,
    now=None,
) -> dict[str, Any]:
    """Expenses of the selected sub-period against the one before it."""
    granularity = _check_granularity(granularity)
    sub_period = sub_period or default_sub_period(granularity, now)
    df = normalize_records(records)

    year = resolve_year(granularity, sub_period, now)
    prev_sub, prev_year = _previous_sub_period(granularity, sub_period, year)
    first = _first_month(granularity, sub_period)
    prev_first = _first_month(granularity, prev_sub)

    points: list[dict[str, Any]] = []
    if granularity == "monthly":
        current = _expense_by_day(df, year, first)
        previous = _expense_by_day(df, prev_year, prev_first)
        for i in range(max(len(current), len(previous))):
            points.append(
                {
                    "name": str(i + 1),
                    "current": current[i] if i < len(current) else 0.0,
                    "previous": previous[i] if i < len(previous) else 0.0,
                }
            )
        current_label = f"{MONTH_NAMES[first - 1]} {year}"
        previous_label = f"{MONTH_NAMES[prev_first - 1]} {prev_year}"
    else:
        monthly = _expense_by_month(df)
        for i in range(_MONTHS_PER_PERIOD[granularity]):
            points.append(
                {
                    "name": MONTH_NAMES[first - 1 + i],
                    "current": float(monthly.get((year, first + i), 0.0)),
                    "previous": float(monthly.get((prev_year, prev_first + i), 0.0)),
                }
            )
        if granularity == "yearly":
            current_label, previous_label = str(year), str(prev_year)
        else:
            current_label = f"{str(sub_period).strip().upper()} {year}"
            previous_label = f"{prev_sub} {prev_year}"

    current_total = float(sum(point["current"] for point in points))
    previous_total = float(sum(point["previous"] for point in points))
    change = 0.0 if previous_total == 0 else (current_total - previous_total) / previous_total * 100.0
    if abs(change) < STABLE_CHANGE_PCT:
        trend = "stable"
    else:
        trend = "up" if change > 0 else "down"

    return {
        "current_label": current_label,
        "previous_label": previous_label,
        "points": points,
        "current_total": current_total,
        "previous_total": previous_total,
        "percentage_change": round(change, 2),
        "trend": trend,
    }
