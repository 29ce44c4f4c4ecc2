"""Overdue / upcoming bill classification and reminder selection."""

from __future__ import annotations

import datetime
from typing import Any, Iterable, Mapping

import pandas as pd

from records import parse_date

UPCOMING_WINDOW_DAYS = 7

_ALIASES = {"dueDate": "due_date", "billStatus": "bill_status", "reminderDays": "reminder_days"}


def _bill_rows(bills: pd.DataFrame | Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
    if isinstance(bills, pd.DataFrame):
        raw = bills.to_dict(orient="records")
    else:
        raw = [dict(bill) for bill in bills]
    rows = []
    for bill in raw:
        row = {_ALIASES.get(key, key): value for key, value in bill.items()}
        due = parse_date(row.get("due_date"))
        if pd.isna(due):
            continue
        row["due_date"] = due.date().isoformat()
        row["bill_status"] = str(row.get("bill_status") or "").strip().lower()
        rows.append(row)
    return rows


def _reminder_days(value: Any) -> float:
    try:
        days = float(value)
    except (TypeError, ValueError):
        return 0.0
    return 0.0 if pd.isna(days) else days


def _days_left(due_date: str, today: datetime.date) -> int:
    return (datetime.date.fromisoformat(due_date) - today).days


def classify_bills(
    bills: pd.DataFrame | Iterable[Mapping[str, Any]],
    today: datetime.date,
    window_days: int = UPCOMING_WINDOW_DAYS,
) -> dict[str, list[dict[str, Any]]]:
    """Split unpaid bills into overdue and due-within-window lists."""
    overdue: list[dict[str, Any]] = []
    upcoming: list[dict[str, Any]] = []
    for bill in _bill_rows(bills):
        if bill["bill_status"] == "paid":
            continue
        days_left = _days_left(bill["due_date"], today)
        if days_left < 0:
            overdue.append({**bill, "days_left": days_left})
        elif days_left <= int(window_days):
            upcoming.append({**bill, "days_left": days_left})
    overdue.sort(key=lambda bill: bill["due_date"])
    upcoming.sort(key=lambda bill: bill["due_date"])
    return {"overdue": overdue, "upcoming": upcoming}


def bill_reminders(
    bills: pd.DataFrame | Iterable[Mapping[str, Any]],
    today: datetime.date,
) -> list[dict[str, Any]]:
    """Unpaid bills due within their own reminder window."""
    out = []
    for bill in _bill_rows(bills):
        reminder_days = _reminder_days(bill.get("reminder_days"))
        if bill["bill_status"] == "paid" or reminder_days <= 0:
            continue
        days_left = _days_left(bill["due_date"], today)
        if 0 <= days_left <= reminder_days:
            out.append({**bill, "days_left": days_left})
    return sorted(out, key=lambda bill: bill["due_date"])
