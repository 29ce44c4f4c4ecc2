"""Record loading and normalization helpers."""

from __future__ import annotations

import datetime
import json
import logging
import re
from pathlib import Path
from typing import Any, Iterable, Mapping

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".csv", ".json")
TRANSACTION_TYPES = ("expense", "income", "bill")
RECURRING_FREQUENCIES = ("daily", "weekly", "monthly", "yearly")

RECORD_COLUMNS = [
    "id",
    "title",
    "category",
    "type",
    "amount",
    "currency",
    "date",
    "is_recurring",
    "recurring_frequency",
    "due_date",
    "bill_status",
    "reminder_days",
]

_COLUMN_ALIASES = {
    "_id": "id",
    "isRecurring": "is_recurring",
    "recurringFrequency": "recurring_frequency",
    "dueDate": "due_date",
    "billStatus": "bill_status",
    "reminderDays": "reminder_days",
}

_DDMMYYYY = re.compile(r"^\d{2}/\d{2}/\d{4}$")

RecordsInput = pd.DataFrame | Iterable[Mapping[str, Any]]


def parse_date(value: Any) -> pd.Timestamp:
    """Parse ISO strings, DD/MM/YYYY strings and date objects; NaT on failure."""
    if value is None:
        return pd.NaT
    if isinstance(value, float) and np.isnan(value):
        return pd.NaT
    if isinstance(value, (datetime.date, pd.Timestamp)):
        stamp = pd.Timestamp(value)
    else:
        text = str(value).strip()
        if not text:
            return pd.NaT
        if _DDMMYYYY.match(text):
            stamp = pd.to_datetime(text, format="%d/%m/%Y", errors="coerce")
        else:
            stamp = pd.to_datetime(text, errors="coerce")
    if pd.isna(stamp):
        return pd.NaT
    if stamp.tzinfo is not None:
        stamp = stamp.tz_localize(None)
    return stamp.normalize()


def _parse_date_column(values: pd.Series) -> pd.Series:
    parsed = [parse_date(value) for value in values]
    return pd.Series(parsed, index=values.index, dtype="datetime64[ns]")


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y"}
    if value is None or (isinstance(value, float) and np.isnan(value)):
        return False
    return bool(value)


def empty_records() -> pd.DataFrame:
    """Empty normalized frame with the record dtypes."""
    out = pd.DataFrame({col: pd.Series(dtype=object) for col in RECORD_COLUMNS})
    out["amount"] = out["amount"].astype(float)
    out["date"] = pd.Series(dtype="datetime64[ns]")
    out["due_date"] = pd.Series(dtype="datetime64[ns]")
    return out


def _to_frame(records: RecordsInput) -> pd.DataFrame:
    if isinstance(records, pd.DataFrame):
        frame = records.copy()
    else:
        frame = pd.DataFrame([dict(record) for record in records])
    frame = frame.rename(columns={k: v for k, v in _COLUMN_ALIASES.items() if k in frame.columns})
    for col in RECORD_COLUMNS:
        if col not in frame.columns:
            frame[col] = None
    return frame


def normalize_with_count(records: RecordsInput) -> tuple[pd.DataFrame, int]:
    frame = _to_frame(records)
    if frame.empty:
        return empty_records(), 0

    out = frame.copy()
    out["amount"] = pd.to_numeric(out["amount"], errors="coerce")
    out["date"] = _parse_date_column(out["date"])
    out["due_date"] = _parse_date_column(out["due_date"])
    out["type"] = out["type"].fillna("").astype(str).str.strip().str.lower()
    out["category"] = out["category"].fillna("Other").astype(str)
    out["title"] = out["title"].fillna("").astype(str)
    out["currency"] = out["currency"].fillna("").astype(str).str.strip().str.upper()
    out["is_recurring"] = out["is_recurring"].map(_to_bool)
    out["recurring_frequency"] = out["recurring_frequency"].where(
        out["recurring_frequency"].isin(RECURRING_FREQUENCIES), None
    )
    out["bill_status"] = out["bill_status"].fillna("").astype(str).str.strip().str.lower()
    out["reminder_days"] = pd.to_numeric(out["reminder_days"], errors="coerce")

    valid = (
        out["date"].notna()
        & out["amount"].notna()
        & np.isfinite(out["amount"].fillna(0.0))
        & (out["amount"] > 0)
        & out["type"].isin(TRANSACTION_TYPES)
    )
    excluded = int((~valid).sum())
    if excluded:
        logger.warning("excluded %d malformed record(s) from aggregation", excluded)

    out = out.loc[valid, RECORD_COLUMNS + [c for c in out.columns if c not in RECORD_COLUMNS]]
    return out.sort_values("date", kind="stable").reset_index(drop=True), excluded


def normalize_records(records: RecordsInput) -> pd.DataFrame:
    """Return a clean, date-sorted copy of the records; malformed rows are dropped."""
    return normalize_with_count(records)[0]


def count_malformed(records: RecordsInput) -> int:
    """Number of records that normalization would exclude."""
    return normalize_with_count(records)[1]


def filter_by_date_range(df: pd.DataFrame, start_date, end_date) -> pd.DataFrame:
    """Filter normalized records in an inclusive date range."""
    if df.empty:
        return df.copy()
    mask = df["date"].dt.date.between(start_date, end_date)
    return df.loc[mask].copy()


def load_records(path: str | Path) -> list[dict[str, Any]]:
    """Load raw records from a CSV export or a JSON list / ``{"records": [...]}`` file."""
    target = Path(path).expanduser()
    name = target.name.lower()
    if not name.endswith(SUPPORTED_EXTENSIONS):
        raise ValueError(
            f"Unsupported file type: {name or '<unknown>'}. Supported: csv, json."
        )
    if name.endswith(".csv"):
        frame = pd.read_csv(target)
        frame = frame.astype(object).where(frame.notna(), None)
        return frame.to_dict(orient="records")
    payload = json.loads(target.read_text(encoding="utf-8"))
    if isinstance(payload, dict):
        payload = payload.get("records", [])
    if not isinstance(payload, list):
        raise ValueError(f"Expected a list of records in {target}")
    return [dict(item) for item in payload if isinstance(item, dict)]
