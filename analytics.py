"""Dashboard report: one call composing every analytics view."""

from __future__ import annotations

import datetime
import io
import json
import logging
import zipfile
from typing import Any

import pandas as pd

from categories import category_breakdown, top_categories
from heatmap import heatmap
from insights import category_insights, income_expense_insights, savings_insights
from periods import (
    bucket_records,
    current_bucket,
    default_sub_period,
    display_label,
    drilldown_buckets,
    period_comparison,
    period_date_range,
    resolve_year,
    savings_summary,
    savings_trend,
)
from records import RecordsInput, filter_by_date_range, normalize_with_count

logger = logging.getLogger(__name__)


def calculate_kpis(df: pd.DataFrame) -> dict[str, float]:
    """Headline totals over normalized records."""
    income = df.loc[df["type"] == "income", "amount"]
    expenses = df.loc[df["type"].isin(("expense", "bill")), "amount"]
    total_income = float(income.sum())
    total_expenses = float(expenses.sum())
    net = total_income - total_expenses
    tx_count = int(len(df))
    active_days = int(df["date"].dt.date.nunique()) if tx_count else 0

    if tx_count:
        calendar_days = int((df["date"].max() - df["date"].min()).days + 1)
    else:
        calendar_days = 0

    return {
        "total_income": total_income,
        "total_expenses": total_expenses,
        "net": net,
        "transactions": tx_count,
        "savings_rate": (net / total_income * 100.0) if total_income else 0.0,
        "active_days": active_days,
        "calendar_days": calendar_days,
        "avg_expense": float(expenses.mean()) if len(expenses) else 0.0,
        "largest_expense": float(expenses.max()) if len(expenses) else 0.0,
        "avg_expense_per_active_day": (total_expenses / active_days) if active_days else 0.0,
    }


def build_analytics_report(
    records: RecordsInput,
    granularity: str | None = None,
    sub_period: str | None = None,
    currency: str = "USD",
    now=None,
    year: int | None = None,
    densify_heatmap: bool = True,
    top_n: int = 5,
) -> dict[str, Any]:
    """Every dashboard view for one record set as a JSON-compatible dict.

    ``now`` is read once here when omitted and passed down, so all views agree
    on the current period.
    """
    today = now or datetime.date.today()
    if isinstance(today, datetime.datetime):
        today = today.date()
    granularity = granularity or "monthly"
    sub_period = sub_period or default_sub_period(granularity, today)

    df, excluded = normalize_with_count(records)
    logger.info(
        "building %s report for %s over %d record(s), %d excluded",
        granularity,
        sub_period,
        len(df),
        excluded,
    )

    in_period = filter_by_date_range(df, *period_date_range(granularity, sub_period, today))
    expense_shares = category_breakdown(in_period, "expense")
    income_shares = category_breakdown(in_period, "income")
    buckets = bucket_records(df, granularity, sub_period, now=today)
    trend = savings_trend(buckets)
    heatmap_year = year or resolve_year(granularity, sub_period, today)

    return {
        "meta": {
            "granularity": granularity,
            "sub_period": sub_period,
            "label": display_label(granularity, sub_period, today),
            "currency": currency,
            "generated_for": today.isoformat(),
            "records": int(len(df)),
            "excluded_records": excluded,
        },
        "kpis": calculate_kpis(df),
        "expense_breakdown": expense_shares,
        "top_expense_categories": top_categories(expense_shares, top_n),
        "income_breakdown": income_shares,
        "buckets": buckets,
        "current_bucket": current_bucket(buckets, granularity, sub_period, now=today),
        "drilldown": drilldown_buckets(df, granularity, sub_period, now=today),
        "savings_trend": trend,
        "savings_summary": savings_summary(trend),
        "comparison": period_comparison(df, granularity, sub_period, now=today),
        "heatmap": heatmap(df, heatmap_year, now=today, densify=densify_heatmap),
        "insights": {
            "category": category_insights(expense_shares),
            "income_expense": income_expense_insights(buckets, currency),
            "savings": savings_insights(trend, currency),
        },
    }


def report_to_json(report: dict[str, Any]) -> str:
    return json.dumps(report, indent=2, ensure_ascii=False)


def build_report_pack(report: dict[str, Any]) -> bytes:
    """Zip with the JSON report and CSV tables for spreadsheet use."""
    heatmap_days = pd.DataFrame(report["heatmap"]["days"])
    if not heatmap_days.empty:
        heatmap_days["categories"] = heatmap_days["categories"].map(", ".join)

    output = io.BytesIO()
    with zipfile.ZipFile(output, mode="w", compression=zipfile.ZIP_DEFLATED) as zf:
        zf.writestr("report.json", report_to_json(report))
        zf.writestr("buckets.csv", pd.DataFrame(report["buckets"]).to_csv(index=False))
        zf.writestr("savings_trend.csv", pd.DataFrame(report["savings_trend"]).to_csv(index=False))
        zf.writestr("expense_breakdown.csv", pd.DataFrame(report["expense_breakdown"]).to_csv(index=False))
        zf.writestr("heatmap_days.csv", heatmap_days.to_csv(index=False))
    return output.getvalue()
