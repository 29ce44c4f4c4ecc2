import io
import json
import zipfile
from datetime import date, datetime

import pandas as pd
import pytest

from analytics import build_analytics_report, build_report_pack, calculate_kpis, report_to_json
from records import normalize_records


def _sample_records():
    return [
        {"_id": "1", "title": "Salary", "category": "Salary", "type": "income", "amount": 3000, "currency": "USD", "date": "2025-03-01"},
        {"_id": "2", "title": "Groceries", "category": "Food", "type": "expense", "amount": 250, "currency": "USD", "date": "2025-03-02"},
        {"_id": "3", "title": "Dinner", "category": "Food", "type": "expense", "amount": 80, "currency": "USD", "date": "03/03/2025"},
        {"_id": "4", "title": "Rent", "category": "Housing", "type": "bill", "amount": 1200, "currency": "USD", "date": "2025-03-05"},
        {"_id": "5", "title": "Train", "category": "Transport", "type": "expense", "amount": 90, "currency": "USD", "date": "2025-02-20"},
        {"_id": "6", "title": "Broken", "category": "Food", "type": "expense", "amount": -1, "currency": "USD", "date": "2025-03-06"},
    ]


def test_calculate_kpis_counts_bills_as_expenses() -> None:
    kpis = calculate_kpis(normalize_records(_sample_records()))

    assert kpis["total_income"] == 3000.0
    assert kpis["total_expenses"] == 1620.0
    assert kpis["net"] == 1380.0
    assert kpis["transactions"] == 5
    assert kpis["savings_rate"] == pytest.approx(46.0)
    assert kpis["active_days"] == 5
    assert kpis["calendar_days"] == 14
    assert kpis["largest_expense"] == 1200.0


def test_build_analytics_report_sections() -> None:
    report = build_analytics_report(_sample_records(), "monthly", "March", currency="USD", now=date(2025, 3, 20))

    assert report["meta"]["label"] == "March 2025"
    assert report["meta"]["records"] == 5
    assert report["meta"]["excluded_records"] == 1
    assert report["current_bucket"] == {"label": "March", "income": 3000.0, "expense": 1530.0, "net": 1470.0}
    assert report["buckets"][1]["expense"] == 90.0
    assert [share["category"] for share in report["expense_breakdown"]] == ["Food"]
    assert report["income_breakdown"][0]["percent_of_total"] == 100.0
    assert report["comparison"]["previous_label"] == "February 2025"
    assert len(report["drilldown"]) == 31
    assert report["heatmap"]["stats"]["total_days"] == 79
    assert set(report["insights"]) == {"category", "income_expense", "savings"}


def test_build_analytics_report_defaults_from_now() -> None:
    report = build_analytics_report(_sample_records(), now=datetime(2025, 2, 21, 9, 30))

    assert report["meta"]["granularity"] == "monthly"
    assert report["meta"]["sub_period"] == "February"
    assert report["meta"]["generated_for"] == "2025-02-21"
    assert report["current_bucket"]["expense"] == 90.0


def test_category_breakdowns_follow_selected_sub_period() -> None:
    records = [
        {"category": "Rent", "type": "expense", "amount": 900, "date": "2025-01-05"},
        {"category": "Food", "type": "expense", "amount": 60, "date": "2025-03-05"},
        {"category": "Bonus", "type": "income", "amount": 500, "date": "2025-01-31"},
    ]

    march = build_analytics_report(records, "monthly", "March", now=date(2025, 3, 20))
    assert [share["category"] for share in march["expense_breakdown"]] == ["Food"]
    assert [share["category"] for share in march["top_expense_categories"]] == ["Food"]
    assert march["income_breakdown"] == []
    assert "Food" in march["insights"]["category"][0]["message"]

    quarter = build_analytics_report(records, "quarterly", "Q1", now=date(2025, 3, 20))
    assert [share["category"] for share in quarter["expense_breakdown"]] == ["Rent", "Food"]


def test_build_analytics_report_is_repeatable() -> None:
    records = _sample_records()
    first = build_analytics_report(records, "monthly", "March", now=date(2025, 3, 20))
    second = build_analytics_report(records, "monthly", "March", now=date(2025, 3, 20))
    assert first == second
    assert records == _sample_records()


def test_report_is_json_serializable() -> None:
    report = build_analytics_report(_sample_records(), "quarterly", "Q1", now=date(2025, 3, 20))
    payload = json.loads(report_to_json(report))

    assert payload["meta"]["label"] == "Q1 2025"
    assert payload["top_expense_categories"][0]["category"] == "Food"


def test_empty_report_does_not_raise() -> None:
    report = build_analytics_report([], "half-yearly", now=date(2025, 3, 20))

    assert report["buckets"] == []
    assert report["current_bucket"] is None
    assert report["expense_breakdown"] == []
    assert report["kpis"]["transactions"] == 0
    assert report["heatmap"]["days"] == []
    assert report["insights"]["savings"] == []
    assert json.loads(report_to_json(report))["comparison"]["trend"] == "stable"


def test_build_report_pack_contains_tables() -> None:
    report = build_analytics_report(_sample_records(), "monthly", "March", now=date(2025, 3, 20))
    pack = build_report_pack(report)

    with zipfile.ZipFile(io.BytesIO(pack)) as zf:
        names = set(zf.namelist())
        assert names == {
            "report.json",
            "buckets.csv",
            "savings_trend.csv",
            "expense_breakdown.csv",
            "heatmap_days.csv",
        }
        heat = pd.read_csv(io.BytesIO(zf.read("heatmap_days.csv")))
        assert "Food" in set(heat["categories"])
        assert json.loads(zf.read("report.json"))["meta"]["label"] == "March 2025"
