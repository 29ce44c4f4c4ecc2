from datetime import date

import pytest

from periods import (
    bucket_records,
    current_bucket,
    default_sub_period,
    display_label,
    drilldown_buckets,
    period_comparison,
    period_date_range,
    period_label,
    resolve_year,
    savings_summary,
    savings_trend,
    sub_period_options,
)


def _records():
    return [
        {"category": "Salary", "type": "income", "amount": 1000, "date": "2025-07-01"},
        {"category": "Food", "type": "expense", "amount": 200, "date": "2025-07-14"},
        {"category": "Rent", "type": "bill", "amount": 300, "date": "2025-02-01"},
        {"category": "Salary", "type": "income", "amount": 900, "date": "2024-11-01"},
    ]


def test_default_sub_period_per_granularity() -> None:
    today = date(2026, 3, 15)
    assert default_sub_period("monthly", today) == "March"
    assert default_sub_period("quarterly", today) == "Q1"
    assert default_sub_period("half-yearly", today) == "H1"
    assert default_sub_period("yearly", today) == "2026"


def test_future_month_resolves_to_previous_year() -> None:
    today = date(2026, 3, 15)
    assert resolve_year("monthly", "November", today) == 2025
    assert resolve_year("monthly", "March", today) == 2026
    assert resolve_year("quarterly", "Q4", today) == 2026
    assert display_label("monthly", "November", today) == "November 2025"
    assert display_label("quarterly", "q2", today) == "Q2 2026"


def test_period_date_range_covers_whole_sub_period() -> None:
    assert period_date_range("half-yearly", "H2", date(2025, 9, 1)) == (date(2025, 7, 1), date(2025, 12, 31))
    assert period_date_range("monthly", "February", date(2024, 3, 1)) == (date(2024, 2, 1), date(2024, 2, 29))


def test_quarterly_buckets_place_july_in_q3() -> None:
    buckets = bucket_records(_records(), "quarterly", "Q3", now=date(2025, 8, 1))

    assert [bucket["label"] for bucket in buckets] == ["Q1", "Q2", "Q3", "Q4"]
    q3 = buckets[2]
    assert q3["income"] == 1000.0
    assert q3["expense"] == 200.0
    assert buckets[0]["expense"] == 300.0
    for bucket in buckets:
        assert bucket["net"] == bucket["income"] - bucket["expense"]


def test_monthly_buckets_cover_twelve_months() -> None:
    buckets = bucket_records(_records(), "monthly", "July", now=date(2025, 8, 1))
    assert len(buckets) == 12
    assert buckets[6] == {"label": "July", "income": 1000.0, "expense": 200.0, "net": 800.0}
    assert buckets[10]["income"] == 0.0


def test_yearly_buckets_one_per_year_present() -> None:
    buckets = bucket_records(_records(), "yearly", now=date(2025, 8, 1))
    assert [bucket["label"] for bucket in buckets] == ["2024", "2025"]
    assert buckets[0]["income"] == 900.0


def test_bucket_records_empty_and_idempotent() -> None:
    assert bucket_records([], "monthly", now=date(2025, 8, 1)) == []
    first = bucket_records(_records(), "half-yearly", "H2", now=date(2025, 8, 1))
    second = bucket_records(_records(), "half-yearly", "H2", now=date(2025, 8, 1))
    assert first == second


def test_unknown_granularity_raises() -> None:
    with pytest.raises(ValueError, match="Unsupported granularity"):
        bucket_records(_records(), "weekly")
    with pytest.raises(ValueError):
        default_sub_period("daily")


def test_current_bucket_matches_selection() -> None:
    buckets = bucket_records(_records(), "monthly", "July", now=date(2025, 8, 1))
    assert current_bucket(buckets, "monthly", "july")["label"] == "July"
    assert current_bucket(buckets, "monthly", now=date(2025, 7, 3))["income"] == 1000.0
    assert current_bucket([], "quarterly", "Q1") is None


def test_drilldown_monthly_uses_day_labels() -> None:
    days = drilldown_buckets(_records(), "monthly", "July", now=date(2025, 8, 1))

    assert len(days) == 31
    assert days[0]["label"] == "01/07"
    assert days[13] == {"label": "14/07", "income": 0.0, "expense": 200.0, "net": -200.0}

    active = drilldown_buckets(_records(), "monthly", "July", now=date(2025, 8, 1), active_only=True)
    assert [day["label"] for day in active] == ["01/07", "14/07"]


def test_drilldown_quarter_uses_month_names() -> None:
    months = drilldown_buckets(_records(), "quarterly", "Q3", now=date(2025, 8, 1))
    assert [month["label"] for month in months] == ["July", "August", "September"]


def test_savings_trend_target_is_ten_percent_above_savings() -> None:
    buckets = [
        {"label": "H1", "income": 500.0, "expense": 300.0, "net": 200.0},
        {"label": "H2", "income": 100.0, "expense": 250.0, "net": -150.0},
    ]
    trend = savings_trend(buckets)

    assert trend[0]["savings"] == 200.0
    assert trend[0]["target"] == pytest.approx(220.0)
    assert trend[1]["target"] == pytest.approx(-165.0)
    assert trend[1]["expenses"] == 250.0


def test_savings_summary_counts_periods() -> None:
    trend = savings_trend(
        [
            {"label": "Q1", "income": 500.0, "expense": 300.0, "net": 200.0},
            {"label": "Q2", "income": 0.0, "expense": 0.0, "net": 0.0},
            {"label": "Q3", "income": 100.0, "expense": 250.0, "net": -150.0},
        ]
    )
    summary = savings_summary(trend)

    assert summary["total_savings"] == 50.0
    assert summary["average_savings"] == pytest.approx(16.67)
    assert summary["positive_periods"] == 1
    assert summary["negative_periods"] == 1
    assert summary["active_periods"] == 2
    assert summary["best_period"] == {"label": "Q1", "savings": 200.0}
    assert summary["worst_period"] == {"label": "Q3", "savings": -150.0}
    assert savings_summary([])["best_period"] is None


def test_period_comparison_wraps_q1_to_previous_q4() -> None:
    records = [
        {"category": "Food", "type": "expense", "amount": 110, "date": "2025-01-10"},
        {"category": "Food", "type": "expense", "amount": 100, "date": "2024-10-10"},
    ]
    out = period_comparison(records, "quarterly", "Q1", now=date(2025, 2, 1))

    assert out["current_label"] == "Q1 2025"
    assert out["previous_label"] == "Q4 2024"
    assert [point["name"] for point in out["points"]] == ["January", "February", "March"]
    assert out["points"][0] == {"name": "January", "current": 110.0, "previous": 100.0}
    assert out["percentage_change"] == 10.0
    assert out["trend"] == "up"


def test_period_comparison_small_change_is_stable() -> None:
    records = [
        {"category": "Food", "type": "expense", "amount": 102, "date": "2025-03-03"},
        {"category": "Food", "type": "expense", "amount": 100, "date": "2025-02-03"},
    ]
    out = period_comparison(records, "monthly", "March", now=date(2025, 3, 20))

    assert out["previous_label"] == "February 2025"
    assert len(out["points"]) == 31
    assert out["points"][2] == {"name": "3", "current": 102.0, "previous": 100.0}
    assert out["points"][30]["previous"] == 0.0
    assert out["trend"] == "stable"


def test_period_comparison_without_previous_spend() -> None:
    records = [{"category": "Food", "type": "expense", "amount": 50, "date": "2025-06-01"}]
    out = period_comparison(records, "yearly", "2025", now=date(2025, 6, 2))

    assert out["previous_label"] == "2024"
    assert out["percentage_change"] == 0.0
    assert out["trend"] == "stable"


def test_period_label_per_granularity() -> None:
    day = date(2025, 7, 14)
    assert period_label(day, "monthly") == "July"
    assert period_label(day, "quarterly") == "Q3"
    assert period_label(day, "half-yearly") == "H2"
    assert period_label(day, "yearly") == "2025"


def test_sub_period_options_for_yearly_look_back() -> None:
    assert sub_period_options("yearly", date(2025, 1, 1), years_back=3) == ["2025", "2024", "2023"]
    assert sub_period_options("half-yearly") == ["H1", "H2"]


def test_savings_trend_is_repeatable_and_leaves_buckets_alone() -> None:
    buckets = bucket_records(_records(), "quarterly", "Q3", now=date(2025, 8, 1))
    snapshot = [dict(bucket) for bucket in buckets]

    assert savings_trend(buckets) == savings_trend(buckets)
    assert buckets == snapshot
