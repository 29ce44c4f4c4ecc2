"""Rule-based advisory messages derived from aggregated views.

Every rule is a fixed threshold heuristic. Rules are evaluated in order and do
not exclude each other; when none fires a single positive fallback message is
returned instead.
"""

from __future__ import annotations

import math
from typing import Any

from currency import format_amount

CONCENTRATION_SHARE = 0.4
HIGH_SHARE = 0.2
HIGH_SHARE_MAX_COUNT = 2
MIN_CATEGORY_VARIETY = 3
ABOVE_AVERAGE_FACTOR = 2.0
HEALTHY_INCOME_RATIO = 1.2
RECENT_WINDOW = 3
EXCELLENT_SAVINGS_RATE = 20.0
GOOD_SAVINGS_RATE = 10.0

INSIGHT_KINDS = ("category", "income-expense", "savings", "heatmap")


def _insight(label: str | None, message: str, severity: str) -> dict[str, Any]:
    return {"label": label, "message": message, "severity": severity}


def _plural(count: int, word: str, plural: str | None = None) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {plural or word + 's'}"


def category_insights(shares: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Concentration, variety and outlier checks on a category breakdown."""
    if not shares:
        return []
    total = float(sum(share["value"] for share in shares))
    if total <= 0:
        return []

    insights = []
    top = sorted(shares, key=lambda share: -share["value"])[0]
    if top["value"] / total > CONCENTRATION_SHARE:
        insights.append(
            _insight(
                "Concentration",
                f'Your highest category "{top["category"]}" represents '
                f'{top["value"] / total * 100:.1f}% of total. Consider diversifying.',
                "warning",
            )
        )

    high = [share for share in shares if share["value"] / total > HIGH_SHARE]
    if len(high) > HIGH_SHARE_MAX_COUNT:
        insights.append(
            _insight(
                "Allocation",
                f"You have {len(high)} categories each representing over 20%. Review your allocation.",
                "warning",
            )
        )

    if len(shares) < MIN_CATEGORY_VARIETY:
        insights.append(
            _insight(
                "Variety",
                f"You have only {_plural(len(shares), 'category', 'categories')}. "
                "Consider tracking more detailed categories.",
                "info",
            )
        )

    average = total / len(shares)
    above = [share for share in shares if share["value"] > average * ABOVE_AVERAGE_FACTOR]
    if above:
        insights.append(
            _insight(
                "Above average",
                f"{len(above)} {'category is' if len(above) == 1 else 'categories are'} "
                "significantly above average. Review for potential savings.",
                "info",
            )
        )

    return insights or [
        _insight("Balanced", "Your distribution looks balanced. Keep up the good work!", "success")
    ]


def income_expense_insights(buckets: list[dict[str, Any]], currency: str = "USD") -> list[dict[str, Any]]:
    """Net position, income/expense ratio and best/worst periods."""
    if not buckets:
        return []

    insights = []
    total_income = float(sum(bucket["income"] for bucket in buckets))
    total_expense = float(sum(bucket["expense"] for bucket in buckets))
    net = total_income - total_expense

    if net > 0:
        insights.append(
            _insight(
                "Net income",
                f"You have a positive net income of {format_amount(net, currency)} across all periods.",
                "success",
            )
        )
    elif net == 0:
        insights.append(
            _insight(
                "Net income",
                f"Your income and expenses break even at {format_amount(total_income, currency)} "
                "across all periods.",
                "warning",
            )
        )
    else:
        insights.append(
            _insight(
                "Net income",
                f"Your expenses exceed income by {format_amount(abs(net), currency)} across all periods. "
                "Consider reviewing your spending.",
                "warning",
            )
        )

    if total_income > 0 and total_expense > 0:
        ratio = total_income / total_expense
        if ratio < HEALTHY_INCOME_RATIO:
            insights.append(
                _insight(
                    "Income ratio",
                    f"Your income is only {ratio * 100:.1f}% of expenses. Aim for higher savings.",
                    "warning",
                )
            )
        else:
            insights.append(
                _insight(
                    "Income ratio",
                    f"Great job! Your income is {ratio * 100:.1f}% of expenses, "
                    "maintaining good financial health.",
                    "success",
                )
            )

    best = max(buckets, key=lambda bucket: bucket["net"])
    worst = min(buckets, key=lambda bucket: bucket["net"])
    if best["income"] > 0 or best["expense"] > 0:
        insights.append(
            _insight(
                "Best period",
                f'"{best["label"]}" was your best period with net income of '
                f'{format_amount(best["net"], currency)}.',
                "success",
            )
        )
    if worst["income"] > 0 or worst["expense"] > 0:
        insights.append(
            _insight(
                "Worst period",
                f'"{worst["label"]}" was your weakest period with net income of '
                f'{format_amount(worst["net"], currency)} and expenses of '
                f'{format_amount(worst["expense"], currency)}.',
                "warning",
            )
        )

    if len(buckets) > 1:
        insights.append(
            _insight(
                "Averages",
                f"Average income per period: {format_amount(total_income / len(buckets), currency)}, "
                f"average expenses per period: {format_amount(total_expense / len(buckets), currency)}.",
                "info",
            )
        )

    return insights or [
        _insight("Consistent", "Your financial data looks balanced across all periods.", "success")
    ]


def savings_insights(trend: list[dict[str, Any]], currency: str = "USD") -> list[dict[str, Any]]:
    """Totals, momentum, savings rate and consistency of a savings trend."""
    if not trend:
        return []

    insights = []
    count = len(trend)
    total_savings = float(sum(point["savings"] for point in trend))
    total_income = float(sum(point["income"] for point in trend))
    total_expenses = float(sum(point["expenses"] for point in trend))
    average = total_savings / count
    periods = _plural(count, "period")

    if total_savings > 0:
        insights.append(
            _insight(
                "Total savings",
                f"You've saved a total of {format_amount(total_savings, currency)} over the last {periods}!",
                "success",
            )
        )
    else:
        insights.append(
            _insight(
                "Total savings",
                f"Your total savings over the last {periods} is {format_amount(total_savings, currency)}.",
                "info",
            )
        )

    if average > 0:
        insights.append(
            _insight(
                "Average savings",
                f"Your average savings per period is {format_amount(average, currency)}.",
                "success",
            )
        )
    else:
        insights.append(
            _insight(
                "Average savings",
                f"Your average savings per period is {format_amount(average, currency)}. "
                "Consider reviewing your spending habits.",
                "warning",
            )
        )

    best = max(trend, key=lambda point: point["savings"])
    worst = min(trend, key=lambda point: point["savings"])
    if best["savings"] > 0:
        insights.append(
            _insight(
                "Best period",
                f'"{best["label"]}" was your best period with {format_amount(best["savings"], currency)} saved.',
                "success",
            )
        )
    if worst["savings"] < average:
        insights.append(
            _insight(
                "Worst period",
                f'"{worst["label"]}" had the lowest savings at {format_amount(worst["savings"], currency)}.',
                "warning",
            )
        )

    recent = trend[-RECENT_WINDOW:]
    recent_average = sum(point["savings"] for point in recent) / len(recent)
    if not math.isclose(recent_average, average, rel_tol=1e-9, abs_tol=1e-9):
        if recent_average > average:
            insights.append(
                _insight(
                    "Momentum",
                    f"Your recent {RECENT_WINDOW}-period average ({format_amount(recent_average, currency)}) "
                    f"is above your overall average ({format_amount(average, currency)}) - great momentum!",
                    "success",
                )
            )
        else:
            insights.append(
                _insight(
                    "Momentum",
                    f"Your recent {RECENT_WINDOW}-period average ({format_amount(recent_average, currency)}) "
                    f"is below your overall average ({format_amount(average, currency)}) - "
                    "consider adjusting your strategy.",
                    "warning",
                )
            )

    if total_income > 0 and total_expenses > 0:
        rate = total_savings / total_income * 100.0
        if rate > EXCELLENT_SAVINGS_RATE:
            insights.append(
                _insight("Savings rate", f"Excellent! You're saving {rate:.1f}% of your income.", "success")
            )
        elif rate >= GOOD_SAVINGS_RATE:
            insights.append(_insight("Savings rate", f"Good! You're saving {rate:.1f}% of your income.", "info"))
        else:
            insights.append(
                _insight(
                    "Savings rate",
                    f"You're saving {rate:.1f}% of your income. Consider increasing your savings rate.",
                    "warning",
                )
            )

    positive = sum(1 for point in trend if point["savings"] > 0)
    negative = sum(1 for point in trend if point["savings"] < 0)
    if positive > negative:
        insights.append(
            _insight(
                "Consistency",
                f"You had {_plural(positive, 'positive period')} vs {_plural(negative, 'negative period')} "
                "- great consistency!",
                "success",
            )
        )
    else:
        insights.append(
            _insight(
                "Consistency",
                f"You had {_plural(negative, 'negative period')} vs {_plural(positive, 'positive period')} "
                "- focus on improving your savings.",
                "warning",
            )
        )

    return insights or [_insight("Consistent", "Your savings data shows consistent progress.", "success")]


def heatmap_insights(stats: dict[str, Any]) -> list[dict[str, Any]]:
    """Activity summary cards; day totals are always present."""
    insights = [
        _insight("Total Days", str(int(stats.get("total_days", 0))), "info"),
        _insight("Active Days", str(int(stats.get("active_days", 0))), "success"),
    ]
    if stats.get("total_days", 0) > 0:
        insights.append(_insight("Activity Rate", f"{float(stats.get('activity_rate', 0.0)):.1f}%", "info"))
    peak = stats.get("peak_day")
    if peak and peak.get("count", 0) > 0:
        insights.append(_insight("Peak Activity", f"{peak['count']} on {peak['date']}", "success"))
    if stats.get("max_streak", 0) > 0:
        insights.append(_insight("Longest Streak", _plural(int(stats["max_streak"]), "day"), "info"))
    if stats.get("current_streak", 0) > 0:
        insights.append(_insight("Current Streak", _plural(int(stats["current_streak"]), "day"), "success"))
    return insights


def generate_insights(kind: str, data: Any, currency: str = "USD") -> list[dict[str, Any]]:
    """Dispatch to the rule set for one view kind."""
    if kind == "category":
        return category_insights(data)
    if kind == "income-expense":
        return income_expense_insights(data, currency)
    if kind == "savings":
        return savings_insights(data, currency)
    if kind == "heatmap":
        return heatmap_insights(data)
    raise ValueError(f"Unsupported insight kind: {kind}. Supported: {', '.join(INSIGHT_KINDS)}.")
