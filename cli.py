#!/usr/bin/env python3
"""Build an analytics report from a records file."""

from __future__ import annotations

import argparse
import datetime as dt
import logging
from pathlib import Path

from analytics import build_analytics_report, build_report_pack, report_to_json
from bills import bill_reminders, classify_bills
from currency import convert_records
from exchange_rates import make_rate_lookup
from periods import GRANULARITIES
from records import load_records, normalize_records
from settings import DEFAULT_SETTINGS_PATH, load_settings

logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Summarize a records file into dashboard analytics (JSON).")
    parser.add_argument("records", help="CSV or JSON file with one record per row / item.")
    parser.add_argument("--granularity", choices=GRANULARITIES, help="Bucket size (default from settings).")
    parser.add_argument("--sub-period", help="Month name, Q1-Q4, H1-H2 or a year. Defaults to the current one.")
    parser.add_argument("--currency", help="Display currency code (default from settings).")
    parser.add_argument(
        "--convert",
        action="store_true",
        help="Convert every record into --currency with live exchange rates before aggregating.",
    )
    parser.add_argument("--year", type=int, help="Heatmap year (defaults to the selected period's year).")
    parser.add_argument(
        "--today",
        type=dt.date.fromisoformat,
        help="Reference date YYYY-MM-DD used instead of the system date.",
    )
    parser.add_argument("--bills", action="store_true", help="Add overdue / upcoming bill alerts.")
    parser.add_argument("--settings", default=DEFAULT_SETTINGS_PATH, help="Settings JSON file.")
    parser.add_argument("--output", help="Write the JSON report here instead of stdout.")
    parser.add_argument("--pack", help="Also write a ZIP report pack to this path.")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(levelname)s %(name)s: %(message)s")

    settings = load_settings(args.settings)
    currency = (args.currency or settings["currency"]).upper()
    today = args.today or dt.date.today()

    raw = load_records(args.records)
    records = normalize_records(raw)
    if args.convert:
        records = convert_records(records, currency, make_rate_lookup())

    report = build_analytics_report(
        records,
        granularity=args.granularity or settings["granularity"],
        sub_period=args.sub_period,
        currency=currency,
        now=today,
        year=args.year,
        densify_heatmap=settings["densify_heatmap"],
    )
    report["meta"]["excluded_records"] += len(raw) - len(records)
    if args.bills:
        report["bills"] = {
            **classify_bills(raw, today, window_days=settings["bill_window_days"]),
            "reminders": bill_reminders(raw, today),
        }

    payload = report_to_json(report)
    if args.output:
        target = Path(args.output).expanduser()
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(payload, encoding="utf-8")
        logger.info("report written to %s", target)
    else:
        print(payload)

    if args.pack:
        pack_path = Path(args.pack).expanduser()
        pack_path.parent.mkdir(parents=True, exist_ok=True)
        pack_path.write_bytes(build_report_pack(report))
        logger.info("report pack written to %s", pack_path)


if __name__ == "__main__":
    main()
