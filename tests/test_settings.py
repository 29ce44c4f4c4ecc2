import json
from pathlib import Path

from settings import DEFAULT_SETTINGS, load_settings, save_settings


def test_settings_roundtrip(tmp_path: Path) -> None:
    target = tmp_path / "nested" / "settings.json"
    saved = save_settings(
        str(target),
        {"currency": "eur", "granularity": "Quarterly", "densify_heatmap": False, "bill_window_days": 14},
    )

    assert saved == target
    loaded = load_settings(str(target))
    assert loaded == {"currency": "EUR", "granularity": "quarterly", "densify_heatmap": False, "bill_window_days": 14}


def test_settings_missing_file_returns_defaults(tmp_path: Path) -> None:
    assert load_settings(str(tmp_path / "missing.json")) == DEFAULT_SETTINGS


def test_settings_invalid_values_fall_back(tmp_path: Path) -> None:
    target = tmp_path / "settings.json"
    target.write_text(
        json.dumps({"currency": "12", "granularity": "weekly", "densify_heatmap": "yes", "bill_window_days": -1}),
        encoding="utf-8",
    )
    assert load_settings(str(target)) == DEFAULT_SETTINGS
