"""Unit tests for workbook settings loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from fieldmap.config import load_settings
from fieldmap.core.errors import ConfigError


def test_bundled_defaults() -> None:
    settings = load_settings()
    assert settings.font_name == "Segoe UI"
    assert settings.header_fill_argb == "FF2A6BFF"
    assert settings.meta_sheet_state == "veryHidden"


def test_env_override(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "workbook.yaml"
    path.write_text("workbook:\n  blank_rows: 10\n  meta_sheet_state: hidden\n", encoding="utf-8")
    monkeypatch.setenv("FIELDMAP_CONFIG", str(path))

    settings = load_settings()
    assert settings.blank_rows == 10
    assert settings.meta_sheet_state == "hidden"
    assert settings.template_sheet == "Template"


@pytest.mark.parametrize(
    "payload",
    ["workbook:\n  header_fill_color: blue\n", "workbook:\n  unknown: 1\n", "- a\n", "workbook: [1]\n", "a: [\n"],
)
def test_invalid_settings(tmp_path: Path, payload: str) -> None:
    path = tmp_path / "workbook.yaml"
    path.write_text(payload, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_settings(path)


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_settings(tmp_path / "nope.yaml")
