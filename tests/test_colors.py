"""Unit tests for status colour codes."""

from __future__ import annotations

import pytest
from openpyxl import Workbook
from openpyxl.styles import PatternFill

from fieldmap_io.colors import StatusColor, fill_color_of, from_cell_fill, hex_to_argb, row_tint, to_code


def test_canonical_codes() -> None:
    assert to_code(StatusColor.YELLOW) == "FFE6A700"
    assert to_code(StatusColor.RED) == "FFF44336"
    assert to_code(StatusColor.GREEN) == "FF90EE90"
    assert to_code(StatusColor.DEFAULT) == "FFFFFFFF"
    assert to_code("yellow") == "FFE6A700"


@pytest.mark.parametrize("code", ["FFE6A700", "ffe6a700", "#E6A700", "e6a700"])
def test_from_cell_fill_accepts_code_variants(code: str) -> None:
    assert from_cell_fill(code) is StatusColor.YELLOW


@pytest.mark.parametrize("code", [None, "", "FF123456", "12345", 42])
def test_from_cell_fill_unknown(code) -> None:
    assert from_cell_fill(code) is None


def test_hex_to_argb_rejects_bad_input() -> None:
    assert hex_to_argb("#2a6bff") == "FF2A6BFF"
    with pytest.raises(ValueError):
        hex_to_argb("#abc")


def test_row_tint_prefers_yellow_over_red() -> None:
    wb = Workbook()
    ws = wb.active
    ws["A1"].fill = PatternFill(fill_type="solid", fgColor=to_code(StatusColor.RED))
    ws["B1"].fill = PatternFill(fill_type="solid", fgColor=to_code(StatusColor.YELLOW))
    ws["C1"].fill = PatternFill(fill_type="solid", fgColor=to_code(StatusColor.GREEN))

    assert fill_color_of(ws["C1"]) == "FF90EE90"
    assert fill_color_of(ws["D1"]) is None
    assert row_tint([ws["A1"], ws["C1"]]) is StatusColor.RED
    assert row_tint([ws["A1"], ws["B1"], ws["C1"]]) is StatusColor.YELLOW
    assert row_tint([ws["C1"], ws["D1"]]) is None
