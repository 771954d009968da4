"""Unit tests for mapping and template workbook generation."""

# Module responsibilities:
# - Validate the fixed column layout, styling and hidden schema sheet.
# - Cover row-source precedence and the colour channel of generated rows.

from __future__ import annotations

from io import BytesIO

import pytest
from openpyxl import load_workbook

from fieldmap_io.colors import StatusColor, fill_color_of
from fieldmap_io.columns import MAPPING_COLUMNS, TEMPLATE_COLUMNS
from fieldmap_io.errors import WorkbookEncodeError
from fieldmap_io.schema import FieldEntry, FieldSnapshot, MappingRecord, TargetNode
from fieldmap_io.settings import WorkbookSettings
from fieldmap_io.workbook_reader import decode_mapping_workbook
from fieldmap_io.workbook_writer import encode_mapping_workbook, encode_template

LAST = len(MAPPING_COLUMNS)


def _open(data: bytes):
    return load_workbook(BytesIO(data))


def test_mapping_layout_and_meta_sheet(sample_fields, imsi_mapping) -> None:
    data = encode_mapping_workbook(sample_fields, [imsi_mapping], "schema-v2")
    wb = _open(data)

    assert wb.sheetnames == ["mapping", "__meta"]
    ws = wb["mapping"]
    assert [ws.cell(row=1, column=idx).value for idx in range(1, LAST + 1)] == [
        spec.header for spec in MAPPING_COLUMNS
    ]
    assert ws.sheet_view.rightToLeft is True
    assert ws.column_dimensions["A"].width == 33
    assert ws.column_dimensions["E"].width == 50
    assert ws.row_dimensions[1].height == 50
    assert ws["A1"].font.bold is True
    assert fill_color_of(ws["A1"]) == "FF2A6BFF"
    assert ws.max_row == 1 + len(sample_fields)

    meta = wb["__meta"]
    assert meta.sheet_state == "veryHidden"
    assert meta["A1"].value == "schemaKey"
    assert meta["B1"].value == "schema-v2"


def test_no_meta_sheet_without_token(sample_fields) -> None:
    wb = _open(encode_mapping_workbook(sample_fields))
    assert wb.sheetnames == ["mapping"]


def test_mapped_row_reads_hierarchy_and_is_green(sample_fields, imsi_mapping) -> None:
    ws = _open(encode_mapping_workbook(sample_fields, [imsi_mapping]))["mapping"]

    imsi_row = 3
    assert ws.cell(row=imsi_row, column=1).value == "IMSI"
    assert ws.cell(row=imsi_row, column=5).value == "subscriber -> imsi"
    assert ws.cell(row=imsi_row, column=6).value == "string"
    assert ws.cell(row=imsi_row, column=7).value == "required, len:15"
    assert ws.cell(row=imsi_row, column=9).value == "copy as is"
    assert ws.cell(row=imsi_row, column=10).value == "CDR, XDR"
    assert fill_color_of(ws.cell(row=imsi_row, column=LAST)) == "FF90EE90"
    assert fill_color_of(ws.cell(row=imsi_row, column=1)) is None


def test_tinted_rows(sample_fields) -> None:
    ws = _open(encode_mapping_workbook(sample_fields))["mapping"]

    # Phone is yellow, Age is red; neither is mapped.
    for col in range(1, LAST + 1):
        assert fill_color_of(ws.cell(row=2, column=col)) == "FFE6A700"
        assert fill_color_of(ws.cell(row=4, column=col)) == "FFF44336"
    assert fill_color_of(ws.cell(row=3, column=LAST)) == "FFFFFFFF"
    assert ws.cell(row=2, column=2).value == "Contact number"
    assert ws.cell(row=2, column=3).value == "String"
    assert ws.cell(row=2, column=12).value is None


def test_latest_mapping_wins(sample_fields, imsi_mapping) -> None:
    newer = MappingRecord(
        target_node=TargetNode(id="n", name="imsi2", path="subscriber.ids.imsi2"),
        field=FieldSnapshot(name="IMSI", field_type="String"),
        timestamp=imsi_mapping.timestamp.replace(year=2025),
    )
    ws = _open(encode_mapping_workbook(sample_fields, [newer, imsi_mapping]))["mapping"]
    assert ws.cell(row=3, column=5).value == "subscriber -> ids -> imsi2"


def test_mappings_used_when_catalog_empty(imsi_mapping) -> None:
    ws = _open(encode_mapping_workbook([], [imsi_mapping]))["mapping"]
    assert ws.max_row == 2
    assert ws["A2"].value == "IMSI"
    assert ws["E2"].value == "subscriber -> imsi"
    assert fill_color_of(ws.cell(row=2, column=LAST)) == "FF90EE90"


def test_raw_rows_take_precedence_over_mappings(imsi_mapping) -> None:
    raw = [["Raw", "", "String", "", "a -> b", "", "", "", "", "", "", ""]]
    ws = _open(encode_mapping_workbook([], [imsi_mapping], raw_rows=raw))["mapping"]
    assert ws.max_row == 2
    assert ws["A2"].value == "Raw"
    assert ws["E2"].value == "a -> b"


def test_blank_rows_when_nothing_to_write() -> None:
    settings = WorkbookSettings(blank_rows=5)
    ws = _open(encode_mapping_workbook([], settings=settings))["mapping"]
    assert ws.max_row == 6
    assert all(ws.cell(row=row, column=1).value is None for row in range(2, 7))
    assert ws.cell(row=6, column=1).border.left.style == "thin"


def test_formula_like_text_is_stored_as_text() -> None:
    fields = [FieldEntry(id="1", name="=SUM(A1:A2)", field_type="String")]
    ws = _open(encode_mapping_workbook(fields))["mapping"]
    assert ws["A2"].value == "=SUM(A1:A2)"
    assert ws["A2"].data_type == "s"


def test_encode_failure_is_wrapped() -> None:
    with pytest.raises(WorkbookEncodeError):
        encode_mapping_workbook([object()])  # type: ignore[list-item]


def test_template_layout() -> None:
    wb = _open(encode_template())
    assert wb.sheetnames == ["Template"]
    ws = wb["Template"]
    assert [ws.cell(row=1, column=idx).value for idx in range(1, 7)] == [spec.header for spec in TEMPLATE_COLUMNS]
    assert ws.max_row == 51
    assert ws.max_column == 6
    assert fill_color_of(ws["F1"]) == "FF2A6BFF"


def test_colour_enum_is_written_not_name() -> None:
    fields = [FieldEntry(id="1", name="X", field_type="T", status_color=StatusColor.GREEN)]
    ws = _open(encode_mapping_workbook(fields))["mapping"]
    # A green status is not a row tint.
    assert fill_color_of(ws["A2"]) is None


def test_control_characters_are_dropped() -> None:
    fields = [FieldEntry(id="1", name="Phone", field_type="String", notes="line\x0bbreak\x00")]
    ws = _open(encode_mapping_workbook(fields))["mapping"]
    assert ws["K2"].value == "linebreak"


def test_mapped_flag_alone_paints_last_cell_green() -> None:
    fields = [FieldEntry(id="1", name="Phone", field_type="String", is_mapped=True)]
    ws = _open(encode_mapping_workbook(fields))["mapping"]
    assert ws["E2"].value is None
    assert fill_color_of(ws.cell(row=2, column=LAST)) == "FF90EE90"
    assert fill_color_of(ws["A2"]) is None


def test_tinted_mapped_row_keeps_tint_and_green_marker(imsi_mapping) -> None:
    fields = [FieldEntry(id="1", name="IMSI", field_type="String", status_color=StatusColor.RED)]
    data = encode_mapping_workbook(fields, [imsi_mapping])
    ws = _open(data)["mapping"]

    for col in range(1, LAST):
        assert fill_color_of(ws.cell(row=2, column=col)) == "FFF44336"
    assert fill_color_of(ws.cell(row=2, column=LAST)) == "FF90EE90"

    decoded = decode_mapping_workbook(data).merged_fields[0]
    assert decoded.is_mapped is True
    assert decoded.status_color is StatusColor.RED
