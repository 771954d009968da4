"""Excel output helpers for the mapping workbook and the blank catalog template."""

# Module responsibilities:
# - Lay out the fixed 12-column mapping sheet from the field catalog and saved mappings.
# - Persist status colours as row fills and the selected schema token in a hidden sheet.
# - Produce the 6-column template handed to suppliers for filling in.

from __future__ import annotations

from io import BytesIO
from typing import Iterable, List, Optional, Sequence

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from .colors import ROW_TINTS, StatusColor, to_code
from .columns import MAPPING_COLUMNS, TEMPLATE_COLUMNS, ColumnSpec
from .errors import WorkbookEncodeError
from .hierarchy import label_for_target
from .index import MappingIndex
from .schema import FieldEntry, MappingRecord, TargetNode
from .settings import WorkbookSettings
from .utils.log import get_logger

logger = get_logger("workbook_writer")

_THIN = Side(style="thin")
_BORDER = Border(left=_THIN, right=_THIN, top=_THIN, bottom=_THIN)
_CENTER = Alignment(horizontal="center", vertical="center", wrap_text=True)

RowValues = Sequence[Optional[object]]


def _solid(argb: str) -> PatternFill:
    return PatternFill(fill_type="solid", fgColor=argb)


def _prepare_sheet(ws: Worksheet, columns: Sequence[ColumnSpec], settings: WorkbookSettings) -> None:
    ws.sheet_view.rightToLeft = settings.right_to_left
    for idx, spec in enumerate(columns, start=1):
        ws.column_dimensions[get_column_letter(idx)].width = spec.display_width()

    header_font = Font(
        name=settings.font_name,
        size=settings.font_size,
        bold=True,
        color=settings.header_text_argb,
    )
    header_fill = _solid(settings.header_fill_argb)
    for idx, spec in enumerate(columns, start=1):
        cell = ws.cell(row=1, column=idx, value=spec.header)
        cell.font = header_font
        cell.fill = header_fill
        cell.border = _BORDER
        cell.alignment = _CENTER
    ws.row_dimensions[1].height = settings.header_row_height


def _write_row(
    ws: Worksheet,
    row_idx: int,
    values: RowValues,
    width: int,
    settings: WorkbookSettings,
    *,
    row_fill: Optional[str] = None,
    last_fill: Optional[str] = None,
) -> None:
    body_font = Font(name=settings.font_name, size=settings.font_size)
    for col in range(1, width + 1):
        value = values[col - 1] if col - 1 < len(values) else None
        if isinstance(value, str):
            value = ILLEGAL_CHARACTERS_RE.sub("", value)
        if value == "":
            value = None
        cell = ws.cell(row=row_idx, column=col, value=value)
        if isinstance(value, str) and value.startswith("="):
            # Text, not a formula.
            cell.data_type = "s"
        cell.font = body_font
        cell.border = _BORDER
        cell.alignment = _CENTER
        if row_fill:
            cell.fill = _solid(row_fill)
    if last_fill:
        ws.cell(row=row_idx, column=width).fill = _solid(last_fill)


def _write_blank_rows(ws: Worksheet, width: int, settings: WorkbookSettings) -> None:
    for row_idx in range(2, 2 + settings.blank_rows):
        _write_row(ws, row_idx, (), width, settings)


def _target_values(node: Optional[TargetNode]) -> tuple[str, str, str]:
    if node is None:
        return "", "", ""
    return label_for_target(node), node.type or "", ", ".join(node.rules)


def _field_row(entry: FieldEntry, match: Optional[MappingRecord]) -> tuple[List[str], bool]:
    node = match.target_node if match else None
    has_target = bool(node is not None and node.has_target)
    target_label, target_type, target_rules = _target_values(node)
    values = [
        entry.name,
        entry.essence,
        entry.field_type,
        entry.dgh_note,
        target_label,
        target_type,
        target_rules,
        entry.always_returns,
        match.mapping_details if match else "",
        match.outputs if match else "",
        entry.notes,
        "",
    ]
    return values, has_target or entry.is_mapped


def _mapping_row(record: MappingRecord) -> List[str]:
    snapshot = record.field
    target_label, target_type, target_rules = _target_values(record.target_node)
    return [
        snapshot.name,
        snapshot.essence,
        snapshot.field_type,
        snapshot.dgh_note,
        target_label,
        target_type,
        target_rules,
        snapshot.always_returns,
        record.mapping_details,
        record.outputs,
        snapshot.notes,
        "",
    ]


def _last_cell_color(is_mapped: bool, tint: Optional[StatusColor]) -> str:
    if is_mapped:
        return to_code(StatusColor.GREEN)
    if tint is not None:
        return to_code(tint)
    return to_code(StatusColor.DEFAULT)


def build_mapping_workbook(
    fields: Sequence[FieldEntry],
    mappings: Sequence[MappingRecord] = (),
    schema_token: Optional[str] = None,
    *,
    raw_rows: Sequence[RowValues] = (),
    settings: Optional[WorkbookSettings] = None,
) -> Workbook:
    """Build the mapping workbook in memory.

    Rows come from ``fields`` when present, otherwise from ``raw_rows``,
    otherwise from ``mappings``; with none of them the sheet receives a block
    of blank bordered rows.
    """

    settings = settings or WorkbookSettings()
    width = len(MAPPING_COLUMNS)

    wb = Workbook()
    ws = wb.active
    ws.title = settings.mapping_sheet
    _prepare_sheet(ws, MAPPING_COLUMNS, settings)

    if fields:
        index = MappingIndex(mappings)
        mapped_count = 0
        for row_idx, entry in enumerate(fields, start=2):
            values, is_mapped = _field_row(entry, index.get(entry.key))
            tint = entry.status_color if entry.status_color in ROW_TINTS else None
            _write_row(
                ws,
                row_idx,
                values,
                width,
                settings,
                row_fill=to_code(tint) if tint else None,
                last_fill=_last_cell_color(is_mapped, tint),
            )
            mapped_count += int(is_mapped)
        logger.info(
            "Mapping rows written from field catalog",
            extra={"rows": len(fields), "mapped": mapped_count, "mappings": len(index)},
        )
    elif raw_rows:
        for row_idx, values in enumerate(raw_rows, start=2):
            _write_row(ws, row_idx, list(values), width, settings, last_fill=to_code(StatusColor.DEFAULT))
        logger.info("Mapping rows written from raw data", extra={"rows": len(raw_rows)})
    elif mappings:
        for row_idx, record in enumerate(mappings, start=2):
            _write_row(
                ws,
                row_idx,
                _mapping_row(record),
                width,
                settings,
                last_fill=_last_cell_color(record.target_node.has_target, None),
            )
        logger.info("Mapping rows written from saved mappings", extra={"rows": len(mappings)})
    else:
        _write_blank_rows(ws, width, settings)
        logger.info("No fields or mappings; wrote blank mapping rows", extra={"rows": settings.blank_rows})

    if schema_token:
        meta = wb.create_sheet(title=settings.meta_sheet)
        meta["A1"] = settings.meta_key
        meta["B1"] = schema_token
        meta.sheet_state = settings.meta_sheet_state

    return wb


def build_template_workbook(settings: Optional[WorkbookSettings] = None) -> Workbook:
    """Build the blank catalog template workbook."""

    settings = settings or WorkbookSettings()
    wb = Workbook()
    ws = wb.active
    ws.title = settings.template_sheet
    _prepare_sheet(ws, TEMPLATE_COLUMNS, settings)
    _write_blank_rows(ws, len(TEMPLATE_COLUMNS), settings)
    return wb


def workbook_to_bytes(wb: Workbook) -> bytes:
    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def encode_mapping_workbook(
    fields: Iterable[FieldEntry],
    mappings: Optional[Iterable[MappingRecord]] = None,
    schema_token: Optional[str] = None,
    *,
    raw_rows: Optional[Iterable[RowValues]] = None,
    settings: Optional[WorkbookSettings] = None,
) -> bytes:
    """Serialize the field catalog and its mappings into ``.xlsx`` bytes.

    Args:
        fields: Source-field catalog; authoritative for row order and count.
        mappings: Saved mappings; the latest per field identity is used.
        schema_token: Selected schema identifier, stored in the hidden meta sheet.
        raw_rows: Pre-built 12-column rows, used only when ``fields`` is empty.
        settings: Presentation settings; defaults apply when omitted.

    Returns:
        The workbook file content.

    Raises:
        WorkbookEncodeError: When any step fails; no partial output is produced.
    """

    try:
        wb = build_mapping_workbook(
            list(fields or ()),
            list(mappings or ()),
            schema_token or None,
            raw_rows=list(raw_rows or ()),
            settings=settings,
        )
        return workbook_to_bytes(wb)
    except Exception as exc:  # noqa: BLE001 - the encode is all-or-nothing
        logger.error("Failed to build mapping workbook", extra={"error": str(exc)})
        raise WorkbookEncodeError(f"Failed to build mapping workbook: {exc}") from exc


def encode_template(settings: Optional[WorkbookSettings] = None) -> bytes:
    """Serialize the blank catalog template into ``.xlsx`` bytes."""

    try:
        return workbook_to_bytes(build_template_workbook(settings))
    except Exception as exc:  # noqa: BLE001 - the encode is all-or-nothing
        logger.error("Failed to build template workbook", extra={"error": str(exc)})
        raise WorkbookEncodeError(f"Failed to build template workbook: {exc}") from exc
