"""Excel input helpers for mapping workbooks and filled catalog templates."""

# Module responsibilities:
# - Decode uploaded mapping workbooks into a merged catalog plus mapping history.
# - Read filled templates into fresh catalog entries via pandas.
# - Keep structural failures fatal and cell-level oddities harmless.

from __future__ import annotations

from datetime import date, datetime, timezone
from io import BytesIO
from pathlib import PurePath
from typing import Dict, Iterable, List, Optional, Sequence

import pandas as pd
from openpyxl import Workbook, load_workbook
from openpyxl.cell.rich_text import CellRichText
from openpyxl.worksheet.worksheet import Worksheet

from .colors import row_tint
from .columns import MAPPING_COLUMNS, TEMPLATE_COLUMNS, missing_columns, resolve_columns
from .errors import UnsupportedFileError, WorkbookFormatError
from .merge import PLACEHOLDER_NAME_PREFIX, CatalogMerge, ParsedRow
from .schema import DecodeResult, FieldEntry, FieldKey, MappingRecord
from .settings import WorkbookSettings
from .utils.log import get_logger

logger = get_logger("workbook_reader")

SUPPORTED_SUFFIXES: tuple[str, ...] = (".xlsx", ".xlsm")


def ensure_supported(filename: str) -> None:
    """Reject uploads whose extension the decoder cannot read."""

    suffix = PurePath(filename).suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        allowed = ", ".join(SUPPORTED_SUFFIXES)
        raise UnsupportedFileError(f"Unsupported file type {suffix or filename!r}. Allowed: {allowed}")


def cell_text(value: object) -> str:
    """Coerce any cell value to stripped text; empty cells become ``""``."""

    if value is None:
        return ""
    if isinstance(value, CellRichText):
        return str(value).strip()
    if isinstance(value, float):
        if value != value:  # NaN
            return ""
        if value.is_integer():
            return str(int(value))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value).strip()


def _load(data: bytes) -> Workbook:
    if not data:
        raise WorkbookFormatError("Uploaded workbook is empty")
    try:
        return load_workbook(BytesIO(data), rich_text=True)
    except Exception as exc:  # noqa: BLE001 - openpyxl raises many types for unreadable input
        logger.error("Failed to open workbook", extra={"error": str(exc), "size": len(data)})
        raise WorkbookFormatError(f"Unreadable workbook: {exc}") from exc


def read_schema_token(wb: Workbook, settings: Optional[WorkbookSettings] = None) -> Optional[str]:
    """Return the schema token stored in the hidden meta sheet, if any."""

    settings = settings or WorkbookSettings()
    if settings.meta_sheet not in wb.sheetnames:
        logger.debug("No meta sheet in workbook", extra={"sheet": settings.meta_sheet})
        return None
    token = cell_text(wb[settings.meta_sheet]["B1"].value)
    return token or None


def _primary_sheet(wb: Workbook, settings: WorkbookSettings) -> Worksheet:
    for ws in wb.worksheets:
        if ws.title != settings.meta_sheet:
            return ws
    raise WorkbookFormatError("No worksheet found in uploaded mapping file")


def _extract(cells: Sequence[object], resolved: Dict[str, Optional[int]]) -> Dict[str, str]:
    values: Dict[str, str] = {}
    for key, idx in resolved.items():
        if idx is None or idx >= len(cells):
            values[key] = ""
        else:
            values[key] = cell_text(getattr(cells[idx], "value", None))
    return values


def decode_mapping_workbook(
    data: bytes,
    existing: Iterable[FieldEntry] = (),
    *,
    now: Optional[datetime] = None,
    settings: Optional[WorkbookSettings] = None,
) -> DecodeResult:
    """Decode a mapping workbook and merge it into a copy of ``existing``.

    Args:
        data: Raw ``.xlsx`` content.
        existing: Current catalog; entries are copied, never mutated.
        now: Timestamp stamped on the reconstructed mapping records.
        settings: Sheet naming; defaults apply when omitted.

    Returns:
        Merged catalog, one mapping record per non-empty row, and the schema
        token from the hidden meta sheet.

    Raises:
        WorkbookFormatError: When the bytes are unreadable or hold no worksheet.
    """

    settings = settings or WorkbookSettings()
    wb = _load(data)
    try:
        schema_token = read_schema_token(wb, settings)
        ws = _primary_sheet(wb, settings)

        header = [cell.value for cell in next(ws.iter_rows(min_row=1, max_row=1), ())]
        resolved = resolve_columns(header, MAPPING_COLUMNS)
        absent = missing_columns(resolved)
        if absent:
            logger.warning("Mapping sheet lacks columns", extra={"sheet": ws.title, "missing": absent})

        merge = CatalogMerge(existing)
        stamp = now or datetime.now(timezone.utc)
        mappings: List[MappingRecord] = []
        skipped = 0
        row_number = 1
        try:
            for row_number, cells in enumerate(ws.iter_rows(min_row=2), start=2):
                row = ParsedRow.from_values(_extract(cells, resolved), tint=row_tint(cells))
                if row.is_empty:
                    skipped += 1
                    continue
                merge.apply(row)
                mappings.append(row.to_mapping_record(row_number, stamp))
        except Exception as exc:  # noqa: BLE001 - any row failure aborts the whole decode
            logger.error("Failed to decode mapping row", extra={"row": row_number, "error": str(exc)})
            raise WorkbookFormatError(f"Failed to decode row {row_number}: {exc}") from exc
    finally:
        wb.close()

    merged = merge.entries()
    logger.info(
        "Mapping workbook decoded",
        extra={
            "fields": len(merged),
            "new_fields": merge.created,
            "updated_fields": merge.updated,
            "mappings": len(mappings),
            "skipped": skipped,
            "schema_token": schema_token,
        },
    )
    return DecodeResult(
        merged_fields=merged,
        mappings=mappings,
        schema_token=schema_token,
        skipped_rows=skipped,
    )


def read_template_fields(data: bytes) -> List[FieldEntry]:
    """Read a filled catalog template into new field entries.

    Columns are taken by position (name, type, essence, DGH note,
    always-returns, notes). Blank rows are skipped; a repeated identity keeps
    its first row.

    Raises:
        WorkbookFormatError: When the bytes cannot be parsed as a workbook.
    """

    if not data:
        raise WorkbookFormatError("Uploaded template is empty")
    try:
        frame = pd.read_excel(
            BytesIO(data),
            sheet_name=0,
            header=0,
            dtype=str,
            keep_default_na=False,
            engine="openpyxl",
        )
    except Exception as exc:  # noqa: BLE001 - pandas/openpyxl raise many types for unreadable input
        logger.error("Failed to read template workbook", extra={"error": str(exc)})
        raise WorkbookFormatError(f"Unreadable template workbook: {exc}") from exc

    width = len(TEMPLATE_COLUMNS)
    rows: List[List[str]] = []
    try:
        for record in frame.itertuples(index=False, name=None):
            values = [cell_text(record[idx]) if idx < len(record) else "" for idx in range(width)]
            if any(values):
                rows.append(values)
    except Exception as exc:  # noqa: BLE001 - any row failure aborts the whole read
        logger.error("Failed to read template rows", extra={"error": str(exc)})
        raise WorkbookFormatError(f"Failed to read template rows: {exc}") from exc

    entries: Dict[FieldKey, FieldEntry] = {}
    for serial, (name, field_type, essence, dgh_note, always_returns, notes) in enumerate(rows, start=1):
        entry = FieldEntry(
            id=f"excel-{serial}",
            name=name or f"{PLACEHOLDER_NAME_PREFIX}{serial}",
            field_type=field_type,
            essence=essence,
            dgh_note=dgh_note,
            always_returns=always_returns,
            notes=notes,
        )
        entries.setdefault(entry.key, entry)

    duplicates = len(rows) - len(entries)
    if duplicates:
        logger.warning("Template repeats field identities", extra={"duplicates": duplicates})
    logger.info("Template fields extracted", extra={"rows": len(rows), "fields": len(entries)})
    return list(entries.values())
