"""Workbook actions behind the mapping panel: downloads, uploads and field edits."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence

from fieldmap.core.errors import FieldMapError
from fieldmap.core.events import (
    FieldsUploaded,
    MappingsCleared,
    MappingsImported,
    Notifier,
    SchemaSelected,
    Severity,
)
from fieldmap.core.logger import get_logger
from fieldmap.core.registry import FieldRegistry
from fieldmap_io.colors import StatusColor
from fieldmap_io.errors import WorkbookError
from fieldmap_io.hierarchy import label_for_target
from fieldmap_io.schema import DecodeResult, FieldEntry, FieldKey, MappingRecord
from fieldmap_io.settings import WorkbookSettings
from fieldmap_io.workbook_reader import decode_mapping_workbook, ensure_supported, read_template_fields
from fieldmap_io.workbook_writer import RowValues, encode_mapping_workbook, encode_template

MappingSource = Callable[[], Sequence[MappingRecord]]
SchemaSource = Callable[[], Optional[str]]

ANNOTATION_LABELS = {
    "essence": "Field Essence",
    "dgh_note": "DGH Note",
    "always_returns": "Always Returns",
    "notes": "Notes",
}

OK_DURATION_MS = 2500
IMPORT_DURATION_MS = 4000
ERROR_DURATION_MS = 5000


class WorkbookService:
    """Coordinate the field registry with the workbook encoder and decoder.

    Saved mappings and the selected schema belong to the host application and
    are read through ``mapping_source`` and ``schema_source`` when a download
    is requested. Every action reports its outcome as a status event; fatal
    errors are reported once and re-raised.
    """

    def __init__(
        self,
        registry: FieldRegistry | None = None,
        notifier: Notifier | None = None,
        *,
        mapping_source: MappingSource | None = None,
        schema_source: SchemaSource | None = None,
        settings: WorkbookSettings | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.registry = registry if registry is not None else FieldRegistry()
        self.notifier = notifier if notifier is not None else Notifier()
        self.mapping_source = mapping_source
        self.schema_source = schema_source
        self.settings = settings or WorkbookSettings()
        self.logger = logger or get_logger()

    # ------------------------------------------------------------------
    def _fail(self, message: str, exc: Exception) -> None:
        self.logger.error("workbook.service %s: %s", message, exc, exc_info=True)
        self.notifier.status(f"{message}: {exc}", Severity.ERROR, ERROR_DURATION_MS)

    def _saved_mappings(self) -> List[MappingRecord]:
        if self.mapping_source is None:
            return []
        return list(self.mapping_source() or ())

    def _selected_schema(self) -> Optional[str]:
        if self.schema_source is None:
            return None
        return self.schema_source() or None

    # ------------------------------------------------------------------
    def download_template(self) -> bytes:
        """Return the blank catalog template."""

        try:
            data = encode_template(self.settings)
        except WorkbookError as exc:
            self._fail("Failed to generate template", exc)
            raise
        self.notifier.status("Template downloaded", Severity.OK, OK_DURATION_MS)
        return data

    def download_mapping(self, raw_rows: Sequence[RowValues] | None = None) -> bytes:
        """Return the mapping workbook for the current registry and saved mappings."""

        fields = self.registry.snapshot()
        mappings = self._saved_mappings()
        schema_token = self._selected_schema()
        try:
            data = encode_mapping_workbook(
                fields,
                mappings,
                schema_token,
                raw_rows=raw_rows,
                settings=self.settings,
            )
        except WorkbookError as exc:
            self._fail("Failed to download mapping excel", exc)
            raise
        self.logger.info(
            "workbook.service mapping_downloaded fields=%d mappings=%d schema=%s",
            len(fields),
            len(mappings),
            schema_token or "-",
        )
        self.notifier.status(
            f"Mapping excel downloaded ({len(fields)} fields)", Severity.OK, OK_DURATION_MS
        )
        return data

    def upload_template(self, data: bytes, filename: str) -> List[FieldEntry]:
        """Replace the registry with the fields of a filled template.

        An empty template leaves the registry unchanged and is reported as an
        error status.
        """

        try:
            ensure_supported(filename)
            fields = read_template_fields(data)
            if fields:
                self.registry.replace(fields)
        except Exception as exc:  # noqa: BLE001 - user feedback path
            self._fail("Failed to process Excel file", exc)
            raise

        if not fields:
            self.notifier.status("Excel is empty or could not be read", Severity.ERROR, ERROR_DURATION_MS)
            return []

        self.notifier.publish(FieldsUploaded(count=len(fields)))
        self.notifier.status(
            f"Excel uploaded: {len(fields)} fields extracted", Severity.OK, IMPORT_DURATION_MS
        )
        return fields

    def upload_mapping(self, data: bytes, filename: str) -> DecodeResult:
        """Decode a mapping workbook and install the merged catalog.

        The registry is swapped only after the whole file decoded; a registry
        change during the decode aborts the import.
        """

        try:
            ensure_supported(filename)
            base_version = self.registry.version
            result = decode_mapping_workbook(data, self.registry.snapshot(), settings=self.settings)
            self.registry.replace(result.merged_fields, expected_version=base_version)
        except Exception as exc:  # noqa: BLE001 - user feedback path
            self._fail("Failed to parse mapping Excel", exc)
            raise

        if result.mappings:
            self.notifier.publish(MappingsImported(mappings=tuple(result.mappings)))
        if result.schema_token:
            self.notifier.publish(SchemaSelected(token=result.schema_token))
        self.logger.info(
            "workbook.service mapping_uploaded file=%s fields=%d mappings=%d skipped=%d",
            filename,
            len(result.merged_fields),
            len(result.mappings),
            result.skipped_rows,
        )
        self.notifier.status(
            f"Mapping file loaded: {len(result.merged_fields)} fields refreshed",
            Severity.OK,
            IMPORT_DURATION_MS,
        )
        return result

    # ------------------------------------------------------------------
    def record_mapping_saved(self, record: MappingRecord) -> Optional[FieldEntry]:
        """Mark the source field of a freshly saved mapping as mapped.

        The field keeps its status colour. Mappings without a target name or
        path, and mappings for fields outside the registry, are ignored.
        """

        if not record.target_node.has_target:
            self.logger.debug("workbook.service mapping_saved_without_target field=%s", record.field.name)
            return None
        if record.key not in self.registry:
            self.logger.debug("workbook.service mapping_saved_unknown field=%s", record.field.name)
            return None
        return self.registry.mark_mapped(record.key, label_for_target(record.target_node))

    def update_annotation(self, key: FieldKey, attribute: str, value: str) -> FieldEntry:
        try:
            entry = self.registry.update_annotation(key, attribute, value)
        except FieldMapError as exc:
            self._fail("Failed to update field", exc)
            raise
        label = ANNOTATION_LABELS.get(attribute, attribute)
        if getattr(entry, attribute):
            message = f'{label} updated for "{entry.name}"'
        else:
            message = f'{label} cleared for "{entry.name}"'
        self.notifier.status(message, Severity.OK, OK_DURATION_MS)
        return entry

    def change_color(self, key: FieldKey, color: StatusColor | str) -> FieldEntry:
        try:
            entry = self.registry.set_color(key, color)
        except FieldMapError as exc:
            self._fail("Failed to change field color", exc)
            raise
        self.notifier.status(
            f'Field "{entry.name}" color changed to {entry.status_color.value}',
            Severity.OK,
            OK_DURATION_MS,
        )
        return entry

    def clear(self) -> None:
        """Empty the registry and tell the host to drop its saved mappings."""

        self.registry.clear()
        self.notifier.publish(MappingsCleared())
        self.notifier.status("All fields and mappings cleared", Severity.OK, OK_DURATION_MS)
