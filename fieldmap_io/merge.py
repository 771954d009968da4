"""Reconciliation of decoded mapping rows with an existing field catalog."""

# Module responsibilities:
# - Normalize one decoded workbook row into a typed record.
# - Merge rows into a private copy of the catalog: existing values beat blanks,
#   new identities get deterministic synthetic ids.

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional

from .colors import StatusColor
from .hierarchy import from_label, to_label
from .schema import FieldEntry, FieldKey, FieldSnapshot, MappingRecord, TargetNode

IMPORTED_ID_PREFIX = "imported-"
PLACEHOLDER_NAME_PREFIX = "Field_"


@dataclass(frozen=True)
class ParsedRow:
    """One non-header row of the mapping sheet with every cell coerced to text."""

    source_name: str = ""
    essence: str = ""
    source_type: str = ""
    dgh_note: str = ""
    target_label: str = ""
    target_type: str = ""
    target_rules: str = ""
    always_returns: str = ""
    mapping_details: str = ""
    outputs: str = ""
    notes: str = ""
    stream_from_supplier: str = ""
    tint: Optional[StatusColor] = None

    @classmethod
    def from_values(cls, values: Mapping[str, str], tint: Optional[StatusColor] = None) -> "ParsedRow":
        return cls(
            source_name=values.get("source_name", ""),
            essence=values.get("essence", ""),
            source_type=values.get("source_type", ""),
            dgh_note=values.get("dgh_note", ""),
            target_label=values.get("target_name", ""),
            target_type=values.get("target_type", ""),
            target_rules=values.get("target_rules", ""),
            always_returns=values.get("always_returns", ""),
            mapping_details=values.get("mapping_details", ""),
            outputs=values.get("outputs", ""),
            notes=values.get("notes", ""),
            stream_from_supplier=values.get("stream_from_supplier", ""),
            tint=tint,
        )

    @property
    def is_empty(self) -> bool:
        return not any(
            (
                self.source_name,
                self.essence,
                self.source_type,
                self.dgh_note,
                self.target_label,
                self.target_type,
                self.target_rules,
                self.always_returns,
                self.mapping_details,
                self.outputs,
                self.notes,
                self.stream_from_supplier,
            )
        )

    @property
    def target_name(self) -> str:
        return from_label(self.target_label).leaf

    @property
    def target_path(self) -> str:
        return from_label(self.target_label).dot_path

    @property
    def carries_mapping(self) -> bool:
        return bool(self.target_name or self.mapping_details or self.outputs)

    @property
    def hierarchy_label(self) -> str:
        if self.target_path:
            return to_label(self.target_path)
        return self.target_name

    @property
    def key(self) -> FieldKey:
        return FieldKey(self.source_name, self.source_type)

    def rules(self) -> tuple[str, ...]:
        return tuple(part.strip() for part in self.target_rules.split(",") if part.strip())

    def to_mapping_record(self, row_number: int, timestamp: datetime) -> MappingRecord:
        """Build the mapping record carried by this row, independent of any merge."""

        return MappingRecord(
            target_node=TargetNode(
                id=f"import-{row_number}",
                name=self.target_name,
                type=self.target_type,
                rules=self.rules(),
                path=self.target_path or None,
            ),
            field=FieldSnapshot(
                name=self.source_name,
                field_type=self.source_type,
                essence=self.essence,
                dgh_note=self.dgh_note,
                always_returns=self.always_returns,
                notes=self.notes,
            ),
            mapping_details=self.mapping_details,
            outputs=self.outputs,
            timestamp=timestamp,
        )


class CatalogMerge:
    """Working copy of a catalog that decoded rows are merged into.

    The entries passed in are copied; callers install :meth:`entries` only once
    the whole decode has succeeded.
    """

    def __init__(self, existing: Iterable[FieldEntry] = ()) -> None:
        self._entries: Dict[FieldKey, FieldEntry] = {}
        for entry in existing:
            self._entries.setdefault(entry.key, entry.copy())
        self._taken_ids = {entry.id for entry in self._entries.values()}
        self.created = 0
        self.updated = 0

    def _next_serial(self) -> int:
        serial = len(self._entries) + 1
        while f"{IMPORTED_ID_PREFIX}{serial}" in self._taken_ids:
            serial += 1
        return serial

    def _placeholder_key(self, field_type: str, serial: int) -> FieldKey:
        while FieldKey(f"{PLACEHOLDER_NAME_PREFIX}{serial}", field_type) in self._entries:
            serial += 1
        return FieldKey(f"{PLACEHOLDER_NAME_PREFIX}{serial}", field_type)

    def apply(self, row: ParsedRow) -> FieldEntry:
        """Merge ``row`` and return the affected entry."""

        existing = self._entries.get(row.key) if row.source_name else None
        if existing is not None:
            self._update(existing, row)
            self.updated += 1
            return existing
        entry = self._create(row)
        self.created += 1
        return entry

    def _update(self, entry: FieldEntry, row: ParsedRow) -> None:
        entry.essence = row.essence or entry.essence
        entry.dgh_note = row.dgh_note or entry.dgh_note
        entry.always_returns = row.always_returns or entry.always_returns
        entry.notes = row.notes or entry.notes
        if row.carries_mapping:
            entry.is_mapped = True
            entry.mapped_target_label = row.hierarchy_label or None
            entry.status_color = row.tint or StatusColor.GREEN
        elif row.tint is not None:
            entry.status_color = row.tint

    def _create(self, row: ParsedRow) -> FieldEntry:
        serial = self._next_serial()
        key = row.key if row.source_name else self._placeholder_key(row.source_type, serial)
        mapped = row.carries_mapping
        if row.tint is not None:
            color = row.tint
        else:
            color = StatusColor.GREEN if mapped else StatusColor.DEFAULT
        entry = FieldEntry(
            id=f"{IMPORTED_ID_PREFIX}{serial}",
            name=key.name,
            field_type=key.field_type,
            essence=row.essence,
            dgh_note=row.dgh_note,
            always_returns=row.always_returns,
            notes=row.notes,
            is_mapped=mapped,
            mapped_target_label=(row.hierarchy_label or None) if mapped else None,
            status_color=color,
        )
        self._entries[key] = entry
        self._taken_ids.add(entry.id)
        return entry

    def entries(self) -> List[FieldEntry]:
        return list(self._entries.values())
