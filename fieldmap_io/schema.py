"""Shared data structures for source fields and their target mappings."""

# Module responsibilities:
# - Define the source-field catalog entry and the mapping record exchanged with collaborators.
# - Keep the composite (name, field type) identity explicit and immutable.

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import List, NamedTuple, Optional

from .colors import StatusColor

_IDENTITY_FIELDS = frozenset({"id", "name", "field_type"})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FieldKey(NamedTuple):
    """Composite, case-sensitive identity of a source field."""

    name: str
    field_type: str


@dataclass(slots=True)
class FieldEntry:
    """One source field of the supplier catalog.

    ``id``, ``name`` and ``field_type`` are fixed once the entry exists; every
    other attribute is edited in place.
    """

    id: str
    name: str
    field_type: str = ""
    essence: str = ""
    dgh_note: str = ""
    always_returns: str = ""
    notes: str = ""
    is_mapped: bool = False
    mapped_target_label: Optional[str] = None
    status_color: StatusColor = StatusColor.DEFAULT

    def __post_init__(self) -> None:
        self.status_color = StatusColor(self.status_color)

    def __setattr__(self, attr: str, value: object) -> None:
        if attr in _IDENTITY_FIELDS:
            try:
                getattr(self, attr)
            except AttributeError:
                pass
            else:
                raise AttributeError(f"'{attr}' is part of the field identity and cannot change")
        object.__setattr__(self, attr, value)

    @property
    def key(self) -> FieldKey:
        return FieldKey(self.name, self.field_type)

    def copy(self) -> "FieldEntry":
        return replace(self)


@dataclass(frozen=True, slots=True)
class FieldSnapshot:
    """Source field identity and annotations captured when a mapping is made."""

    name: str
    field_type: str = ""
    essence: str = ""
    dgh_note: str = ""
    always_returns: str = ""
    notes: str = ""

    @property
    def key(self) -> FieldKey:
        return FieldKey(self.name, self.field_type)


@dataclass(frozen=True, slots=True)
class TargetNode:
    """Node of the destination schema hierarchy."""

    id: str = ""
    name: str = ""
    type: str = ""
    rules: tuple[str, ...] = ()
    path: Optional[str] = None

    @property
    def has_target(self) -> bool:
        return bool(self.name.strip() or (self.path or "").strip())


@dataclass(frozen=True, slots=True)
class MappingRecord:
    """Association of one source field with one target node."""

    target_node: TargetNode
    field: FieldSnapshot
    mapping_details: str = ""
    outputs: str = ""
    timestamp: datetime = field(default_factory=_utcnow)

    @property
    def key(self) -> FieldKey:
        return self.field.key


@dataclass(slots=True)
class DecodeResult:
    """Outcome of decoding a mapping workbook against an existing catalog."""

    merged_fields: List[FieldEntry]
    mappings: List[MappingRecord]
    schema_token: Optional[str] = None
    skipped_rows: int = 0
