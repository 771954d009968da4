"""Versioned in-memory registry of source fields."""

from __future__ import annotations

import logging
import threading
from typing import Dict, Iterable, Iterator, Optional, Tuple

import pandas as pd

from fieldmap_io.colors import MANUAL_COLORS, StatusColor
from fieldmap_io.schema import FieldEntry, FieldKey

from .errors import RegistryError
from .logger import get_logger

ANNOTATION_FIELDS: tuple[str, ...] = ("essence", "dgh_note", "always_returns", "notes")

FRAME_COLUMNS: tuple[str, ...] = (
    "id",
    "name",
    "field_type",
    "essence",
    "dgh_note",
    "always_returns",
    "notes",
    "is_mapped",
    "mapped_target_label",
    "status_color",
)


class FieldRegistry:
    """Authoritative set of source fields keyed by ``(name, field_type)``.

    The registry owns its entries: readers receive copies through
    :meth:`snapshot` and :meth:`get`, and every write bumps :attr:`version`.
    Bulk imports install a complete new set through :meth:`replace`.
    """

    def __init__(
        self,
        entries: Iterable[FieldEntry] = (),
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self.logger = logger or get_logger()
        self._lock = threading.RLock()
        self._entries: Dict[FieldKey, FieldEntry] = self._index(entries)
        self._version = 0

    @staticmethod
    def _index(entries: Iterable[FieldEntry]) -> Dict[FieldKey, FieldEntry]:
        indexed: Dict[FieldKey, FieldEntry] = {}
        for entry in entries:
            if entry.key in indexed:
                raise RegistryError(f"Duplicate field identity: {entry.name!r} ({entry.field_type!r})")
            indexed[entry.key] = entry.copy()
        return indexed

    @property
    def version(self) -> int:
        return self._version

    def snapshot(self) -> Tuple[FieldEntry, ...]:
        """Return copies of all entries in registry order."""

        with self._lock:
            return tuple(entry.copy() for entry in self._entries.values())

    def get(self, key: FieldKey) -> Optional[FieldEntry]:
        with self._lock:
            entry = self._entries.get(FieldKey(*key))
            return entry.copy() if entry is not None else None

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __iter__(self) -> Iterator[FieldEntry]:
        return iter(self.snapshot())

    def replace(self, entries: Iterable[FieldEntry], *, expected_version: Optional[int] = None) -> int:
        """Install ``entries`` as the complete new field set.

        Args:
            entries: New entries; identities must be unique.
            expected_version: When given, the swap is refused if the registry
                changed since that version was read.

        Returns:
            The new registry version.

        Raises:
            RegistryError: On duplicate identities or a stale ``expected_version``.
        """

        indexed = self._index(entries)
        with self._lock:
            if expected_version is not None and expected_version != self._version:
                raise RegistryError(
                    f"Registry changed during import (expected version {expected_version}, found {self._version})"
                )
            self._entries = indexed
            self._version += 1
            self.logger.info("registry replaced version=%d fields=%d", self._version, len(indexed))
            return self._version

    def _require(self, key: FieldKey) -> FieldEntry:
        entry = self._entries.get(FieldKey(*key))
        if entry is None:
            raise RegistryError(f"Unknown field: {key[0]!r} ({key[1]!r})")
        return entry

    def update_annotation(self, key: FieldKey, attribute: str, value: str) -> FieldEntry:
        """Set one free-text annotation (trimmed) and return a copy of the entry."""

        if attribute not in ANNOTATION_FIELDS:
            raise RegistryError(f"Not an editable annotation: {attribute!r}")
        with self._lock:
            entry = self._require(key)
            setattr(entry, attribute, (value or "").strip())
            self._version += 1
            return entry.copy()

    def set_color(self, key: FieldKey, color: StatusColor | str) -> FieldEntry:
        """Apply a manually chosen status colour; green is reserved for mapped fields."""

        try:
            chosen = StatusColor(color)
        except ValueError as exc:
            raise RegistryError(f"Unknown status colour: {color!r}") from exc
        if chosen not in MANUAL_COLORS:
            raise RegistryError(f"Status colour {chosen.value!r} cannot be selected manually")
        with self._lock:
            entry = self._require(key)
            entry.status_color = chosen
            self._version += 1
            return entry.copy()

    def mark_mapped(self, key: FieldKey, target_label: Optional[str]) -> FieldEntry:
        """Flag a field as mapped after a mapping was saved for it."""

        with self._lock:
            entry = self._require(key)
            entry.is_mapped = True
            entry.mapped_target_label = target_label or None
            self._version += 1
            return entry.copy()

    def clear(self) -> int:
        """Drop every entry; returns the new version."""

        with self._lock:
            dropped = len(self._entries)
            self._entries = {}
            self._version += 1
            self.logger.info("registry cleared version=%d dropped=%d", self._version, dropped)
            return self._version

    def to_frame(self) -> pd.DataFrame:
        """Return the current entries as a DataFrame for reporting."""

        rows = [
            {
                "id": entry.id,
                "name": entry.name,
                "field_type": entry.field_type,
                "essence": entry.essence,
                "dgh_note": entry.dgh_note,
                "always_returns": entry.always_returns,
                "notes": entry.notes,
                "is_mapped": entry.is_mapped,
                "mapped_target_label": entry.mapped_target_label or "",
                "status_color": entry.status_color.value,
            }
            for entry in self.snapshot()
        ]
        return pd.DataFrame(rows, columns=list(FRAME_COLUMNS))
