"""Lookup of the authoritative mapping per source field."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Iterable, Iterator, List, Optional

from .schema import FieldKey, MappingRecord


def _as_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class MappingIndex:
    """Latest :class:`MappingRecord` per ``(name, field_type)`` identity.

    When several records share an identity the one with the highest
    ``timestamp`` is authoritative; equal timestamps resolve to the record
    added last. Records keep the position of the first record seen for their
    identity.
    """

    def __init__(self, records: Iterable[MappingRecord] = ()) -> None:
        self._latest: Dict[FieldKey, MappingRecord] = {}
        self.extend(records)

    def add(self, record: MappingRecord) -> bool:
        """Offer ``record`` to the index; return True when it became authoritative."""

        current = self._latest.get(record.key)
        if current is not None and _as_aware(record.timestamp) < _as_aware(current.timestamp):
            return False
        self._latest[record.key] = record
        return True

    def extend(self, records: Iterable[MappingRecord]) -> None:
        for record in records:
            self.add(record)

    def get(self, key: FieldKey) -> Optional[MappingRecord]:
        return self._latest.get(FieldKey(*key))

    def records(self) -> List[MappingRecord]:
        return list(self._latest.values())

    def __contains__(self, key: object) -> bool:
        return key in self._latest

    def __iter__(self) -> Iterator[MappingRecord]:
        return iter(self._latest.values())

    def __len__(self) -> int:
        return len(self._latest)
