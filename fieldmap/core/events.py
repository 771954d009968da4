"""Notification events published by the workbook service."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Tuple, Union

from fieldmap_io.schema import MappingRecord

LOGGER = logging.getLogger("fieldmap.events")


class Severity(str, Enum):
    OK = "ok"
    WARN = "warn"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class StatusEvent:
    """User-facing status message (toast)."""

    message: str
    severity: Severity = Severity.OK
    duration_ms: int = 3000


@dataclass(frozen=True, slots=True)
class MappingsImported:
    """Mapping records reconstructed from an uploaded workbook, for the owner to persist."""

    mappings: Tuple[MappingRecord, ...]


@dataclass(frozen=True, slots=True)
class SchemaSelected:
    """Schema token found in an uploaded workbook; the owner should re-select it."""

    token: str


@dataclass(frozen=True, slots=True)
class FieldsUploaded:
    """A filled template replaced the field catalog."""

    count: int


@dataclass(frozen=True, slots=True)
class MappingsCleared:
    """The catalog was emptied; the owner should drop its saved mappings too."""


Event = Union[StatusEvent, MappingsImported, SchemaSelected, FieldsUploaded, MappingsCleared]
Listener = Callable[[Event], None]


class Notifier:
    """Synchronous fan-out of events to subscribed listeners."""

    def __init__(self) -> None:
        self._listeners: List[Tuple[Listener, Optional[Tuple[type, ...]]]] = []

    def subscribe(self, listener: Listener, *kinds: type) -> Callable[[], None]:
        """Register ``listener`` for ``kinds`` (all events when none given).

        Returns a callable that removes the subscription.
        """

        entry = (listener, tuple(kinds) or None)
        self._listeners.append(entry)

        def _unsubscribe() -> None:
            if entry in self._listeners:
                self._listeners.remove(entry)

        return _unsubscribe

    def publish(self, event: Event) -> None:
        for listener, kinds in list(self._listeners):
            if kinds is not None and not isinstance(event, kinds):
                continue
            try:
                listener(event)
            except Exception:  # noqa: BLE001 - a failing listener must not abort the action
                LOGGER.exception("event listener failed for %s", type(event).__name__)

    def status(self, message: str, severity: Severity = Severity.OK, duration_ms: int = 3000) -> None:
        self.publish(StatusEvent(message=message, severity=severity, duration_ms=duration_ms))
