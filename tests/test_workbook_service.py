"""Tests for the workbook action service and its notifications."""

from __future__ import annotations

from dataclasses import replace
from typing import List

import pytest

from fieldmap.core.errors import RegistryError
from fieldmap.core.events import (
    Event,
    FieldsUploaded,
    MappingsCleared,
    MappingsImported,
    Notifier,
    SchemaSelected,
    Severity,
    StatusEvent,
)
from fieldmap.core.registry import FieldRegistry
from fieldmap.services.workbook import WorkbookService
from fieldmap_io.colors import StatusColor
from fieldmap_io.errors import UnsupportedFileError, WorkbookFormatError
from fieldmap_io.schema import FieldKey, TargetNode
from fieldmap_io.workbook_reader import decode_mapping_workbook
from fieldmap_io.workbook_writer import encode_mapping_workbook, encode_template


@pytest.fixture
def events() -> List[Event]:
    return []


@pytest.fixture
def notifier(events: List[Event]) -> Notifier:
    notifier = Notifier()
    notifier.subscribe(events.append)
    return notifier


def _statuses(events: List[Event]) -> List[StatusEvent]:
    return [event for event in events if isinstance(event, StatusEvent)]


def test_download_mapping_reads_sources(sample_fields, imsi_mapping, notifier, events) -> None:
    calls = []

    def mappings():
        calls.append("mappings")
        return [imsi_mapping]

    service = WorkbookService(
        FieldRegistry(sample_fields),
        notifier,
        mapping_source=mappings,
        schema_source=lambda: "schema-v2",
    )
    data = service.download_mapping()
    result = decode_mapping_workbook(data)

    assert calls == ["mappings"]
    assert result.schema_token == "schema-v2"
    assert {entry.name for entry in result.merged_fields} == {"Phone", "IMSI", "Age"}
    assert _statuses(events)[-1].severity is Severity.OK


def test_upload_mapping_swaps_registry_and_publishes(sample_fields, imsi_mapping, notifier, events) -> None:
    data = encode_mapping_workbook(sample_fields, [imsi_mapping], "schema-v2")
    registry = FieldRegistry(sample_fields[:1])
    service = WorkbookService(registry, notifier)

    result = service.upload_mapping(data, "mapping.xlsx")

    assert registry.version == 1
    assert len(registry) == 3
    assert registry.get(FieldKey("IMSI", "String")).is_mapped is True
    imported = [event for event in events if isinstance(event, MappingsImported)]
    assert len(imported) == 1 and len(imported[0].mappings) == len(result.mappings) == 3
    assert SchemaSelected(token="schema-v2") in events
    assert _statuses(events)[-1].severity is Severity.OK


@pytest.mark.parametrize(
    ("payload", "filename", "error"),
    [
        (b"garbage", "mapping.xlsx", WorkbookFormatError),
        (b"", "mapping.xlsx", WorkbookFormatError),
        (b"irrelevant", "mapping.csv", UnsupportedFileError),
    ],
)
def test_failed_upload_leaves_registry_untouched(sample_fields, notifier, events, payload, filename, error) -> None:
    registry = FieldRegistry(sample_fields)
    service = WorkbookService(registry, notifier)

    with pytest.raises(error):
        service.upload_mapping(payload, filename)

    assert registry.version == 0
    assert registry.snapshot() == tuple(sample_fields)
    statuses = _statuses(events)
    assert len(statuses) == 1
    assert statuses[0].severity is Severity.ERROR
    assert not any(isinstance(event, (MappingsImported, SchemaSelected)) for event in events)


def test_upload_template(notifier, events) -> None:
    registry = FieldRegistry()
    service = WorkbookService(registry, notifier)

    assert service.upload_template(encode_template(), "template.xlsx") == []
    assert registry.version == 0
    assert _statuses(events)[-1].severity is Severity.ERROR

    data = encode_mapping_workbook([], raw_rows=[["Phone", "String", "Contact", "", "", ""]])
    fields = service.upload_template(data, "template.xlsx")
    assert [entry.name for entry in fields] == ["Phone"]
    assert registry.version == 1
    assert FieldsUploaded(count=1) in events


def test_record_mapping_saved(sample_fields, imsi_mapping, notifier) -> None:
    registry = FieldRegistry(sample_fields)
    service = WorkbookService(registry, notifier)

    entry = service.record_mapping_saved(imsi_mapping)
    assert entry.is_mapped is True
    assert entry.mapped_target_label == "subscriber -> imsi"
    assert entry.status_color is StatusColor.DEFAULT

    registry.clear()
    assert service.record_mapping_saved(imsi_mapping) is None


def test_edits_and_clear(sample_fields, notifier, events) -> None:
    registry = FieldRegistry(sample_fields)
    service = WorkbookService(registry, notifier)
    key = FieldKey("Age", "Int")

    service.update_annotation(key, "essence", " age in years ")
    assert registry.get(key).essence == "age in years"
    assert _statuses(events)[-1].message == 'Field Essence updated for "Age"'

    service.update_annotation(key, "essence", "")
    assert _statuses(events)[-1].message == 'Field Essence cleared for "Age"'

    service.change_color(key, "yellow")
    assert registry.get(key).status_color is StatusColor.YELLOW

    with pytest.raises(RegistryError):
        service.change_color(key, "green")
    assert _statuses(events)[-1].severity is Severity.ERROR

    service.clear()
    assert len(registry) == 0
    assert MappingsCleared() in events


def test_failing_listener_does_not_abort(sample_fields) -> None:
    notifier = Notifier()
    received: List[Event] = []

    def broken(event: Event) -> None:
        raise RuntimeError("boom")

    notifier.subscribe(broken)
    unsubscribe = notifier.subscribe(received.append, StatusEvent)
    service = WorkbookService(FieldRegistry(sample_fields), notifier)

    service.clear()
    assert [type(event) for event in received] == [StatusEvent]

    unsubscribe()
    service.clear()
    assert len(received) == 1


def test_empty_registry_and_notifier_are_kept() -> None:
    registry = FieldRegistry()
    notifier = Notifier()
    service = WorkbookService(registry, notifier)
    assert service.registry is registry
    assert service.notifier is notifier


def test_unexpected_decode_error_is_reported(sample_fields, notifier, events, monkeypatch: pytest.MonkeyPatch) -> None:
    def broken(*args, **kwargs):
        raise KeyError("boom")

    monkeypatch.setattr("fieldmap.services.workbook.service.decode_mapping_workbook", broken)
    registry = FieldRegistry(sample_fields)
    service = WorkbookService(registry, notifier)

    with pytest.raises(KeyError):
        service.upload_mapping(encode_mapping_workbook(sample_fields), "mapping.xlsx")

    assert registry.version == 0
    statuses = _statuses(events)
    assert [status.severity for status in statuses] == [Severity.ERROR]


def test_mapping_without_target_is_ignored(sample_fields, imsi_mapping, notifier) -> None:
    registry = FieldRegistry(sample_fields)
    service = WorkbookService(registry, notifier)
    untargeted = replace(imsi_mapping, target_node=TargetNode(id="n-1"))

    assert service.record_mapping_saved(untargeted) is None
    assert registry.get(FieldKey("IMSI", "String")).is_mapped is False
    assert registry.version == 0
