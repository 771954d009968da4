"""YAML catalog documents: fields, saved mappings and the selected schema."""

# Module responsibilities:
# - Validate catalog YAML/JSON payloads with pydantic and convert them to the dataclass model.
# - Dump the dataclass model back to YAML so command-line round trips are lossless.

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .colors import StatusColor
from .errors import WorkbookError
from .schema import FieldEntry, FieldSnapshot, MappingRecord, TargetNode
from .utils.log import get_logger

logger = get_logger("catalog")


class CatalogError(WorkbookError):
    """Raised when a catalog document is missing or malformed."""


class FieldDoc(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: Optional[str] = None
    name: str
    field_type: str = ""
    essence: str = ""
    dgh_note: str = ""
    always_returns: str = ""
    notes: str = ""
    is_mapped: bool = False
    mapped_target_label: Optional[str] = None
    status_color: StatusColor = StatusColor.DEFAULT


class SnapshotDoc(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    field_type: str = ""
    essence: str = ""
    dgh_note: str = ""
    always_returns: str = ""
    notes: str = ""


class TargetNodeDoc(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str = ""
    name: str = ""
    type: str = ""
    rules: List[str] = Field(default_factory=list)
    path: Optional[str] = None


class MappingDoc(BaseModel):
    model_config = ConfigDict(extra="forbid")

    field: SnapshotDoc
    target_node: TargetNodeDoc
    mapping_details: str = ""
    outputs: str = ""
    timestamp: Optional[datetime] = None


class CatalogDocument(BaseModel):
    """Top-level catalog file model."""

    model_config = ConfigDict(extra="forbid")

    schema_token: Optional[str] = None
    fields: List[FieldDoc] = Field(default_factory=list)
    mappings: List[MappingDoc] = Field(default_factory=list)


@dataclass(slots=True)
class Catalog:
    """Field catalog with its saved mappings, as used by the workbook codecs."""

    fields: List[FieldEntry] = field(default_factory=list)
    mappings: List[MappingRecord] = field(default_factory=list)
    schema_token: Optional[str] = None


def _aware(value: Optional[datetime]) -> datetime:
    if value is None:
        return datetime.now(timezone.utc)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def from_document(document: CatalogDocument) -> Catalog:
    fields = [
        FieldEntry(
            id=doc.id or f"catalog-{idx}",
            name=doc.name,
            field_type=doc.field_type,
            essence=doc.essence,
            dgh_note=doc.dgh_note,
            always_returns=doc.always_returns,
            notes=doc.notes,
            is_mapped=doc.is_mapped,
            mapped_target_label=doc.mapped_target_label,
            status_color=doc.status_color,
        )
        for idx, doc in enumerate(document.fields, start=1)
    ]
    mappings = [
        MappingRecord(
            target_node=TargetNode(
                id=doc.target_node.id,
                name=doc.target_node.name,
                type=doc.target_node.type,
                rules=tuple(doc.target_node.rules),
                path=doc.target_node.path,
            ),
            field=FieldSnapshot(**doc.field.model_dump()),
            mapping_details=doc.mapping_details,
            outputs=doc.outputs,
            timestamp=_aware(doc.timestamp),
        )
        for doc in document.mappings
    ]
    return Catalog(fields=fields, mappings=mappings, schema_token=document.schema_token)


def to_document(catalog: Catalog) -> CatalogDocument:
    return CatalogDocument(
        schema_token=catalog.schema_token,
        fields=[
            FieldDoc(
                id=entry.id,
                name=entry.name,
                field_type=entry.field_type,
                essence=entry.essence,
                dgh_note=entry.dgh_note,
                always_returns=entry.always_returns,
                notes=entry.notes,
                is_mapped=entry.is_mapped,
                mapped_target_label=entry.mapped_target_label,
                status_color=entry.status_color,
            )
            for entry in catalog.fields
        ],
        mappings=[
            MappingDoc(
                field=SnapshotDoc(
                    name=record.field.name,
                    field_type=record.field.field_type,
                    essence=record.field.essence,
                    dgh_note=record.field.dgh_note,
                    always_returns=record.field.always_returns,
                    notes=record.field.notes,
                ),
                target_node=TargetNodeDoc(
                    id=record.target_node.id,
                    name=record.target_node.name,
                    type=record.target_node.type,
                    rules=list(record.target_node.rules),
                    path=record.target_node.path,
                ),
                mapping_details=record.mapping_details,
                outputs=record.outputs,
                timestamp=record.timestamp,
            )
            for record in catalog.mappings
        ],
    )


def load_catalog(path: Path) -> Catalog:
    """Load a catalog YAML (or JSON) file.

    Raises:
        CatalogError: When the file is absent, not a mapping, or fails validation.
    """

    if not path.exists():
        raise CatalogError(f"Catalog file not found: {path}")
    with path.open("r", encoding="utf-8") as fh:
        payload = yaml.safe_load(fh) or {}
    if not isinstance(payload, dict):
        raise CatalogError("Invalid catalog structure (expected mapping)")
    try:
        document = CatalogDocument.model_validate(payload)
    except ValidationError as exc:
        raise CatalogError(f"Invalid catalog {path}: {exc}") from exc
    catalog = from_document(document)
    logger.info(
        "Catalog loaded",
        extra={"path": str(path), "fields": len(catalog.fields), "mappings": len(catalog.mappings)},
    )
    return catalog


def dump_catalog(catalog: Catalog, path: Path) -> Path:
    """Write ``catalog`` as YAML to ``path`` and return the path."""

    payload = to_document(catalog).model_dump(mode="json")
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fh:
        yaml.safe_dump(payload, fh, allow_unicode=True, sort_keys=False)
    logger.info("Catalog written", extra={"path": str(path), "fields": len(catalog.fields)})
    return path
