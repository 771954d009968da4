"""`fieldmap_io` top-level package exports the mapping workbook codecs."""

# Module responsibilities:
# - Re-export the encoder, decoders and model types so consumers have a stable API surface.
# - Provide package version for packaging.

from __future__ import annotations

from .catalog import Catalog, CatalogError, dump_catalog, load_catalog
from .colors import StatusColor
from .errors import UnsupportedFileError, WorkbookEncodeError, WorkbookError, WorkbookFormatError
from .index import MappingIndex
from .schema import DecodeResult, FieldEntry, FieldKey, FieldSnapshot, MappingRecord, TargetNode
from .settings import WorkbookSettings
from .workbook_reader import decode_mapping_workbook, read_template_fields
from .workbook_writer import encode_mapping_workbook, encode_template

__all__ = [
    "Catalog",
    "CatalogError",
    "DecodeResult",
    "FieldEntry",
    "FieldKey",
    "FieldSnapshot",
    "MappingIndex",
    "MappingRecord",
    "StatusColor",
    "TargetNode",
    "UnsupportedFileError",
    "WorkbookEncodeError",
    "WorkbookError",
    "WorkbookFormatError",
    "WorkbookSettings",
    "decode_mapping_workbook",
    "dump_catalog",
    "encode_mapping_workbook",
    "encode_template",
    "load_catalog",
    "read_template_fields",
]

__version__ = "0.1.0"
