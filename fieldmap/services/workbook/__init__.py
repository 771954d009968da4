"""Workbook download and upload actions."""

from .service import MappingSource, SchemaSource, WorkbookService


__all__ = [
    "MappingSource",
    "SchemaSource",
    "WorkbookService",
]
