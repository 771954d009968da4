"""Exceptions raised by the workbook encoder and decoder."""

from __future__ import annotations


class WorkbookError(RuntimeError):
    """Base class for workbook IO failures."""


class WorkbookFormatError(WorkbookError):
    """Raised when uploaded bytes are not a readable workbook or carry no worksheet."""


class WorkbookEncodeError(WorkbookError):
    """Raised when a workbook could not be generated."""


class UnsupportedFileError(WorkbookError):
    """Raised when an upload has an extension the decoder does not accept."""
