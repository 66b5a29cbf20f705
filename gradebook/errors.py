from __future__ import annotations


class GradebookError(Exception):
    """Base class for every error raised by the gradebook package."""


class DecodeError(GradebookError):
    """Spreadsheet bytes could not be decoded (corrupt file, unsupported format)."""


class SheetStructureError(GradebookError):
    """A sheet does not follow the gradebook template. Only that sheet is skipped."""

    def __init__(self, sheet_name: str, message: str):
        super().__init__(message)
        self.sheet_name = sheet_name


class HeaderNotFoundError(SheetStructureError):
    pass


class SubHeaderMissingError(SheetStructureError):
    pass


class NameColumnNotFoundError(SheetStructureError):
    pass


class NoReadableSheetError(GradebookError):
    """No sheet of the workbook could be extracted."""


class ComparisonPreconditionError(GradebookError):
    """Comparison requested while one of the two files is not loaded."""
