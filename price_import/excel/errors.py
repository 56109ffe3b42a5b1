from __future__ import annotations

from collections.abc import Sequence

"""Error taxonomy for loading and merging supplier spreadsheets.

All errors are terminal for a single import operation. They carry structured
fields only; ``__str__`` gives a plain English rendering for logs, anything
user-facing is formatted by the caller.
"""

__all__ = [
    "ExcelLoadError",
    "UnsupportedExtensionError",
    "InvalidFormatError",
    "MissingComponentError",
    "MissingOptionalSupportError",
    "IncompatibleHeaderError",
]


class ExcelLoadError(Exception):
    """Base class for every import failure."""

    #: UPPER_SNAKE classification used in the error log
    error_type = "EXCEL_LOAD_ERROR"


class UnsupportedExtensionError(ExcelLoadError):
    error_type = "UNSUPPORTED_EXTENSION"

    def __init__(self, extension: str) -> None:
        self.extension = extension
        super().__init__(extension)

    def __str__(self) -> str:
        return f"unsupported file extension: {self.extension or '<none>'}"


class InvalidFormatError(ExcelLoadError):
    """Corrupt container or content that cannot be read as a table."""
    error_type = "INVALID_FORMAT"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return f"invalid format: {self.message}"


class MissingComponentError(ExcelLoadError):
    """A required part is missing inside a workbook archive."""
    error_type = "MISSING_COMPONENT"

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(path)

    def __str__(self) -> str:
        return f"missing workbook component: {self.path}"


class MissingOptionalSupportError(ExcelLoadError):
    """The optional parser for this format is not installed."""
    error_type = "MISSING_OPTIONAL_SUPPORT"

    def __init__(self, feature: str) -> None:
        self.feature = feature
        super().__init__(feature)

    def __str__(self) -> str:
        return f"optional support not installed: {self.feature}"


class IncompatibleHeaderError(ExcelLoadError):
    """Raised by the multi-file merge when normalized headers differ."""
    error_type = "INCOMPATIBLE_HEADER"

    def __init__(self, file: str, expected: Sequence[str], actual: Sequence[str]) -> None:
        self.file = file
        self.expected = tuple(expected)
        self.actual = tuple(actual)
        super().__init__(file)

    def __str__(self) -> str:
        return (
            f"incompatible header in {self.file}: "
            f"expected={list(self.expected)} actual={list(self.actual)}"
        )
