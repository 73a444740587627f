"""
Custom exception hierarchy for tetl.

Why a custom hierarchy:
- Callers can branch on configuration-time failures (ConfigurationError)
  versus data-quality failures (BadDataError, ConversionError) without
  relying on generic ValueError/RuntimeError.
- Data errors carry the line number and raw fields of the offending row,
  so a bad file can be diagnosed without re-reading it.
"""

from __future__ import annotations


class TetlError(Exception):
    """Base exception for all tetl errors."""


class ConfigurationError(TetlError):
    """Raised when a serializer or schema cannot be set up.

    This can happen if:
    - No delimiter or no field descriptors were supplied.
    - A field descriptor names both a column and an ordinal, or neither.
    - A descriptor matches no column, or more than one column, in the file.
    - The skip-row count exceeds the number of lines in the file.
    - A header row was expected but is missing or blank.
    - No converter is registered for a descriptor's value type.

    Always raised before any record is yielded.
    """


class BadDataError(TetlError):
    """Raised when a data line has fewer fields than the mapping needs."""

    def __init__(self, message: str, line_no: int, line: list[str]) -> None:
        super().__init__(message)
        self.line_no = line_no
        self.line = line


class ConversionError(TetlError):
    """Raised when a single field cannot be converted to its declared type.

    The underlying parse failure is available as ``__cause__``.
    """

    def __init__(
        self,
        message: str,
        *,
        line_no: int,
        column: str,
        attribute: str,
        value_type: str,
        value: str,
        line: list[str],
    ) -> None:
        super().__init__(message)
        self.line_no = line_no
        self.column = column
        self.attribute = attribute
        self.value_type = value_type
        self.value = value
        self.line = line


class ResourceError(TetlError):
    """Raised when the underlying file cannot be opened or created."""


class ExportError(TetlError):
    """Raised when the columnar exporter fails to write output files.

    For example, permission errors, disk full, or unsupported format.
    """
