"""Financial Ingest exception hierarchy.

Row-cap truncation and malformed quoting are deliberately absent: both
produce valid (possibly partial) results, never exceptions.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from financial_ingest.validator import ValidationReport


class IngestionError(Exception):
    """Base exception for all Financial Ingest errors."""


class EmptyFileError(IngestionError):
    """No usable (non-blank) line was found in the input."""

    def __init__(self, filename: str = "") -> None:
        self.filename = filename
        where = f" '{filename}'" if filename else ""
        super().__init__(
            f"CSV file{where} is empty. Upload a file with a header row "
            f"and at least one line of data."
        )


class StreamReadError(IngestionError):
    """The underlying stream failed while being read.

    The original exception is chained as ``__cause__``.
    """

    def __init__(self, filename: str, message: str) -> None:
        self.filename = filename
        where = f" '{filename}'" if filename else ""
        super().__init__(f"Could not read CSV file{where}: {message}")


class UnknownFieldError(IngestionError, ValueError):
    """A field id is not part of the standard field registry."""

    def __init__(self, field_id: str) -> None:
        self.field_id = field_id
        super().__init__(f"Unknown standard field id {field_id!r}")


class DatasetInvariantError(IngestionError, ValueError):
    """A ``ParsedDataset`` was built with inconsistent row counts."""


class MappingValidationError(IngestionError):
    """Raised in strict mode when a mapping fails validation."""

    def __init__(self, report: "ValidationReport") -> None:
        self.report = report
        super().__init__(
            f"Mapping validation produced {len(report.errors)} error(s):\n"
            + "\n".join(report.errors)
        )
