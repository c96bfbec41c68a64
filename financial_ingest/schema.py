"""
Standard field vocabulary types and ingestion data models.

Defines the typed structures carried through the ingestion path: the
field-definition records of the alias registry, the per-column metadata
discovered by the parsers, and the ``ParsedDataset`` handed to callers.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from financial_ingest.errors import DatasetInvariantError


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class ColumnType(str, Enum):
    """Advisory value kind of a column.  Cells themselves stay text."""

    NUMERIC = "numeric"
    DATE = "date"
    TEXT = "text"


class FieldCategory(str, Enum):
    """Grouping of standard fields, as shown in field pickers."""

    INCOME_STATEMENT = "Income Statement"
    BALANCE_SHEET = "Balance Sheet"
    CASH_FLOW = "Cash Flow"
    DIMENSIONS = "Dimensions & Filters"


# A row maps the original header text to the raw cell string.
Row = dict[str, str]


# ---------------------------------------------------------------------------
# Registry entry
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FieldDefinition:
    """One standard financial field and the raw column names known for it."""

    id: str
    label: str
    category: FieldCategory
    value_kind: ColumnType
    aliases: tuple[str, ...]
    description: str = ""

    def summary(self) -> dict[str, str]:
        """The ``{id, label, category}`` triple exposed to pickers."""
        return {
            "id": self.id,
            "label": self.label,
            "category": self.category.value,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.summary(),
            "description": self.description,
            "dataType": self.value_kind.value,
            "aliases": list(self.aliases),
        }


# ---------------------------------------------------------------------------
# Parse results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Column:
    """Metadata for one discovered column."""

    name: str
    original_name: str
    inferred_type: ColumnType
    sample_values: tuple[str, ...] = ()
    suggested_field: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "originalName": self.original_name,
            "type": self.inferred_type.value,
            "sampleValues": list(self.sample_values),
            "suggestedField": self.suggested_field,
        }


@dataclass(frozen=True)
class ParsedDataset:
    """Result of a single parse call.  Immutable once returned.

    ``row_count`` counts every data line seen in the source while
    ``parsed_row_count`` counts the rows actually materialised; the dataset
    is partial exactly when the two differ.
    """

    columns: tuple[Column, ...]
    rows: tuple[Row, ...]
    row_count: int
    parsed_row_count: int
    filename: str = ""
    is_partial: bool = False

    def __post_init__(self) -> None:
        if self.parsed_row_count != len(self.rows):
            raise DatasetInvariantError(
                f"parsed_row_count={self.parsed_row_count} but "
                f"{len(self.rows)} rows were materialised"
            )
        if self.parsed_row_count > self.row_count:
            raise DatasetInvariantError(
                f"parsed_row_count={self.parsed_row_count} exceeds "
                f"row_count={self.row_count}"
            )
        if self.is_partial != (self.parsed_row_count < self.row_count):
            raise DatasetInvariantError(
                f"is_partial={self.is_partial} contradicts "
                f"{self.parsed_row_count}/{self.row_count} rows parsed"
            )

    def column_names(self) -> list[str]:
        """Original header names, in file order."""
        return [c.original_name for c in self.columns]

    def column(self, original_name: str) -> Optional[Column]:
        for c in self.columns:
            if c.original_name == original_name:
                return c
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "columns": [c.to_dict() for c in self.columns],
            "rows": [dict(r) for r in self.rows],
            "rowCount": self.row_count,
            "parsedRowCount": self.parsed_row_count,
            "filename": self.filename,
            "isPartial": self.is_partial,
        }


@dataclass(frozen=True)
class ProgressEvent:
    """Emitted by the streaming parser once per chunk.

    ``estimated_total`` is a rough figure derived from the file size and is
    only meant for UI feedback.
    """

    rows_processed: int
    estimated_total: int
    chunk_index: int = 0
    done: bool = False
