"""
Column Mapping.

The caller-owned assignment of standard fields to raw column names.  A
mapping starts empty (or from a previously persisted dict), is edited one
field/column pair at a time, and is validated before being handed to the
persistence layer in its flat form ``{field_id: original_column_name}``.

Each field id appears at most once.  The same raw column *may* appear
under several fields; ``MappingValidator`` reports that as a warning.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional

from financial_ingest.field_registry import FieldRegistry
from financial_ingest.logging_setup import get_logger

logger = get_logger("mapping")

DEFAULT_MINIMUM_FIELDS = ("revenue", "net_income", "cogs")


class ColumnMapping:
    """Mutable ``field_id → original_column_name`` mapping.

    Parameters
    ----------
    initial:
        Existing assignments, e.g. a mapping loaded from storage.
    registry:
        When given, field ids are checked against it and unknown ids raise
        ``UnknownFieldError``.
    """

    def __init__(
        self,
        initial: Optional[Mapping[str, str]] = None,
        registry: Optional[FieldRegistry] = None,
    ) -> None:
        self._registry = registry
        self._assignments: Dict[str, str] = {}
        for field_id, column in (initial or {}).items():
            if column:
                self.assign(field_id, column)

    # ------------------------------------------------------------------ #
    # Editing
    # ------------------------------------------------------------------ #

    def assign(self, field_id: str, column: str, exclusive: bool = False) -> None:
        """Map ``field_id`` to ``column``, replacing that field's previous column.

        With ``exclusive=True`` the column is first removed from every other
        field, so it ends up mapped exactly once.
        """
        if self._registry is not None:
            self._registry.require(field_id)
        if not column:
            raise ValueError("column must be a non-empty string")

        if exclusive:
            self.clear_column(column)

        previous = self._assignments.get(field_id)
        if previous is not None and previous != column:
            logger.debug("Reassigning %r: %r → %r", field_id, previous, column)
        self._assignments[field_id] = column

    def unassign(self, field_id: str) -> Optional[str]:
        """Remove ``field_id``; returns the column it was mapped to."""
        return self._assignments.pop(field_id, None)

    def clear_column(self, column: str) -> list[str]:
        """Remove ``column`` from every field; returns the fields it left."""
        removed = [f for f, c in self._assignments.items() if c == column]
        for field_id in removed:
            del self._assignments[field_id]
        return removed

    def clear(self) -> None:
        self._assignments.clear()

    def apply_suggestions(self, suggestions: Mapping[str, str]) -> int:
        """Apply ``{column: field_id}`` suggestions to columns not yet mapped.

        Returns the number of suggestions applied.
        """
        applied = 0
        for column, field_id in suggestions.items():
            if column in self._assignments.values():
                continue
            self.assign(field_id, column)
            applied += 1
        logger.debug("Applied %d of %d suggestion(s)", applied, len(suggestions))
        return applied

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    def get(self, field_id: str) -> Optional[str]:
        return self._assignments.get(field_id)

    def field_for_column(self, column: str) -> Optional[str]:
        """First field (in assignment order) mapped to ``column``."""
        for field_id, mapped in self._assignments.items():
            if mapped == column:
                return field_id
        return None

    def fields(self) -> list[str]:
        return list(self._assignments)

    def coverage(
        self,
        total_columns: int,
        minimum_fields: Iterable[str] = DEFAULT_MINIMUM_FIELDS,
    ) -> Dict[str, Any]:
        """Summary shown next to the mapping: how much of the file is mapped."""
        mapped = len(self._assignments)
        minimum = set(minimum_fields)
        return {
            "mappedCount": mapped,
            "totalColumns": total_columns,
            "percentage": round(mapped / total_columns * 100) if total_columns > 0 else 0,
            "hasMinimumMapping": any(f in minimum for f in self._assignments),
        }

    def __contains__(self, field_id: object) -> bool:
        return field_id in self._assignments

    def __iter__(self) -> Iterator[str]:
        return iter(self._assignments)

    def __len__(self) -> int:
        return len(self._assignments)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ColumnMapping):
            return self._assignments == other._assignments
        if isinstance(other, dict):
            return self._assignments == other
        return NotImplemented

    def __repr__(self) -> str:
        return f"ColumnMapping({self._assignments!r})"

    # ------------------------------------------------------------------ #
    # Persistence format
    # ------------------------------------------------------------------ #

    def to_dict(self) -> Dict[str, str]:
        """The flat persistence format (a copy)."""
        return dict(self._assignments)

    def to_json(self, indent: Optional[int] = None) -> str:
        return json.dumps(self._assignments, indent=indent, ensure_ascii=False)

    @classmethod
    def from_json(
        cls, text: str, registry: Optional[FieldRegistry] = None
    ) -> "ColumnMapping":
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError(
                f"Mapping JSON must be an object, got {type(data).__name__}"
            )
        return cls(data, registry=registry)

    @classmethod
    def from_suggestions(
        cls,
        suggestions: Mapping[str, str],
        registry: Optional[FieldRegistry] = None,
    ) -> "ColumnMapping":
        """Build a mapping from auto-mapper ``{column: field_id}`` output."""
        mapping = cls(registry=registry)
        mapping.apply_suggestions(suggestions)
        return mapping
