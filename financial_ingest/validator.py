"""
Mapping Validation Layer.

Checks a user-confirmed or auto-generated mapping *before* it is handed to
the persistence layer.

Checks performed
----------------
1. **Required fields** — every required field id must be mapped to a
   non-blank column; each missing one is an error naming the field label.
2. **Reused columns** — a raw column mapped under more than one field is a
   warning (one per column).  Warnings never affect ``valid``.

Problems are returned in a ``ValidationReport``; nothing here raises for
mapping content.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from financial_ingest.config import ValidationConfig
from financial_ingest.field_registry import FieldRegistry, default_registry
from financial_ingest.logging_setup import get_logger
from financial_ingest.mapping import ColumnMapping

logger = get_logger("validator")

MappingLike = Union[ColumnMapping, Mapping[str, Optional[str]]]


class ValidationReport:
    """Accumulates errors and warnings during a validation pass."""

    def __init__(self) -> None:
        self.errors: list[str] = []
        self.warnings: list[str] = []

    @property
    def valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)
        logger.error("Validation ERROR: %s", msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)
        logger.warning("Validation WARNING: %s", msg)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }


class MappingValidator:
    """Validates ``{field_id: column}`` mappings.

    Parameters
    ----------
    config:
        Default required fields.
    registry:
        Source of field labels for error messages.
    """

    def __init__(
        self,
        config: Optional[ValidationConfig] = None,
        registry: Optional[FieldRegistry] = None,
    ) -> None:
        self._config = config or ValidationConfig()
        self._registry = registry or default_registry()

    def validate(
        self,
        mapping: MappingLike,
        required_fields: Optional[Iterable[str]] = None,
    ) -> ValidationReport:
        """Run all checks and return a ``ValidationReport``.

        ``required_fields`` overrides the configured default when given.
        """
        assignments = _as_dict(mapping)
        required = (
            list(required_fields)
            if required_fields is not None
            else list(self._config.required_fields)
        )

        report = ValidationReport()
        self._check_required_fields(assignments, required, report)
        self._check_reused_columns(assignments, report)
        return report

    # ------------------------------------------------------------------ #
    # Individual checks
    # ------------------------------------------------------------------ #

    def _check_required_fields(
        self,
        assignments: Dict[str, Optional[str]],
        required: List[str],
        report: ValidationReport,
    ) -> None:
        for field_id in required:
            column = assignments.get(field_id)
            if not column or not str(column).strip():
                report.add_error(
                    f"Missing required field: {self._registry.label_for(field_id)}"
                )

    def _check_reused_columns(
        self, assignments: Dict[str, Optional[str]], report: ValidationReport
    ) -> None:
        """Warn once per column that is mapped under several fields."""
        fields_by_column: Dict[str, List[str]] = {}
        for field_id, column in assignments.items():
            if not column:
                continue
            fields_by_column.setdefault(column, []).append(field_id)

        for column, field_ids in fields_by_column.items():
            if len(field_ids) > 1:
                report.add_warning(
                    f"Column '{column}' is mapped to multiple fields: "
                    f"{', '.join(field_ids)}"
                )


def _as_dict(mapping: MappingLike) -> Dict[str, Optional[str]]:
    if isinstance(mapping, ColumnMapping):
        return mapping.to_dict()
    return dict(mapping)
