"""
Column Type Inference.

Classifies a column as numeric, date or text from a handful of sample
values.  Samples are taken from spread-out row positions so that a block
of header-like rows at the top of a file does not decide the type alone.

Rules are tried in order Numeric → Date → Text.  A rule only fires when
*every* non-empty sample satisfies it.
"""

from __future__ import annotations

import re
from typing import Sequence

from dateutil import parser as dateparser

from financial_ingest.logging_setup import get_logger
from financial_ingest.normalizer import ColumnNormalizer
from financial_ingest.schema import Column, ColumnType, Row

logger = get_logger("type_inference")

_NUMERIC_RE = re.compile(r"^-?[\d,]+\.?\d*$")

_DATE_PATTERNS: list[re.Pattern] = [
    re.compile(r"^\d{4}-\d{2}-\d{2}$"),   # YYYY-MM-DD
    re.compile(r"^\d{2}/\d{2}/\d{4}$"),   # MM/DD/YYYY
    re.compile(r"^\d{2}-\d{2}-\d{4}$"),   # DD-MM-YYYY
]

# Fixed probe positions; the middle and last rows are added per call.
_PROBE_POSITIONS = (0, 10, 50)

MAX_SAMPLE_VALUES = 3

_normalizer = ColumnNormalizer()


def looks_numeric(value: str) -> bool:
    return bool(_NUMERIC_RE.match(_normalizer.strip_numeric_noise(value)))


def looks_like_date(value: str) -> bool:
    if any(p.match(value) for p in _DATE_PATTERNS):
        return True
    try:
        dateparser.parse(value)
    except (ValueError, OverflowError):
        return False
    return True


def infer_column_type(samples: Sequence[str]) -> ColumnType:
    """Classify a column from its sample values.

    Empty strings are ignored; an empty sample set is ``TEXT``.
    """
    values = [s for s in samples if s]
    if not values:
        return ColumnType.TEXT

    if all(looks_numeric(v) for v in values):
        return ColumnType.NUMERIC

    if all(looks_like_date(v) for v in values):
        return ColumnType.DATE

    return ColumnType.TEXT


def sample_indices(row_total: int) -> list[int]:
    """Distinct probe positions (first, ~10th, ~50th, middle, last)."""
    candidates = [*_PROBE_POSITIONS, row_total // 2, row_total - 1]
    seen: list[int] = []
    for idx in candidates:
        if 0 <= idx < row_total and idx not in seen:
            seen.append(idx)
    return seen


def collect_samples(rows: Sequence[Row], column: str) -> list[str]:
    """Non-empty values of ``column`` at the probe positions."""
    samples = []
    for idx in sample_indices(len(rows)):
        value = rows[idx].get(column, "")
        if value:
            samples.append(value)
    return samples


def build_columns(header: Sequence[str], rows: Sequence[Row]) -> tuple[Column, ...]:
    """Describe every header column using samples from ``rows``."""
    columns = []
    for name in header:
        samples = collect_samples(rows, name)
        inferred = infer_column_type(samples)
        logger.debug("Column %r inferred as %s from %r", name, inferred.value, samples)
        columns.append(
            Column(
                name=_normalizer.sanitize_name(name),
                original_name=name,
                inferred_type=inferred,
                sample_values=tuple(samples[:MAX_SAMPLE_VALUES]),
            )
        )
    return tuple(columns)
