"""
Column Name and Cell Normalization Layer.

Transforms raw header text into comparable identifiers, and raw cell
strings into typed values at the point of use.

Name transformations applied (in order):
1. Lowercase conversion
2. Every run of non-alphanumeric characters → a single ``_``
3. Strip leading / trailing ``_``
4. (sanitize only) prefix ``col_`` when the result starts with a digit,
   fall back to ``column`` when nothing is left

Cell transformations (numeric):
1. Strip currency symbols and whitespace
2. Parenthetical negatives ``(1,200)`` → ``-1200``
3. Remove thousands separators
4. Strip a trailing percent sign (with a warning)
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Optional, Tuple

from dateutil import parser as dateparser

from financial_ingest.logging_setup import get_logger
from financial_ingest.schema import ColumnType

logger = get_logger("normalizer")


class ColumnNormalizer:
    """Stateless name / cell normaliser.  All methods are pure functions."""

    # Currency symbols stripped before numeric checks
    _CURRENCY_RE = re.compile(r"[$€£¥₹]")

    # Currency symbols, thousands separators and whitespace
    _NUMERIC_NOISE_RE = re.compile(r"[$€£¥₹,\s]")

    # Parenthetical negative: ``(1234)`` → ``-1234``
    _PAREN_NEG_RE = re.compile(r"^\((.+)\)$")

    _NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")

    # ------------------------------------------------------------------ #
    # Names
    # ------------------------------------------------------------------ #

    def normalize_name(self, raw: str) -> str:
        """Return the comparable form of a raw column name.

        Idempotent: normalising an already-normalised name returns it
        unchanged.

        Examples
        --------
        >>> ColumnNormalizer().normalize_name("Sales (USD)")
        'sales_usd'
        """
        text = raw.lower()
        text = self._NON_ALNUM_RE.sub("_", text)
        text = text.strip("_")
        logger.debug("normalize_name: %r → %r", raw, text)
        return text

    def sanitize_name(self, raw: str) -> str:
        """Return an identifier-safe column name.

        Names are *not* de-duplicated across a dataset: ``"Sales"`` and
        ``"sales"`` both become ``sales``.
        """
        text = self.normalize_name(raw)
        if not text:
            return "column"
        if text[0].isdigit():
            return f"col_{text}"
        return text

    # ------------------------------------------------------------------ #
    # Cells
    # ------------------------------------------------------------------ #

    def strip_numeric_noise(self, raw: str) -> str:
        """Drop currency symbols, thousands separators and whitespace."""
        return self._NUMERIC_NOISE_RE.sub("", raw)

    def to_number(self, raw: Any) -> Tuple[Optional[float], list[str]]:
        """Attempt to parse a numeric cell.

        Returns
        -------
        tuple[float | None, list[str]]
            (parsed_value, list_of_warnings).  ``None`` if parsing fails.
        """
        warnings: list[str] = []

        if raw is None:
            warnings.append("Value is None")
            return None, warnings

        if isinstance(raw, (int, float)):
            return float(raw), warnings

        text = str(raw).strip()
        if not text:
            warnings.append("Value is empty string")
            return None, warnings

        text = self._CURRENCY_RE.sub("", text).strip()

        m = self._PAREN_NEG_RE.match(text)
        if m:
            text = "-" + m.group(1)

        text = text.replace(",", "").replace(" ", "")

        if text.endswith("%"):
            text = text[:-1]
            warnings.append("Percent symbol stripped; raw value treated as number")

        try:
            value = float(text)
        except ValueError:
            warnings.append(f"Cannot parse numeric value from: {raw!r}")
            return None, warnings

        return value, warnings

    def to_date(self, raw: Any) -> Optional[datetime]:
        """Parse a date cell with ``dateutil``; ``None`` when unparseable."""
        if raw is None:
            return None
        text = str(raw).strip()
        if not text:
            return None
        try:
            return dateparser.parse(text)
        except (ValueError, OverflowError):
            logger.debug("to_date: cannot parse %r", raw)
            return None

    def coerce(self, raw: str, column_type: ColumnType) -> Any:
        """Convert a raw cell according to its column's inferred type.

        Cells that do not fit the column type come back as ``None`` for
        numeric / date columns; text columns return the raw string.
        """
        if column_type is ColumnType.NUMERIC:
            value, _ = self.to_number(raw)
            return value
        if column_type is ColumnType.DATE:
            return self.to_date(raw)
        return raw


_DEFAULT = ColumnNormalizer()


def normalize_column_name(raw: str) -> str:
    """Module-level shortcut for ``ColumnNormalizer().normalize_name``."""
    return _DEFAULT.normalize_name(raw)


def sanitize_column_name(raw: str) -> str:
    """Module-level shortcut for ``ColumnNormalizer().sanitize_name``."""
    return _DEFAULT.sanitize_name(raw)
