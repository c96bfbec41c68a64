"""
Auto-Mapper.

Proposes a standard field for each discovered column by matching the
normalised column name against the field registry.

Matching precedence (first hit wins)
------------------------------------
1. **Exact** — the normalised name equals an alias of any field.
2. **Substring** — the normalised name contains an alias.  Fields and
   aliases are tried in registry order, so ties go to the field defined
   first.  This can be surprising (``net_income_tax`` contains ``income``,
   an alias of ``revenue``), but the order is fixed and therefore
   deterministic.
3. **Keyword** — a small hand-picked table of fragments for the
   highest-value fields.
4. No match → ``None``; the column stays unmapped.

``suggest_field`` is a pure function of (registry, input).
"""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, Iterable, Optional, Tuple

from financial_ingest.field_registry import FieldRegistry, default_registry
from financial_ingest.logging_setup import get_logger
from financial_ingest.normalizer import normalize_column_name
from financial_ingest.schema import Column, ParsedDataset

logger = get_logger("auto_mapper")


# Fallback fragments, consulted only when no alias matched.
KEYWORD_MATCHES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("revenue", ("revenue", "sales", "income")),
    ("net_income", ("net_income", "net_profit", "profit", "earnings")),
    ("cogs", ("cogs", "cost_of_goods", "cost_of_sales")),
    ("total_assets", ("total_asset", "assets")),
    ("total_liabilities", ("total_liab", "liabilities")),
    ("equity", ("equity", "stockholder", "shareholder")),
    ("date", ("date", "period")),
)


class AutoMapper:
    """Suggest standard fields for raw column names.

    Parameters
    ----------
    registry:
        Field catalogue to match against.  Defaults to the built-in one.
    """

    def __init__(self, registry: Optional[FieldRegistry] = None) -> None:
        self._registry = registry or default_registry()
        # field_id → aliases, in registry order; kept as tuples so the
        # mapper never exposes anything mutable.
        self._aliases: Tuple[Tuple[str, Tuple[str, ...]], ...] = tuple(
            (f.id, f.aliases) for f in self._registry
        )
        self._exact: Dict[str, str] = {}
        for field_id, aliases in self._aliases:
            for alias in aliases:
                # First definition wins when two fields share an alias.
                self._exact.setdefault(alias, field_id)

    @property
    def registry(self) -> FieldRegistry:
        return self._registry

    # ------------------------------------------------------------------ #
    # Single column
    # ------------------------------------------------------------------ #

    def suggest_field(self, raw_column_name: Optional[str]) -> Optional[str]:
        """Return the best standard field id for a raw column name, or ``None``."""
        if not raw_column_name:
            return None

        normalized = normalize_column_name(raw_column_name)
        if not normalized:
            return None

        # --- Step 1: exact alias --------------------------------------
        field_id = self._exact.get(normalized)
        if field_id is not None:
            logger.debug("Exact alias hit: %r → %r", normalized, field_id)
            return field_id

        # --- Step 2: alias contained in the name ----------------------
        for field_id, aliases in self._aliases:
            for alias in aliases:
                if alias in normalized:
                    logger.debug(
                        "Substring alias hit: %r contains %r → %r",
                        normalized,
                        alias,
                        field_id,
                    )
                    return field_id

        # --- Step 3: keyword fallback ---------------------------------
        for field_id, keywords in KEYWORD_MATCHES:
            if field_id not in self._registry:
                continue
            for keyword in keywords:
                if keyword in normalized:
                    logger.debug(
                        "Keyword hit: %r contains %r → %r",
                        normalized,
                        keyword,
                        field_id,
                    )
                    return field_id

        logger.debug("No suggestion for %r (normalised=%r)", raw_column_name, normalized)
        return None

    # ------------------------------------------------------------------ #
    # Whole datasets
    # ------------------------------------------------------------------ #

    def suggest_mapping(self, columns: Iterable[Column]) -> Dict[str, str]:
        """``{column_original_name: field_id}`` for every column with a suggestion."""
        suggestions: Dict[str, str] = {}
        for column in columns:
            field_id = self.suggest_field(column.original_name)
            if field_id is not None:
                suggestions[column.original_name] = field_id
        return suggestions

    def annotate(self, dataset: ParsedDataset) -> ParsedDataset:
        """Return a copy of ``dataset`` whose columns carry ``suggested_field``."""
        columns = tuple(
            replace(c, suggested_field=self.suggest_field(c.original_name))
            for c in dataset.columns
        )
        suggested = sum(1 for c in columns if c.suggested_field)
        logger.info(
            "Suggested fields for %d of %d column(s) in %r",
            suggested,
            len(columns),
            dataset.filename,
        )
        return replace(dataset, columns=columns)


def suggest_field(raw_column_name: Optional[str]) -> Optional[str]:
    """Suggest a field using the built-in registry."""
    return _default_mapper().suggest_field(raw_column_name)


_DEFAULT_MAPPER: Optional[AutoMapper] = None


def _default_mapper() -> AutoMapper:
    global _DEFAULT_MAPPER  # noqa: PLW0603
    if _DEFAULT_MAPPER is None:
        _DEFAULT_MAPPER = AutoMapper()
    return _DEFAULT_MAPPER
