"""
Configuration module for Financial Ingest.

All tuneable parameters — size thresholds, row caps, matching thresholds,
required fields — live here.  Nothing is hard-coded in business logic
modules.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class ParserConfig:
    """Controls both CSV parsers."""

    # Files at or above this size are parsed with the streaming parser when
    # a full (non-preview) parse is requested.
    size_threshold_bytes: int = 5 * 1024 * 1024

    # Rows materialised by a preview parse.
    preview_rows: int = 100

    # Hard materialisation cap for the streaming parser.  Reaching it is a
    # truncation, not an error.
    max_rows: int = 500_000

    # Rows per streaming chunk.  Progress callbacks and abort checks happen
    # once per chunk.
    chunk_size: int = 5_000

    # Divisor used to estimate the total row count from the file size.
    avg_bytes_per_row: int = 100

    # The bounded parser reports progress every N rows.
    progress_interval: int = 1_000

    # After the cap is hit, keep counting (but not storing) the remaining
    # lines so that ``row_count`` is exact.
    count_rows_past_cap: bool = True

    delimiter: str = ","
    encoding: str = "utf-8"

    def __post_init__(self) -> None:
        if self.max_rows < 1:
            raise ValueError(f"max_rows must be positive, got {self.max_rows}")
        if not 1 <= self.chunk_size <= 100_000:
            raise ValueError(
                f"chunk_size must be between 1 and 100000, got {self.chunk_size}"
            )
        if self.preview_rows < 0:
            raise ValueError(f"preview_rows must be >= 0, got {self.preview_rows}")
        if self.avg_bytes_per_row < 1:
            raise ValueError("avg_bytes_per_row must be positive")
        if self.progress_interval < 1:
            raise ValueError("progress_interval must be positive")
        if len(self.delimiter) != 1:
            raise ValueError(f"delimiter must be one character, got {self.delimiter!r}")


@dataclass(frozen=True)
class MatchingConfig:
    """Controls the ranked candidate list offered to field pickers."""

    # Minimum rapidfuzz score (0–100) for a field to be offered at all.
    candidate_threshold: float = 60.0

    # If the two best candidates are within this delta the top one is
    # flagged as ambiguous.
    ambiguity_delta: float = 5.0

    # Maximum number of candidates returned per column.
    candidate_limit: int = 5


@dataclass(frozen=True)
class ValidationConfig:
    """Controls the mapping validator."""

    # Standard field ids that *must* be mapped.  An empty list disables the
    # check.
    required_fields: list[str] = field(default_factory=list)

    # Field ids of which at least one should be mapped before KPIs can be
    # computed.  Reported by ``ColumnMapping.coverage``.
    minimum_fields: tuple[str, ...] = ("revenue", "net_income", "cogs")


@dataclass(frozen=True)
class PipelineConfig:
    """Top-level configuration aggregating all sub-configs."""

    parser: ParserConfig = field(default_factory=ParserConfig)
    matching: MatchingConfig = field(default_factory=MatchingConfig)
    validation: ValidationConfig = field(default_factory=ValidationConfig)

    log_level: int = logging.INFO

    # Optional JSON file of extra aliases (``{field_id: [alias, ...]}``)
    # merged into a copy of the built-in registry.
    custom_alias_path: Optional[Path] = None

    # When True, mapping validation errors raise instead of being returned.
    strict_mode: bool = False
