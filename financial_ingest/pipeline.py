"""
Ingestion Service.

The central entry point that wires together every layer:

    CSV text / file / stream  →  Bounded or Streaming Parser
        →  Auto-Mapper (suggested fields)  →  ColumnMapping
        →  Mapping Validator  →  hand-off to the caller's store

Parser selection
----------------
* Previews (the default) always use the bounded parser, truncated to
  ``ParserConfig.preview_rows``.
* Full parses of files below ``ParserConfig.size_threshold_bytes`` use the
  bounded parser without truncation.
* Full parses of larger files use the streaming parser.

Usage
-----
>>> from financial_ingest.pipeline import DataIngestionService
>>> service = DataIngestionService()
>>> dataset = service.parse_text("Revenue,COGS\\n100,40\\n", filename="pl.csv")
>>> mapping = service.build_mapping(dataset)
>>> service.validate_mapping(mapping, ["revenue", "cogs"]).valid
True
"""

from __future__ import annotations

from pathlib import Path
from typing import IO, Any, Dict, Iterable, List, Optional, Union

from financial_ingest.auto_mapper import AutoMapper
from financial_ingest.bounded_parser import BoundedParser, ProgressCallback
from financial_ingest.config import PipelineConfig
from financial_ingest.errors import MappingValidationError, StreamReadError
from financial_ingest.field_registry import FieldRegistry, default_registry
from financial_ingest.fuzzy_matcher import FieldCandidate, FieldCandidateRanker
from financial_ingest.logging_setup import configure_logging, get_logger
from financial_ingest.mapping import ColumnMapping
from financial_ingest.schema import ParsedDataset
from financial_ingest.streaming_parser import AbortSignal, StreamingParser
from financial_ingest.validator import MappingLike, MappingValidator, ValidationReport

logger = get_logger("pipeline")


class DataIngestionService:
    """Orchestrates parsing, field suggestion and mapping validation.

    Parameters
    ----------
    config:
        All tuneable knobs.  Defaults suit interactive uploads.
    registry:
        Field catalogue.  Defaults to the built-in registry, extended with
        ``config.custom_alias_path`` when set.
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        registry: Optional[FieldRegistry] = None,
    ) -> None:
        self._config = config or PipelineConfig()

        # Bootstrap logging before anything else
        configure_logging(level=self._config.log_level)

        registry = registry or default_registry()
        if self._config.custom_alias_path:
            registry = FieldRegistry.from_json(self._config.custom_alias_path, base=registry)
        self._registry = registry

        # Construct layers
        self._bounded = BoundedParser(self._config.parser)
        self._streaming = StreamingParser(self._config.parser)
        self._mapper = AutoMapper(self._registry)
        self._ranker = FieldCandidateRanker(self._config.matching, self._registry)
        self._validator = MappingValidator(self._config.validation, self._registry)

        logger.info(
            "Ingestion service initialised — fields=%d, aliases=%d, "
            "size_threshold=%d bytes, row_cap=%d",
            len(self._registry),
            self._registry.alias_count,
            self._config.parser.size_threshold_bytes,
            self._config.parser.max_rows,
        )

    @property
    def registry(self) -> FieldRegistry:
        return self._registry

    # ------------------------------------------------------------------ #
    # Parsing entry points (one per input kind)
    # ------------------------------------------------------------------ #

    def parse_text(
        self,
        content: Union[str, bytes],
        filename: str = "",
        preview: bool = True,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ParsedDataset:
        """Parse in-memory CSV content with the bounded parser."""
        max_rows = self._config.parser.preview_rows if preview else None
        dataset = self._bounded.parse(
            content, filename=filename, max_rows=max_rows, on_progress=on_progress
        )
        return self._mapper.annotate(dataset)

    def parse_file(
        self,
        path: Union[str, Path],
        preview: bool = True,
        on_progress: Optional[ProgressCallback] = None,
        abort: Optional[AbortSignal] = None,
    ) -> ParsedDataset:
        """Parse a CSV file, choosing the parser by mode and file size.

        Raises
        ------
        EmptyFileError
            The file has no usable line.
        StreamReadError
            The file could not be opened or read.
        """
        path = Path(path)
        try:
            size = path.stat().st_size
        except OSError as exc:
            raise StreamReadError(path.name, str(exc)) from exc

        threshold = self._config.parser.size_threshold_bytes
        if preview or size < threshold:
            logger.info(
                "Parsing %s with bounded parser (%d bytes, preview=%s)",
                path.name, size, preview,
            )
            try:
                content = path.read_bytes()
            except OSError as exc:
                raise StreamReadError(path.name, str(exc)) from exc
            return self.parse_text(
                content, filename=path.name, preview=preview, on_progress=on_progress
            )

        logger.info(
            "Parsing %s with streaming parser (%d bytes ≥ %d)",
            path.name, size, threshold,
        )
        try:
            fh = open(path, "rb")
        except OSError as exc:
            raise StreamReadError(path.name, str(exc)) from exc
        with fh:
            return self.parse_stream(
                fh,
                filename=path.name,
                on_progress=on_progress,
                abort=abort,
                size_hint=size,
            )

    def parse_stream(
        self,
        stream: IO[Any],
        filename: str = "",
        on_progress: Optional[ProgressCallback] = None,
        abort: Optional[AbortSignal] = None,
        size_hint: Optional[int] = None,
    ) -> ParsedDataset:
        """Parse a file object with the streaming parser."""
        dataset = self._streaming.parse(
            stream,
            filename=filename,
            on_progress=on_progress,
            abort=abort,
            size_hint=size_hint,
        )
        return self._mapper.annotate(dataset)

    # ------------------------------------------------------------------ #
    # Field suggestion
    # ------------------------------------------------------------------ #

    def suggest_field(self, column_name: str) -> Optional[str]:
        return self._mapper.suggest_field(column_name)

    def suggest_mapping(self, dataset: ParsedDataset) -> Dict[str, str]:
        """``{column_original_name: field_id}`` for the dataset's columns."""
        return self._mapper.suggest_mapping(dataset.columns)

    def rank_candidates(self, column_name: str) -> List[FieldCandidate]:
        return self._ranker.rank(column_name)

    def build_mapping(
        self,
        dataset: ParsedDataset,
        existing: Optional[Dict[str, str]] = None,
    ) -> ColumnMapping:
        """Start a mapping from ``existing`` and fill gaps with suggestions."""
        mapping = ColumnMapping(existing, registry=self._registry)
        applied = mapping.apply_suggestions(self.suggest_mapping(dataset))
        logger.info(
            "Mapping for %r: %d field(s) mapped (%d from suggestions)",
            dataset.filename, len(mapping), applied,
        )
        return mapping

    # ------------------------------------------------------------------ #
    # Validation
    # ------------------------------------------------------------------ #

    def validate_mapping(
        self,
        mapping: MappingLike,
        required_fields: Optional[Iterable[str]] = None,
    ) -> ValidationReport:
        """Validate ``mapping``; in strict mode errors raise instead.

        Raises
        ------
        MappingValidationError
            Only when ``PipelineConfig.strict_mode`` is set and the report
            has errors.
        """
        report = self._validator.validate(mapping, required_fields)

        logger.info(
            "Mapping validated — fields=%d, errors=%d, warnings=%d",
            len(mapping),
            len(report.errors),
            len(report.warnings),
        )

        if self._config.strict_mode and not report.valid:
            raise MappingValidationError(report)

        return report
