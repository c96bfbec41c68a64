"""
Bounded CSV Parser.

Reads a whole (small) file into memory, tokenizes every line and infers
column types.  Optionally stops materialising rows after ``max_rows`` for
previews; the total data-line count is still reported so that callers can
tell the preview is partial.

Use this path for files below ``ParserConfig.size_threshold_bytes`` or
whenever only a preview is needed.  Larger full parses go through
``StreamingParser``.
"""

from __future__ import annotations

from typing import Callable, Optional, Union

from financial_ingest.config import ParserConfig
from financial_ingest.errors import EmptyFileError, StreamReadError
from financial_ingest.logging_setup import get_logger
from financial_ingest.schema import ParsedDataset, Row
from financial_ingest.tokenizer import (
    build_row,
    parse_header,
    split_lines,
    tokenize_line,
)
from financial_ingest.type_inference import build_columns

logger = get_logger("bounded_parser")

ProgressCallback = Callable[[int, int], None]


class BoundedParser:
    """Parse complete CSV text held in memory.

    Parameters
    ----------
    config:
        Parser settings; only ``delimiter``, ``encoding`` and
        ``progress_interval`` are used here.
    """

    def __init__(self, config: Optional[ParserConfig] = None) -> None:
        self._config = config or ParserConfig()

    def parse(
        self,
        content: Union[str, bytes],
        filename: str = "",
        max_rows: Optional[int] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ParsedDataset:
        """Parse ``content`` into a ``ParsedDataset``.

        Parameters
        ----------
        content:
            Entire file text, or its raw bytes.
        filename:
            Carried through to the dataset.
        max_rows:
            Materialise at most this many data rows.  ``None`` parses all.
        on_progress:
            Called with ``(rows_parsed, total_rows)`` every
            ``progress_interval`` rows and once at the end.

        Raises
        ------
        EmptyFileError
            No non-blank line in the input.
        StreamReadError
            ``content`` is bytes that do not decode.
        """
        if max_rows is not None and max_rows < 0:
            raise ValueError(f"max_rows must be >= 0, got {max_rows}")

        text = self._decode(content, filename)
        lines = split_lines(text)
        if not lines:
            raise EmptyFileError(filename)

        delimiter = self._config.delimiter
        header = parse_header(lines[0], delimiter)
        total = len(lines) - 1

        limit = total if max_rows is None else min(max_rows, total)
        rows: list[Row] = []
        interval = self._config.progress_interval

        for index, line in enumerate(lines[1:limit + 1]):
            rows.append(build_row(header, tokenize_line(line, delimiter)))
            if on_progress is not None and index % interval == 0:
                on_progress(index, total)

        if on_progress is not None:
            on_progress(len(rows), total)

        columns = build_columns(header, rows)
        is_partial = max_rows is not None and total > max_rows

        if is_partial:
            logger.info(
                "Preview of %r truncated: %d of %d rows materialised",
                filename,
                len(rows),
                total,
            )
        logger.info(
            "Parsed %r — columns=%d, rows=%d/%d",
            filename,
            len(columns),
            len(rows),
            total,
        )

        return ParsedDataset(
            columns=columns,
            rows=tuple(rows),
            row_count=total,
            parsed_row_count=len(rows),
            filename=filename,
            is_partial=is_partial,
        )

    def _decode(self, content: Union[str, bytes], filename: str) -> str:
        if isinstance(content, str):
            return content
        try:
            return content.decode(self._config.encoding)
        except UnicodeDecodeError as exc:
            raise StreamReadError(filename, f"not valid {self._config.encoding} text") from exc
