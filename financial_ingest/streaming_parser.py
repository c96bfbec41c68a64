"""
Streaming CSV Parser.

Reads a large file incrementally, one chunk of rows at a time, so that
memory growth is bounded and callers get progress feedback.

Flow
----
1. The first non-blank line is the header.
2. Data lines are tokenized and materialised in chunks of
   ``ParserConfig.chunk_size`` rows.  After each chunk a ``ProgressEvent``
   is yielded (the suspension point) and the abort signal is checked.
3. Materialisation stops at ``ParserConfig.max_rows``.  Remaining lines are
   optionally counted without being stored so ``row_count`` stays exact.
4. Column types are inferred once, over the rows that were kept.

Hitting the row cap or being aborted is *not* an error: the partial
dataset is returned with ``is_partial=True``.  Only read failures raise
(``StreamReadError``).

Usage
-----
>>> parser = StreamingParser(ParserConfig(chunk_size=2_000))
>>> with open("ledger.csv", "rb") as fh:
...     dataset = parser.parse(fh, filename="ledger.csv",
...                            on_progress=lambda done, est: print(done, est))

or, to drive it cooperatively:

>>> session = parser.open(fh, filename="ledger.csv", abort=stop_event)
>>> for event in session:
...     update_progress_bar(event.rows_processed, event.estimated_total)
>>> dataset = session.result()
"""

from __future__ import annotations

import os
from typing import IO, Any, Callable, Generator, Iterator, Optional, Protocol

from financial_ingest.config import ParserConfig
from financial_ingest.errors import EmptyFileError, StreamReadError
from financial_ingest.logging_setup import get_logger
from financial_ingest.schema import ParsedDataset, ProgressEvent, Row
from financial_ingest.tokenizer import (
    build_row,
    non_blank,
    parse_header,
    tokenize_line,
)
from financial_ingest.type_inference import build_columns

logger = get_logger("streaming_parser")

ProgressCallback = Callable[[int, int], None]


class AbortSignal(Protocol):
    """Anything with ``is_set()``, e.g. ``threading.Event``."""

    def is_set(self) -> bool: ...


class StreamingSession:
    """One streaming parse over one input.

    Iterate to drive the parse chunk by chunk; call ``result()`` for the
    dataset.  ``result()`` drains any chunks not yet consumed.
    """

    def __init__(
        self,
        stream: IO[Any],
        config: ParserConfig,
        filename: str = "",
        abort: Optional[AbortSignal] = None,
        size_hint: Optional[int] = None,
    ) -> None:
        self._stream = stream
        self._config = config
        self._filename = filename
        self._abort = abort
        self._size_hint = size_hint
        self._events = self._run()
        self._dataset: Optional[ParsedDataset] = None

        self.header: list[str] = []
        self.estimated_total = 0

    def __iter__(self) -> Iterator[ProgressEvent]:
        return self._events

    def result(self) -> ParsedDataset:
        for _ in self._events:
            pass
        if self._dataset is None:
            raise RuntimeError(
                f"Streaming parse of {self._filename!r} did not complete"
            )
        return self._dataset

    # ------------------------------------------------------------------ #
    # Core loop
    # ------------------------------------------------------------------ #

    def _run(self) -> Iterator[ProgressEvent]:
        cfg = self._config
        lines = self._lines()

        header_line = next(lines, None)
        if header_line is None:
            raise EmptyFileError(self._filename)

        self.header = parse_header(header_line, cfg.delimiter)
        self.estimated_total = self._estimate_total()

        rows: list[Row] = []
        seen = 0
        chunk_index = 0
        capped = False
        aborted = False
        exact_total = True

        pending = next(lines, None)
        while pending is not None:
            if self._abort_requested():
                aborted = True
                break

            in_chunk = 0
            while pending is not None and in_chunk < cfg.chunk_size:
                rows.append(build_row(self.header, tokenize_line(pending, cfg.delimiter)))
                seen += 1
                in_chunk += 1
                pending = next(lines, None)
                if len(rows) >= cfg.max_rows:
                    break

            chunk_index += 1
            logger.debug("Chunk %d parsed — rows=%d", chunk_index, len(rows))
            yield ProgressEvent(
                rows_processed=seen,
                estimated_total=max(self.estimated_total, seen),
                chunk_index=chunk_index,
            )

            if len(rows) >= cfg.max_rows and pending is not None:
                capped = True
                break

        if capped:
            logger.warning(
                "CSV parsing of %r stopped at %d rows: file too large for "
                "in-memory processing",
                self._filename,
                cfg.max_rows,
            )
            if cfg.count_rows_past_cap:
                # ``pending`` already holds the first unread data line.
                seen, finished = yield from self._count_remaining(
                    lines, seen + 1, chunk_index
                )
                if not finished:
                    aborted = True
            else:
                exact_total = False

        if aborted:
            exact_total = False
            logger.warning(
                "CSV parsing of %r aborted by caller after %d rows",
                self._filename,
                len(rows),
            )

        if exact_total:
            row_count = seen
        else:
            # Unread lines remain; report a lower-bound estimate.
            row_count = max(self.estimated_total, seen + 1)

        columns = build_columns(self.header, rows)
        self._dataset = ParsedDataset(
            columns=columns,
            rows=tuple(rows),
            row_count=row_count,
            parsed_row_count=len(rows),
            filename=self._filename,
            is_partial=len(rows) < row_count,
        )

        logger.info(
            "Streamed %r — columns=%d, rows=%d/%d, chunks=%d, partial=%s",
            self._filename,
            len(columns),
            len(rows),
            row_count,
            chunk_index,
            self._dataset.is_partial,
        )

        yield ProgressEvent(
            rows_processed=len(rows),
            estimated_total=row_count,
            chunk_index=chunk_index,
            done=True,
        )

    def _count_remaining(
        self, lines: Iterator[str], counted: int, chunk_index: int
    ) -> Generator[ProgressEvent, None, tuple[int, bool]]:
        """Count (not store) the rest of the lines.

        Returns ``(data_lines_seen, finished)``; ``finished`` is False when
        the caller aborted before the end of the stream.
        """
        in_chunk = 0
        for _ in lines:
            counted += 1
            in_chunk += 1
            if in_chunk >= self._config.chunk_size:
                chunk_index += 1
                yield ProgressEvent(
                    rows_processed=counted,
                    estimated_total=max(self.estimated_total, counted),
                    chunk_index=chunk_index,
                )
                in_chunk = 0
                if self._abort_requested():
                    return counted, False
        return counted, True

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _lines(self) -> Iterator[str]:
        """Non-blank decoded lines; read failures become ``StreamReadError``."""
        encoding = self._config.encoding
        try:
            decoded = (
                raw.decode(encoding) if isinstance(raw, bytes) else raw
                for raw in self._stream
            )
            yield from non_blank(decoded)
        except (OSError, ValueError) as exc:
            raise StreamReadError(self._filename, str(exc)) from exc

    def _abort_requested(self) -> bool:
        return self._abort is not None and self._abort.is_set()

    def _estimate_total(self) -> int:
        size = self._size_hint
        if size is None:
            size = _stream_size(self._stream)
        if not size:
            return 0
        return size // self._config.avg_bytes_per_row


def _stream_size(stream: IO[Any]) -> int:
    """Best-effort byte size of ``stream``; 0 when it cannot be determined."""
    try:
        return os.fstat(stream.fileno()).st_size
    except (OSError, ValueError, AttributeError):
        pass
    try:
        pos = stream.tell()
        end = stream.seek(0, os.SEEK_END)
        stream.seek(pos)
        return end
    except (OSError, ValueError, AttributeError):
        return 0


class StreamingParser:
    """Chunked parser for large CSV inputs.

    Parameters
    ----------
    config:
        Row cap, chunk size and size-estimate settings.
    """

    def __init__(self, config: Optional[ParserConfig] = None) -> None:
        self._config = config or ParserConfig()

    def open(
        self,
        stream: IO[Any],
        filename: str = "",
        abort: Optional[AbortSignal] = None,
        size_hint: Optional[int] = None,
    ) -> StreamingSession:
        """Start a cooperative parse; nothing is read until iterated."""
        return StreamingSession(
            stream,
            self._config,
            filename=filename,
            abort=abort,
            size_hint=size_hint,
        )

    def parse(
        self,
        stream: IO[Any],
        filename: str = "",
        on_progress: Optional[ProgressCallback] = None,
        abort: Optional[AbortSignal] = None,
        size_hint: Optional[int] = None,
    ) -> ParsedDataset:
        """Parse ``stream`` to completion (or cap / abort).

        ``on_progress`` is called with ``(rows_processed, estimated_total)``
        once per chunk and once more at the end with the final counts.

        Raises
        ------
        EmptyFileError
            The stream holds no non-blank line.
        StreamReadError
            Reading or decoding the stream failed.
        """
        session = self.open(stream, filename=filename, abort=abort, size_hint=size_hint)
        for event in session:
            if on_progress is not None:
                on_progress(event.rows_processed, event.estimated_total)
        return session.result()
