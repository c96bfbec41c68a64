"""
Unit tests for the StreamingParser.
"""

from __future__ import annotations

import io
import threading
from typing import Iterator

import pytest

from financial_ingest.config import ParserConfig
from financial_ingest.errors import EmptyFileError, StreamReadError
from financial_ingest.schema import ColumnType
from financial_ingest.streaming_parser import StreamingParser


def _text(n_rows: int) -> str:
    lines = ["Period,Revenue,COGS"]
    lines += [f"2024-01-{(i % 28) + 1:02d},{i},{i // 2}" for i in range(n_rows)]
    return "\n".join(lines) + "\n"


def _lines(n_rows: int) -> Iterator[str]:
    yield "a,b\n"
    for _ in range(n_rows):
        yield "1,2\n"


@pytest.fixture
def small_chunks() -> StreamingParser:
    return StreamingParser(ParserConfig(chunk_size=10, max_rows=1_000))


# ======================================================================
# Complete parses
# ======================================================================

class TestCompleteParse:
    def test_text_stream(self, small_chunks: StreamingParser) -> None:
        ds = small_chunks.parse(io.StringIO(_text(25)), filename="pl.csv")

        assert ds.parsed_row_count == 25
        assert ds.row_count == 25
        assert ds.is_partial is False
        assert ds.filename == "pl.csv"
        assert ds.rows[0] == {"Period": "2024-01-01", "Revenue": "0", "COGS": "0"}
        types = [c.inferred_type for c in ds.columns]
        assert types == [ColumnType.DATE, ColumnType.NUMERIC, ColumnType.NUMERIC]

    def test_binary_stream_crlf(self, small_chunks: StreamingParser) -> None:
        ds = small_chunks.parse(io.BytesIO(b"Revenue,COGS\r\n100,40\r\n200,90\r\n"))
        assert ds.column_names() == ["Revenue", "COGS"]
        assert ds.rows[1] == {"Revenue": "200", "COGS": "90"}

    def test_bom_dropped(self, small_chunks: StreamingParser) -> None:
        raw = "\ufeffRevenue,COGS\n1,2\n".encode("utf-8")
        ds = small_chunks.parse(io.BytesIO(raw))
        assert ds.column_names() == ["Revenue", "COGS"]

    def test_blank_lines_skipped(self, small_chunks: StreamingParser) -> None:
        ds = small_chunks.parse(io.StringIO("a,b\n\n1,2\n   \n3,4\n"))
        assert ds.row_count == 2

    def test_header_only(self, small_chunks: StreamingParser) -> None:
        ds = small_chunks.parse(io.StringIO("a,b\n"))
        assert ds.row_count == 0
        assert ds.rows == ()
        assert not ds.is_partial

    def test_plain_iterable(self, small_chunks: StreamingParser) -> None:
        ds = small_chunks.parse(_lines(15))
        assert ds.row_count == 15


# ======================================================================
# Errors
# ======================================================================

class TestErrors:
    @pytest.mark.parametrize("content", ["", "\n   \n"])
    def test_empty(self, small_chunks: StreamingParser, content: str) -> None:
        with pytest.raises(EmptyFileError):
            small_chunks.parse(io.StringIO(content), filename="empty.csv")

    def test_read_failure(self, small_chunks: StreamingParser) -> None:
        def broken() -> Iterator[str]:
            yield "a,b\n"
            yield "1,2\n"
            raise OSError("disk went away")

        with pytest.raises(StreamReadError, match="disk went away") as info:
            small_chunks.parse(broken(), filename="flaky.csv")
        assert isinstance(info.value.__cause__, OSError)

    def test_decode_failure(self, small_chunks: StreamingParser) -> None:
        with pytest.raises(StreamReadError):
            small_chunks.parse(iter([b"a,b\n", b"\xff\xfe,1\n"]))


# ======================================================================
# Row cap
# ======================================================================

class TestRowCap:
    def test_default_cap_on_large_stream(self) -> None:
        parser = StreamingParser(ParserConfig(max_rows=500_000))
        ds = parser.parse(_lines(600_000), filename="huge.csv")

        assert ds.parsed_row_count == 500_000
        assert len(ds.rows) == 500_000
        assert ds.row_count == 600_000
        assert ds.is_partial is True

    def test_exactly_at_cap(self) -> None:
        parser = StreamingParser(ParserConfig(chunk_size=4, max_rows=10))
        ds = parser.parse(_lines(10))
        assert ds.parsed_row_count == 10
        assert ds.row_count == 10
        assert ds.is_partial is False

    def test_one_past_cap(self) -> None:
        parser = StreamingParser(ParserConfig(chunk_size=4, max_rows=10))
        ds = parser.parse(_lines(11))
        assert ds.parsed_row_count == 10
        assert ds.row_count == 11
        assert ds.is_partial is True

    def test_estimate_when_not_counting(self) -> None:
        parser = StreamingParser(
            ParserConfig(chunk_size=5, max_rows=10, count_rows_past_cap=False)
        )
        ds = parser.parse(_lines(30))
        assert ds.parsed_row_count == 10
        assert ds.row_count >= 11
        assert ds.is_partial is True


# ======================================================================
# Progress and abort
# ======================================================================

class TestProgressAndAbort:
    def test_progress_per_chunk(self, small_chunks: StreamingParser) -> None:
        calls: list[tuple[int, int]] = []
        small_chunks.parse(
            io.StringIO(_text(25)),
            on_progress=lambda done, est: calls.append((done, est)),
        )
        assert [done for done, _ in calls] == [10, 20, 25, 25]
        assert calls[-1] == (25, 25)
        assert all(est >= done for done, est in calls)

    def test_estimate_from_size_hint(self, small_chunks: StreamingParser) -> None:
        session = small_chunks.open(io.StringIO(_text(5)), size_hint=10_000)
        first = next(iter(session))
        assert first.estimated_total == 100  # 10_000 bytes / 100 bytes per row

    def test_session_events(self, small_chunks: StreamingParser) -> None:
        session = small_chunks.open(io.StringIO(_text(25)))
        events = list(session)

        assert [e.chunk_index for e in events] == [1, 2, 3, 3]
        assert [e.done for e in events] == [False, False, False, True]
        assert session.result().row_count == 25

    def test_result_drains_remaining(self, small_chunks: StreamingParser) -> None:
        session = small_chunks.open(io.StringIO(_text(25)))
        assert session.result().parsed_row_count == 25

    def test_abort_before_start(self, small_chunks: StreamingParser) -> None:
        stop = threading.Event()
        stop.set()
        ds = small_chunks.parse(io.StringIO(_text(25)), abort=stop)

        assert ds.rows == ()
        assert ds.is_partial is True
        assert ds.row_count >= 1

    def test_abort_mid_stream(self, small_chunks: StreamingParser) -> None:
        stop = threading.Event()
        session = small_chunks.open(io.StringIO(_text(100)), abort=stop)

        for event in session:
            if event.chunk_index == 2:
                stop.set()
        ds = session.result()

        assert ds.parsed_row_count == 20
        assert ds.row_count > 20
        assert ds.is_partial is True

    def test_abort_while_counting_past_cap(self) -> None:
        parser = StreamingParser(ParserConfig(chunk_size=5, max_rows=5))
        stop = threading.Event()
        session = parser.open(_lines(100), abort=stop)

        for event in session:
            if event.rows_processed >= 15:
                stop.set()
        ds = session.result()

        assert ds.parsed_row_count == 5
        assert ds.is_partial is True
        assert ds.row_count > 15
