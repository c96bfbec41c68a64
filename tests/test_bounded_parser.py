"""
Unit tests for the BoundedParser.
"""

from __future__ import annotations

import pytest

from financial_ingest.bounded_parser import BoundedParser
from financial_ingest.config import ParserConfig
from financial_ingest.errors import EmptyFileError, StreamReadError
from financial_ingest.schema import ColumnType


@pytest.fixture
def parser() -> BoundedParser:
    return BoundedParser(ParserConfig(progress_interval=10))


def _csv(n_rows: int) -> str:
    lines = ["Date,Region,Revenue"]
    lines += [f"2024-01-{(i % 28) + 1:02d},North,{i * 10}" for i in range(n_rows)]
    return "\n".join(lines) + "\n"


# ======================================================================
# Basic parsing
# ======================================================================

class TestBasicParse:
    def test_two_numeric_columns(self, parser: BoundedParser) -> None:
        ds = parser.parse("Revenue,COGS\n100,40\n200,90\n")

        assert [c.name for c in ds.columns] == ["revenue", "cogs"]
        assert all(c.inferred_type == ColumnType.NUMERIC for c in ds.columns)
        assert ds.rows == ({"Revenue": "100", "COGS": "40"},
                           {"Revenue": "200", "COGS": "90"})
        assert ds.row_count == 2
        assert ds.parsed_row_count == 2
        assert ds.is_partial is False

    def test_column_types(self, parser: BoundedParser) -> None:
        ds = parser.parse(_csv(30))
        types = {c.original_name: c.inferred_type for c in ds.columns}
        assert types == {
            "Date": ColumnType.DATE,
            "Region": ColumnType.TEXT,
            "Revenue": ColumnType.NUMERIC,
        }

    def test_filename_carried(self, parser: BoundedParser) -> None:
        ds = parser.parse("a\n1\n", filename="pl.csv")
        assert ds.filename == "pl.csv"

    def test_header_only(self, parser: BoundedParser) -> None:
        ds = parser.parse("Revenue,COGS\n")
        assert ds.row_count == 0
        assert ds.rows == ()
        assert len(ds.columns) == 2
        assert not ds.is_partial

    def test_quoted_cells(self, parser: BoundedParser) -> None:
        ds = parser.parse('Name,Amount\n"Acme, Inc.","1,200"\n"Say ""hi""",5\n')
        assert ds.rows[0] == {"Name": "Acme, Inc.", "Amount": "1,200"}
        assert ds.rows[1]["Name"] == 'Say "hi"'

    def test_ragged_rows(self, parser: BoundedParser) -> None:
        ds = parser.parse("a,b,c\n1\n1,2,3,4\n")
        assert ds.rows[0] == {"a": "1", "b": "", "c": ""}
        assert ds.rows[1] == {"a": "1", "b": "2", "c": "3"}

    def test_crlf_and_blank_lines(self, parser: BoundedParser) -> None:
        ds = parser.parse("a,b\r\n1,2\r\n\r\n   \r\n3,4\r\n")
        assert ds.row_count == 2
        assert ds.rows[1] == {"a": "3", "b": "4"}

    def test_bytes_with_bom(self, parser: BoundedParser) -> None:
        ds = parser.parse("\ufeffRevenue,COGS\n1,2\n".encode("utf-8"))
        assert ds.column_names() == ["Revenue", "COGS"]


# ======================================================================
# Errors
# ======================================================================

class TestErrors:
    @pytest.mark.parametrize("content", ["", "\n\n", "   \r\n  ", b""])
    def test_empty_input(self, parser: BoundedParser, content) -> None:
        with pytest.raises(EmptyFileError):
            parser.parse(content, filename="empty.csv")

    def test_empty_message_is_actionable(self, parser: BoundedParser) -> None:
        with pytest.raises(EmptyFileError, match="empty.csv"):
            parser.parse("", filename="empty.csv")

    def test_undecodable_bytes(self, parser: BoundedParser) -> None:
        with pytest.raises(StreamReadError) as info:
            parser.parse(b"a,b\n\xff\xfe\xfa,1\n", filename="bad.csv")
        assert isinstance(info.value.__cause__, UnicodeDecodeError)

    def test_negative_max_rows(self, parser: BoundedParser) -> None:
        with pytest.raises(ValueError):
            parser.parse("a\n1\n", max_rows=-1)


# ======================================================================
# Preview truncation
# ======================================================================

class TestPreview:
    def test_truncated_preview(self, parser: BoundedParser) -> None:
        ds = parser.parse(_csv(250), max_rows=100)
        assert ds.parsed_row_count == 100
        assert len(ds.rows) == 100
        assert ds.row_count == 250
        assert ds.is_partial is True

    def test_limit_not_reached(self, parser: BoundedParser) -> None:
        ds = parser.parse(_csv(40), max_rows=100)
        assert ds.parsed_row_count == 40
        assert ds.row_count == 40
        assert ds.is_partial is False

    def test_limit_exactly_met(self, parser: BoundedParser) -> None:
        ds = parser.parse(_csv(100), max_rows=100)
        assert ds.parsed_row_count == 100
        assert ds.is_partial is False

    def test_zero_rows(self, parser: BoundedParser) -> None:
        ds = parser.parse(_csv(5), max_rows=0)
        assert ds.rows == ()
        assert ds.row_count == 5
        assert ds.is_partial is True
        # No rows, so no samples: every column falls back to text
        assert all(c.inferred_type == ColumnType.TEXT for c in ds.columns)


# ======================================================================
# Progress
# ======================================================================

class TestProgress:
    def test_progress_reported(self, parser: BoundedParser) -> None:
        calls: list[tuple[int, int]] = []
        parser.parse(_csv(35), on_progress=lambda done, total: calls.append((done, total)))

        assert calls[-1] == (35, 35)
        assert all(total == 35 for _, total in calls)
        # one report per 10 rows plus the final one
        assert len(calls) == 5

    def test_progress_on_preview(self, parser: BoundedParser) -> None:
        calls: list[tuple[int, int]] = []
        parser.parse(_csv(50), max_rows=5,
                     on_progress=lambda done, total: calls.append((done, total)))
        assert calls[-1] == (5, 50)
