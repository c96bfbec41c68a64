"""
Unit tests for column type inference and sampling.
"""

from __future__ import annotations

import pytest

from financial_ingest.schema import ColumnType
from financial_ingest.type_inference import (
    MAX_SAMPLE_VALUES,
    build_columns,
    collect_samples,
    infer_column_type,
    looks_numeric,
    sample_indices,
)


class TestInferColumnType:
    def test_numeric(self) -> None:
        assert infer_column_type(["100", "2,000", "-3.5"]) == ColumnType.NUMERIC

    def test_currency_numeric(self) -> None:
        assert infer_column_type(["$1,200", "€300"]) == ColumnType.NUMERIC

    def test_dates(self) -> None:
        assert infer_column_type(["2024-01-31", "01/31/2024"]) == ColumnType.DATE

    def test_mixed_is_text(self) -> None:
        assert infer_column_type(["North", "2024-01-01"]) == ColumnType.TEXT

    def test_words_are_text(self) -> None:
        assert infer_column_type(["North", "South"]) == ColumnType.TEXT

    def test_empty_samples_are_text(self) -> None:
        assert infer_column_type([]) == ColumnType.TEXT
        assert infer_column_type(["", ""]) == ColumnType.TEXT

    def test_empties_ignored(self) -> None:
        assert infer_column_type(["100", ""]) == ColumnType.NUMERIC

    def test_looks_numeric(self) -> None:
        assert looks_numeric("1,234.5")
        assert not looks_numeric("12a")


class TestSampling:
    @pytest.mark.parametrize("total, expected", [
        (0, []),
        (1, [0]),
        (5, [0, 2, 4]),
        (20, [0, 10, 19]),
        (100, [0, 10, 50, 99]),
    ])
    def test_sample_indices(self, total: int, expected: list[int]) -> None:
        assert sample_indices(total) == expected

    def test_collect_skips_empty_cells(self) -> None:
        rows = [{"a": ""}, {"a": "2"}, {"a": "3"}]
        # positions 0, 1, 2 → first is empty
        assert collect_samples(rows, "a") == ["2", "3"]

    def test_build_columns(self) -> None:
        rows = [{"Revenue": str(i), "Region": "North"} for i in range(100)]
        columns = build_columns(["Revenue", "Region"], rows)

        assert [c.name for c in columns] == ["revenue", "region"]
        assert columns[0].inferred_type == ColumnType.NUMERIC
        assert columns[1].inferred_type == ColumnType.TEXT
        assert len(columns[0].sample_values) == MAX_SAMPLE_VALUES
        assert columns[0].sample_values == ("0", "10", "50")
        assert columns[0].suggested_field is None

    def test_build_columns_without_rows(self) -> None:
        columns = build_columns(["2024 Sales"], [])
        assert columns[0].name == "col_2024_sales"
        assert columns[0].inferred_type == ColumnType.TEXT
        assert columns[0].sample_values == ()
