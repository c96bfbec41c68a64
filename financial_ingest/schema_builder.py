"""
Schema Builder.

Serialises ingestion results for consumers: the camelCase JSON document
described for ``ParsedDataset``, a CSV summary of the discovered columns,
and typed views of the rows (plain dicts or a pandas DataFrame).

Cells are stored as raw text; conversion to numbers / dates happens only
here, at the point of use, according to each column's inferred type.
"""

from __future__ import annotations

import csv
import json
from io import StringIO
from typing import Any, Dict, Iterator, List

from financial_ingest.logging_setup import get_logger
from financial_ingest.normalizer import ColumnNormalizer
from financial_ingest.schema import ColumnType, ParsedDataset

logger = get_logger("schema_builder")

_normalizer = ColumnNormalizer()


class SchemaBuilder:
    """Builds serialised and typed views of a ``ParsedDataset``."""

    # ------------------------------------------------------------------ #
    # Text formats
    # ------------------------------------------------------------------ #

    @staticmethod
    def to_json(dataset: ParsedDataset, indent: int = 2, include_rows: bool = True) -> str:
        """Serialise ``dataset`` to a JSON string."""
        payload = dataset.to_dict()
        if not include_rows:
            payload["rows"] = []
        return json.dumps(payload, indent=indent, ensure_ascii=False)

    @staticmethod
    def columns_to_csv_string(dataset: ParsedDataset) -> str:
        """Serialise column metadata to CSV text (one line per column)."""
        buf = StringIO()
        writer = csv.writer(buf)
        writer.writerow([
            "name", "original_name", "type", "sample_values", "suggested_field",
        ])
        for c in dataset.columns:
            writer.writerow([
                c.name,
                c.original_name,
                c.inferred_type.value,
                "; ".join(c.sample_values),
                c.suggested_field or "",
            ])
        return buf.getvalue()

    # ------------------------------------------------------------------ #
    # Typed views
    # ------------------------------------------------------------------ #

    @staticmethod
    def typed_rows(dataset: ParsedDataset) -> Iterator[Dict[str, Any]]:
        """Yield rows with cells converted per column type.

        Numeric cells become ``float`` (``None`` when unparseable), date
        cells ``datetime`` (``None`` when unparseable), text stays ``str``.
        """
        types = {c.original_name: c.inferred_type for c in dataset.columns}
        for row in dataset.rows:
            yield {
                name: _normalizer.coerce(value, types.get(name, ColumnType.TEXT))
                for name, value in row.items()
            }

    @staticmethod
    def to_dataframe(dataset: ParsedDataset, typed: bool = True) -> Any:
        """Return the rows as a pandas DataFrame (columns in file order).

        With ``typed=False`` every cell stays a string.
        """
        try:
            import pandas as pd  # noqa: F811
        except ImportError as exc:
            raise ImportError(
                "pandas is required to use to_dataframe"
            ) from exc

        rows: List[Dict[str, Any]]
        if typed:
            rows = list(SchemaBuilder.typed_rows(dataset))
        else:
            rows = [dict(r) for r in dataset.rows]

        columns = list(dict.fromkeys(dataset.column_names()))
        df = pd.DataFrame(rows, columns=columns)
        logger.debug("DataFrame built: %d rows × %d columns", len(df), len(columns))
        return df
