#!/usr/bin/env python3
"""
Example: CSV Ingestion Demo.

Parses an in-memory CSV preview, suggests standard fields for every
column, validates the resulting mapping, and streams a larger synthetic
file with progress output.

Run from the project root:
    python -m financial_ingest.examples.run_example
or:
    python financial_ingest/examples/run_example.py
"""

from __future__ import annotations

import io
import json
import logging
import sys
from pathlib import Path

# Ensure the project root is on sys.path when run as a script
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

from financial_ingest.config import (
    ParserConfig,
    PipelineConfig,
    ValidationConfig,
)
from financial_ingest.pipeline import DataIngestionService
from financial_ingest.schema_builder import SchemaBuilder


SAMPLE_CSV = """Date,Region,Sales (USD),Cost of Sales,Net Profit,Stockholders Equity
2024-01-31,North,"1,200.50",640.00,210.10,5000
2024-02-29,South,"1,340.00",700.25,250.00,5100
2024-03-31,"East, Coastal",980.75,512.10,120.40,5150
"""


# ======================================================================
# Helper
# ======================================================================

def print_section(title: str) -> None:
    width = 72
    print("\n" + "=" * width)
    print(f"  {title}")
    print("=" * width)


# ======================================================================
# Demo 1: Preview + suggestions
# ======================================================================

def demo_preview(service: DataIngestionService) -> None:
    print_section("DEMO 1 — Preview Parse & Suggested Fields")

    dataset = service.parse_text(SAMPLE_CSV, filename="sample.csv")
    print(SchemaBuilder.columns_to_csv_string(dataset))

    for column in dataset.columns:
        label = service.registry.label_for(column.suggested_field) if column.suggested_field else "—"
        print(f"  {column.original_name:25s} [{column.inferred_type.value:7s}] → {label}")


# ======================================================================
# Demo 2: Mapping + validation
# ======================================================================

def demo_mapping(service: DataIngestionService) -> None:
    print_section("DEMO 2 — Mapping Validation")

    dataset = service.parse_text(SAMPLE_CSV, filename="sample.csv")
    mapping = service.build_mapping(dataset)
    # A typical user slip: the same column under two fields
    mapping.assign("gross_profit", "Net Profit")

    report = service.validate_mapping(mapping, ["revenue", "cogs", "total_assets"])
    print(json.dumps({"mapping": mapping.to_dict(), **report.to_dict()}, indent=2))
    print(f"\n  Coverage: {mapping.coverage(len(dataset.columns))}")


# ======================================================================
# Demo 3: Streaming with progress
# ======================================================================

def demo_streaming(service: DataIngestionService) -> None:
    print_section("DEMO 3 — Streaming Parse (row cap 25,000)")

    lines = ["period,revenue,cogs"]
    lines += [f"2024-01-{(i % 28) + 1:02d},{i},{i // 2}" for i in range(40_000)]
    stream = io.StringIO("\n".join(lines))

    def on_progress(done: int, estimate: int) -> None:
        print(f"  … {done:>7,d} rows (≈{estimate:,d})")

    dataset = service.parse_stream(stream, filename="synthetic.csv", on_progress=on_progress)
    print(f"\n  rows kept={dataset.parsed_row_count:,d} of {dataset.row_count:,d}; "
          f"partial={dataset.is_partial}")


# ======================================================================
# Main
# ======================================================================

def main() -> None:
    config = PipelineConfig(
        parser=ParserConfig(max_rows=25_000, chunk_size=10_000),
        validation=ValidationConfig(required_fields=["revenue"]),
        log_level=logging.WARNING,  # Quieter for demo output
    )

    service = DataIngestionService(config)

    demo_preview(service)
    demo_mapping(service)
    demo_streaming(service)

    print("\n" + "=" * 72)
    print("  All demos complete.")
    print("=" * 72)


if __name__ == "__main__":
    main()
