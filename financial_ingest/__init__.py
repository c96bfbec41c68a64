"""
Financial Ingest — CSV ingestion and standard-field mapping engine.

Turns user-supplied CSV files of unknown shape into a structured dataset
and reconciles arbitrary column names ("Sales (USD)", "net_profit_loss")
against a fixed vocabulary of standard financial fields.

Large files are streamed in bounded chunks with progress reporting; every
suggested mapping is deterministic and every truncation is reported
through ``ParsedDataset.is_partial`` rather than hidden.
"""

__version__ = "1.0.0"
__author__ = "Financial Ingest Team"

from financial_ingest.pipeline import DataIngestionService  # noqa: F401
