"""
Milk collection CSV ingestion.

- csv_parser: header mapping and pure per-row decoding
- pipeline: batched persistence and the upload summary
"""

from .csv_parser import (
    FIELD_ALIASES,
    CollectionCsvReader,
    ColumnMap,
    ParsedRow,
    RowFailure,
    decode_row,
    open_csv_text,
)
from .pipeline import CsvIngestionPipeline, IngestionSummary

__all__ = [
    "FIELD_ALIASES",
    "CollectionCsvReader",
    "ColumnMap",
    "ParsedRow",
    "RowFailure",
    "decode_row",
    "open_csv_text",
    "CsvIngestionPipeline",
    "IngestionSummary",
]
