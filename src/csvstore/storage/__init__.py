"""Storage providers for record files (plain text, JSON, Parquet)."""

from .file_store import append_text, iter_lines, read_first_line, write_text_atomic
from .json_store import (
    load_records_json,
    records_from_json,
    records_to_json,
    save_records_json,
)
from .parquet_store import save_records_parquet

__all__ = [
    "append_text",
    "iter_lines",
    "read_first_line",
    "write_text_atomic",
    "load_records_json",
    "records_from_json",
    "records_to_json",
    "save_records_json",
    "save_records_parquet",
]
