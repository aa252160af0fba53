"""Typed record store over a single delimited text file."""

from csvstore.common.errors import (
    CSVStoreError,
    ErrorCode,
    InvalidHeaderError,
    JSONFormatError,
    SchemaError,
    ValueEncodingError,
)
from csvstore.common.models import FieldType, HeaderSpec, Record, Schema, Value
from csvstore.core.collection import CSVCollection

__version__ = "0.3.0"

__all__ = [
    "CSVCollection",
    "CSVStoreError",
    "ErrorCode",
    "FieldType",
    "HeaderSpec",
    "InvalidHeaderError",
    "JSONFormatError",
    "Record",
    "Schema",
    "SchemaError",
    "Value",
    "ValueEncodingError",
]
