"""Shared error codes and exceptions for the record store."""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    CONFIG_ERROR = "CONFIG_ERROR"
    SCHEMA_ERROR = "SCHEMA_ERROR"
    VALUE_ERROR = "VALUE_ERROR"
    IO_ERROR = "IO_ERROR"
    JSON_ERROR = "JSON_ERROR"
    DEPENDENCY_ERROR = "DEPENDENCY_ERROR"


class CSVStoreError(RuntimeError):
    """Exception carrying a structured error code for callers and the CLI."""

    def __init__(self, code: ErrorCode, message: str, *, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.code = code
        self.context = context or {}

    def __str__(self) -> str:  # pragma: no cover - formatting sugar
        base = super().__str__()
        return f"[{self.code.value}] {base}" if base else self.code.value


class SchemaError(CSVStoreError):
    """Raised when a header list cannot be turned into a schema."""

    def __init__(self, message: str, *, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(ErrorCode.SCHEMA_ERROR, message, context=context)


class InvalidHeaderError(SchemaError):
    """Header token whose field name is empty or not alphanumeric."""

    def __init__(self, header: str, character: Optional[str]) -> None:
        if character is None:
            message = f'Invalid header: "{header}". Header must contain a field name.'
        else:
            message = (
                f'Invalid header: "{header}". Header must be alphanumeric. '
                f'Found invalid character "{character}".'
            )
        super().__init__(message, context={"header": header, "character": character})
        self.header = header
        self.character = character


class ValueEncodingError(CSVStoreError):
    """Raised for values that have no textual cell representation."""

    def __init__(self, message: str, *, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(ErrorCode.VALUE_ERROR, message, context=context)


class JSONFormatError(CSVStoreError):
    """Raised when JSON input is not an array of flat objects."""

    def __init__(self, message: str, *, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(ErrorCode.JSON_ERROR, message, context=context)
