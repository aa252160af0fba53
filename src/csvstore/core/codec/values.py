"""Conversion between a single cell token and a typed value."""
from __future__ import annotations

import math
import re
from typing import Final

from csvstore.common.errors import ValueEncodingError
from csvstore.common.models import Value

QUOTE: Final[str] = '"'
NULL_TEXT: Final[str] = "null"

_INT_PATTERN = re.compile(r"^[+-]?\d+$", re.ASCII)
_FLOAT_PATTERN = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$", re.ASCII)
_SPECIAL_FLOATS: Final[dict[str, float]] = {
    "Infinity": math.inf,
    "+Infinity": math.inf,
    "-Infinity": -math.inf,
}


def strip_quotes(token: str) -> str:
    """Remove exactly one pair of surrounding double quotes, if present."""

    if len(token) >= 2 and token.startswith(QUOTE) and token.endswith(QUOTE):
        return token[1:-1]
    return token


def decode_value(token: str | None) -> Value:
    """Infer a typed value from a raw cell token.

    Order: null, boolean, number, string. Strings keep their case.
    """

    if token is None:
        return None
    cleaned = strip_quotes(token.strip()).strip()
    lowered = cleaned.lower()
    if not cleaned or lowered == NULL_TEXT:
        return None
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    number = parse_number(cleaned)
    if number is not None:
        return number
    return cleaned


def parse_number(text: str) -> int | float | None:
    """Return the number when the whole text is a numeric literal."""

    if _INT_PATTERN.fullmatch(text):
        return int(text)
    if _FLOAT_PATTERN.fullmatch(text):
        return float(text)
    return _SPECIAL_FLOATS.get(text)


def encode_value(value: Value, delimiter: str = ",") -> str:
    """Render a value as a delimiter-safe token.

    Strings containing the delimiter are wrapped in double quotes; embedded
    quotes and line breaks are written unescaped.
    """

    if value is None:
        return NULL_TEXT
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _format_float(value)
    if isinstance(value, str):
        if delimiter and delimiter in value:
            return f"{QUOTE}{value}{QUOTE}"
        return value
    raise ValueEncodingError(
        f"Unsupported value type '{type(value).__name__}'; expected str, number, bool or None",
        context={"value": repr(value)},
    )


def _format_float(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    return repr(value)
