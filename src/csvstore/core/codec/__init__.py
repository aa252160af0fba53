"""Value and row codecs for delimited record lines."""

from .rows import decode_row, decode_values, encode_row, split_line
from .values import decode_value, encode_value, parse_number, strip_quotes

__all__ = [
    "decode_row",
    "decode_values",
    "encode_row",
    "split_line",
    "decode_value",
    "encode_value",
    "parse_number",
    "strip_quotes",
]
