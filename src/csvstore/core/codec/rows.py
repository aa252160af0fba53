"""Line-level codec: split, decode and encode one record row."""
from __future__ import annotations

from typing import List, Mapping

from csvstore.common.models import Record, Schema, Value
from csvstore.core.codec.values import QUOTE, decode_value, encode_value

LINE_BREAK = "\n"


def split_line(line: str, delimiter: str) -> List[str]:
    """Split a raw line on ``delimiter`` without breaking quoted fields.

    A delimiter met after an odd number of quote characters since the start
    of the current field belongs to the field. An unterminated quote makes the
    rest of the line the final field. Quotes are kept in the tokens.
    """

    if not delimiter:
        raise ValueError("delimiter must be a non-empty string")
    tokens: List[str] = []
    width = len(delimiter)
    start = 0
    quotes = 0
    index = 0
    length = len(line)
    while index < length:
        if line[index] == QUOTE:
            quotes += 1
            index += 1
            continue
        if quotes % 2 == 0 and line.startswith(delimiter, index):
            tokens.append(line[start:index])
            index += width
            start = index
            quotes = 0
            continue
        index += 1
    tokens.append(line[start:])
    return tokens


def decode_values(line: str, delimiter: str) -> List[Value]:
    """Decode every token of a line without a schema."""

    return [decode_value(token) for token in split_line(_strip_terminator(line), delimiter)]


def decode_row(line: str, schema: Schema, delimiter: str) -> Record:
    """Map tokens onto schema fields by position.

    Tokens past the schema length are ignored; missing trailing tokens decode
    to ``None``.
    """

    tokens = split_line(_strip_terminator(line), delimiter)
    record: Record = {}
    for index, spec in enumerate(schema):
        record[spec.name] = decode_value(tokens[index]) if index < len(tokens) else None
    return record


def encode_row(record: Mapping[str, Value], schema: Schema, delimiter: str) -> str:
    """Encode a record in schema order, prefixed with a line break for appending."""

    cells = [encode_value(record.get(spec.name), delimiter) for spec in schema]
    return LINE_BREAK + delimiter.join(cells)


def _strip_terminator(line: str) -> str:
    return line.rstrip("\r\n")
