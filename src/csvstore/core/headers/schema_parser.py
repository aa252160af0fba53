"""Derive a typed schema from header tokens such as ``n:age?``."""
from __future__ import annotations

import re
from typing import Iterable, Optional

from csvstore.common.errors import InvalidHeaderError, SchemaError
from csvstore.common.models import TYPE_PREFIXES, FieldType, HeaderSpec, Schema
from csvstore.core.codec.rows import split_line

_INVALID_CHAR = re.compile(r"[^A-Za-z0-9]")
OPTIONAL_SUFFIX = "?"


def parse_header(token: str) -> HeaderSpec:
    """Parse a single header token.

    The type prefix (``s:``, ``n:``, ``b:``) is removed first, then the
    trailing ``?``. The remaining name must be non-empty and alphanumeric.
    """

    raw = token
    text = token.strip()
    name = text
    declared_type = FieldType.DYNAMIC
    prefix = name[:2]
    if prefix in TYPE_PREFIXES:
        declared_type = TYPE_PREFIXES[prefix]
        name = name[2:]
    optional = name.endswith(OPTIONAL_SUFFIX)
    if optional:
        name = name[: -len(OPTIONAL_SUFFIX)]

    if not name:
        raise InvalidHeaderError(text, None)
    match = _INVALID_CHAR.search(name)
    if match:
        raise InvalidHeaderError(text, match.group(0))
    return HeaderSpec(name=name, declared_type=declared_type, optional=optional, raw=raw)


def parse_schema(tokens: Iterable[str]) -> Schema:
    specs = tuple(parse_header(token) for token in tokens)
    _ensure_unique(specs)
    return Schema(fields=specs)


def infer_schema(header_line: Optional[str], delimiter: str) -> Schema:
    """Build an untyped schema from the first line of an existing file.

    On-disk headers are already canonical, so no prefix or suffix handling and
    no validation is applied.
    """

    if header_line is None:
        return Schema()
    text = header_line.rstrip("\r\n")
    if not text.strip():
        return Schema()
    specs = tuple(
        HeaderSpec(name=name.strip(), raw=name)
        for name in split_line(text, delimiter)
    )
    return Schema(fields=specs)


def _ensure_unique(specs: Iterable[HeaderSpec]) -> None:
    seen = set()
    for spec in specs:
        if spec.name in seen:
            raise SchemaError(
                f'Duplicate header: "{spec.name}". Field names must be unique.',
                context={"header": spec.name},
            )
        seen.add(spec.name)
