"""JSON persistence helpers for record collections."""
from __future__ import annotations

import json
import math
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional

from csvstore.common.errors import JSONFormatError, ValueEncodingError
from csvstore.common.models import Record, Value
from csvstore.core.codec.values import encode_value
from csvstore.storage.file_store import write_text_atomic

_SCALARS = (str, int, float, bool, type(None))


def records_to_json(records: Iterable[Mapping[str, Value]], *, indent: Optional[int] = None) -> str:
    """Serialize records to a JSON array of plain objects.

    Non-finite floats are written as their cell text (``"Infinity"``,
    ``"-Infinity"``, ``"NaN"``) so the output stays strict JSON.
    """

    payload = [{key: _json_value(value) for key, value in record.items()} for record in records]
    return json.dumps(payload, indent=indent, ensure_ascii=False, allow_nan=False)


def records_from_json(text: str) -> List[Record]:
    """Parse a JSON array of flat objects into records."""

    try:
        data = json.loads(text, parse_constant=_reject_constant)
    except json.JSONDecodeError as exc:
        raise JSONFormatError(f"Input is not valid JSON: {exc}") from exc
    if not isinstance(data, list):
        raise JSONFormatError("JSON input must be an array of objects")
    return [_coerce_record(item, index) for index, item in enumerate(data)]


def save_records_json(
    records: Iterable[Mapping[str, Value]],
    path: Path,
    *,
    indent: Optional[int] = None,
    fsync: bool = False,
) -> str:
    payload = records_to_json(records, indent=indent)
    write_text_atomic(Path(path), payload, fsync=fsync)
    return payload


def load_records_json(path: Path) -> List[Record]:
    with Path(path).open("r", encoding="utf-8") as handle:
        return records_from_json(handle.read())


def _reject_constant(name: str) -> Any:
    raise JSONFormatError(f"Input contains non-standard JSON constant {name}")


def _json_value(value: Value) -> Value:
    if isinstance(value, float) and not math.isfinite(value):
        return encode_value(value)
    return value


def _coerce_record(item: Any, index: int) -> Record:
    if not isinstance(item, dict):
        raise JSONFormatError(
            f"Item {index} must be an object, got {type(item).__name__}",
            context={"index": index},
        )
    for key, value in item.items():
        if not isinstance(value, _SCALARS):
            raise ValueEncodingError(
                f"Field '{key}' of item {index} is not a scalar value",
                context={"index": index, "field": key},
            )
    return dict(item)
