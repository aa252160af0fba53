"""Optional Parquet export backed by pyarrow."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Mapping, Sequence

from csvstore.common.errors import CSVStoreError, ErrorCode, ValueEncodingError
from csvstore.common.models import FieldType, HeaderSpec, Schema, Value
from csvstore.core.codec.values import encode_value

try:  # pragma: no cover - optional dependency validated via tests
    import pyarrow as pa
    import pyarrow.parquet as pq
except ImportError:  # pragma: no cover
    pa = None  # type: ignore[assignment]
    pq = None  # type: ignore[assignment]


def save_records_parquet(records: Sequence[Mapping[str, Value]], schema: Schema, path: Path) -> int:
    """Write records as a Parquet table typed from the declared column types.

    Dynamic columns are stored as strings using the cell codec's text form.
    Returns the number of rows written.
    """

    if pa is None or pq is None:  # pragma: no cover - guarded by dependency
        raise CSVStoreError(
            ErrorCode.DEPENDENCY_ERROR,
            "pyarrow is required for Parquet export. Install the 'parquet' extra.",
        )
    arrow_schema = pa.schema([(spec.name, _arrow_type(spec)) for spec in schema])
    columns: Dict[str, List[Any]] = {spec.name: [] for spec in schema}
    for index, record in enumerate(records):
        for spec in schema:
            columns[spec.name].append(_column_value(spec, record.get(spec.name), index))
    table = pa.table(columns, schema=arrow_schema)
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    pq.write_table(table, target)
    return table.num_rows


def _arrow_type(spec: HeaderSpec) -> Any:
    if spec.declared_type is FieldType.NUMBER:
        return pa.float64()
    if spec.declared_type is FieldType.BOOLEAN:
        return pa.bool_()
    return pa.string()


def _column_value(spec: HeaderSpec, value: Value, row: int) -> Any:
    if value is None:
        return None
    kind = spec.declared_type
    if kind is FieldType.NUMBER:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
    elif kind is FieldType.BOOLEAN:
        if isinstance(value, bool):
            return value
    elif kind is FieldType.STRING:
        if isinstance(value, str):
            return value
    else:
        return value if isinstance(value, str) else encode_value(value)
    raise ValueEncodingError(
        f"Row {row}: value {value!r} does not match declared {kind.value} column '{spec.name}'",
        context={"row": row, "field": spec.name},
    )
