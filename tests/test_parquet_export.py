from __future__ import annotations

from pathlib import Path

import pytest

pq = pytest.importorskip("pyarrow.parquet", reason="pyarrow is required for parquet export tests")

from csvstore import CSVCollection
from csvstore.common.errors import ValueEncodingError


def test_to_parquet_uses_declared_types(tmp_path: Path) -> None:
    collection = CSVCollection(tmp_path / "people.csv", ["s:name", "n:age", "b:alive?", "misc?"])
    collection.write(
        [
            {"name": "Jane", "age": 19, "alive": True, "misc": 3},
            {"name": "John", "age": 21.5, "misc": "x,y"},
        ]
    )
    output = tmp_path / "out" / "people.parquet"

    assert collection.to_parquet(output) == 2

    table = pq.read_table(output)
    assert table.column_names == ["name", "age", "alive", "misc"]
    assert str(table.schema.field("age").type) == "double"
    assert str(table.schema.field("alive").type) == "bool"
    assert table.to_pylist() == [
        {"name": "Jane", "age": 19.0, "alive": True, "misc": "3"},
        {"name": "John", "age": 21.5, "alive": None, "misc": "x,y"},
    ]


def test_to_parquet_rejects_type_mismatch(tmp_path: Path) -> None:
    collection = CSVCollection(tmp_path / "bad.csv", ["n:age"])
    collection.write({"age": "unknown"})
    with pytest.raises(ValueEncodingError):
        collection.to_parquet(tmp_path / "bad.parquet")
