"""Tests for header token parsing and schema inference."""
from __future__ import annotations

import pytest

from csvstore.common.errors import ErrorCode, InvalidHeaderError, SchemaError
from csvstore.common.models import FieldType
from csvstore.core.headers import infer_schema, parse_header, parse_schema


def test_prefix_and_optional_suffix_are_stripped() -> None:
    spec = parse_header("n:age?")
    assert spec.name == "age"
    assert spec.declared_type is FieldType.NUMBER
    assert spec.optional is True
    assert spec.raw == "n:age?"


def test_plain_header_is_dynamic_and_required() -> None:
    spec = parse_header("isAlive")
    assert spec.name == "isAlive"
    assert spec.declared_type is FieldType.DYNAMIC
    assert spec.optional is False


@pytest.mark.parametrize(
    ("token", "expected"),
    [
        ("s:name", FieldType.STRING),
        ("b:active", FieldType.BOOLEAN),
        ("n:score", FieldType.NUMBER),
        ("x:other", None),
    ],
)
def test_type_prefixes(token: str, expected: FieldType | None) -> None:
    if expected is None:
        with pytest.raises(InvalidHeaderError) as exc:
            parse_header(token)
        assert exc.value.character == ":"
    else:
        assert parse_header(token).declared_type is expected


def test_space_in_header_names_offending_character() -> None:
    with pytest.raises(InvalidHeaderError) as exc:
        parse_header("na me")
    assert exc.value.character == " "
    assert exc.value.header == "na me"
    assert exc.value.code == ErrorCode.SCHEMA_ERROR
    assert '" "' in str(exc.value)


def test_empty_name_rejected() -> None:
    with pytest.raises(InvalidHeaderError) as exc:
        parse_header("n:?")
    assert exc.value.character is None
    assert exc.value.header == "n:?"


def test_question_mark_inside_name_rejected() -> None:
    with pytest.raises(InvalidHeaderError) as exc:
        parse_header("a?b")
    assert exc.value.character == "?"


def test_parse_schema_keeps_order() -> None:
    schema = parse_schema(["name", "n:age", "b:isAlive?"])
    assert schema.names() == ["name", "age", "isAlive"]
    assert schema.required_names() == ["name", "age"]
    assert schema.header_line(";") == "name;age;isAlive"


def test_parse_schema_rejects_duplicates() -> None:
    with pytest.raises(SchemaError) as exc:
        parse_schema(["id", "n:id?"])
    assert "Duplicate" in str(exc.value)


def test_infer_schema_takes_tokens_verbatim() -> None:
    schema = infer_schema("id, name ,age\r\n", ",")
    assert schema.names() == ["id", "name", "age"]
    assert all(spec.declared_type is FieldType.DYNAMIC for spec in schema)
    assert not any(spec.optional for spec in schema)


def test_infer_schema_from_empty_line() -> None:
    assert len(infer_schema("", ",")) == 0
    assert len(infer_schema(None, ",")) == 0


def test_invalid_header_reports_full_token() -> None:
    with pytest.raises(InvalidHeaderError) as exc:
        parse_header(" n:na me? ")
    assert exc.value.header == "n:na me?"
    assert exc.value.character == " "
