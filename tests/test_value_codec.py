"""Tests for single-cell decode/encode rules."""
from __future__ import annotations

import math

import pytest

from csvstore.common.errors import ValueEncodingError
from csvstore.core.codec import decode_value, encode_value


@pytest.mark.parametrize(
    ("token", "expected"),
    [
        ("", None),
        ("   ", None),
        ("null", None),
        ("NULL", None),
        ("true", True),
        (" False ", False),
        ("42", 42),
        ("-7", -7),
        ("+3", 3),
        ("3.5", 3.5),
        (".5", 0.5),
        ("1e3", 1000.0),
        ("Jane", "Jane"),
        ("  Mixed Case  ", "Mixed Case"),
        ("12abc", "12abc"),
        ('"a,b"', "a,b"),
        ('"42"', 42),
    ],
)
def test_decode_value(token: str, expected: object) -> None:
    result = decode_value(token)
    assert result == expected
    assert type(result) is type(expected)


def test_decode_special_numbers() -> None:
    assert decode_value("Infinity") == math.inf
    assert decode_value("-Infinity") == -math.inf
    assert decode_value("NaN") == "NaN"


def test_decode_strips_only_one_pair_of_quotes() -> None:
    assert decode_value('""x""') == '"x"'


def test_encode_scalars() -> None:
    assert encode_value(None) == "null"
    assert encode_value(True) == "true"
    assert encode_value(False) == "false"
    assert encode_value(21) == "21"
    assert encode_value(2.5) == "2.5"
    assert encode_value(math.inf) == "Infinity"
    assert encode_value("John") == "John"


def test_encode_quotes_strings_containing_delimiter() -> None:
    assert encode_value("Doe, John", ",") == '"Doe, John"'
    assert encode_value("Doe, John", ";") == "Doe, John"
    assert encode_value("a;b", ";") == '"a;b"'


def test_quoted_value_decodes_back_to_original() -> None:
    original = "Smith, Jane"
    assert decode_value(encode_value(original, ",")) == original


def test_embedded_quotes_written_unescaped() -> None:
    assert encode_value('say "hi"', ",") == 'say "hi"'


@pytest.mark.parametrize("value", [[1, 2], {"a": 1}, object()])
def test_encode_rejects_composites(value: object) -> None:
    with pytest.raises(ValueEncodingError):
        encode_value(value)  # type: ignore[arg-type]


@pytest.mark.parametrize("value", ["Jane", 19, -3, 0.25, 1e-9, True, False, None, "with,comma"])
def test_round_trip(value: object) -> None:
    assert decode_value(encode_value(value, ",")) == value


def test_nan_is_written_as_text_and_read_back_as_string() -> None:
    assert encode_value(math.nan) == "NaN"
    assert decode_value(encode_value(math.nan)) == "NaN"
