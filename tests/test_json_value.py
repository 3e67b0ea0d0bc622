from __future__ import annotations

import math

import pytest

from confstore.errors import JsonValueError
from confstore.json_value import JsonKind, JsonValue, parse_json5, parse_json_value, serialize_json_value


def test_duplicate_keys_are_kept_and_last_wins_on_lookup():
    value = parse_json_value('{"a": 1, "a": 2}')
    assert value.is_object
    assert len(value.members) == 2
    assert value.get("a") == JsonValue.integer(2)
    assert value.to_python() == {"a": 2}


def test_json5_comments_trailing_commas_and_bom():
    value = parse_json_value(b'\xef\xbb\xbf{\n  // comment\n  name: "x",\n  items: [1, 2,],\n}')
    assert value.get("name") == JsonValue.string("x")
    assert [item.value for item in value.get("items").items] == [1, 2]


def test_empty_input_is_null():
    assert parse_json_value("").is_null
    assert parse_json_value(b"\xef\xbb\xbf").is_null


def test_invalid_input_raises():
    with pytest.raises(JsonValueError):
        parse_json_value("{")
    with pytest.raises(JsonValueError):
        parse_json5(b"\xff\xfe")


def test_integer_kinds():
    assert JsonValue.integer(5).kind is JsonKind.UINT64
    assert JsonValue.integer(-5).kind is JsonKind.INT64
    assert JsonValue.integer(2**64).kind is JsonKind.DOUBLE
    assert JsonValue.from_python(True).kind is JsonKind.BOOL


def test_from_python_rejects_unknown_types():
    with pytest.raises(JsonValueError):
        JsonValue.from_python({"a": object()})


def test_serialize_compact_and_indented():
    value = JsonValue.from_python({"a": [1, True, None], "b": "é"})
    assert serialize_json_value(value) == '{"a":[1,true,null],"b":"é"}'
    assert serialize_json_value(value, indent=2).startswith('{\n  "a": [')


def test_serialize_rejects_non_finite_numbers():
    with pytest.raises(JsonValueError):
        serialize_json_value(JsonValue.array([JsonValue.double(math.inf)]))


def test_values_share_structure_when_copied():
    inner = JsonValue.from_python({"x": 1})
    outer = JsonValue.object([("inner", inner)])
    assert outer.get("inner") is inner
