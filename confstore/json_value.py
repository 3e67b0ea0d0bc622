"""Generic JSON value tree used for plugin configuration blobs and opaque payloads.

Values are immutable: arrays are tuples of values and objects are tuples of
``(key, value)`` pairs, so copying a value only copies a reference and a tree can
never contain a cycle. Objects keep insertion order and tolerate duplicate keys.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Iterator, Mapping

import json5

from confstore.errors import JsonValueError, SettingsOutOfMemoryError

_INT64_MIN = -(2**63)
_UINT64_MAX = 2**64 - 1
_UTF8_BOM = b"\xef\xbb\xbf"


class JsonKind(Enum):
    NULL = "null"
    BOOL = "bool"
    INT64 = "int64"
    UINT64 = "uint64"
    DOUBLE = "double"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"


@dataclass(frozen=True, slots=True)
class JsonValue:
    kind: JsonKind = JsonKind.NULL
    value: Any = None

    @classmethod
    def null(cls) -> "JsonValue":
        return _NULL

    @classmethod
    def boolean(cls, value: bool) -> "JsonValue":
        return cls(JsonKind.BOOL, bool(value))

    @classmethod
    def integer(cls, value: int) -> "JsonValue":
        number = int(value)
        if 0 <= number <= _UINT64_MAX:
            return cls(JsonKind.UINT64, number)
        if _INT64_MIN <= number < 0:
            return cls(JsonKind.INT64, number)
        try:
            return cls(JsonKind.DOUBLE, float(number))
        except OverflowError as exc:
            raise JsonValueError(f"Integer {number} cannot be represented.") from exc

    @classmethod
    def double(cls, value: float) -> "JsonValue":
        return cls(JsonKind.DOUBLE, float(value))

    @classmethod
    def string(cls, value: str) -> "JsonValue":
        return cls(JsonKind.STRING, str(value))

    @classmethod
    def array(cls, items: Iterable["JsonValue"] = ()) -> "JsonValue":
        return cls(JsonKind.ARRAY, tuple(items))

    @classmethod
    def object(cls, members: Iterable[tuple[str, "JsonValue"]] = ()) -> "JsonValue":
        return cls(JsonKind.OBJECT, tuple((str(key), item) for key, item in members))

    @classmethod
    def from_python(cls, data: Any) -> "JsonValue":
        if isinstance(data, JsonValue):
            return data
        if data is None:
            return _NULL
        if isinstance(data, bool):
            return cls.boolean(data)
        if isinstance(data, int):
            return cls.integer(data)
        if isinstance(data, float):
            return cls.double(data)
        if isinstance(data, str):
            return cls.string(data)
        if isinstance(data, Mapping):
            return cls.object((str(key), cls.from_python(item)) for key, item in data.items())
        if isinstance(data, (list, tuple)):
            return cls.array(cls.from_python(item) for item in data)
        raise JsonValueError(f"Unsupported value of type {type(data).__name__}.")

    @property
    def is_null(self) -> bool:
        return self.kind is JsonKind.NULL

    @property
    def is_object(self) -> bool:
        return self.kind is JsonKind.OBJECT

    @property
    def is_array(self) -> bool:
        return self.kind is JsonKind.ARRAY

    @property
    def is_string(self) -> bool:
        return self.kind is JsonKind.STRING

    @property
    def is_number(self) -> bool:
        return self.kind in (JsonKind.INT64, JsonKind.UINT64, JsonKind.DOUBLE)

    @property
    def members(self) -> tuple[tuple[str, "JsonValue"], ...]:
        return self.value if self.kind is JsonKind.OBJECT else ()

    @property
    def items(self) -> tuple["JsonValue", ...]:
        return self.value if self.kind is JsonKind.ARRAY else ()

    def get(self, key: str) -> "JsonValue | None":
        """Return the last member named ``key``."""
        found: JsonValue | None = None
        for member_key, member_value in self.members:
            if member_key == key:
                found = member_value
        return found

    def keys(self) -> Iterator[str]:
        return (key for key, _ in self.members)

    def to_python(self) -> Any:
        kind = self.kind
        if kind is JsonKind.ARRAY:
            return [item.to_python() for item in self.value]
        if kind is JsonKind.OBJECT:
            merged: dict[str, Any] = {}
            for key, item in self.value:
                merged[key] = item.to_python()
            return merged
        return self.value


_NULL = JsonValue()


def _from_parsed(node: Any) -> JsonValue:
    if isinstance(node, JsonValue):
        return node
    if isinstance(node, list):
        return JsonValue.array(_from_parsed(item) for item in node)
    return JsonValue.from_python(node)


def _object_from_pairs(pairs: list[tuple[str, Any]]) -> JsonValue:
    return JsonValue.object((key, _from_parsed(item)) for key, item in pairs)


def _decode_text(data: str | bytes | bytearray) -> str:
    if isinstance(data, (bytes, bytearray)):
        raw = bytes(data)
        if raw.startswith(_UTF8_BOM):
            raw = raw[len(_UTF8_BOM):]
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise JsonValueError(f"Input is not valid UTF-8: {exc}", position=exc.start) from exc
    return data[1:] if data.startswith("﻿") else data


def parse_json5(data: str | bytes | bytearray) -> Any:
    """Parse JSON5 text into plain Python containers (dict/list/scalars)."""
    text = _decode_text(data)
    try:
        return json5.loads(text)
    except MemoryError as exc:
        raise SettingsOutOfMemoryError() from exc
    except RecursionError as exc:
        raise JsonValueError("JSON document is nested too deeply.") from exc
    except ValueError as exc:
        raise JsonValueError(f"Invalid JSON: {exc}") from exc


def parse_json_value(data: str | bytes | bytearray) -> JsonValue:
    """Parse JSON/JSON5 text into a ``JsonValue``. Empty input yields null."""
    text = _decode_text(data)
    if not text:
        return _NULL
    try:
        parsed = json5.loads(text, object_pairs_hook=_object_from_pairs)
        return _from_parsed(parsed)
    except MemoryError as exc:
        raise SettingsOutOfMemoryError() from exc
    except RecursionError as exc:
        raise JsonValueError("JSON document is nested too deeply.") from exc
    except JsonValueError:
        raise
    except ValueError as exc:
        raise JsonValueError(f"Invalid JSON: {exc}") from exc


def _check_finite(value: JsonValue) -> None:
    if value.kind is JsonKind.DOUBLE and not math.isfinite(value.value):
        raise JsonValueError("NaN and infinity cannot be serialized.")
    for child in value.items:
        _check_finite(child)
    for _, child in value.members:
        _check_finite(child)


def serialize_json_value(value: JsonValue, *, indent: int | None = None) -> str:
    _check_finite(value)
    try:
        if indent is None:
            return json.dumps(value.to_python(), ensure_ascii=False, separators=(",", ":"))
        return json.dumps(value.to_python(), ensure_ascii=False, indent=indent)
    except MemoryError as exc:
        raise SettingsOutOfMemoryError() from exc
    except (TypeError, ValueError, RecursionError) as exc:
        raise JsonValueError(f"Could not serialize JSON value: {exc}") from exc


__all__ = [
    "JsonKind",
    "JsonValue",
    "parse_json5",
    "parse_json_value",
    "serialize_json_value",
]
