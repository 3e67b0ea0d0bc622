"""Extraction of UI-annotated settings fields (``x-ui-*``) from the schema document."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Mapping

from confstore.errors import FileReadError, JsonValueError
from confstore.json_value import parse_json5
from confstore.services.file_io import read_bounded

log = logging.getLogger(__name__)

MAX_SCHEMA_FILE_BYTES = 10 * 1024 * 1024
CUSTOM_CONTROL = "custom"


@dataclass(frozen=True, slots=True)
class SettingField:
    json_path: str
    pane_name: str
    title: str
    description: str = ""
    control_type: str = "edit"
    section_header: str = ""
    display_order: int = 0
    schema_type: str = ""
    minimum: int | None = None
    maximum: int | None = None
    enum_values: tuple[str, ...] = field(default_factory=tuple)
    default_value: str = ""


def _str(node: Mapping[str, Any], key: str) -> str | None:
    value = node.get(key)
    return value if isinstance(value, str) else None


def _int(node: Mapping[str, Any], key: str) -> int | None:
    value = node.get(key)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


def _default_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        return value
    return ""


def _property_field(node: Mapping[str, Any], json_path: str, pane: str) -> SettingField:
    enum = node.get("enum")
    return SettingField(
        json_path=json_path,
        pane_name=pane,
        title=_str(node, "title") or json_path,
        description=_str(node, "description") or "",
        control_type=_str(node, "x-ui-control") or "edit",
        section_header=_str(node, "x-ui-section") or "",
        display_order=_int(node, "x-ui-order") or 0,
        schema_type=_str(node, "type") or "string",
        minimum=_int(node, "minimum"),
        maximum=_int(node, "maximum"),
        enum_values=tuple(item for item in enum if isinstance(item, str)) if isinstance(enum, list) else (),
        default_value=_default_text(node.get("default")),
    )


def _walk_properties(properties: Any, base_path: str, out: list[SettingField]) -> None:
    if not isinstance(properties, Mapping):
        return
    for key, node in properties.items():
        if not isinstance(node, Mapping):
            continue
        json_path = f"{base_path}.{key}" if base_path else str(key)
        pane = _str(node, "x-ui-pane")
        if pane is not None:
            out.append(_property_field(node, json_path, pane))
        _walk_properties(node.get("properties"), json_path, out)


def _walk_definitions(definitions: Any, out: list[SettingField]) -> None:
    if not isinstance(definitions, Mapping):
        return
    for name, node in definitions.items():
        if not isinstance(node, Mapping):
            continue
        pane = _str(node, "x-ui-pane")
        if pane is not None:
            out.append(
                SettingField(
                    json_path=str(name),
                    pane_name=pane,
                    title=_str(node, "title") or str(name),
                    description=_str(node, "description") or "",
                    control_type=_str(node, "x-ui-control") or CUSTOM_CONTROL,
                    display_order=_int(node, "x-ui-order") or 0,
                )
            )
        _walk_properties(node.get("properties"), str(name), out)


def parse_settings_schema(text: str | bytes) -> list[SettingField]:
    """Return every annotated field, sorted by pane, then section, then order."""
    if not text:
        return []
    try:
        root = parse_json5(text)
    except JsonValueError as exc:
        log.debug("Settings schema is not valid JSON5: %s", exc)
        return []
    if not isinstance(root, Mapping):
        return []

    fields: list[SettingField] = []
    _walk_properties(root.get("properties"), "", fields)
    _walk_definitions(root.get("$defs"), fields)
    fields.sort(key=lambda item: (item.pane_name, item.section_header, item.display_order))
    return fields


def load_and_parse_settings_schema(path: str | os.PathLike[str]) -> list[SettingField]:
    try:
        data = read_bounded(path, MAX_SCHEMA_FILE_BYTES)
    except FileReadError as exc:
        log.debug("Unable to read settings schema %s: %s", path, exc)
        return []
    return parse_settings_schema(data)


def fields_for_pane(fields: list[SettingField], pane_name: str) -> list[SettingField]:
    return [item for item in fields if item.pane_name == pane_name]


def non_custom_fields_for_pane(fields: list[SettingField], pane_name: str) -> list[SettingField]:
    return [item for item in fields if item.pane_name == pane_name and item.control_type != CUSTOM_CONTROL]


__all__ = [
    "CUSTOM_CONTROL",
    "MAX_SCHEMA_FILE_BYTES",
    "SettingField",
    "fields_for_pane",
    "load_and_parse_settings_schema",
    "non_custom_fields_for_pane",
    "parse_settings_schema",
]
