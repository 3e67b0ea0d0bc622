"""Settings schema export with plugin configuration schemas merged in.

Plugins describe their configuration as ``{"title": ..., "fields": [...]}``
where each field has a ``key`` and a ``type`` of ``text``, ``value``,
``bool``, ``option`` or ``selection``. Each plugin schema becomes a
``$defs/pluginConfig_<id>_<hash>`` entry referenced from
``configurationByPluginId`` in the base settings schema.
"""

from __future__ import annotations

import json
import logging
import string
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from confstore.errors import JsonValueError, SettingsStoreError
from confstore.json_value import parse_json5
from confstore.settings_schema import get_settings_store_schema_json
from confstore.settings_store import save_settings_schema

log = logging.getLogger(__name__)

_DEFS_REF_PREFIX = "#/$defs/"
_SAFE_NAME_CHARS = frozenset(string.ascii_letters + string.digits)


@dataclass(frozen=True, slots=True)
class PluginSchemaSource:
    plugin_id: str
    schema_json: str | bytes = ""


def _fnv1a_32(data: bytes) -> int:
    value = 0x811C9DC5
    for byte in data:
        value ^= byte
        value = (value * 0x01000193) & 0xFFFFFFFF
    return value


def plugin_schema_def_name(plugin_id: str) -> str:
    raw = plugin_id.encode("utf-8")
    safe = "".join(chr(byte) if chr(byte) in _SAFE_NAME_CHARS else "_" for byte in raw)
    return f"pluginConfig_{safe}_{_fnv1a_32(raw):08X}"


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _option_values(options: Any) -> list[str]:
    if not isinstance(options, list):
        return []
    values: list[str] = []
    for option in options:
        if isinstance(option, Mapping):
            value = option.get("value")
            if isinstance(value, str) and value:
                values.append(value)
    return values


def _field_property(item: Mapping[str, Any], field_type: str) -> dict[str, Any]:
    prop: dict[str, Any] = {}
    label = item.get("label")
    if isinstance(label, str) and label:
        prop["title"] = label
    description = item.get("description")
    if isinstance(description, str) and description:
        prop["description"] = description

    default = item.get("default")
    if field_type == "text":
        prop["type"] = "string"
        if isinstance(default, str):
            prop["default"] = default
    elif field_type == "value":
        prop["type"] = "integer"
        if _is_int(default):
            prop["default"] = default
        for source, target in (("min", "minimum"), ("max", "maximum")):
            if _is_int(item.get(source)):
                prop[target] = item[source]
    elif field_type in ("bool", "boolean"):
        prop["type"] = "boolean"
        if isinstance(default, bool):
            prop["default"] = default
    elif field_type == "option":
        prop["type"] = "string"
        values = _option_values(item.get("options"))
        if values:
            prop["enum"] = values
        if isinstance(default, str):
            prop["default"] = default
    elif field_type == "selection":
        prop["type"] = "array"
        prop["uniqueItems"] = True
        items: dict[str, Any] = {"type": "string"}
        values = _option_values(item.get("options"))
        if values:
            items["enum"] = values
        prop["items"] = items
        if isinstance(default, list):
            prop["default"] = [entry for entry in default if isinstance(entry, str) and entry]
    else:
        prop["additionalProperties"] = True
    return prop


def plugin_config_json_schema(plugin_id: str, schema_json: str | bytes) -> dict[str, Any]:
    """Convert one plugin's field list into a JSON Schema object.

    Anything unreadable degrades to an open object titled with the plugin id.
    """
    open_schema = {"type": "object", "title": plugin_id, "additionalProperties": True}
    if not schema_json:
        return open_schema
    try:
        root = parse_json5(schema_json)
    except JsonValueError as exc:
        log.debug("Configuration schema of plugin %s is not valid JSON5: %s", plugin_id, exc)
        return open_schema
    if not isinstance(root, Mapping):
        return open_schema

    title = root.get("title")
    schema: dict[str, Any] = {"type": "object", "title": title if isinstance(title, str) and title else plugin_id}
    fields = root.get("fields")
    if not isinstance(fields, list):
        schema["additionalProperties"] = True
        return schema

    properties: dict[str, Any] = {}
    schema["additionalProperties"] = False
    schema["properties"] = properties
    for item in fields:
        if not isinstance(item, Mapping):
            continue
        key = item.get("key")
        field_type = item.get("type")
        if not isinstance(key, str) or not key or not isinstance(field_type, str):
            continue
        properties[key] = _field_property(item, field_type)
    return schema


def _invalid(message: str) -> SettingsStoreError:
    return SettingsStoreError(f"Settings schema cannot be aggregated: {message}", kind="invalid_schema")


def _plugins_settings(root: dict[str, Any], defs: dict[str, Any]) -> dict[str, Any]:
    node = defs.get("pluginsSettings")
    if node is None:
        properties = root.get("properties")
        node = properties.get("plugins") if isinstance(properties, dict) else None
        ref = node.get("$ref") if isinstance(node, dict) else None
        if isinstance(ref, str) and ref.startswith(_DEFS_REF_PREFIX):
            node = defs.get(ref[len(_DEFS_REF_PREFIX):])
    if not isinstance(node, dict):
        raise _invalid("no plugins settings object")
    return node


def build_aggregated_settings_schema(
    app_id: str,
    plugin_schemas: Iterable[PluginSchemaSource],
    *,
    base_schema: str | None = None,
) -> str:
    """Return the settings schema text with every plugin's configuration schema merged in.

    ``base_schema`` defaults to the shipped schema. Empty and repeated plugin
    ids are skipped; the first occurrence wins.
    """
    text = get_settings_store_schema_json() if base_schema is None else base_schema
    if not text:
        raise SettingsStoreError("The shipped settings schema is unavailable.", kind="schema_unavailable")
    try:
        root = json.loads(text[1:] if text.startswith("\ufeff") else text)
    except ValueError as exc:
        raise JsonValueError(f"Settings schema is not valid JSON: {exc}") from exc
    if not isinstance(root, dict):
        raise _invalid("root is not an object")

    root["$comment"] = f"Generated by {app_id} (aggregated plugin config schemas)."
    defs = root.get("$defs")
    if not isinstance(defs, dict):
        raise _invalid("missing $defs")
    plugins = _plugins_settings(root, defs)
    plugin_properties = plugins.get("properties")
    config_by_id = plugin_properties.get("configurationByPluginId") if isinstance(plugin_properties, dict) else None
    if not isinstance(config_by_id, dict):
        raise _invalid("missing configurationByPluginId")
    config_properties = config_by_id.setdefault("properties", {})

    added: set[str] = set()
    for source in plugin_schemas:
        if not source.plugin_id or source.plugin_id in added:
            continue
        def_name = plugin_schema_def_name(source.plugin_id)
        defs[def_name] = plugin_config_json_schema(source.plugin_id, source.schema_json)
        config_properties[source.plugin_id] = {"$ref": f"{_DEFS_REF_PREFIX}{def_name}"}
        added.add(source.plugin_id)

    return json.dumps(root, ensure_ascii=False, indent=2) + "\n"


def save_aggregated_settings_schema(app_id: str, plugin_schemas: Iterable[PluginSchemaSource]) -> None:
    """Write the aggregated schema next to the settings file of ``app_id``."""
    save_settings_schema(app_id, build_aggregated_settings_schema(app_id, plugin_schemas))


__all__ = [
    "PluginSchemaSource",
    "build_aggregated_settings_schema",
    "plugin_config_json_schema",
    "plugin_schema_def_name",
    "save_aggregated_settings_schema",
]
