from __future__ import annotations

import json
from pathlib import Path

from confstore.schema_fields import (
    fields_for_pane,
    load_and_parse_settings_schema,
    non_custom_fields_for_pane,
    parse_settings_schema,
)
from confstore.settings_schema import (
    SchemaCacheState,
    SettingsSchemaCache,
    get_settings_store_schema_json,
    shipped_schema_path,
)


def test_shipped_schema_is_valid_json():
    text = get_settings_store_schema_json()
    assert text
    document = json.loads(text)
    assert "properties" in document
    assert "$defs" in document


def test_cache_loads_once(tmp_path: Path):
    path = tmp_path / "schema.json"
    path.write_text('{"title": "first"}', encoding="utf-8")
    cache = SettingsSchemaCache(path)
    assert cache.state is SchemaCacheState.NOT_LOADED
    assert cache.get() == '{"title": "first"}'
    assert cache.state is SchemaCacheState.LOADED

    path.write_text('{"title": "second"}', encoding="utf-8")
    assert cache.get() == '{"title": "first"}'


def test_missing_resource_is_remembered_as_empty(tmp_path: Path):
    path = tmp_path / "missing.json"
    cache = SettingsSchemaCache(path)
    assert cache.get() == ""
    assert cache.state is SchemaCacheState.LOADED_EMPTY

    path.write_text("{}", encoding="utf-8")
    assert cache.get() == ""


def test_fields_from_shipped_schema():
    fields = load_and_parse_settings_schema(shipped_schema_path())
    by_path = {field.json_path: field for field in fields}

    menu_bar = by_path["mainMenu.menuBarVisible"]
    assert menu_bar.pane_name == "General"
    assert menu_bar.section_header == "Layout"
    assert menu_bar.control_type == "toggle"
    assert menu_bar.schema_type == "boolean"
    assert menu_bar.default_value == "true"

    history = by_path["folders.historyMax"]
    assert (history.minimum, history.maximum, history.default_value) == (1, 50, "20")

    preset = by_path["monitor.filter.preset"]
    assert preset.enum_values == ("custom", "errorsOnly", "errorsWarnings", "allTypes")

    theme = by_path["themeSettings"]
    assert theme.control_type == "custom"
    assert theme.pane_name == "Appearance"
    assert "themeSettings.currentThemeId" in by_path

    keys = [(field.pane_name, field.section_header, field.display_order) for field in fields]
    assert keys == sorted(keys)


def test_pane_filters():
    fields = parse_settings_schema(get_settings_store_schema_json())
    plugins = fields_for_pane(fields, "Plugins")
    assert {field.json_path for field in plugins} == {
        "plugins.currentFileSystemPluginId",
        "extensions.openWithFileSystemByExtension",
        "extensions.openWithViewerByExtension",
    }
    assert [field.json_path for field in non_custom_fields_for_pane(fields, "Plugins")] == [
        "plugins.currentFileSystemPluginId"
    ]


def test_field_defaults_and_fallbacks():
    schema = """{
      properties: {
        group: {
          properties: {
            plain: { "x-ui-pane": "P" },
            later: { "x-ui-pane": "P", "x-ui-order": 5, type: "integer", default: 3 },
          },
        },
      },
    }"""
    fields = parse_settings_schema(schema)
    assert [field.json_path for field in fields] == ["group.plain", "group.later"]
    plain = fields[0]
    assert plain.title == "group.plain"
    assert plain.control_type == "edit"
    assert plain.schema_type == "string"
    assert plain.minimum is None
    assert fields[1].default_value == "3"


def test_invalid_schema_text_yields_no_fields(tmp_path: Path):
    assert parse_settings_schema("") == []
    assert parse_settings_schema("{") == []
    assert parse_settings_schema("[]") == []
    assert load_and_parse_settings_schema(tmp_path / "missing.json") == []
