"""Versioned, crash-safe settings persistence for desktop applications."""

from .core.colors import format_color, try_parse_color
from .errors import (
    FileReadError,
    FileTooLargeError,
    FileWriteError,
    JsonValueError,
    SettingsOutOfMemoryError,
    SettingsStoreError,
)
from .json_value import JsonKind, JsonValue, parse_json_value, serialize_json_value
from .schema_export import PluginSchemaSource, build_aggregated_settings_schema, save_aggregated_settings_schema
from .schema_fields import SettingField, parse_settings_schema
from .settings_models import LoadStatus, Settings, WindowBounds, WindowPlacement, WindowState, default_settings
from .settings_paths import SettingsPaths
from .settings_schema import get_settings_store_schema_json
from .settings_serializer import prepare_for_save, serialize_settings
from .settings_store import (
    SettingsStore,
    get_settings_path,
    get_settings_schema_path,
    load_settings,
    save_settings,
    save_settings_schema,
)
from .theme_loader import ThemeLoadResult, load_theme_definitions_from_directory
from .window_placement import WorkArea, normalize_window_placement

__version__ = "7.0.0"

__all__ = [
    "FileReadError",
    "FileTooLargeError",
    "FileWriteError",
    "JsonKind",
    "JsonValue",
    "JsonValueError",
    "LoadStatus",
    "PluginSchemaSource",
    "SettingField",
    "Settings",
    "SettingsOutOfMemoryError",
    "SettingsPaths",
    "SettingsStore",
    "SettingsStoreError",
    "ThemeLoadResult",
    "WindowBounds",
    "WindowPlacement",
    "WindowState",
    "WorkArea",
    "build_aggregated_settings_schema",
    "default_settings",
    "format_color",
    "get_settings_path",
    "get_settings_schema_path",
    "get_settings_store_schema_json",
    "load_settings",
    "load_theme_definitions_from_directory",
    "normalize_window_placement",
    "parse_json_value",
    "parse_settings_schema",
    "prepare_for_save",
    "save_aggregated_settings_schema",
    "save_settings",
    "save_settings_schema",
    "serialize_json_value",
    "serialize_settings",
    "try_parse_color",
]
