"""Per-section parsers that fill a ``Settings`` aggregate from a raw document.

Every parser treats a missing or mistyped section as absent and a mistyped
field as unset, so one bad value never costs the rest of the configuration.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import Any, Callable, Iterable, Mapping

from confstore.core.colors import try_parse_color
from confstore.core.keybindings import decode_binding
from confstore.core.units import parse_byte_size
from confstore.errors import JsonValueError
from confstore.json_value import JsonValue, parse_json_value
from confstore.migrations import CURRENT_SCHEMA_VERSION, PLUGINS_MIN_SCHEMA_VERSION, migrate_plugin_id
from confstore.settings_models import (
    MAX_HISTORY_MAX,
    MIN_HISTORY_MAX,
    MONITOR_MASK_ALL,
    CacheSettings,
    CompareDirectoriesSettings,
    ConnectionAuthMode,
    ConnectionProfile,
    ConnectionsSettings,
    FileOperationsSettings,
    FolderDisplayMode,
    FolderPane,
    FoldersSettings,
    FolderSortBy,
    FolderSortDirection,
    FolderViewSettings,
    MainMenuState,
    MonitorFilterPreset,
    MonitorSettings,
    Settings,
    ShortcutsSettings,
    StartupSettings,
    ThemeDefinition,
    WindowBounds,
    WindowPlacement,
    WindowState,
    default_sort_direction,
)

log = logging.getLogger(__name__)

UINT32_MAX = 0xFFFFFFFF
_MS_PER_MINUTE = 60_000
MAX_NAME_SUFFIX = 9999


# -- field helpers: each returns the typed value or None ----------------------

def _get(obj: Mapping[str, Any], key: str) -> Any:
    return obj.get(key) if isinstance(obj, Mapping) else None


def get_object(obj: Mapping[str, Any], key: str) -> Mapping[str, Any] | None:
    value = _get(obj, key)
    return value if isinstance(value, Mapping) else None


def get_array(obj: Mapping[str, Any], key: str) -> list[Any] | None:
    value = _get(obj, key)
    return value if isinstance(value, list) else None


def get_str(obj: Mapping[str, Any], key: str) -> str | None:
    value = _get(obj, key)
    return value if isinstance(value, str) else None


def get_bool(obj: Mapping[str, Any], key: str) -> bool | None:
    value = _get(obj, key)
    if isinstance(value, bool):
        return value
    if value is not None:
        log.debug("Expected boolean for '%s', got %s", key, type(value).__name__)
    return None


def get_int(obj: Mapping[str, Any], key: str) -> int | None:
    value = _get(obj, key)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


def get_uint32(obj: Mapping[str, Any], key: str) -> int | None:
    value = get_int(obj, key)
    if value is None or not 0 <= value <= UINT32_MAX:
        if _get(obj, key) is not None:
            log.debug("Expected unsigned 32-bit integer for '%s'", key)
        return None
    return value


def get_double(obj: Mapping[str, Any], key: str) -> float | None:
    value = _get(obj, key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        result = float(value)
    except OverflowError:
        log.debug("Number for '%s' does not fit a double", key)
        return None
    return result if math.isfinite(result) else None


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _string_list(values: Iterable[Any]) -> list[str]:
    return [item for item in values if isinstance(item, str) and item]


# -- sections -----------------------------------------------------------------

def parse_windows(root: Mapping[str, Any], out: Settings) -> None:
    windows = get_object(root, "windows")
    if windows is None:
        return
    for window_id, payload in windows.items():
        if not window_id or not isinstance(payload, Mapping):
            continue
        placement = WindowPlacement()
        if get_str(payload, "state") == WindowState.MAXIMIZED.value:
            placement.state = WindowState.MAXIMIZED

        bounds = get_object(payload, "bounds")
        if bounds is not None:
            coords = [get_int(bounds, key) for key in ("x", "y", "width", "height")]
            if all(value is not None for value in coords):
                placement.bounds = WindowBounds(*coords)

        dpi = get_uint32(payload, "dpi")
        if dpi:
            placement.dpi = dpi
        out.windows[str(window_id)] = placement


def _parse_colors(colors: Mapping[str, Any]) -> dict[str, int]:
    parsed: dict[str, int] = {}
    for key, value in colors.items():
        if not key or not isinstance(value, str):
            continue
        argb = try_parse_color(value)
        if argb is None:
            log.debug("Skipping invalid color %r for '%s'", value, key)
            continue
        parsed[str(key)] = argb
    return parsed


def parse_theme_definition(payload: Any) -> ThemeDefinition | None:
    if not isinstance(payload, Mapping):
        return None
    theme_id = get_str(payload, "id")
    name = get_str(payload, "name")
    base = get_str(payload, "baseThemeId")
    colors = get_object(payload, "colors")
    if not theme_id or not name or not base or colors is None:
        return None
    return ThemeDefinition(id=theme_id, name=name, base_theme_id=base, colors=_parse_colors(colors))


def parse_theme(root: Mapping[str, Any], out: Settings) -> None:
    theme = get_object(root, "theme")
    if theme is None:
        return
    current = get_str(theme, "currentThemeId")
    if current:
        out.theme.current_theme_id = current

    themes = get_array(theme, "themes")
    if themes is None:
        return
    out.theme.themes = [definition for definition in map(parse_theme_definition, themes) if definition is not None]


def _plugin_config(value: Any) -> JsonValue | None:
    if isinstance(value, str):
        if not value.strip():
            return None
        try:
            return parse_json_value(value)
        except JsonValueError as exc:
            log.debug("Dropping unparseable plugin configuration: %s", exc)
            return None
    try:
        return JsonValue.from_python(value)
    except JsonValueError:
        return None


def parse_plugins(root: Mapping[str, Any], out: Settings) -> None:
    plugins = get_object(root, "plugins")
    if plugins is not None:
        current = get_str(plugins, "currentFileSystemPluginId")
        if current:
            out.plugins.current_file_system_plugin_id = current

        disabled = get_array(plugins, "disabledPluginIds")
        if disabled is not None:
            out.plugins.disabled_plugin_ids = _string_list(disabled)

        custom = get_array(plugins, "customPluginPaths")
        if custom is not None:
            out.plugins.custom_plugin_paths = _string_list(custom)

        configs = get_object(plugins, "configurationByPluginId")
        if configs is not None:
            out.plugins.configuration_by_plugin_id = {}
            for plugin_id, raw in configs.items():
                if not plugin_id:
                    continue
                config = _plugin_config(raw)
                if config is not None:
                    out.plugins.configuration_by_plugin_id[str(plugin_id)] = config

    apply_plugin_id_aliases(out)


def apply_plugin_id_aliases(out: Settings) -> None:
    plugins = out.plugins
    plugins.current_file_system_plugin_id = migrate_plugin_id(plugins.current_file_system_plugin_id)
    plugins.disabled_plugin_ids = [migrate_plugin_id(plugin_id) for plugin_id in plugins.disabled_plugin_ids]
    migrated: dict[str, JsonValue] = {}
    for plugin_id, config in plugins.configuration_by_plugin_id.items():
        migrated.setdefault(migrate_plugin_id(plugin_id), config)
    plugins.configuration_by_plugin_id = migrated


def normalize_extension(extension: str) -> str:
    ext = str(extension)
    if not ext.startswith("."):
        ext = "." + ext
    return ext.lower()


def _parse_extension_map(payload: Mapping[str, Any]) -> dict[str, str]:
    parsed: dict[str, str] = {}
    for ext, plugin_id in payload.items():
        if not ext or not isinstance(plugin_id, str):
            continue
        parsed[normalize_extension(ext)] = plugin_id
    return parsed


def parse_extensions(root: Mapping[str, Any], out: Settings) -> None:
    extensions = get_object(root, "extensions")
    if extensions is None:
        return
    file_systems = get_object(extensions, "openWithFileSystemByExtension")
    if file_systems is not None:
        out.extensions.open_with_file_system_by_extension = _parse_extension_map(file_systems)
    viewers = get_object(extensions, "openWithViewerByExtension")
    if viewers is not None:
        out.extensions.open_with_viewer_by_extension = _parse_extension_map(viewers)


def parse_shortcuts(root: Mapping[str, Any], out: Settings, *, schema_version: int = CURRENT_SCHEMA_VERSION) -> None:
    shortcuts = get_object(root, "shortcuts")
    if shortcuts is None:
        return
    settings = ShortcutsSettings()
    for key, attr in (("functionBar", "function_bar"), ("folderView", "folder_view")):
        bindings = get_array(shortcuts, key) or []
        decoded = [decode_binding(item, schema_version=schema_version) for item in bindings]
        setattr(settings, attr, [binding for binding in decoded if binding is not None])
    out.shortcuts = settings


def parse_cache(root: Mapping[str, Any], out: Settings) -> None:
    cache = get_object(root, "cache")
    if cache is None:
        return
    directory_info = get_object(cache, "directoryInfo")
    if directory_info is None:
        return
    settings = CacheSettings()
    max_bytes = parse_byte_size(_get(directory_info, "maxBytes"))
    if max_bytes:
        settings.directory_info.max_bytes = max_bytes
    settings.directory_info.max_watchers = get_uint32(directory_info, "maxWatchers")
    settings.directory_info.mru_watched = get_uint32(directory_info, "mruWatched")
    out.cache = settings


def normalize_history(history: Iterable[str], max_items: int) -> list[str]:
    normalized: list[str] = []
    for entry in history:
        if not entry or entry in normalized:
            continue
        normalized.append(entry)
        if len(normalized) >= max_items:
            break
    return normalized


def _parse_enum(enum_type: type, text: str | None, fallback: Any) -> Any:
    if text is None:
        return fallback
    try:
        return enum_type(text)
    except ValueError:
        return fallback


def _parse_folder_view(view: Mapping[str, Any]) -> FolderViewSettings:
    settings = FolderViewSettings()
    display = get_str(view, "display")
    if display is not None:
        settings.display = FolderDisplayMode.DETAILED if display == "detailed" else FolderDisplayMode.BRIEF
    sort_by = get_str(view, "sortBy")
    if sort_by is not None:
        settings.sort_by = _parse_enum(FolderSortBy, sort_by, FolderSortBy.NAME)
    direction = get_str(view, "sortDirection")
    if direction is not None:
        settings.sort_direction = (
            FolderSortDirection.DESCENDING if direction == "descending" else FolderSortDirection.ASCENDING
        )
    else:
        settings.sort_direction = default_sort_direction(settings.sort_by)
    status_bar = get_bool(view, "statusBarVisible")
    if status_bar is not None:
        settings.status_bar_visible = status_bar
    return settings


def parse_folders(root: Mapping[str, Any], out: Settings) -> None:
    folders = get_object(root, "folders")
    if folders is None:
        return
    settings = FoldersSettings()
    active = get_str(folders, "active")
    if active is not None:
        settings.active = active

    layout = get_object(folders, "layout")
    if layout is not None:
        split = get_double(layout, "splitRatio")
        if split is not None:
            settings.layout.split_ratio = _clamp(split, 0.0, 1.0)
        zoomed = get_str(layout, "zoomedPane")
        if zoomed:
            settings.layout.zoomed_pane = zoomed
        restore = get_double(layout, "zoomRestoreSplitRatio")
        if restore is not None:
            settings.layout.zoom_restore_split_ratio = _clamp(restore, 0.0, 1.0)

    history_max = get_uint32(folders, "historyMax")
    if history_max is not None:
        settings.history_max = history_max
    settings.history_max = int(_clamp(settings.history_max, MIN_HISTORY_MAX, MAX_HISTORY_MAX))

    history = get_array(folders, "history")
    if history is not None:
        settings.history = normalize_history(_string_list(history), settings.history_max)

    for item in get_array(folders, "items") or []:
        if not isinstance(item, Mapping):
            continue
        slot = get_str(item, "slot")
        current = get_str(item, "current")
        if not slot or not current:
            continue
        view = get_object(item, "view")
        pane = FolderPane(slot=slot, current=current)
        if view is not None:
            pane.view = _parse_folder_view(view)
        settings.items.append(pane)

    if settings.items:
        if not settings.active:
            settings.active = settings.items[0].slot
        out.folders = settings


def parse_monitor(root: Mapping[str, Any], out: Settings) -> None:
    monitor = get_object(root, "monitor")
    if monitor is None:
        return
    settings = MonitorSettings()
    menu = get_object(monitor, "menu")
    if menu is not None:
        for key, attr in (
            ("toolbarVisible", "toolbar_visible"),
            ("lineNumbersVisible", "line_numbers_visible"),
            ("alwaysOnTop", "always_on_top"),
            ("showIds", "show_ids"),
            ("autoScroll", "auto_scroll"),
        ):
            value = get_bool(menu, key)
            if value is not None:
                setattr(settings.menu, attr, value)

    filter_state = get_object(monitor, "filter")
    if filter_state is not None:
        mask = get_uint32(filter_state, "mask")
        if mask is not None:
            settings.filter.mask = mask
        settings.filter.mask &= MONITOR_MASK_ALL
        preset = get_str(filter_state, "preset")
        if preset is not None:
            settings.filter.preset = _parse_enum(MonitorFilterPreset, preset, MonitorFilterPreset.CUSTOM)
    out.monitor = settings


def parse_main_menu(root: Mapping[str, Any], out: Settings) -> None:
    main_menu = get_object(root, "mainMenu")
    if main_menu is None:
        return
    state = MainMenuState()
    menu_bar = get_bool(main_menu, "menuBarVisible")
    if menu_bar is not None:
        state.menu_bar_visible = menu_bar
    function_bar = get_bool(main_menu, "functionBarVisible")
    if function_bar is not None:
        state.function_bar_visible = function_bar
    out.main_menu = state


def parse_startup(root: Mapping[str, Any], out: Settings) -> None:
    startup = get_object(root, "startup")
    if startup is None:
        return
    settings = StartupSettings()
    show_splash = get_bool(startup, "showSplash")
    if show_splash is not None:
        settings.show_splash = show_splash
    out.startup = settings


def _timeout(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return max(0, value)


def _parse_profile(item: Mapping[str, Any]) -> ConnectionProfile | None:
    profile = ConnectionProfile()
    profile.id = get_str(item, "id") or ""
    profile.name = (get_str(item, "name") or "").strip()
    profile.plugin_id = get_str(item, "pluginId") or ""
    profile.host = get_str(item, "host") or ""
    port = get_uint32(item, "port")
    if port is not None:
        profile.port = port
    profile.initial_path = get_str(item, "initialPath") or "/"
    profile.user_name = get_str(item, "userName") or ""
    auth_mode = get_str(item, "authMode")
    if auth_mode is not None:
        profile.auth_mode = _parse_enum(ConnectionAuthMode, auth_mode, ConnectionAuthMode.PASSWORD)
    save_password = get_bool(item, "savePassword")
    if save_password is not None:
        profile.save_password = save_password
    require_hello = get_bool(item, "requireWindowsHello")
    if require_hello is not None:
        profile.require_windows_hello = require_hello
    if "extra" in item:
        try:
            profile.extra = JsonValue.from_python(item["extra"])
        except JsonValueError:
            log.debug("Ignoring unsupported connection extra for %s", profile.id)

    if not profile.id or not profile.name or not profile.plugin_id:
        return None
    if profile.requires_host and not profile.host:
        return None
    return profile


def dedupe_profile_names(profiles: Iterable[ConnectionProfile]) -> list[ConnectionProfile]:
    """Make profile names unique, case-insensitively, with ``" (n)"`` suffixes."""
    used: set[str] = set()
    kept: list[ConnectionProfile] = []
    for profile in profiles:
        base = profile.name.strip().replace("/", "-").replace("\\", "-")
        if not base:
            continue
        unique = base
        if unique.lower() in used:
            for suffix in range(2, MAX_NAME_SUFFIX + 1):
                unique = f"{base} ({suffix})"
                if unique.lower() not in used:
                    break
        used.add(unique.lower())
        kept.append(replace(profile, name=unique))
    return kept


def parse_connections(root: Mapping[str, Any], out: Settings) -> None:
    connections = get_object(root, "connections")
    if connections is None:
        return
    settings = ConnectionsSettings()
    bypass = get_bool(connections, "bypassWindowsHello")
    if bypass is not None:
        settings.bypass_windows_hello = bypass

    if "windowsHelloReauthTimeoutMinute" in connections:
        minutes = _timeout(connections["windowsHelloReauthTimeoutMinute"])
        if minutes is not None:
            settings.windows_hello_reauth_timeout_minute = min(minutes, UINT32_MAX)
    elif "windowsHelloReauthTimeoutMs" in connections:
        milliseconds = _timeout(connections["windowsHelloReauthTimeoutMs"])
        if milliseconds is not None:
            settings.windows_hello_reauth_timeout_minute = min(milliseconds // _MS_PER_MINUTE, UINT32_MAX)

    profiles = [
        profile
        for profile in (_parse_profile(item) for item in get_array(connections, "items") or [] if isinstance(item, Mapping))
        if profile is not None
    ]
    settings.items = dedupe_profile_names(profiles)

    if settings.items or not settings.has_default_globals():
        out.connections = settings


_FILE_OPERATION_FLAGS = (
    ("autoDismissSuccess", "auto_dismiss_success"),
    ("diagnosticsInfoEnabled", "diagnostics_info_enabled"),
    ("diagnosticsDebugEnabled", "diagnostics_debug_enabled"),
)

FILE_OPERATION_COUNTERS = (
    ("maxDiagnosticsLogFiles", "max_diagnostics_log_files"),
    ("maxIssueReportFiles", "max_issue_report_files"),
    ("maxDiagnosticsInMemory", "max_diagnostics_in_memory"),
    ("maxDiagnosticsPerFlush", "max_diagnostics_per_flush"),
    ("diagnosticsFlushIntervalMs", "diagnostics_flush_interval_ms"),
    ("diagnosticsCleanupIntervalMs", "diagnostics_cleanup_interval_ms"),
)


def parse_file_operations(root: Mapping[str, Any], out: Settings, *, debug: bool | None = None) -> None:
    file_operations = get_object(root, "fileOperations")
    if file_operations is None:
        return
    settings = FileOperationsSettings.for_build(debug)
    for key, attr in _FILE_OPERATION_FLAGS:
        value = get_bool(file_operations, key)
        if value is not None:
            setattr(settings, attr, value)
    for key, attr in FILE_OPERATION_COUNTERS:
        value = get_uint32(file_operations, key)
        if value is not None:
            setattr(settings, attr, value)
    out.file_operations = settings


COMPARE_DIRECTORIES_FLAGS = (
    ("compareSize", "compare_size"),
    ("compareDateTime", "compare_date_time"),
    ("compareAttributes", "compare_attributes"),
    ("compareContent", "compare_content"),
    ("compareSubdirectories", "compare_subdirectories"),
    ("compareSubdirectoryAttributes", "compare_subdirectory_attributes"),
    ("selectSubdirsOnlyInOnePane", "select_subdirs_only_in_one_pane"),
    ("ignoreFiles", "ignore_files"),
    ("ignoreDirectories", "ignore_directories"),
    ("showIdenticalItems", "show_identical_items"),
)

COMPARE_DIRECTORIES_PATTERNS = (
    ("ignoreFilesPatterns", "ignore_files_patterns"),
    ("ignoreDirectoriesPatterns", "ignore_directories_patterns"),
)


def parse_compare_directories(root: Mapping[str, Any], out: Settings) -> None:
    compare = get_object(root, "compareDirectories")
    if compare is None:
        return
    settings = CompareDirectoriesSettings()
    for key, attr in COMPARE_DIRECTORIES_FLAGS:
        value = get_bool(compare, key)
        if value is not None:
            setattr(settings, attr, value)
    for key, attr in COMPARE_DIRECTORIES_PATTERNS:
        value = get_str(compare, key)
        if value is not None:
            setattr(settings, attr, value)
    if settings != CompareDirectoriesSettings():
        out.compare_directories = settings


SectionParser = Callable[[Mapping[str, Any], Settings], None]

SECTION_PARSERS: tuple[tuple[str, SectionParser], ...] = (
    ("windows", parse_windows),
    ("theme", parse_theme),
    ("plugins", parse_plugins),
    ("extensions", parse_extensions),
    ("shortcuts", parse_shortcuts),
    ("cache", parse_cache),
    ("folders", parse_folders),
    ("monitor", parse_monitor),
    ("mainMenu", parse_main_menu),
    ("startup", parse_startup),
    ("connections", parse_connections),
    ("fileOperations", parse_file_operations),
    ("compareDirectories", parse_compare_directories),
)


def parse_settings_document(
    root: Mapping[str, Any], *, source_version: int, debug: bool | None = None
) -> Settings:
    """Build a fresh aggregate from an already migrated document."""
    out = Settings(schema_version=source_version)
    for section, parser in SECTION_PARSERS:
        if section == "plugins" and source_version < PLUGINS_MIN_SCHEMA_VERSION:
            continue
        if section == "fileOperations":
            parse_file_operations(root, out, debug=debug)
        else:
            parser(root, out)
    out.schema_version = CURRENT_SCHEMA_VERSION
    return out


__all__ = [
    "SECTION_PARSERS",
    "apply_plugin_id_aliases",
    "dedupe_profile_names",
    "get_array",
    "get_bool",
    "get_double",
    "get_int",
    "get_object",
    "get_str",
    "get_uint32",
    "normalize_extension",
    "normalize_history",
    "parse_cache",
    "parse_compare_directories",
    "parse_connections",
    "parse_extensions",
    "parse_file_operations",
    "parse_folders",
    "parse_main_menu",
    "parse_monitor",
    "parse_plugins",
    "parse_settings_document",
    "parse_shortcuts",
    "parse_startup",
    "parse_theme",
    "parse_theme_definition",
    "parse_windows",
]
