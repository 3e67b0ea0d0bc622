"""Default-diffing serializer: writes only what differs from the built-in defaults."""

from __future__ import annotations

import json
import logging
from copy import deepcopy
from typing import Any

from confstore.core.colors import format_color
from confstore.core.keybindings import encode_binding, sorted_bindings
from confstore.core.units import bytes_to_kib_ceil
from confstore.errors import JsonValueError, SettingsOutOfMemoryError
from confstore.json_value import JsonKind, JsonValue
from confstore.migrations import CURRENT_SCHEMA_VERSION
from confstore.section_parsers import (
    COMPARE_DIRECTORIES_FLAGS,
    COMPARE_DIRECTORIES_PATTERNS,
    FILE_OPERATION_COUNTERS,
)
from confstore.settings_models import (
    DEFAULT_FILE_SYSTEM_PLUGIN_ID,
    DEFAULT_HISTORY_MAX,
    DEFAULT_SPLIT_RATIO,
    DEFAULT_THEME_ID,
    IMAP_PLUGIN_ID,
    MAX_HISTORY_MAX,
    MIN_HISTORY_MAX,
    MONITOR_MASK_ALL,
    QUICK_CONNECT_CONNECTION_ID,
    S3_PLUGIN_ID,
    S3_TABLE_PLUGIN_ID,
    CacheSettings,
    CompareDirectoriesSettings,
    ConnectionAuthMode,
    ConnectionProfile,
    ConnectionsSettings,
    ExtensionsSettings,
    FileOperationsSettings,
    FoldersSettings,
    FolderViewSettings,
    MainMenuState,
    MonitorSettings,
    PluginsSettings,
    Settings,
    ShortcutsSettings,
    StartupSettings,
    ThemeSettings,
    WindowPlacement,
    default_sort_direction,
    default_file_system_extensions,
    default_viewer_extensions,
)

log = logging.getLogger(__name__)

UTF8_BOM = b"\xef\xbb\xbf"
SPLIT_RATIO_EPSILON = 0.0001

_MONITOR_MENU_FIELDS = (
    ("toolbarVisible", "toolbar_visible"),
    ("lineNumbersVisible", "line_numbers_visible"),
    ("alwaysOnTop", "always_on_top"),
    ("showIds", "show_ids"),
    ("autoScroll", "auto_scroll"),
)


def schema_reference(app_id: str) -> str:
    return f"./{app_id}.settings.schema.json"


def _windows(windows: dict[str, WindowPlacement]) -> dict[str, Any] | None:
    out: dict[str, Any] = {}
    for window_id in sorted(windows):
        placement = windows[window_id]
        bounds = placement.bounds
        entry: dict[str, Any] = {
            "state": placement.state.value,
            "bounds": {
                "x": bounds.x,
                "y": bounds.y,
                "width": max(1, bounds.width),
                "height": max(1, bounds.height),
            },
        }
        if placement.dpi:
            entry["dpi"] = placement.dpi
        out[window_id] = entry
    return out or None


def _theme(theme: ThemeSettings) -> dict[str, Any] | None:
    out: dict[str, Any] = {}
    current = theme.current_theme_id or DEFAULT_THEME_ID
    if current != DEFAULT_THEME_ID:
        out["currentThemeId"] = current
    if theme.themes:
        out["themes"] = [
            {
                "id": definition.id,
                "name": definition.name,
                "baseThemeId": definition.base_theme_id,
                "colors": {key: format_color(definition.colors[key]) for key in sorted(definition.colors)},
            }
            for definition in sorted(theme.themes, key=lambda item: item.id)
        ]
    return out or None


def _sorted_unique(values: list[str]) -> list[str]:
    return sorted({value for value in values if value})


def _plugins(plugins: PluginsSettings) -> dict[str, Any] | None:
    out: dict[str, Any] = {}
    current = plugins.current_file_system_plugin_id or DEFAULT_FILE_SYSTEM_PLUGIN_ID
    if current != DEFAULT_FILE_SYSTEM_PLUGIN_ID:
        out["currentFileSystemPluginId"] = current
    disabled = _sorted_unique(plugins.disabled_plugin_ids)
    if disabled:
        out["disabledPluginIds"] = disabled
    custom = _sorted_unique(plugins.custom_plugin_paths)
    if custom:
        out["customPluginPaths"] = custom
    configs = {
        plugin_id: plugins.configuration_by_plugin_id[plugin_id].to_python()
        for plugin_id in _sorted_unique(list(plugins.configuration_by_plugin_id))
    }
    if configs:
        out["configurationByPluginId"] = configs
    return out or None


def _extensions(extensions: ExtensionsSettings) -> dict[str, Any] | None:
    out: dict[str, Any] = {}
    for key, current, defaults in (
        (
            "openWithFileSystemByExtension",
            extensions.open_with_file_system_by_extension,
            default_file_system_extensions(),
        ),
        (
            "openWithViewerByExtension",
            extensions.open_with_viewer_by_extension,
            default_viewer_extensions(),
        ),
    ):
        if current != defaults:
            out[key] = {ext: current[ext] for ext in sorted(current) if ext}
    return out or None


def _shortcuts(shortcuts: ShortcutsSettings) -> dict[str, Any]:
    return {
        "functionBar": [encode_binding(binding) for binding in sorted_bindings(shortcuts.function_bar)],
        "folderView": [encode_binding(binding) for binding in sorted_bindings(shortcuts.folder_view)],
    }


def _main_menu(state: MainMenuState) -> dict[str, Any] | None:
    defaults = MainMenuState()
    out: dict[str, Any] = {}
    if state.menu_bar_visible != defaults.menu_bar_visible:
        out["menuBarVisible"] = state.menu_bar_visible
    if state.function_bar_visible != defaults.function_bar_visible:
        out["functionBarVisible"] = state.function_bar_visible
    return out or None


def _startup(settings: StartupSettings) -> dict[str, Any] | None:
    if settings.show_splash == StartupSettings().show_splash:
        return None
    return {"showSplash": settings.show_splash}


def _cache(cache: CacheSettings) -> dict[str, Any] | None:
    info = cache.directory_info
    directory_info: dict[str, Any] = {}
    if info.max_bytes:
        directory_info["maxBytes"] = bytes_to_kib_ceil(info.max_bytes)
    if info.max_watchers is not None:
        directory_info["maxWatchers"] = info.max_watchers
    if info.mru_watched is not None:
        directory_info["mruWatched"] = info.mru_watched
    if not directory_info:
        return None
    return {"directoryInfo": directory_info}


def _clamp_ratio(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


def _folder_view(view: FolderViewSettings) -> dict[str, Any]:
    defaults = FolderViewSettings()
    out: dict[str, Any] = {}
    if view.display != defaults.display:
        out["display"] = view.display.value
    if view.sort_by != defaults.sort_by:
        out["sortBy"] = view.sort_by.value
    if view.sort_direction != default_sort_direction(view.sort_by):
        out["sortDirection"] = view.sort_direction.value
    if view.status_bar_visible != defaults.status_bar_visible:
        out["statusBarVisible"] = view.status_bar_visible
    return out


def _folders(folders: FoldersSettings) -> dict[str, Any] | None:
    panes = sorted((pane for pane in folders.items if pane.slot and pane.current), key=lambda pane: pane.slot)
    if not panes:
        return None
    out: dict[str, Any] = {}

    default_active = panes[0].slot
    active = folders.active or default_active
    if active != default_active:
        out["active"] = active

    layout = folders.layout
    split = _clamp_ratio(layout.split_ratio)
    layout_out: dict[str, Any] = {}
    if abs(split - DEFAULT_SPLIT_RATIO) > SPLIT_RATIO_EPSILON:
        layout_out["splitRatio"] = split
    if layout.zoomed_pane:
        layout_out["zoomedPane"] = layout.zoomed_pane
    if layout.zoom_restore_split_ratio is not None:
        layout_out["zoomRestoreSplitRatio"] = _clamp_ratio(layout.zoom_restore_split_ratio)
    if layout_out:
        out["layout"] = layout_out

    history_max = max(MIN_HISTORY_MAX, min(MAX_HISTORY_MAX, int(folders.history_max)))
    if history_max != DEFAULT_HISTORY_MAX:
        out["historyMax"] = history_max
    history = [entry for entry in folders.history if entry][:history_max]
    if history:
        out["history"] = history

    items: list[dict[str, Any]] = []
    for pane in panes:
        item: dict[str, Any] = {"slot": pane.slot, "current": pane.current}
        view = _folder_view(pane.view)
        if view:
            item["view"] = view
        items.append(item)
    out["items"] = items
    return out


def _monitor(monitor: MonitorSettings) -> dict[str, Any] | None:
    defaults = MonitorSettings()
    out: dict[str, Any] = {}
    menu = {
        key: getattr(monitor.menu, attr)
        for key, attr in _MONITOR_MENU_FIELDS
        if getattr(monitor.menu, attr) != getattr(defaults.menu, attr)
    }
    if menu:
        out["menu"] = menu
    filter_out: dict[str, Any] = {}
    mask = monitor.filter.mask & MONITOR_MASK_ALL
    if mask != defaults.filter.mask & MONITOR_MASK_ALL:
        filter_out["mask"] = mask
    if monitor.filter.preset != defaults.filter.preset:
        filter_out["preset"] = monitor.filter.preset.value
    if filter_out:
        out["filter"] = filter_out
    return out or None


def is_profile_persistable(profile: ConnectionProfile) -> bool:
    if profile.id == QUICK_CONNECT_CONNECTION_ID:
        return False
    if not profile.id or not profile.name or not profile.plugin_id:
        return False
    return bool(profile.host) or not profile.requires_host


def prune_connection_extra(profile: ConnectionProfile) -> JsonValue:
    """Drop ``extra`` keys that hold the plugin's default value; null when nothing is left."""
    extra = profile.extra
    if not extra.is_object:
        return JsonValue.null()
    is_s3 = profile.plugin_id == S3_PLUGIN_ID
    is_aws = is_s3 or profile.plugin_id == S3_TABLE_PLUGIN_ID
    is_imap = profile.plugin_id == IMAP_PLUGIN_ID

    def _is_empty_string(value: JsonValue) -> bool:
        return value.kind is JsonKind.STRING and value.value == ""

    def _is_bool(value: JsonValue, flag: bool) -> bool:
        return value.kind is JsonKind.BOOL and value.value is flag

    kept: list[tuple[str, JsonValue]] = []
    for key, value in extra.members:
        if key in ("sshPrivateKey", "sshKnownHosts") and _is_empty_string(value):
            continue
        if is_aws:
            if key == "endpointOverride" and _is_empty_string(value):
                continue
            if key in ("useHttps", "verifyTls") and _is_bool(value, True):
                continue
            if is_s3 and key == "useVirtualAddressing" and _is_bool(value, True):
                continue
        if is_imap and key == "ignoreSslTrust" and _is_bool(value, False):
            continue
        kept.append((key, value))
    if not kept:
        return JsonValue.null()
    return JsonValue.object(kept)


def _profile(profile: ConnectionProfile) -> dict[str, Any]:
    defaults = ConnectionProfile()
    out: dict[str, Any] = {"id": profile.id, "name": profile.name, "pluginId": profile.plugin_id}
    if profile.host:
        out["host"] = profile.host
    if profile.port:
        out["port"] = profile.port
    if profile.initial_path and profile.initial_path != defaults.initial_path:
        out["initialPath"] = profile.initial_path
    if profile.user_name:
        out["userName"] = profile.user_name
    if profile.auth_mode != ConnectionAuthMode.PASSWORD:
        out["authMode"] = profile.auth_mode.value
    if profile.save_password != defaults.save_password:
        out["savePassword"] = profile.save_password
    if profile.require_windows_hello != defaults.require_windows_hello:
        out["requireWindowsHello"] = profile.require_windows_hello
    extra = prune_connection_extra(profile)
    if not extra.is_null:
        out["extra"] = extra.to_python()
    return out


def _connections(connections: ConnectionsSettings) -> dict[str, Any] | None:
    defaults = ConnectionsSettings()
    profiles = [profile for profile in connections.items if is_profile_persistable(profile)]
    out: dict[str, Any] = {}
    if connections.bypass_windows_hello != defaults.bypass_windows_hello:
        out["bypassWindowsHello"] = connections.bypass_windows_hello
    if connections.windows_hello_reauth_timeout_minute != defaults.windows_hello_reauth_timeout_minute:
        out["windowsHelloReauthTimeoutMinute"] = connections.windows_hello_reauth_timeout_minute
    if profiles:
        out["items"] = [_profile(profile) for profile in profiles]
    return out or None


def _file_operations(settings: FileOperationsSettings, debug: bool | None = None) -> dict[str, Any] | None:
    defaults = FileOperationsSettings.for_build(debug)
    out: dict[str, Any] = {}
    if settings.auto_dismiss_success != defaults.auto_dismiss_success:
        out["autoDismissSuccess"] = settings.auto_dismiss_success
    if settings.max_diagnostics_log_files != defaults.max_diagnostics_log_files:
        out["maxDiagnosticsLogFiles"] = settings.max_diagnostics_log_files
    if settings.diagnostics_info_enabled != defaults.diagnostics_info_enabled:
        out["diagnosticsInfoEnabled"] = settings.diagnostics_info_enabled
    if settings.diagnostics_debug_enabled != defaults.diagnostics_debug_enabled:
        out["diagnosticsDebugEnabled"] = settings.diagnostics_debug_enabled
    for key, attr in FILE_OPERATION_COUNTERS[1:]:
        value = getattr(settings, attr)
        if value is not None:
            out[key] = value
    return out or None


def _compare_directories(settings: CompareDirectoriesSettings) -> dict[str, Any] | None:
    defaults = CompareDirectoriesSettings()
    out: dict[str, Any] = {}
    for key, attr in COMPARE_DIRECTORIES_FLAGS:
        value = getattr(settings, attr)
        if value != getattr(defaults, attr):
            out[key] = value
    for key, attr in COMPARE_DIRECTORIES_PATTERNS:
        value = getattr(settings, attr)
        if value:
            out[key] = value
    return out or None


def build_settings_document(settings: Settings, app_id: str, *, debug: bool | None = None) -> dict[str, Any]:
    """Return the on-disk document for ``settings`` as an ordered dict.

    ``debug`` selects the build-mode defaults that file-operation flags are
    compared against; ``None`` reads the environment.
    """
    document: dict[str, Any] = {
        "$schema": schema_reference(app_id),
        "schemaVersion": CURRENT_SCHEMA_VERSION,
    }
    sections: tuple[tuple[str, Any], ...] = (
        ("windows", _windows(settings.windows)),
        ("theme", _theme(settings.theme)),
        ("plugins", _plugins(settings.plugins)),
        ("extensions", _extensions(settings.extensions)),
        ("shortcuts", _shortcuts(settings.shortcuts) if settings.shortcuts is not None else None),
        ("mainMenu", _main_menu(settings.main_menu) if settings.main_menu is not None else None),
        ("startup", _startup(settings.startup) if settings.startup is not None else None),
        ("cache", _cache(settings.cache) if settings.cache is not None else None),
        ("folders", _folders(settings.folders) if settings.folders is not None else None),
        ("monitor", _monitor(settings.monitor) if settings.monitor is not None else None),
        ("connections", _connections(settings.connections) if settings.connections is not None else None),
        (
            "fileOperations",
            _file_operations(settings.file_operations, debug) if settings.file_operations is not None else None,
        ),
        (
            "compareDirectories",
            _compare_directories(settings.compare_directories) if settings.compare_directories is not None else None,
        ),
    )
    for key, payload in sections:
        if payload is not None:
            document[key] = payload
    return document


def serialize_settings(settings: Settings, app_id: str, *, debug: bool | None = None) -> bytes:
    """Serialize to UTF-8 with a BOM, two-space indentation and a trailing newline."""
    try:
        document = build_settings_document(settings, app_id, debug=debug)
        text = json.dumps(document, ensure_ascii=False, indent=2, allow_nan=False)
    except MemoryError as exc:
        raise SettingsOutOfMemoryError() from exc
    except ValueError as exc:
        raise JsonValueError(f"Could not serialize settings: {exc}") from exc
    return UTF8_BOM + (text + "\n").encode("utf-8")


def prepare_for_save(
    settings: Settings, default_shortcuts: ShortcutsSettings | None = None, *, debug: bool | None = None
) -> Settings:
    """Return a copy with optional sections reset when they only hold defaults."""
    result = deepcopy(settings)
    if (
        result.shortcuts is not None
        and default_shortcuts is not None
        and sorted_bindings(result.shortcuts.function_bar) == sorted_bindings(default_shortcuts.function_bar)
        and sorted_bindings(result.shortcuts.folder_view) == sorted_bindings(default_shortcuts.folder_view)
    ):
        result.shortcuts = None
    if result.monitor is not None and _monitor(result.monitor) is None:
        result.monitor = None
    if result.cache is not None and _cache(result.cache) is None:
        result.cache = None
    if result.file_operations is not None and _file_operations(result.file_operations, debug) is None:
        result.file_operations = None
    if result.compare_directories is not None and _compare_directories(result.compare_directories) is None:
        result.compare_directories = None
    return result


__all__ = [
    "UTF8_BOM",
    "build_settings_document",
    "is_profile_persistable",
    "prepare_for_save",
    "prune_connection_extra",
    "schema_reference",
    "serialize_settings",
]
