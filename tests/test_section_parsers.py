from __future__ import annotations

from confstore.json_value import JsonValue
from confstore.section_parsers import MAX_NAME_SUFFIX, dedupe_profile_names, parse_settings_document
from confstore.settings_models import (
    ConnectionProfile,
    FolderDisplayMode,
    FolderSortBy,
    FolderSortDirection,
    MonitorFilterPreset,
    WindowState,
    default_viewer_extensions,
)


def parse(document: dict, version: int = 9):
    return parse_settings_document(document, source_version=version)


def _profile(name: str, **kwargs) -> ConnectionProfile:
    defaults = {"id": name, "plugin_id": "builtin/file-system-ftp", "host": "example.com"}
    defaults.update(kwargs)
    return ConnectionProfile(name=name, **defaults)


def test_name_dedup_is_case_insensitive():
    names = [p.name for p in dedupe_profile_names([_profile("Work"), _profile("work"), _profile("WORK")])]
    assert names == ["Work", "work (2)", "WORK (3)"]


def test_name_dedup_sanitizes_and_drops_empty_names():
    profiles = dedupe_profile_names([_profile(" a/b\\c "), _profile("   ")])
    assert [p.name for p in profiles] == ["a-b-c"]


def test_name_dedup_stops_at_last_suffix():
    taken = [_profile("Box")] + [_profile(f"Box ({suffix})") for suffix in range(2, MAX_NAME_SUFFIX + 1)]
    profiles = dedupe_profile_names(taken + [_profile("box", id="extra")])
    assert len(profiles) == len(taken) + 1
    assert profiles[-1].name == f"box ({MAX_NAME_SUFFIX})"


def test_connections_section():
    settings = parse(
        {
            "connections": {
                "windowsHelloReauthTimeoutMs": 120_000,
                "items": [
                    {"id": "1", "name": "Work", "pluginId": "builtin/file-system-ftp", "host": "a"},
                    {"id": "2", "name": "Work", "pluginId": "builtin/file-system-sftp", "host": "b", "port": 22},
                    {"id": "3", "name": "Bucket", "pluginId": "builtin/file-system-s3"},
                    {"id": "4", "name": "No host", "pluginId": "builtin/file-system-ftp"},
                    {"id": "5", "name": "Keys", "pluginId": "builtin/file-system-sftp", "host": "c",
                     "authMode": "sshKey", "extra": {"sshPrivateKey": "~/.ssh/id"}},
                ],
            }
        }
    )
    connections = settings.connections
    assert connections is not None
    assert connections.windows_hello_reauth_timeout_minute == 2
    assert [p.name for p in connections.items] == ["Work", "Work (2)", "Bucket", "Keys"]
    assert connections.items[1].port == 22
    keys = connections.items[3]
    assert keys.auth_mode.value == "sshKey"
    assert keys.extra.get("sshPrivateKey") == JsonValue.string("~/.ssh/id")


def test_connections_with_only_defaults_are_absent():
    assert parse({"connections": {"items": []}}).connections is None
    assert parse({"connections": {"bypassWindowsHello": True}}).connections is not None


def test_windows_section():
    settings = parse(
        {
            "windows": {
                "main": {"state": "maximized", "bounds": {"x": 1, "y": 2, "width": 300, "height": 200}, "dpi": 144},
                "partial": {"bounds": {"x": 1, "y": 2, "width": 300}, "dpi": 0},
                "broken": 5,
            }
        }
    )
    assert set(settings.windows) == {"main", "partial"}
    main = settings.windows["main"]
    assert main.state is WindowState.MAXIMIZED
    assert (main.bounds.x, main.bounds.y, main.bounds.width, main.bounds.height) == (1, 2, 300, 200)
    assert main.dpi == 144
    partial = settings.windows["partial"]
    assert partial.bounds.width == 0
    assert partial.dpi is None


def test_theme_section_skips_invalid_entries():
    settings = parse(
        {
            "theme": {
                "currentThemeId": "user/dark",
                "themes": [
                    {"id": "user/dark", "name": "Dark", "baseThemeId": "builtin/dark",
                     "colors": {"bg": "#112233", "fg": "#80FFFFFF", "bad": "blue"}},
                    {"id": "", "name": "Nameless", "baseThemeId": "builtin/dark", "colors": {}},
                ],
            }
        }
    )
    assert settings.theme.current_theme_id == "user/dark"
    assert len(settings.theme.themes) == 1
    assert settings.theme.themes[0].colors == {"bg": 0xFF112233, "fg": 0x80FFFFFF}


def test_plugins_section_migrates_ids_and_reparses_string_configs():
    settings = parse(
        {
            "plugins": {
                "currentFileSystemPluginId": "file",
                "disabledPluginIds": ["fk", "", 3],
                "configurationByPluginId": {
                    "file": "{timeout: 30}",
                    "builtin/file-system": {"ignored": True},
                    "broken": "{",
                    "blank": "  ",
                },
            }
        }
    )
    plugins = settings.plugins
    assert plugins.current_file_system_plugin_id == "builtin/file-system"
    assert plugins.disabled_plugin_ids == ["builtin/file-system-dummy"]
    assert set(plugins.configuration_by_plugin_id) == {"builtin/file-system"}
    assert plugins.configuration_by_plugin_id["builtin/file-system"].to_python() == {"timeout": 30}


def test_plugins_are_ignored_for_very_old_documents():
    settings = parse({"plugins": {"currentFileSystemPluginId": "builtin/file-system-s3"}}, version=1)
    assert settings.plugins.current_file_system_plugin_id == "builtin/file-system"
    assert settings.schema_version == 9


def test_extension_maps_are_replaced_and_normalized():
    settings = parse({"extensions": {"openWithViewerByExtension": {"TXT": "builtin/viewer-text", ".Md": "x"}}})
    assert settings.extensions.open_with_viewer_by_extension == {".txt": "builtin/viewer-text", ".md": "x"}
    assert parse({}).extensions.open_with_viewer_by_extension == default_viewer_extensions()


def test_cache_section_accepts_size_strings():
    settings = parse({"cache": {"directoryInfo": {"maxBytes": "64mb", "maxWatchers": 8, "mruWatched": -1}}})
    info = settings.cache.directory_info
    assert info.max_bytes == 64 * 1024 * 1024
    assert info.max_watchers == 8
    assert info.mru_watched is None


def test_cache_section_needs_directory_info():
    assert parse({"cache": {}}).cache is None
    assert parse({"cache": {"directoryInfo": "64mb"}}).cache is None


def test_split_ratio_out_of_double_range_keeps_default():
    layout = {"splitRatio": 10**400, "zoomRestoreSplitRatio": float("nan")}
    folders = parse({"folders": {"layout": layout}}).folders
    assert folders.layout.split_ratio == 0.5
    assert folders.layout.zoom_restore_split_ratio is None


def test_folders_section():
    settings = parse(
        {
            "folders": {
                "layout": {"splitRatio": 1.7, "zoomRestoreSplitRatio": -2},
                "historyMax": 100,
                "history": ["/a", "/b", "/a", "", "/c"],
                "items": [
                    {"slot": "right", "current": "/r", "view": {"display": "detailed", "sortBy": "time"}},
                    {"slot": "left", "current": "/l"},
                    {"slot": "", "current": "/x"},
                ],
            }
        }
    )
    folders = settings.folders
    assert folders is not None
    assert folders.active == "right"
    assert folders.layout.split_ratio == 1.0
    assert folders.layout.zoom_restore_split_ratio == 0.0
    assert folders.history_max == 50
    assert folders.history == ["/a", "/b", "/c"]
    assert [pane.slot for pane in folders.items] == ["right", "left"]
    view = folders.items[0].view
    assert view.display is FolderDisplayMode.DETAILED
    assert view.sort_by is FolderSortBy.TIME
    assert view.sort_direction is FolderSortDirection.DESCENDING


def test_folders_without_panes_are_absent():
    assert parse({"folders": {"history": ["/a"]}}).folders is None


def test_monitor_mask_is_limited_to_known_bits():
    settings = parse({"monitor": {"filter": {"mask": 255, "preset": "errorsOnly"}, "menu": {"alwaysOnTop": True}}})
    assert settings.monitor.filter.mask == 31
    assert settings.monitor.filter.preset is MonitorFilterPreset.ERRORS_ONLY
    assert settings.monitor.menu.always_on_top is True


def test_mistyped_fields_fall_back_to_defaults():
    settings = parse({"mainMenu": {"menuBarVisible": "no"}, "startup": {"showSplash": False}})
    assert settings.main_menu.menu_bar_visible is True
    assert settings.startup.show_splash is False


def test_compare_directories_kept_only_when_changed():
    assert parse({"compareDirectories": {"compareSize": False}}).compare_directories is None
    changed = parse({"compareDirectories": {"compareSize": True, "ignoreFilesPatterns": "*.tmp"}})
    assert changed.compare_directories.compare_size is True
    assert changed.compare_directories.ignore_files_patterns == "*.tmp"


def test_file_operations_counters():
    settings = parse({"fileOperations": {"autoDismissSuccess": True, "maxIssueReportFiles": 5, "maxDiagnosticsLogFiles": -3}})
    ops = settings.file_operations
    assert ops.auto_dismiss_success is True
    assert ops.max_issue_report_files == 5
    assert ops.max_diagnostics_log_files == 14


def test_file_operations_defaults_follow_build_mode():
    document = {"fileOperations": {"autoDismissSuccess": True}}
    debug_ops = parse_settings_document(document, source_version=9, debug=True).file_operations
    release_ops = parse_settings_document(document, source_version=9, debug=False).file_operations
    assert debug_ops.diagnostics_info_enabled is True
    assert debug_ops.diagnostics_debug_enabled is True
    assert release_ops.diagnostics_info_enabled is False
    assert release_ops.diagnostics_debug_enabled is False
