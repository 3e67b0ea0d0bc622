from __future__ import annotations

import errno
import json
from pathlib import Path

import pytest

import confstore.settings_store as settings_store_module
from confstore.core.keybindings import ShortcutBinding
from confstore.errors import FileReadError, SettingsStoreError
from confstore.json_value import JsonValue
from confstore.settings_models import (
    CacheSettings,
    CompareDirectoriesSettings,
    ConnectionProfile,
    ConnectionsSettings,
    FileOperationsSettings,
    FolderPane,
    FoldersSettings,
    LoadStatus,
    MainMenuState,
    MonitorSettings,
    Settings,
    ShortcutsSettings,
    StartupSettings,
    ThemeDefinition,
    WindowBounds,
    WindowPlacement,
    WindowState,
)
from confstore.settings_schema import get_settings_store_schema_json
from confstore.settings_store import (
    SettingsStore,
    get_settings_path,
    get_settings_schema_path,
    load_settings,
    save_settings,
    save_settings_schema,
)

APP_ID = "TestApp"


def populated_settings() -> Settings:
    settings = Settings()
    settings.windows["main"] = WindowPlacement(WindowState.MAXIMIZED, WindowBounds(10, 20, 800, 600), dpi=144)
    settings.theme.current_theme_id = "user/dark"
    settings.theme.themes = [ThemeDefinition("user/dark", "Dark", "builtin/dark", {"bg": 0xFF112233, "fg": 0x80112233})]
    settings.plugins.disabled_plugin_ids = ["builtin/file-system-7z"]
    settings.plugins.configuration_by_plugin_id = {
        "builtin/file-system-ftp": JsonValue.from_python({"timeout": 30, "passive": True}),
    }
    settings.extensions.open_with_viewer_by_extension[".foo"] = "builtin/viewer-text"
    settings.shortcuts = ShortcutsSettings(
        function_bar=[ShortcutBinding(65, 1, "cmd/copy"), ShortcutBinding(0x74, 0, "cmd/refresh")],
    )
    settings.main_menu = MainMenuState(menu_bar_visible=False)
    settings.startup = StartupSettings(show_splash=False)
    settings.cache = CacheSettings()
    settings.cache.directory_info.max_bytes = 10 * 1024 * 1024
    settings.cache.directory_info.max_watchers = 64
    settings.folders = FoldersSettings(
        active="left",
        history=["/home/a", "/home/b"],
        items=[FolderPane("left", "/home/a"), FolderPane("right", "/tmp")],
    )
    settings.monitor = MonitorSettings()
    settings.monitor.menu.always_on_top = True
    settings.connections = ConnectionsSettings(
        items=[
            ConnectionProfile(id="p1", name="Work", plugin_id="builtin/file-system-ftp", host="example.com", port=21,
                              user_name="me"),
        ],
    )
    settings.compare_directories = CompareDirectoriesSettings(compare_size=True, ignore_files_patterns="*.tmp")
    return settings


def test_missing_file_is_not_found(config_root: Path):
    status, settings = load_settings(APP_ID)
    assert status is LoadStatus.NOT_FOUND
    assert settings == Settings()


def test_round_trip_reproduces_every_field(config_root: Path):
    original = populated_settings()
    save_settings(APP_ID, original)
    status, loaded = load_settings(APP_ID)
    assert status is LoadStatus.OK
    assert loaded == original


def test_saving_twice_is_byte_identical(config_root: Path):
    settings = populated_settings()
    save_settings(APP_ID, settings)
    first = get_settings_path(APP_ID).read_bytes()
    save_settings(APP_ID, settings)
    assert get_settings_path(APP_ID).read_bytes() == first

    _, loaded = load_settings(APP_ID)
    save_settings(APP_ID, loaded)
    assert get_settings_path(APP_ID).read_bytes() == first


def test_save_writes_bom_and_schema_sidecar(config_root: Path):
    save_settings(APP_ID, Settings())
    data = get_settings_path(APP_ID).read_bytes()
    assert data.startswith(b"\xef\xbb\xbf")
    schema_path = get_settings_schema_path(APP_ID)
    assert schema_path.read_text(encoding="utf-8") == get_settings_store_schema_json()
    assert schema_path.parent == get_settings_path(APP_ID).parent


@pytest.mark.parametrize("version", [6, 7, 8])
def test_old_schema_versions_are_upgraded(config_root: Path, write_settings, version: int):
    write_settings({"schemaVersion": version, "startup": {"showSplash": False}})
    status, settings = load_settings(APP_ID)
    assert status is LoadStatus.OK
    assert settings.schema_version == 9
    assert settings.startup.show_splash is False

    save_settings(APP_ID, settings)
    saved = json.loads(get_settings_path(APP_ID).read_bytes()[3:])
    assert saved["schemaVersion"] == 9


def test_corrupt_schema_version_is_quarantined(config_root: Path, write_settings, paths):
    original = write_settings({"schemaVersion": "not-a-number", "startup": {"showSplash": False}})
    original_bytes = original.read_bytes()

    other = SettingsStore("OtherApp")
    save_settings("OtherApp", Settings(startup=StartupSettings(show_splash=False)))
    other_bytes = other.path.read_bytes()

    status, settings = load_settings(APP_ID)
    assert status is LoadStatus.NOT_FOUND
    assert settings == Settings()
    assert not original.exists()
    backups = sorted(paths.settings_dir.glob(original.name + ".bad.*"))
    assert len(backups) == 1
    assert backups[0].read_bytes() == original_bytes

    assert other.path.read_bytes() == other_bytes
    assert load_settings("OtherApp")[0] is LoadStatus.OK


@pytest.mark.parametrize(
    "payload",
    [
        "{not json",
        "[1, 2, 3]",
        json.dumps({"schemaVersion": 5}),
        json.dumps({"schemaVersion": 10}),
        json.dumps({"schemaVersion": True}),
        json.dumps({"startup": {}}),
    ],
)
def test_structural_failures_quarantine(config_root: Path, write_settings, payload: str):
    target = write_settings(payload)
    store = SettingsStore(APP_ID)
    status, _ = store.load()
    assert status is LoadStatus.NOT_FOUND
    assert store.quarantined_path is not None
    assert store.quarantined_path.name.startswith(target.name + ".bad.")
    assert store.last_error


def test_oversized_file_is_quarantined(config_root: Path, write_settings, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(settings_store_module, "MAX_SETTINGS_FILE_BYTES", 8)
    target = write_settings({"schemaVersion": 9})
    store = SettingsStore(APP_ID)
    status, _ = store.load()
    assert status is LoadStatus.NOT_FOUND
    assert store.quarantined_path is not None
    assert not target.exists()


def test_read_failure_is_not_found_without_quarantine(config_root: Path, write_settings, monkeypatch: pytest.MonkeyPatch):
    target = write_settings({"schemaVersion": 9})

    def denied(path, max_bytes):
        raise FileReadError(f"Could not read '{path}': denied", path=path, errno=errno.EACCES)

    monkeypatch.setattr(settings_store_module, "read_bounded", denied)
    store = SettingsStore(APP_ID)
    status, settings = store.load()
    assert status is LoadStatus.NOT_FOUND
    assert settings == Settings()
    assert store.quarantined_path is None
    assert target.exists()
    assert not list(target.parent.glob(target.name + ".bad.*"))


def test_oversized_numbers_do_not_abort_load(config_root: Path, write_settings):
    huge = "1" + "0" * 400
    write_settings(
        '{"schemaVersion": 9, "startup": {"showSplash": false}, '
        f'"folders": {{"layout": {{"splitRatio": {huge}, "zoomRestoreSplitRatio": {huge}}}}}}}'
    )
    status, settings = load_settings(APP_ID)
    assert status is LoadStatus.OK
    assert settings.folders.layout.split_ratio == 0.5
    assert settings.folders.layout.zoom_restore_split_ratio is None
    assert settings.startup.show_splash is False


def test_rejected_file_can_stay_in_place(config_root: Path, write_settings):
    target = write_settings("{not json")
    store = SettingsStore(APP_ID)
    status, _ = store.load(quarantine_rejected=False)
    assert status is LoadStatus.NOT_FOUND
    assert store.last_error
    assert store.quarantined_path is None
    assert target.read_bytes() == b"{not json"


def test_json5_with_bom_and_comments_is_accepted(config_root: Path, write_settings):
    write_settings('{\n  // written by hand\n  schemaVersion: 9,\n  startup: {showSplash: false,},\n}', bom=True)
    status, settings = load_settings(APP_ID)
    assert status is LoadStatus.OK
    assert settings.startup.show_splash is False


def test_legacy_file_is_used_when_versioned_is_missing(config_root: Path, write_settings, paths):
    write_settings({"schemaVersion": 9, "mainMenu": {"functionBarVisible": False}}, legacy=True)
    status, settings = load_settings(APP_ID)
    assert status is LoadStatus.OK
    assert settings.main_menu.function_bar_visible is False

    save_settings(APP_ID, settings)
    assert paths.versioned_path.exists()
    assert paths.legacy_path.exists()


def test_debug_mode_prefers_debug_file(config_root: Path, write_settings, paths):
    write_settings({"schemaVersion": 9, "startup": {"showSplash": False}})
    debug_store = SettingsStore(APP_ID, debug=True)
    status, settings = debug_store.load()
    assert status is LoadStatus.OK
    assert settings.startup.show_splash is False

    debug_store.save(Settings())
    assert paths.debug_path.exists()
    assert debug_store.load()[1].startup is None


def test_invalid_app_id(config_root: Path):
    status, settings = load_settings("")
    assert status is LoadStatus.FAILED
    assert settings == Settings()
    with pytest.raises(SettingsStoreError):
        save_settings("", Settings())


def test_save_failure_raises_typed_error(config_root: Path):
    config_root.mkdir(parents=True)
    (config_root / "Confstore").write_text("not a directory", encoding="utf-8")
    with pytest.raises(SettingsStoreError) as info:
        save_settings(APP_ID, Settings())
    assert info.value.kind == "write_failed"
    assert info.value.errno is not None


def test_save_settings_schema_writes_given_text(config_root: Path):
    save_settings_schema(APP_ID, '{"title": "custom"}')
    assert get_settings_schema_path(APP_ID).read_text(encoding="utf-8") == '{"title": "custom"}'


def test_explicit_debug_store_uses_debug_file_operation_defaults(config_root: Path):
    store = SettingsStore(APP_ID, debug=True)
    settings = Settings(file_operations=FileOperationsSettings.for_build(True))
    settings.file_operations.auto_dismiss_success = True
    store.save(settings)

    saved = json.loads(store.path.read_bytes()[3:])
    assert saved["fileOperations"] == {"autoDismissSuccess": True}

    status, loaded = store.load()
    assert status is LoadStatus.OK
    assert loaded.file_operations.diagnostics_info_enabled is True
    assert loaded.file_operations.diagnostics_debug_enabled is True
