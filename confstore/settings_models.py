from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from confstore.core.keybindings import ShortcutBinding
from confstore.json_value import JsonValue
from confstore.settings_paths import debug_mode_enabled

CURRENT_SCHEMA_VERSION = 9

DEFAULT_THEME_ID = "builtin/system"
DEFAULT_FILE_SYSTEM_PLUGIN_ID = "builtin/file-system"
QUICK_CONNECT_CONNECTION_ID = "00000000-0000-0000-0000-000000000001"
S3_PLUGIN_ID = "builtin/file-system-s3"
S3_TABLE_PLUGIN_ID = "builtin/file-system-s3table"
IMAP_PLUGIN_ID = "builtin/file-system-imap"

DEFAULT_SPLIT_RATIO = 0.5
DEFAULT_HISTORY_MAX = 20
MIN_HISTORY_MAX = 1
MAX_HISTORY_MAX = 50
MONITOR_MASK_ALL = 31
DEFAULT_REAUTH_TIMEOUT_MINUTES = 10
DEFAULT_MAX_DIAGNOSTICS_LOG_FILES = 14


class LoadStatus(Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    FAILED = "failed"


class WindowState(str, Enum):
    NORMAL = "normal"
    MAXIMIZED = "maximized"


class FolderDisplayMode(str, Enum):
    BRIEF = "brief"
    DETAILED = "detailed"


class FolderSortBy(str, Enum):
    NAME = "name"
    EXTENSION = "extension"
    TIME = "time"
    SIZE = "size"
    ATTRIBUTES = "attributes"
    NONE = "none"


class FolderSortDirection(str, Enum):
    ASCENDING = "ascending"
    DESCENDING = "descending"


class MonitorFilterPreset(str, Enum):
    CUSTOM = "custom"
    ERRORS_ONLY = "errorsOnly"
    ERRORS_WARNINGS = "errorsWarnings"
    ALL_TYPES = "allTypes"


class ConnectionAuthMode(str, Enum):
    ANONYMOUS = "anonymous"
    PASSWORD = "password"
    SSH_KEY = "sshKey"


def default_sort_direction(sort_by: FolderSortBy) -> FolderSortDirection:
    if sort_by in (FolderSortBy.TIME, FolderSortBy.SIZE):
        return FolderSortDirection.DESCENDING
    return FolderSortDirection.ASCENDING


@dataclass(slots=True)
class WindowBounds:
    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0


@dataclass(slots=True)
class WindowPlacement:
    state: WindowState = WindowState.NORMAL
    bounds: WindowBounds = field(default_factory=WindowBounds)
    dpi: int | None = None


@dataclass(slots=True)
class ThemeDefinition:
    id: str
    name: str
    base_theme_id: str
    colors: dict[str, int] = field(default_factory=dict)


@dataclass(slots=True)
class ThemeSettings:
    current_theme_id: str = DEFAULT_THEME_ID
    themes: list[ThemeDefinition] = field(default_factory=list)


@dataclass(slots=True)
class PluginsSettings:
    current_file_system_plugin_id: str = DEFAULT_FILE_SYSTEM_PLUGIN_ID
    custom_plugin_paths: list[str] = field(default_factory=list)
    disabled_plugin_ids: list[str] = field(default_factory=list)
    configuration_by_plugin_id: dict[str, JsonValue] = field(default_factory=dict)


_ARCHIVE_PLUGIN_ID = "builtin/file-system-7z"
_ARCHIVE_EXTENSIONS = (
    ".7z", ".zip", ".rar", ".xz", ".bzip2", ".gzip", ".tar", ".wim",
    ".apfs", ".ar", ".arj", ".cab", ".chm", ".cpio", ".cramfs", ".dmg", ".ext", ".fat", ".gpt",
    ".hfs", ".ihex", ".iso", ".lzh", ".lzma", ".mbr", ".msi", ".nsis", ".ntfs", ".qcow2", ".rpm",
    ".squashfs", ".udf", ".uefi", ".vdi", ".vhd", ".vhdx", ".vmdk", ".xar", ".z",
)

_VIEWER_EXTENSIONS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("builtin/viewer-text", (".txt", ".log", ".xml", ".ini", ".cfg", ".csv")),
    ("builtin/viewer-markdown", (".md",)),
    ("builtin/viewer-json", (".json", ".json5")),
    ("builtin/viewer-web", (".html", ".htm", ".pdf")),
    (
        "builtin/viewer-imgraw",
        (
            ".bmp", ".dib", ".gif", ".ico", ".jpe", ".jpeg", ".jpg", ".png", ".tif", ".tiff",
            ".hdp", ".jxr", ".wdp",
            # camera RAW
            ".3fr", ".ari", ".arw", ".bay", ".braw", ".cap", ".cr2", ".cr3", ".crw", ".data",
            ".dcr", ".dcs", ".dng", ".drf", ".eip", ".erf", ".fff", ".gpr", ".iiq", ".k25",
            ".kdc", ".mdc", ".mef", ".mos", ".mrw", ".nef", ".nrw", ".obm", ".orf", ".pef",
            ".ptx", ".pxn", ".r3d", ".raf", ".raw", ".rwl", ".rw2", ".rwz", ".sr2", ".srf",
            ".srw", ".x3f",
        ),
    ),
    (
        "builtin/viewer-vlc",
        (
            ".avi", ".mp4", ".mkv", ".mka", ".mov", ".wmv", ".flv", ".mpg", ".mpeg", ".m4v",
            ".webm", ".3gp", ".ts", ".m2ts", ".mts", ".vob", ".ogv", ".m4a", ".mp3", ".aac",
            ".flac", ".wav", ".ogg", ".opus", ".wma", ".aif", ".aiff",
        ),
    ),
    ("builtin/viewer-pe", (".cpl", ".dll", ".drv", ".exe", ".ocx", ".scr", ".spl", ".sys")),
)


def default_file_system_extensions() -> dict[str, str]:
    return {ext: _ARCHIVE_PLUGIN_ID for ext in _ARCHIVE_EXTENSIONS}


def default_viewer_extensions() -> dict[str, str]:
    return {ext: viewer for viewer, extensions in _VIEWER_EXTENSIONS for ext in extensions}


@dataclass(slots=True)
class ExtensionsSettings:
    open_with_file_system_by_extension: dict[str, str] = field(default_factory=default_file_system_extensions)
    open_with_viewer_by_extension: dict[str, str] = field(default_factory=default_viewer_extensions)


@dataclass(slots=True)
class ShortcutsSettings:
    function_bar: list[ShortcutBinding] = field(default_factory=list)
    folder_view: list[ShortcutBinding] = field(default_factory=list)


@dataclass(slots=True)
class DirectoryInfoCacheSettings:
    max_bytes: int | None = None
    max_watchers: int | None = None
    mru_watched: int | None = None


@dataclass(slots=True)
class CacheSettings:
    directory_info: DirectoryInfoCacheSettings = field(default_factory=DirectoryInfoCacheSettings)


@dataclass(slots=True)
class FolderViewSettings:
    display: FolderDisplayMode = FolderDisplayMode.BRIEF
    sort_by: FolderSortBy = FolderSortBy.NAME
    sort_direction: FolderSortDirection = FolderSortDirection.ASCENDING
    status_bar_visible: bool = True


@dataclass(slots=True)
class FolderPane:
    slot: str
    current: str
    view: FolderViewSettings = field(default_factory=FolderViewSettings)


@dataclass(slots=True)
class FolderLayoutSettings:
    split_ratio: float = DEFAULT_SPLIT_RATIO
    zoomed_pane: str | None = None
    zoom_restore_split_ratio: float | None = None


@dataclass(slots=True)
class FoldersSettings:
    active: str = ""
    layout: FolderLayoutSettings = field(default_factory=FolderLayoutSettings)
    history_max: int = DEFAULT_HISTORY_MAX
    history: list[str] = field(default_factory=list)
    items: list[FolderPane] = field(default_factory=list)


@dataclass(slots=True)
class MonitorMenuState:
    toolbar_visible: bool = True
    line_numbers_visible: bool = True
    always_on_top: bool = False
    show_ids: bool = True
    auto_scroll: bool = True


@dataclass(slots=True)
class MonitorFilterState:
    mask: int = MONITOR_MASK_ALL
    preset: MonitorFilterPreset = MonitorFilterPreset.CUSTOM


@dataclass(slots=True)
class MonitorSettings:
    menu: MonitorMenuState = field(default_factory=MonitorMenuState)
    filter: MonitorFilterState = field(default_factory=MonitorFilterState)


@dataclass(slots=True)
class MainMenuState:
    menu_bar_visible: bool = True
    function_bar_visible: bool = True


@dataclass(slots=True)
class StartupSettings:
    show_splash: bool = True


@dataclass(slots=True)
class ConnectionProfile:
    id: str = ""
    name: str = ""
    plugin_id: str = ""
    host: str = ""
    port: int = 0
    initial_path: str = "/"
    user_name: str = ""
    auth_mode: ConnectionAuthMode = ConnectionAuthMode.PASSWORD
    save_password: bool = False
    require_windows_hello: bool = True
    extra: JsonValue = field(default_factory=JsonValue)

    @property
    def requires_host(self) -> bool:
        return self.plugin_id not in (S3_PLUGIN_ID, S3_TABLE_PLUGIN_ID)


@dataclass(slots=True)
class ConnectionsSettings:
    items: list[ConnectionProfile] = field(default_factory=list)
    bypass_windows_hello: bool = False
    windows_hello_reauth_timeout_minute: int = DEFAULT_REAUTH_TIMEOUT_MINUTES

    def has_default_globals(self) -> bool:
        return (
            not self.bypass_windows_hello
            and self.windows_hello_reauth_timeout_minute == DEFAULT_REAUTH_TIMEOUT_MINUTES
        )


@dataclass(slots=True)
class FileOperationsSettings:
    auto_dismiss_success: bool = False
    max_diagnostics_log_files: int = DEFAULT_MAX_DIAGNOSTICS_LOG_FILES
    diagnostics_info_enabled: bool = field(default_factory=debug_mode_enabled)
    diagnostics_debug_enabled: bool = field(default_factory=debug_mode_enabled)
    max_issue_report_files: int | None = None
    max_diagnostics_in_memory: int | None = None
    max_diagnostics_per_flush: int | None = None
    diagnostics_flush_interval_ms: int | None = None
    diagnostics_cleanup_interval_ms: int | None = None

    @classmethod
    def for_build(cls, debug: bool | None = None) -> "FileOperationsSettings":
        """Defaults for a debug or release build; ``None`` reads the environment."""
        enabled = debug_mode_enabled() if debug is None else bool(debug)
        return cls(diagnostics_info_enabled=enabled, diagnostics_debug_enabled=enabled)


@dataclass(slots=True)
class CompareDirectoriesSettings:
    compare_size: bool = False
    compare_date_time: bool = False
    compare_attributes: bool = False
    compare_content: bool = False
    compare_subdirectories: bool = False
    compare_subdirectory_attributes: bool = False
    select_subdirs_only_in_one_pane: bool = True
    ignore_files: bool = False
    ignore_files_patterns: str = ""
    ignore_directories: bool = False
    ignore_directories_patterns: str = ""
    show_identical_items: bool = False


@dataclass(slots=True)
class Settings:
    schema_version: int = CURRENT_SCHEMA_VERSION
    windows: dict[str, WindowPlacement] = field(default_factory=dict)
    theme: ThemeSettings = field(default_factory=ThemeSettings)
    plugins: PluginsSettings = field(default_factory=PluginsSettings)
    extensions: ExtensionsSettings = field(default_factory=ExtensionsSettings)
    shortcuts: ShortcutsSettings | None = None
    main_menu: MainMenuState | None = None
    startup: StartupSettings | None = None
    cache: CacheSettings | None = None
    folders: FoldersSettings | None = None
    monitor: MonitorSettings | None = None
    connections: ConnectionsSettings | None = None
    file_operations: FileOperationsSettings | None = None
    compare_directories: CompareDirectoriesSettings | None = None


def default_settings() -> Settings:
    return Settings()


__all__ = [
    "CURRENT_SCHEMA_VERSION",
    "CacheSettings",
    "CompareDirectoriesSettings",
    "ConnectionAuthMode",
    "ConnectionProfile",
    "ConnectionsSettings",
    "DirectoryInfoCacheSettings",
    "ExtensionsSettings",
    "FileOperationsSettings",
    "FolderDisplayMode",
    "FolderLayoutSettings",
    "FolderPane",
    "FolderSortBy",
    "FolderSortDirection",
    "FolderViewSettings",
    "FoldersSettings",
    "LoadStatus",
    "MainMenuState",
    "MonitorFilterPreset",
    "MonitorFilterState",
    "MonitorMenuState",
    "MonitorSettings",
    "PluginsSettings",
    "Settings",
    "ShortcutsSettings",
    "StartupSettings",
    "ThemeDefinition",
    "ThemeSettings",
    "WindowBounds",
    "WindowPlacement",
    "WindowState",
    "default_file_system_extensions",
    "default_settings",
    "default_sort_direction",
    "default_viewer_extensions",
]
