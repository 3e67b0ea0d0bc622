from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from PySide6.QtCore import QStandardPaths

COMPANY_DIRECTORY_NAME = "Confstore"
SETTINGS_DIRECTORY_NAME = "Settings"
APP_VERSION_MAJOR = 7
APP_VERSION_MINOR = 0

CONFIG_ROOT_ENV = "CONFSTORE_CONFIG_ROOT"
DEBUG_ENV = "CONFSTORE_DEBUG"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def resolve_config_root() -> Path:
    """Return the per-user configuration root (before the company directory)."""
    override = os.environ.get(CONFIG_ROOT_ENV, "").strip()
    if override:
        return Path(override).expanduser()
    location = QStandardPaths.writableLocation(QStandardPaths.StandardLocation.GenericConfigLocation)
    if location:
        return Path(location)
    xdg = os.environ.get("XDG_CONFIG_HOME", "").strip()
    if xdg:
        return Path(xdg).expanduser()
    return Path.home() / ".config"


def debug_mode_enabled() -> bool:
    return os.environ.get(DEBUG_ENV, "").strip().lower() in _TRUE_VALUES


@dataclass(frozen=True, slots=True)
class SettingsPaths:
    app_id: str
    config_root: Path | None = None
    debug: bool | None = None
    settings_dir: Path = field(init=False)

    def __post_init__(self) -> None:
        app_id = str(self.app_id or "").strip()
        if not app_id:
            raise ValueError("Application id cannot be empty.")
        root = Path(self.config_root).expanduser() if self.config_root is not None else resolve_config_root()
        debug = debug_mode_enabled() if self.debug is None else bool(self.debug)
        object.__setattr__(self, "app_id", app_id)
        object.__setattr__(self, "config_root", root)
        object.__setattr__(self, "debug", debug)
        object.__setattr__(self, "settings_dir", root / COMPANY_DIRECTORY_NAME / SETTINGS_DIRECTORY_NAME)

    @property
    def versioned_path(self) -> Path:
        return self.settings_dir / f"{self.app_id}-{APP_VERSION_MAJOR}.{APP_VERSION_MINOR}.settings.json"

    @property
    def legacy_path(self) -> Path:
        return self.settings_dir / f"{self.app_id}.settings.json"

    @property
    def debug_path(self) -> Path:
        return self.settings_dir / f"{self.app_id}-debug.settings.json"

    @property
    def primary_path(self) -> Path:
        """Save target: the debug file in debug mode, the versioned file otherwise."""
        return self.debug_path if self.debug else self.versioned_path

    @property
    def schema_path(self) -> Path:
        return self.settings_dir / f"{self.app_id}.settings.schema.json"

    def load_candidates(self) -> tuple[Path, ...]:
        if self.debug:
            return (self.debug_path, self.versioned_path, self.legacy_path)
        return (self.versioned_path, self.legacy_path)

    def existing_settings_file(self) -> Path | None:
        for candidate in self.load_candidates():
            if candidate.is_file():
                return candidate
        return None


__all__ = [
    "APP_VERSION_MAJOR",
    "APP_VERSION_MINOR",
    "COMPANY_DIRECTORY_NAME",
    "CONFIG_ROOT_ENV",
    "DEBUG_ENV",
    "SettingsPaths",
    "debug_mode_enabled",
    "resolve_config_root",
]
