from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping

from confstore.errors import (
    FileReadError,
    FileTooLargeError,
    JsonValueError,
    SettingsOutOfMemoryError,
    SettingsStoreError,
)
from confstore.json_value import parse_json5
from confstore.migrations import CURRENT_SCHEMA_VERSION, MIN_LOADABLE_SCHEMA_VERSION, migrate_document
from confstore.section_parsers import parse_settings_document
from confstore.services.file_io import (
    MAX_SETTINGS_FILE_BYTES,
    atomic_write_text,
    quarantine,
    read_bounded,
    write_atomic,
)
from confstore.settings_models import LoadStatus, Settings, default_settings
from confstore.settings_paths import SettingsPaths
from confstore.settings_schema import get_settings_store_schema_json
from confstore.settings_serializer import serialize_settings

log = logging.getLogger(__name__)


def _schema_version(root: Mapping[str, Any]) -> int | None:
    version = root.get("schemaVersion")
    if isinstance(version, bool) or not isinstance(version, int):
        return None
    if not MIN_LOADABLE_SCHEMA_VERSION <= version <= CURRENT_SCHEMA_VERSION:
        return None
    return version


class SettingsStore:
    """Settings file for one application id.

    ``load`` never raises: unreadable or corrupt files leave the caller with
    defaults, and structurally broken files are renamed aside first.
    """

    def __init__(self, app_id: str, *, config_root: Path | None = None, debug: bool | None = None) -> None:
        self.paths = SettingsPaths(app_id, config_root=config_root, debug=debug)
        self.last_error: str | None = None
        self.quarantined_path: Path | None = None

    @property
    def app_id(self) -> str:
        return self.paths.app_id

    @property
    def path(self) -> Path:
        return self.paths.primary_path

    @property
    def schema_path(self) -> Path:
        return self.paths.schema_path

    def _reject(self, path: Path, reason: str, move_aside: bool) -> tuple[LoadStatus, Settings]:
        self.last_error = f"Settings file '{path}' was rejected: {reason}"
        log.warning("%s", self.last_error)
        if move_aside:
            self.quarantined_path = quarantine(path)
        return LoadStatus.NOT_FOUND, default_settings()

    def load(self, *, quarantine_rejected: bool = True) -> tuple[LoadStatus, Settings]:
        """Load and migrate the settings file.

        With ``quarantine_rejected=False`` a rejected file stays where it is,
        which suits read-only inspection.
        """
        self.last_error = None
        self.quarantined_path = None
        path = self.paths.existing_settings_file()
        if path is None:
            return LoadStatus.NOT_FOUND, default_settings()

        try:
            data = read_bounded(path, MAX_SETTINGS_FILE_BYTES)
        except FileTooLargeError as exc:
            return self._reject(path, str(exc), quarantine_rejected)
        except FileReadError as exc:
            self.last_error = str(exc)
            log.warning("Could not read settings file '%s': %s", path, exc)
            return LoadStatus.NOT_FOUND, default_settings()
        except MemoryError:
            self.last_error = "Out of memory while reading settings."
            return LoadStatus.FAILED, default_settings()

        try:
            root = parse_json5(data)
        except SettingsOutOfMemoryError as exc:
            self.last_error = str(exc)
            return LoadStatus.FAILED, default_settings()
        except JsonValueError as exc:
            return self._reject(path, str(exc), quarantine_rejected)

        if not isinstance(root, dict):
            return self._reject(path, f"expected an object at root, found {type(root).__name__}", quarantine_rejected)
        version = _schema_version(root)
        if version is None:
            return self._reject(
                path, f"unsupported schema version {root.get('schemaVersion')!r}", quarantine_rejected
            )

        if version < CURRENT_SCHEMA_VERSION:
            log.info("Migrating settings '%s' from schema v%d to v%d", path, version, CURRENT_SCHEMA_VERSION)
        try:
            settings = parse_settings_document(
                migrate_document(root, version), source_version=version, debug=self.paths.debug
            )
        except MemoryError:
            self.last_error = "Out of memory while parsing settings."
            return LoadStatus.FAILED, default_settings()
        return LoadStatus.OK, settings

    def save(self, settings: Settings) -> None:
        data = serialize_settings(settings, self.app_id, debug=self.paths.debug)
        try:
            write_atomic(self.path, data)
        except SettingsStoreError as exc:
            self.last_error = str(exc)
            raise SettingsStoreError(
                f"Could not write settings file '{self.path}': {exc}",
                kind=exc.kind,
                path=self.path,
                errno=exc.errno,
            ) from exc
        self.last_error = None

        schema = get_settings_store_schema_json()
        if schema:
            try:
                self.save_schema(schema)
            except SettingsStoreError as exc:
                log.warning("Failed to write settings schema file for %s: %s", self.app_id, exc)

    def save_schema(self, schema_json: str | bytes) -> None:
        if isinstance(schema_json, str):
            atomic_write_text(self.schema_path, schema_json)
        else:
            write_atomic(self.schema_path, bytes(schema_json))


def _store(app_id: str) -> SettingsStore:
    try:
        return SettingsStore(app_id)
    except ValueError as exc:
        raise SettingsStoreError(str(exc), kind="invalid_app_id") from exc


def load_settings(app_id: str) -> tuple[LoadStatus, Settings]:
    try:
        store = SettingsStore(app_id)
    except ValueError as exc:
        log.error("Cannot load settings: %s", exc)
        return LoadStatus.FAILED, default_settings()
    return store.load()


def save_settings(app_id: str, settings: Settings) -> None:
    _store(app_id).save(settings)


def save_settings_schema(app_id: str, schema_json: str | bytes) -> None:
    _store(app_id).save_schema(schema_json)


def get_settings_path(app_id: str) -> Path:
    return _store(app_id).path


def get_settings_schema_path(app_id: str) -> Path:
    return _store(app_id).schema_path


__all__ = [
    "SettingsStore",
    "get_settings_path",
    "get_settings_schema_path",
    "load_settings",
    "save_settings",
    "save_settings_schema",
]
