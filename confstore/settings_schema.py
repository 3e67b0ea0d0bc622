from __future__ import annotations

import logging
import threading
from enum import Enum
from pathlib import Path

from confstore.errors import FileReadError
from confstore.services.file_io import MAX_SETTINGS_FILE_BYTES, read_bounded

log = logging.getLogger(__name__)

SCHEMA_RESOURCE_NAME = "SettingsStore.schema.json"


def shipped_schema_path() -> Path:
    return Path(__file__).resolve().parent / "resources" / SCHEMA_RESOURCE_NAME


class SchemaCacheState(Enum):
    NOT_LOADED = "not_loaded"
    LOADED_EMPTY = "loaded_empty"
    LOADED = "loaded"


class SettingsSchemaCache:
    """Loads the shipped schema text once; later calls return the cached copy.

    A missing or unreadable resource is remembered as ``LOADED_EMPTY`` and is
    never retried for the lifetime of the cache.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path
        self._lock = threading.Lock()
        self._state = SchemaCacheState.NOT_LOADED
        self._text = ""

    @property
    def state(self) -> SchemaCacheState:
        return self._state

    def get(self) -> str:
        with self._lock:
            if self._state is SchemaCacheState.NOT_LOADED:
                self._text = self._load()
                self._state = SchemaCacheState.LOADED if self._text else SchemaCacheState.LOADED_EMPTY
            return self._text

    def _load(self) -> str:
        path = self._path if self._path is not None else shipped_schema_path()
        if not path.is_file():
            log.warning("Shipped settings schema file is missing: %s", path)
            return ""
        try:
            data = read_bounded(path, MAX_SETTINGS_FILE_BYTES)
        except FileReadError as exc:
            log.warning("Failed to read shipped settings schema %s: %s", path, exc)
            return ""
        try:
            return data.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            log.warning("Shipped settings schema %s is not UTF-8: %s", path, exc)
            return ""


_DEFAULT_CACHE = SettingsSchemaCache()


def get_settings_store_schema_json() -> str:
    """Return the shipped schema document, or ``""`` when it is unavailable."""
    return _DEFAULT_CACHE.get()


__all__ = [
    "SCHEMA_RESOURCE_NAME",
    "SchemaCacheState",
    "SettingsSchemaCache",
    "get_settings_store_schema_json",
    "shipped_schema_path",
]
