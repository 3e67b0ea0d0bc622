"""Discovery of user theme definitions stored as ``*.theme.json5`` files."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from confstore.errors import FileReadError, JsonValueError
from confstore.json_value import parse_json5
from confstore.section_parsers import parse_theme_definition
from confstore.services.file_io import MAX_SETTINGS_FILE_BYTES, read_bounded
from confstore.settings_models import LoadStatus, ThemeDefinition

log = logging.getLogger(__name__)

THEME_FILE_SUFFIX = ".theme.json5"


@dataclass(slots=True)
class ThemeLoadResult:
    status: LoadStatus = LoadStatus.NOT_FOUND
    themes: list[ThemeDefinition] = field(default_factory=list)


def _theme_files(directory: Path) -> list[Path]:
    files: list[Path] = []
    for item in sorted(directory.iterdir(), key=lambda path: path.name.casefold()):
        if not item.is_file():
            continue
        if not item.name.lower().endswith(THEME_FILE_SUFFIX):
            continue
        files.append(item)
    return files


def _load_theme_file(path: Path) -> ThemeDefinition | None:
    try:
        root = parse_json5(read_bounded(path, MAX_SETTINGS_FILE_BYTES))
    except (FileReadError, JsonValueError) as exc:
        log.warning("Skipping theme file %s: %s", path, exc)
        return None
    definition = parse_theme_definition(root)
    if definition is None:
        log.warning("Skipping theme file %s: expected an object with id, name, baseThemeId and colors", path)
    return definition


def load_theme_definitions_from_directory(directory: str | os.PathLike[str]) -> ThemeLoadResult:
    """Load every valid theme in ``directory`` (not recursive); first id wins."""
    theme_dir = Path(directory)
    if not str(directory) or not theme_dir.is_dir():
        return ThemeLoadResult()
    try:
        files = _theme_files(theme_dir)
    except OSError as exc:
        log.warning("Unable to list theme directory %s: %s", theme_dir, exc)
        return ThemeLoadResult()

    result = ThemeLoadResult()
    seen: set[str] = set()
    for path in files:
        definition = _load_theme_file(path)
        if definition is None:
            continue
        if definition.id in seen:
            log.warning("Skipping theme file %s: duplicate theme id %s", path, definition.id)
            continue
        seen.add(definition.id)
        result.themes.append(definition)

    if result.themes:
        result.status = LoadStatus.OK
    return result


__all__ = [
    "THEME_FILE_SUFFIX",
    "ThemeLoadResult",
    "load_theme_definitions_from_directory",
]
