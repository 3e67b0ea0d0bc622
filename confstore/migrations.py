"""Ordered schema migrations applied to raw settings documents before parsing."""

from __future__ import annotations

import logging
from copy import deepcopy
from typing import Any, Callable, Mapping

from confstore.core.keybindings import MAX_MODIFIERS, MAX_VK, MOD_ALT, MOD_CTRL, MOD_SHIFT, vk_to_name
from confstore.settings_models import CURRENT_SCHEMA_VERSION

log = logging.getLogger(__name__)

MIN_LOADABLE_SCHEMA_VERSION = 6
PLUGINS_MIN_SCHEMA_VERSION = 2
SYMBOLIC_SHORTCUTS_SCHEMA_VERSION = 5

MigrationStep = Callable[[dict[str, Any]], dict[str, Any]]

_PLUGIN_ID_ALIASES: dict[str, str] = {
    "builtin/filesystem": "builtin/file-system",
    "file": "builtin/file-system",
    "optional/filesystemDummy": "builtin/file-system-dummy",
    "fk": "builtin/file-system-dummy",
}

_SHORTCUT_GROUPS = ("functionBar", "folderView")
_MS_PER_MINUTE = 60_000


def migrate_plugin_id(plugin_id: str) -> str:
    return _PLUGIN_ID_ALIASES.get(plugin_id, plugin_id)


def _is_uint(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _symbolic_binding(binding: Mapping[str, Any]) -> dict[str, Any] | None:
    vk = binding.get("vk")
    modifiers = binding.get("modifiers")
    if not _is_uint(vk) or not _is_uint(modifiers):
        return None
    if vk > MAX_VK or modifiers > MAX_MODIFIERS:
        return None
    out: dict[str, Any] = {"vk": vk_to_name(vk)}
    if modifiers & MOD_CTRL:
        out["ctrl"] = True
    if modifiers & MOD_ALT:
        out["alt"] = True
    if modifiers & MOD_SHIFT:
        out["shift"] = True
    for key, value in binding.items():
        if key not in ("vk", "modifiers", "ctrl", "alt", "shift"):
            out[key] = value
    return out


def symbolic_shortcuts(document: dict[str, Any]) -> dict[str, Any]:
    """Rewrite numeric ``vk``/``modifiers`` bindings into key names and flags."""
    shortcuts = document.get("shortcuts")
    if not isinstance(shortcuts, dict):
        return document
    for group in _SHORTCUT_GROUPS:
        bindings = shortcuts.get(group)
        if not isinstance(bindings, list):
            continue
        rewritten: list[Any] = []
        for binding in bindings:
            if isinstance(binding, dict):
                converted = _symbolic_binding(binding)
                if converted is not None:
                    rewritten.append(converted)
                    continue
            rewritten.append(binding)
        shortcuts[group] = rewritten
    return document


def _timeout_value(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return max(0, value)


def reauth_timeout_minutes(document: dict[str, Any]) -> dict[str, Any]:
    """Replace the millisecond reauthentication timeout with whole minutes."""
    connections = document.get("connections")
    if not isinstance(connections, dict) or "windowsHelloReauthTimeoutMs" not in connections:
        return document
    legacy = connections.pop("windowsHelloReauthTimeoutMs")
    if "windowsHelloReauthTimeoutMinute" in connections:
        return document
    milliseconds = _timeout_value(legacy)
    if milliseconds is not None:
        connections["windowsHelloReauthTimeoutMinute"] = milliseconds // _MS_PER_MINUTE
    return document


MIGRATIONS: tuple[tuple[int, MigrationStep], ...] = (
    (SYMBOLIC_SHORTCUTS_SCHEMA_VERSION, symbolic_shortcuts),
    (CURRENT_SCHEMA_VERSION, reauth_timeout_minutes),
)


def migrate_document(document: Mapping[str, Any], from_version: int) -> dict[str, Any]:
    """Run every step whose target is above ``from_version`` and return a new document."""
    migrated = deepcopy(dict(document))
    for target_version, step in MIGRATIONS:
        if from_version < target_version:
            log.debug("Applying settings migration %s (target v%d)", step.__name__, target_version)
            migrated = step(migrated)
    migrated["schemaVersion"] = CURRENT_SCHEMA_VERSION
    return migrated


__all__ = [
    "CURRENT_SCHEMA_VERSION",
    "MIGRATIONS",
    "MIN_LOADABLE_SCHEMA_VERSION",
    "PLUGINS_MIN_SCHEMA_VERSION",
    "SYMBOLIC_SHORTCUTS_SCHEMA_VERSION",
    "MigrationStep",
    "migrate_document",
    "migrate_plugin_id",
    "reauth_timeout_minutes",
    "symbolic_shortcuts",
]
