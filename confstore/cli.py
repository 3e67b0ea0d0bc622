# Usage examples:
#   python -m confstore path MyApp
#   python -m confstore show MyApp --key folders.layout
#   python -m confstore migrate MyApp
#   python -m confstore export-schema MyApp
#   python -m confstore themes ~/.config/Confstore/Themes
#
# The config root defaults to $CONFSTORE_CONFIG_ROOT, then the platform config
# location; --config-root overrides both.

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Mapping

from confstore.core.colors import format_color
from confstore.errors import SettingsStoreError
from confstore.log_setup import setup_logging
from confstore.schema_export import PluginSchemaSource, build_aggregated_settings_schema
from confstore.schema_fields import MAX_SCHEMA_FILE_BYTES
from confstore.services.file_io import read_bounded
from confstore.settings_models import LoadStatus
from confstore.settings_schema import get_settings_store_schema_json
from confstore.settings_serializer import build_settings_document
from confstore.settings_store import SettingsStore
from confstore.theme_loader import load_theme_definitions_from_directory

log = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_NOT_FOUND = 1
EXIT_FAILED = 2


def _lookup(document: Mapping[str, Any], dotted: str, missing: Any) -> Any:
    """Walk ``folders.layout.splitRatio`` style paths through the settings document."""
    current: Any = document
    for part in dotted.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return missing
        current = current[part]
    return current


def _store(ns: argparse.Namespace) -> SettingsStore:
    return SettingsStore(ns.app_id, config_root=ns.config_root, debug=ns.debug or None)


def cmd_path(ns: argparse.Namespace) -> int:
    store = _store(ns)
    print(store.schema_path if ns.schema else store.path)
    return EXIT_OK


def cmd_show(ns: argparse.Namespace) -> int:
    store = _store(ns)
    status, settings = store.load(quarantine_rejected=False)
    if status is LoadStatus.FAILED:
        print(f"Could not load settings: {store.last_error}", file=sys.stderr)
        return EXIT_FAILED
    if status is LoadStatus.NOT_FOUND:
        log.info("No usable settings file for %s; showing defaults (%s)", store.app_id, store.last_error or "missing")

    document = build_settings_document(settings, store.app_id, debug=store.paths.debug)
    marker = object()
    value = _lookup(document, ns.key, marker) if ns.key else document
    if value is marker:
        print(f"Key not set: {ns.key}", file=sys.stderr)
        return EXIT_NOT_FOUND
    print(json.dumps(value, ensure_ascii=False, indent=2))
    return EXIT_OK


def cmd_migrate(ns: argparse.Namespace) -> int:
    store = _store(ns)
    status, settings = store.load()
    if status is not LoadStatus.OK:
        reason = store.last_error or "no settings file"
        print(f"Nothing to migrate for {store.app_id}: {reason}", file=sys.stderr)
        return EXIT_FAILED if status is LoadStatus.FAILED else EXIT_NOT_FOUND
    try:
        store.save(settings)
    except SettingsStoreError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_FAILED
    print(f"Wrote {store.path}")
    return EXIT_OK


def _plugin_schema_sources(specs: list[str]) -> list[PluginSchemaSource]:
    sources: list[PluginSchemaSource] = []
    for spec in specs:
        plugin_id, sep, file_name = spec.partition("=")
        if not sep or not plugin_id or not file_name:
            raise ValueError(f"Expected PLUGIN_ID=FILE, got '{spec}'")
        sources.append(PluginSchemaSource(plugin_id, read_bounded(file_name, MAX_SCHEMA_FILE_BYTES)))
    return sources


def cmd_export_schema(ns: argparse.Namespace) -> int:
    store = _store(ns)
    schema = get_settings_store_schema_json()
    if not schema:
        print("The shipped settings schema is unavailable.", file=sys.stderr)
        return EXIT_FAILED
    try:
        if ns.plugin_schema:
            schema = build_aggregated_settings_schema(store.app_id, _plugin_schema_sources(ns.plugin_schema))
        store.save_schema(schema)
    except SettingsStoreError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_FAILED
    print(f"Wrote {store.schema_path}")
    return EXIT_OK


def cmd_themes(ns: argparse.Namespace) -> int:
    result = load_theme_definitions_from_directory(ns.directory)
    if result.status is not LoadStatus.OK:
        print(f"No themes found in {ns.directory}", file=sys.stderr)
        return EXIT_NOT_FOUND
    for theme in result.themes:
        print(f"{theme.id}\t{theme.name}\t(base: {theme.base_theme_id}, {len(theme.colors)} colors)")
        if ns.colors:
            for key in sorted(theme.colors):
                print(f"    {key} = {format_color(theme.colors[key])}")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="confstore", description="Inspect and maintain application settings files.")
    p.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level to stderr")
    sub = p.add_subparsers(dest="cmd", required=True)

    def add_store_args(sp: argparse.ArgumentParser) -> None:
        sp.add_argument("app_id", help="Application id used in settings file names")
        sp.add_argument("--config-root", type=Path, default=None, help="Override the per-user config root")
        sp.add_argument("--debug", action="store_true", help="Use the debug settings file")

    s_path = sub.add_parser("path", help="Print the resolved settings path")
    add_store_args(s_path)
    s_path.add_argument("--schema", action="store_true", help="Print the schema sidecar path instead")
    s_path.set_defaults(func=cmd_path)

    s_show = sub.add_parser(
        "show", help="Load settings and print the normalized document; a rejected file is left in place"
    )
    add_store_args(s_show)
    s_show.add_argument("--key", default="", help="Dotted path inside the document, e.g. folders.layout")
    s_show.set_defaults(func=cmd_show)

    s_migrate = sub.add_parser("migrate", help="Load settings and save them in the current schema version")
    add_store_args(s_migrate)
    s_migrate.set_defaults(func=cmd_migrate)

    s_schema = sub.add_parser("export-schema", help="Write the shipped schema next to the settings file")
    add_store_args(s_schema)
    s_schema.add_argument(
        "--plugin-schema",
        action="append",
        default=[],
        metavar="PLUGIN_ID=FILE",
        help="Merge a plugin configuration schema (repeatable)",
    )
    s_schema.set_defaults(func=cmd_export_schema)

    s_themes = sub.add_parser("themes", help="List theme definitions in a directory")
    s_themes.add_argument("directory", type=Path)
    s_themes.add_argument("--colors", action="store_true", help="Also print every color")
    s_themes.set_defaults(func=cmd_themes)
    return p


def main(argv: list[str] | None = None) -> int:
    ns = build_parser().parse_args(argv)
    if ns.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s | %(name)s | %(message)s")
    else:
        setup_logging(log_to_file=False)
    try:
        return ns.func(ns)
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_FAILED


__all__ = ["build_parser", "main"]
