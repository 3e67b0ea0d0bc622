"""Pytest fixtures for confstore."""
from __future__ import annotations

import json
from pathlib import Path

import pytest

from confstore.settings_paths import CONFIG_ROOT_ENV, DEBUG_ENV, SettingsPaths

APP_ID = "TestApp"


@pytest.fixture()
def config_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    root = tmp_path / "config"
    monkeypatch.setenv(CONFIG_ROOT_ENV, str(root))
    monkeypatch.delenv(DEBUG_ENV, raising=False)
    return root


@pytest.fixture()
def paths(config_root: Path) -> SettingsPaths:
    return SettingsPaths(APP_ID)


def write_document(path: Path, payload, *, bom: bool = False) -> bytes:
    text = payload if isinstance(payload, str) else json.dumps(payload, indent=2)
    data = (b"\xef\xbb\xbf" if bom else b"") + text.encode("utf-8")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return data


@pytest.fixture()
def write_settings(paths: SettingsPaths):
    def _write(payload, *, bom: bool = False, legacy: bool = False) -> Path:
        target = paths.legacy_path if legacy else paths.versioned_path
        write_document(target, payload, bom=bom)
        return target

    return _write
