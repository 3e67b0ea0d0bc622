"""Safe file read/write helpers."""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from pathlib import Path

from confstore.errors import FileReadError, FileTooLargeError, FileWriteError

log = logging.getLogger(__name__)

MAX_SETTINGS_FILE_BYTES = 16 * 1024 * 1024
READ_CHUNK_BYTES = 1024 * 1024
MAX_QUARANTINE_SUFFIX = 99


def read_bounded(path: str | os.PathLike[str], max_bytes: int = MAX_SETTINGS_FILE_BYTES) -> bytes:
    target = Path(path)
    try:
        with target.open("rb") as handle:
            size = os.fstat(handle.fileno()).st_size
            if size > max_bytes:
                raise FileTooLargeError(
                    f"Settings file '{target}' is {size} bytes, above the {max_bytes} byte limit.",
                    path=target,
                )
            chunks: list[bytes] = []
            remaining = size
            while remaining > 0:
                chunk = handle.read(min(READ_CHUNK_BYTES, remaining))
                if not chunk:
                    raise FileReadError(f"Short read from '{target}'.", path=target)
                chunks.append(chunk)
                remaining -= len(chunk)
    except OSError as exc:
        raise FileReadError(f"Could not read '{target}': {exc}", path=target, errno=exc.errno) from exc
    return b"".join(chunks)


def write_atomic(path: str | os.PathLike[str], data: bytes) -> None:
    target = Path(path)
    tmp_path = Path(str(target) + ".tmp")
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with tmp_path.open("wb") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, target)
    except OSError as exc:
        try:
            tmp_path.unlink(missing_ok=True)
        except OSError:
            log.debug("Could not remove temporary file %s", tmp_path)
        raise FileWriteError(f"Could not write '{target}': {exc}", path=target, errno=exc.errno) from exc


def atomic_write_text(path: str | os.PathLike[str], text: str, *, encoding: str = "utf-8") -> None:
    write_atomic(path, text.encode(encoding))


def quarantine(path: str | os.PathLike[str], *, now: datetime | None = None) -> Path | None:
    """Move a corrupt file aside as ``<name>.bad.<UTC stamp>[.<n>]``."""
    source = Path(path)
    stamp = (now or datetime.now(timezone.utc)).strftime("%Y%m%dT%H%M%SZ")
    base = source.with_name(f"{source.name}.bad.{stamp}")

    backup = base
    suffix = 1
    while backup.exists():
        if suffix > MAX_QUARANTINE_SUFFIX:
            log.warning("No free quarantine name for %s", source)
            return None
        backup = base.with_name(f"{base.name}.{suffix}")
        suffix += 1

    try:
        os.replace(source, backup)
    except OSError as exc:
        log.warning("Could not quarantine %s: %s", source, exc)
        return None
    log.warning("Quarantined unreadable settings file %s as %s", source, backup.name)
    return backup


__all__ = [
    "MAX_SETTINGS_FILE_BYTES",
    "atomic_write_text",
    "quarantine",
    "read_bounded",
    "write_atomic",
]
