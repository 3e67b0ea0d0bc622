from __future__ import annotations

from pathlib import Path


class SettingsStoreError(RuntimeError):
    """Raised when a settings file cannot be loaded or saved."""

    def __init__(
        self,
        message: str,
        *,
        kind: str = "store_error",
        path: Path | str | None = None,
        errno: int | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.path = Path(path) if path is not None else None
        self.errno = errno


class FileReadError(SettingsStoreError):
    def __init__(self, message: str, *, path: Path | str | None = None, errno: int | None = None) -> None:
        super().__init__(message, kind="read_failed", path=path, errno=errno)


class FileTooLargeError(FileReadError):
    """The file reports a size above the read cap."""


class FileWriteError(SettingsStoreError):
    def __init__(self, message: str, *, path: Path | str | None = None, errno: int | None = None) -> None:
        super().__init__(message, kind="write_failed", path=path, errno=errno)


class JsonValueError(SettingsStoreError):
    def __init__(self, message: str, *, position: int | None = None) -> None:
        super().__init__(message, kind="invalid_json")
        self.position = position


class SettingsOutOfMemoryError(SettingsStoreError):
    def __init__(self, message: str = "Out of memory while building settings document.") -> None:
        super().__init__(message, kind="out_of_memory")


__all__ = [
    "FileReadError",
    "FileTooLargeError",
    "FileWriteError",
    "JsonValueError",
    "SettingsOutOfMemoryError",
    "SettingsStoreError",
]
