from .file_io import MAX_SETTINGS_FILE_BYTES, atomic_write_text, quarantine, read_bounded, write_atomic

__all__ = [
    "MAX_SETTINGS_FILE_BYTES",
    "atomic_write_text",
    "quarantine",
    "read_bounded",
    "write_atomic",
]
