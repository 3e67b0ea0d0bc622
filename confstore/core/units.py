"""Byte-size parsing for cache limits."""

from __future__ import annotations

from typing import Any

UINT64_MAX = 2**64 - 1
INT64_MAX = 2**63 - 1

KIB = 1024
MIB = 1024 * KIB
GIB = 1024 * MIB

_UNIT_MULTIPLIERS: dict[str, int] = {
    "": KIB,
    "kb": KIB,
    "mb": MIB,
    "gb": GIB,
}


def multiply_saturating(left: int, right: int) -> int:
    return min(left * right, UINT64_MAX)


def parse_byte_size_text(text: str) -> int | None:
    """Parse ``"512"``, ``"64kb"``, ``"8 MB"`` or ``"1gb"``; bare numbers are KiB."""
    raw = str(text or "").strip()
    digits_end = 0
    while digits_end < len(raw) and raw[digits_end] in "0123456789":
        digits_end += 1
    if digits_end == 0:
        return None
    number = int(raw[:digits_end])
    if number > UINT64_MAX:
        return None
    multiplier = _UNIT_MULTIPLIERS.get(raw[digits_end:].strip().lower())
    if multiplier is None:
        return None
    return multiply_saturating(number, multiplier)


def parse_byte_size(value: Any) -> int | None:
    """Accept a KiB count or a size string; return bytes or ``None`` when invalid."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        if value < 0 or value > UINT64_MAX:
            return None
        return multiply_saturating(value, KIB)
    if isinstance(value, str):
        return parse_byte_size_text(value)
    return None


def bytes_to_kib_ceil(value: int) -> int:
    kib = (max(0, int(value)) + KIB - 1) // KIB
    return min(kib, INT64_MAX)


__all__ = [
    "GIB",
    "INT64_MAX",
    "KIB",
    "MIB",
    "UINT64_MAX",
    "bytes_to_kib_ceil",
    "multiply_saturating",
    "parse_byte_size",
    "parse_byte_size_text",
]
