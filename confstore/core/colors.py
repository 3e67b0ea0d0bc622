"""ARGB color text helpers used by theme definitions."""

from __future__ import annotations

import string

_HEX_DIGITS = frozenset(string.hexdigits)


def format_color(argb: int) -> str:
    """Return ``#RRGGBB`` for opaque colors and ``#AARRGGBB`` otherwise."""
    value = int(argb) & 0xFFFFFFFF
    alpha = (value >> 24) & 0xFF
    if alpha == 0xFF:
        return f"#{value & 0xFFFFFF:06X}"
    return f"#{value:08X}"


def try_parse_color(text: str) -> int | None:
    raw = str(text or "")
    if len(raw) not in (7, 9) or raw[0] != "#":
        return None
    digits = raw[1:]
    if not all(ch in _HEX_DIGITS for ch in digits):
        return None
    value = int(digits, 16)
    if len(digits) == 6:
        value |= 0xFF000000
    return value


__all__ = ["format_color", "try_parse_color"]
