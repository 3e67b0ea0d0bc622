"""Virtual-key names and shortcut binding codec."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

MOD_CTRL = 1
MOD_ALT = 2
MOD_SHIFT = 4
MAX_MODIFIERS = MOD_CTRL | MOD_ALT | MOD_SHIFT
MAX_VK = 0xFF
COMMAND_ID_PREFIX = "cmd/"

VK_BACK = 0x08
VK_TAB = 0x09
VK_RETURN = 0x0D
VK_ESCAPE = 0x1B
VK_SPACE = 0x20
VK_PRIOR = 0x21
VK_NEXT = 0x22
VK_END = 0x23
VK_HOME = 0x24
VK_LEFT = 0x25
VK_UP = 0x26
VK_RIGHT = 0x27
VK_DOWN = 0x28
VK_INSERT = 0x2D
VK_DELETE = 0x2E
VK_F1 = 0x70
VK_F24 = 0x87

_NAME_BY_VK: dict[int, str] = {
    VK_BACK: "Backspace",
    VK_TAB: "Tab",
    VK_RETURN: "Enter",
    VK_SPACE: "Space",
    VK_PRIOR: "PageUp",
    VK_NEXT: "PageDown",
    VK_END: "End",
    VK_HOME: "Home",
    VK_LEFT: "Left",
    VK_UP: "Up",
    VK_RIGHT: "Right",
    VK_DOWN: "Down",
    VK_INSERT: "Insert",
    VK_DELETE: "Delete",
    VK_ESCAPE: "Escape",
}

_VK_BY_LOWER_NAME: dict[str, int] = {name.lower(): vk for vk, name in _NAME_BY_VK.items()}
_VK_BY_LOWER_NAME["return"] = VK_RETURN

_HEX = "0123456789abcdefABCDEF"


@dataclass(frozen=True, slots=True)
class ShortcutBinding:
    vk: int
    modifiers: int
    command_id: str

    @property
    def ctrl(self) -> bool:
        return bool(self.modifiers & MOD_CTRL)

    @property
    def alt(self) -> bool:
        return bool(self.modifiers & MOD_ALT)

    @property
    def shift(self) -> bool:
        return bool(self.modifiers & MOD_SHIFT)

    def sort_key(self) -> tuple[int, int, str]:
        return (self.vk, self.modifiers, self.command_id)


def vk_to_name(vk: int) -> str:
    code = int(vk) & 0xFF
    if VK_F1 <= code <= VK_F24:
        return f"F{code - VK_F1 + 1}"
    if ord("0") <= code <= ord("9") or ord("A") <= code <= ord("Z"):
        return chr(code)
    named = _NAME_BY_VK.get(code)
    if named is not None:
        return named
    return f"VK_{code:02X}"


def parse_vk_name(text: str) -> int | None:
    raw = str(text or "").strip()
    if not raw:
        return None

    if len(raw) == 1:
        ch = raw.upper() if "a" <= raw <= "z" else raw
        if "0" <= ch <= "9" or "A" <= ch <= "Z":
            return ord(ch)

    if len(raw) >= 2 and raw[0] in "Ff" and raw[1:].isdigit() and raw[1:].isascii():
        number = int(raw[1:])
        if 1 <= number <= 24:
            return VK_F1 + number - 1

    if len(raw) == 5 and raw[:3].upper() == "VK_" and all(ch in _HEX for ch in raw[3:]):
        return int(raw[3:], 16)

    return _VK_BY_LOWER_NAME.get(raw.lower())


def _is_uint(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _finish_binding(vk: int, modifiers: int, command_id: Any) -> ShortcutBinding | None:
    if vk > MAX_VK or modifiers > MAX_MODIFIERS:
        return None
    if not isinstance(command_id, str) or not command_id.startswith(COMMAND_ID_PREFIX):
        return None
    return ShortcutBinding(vk=vk, modifiers=modifiers, command_id=command_id)


def decode_binding(payload: Any, *, schema_version: int) -> ShortcutBinding | None:
    """Decode one binding object, returning ``None`` when it must be dropped.

    From schema version 5 on, ``vk`` is a symbolic name and modifiers are the
    optional ``ctrl``/``alt``/``shift`` booleans; a leftover ``modifiers`` key
    drops the binding. Older documents carry numeric ``vk`` and ``modifiers``.
    """
    if not isinstance(payload, Mapping):
        return None
    vk_value = payload.get("vk")
    command_id = payload.get("commandId")
    if vk_value is None or not isinstance(command_id, str):
        return None

    if schema_version >= 5:
        if not isinstance(vk_value, str) or "modifiers" in payload:
            return None
        vk = parse_vk_name(vk_value)
        if vk is None:
            return None
        modifiers = 0
        for key, bit in (("ctrl", MOD_CTRL), ("alt", MOD_ALT), ("shift", MOD_SHIFT)):
            if key not in payload:
                continue
            flag = payload[key]
            if not isinstance(flag, bool):
                return None
            if flag:
                modifiers |= bit
        return _finish_binding(vk, modifiers, command_id)

    modifiers_value = payload.get("modifiers")
    if not _is_uint(vk_value) or not _is_uint(modifiers_value):
        return None
    return _finish_binding(vk_value, modifiers_value, command_id)


def encode_binding(binding: ShortcutBinding) -> dict[str, Any]:
    out: dict[str, Any] = {"vk": vk_to_name(binding.vk)}
    if binding.ctrl:
        out["ctrl"] = True
    if binding.alt:
        out["alt"] = True
    if binding.shift:
        out["shift"] = True
    out["commandId"] = binding.command_id
    return out


def sorted_bindings(bindings: list[ShortcutBinding]) -> list[ShortcutBinding]:
    return sorted((b for b in bindings if b.command_id), key=ShortcutBinding.sort_key)


__all__ = [
    "COMMAND_ID_PREFIX",
    "MAX_MODIFIERS",
    "MAX_VK",
    "MOD_ALT",
    "MOD_CTRL",
    "MOD_SHIFT",
    "ShortcutBinding",
    "decode_binding",
    "encode_binding",
    "parse_vk_name",
    "sorted_bindings",
    "vk_to_name",
]
