from .colors import format_color, try_parse_color
from .keybindings import ShortcutBinding, decode_binding, encode_binding, parse_vk_name, vk_to_name
from .units import bytes_to_kib_ceil, parse_byte_size

__all__ = [
    "ShortcutBinding",
    "bytes_to_kib_ceil",
    "decode_binding",
    "encode_binding",
    "format_color",
    "parse_byte_size",
    "parse_vk_name",
    "try_parse_color",
    "vk_to_name",
]
