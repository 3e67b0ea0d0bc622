from __future__ import annotations

import pytest

from confstore.core.colors import format_color, try_parse_color
from confstore.core.units import INT64_MAX, MIB, UINT64_MAX, bytes_to_kib_ceil, parse_byte_size


def test_format_color():
    assert format_color(0xFF112233) == "#112233"
    assert format_color(0x80112233) == "#80112233"
    assert format_color(0x00ABCDEF) == "#00ABCDEF"


@pytest.mark.parametrize("argb", [0xFF112233, 0x80112233, 0x00000000, 0xFFFFFFFF])
def test_color_text_parses_back(argb):
    assert try_parse_color(format_color(argb)) == argb


@pytest.mark.parametrize("text", ["", "112233", "#12345", "#1122334", "#GG2233", "#1122334455"])
def test_invalid_colors(text):
    assert try_parse_color(text) is None


def test_lowercase_hex_is_accepted():
    assert try_parse_color("#ff00aa") == 0xFFFF00AA


def test_byte_sizes():
    assert parse_byte_size("10") == 10 * 1024
    assert parse_byte_size("10mb") == 10 * MIB
    assert parse_byte_size(" 8 MB ") == 8 * MIB
    assert parse_byte_size("2GB") == 2 * 1024 * MIB
    assert parse_byte_size(64) == 64 * 1024
    assert parse_byte_size("999999999999gb") == UINT64_MAX


@pytest.mark.parametrize("value", ["", "mb", "10tb", "-5", "1.5gb", True, -1, None, 3.5])
def test_invalid_byte_sizes(value):
    assert parse_byte_size(value) is None


def test_bytes_to_kib_rounds_up_and_caps():
    assert bytes_to_kib_ceil(0) == 0
    assert bytes_to_kib_ceil(1) == 1
    assert bytes_to_kib_ceil(1024) == 1
    assert bytes_to_kib_ceil(1025) == 2
    assert bytes_to_kib_ceil(UINT64_MAX) == 2**54
    assert bytes_to_kib_ceil(2**80) == INT64_MAX
