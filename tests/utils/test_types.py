import pytest

from beacon_participation.utils.types import hex_str_to_bytes, normalize_root

pytestmark = pytest.mark.unit


def test_hex_str_to_bytes():
    assert hex_str_to_bytes("0x") == b""
    assert hex_str_to_bytes("0x0a0B") == b"\x0a\x0b"
    assert hex_str_to_bytes("ff") == b"\xff"


def test_normalize_root():
    expected = "0x" + "ab" * 32
    assert normalize_root("0x" + "AB" * 32) == expected
    assert normalize_root("ab" * 32) == expected
    assert normalize_root(expected) == expected
