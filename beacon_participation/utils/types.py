from hexbytes import HexBytes

from beacon_participation.types import BlockRoot


def hex_str_to_bytes(hex_str: str) -> bytes:
    return bytes.fromhex(hex_str[2:]) if hex_str.startswith("0x") else bytes.fromhex(hex_str)


def normalize_root(root: str) -> BlockRoot:
    """Lowercase 0x-prefixed form, so roots reported by different nodes compare equal"""
    return BlockRoot(HexBytes(hex_str_to_bytes(root)).to_0x_hex())
