import pytest

from beacon_participation.utils.bits import get_set_indices, hex_bitlist_to_list, hex_bitvector_to_list
from tests.factory.bitarrays import BitListFactory, BitVectorFactory

pytestmark = pytest.mark.unit


def test_get_set_indices():
    assert get_set_indices([]) == []
    assert get_set_indices([False, True, False, True, True]) == [1, 3, 4]


@pytest.mark.parametrize(
    "bitlist, expected",
    [
        # Only the delimiter bit, zero length
        ("0x01", []),
        ("0x0b", [True, True, False]),
        ("0x1f", [True, True, True, True]),
        # Exactly one full byte plus the delimiter in the next one
        ("0xff01", [True] * 8),
        ("0x0102", [True] + [False] * 8),
    ],
)
def test_hex_bitlist_to_list(bitlist, expected):
    assert hex_bitlist_to_list(bitlist) == expected


@pytest.mark.parametrize("bitlist", ["0x", "", "0x00", "0x0100"])
def test_hex_bitlist_to_list_invalid(bitlist):
    with pytest.raises(ValueError):
        hex_bitlist_to_list(bitlist)


@pytest.mark.parametrize(
    "set_indices, bits_count",
    [
        ([], 0),
        ([0, 2], 4),
        ([5], 64),
        ([0, 127], 128),
        ([130], 200),
    ],
)
def test_hex_bitlist_to_list_length_from_delimiter(set_indices, bits_count):
    bits = hex_bitlist_to_list(BitListFactory.build(set_indices=set_indices, bits_count=bits_count).hex())

    assert len(bits) == bits_count
    assert get_set_indices(bits) == set_indices


def test_hex_bitvector_to_list():
    bits = hex_bitvector_to_list(BitVectorFactory.build(set_indices=[0, 9, 63]).hex())

    assert len(bits) == 64
    assert get_set_indices(bits) == [0, 9, 63]
    assert hex_bitvector_to_list("0x0100") == [True] + [False] * 15
