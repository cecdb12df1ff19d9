import bitarray
from bitarray.util import ba2int, int2ba
import numpy as np


def get_bit_width(x) -> int:
    """get the minimum number of bits needed to represent the input uint x

    Args:
        x (int): input unsigned integer

    Returns:
        int:
    """
    assert x >= 0
    if x == 0:
        return 1
    return int(np.ceil(np.log2(x + 1)))


# remap bitarray.bitarray (big endian by default, so the first bit appended
# ends up in the MSB of the first byte)
BitArray = bitarray.bitarray


def uint_to_bitarray(x: int, bit_width=None) -> BitArray:
    """
    converts an unsigned int to bits.
    if bit_width is provided then data is converted accordingly
    """
    assert isinstance(x, (int, np.integer))
    return int2ba(int(x), length=bit_width)  # int2ba requires input to be dtype int


def bitarray_to_uint(bit_array: BitArray) -> int:
    return ba2int(bit_array)


def bytes_to_bitarray(data: bytes) -> BitArray:
    """unpack bytes into a bitarray (MSB of the first byte first)"""
    bit_array = BitArray(endian="big")
    bit_array.frombytes(bytes(data))
    return bit_array


def bitarray_to_bytes(bit_array: BitArray) -> bytes:
    """pack a bitarray into bytes

    NOTE: if len(bit_array) is not a multiple of 8, the last byte is filled with 0 bits
    on the right (i.e. the unused low order bits are 0).
    """
    return bit_array.tobytes()


############################## TESTS ####################################


def test_basic_bitarray_operations():
    # testing if iterating through bitarray works
    # and if/else condition work on a bit
    code = BitArray("01011")
    for bit in code:
        if bit:
            assert bit == 1
        else:
            assert bit == 0


def test_get_bit_width():
    """check if get_bit_width returns the correct value for different inputs"""
    assert get_bit_width(0) == 1
    assert get_bit_width(1) == 1
    assert get_bit_width(63) == 6
    assert get_bit_width(1023) == 10
    assert get_bit_width(1024) == 11


def test_bitarray_to_int():
    """simple tests to verify if uint to bitarray and reverse conversions work"""
    # ex-1
    x = 4
    b = uint_to_bitarray(x)
    assert len(b) == 3
    x_hat = bitarray_to_uint(b)
    assert x == x_hat

    # ex-2
    x = 1023
    b = uint_to_bitarray(x, bit_width=10)
    assert len(b) == 10
    x_hat = bitarray_to_uint(b)
    assert x == x_hat


def test_bytes_bitarray_conversion():
    """the packing should be MSB first and right filled with zeros"""
    b = bytes_to_bitarray(b"\x80\x01")
    assert b == BitArray("1000000000000001")

    assert bitarray_to_bytes(BitArray("1")) == b"\x80"
    assert bitarray_to_bytes(BitArray("00011111")) == b"\x1f"
    assert bitarray_to_bytes(BitArray("")) == b""
