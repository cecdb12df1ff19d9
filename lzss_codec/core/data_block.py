from typing import List


class DataBlock:
    """
    wrapper around a list of symbols.

    The class is a wrapper around a list of symbols (self.data_list). The data_block is typically used
    to represent input to the data encoders (or output from data decoders). For the LZSS codec the
    symbols are byte values (0-255), but any bytes-like object is also accepted.

    Some utility functions implemented are:
    - size
    - tobytes
    """

    def __init__(self, data_list: List):
        self.data_list = data_list

    @property
    def size(self):
        return len(self.data_list)

    def tobytes(self) -> bytes:
        """returns the data_list as bytes (all symbols must be in 0-255)"""
        return bytes(self.data_list)


def test_data_block_basic_ops():
    """checks basic operations for a DataBlock"""
    data_list = [0, 1, 0, 0, 255, 1]

    # create data block object
    data_block = DataBlock(data_list)

    # check size
    assert data_block.size == 6

    # check conversion to bytes
    assert data_block.tobytes() == b"\x00\x01\x00\x00\xff\x01"

    # bytes are also valid data lists
    assert DataBlock(b"ABCA").tobytes() == b"ABCA"
    assert DataBlock(bytearray(b"AB")).size == 2
