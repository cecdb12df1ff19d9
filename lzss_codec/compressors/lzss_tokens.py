"""LZSS tokens and their fixed binary layout

The LZSS stream is a sequence of two kinds of tokens:
- LZSSLiteral(byte): a raw byte, written verbatim (1 byte)
- LZSSMatch(distance, length): copy `length` bytes starting `distance` bytes before
  the current output position (2 bytes)

A match is packed as 6 bits of length followed by 10 bits of distance, MSB first:

    byte0 = (length << 2) | (distance >> 8)
    byte1 = distance & 0xFF

    |  byte0                      |  byte1          |
    | l5 l4 l3 l2 l1 l0 d9 d8     | d7 ... d0       |

Whether a token is a literal or a match is not part of its bytes; that is
communicated by the flag bits (see lzss_flag_framer.py).

The encoder only emits matches with distance in [3, 1023] and length in [3, 63]. The wire
format itself allows distance in [0, 1023] and length in [0, 63]; LZSSMatch(0, 0) is the no-op
match used for padding.
"""

from dataclasses import dataclass
from typing import Union
from lzss_codec.utils.bitarray_utils import (
    bitarray_to_uint,
    bitarray_to_bytes,
    bytes_to_bitarray,
    get_bit_width,
    uint_to_bitarray,
)

LENGTH_NUM_BITS = 6
DISTANCE_NUM_BITS = 10
MATCH_NUM_BYTES = (LENGTH_NUM_BITS + DISTANCE_NUM_BITS) // 8
LITERAL_NUM_BYTES = 1

# largest distance a match can encode, also the size of the sliding window
WINDOW_SIZE = (1 << DISTANCE_NUM_BITS) - 1


@dataclass(frozen=True)
class LZSSLiteral:
    byte: int

    @property
    def is_match(self):
        return False


@dataclass(frozen=True)
class LZSSMatch:
    distance: int
    length: int

    @property
    def is_match(self):
        return True

    @property
    def is_noop(self):
        """zero length matches copy nothing (used for padding)"""
        return self.length == 0


LZSSToken = Union[LZSSLiteral, LZSSMatch]

# the inert token used by the exact padding
NOOP_MATCH = LZSSMatch(distance=0, length=0)


class LZSSTokenCodec:
    """Serializes a single token to its wire bytes and back.

    The codec is position independent: literal/match selection is handled by the flag framer.
    """

    @staticmethod
    def encode_literal(token: LZSSLiteral) -> bytes:
        assert 0 <= token.byte <= 255
        return bytes([token.byte])

    @staticmethod
    def encode_match(token: LZSSMatch) -> bytes:
        """pack the match into 2 bytes: 6 bits of length + 10 bits of distance"""
        assert 0 <= token.length and get_bit_width(token.length) <= LENGTH_NUM_BITS
        assert 0 <= token.distance and get_bit_width(token.distance) <= DISTANCE_NUM_BITS

        match_bitarray = uint_to_bitarray(token.length, bit_width=LENGTH_NUM_BITS)
        match_bitarray += uint_to_bitarray(token.distance, bit_width=DISTANCE_NUM_BITS)
        return bitarray_to_bytes(match_bitarray)

    @classmethod
    def encode_token(cls, token: LZSSToken) -> bytes:
        if token.is_match:
            return cls.encode_match(token)
        return cls.encode_literal(token)

    @staticmethod
    def decode_literal(byte: int) -> LZSSLiteral:
        return LZSSLiteral(byte)

    @staticmethod
    def decode_match(match_bytes: bytes) -> LZSSMatch:
        """unpack the 2 match bytes

        Args:
            match_bytes (bytes): (byte0, byte1) as written by encode_match

        Returns:
            LZSSMatch: decoded match
        """
        assert len(match_bytes) == MATCH_NUM_BYTES
        match_bitarray = bytes_to_bitarray(match_bytes)
        length = bitarray_to_uint(match_bitarray[:LENGTH_NUM_BITS])
        distance = bitarray_to_uint(match_bitarray[LENGTH_NUM_BITS:])
        return LZSSMatch(distance=distance, length=length)

    @staticmethod
    def token_size(token: LZSSToken) -> int:
        """number of wire bytes for the token"""
        return MATCH_NUM_BYTES if token.is_match else LITERAL_NUM_BYTES


############################## TESTS ####################################


def test_match_layout():
    """check the packing against the byte arithmetic of the format"""
    for distance, length in [(3, 3), (66, 63), (1023, 63), (256, 4), (0, 0), (1023, 0), (41, 41)]:
        encoded = LZSSTokenCodec.encode_match(LZSSMatch(distance, length))
        assert len(encoded) == MATCH_NUM_BYTES
        assert encoded[0] == (length << 2) | (distance >> 8)
        assert encoded[1] == distance & 0xFF

        decoded = LZSSTokenCodec.decode_match(encoded)
        assert decoded == LZSSMatch(distance, length)
        assert encoded[1] + ((encoded[0] & 0x03) << 8) == distance
        assert encoded[0] >> 2 == length


def test_known_match_bytes():
    assert LZSSTokenCodec.encode_match(LZSSMatch(3, 3)) == b"\x0c\x03"
    assert LZSSTokenCodec.encode_match(LZSSMatch(64, 63)) == b"\xfc\x40"
    assert LZSSTokenCodec.encode_match(LZSSMatch(1023, 63)) == b"\xff\xff"
    assert LZSSTokenCodec.encode_token(NOOP_MATCH) == b"\x00\x00"

    # the low 2 bits of byte0 are the high bits of the distance
    assert LZSSTokenCodec.decode_match(b"\x13\x2a") == LZSSMatch(distance=0x32A, length=4)


def test_literal_encoding():
    for byte in [0, 0x11, 0x41, 255]:
        token = LZSSLiteral(byte)
        assert LZSSTokenCodec.encode_token(token) == bytes([byte])
        assert LZSSTokenCodec.decode_literal(byte) == token
        assert LZSSTokenCodec.token_size(token) == 1

    assert LZSSTokenCodec.token_size(LZSSMatch(3, 3)) == 2
    assert NOOP_MATCH.is_noop and not LZSSMatch(3, 3).is_noop
