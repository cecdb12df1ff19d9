"""Padding of the encoded LZSS stream

The container format the LZSS streams are stored in wants them to be a multiple of 16 bytes long.
There are two (composable) ways of getting there:

1. plain padding (on by default): append 0x00 bytes after the last flag group until the length is a
   multiple of 16. The decoder has no way to tell these bytes apart from data, so a decoder that is
   not told the decompressed size will output extra 0x00 bytes (they parse as a flag byte of
   literals, followed by 0x00 literals).

2. exact padding (opt in): only append things which decode to nothing.
   - the last (partial) flag group is first topped up with no-op matches (distance 0, length 0,
     2 bytes each) until either the stream length is a multiple of 16 or the group has 8 tokens.
   - if that's not enough (no-op matches add 2 bytes, so they can't fix an odd remainder), the
     padding block FF 00 00 ... 00 (17 bytes: a flag byte of 8 matches and 8 no-op matches) is
     repeated and cut to the length given by EXACT_PADDING_LENGTHS[16 - length % 16]. For an odd
     remainder r the cut is r bytes, for an even one it is r + 16 bytes. Either way the decoder
     runs out of data right where it expects the next (no-op) match.

With exact padding the stream is already aligned when plain padding comes in, so the two can be
enabled together.
"""

import io
from lzss_codec.compressors.lzss_flag_framer import FlagGroupWriter
from lzss_codec.compressors.lzss_tokens import LZSSLiteral, NOOP_MATCH

PADDING_ALIGNMENT = 16
PADDING_BYTE = 0x00

# flag byte with all 8 bits set + 8 no-op matches
EXACT_PADDING_BLOCK = bytes([0xFF] + [0x00] * 16)

# remainder (16 - length % 16) -> number of bytes of the repeated padding block to write
EXACT_PADDING_LENGTHS = [
    0x0,
    0x1,
    0x12,
    0x3,
    0x14,
    0x5,
    0x16,
    0x7,
    0x18,
    0x9,
    0x1A,
    0xB,
    0x1C,
    0xD,
    0x1E,
    0xF,
    0x0,
]


class LZSSPaddingPolicy:
    """Parameters:
    - suppress_padding (bool): don't append the plain 0x00 padding
    - exact_padding (bool): pad with bytes which decode to nothing
    """

    def __init__(self, suppress_padding=False, exact_padding=False):
        self.suppress_padding = suppress_padding
        self.exact_padding = exact_padding

    def finish(self, writer: FlagGroupWriter):
        """flush the last flag group of the writer and write the padding"""
        if writer.num_pending_tokens > 0:
            if self.exact_padding:
                self.fill_final_group(writer)
            writer.flush()

        if self.exact_padding:
            writer.write_raw(self.get_exact_padding(writer.num_bytes_written))
        if not self.suppress_padding:
            writer.write_raw(self.get_plain_padding(writer.num_bytes_written))

    def fill_final_group(self, writer: FlagGroupWriter):
        """top up the pending group with no-op matches

        Stops once the stream would be aligned, or the group is full (in which case the writer
        has already written it out).
        """
        while (writer.num_bytes_written + writer.pending_size) % PADDING_ALIGNMENT != 0:
            writer.add_token(NOOP_MATCH)
            if writer.num_pending_tokens == 0:
                break

    @staticmethod
    def get_exact_padding(num_bytes_written) -> bytes:
        remainder = PADDING_ALIGNMENT - num_bytes_written % PADDING_ALIGNMENT
        num_padding_bytes = EXACT_PADDING_LENGTHS[remainder]
        return bytes(
            EXACT_PADDING_BLOCK[i % len(EXACT_PADDING_BLOCK)] for i in range(num_padding_bytes)
        )

    @staticmethod
    def get_plain_padding(num_bytes_written) -> bytes:
        num_padding_bytes = -num_bytes_written % PADDING_ALIGNMENT
        return bytes([PADDING_BYTE] * num_padding_bytes)


############################## TESTS ####################################


def test_exact_padding_lengths_align():
    """every entry of the table lands the stream on a multiple of 16"""
    for num_bytes_written in range(64):
        padding = LZSSPaddingPolicy.get_exact_padding(num_bytes_written)
        assert (num_bytes_written + len(padding)) % PADDING_ALIGNMENT == 0
        if padding:
            assert padding[0] == 0xFF
            # the padding starts at a flag byte boundary, so it is a sequence of (partial) blocks
            for i, byte in enumerate(padding):
                assert byte == EXACT_PADDING_BLOCK[i % 17]

    assert LZSSPaddingPolicy.get_exact_padding(15) == b"\xff"
    assert LZSSPaddingPolicy.get_exact_padding(14) == EXACT_PADDING_BLOCK + b"\xff"
    assert LZSSPaddingPolicy.get_exact_padding(32) == b""


def test_plain_padding():
    assert LZSSPaddingPolicy.get_plain_padding(0) == b""
    assert LZSSPaddingPolicy.get_plain_padding(4) == b"\x00" * 12
    assert LZSSPaddingPolicy.get_plain_padding(16) == b""
    assert LZSSPaddingPolicy.get_plain_padding(31) == b"\x00"


def _finish(tokens, **kwargs):
    sink = io.BytesIO()
    writer = FlagGroupWriter(sink)
    for token in tokens:
        writer.add_token(token)
    LZSSPaddingPolicy(**kwargs).finish(writer)
    return sink.getvalue()


def test_finish_without_padding():
    tokens = [LZSSLiteral(b) for b in b"AAA"]
    assert _finish(tokens, suppress_padding=True) == b"\x00AAA"
    assert _finish(tokens) == b"\x00AAA" + b"\x00" * 12


def test_exact_padding_fills_final_group():
    # 4 bytes pending: flag + 3 literals -> 5 no-op matches fill the group (14 bytes), which leaves 2
    tokens = [LZSSLiteral(b) for b in b"AAA"]
    encoded = _finish(tokens, exact_padding=True, suppress_padding=True)
    assert encoded[:14] == b"\x1fAAA" + b"\x00" * 10
    assert encoded[14:] == EXACT_PADDING_BLOCK + b"\xff"
    assert len(encoded) == 32

    # 12 bytes so far: 2 no-op matches are enough, and nothing else is written
    tokens = [LZSSLiteral(b) for b in b"0123456789"]
    encoded = _finish(tokens, exact_padding=True)
    assert encoded == b"\x0001234567" + b"\x3089" + b"\x00" * 4


def test_exact_padding_with_full_final_group():
    """no partial group: only the padding blocks are added"""
    tokens = [LZSSLiteral(b) for b in b"01234567"]
    encoded = _finish(tokens, exact_padding=True)
    assert encoded[:9] == b"\x0001234567"
    # 16 - 9 = 7 (odd): 7 bytes of padding block
    assert encoded[9:] == b"\xff" + b"\x00" * 6
