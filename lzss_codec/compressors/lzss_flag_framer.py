"""Flag byte framing for the LZSS stream

The LZSS stream is a sequence of flag groups. Each group is one flag byte followed by the wire bytes
of up to 8 tokens. Bit k of the flag byte (MSB first, k=0..7) tells whether token k of the group is a
match (1, 2 wire bytes) or a literal (0, 1 wire byte):

    [flags] [token 0] [token 1] ... [token 7] [flags] [token 8] ...

For example, 3 literals followed by 5 matches give the flag byte 0b00011111.

All the groups hold 8 tokens, except possibly the last one. The stream has no length field, so the
reader stops once it runs out of data. Running out of data exactly when a new flag byte is
due is the normal end of the stream.

The FlagGroupWriter (encoder) and FlagGroupReader (decoder) implement the two sides of the framing.
"""

import io
from typing import List
from lzss_codec.compressors.lzss_tokens import (
    LZSSLiteral,
    LZSSMatch,
    LZSSToken,
    LZSSTokenCodec,
    MATCH_NUM_BYTES,
)
from lzss_codec.utils.bitarray_utils import BitArray, bitarray_to_bytes, bytes_to_bitarray

FLAG_GROUP_NUM_TOKENS = 8


class FlagGroupWriter:
    """buffers up to 8 tokens and writes them out as a flag group

    Args:
        output_sink: any object with a write(bytes) method (file object, io.BytesIO, EncodedStreamWriter)
    """

    def __init__(self, output_sink):
        self.output_sink = output_sink
        self.num_bytes_written = 0
        self.flags = BitArray(endian="big")
        self.pending_tokens = []

    @property
    def num_pending_tokens(self):
        return len(self.flags)

    @property
    def pending_size(self):
        """size of the group if it was flushed now (flag byte + token bytes)"""
        if self.num_pending_tokens == 0:
            return 0
        return 1 + sum(LZSSTokenCodec.token_size(token) for token in self.pending_tokens)

    def add_token(self, token: LZSSToken):
        """add the token to the current group, the group is written out once it has 8 tokens"""
        self.flags.append(token.is_match)
        self.pending_tokens.append(token)

        if self.num_pending_tokens == FLAG_GROUP_NUM_TOKENS:
            self.flush()

    def flush(self):
        """write out the pending (possibly partial) group

        The unused flag bits of a partial group are 0.
        """
        if self.num_pending_tokens == 0:
            return

        group = bitarray_to_bytes(self.flags)
        for token in self.pending_tokens:
            group += LZSSTokenCodec.encode_token(token)
        self.write_raw(group)
        self.flags = BitArray(endian="big")
        self.pending_tokens = []

    def write_raw(self, payload: bytes):
        """write bytes to the sink directly, outside of any group (used for padding)"""
        if payload:
            self.output_sink.write(payload)
            self.num_bytes_written += len(payload)


class FlagGroupReader:
    """reads tokens from an encoded stream, pulling in a new flag byte every 8 tokens

    The reader never fails: read_token returns None once the data runs out. If that happens in the
    middle of a match (one of its two bytes is there, not the other) truncated is set.
    """

    def __init__(self, encoded_bytes: bytes):
        self.encoded_bytes = encoded_bytes
        self.pos = 0
        self.num_bytes_consumed = 0
        self.flags = BitArray(endian="big")
        self.flags_used = FLAG_GROUP_NUM_TOKENS
        self.truncated = False

    def _read_byte(self):
        if self.pos >= len(self.encoded_bytes):
            return None
        byte = self.encoded_bytes[self.pos]
        self.pos += 1
        return byte

    def read_token(self):
        """read the next token

        Returns:
            LZSSToken: the next token, None if the stream is over
        """
        if self.flags_used == FLAG_GROUP_NUM_TOKENS:
            # used all the flag bits, read a new flag byte
            flag_byte = self._read_byte()
            if flag_byte is None:
                return None
            self.flags = bytes_to_bitarray(bytes([flag_byte]))
            self.flags_used = 0
            self.num_bytes_consumed = self.pos

        is_match = self.flags[self.flags_used]
        self.flags_used += 1

        if not is_match:
            byte = self._read_byte()
            if byte is None:
                return None
            self.num_bytes_consumed = self.pos
            return LZSSTokenCodec.decode_literal(byte)

        match_bytes = bytearray()
        for _ in range(MATCH_NUM_BYTES):
            byte = self._read_byte()
            if byte is None:
                self.truncated = len(match_bytes) > 0
                return None
            match_bytes.append(byte)
        self.num_bytes_consumed = self.pos
        return LZSSTokenCodec.decode_match(bytes(match_bytes))

    def read_all_tokens(self) -> List[LZSSToken]:
        tokens = []
        while True:
            token = self.read_token()
            if token is None:
                break
            tokens.append(token)
        return tokens


############################## TESTS ####################################


def _frame_tokens(tokens):
    sink = io.BytesIO()
    writer = FlagGroupWriter(sink)
    for token in tokens:
        writer.add_token(token)
    writer.flush()
    assert writer.num_bytes_written == len(sink.getvalue())
    return sink.getvalue()


def test_partial_group():
    tokens = [LZSSLiteral(b) for b in b"AAA"]
    assert _frame_tokens(tokens) == b"\x00AAA"


def test_flag_bits_are_msb_first():
    tokens = [LZSSLiteral(b) for b in b"AAA"] + [LZSSMatch(3, 3)] * 5
    encoded = _frame_tokens(tokens)
    assert encoded == b"\x1fAAA" + b"\x0c\x03" * 5

    tokens = [LZSSMatch(64, 63), LZSSLiteral(0x42)]
    assert _frame_tokens(tokens) == b"\x80\xfc\x40\x42"


def test_groups_of_eight():
    tokens = [LZSSLiteral(i) for i in range(8)] + [LZSSMatch(8, 8)] + [LZSSLiteral(9)]
    encoded = _frame_tokens(tokens)
    assert encoded == b"\x00" + bytes(range(8)) + b"\x80\x20\x08\x09"

    reader = FlagGroupReader(encoded)
    assert reader.read_all_tokens() == tokens
    # the final partial group ends where a literal was expected
    assert not reader.truncated
    assert reader.num_bytes_consumed == len(encoded)


def test_writer_pending_size():
    writer = FlagGroupWriter(io.BytesIO())
    assert writer.pending_size == 0
    writer.add_token(LZSSLiteral(1))
    writer.add_token(LZSSMatch(3, 3))
    assert writer.num_pending_tokens == 2
    assert writer.pending_size == 4
    assert writer.num_bytes_written == 0

    for _ in range(6):
        writer.add_token(LZSSLiteral(2))
    # the 8th token flushes the group
    assert writer.num_pending_tokens == 0
    assert writer.num_bytes_written == 10


def test_reader_stops_at_end_of_data():
    reader = FlagGroupReader(b"")
    assert reader.read_token() is None
    assert not reader.truncated

    # match flag with no match bytes
    reader = FlagGroupReader(b"\xff")
    assert reader.read_token() is None
    assert not reader.truncated
    assert reader.num_bytes_consumed == 1

    # match cut between its two bytes
    reader = FlagGroupReader(b"\x40A\x0c")
    assert reader.read_token() == LZSSLiteral(ord("A"))
    assert reader.read_token() is None
    assert reader.truncated
    assert reader.num_bytes_consumed == 2
