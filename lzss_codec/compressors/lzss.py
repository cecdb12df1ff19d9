"""
LZSS (Lempel-Ziv-Storer-Szymanski) codec compatible with a legacy encoder

LZSS is the LZ77 variant where the encoder only emits a match when it is worth it (here: at least
3 bytes long) and otherwise emits the raw byte (literal), with one flag bit per token telling the
decoder which of the two it is looking at. See https://en.wikipedia.org/wiki/Lempel%E2%80%93Ziv%E2%80%93Storer%E2%80%93Szymanski

This implementation reproduces byte for byte the output of a specific legacy encoder, so none of its
choices are free parameters:
- sliding window of 1023 bytes, matches of 3 to 63 bytes, coded on 16 bits as
  (6 bits of length, 10 bits of distance), see lzss_tokens.py
- the greedy match search with its tie-break and capping quirks, see lzss_match_finder.py
- flag bits grouped 8 at a time in a leading flag byte, MSB first, see lzss_flag_framer.py
- padding of the output to a multiple of 16 bytes, either with 0x00 bytes (default) or with
  bytes decoding to nothing (exact padding), see lzss_padding.py
- the decoder window is a circular buffer primed with 0x11, and matches are copied through a
  staging buffer, see lzss_window.py

The stream carries no length field: the decoder keeps going until it runs out of data.

Example (3 identical bytes, no padding): there is not enough history for a match, so the output is
a flag byte with 3 literal bits followed by the 3 literals: 00 41 41 41.

The encoder and decoder are implemented in the LZSSEncoder and LZSSDecoder classes. lzss_encode and
lzss_decode are the entry points working directly on bytes and output sinks (anything with a
write(bytes) method).
"""

import argparse
import io
import os
import sys
import tempfile
import unittest
from typing import List
from lzss_codec.compressors.lzss_flag_framer import (
    FLAG_GROUP_NUM_TOKENS,
    FlagGroupReader,
    FlagGroupWriter,
)
from lzss_codec.compressors.lzss_match_finder import (
    MAX_MATCH_LENGTH,
    MIN_DISTANCE,
    GreedyMatchFinder,
)
from lzss_codec.compressors.lzss_padding import PADDING_ALIGNMENT, LZSSPaddingPolicy
from lzss_codec.compressors.lzss_tokens import (
    WINDOW_SIZE,
    LZSSLiteral,
    LZSSMatch,
    LZSSToken,
    LZSSTokenCodec,
)
from lzss_codec.compressors.lzss_window import LZSSWindowReconstructor
from lzss_codec.core.data_block import DataBlock
from lzss_codec.core.data_encoder_decoder import DataDecoder, DataEncoder
from lzss_codec.utils.test_utils import (
    create_random_binary_file,
    get_random_data_block,
    try_file_lossless_compression,
    try_lossless_compression,
)


class LZSSEncoder(DataEncoder):
    """
    LZSS Encoder

    Parameters:
    suppress_padding: don't pad the output with 0x00 bytes to a multiple of 16 bytes
    exact_padding: pad the output to a multiple of 16 bytes with bytes that decode to nothing
    match_finder (optional): defaults to the GreedyMatchFinder (other match finders will not produce
    the legacy output)
    """

    def __init__(self, suppress_padding=False, exact_padding=False, match_finder=None):
        self.padding_policy = LZSSPaddingPolicy(
            suppress_padding=suppress_padding, exact_padding=exact_padding
        )
        if match_finder is None:
            match_finder = GreedyMatchFinder()
        self.match_finder = match_finder

    def reset(self):
        self.match_finder.reset()

    def lzss_parse_and_generate_tokens(self, data) -> List[LZSSToken]:
        """Parses the data into a list of literals and matches.

        At each position, a match is looked for in the preceding bytes using the match finder.
        If a match is found, it is emitted and the position moves past it, otherwise a literal is emitted.

        Parameters:
        - data (bytes): The data to be encoded.

        Returns:
        - tokens: A list of LZSSLiteral and LZSSMatch.
        """
        data = bytes(data)
        self.match_finder.set_data(data)

        tokens = []
        pos_in_data = 0
        while pos_in_data < len(data):
            distance, length = self.match_finder.find_best_match(pos_in_data)
            if length > 0:
                tokens.append(LZSSMatch(distance=distance, length=length))
                pos_in_data += length
            else:
                tokens.append(LZSSLiteral(data[pos_in_data]))
                pos_in_data += 1

        return tokens

    def encode_to_sink(self, data, output_sink) -> int:
        """encode data and write the encoded stream (including padding) to output_sink

        Returns:
            int: number of bytes written
        """
        self.reset()

        # empty input: empty output, not even padding
        if len(data) == 0:
            return 0

        writer = FlagGroupWriter(output_sink)
        for token in self.lzss_parse_and_generate_tokens(data):
            writer.add_token(token)
        self.padding_policy.finish(writer)
        return writer.num_bytes_written

    def encode_block(self, data_block: DataBlock) -> bytes:
        output_sink = io.BytesIO()
        self.encode_to_sink(data_block.tobytes(), output_sink)
        return output_sink.getvalue()


class LZSSDecoder(DataDecoder):
    """
    LZSS Decoder

    The decoder consumes the encoded data until it runs out. After each call, self.truncated is True if
    the data ended in the middle of a match (between its two bytes). All the bytes decoded before that
    point are returned anyway.
    """

    def __init__(self):
        self.reconstructor = LZSSWindowReconstructor()
        self.truncated = False

    def reset(self):
        self.reconstructor.reset()
        self.truncated = False

    def decode_tokens(self, encoded_bytes):
        """read the tokens from the encoded stream

        Returns:
            tokens, num_bytes_consumed (bytes belonging to complete tokens)
        """
        reader = FlagGroupReader(bytes(encoded_bytes))
        tokens = reader.read_all_tokens()
        self.truncated = reader.truncated
        return tokens, reader.num_bytes_consumed

    def execute_lzss_tokens(self, tokens) -> bytearray:
        """Replays the literals and matches through the window and returns the decoded bytes."""
        self.reconstructor.reset()
        for token in tokens:
            if token.is_match:
                self.reconstructor.put_match(token)
            else:
                self.reconstructor.put_literal(token.byte)
        return self.reconstructor.output

    def decode_block(self, encoded_bytes: bytes):
        self.reset()
        tokens, num_bytes_consumed = self.decode_tokens(encoded_bytes)
        decoded_block = DataBlock(self.execute_lzss_tokens(tokens))
        return decoded_block, num_bytes_consumed


def lzss_encode(input_bytes, output_sink, suppress_padding=False, exact_padding=False) -> int:
    """encode input_bytes and write the encoded stream to output_sink

    Args:
        input_bytes (bytes): data to encode
        output_sink: object with a write(bytes) method
        suppress_padding (bool, optional): no 0x00 padding to a multiple of 16 bytes. Defaults to False.
        exact_padding (bool, optional): pad with bytes decoding to nothing. Defaults to False.

    Returns:
        int: number of bytes written
    """
    encoder = LZSSEncoder(suppress_padding=suppress_padding, exact_padding=exact_padding)
    return encoder.encode_to_sink(input_bytes, output_sink)


def lzss_decode(input_bytes, output_sink) -> int:
    """decode the encoded input_bytes and write the decoded data to output_sink

    Returns:
        int: number of input bytes consumed by complete tokens
    """
    decoder = LZSSDecoder()
    decoded_block, num_bytes_consumed = decoder.decode_block(input_bytes)
    output_sink.write(decoded_block.tobytes())
    return num_bytes_consumed


def print_compressed_size(compressed_size, file=None):
    """report the compressed size (in hex) on stderr, nothing is printed for an empty input"""
    if compressed_size == 0:
        return
    print(f"compressedSize {compressed_size:x}", file=file or sys.stderr)


############################## TESTS ####################################


def _encode(data, **kwargs):
    output_sink = io.BytesIO()
    num_bytes_written = lzss_encode(data, output_sink, **kwargs)
    assert num_bytes_written == len(output_sink.getvalue())
    return output_sink.getvalue()


def _decode(encoded):
    output_sink = io.BytesIO()
    lzss_decode(encoded, output_sink)
    return output_sink.getvalue()


SAMPLE_INPUTS = [
    b"",
    b"A",
    b"AAA",
    b"ABABABABABCDABABABABABCDEDEDEDEDE",
    b"This is a simple test. This is a simple test.",
    b"Hello World! " * 10,
    b"A" * 200,
    (b"ABC" * 400)[:1025],
    bytes(range(256)) * 5,
    os.urandom(300),
]


def test_lzss_encode_decode():
    """round trip without padding and with exact padding"""
    for data in SAMPLE_INPUTS:
        assert _decode(_encode(data, suppress_padding=True)) == data
        for suppress_padding in [False, True]:
            encoded = _encode(data, exact_padding=True, suppress_padding=suppress_padding)
            assert len(encoded) % PADDING_ALIGNMENT == 0
            assert _decode(encoded) == data


def test_plain_padding_alignment():
    """0x00 padding aligns the output, the decoder sees it as trailing 0x00 literals"""
    for data in SAMPLE_INPUTS:
        encoded = _encode(data)
        assert len(encoded) % PADDING_ALIGNMENT == 0
        decoded = _decode(encoded)
        assert decoded[: len(data)] == data
        assert set(decoded[len(data) :]) <= {0}


def test_empty_input():
    for kwargs in [{}, {"suppress_padding": True}, {"exact_padding": True}]:
        assert _encode(b"", **kwargs) == b""
    assert _decode(b"") == b""


def test_short_input_is_all_literals():
    assert _encode(b"AAA", suppress_padding=True) == b"\x00AAA"
    assert _encode(b"AAA") == b"\x00AAA" + b"\x00" * 12


def test_repeated_bytes_encoding():
    """200 identical bytes: literals until there are 3 bytes of history, then matches capped at 63"""
    encoder = LZSSEncoder(suppress_padding=True)
    tokens = encoder.lzss_parse_and_generate_tokens(b"A" * 200)
    expected_tokens = [LZSSLiteral(0x41)] * 3 + [
        LZSSMatch(3, 3),
        LZSSMatch(6, 6),
        LZSSMatch(12, 12),
        LZSSMatch(24, 24),
        LZSSMatch(48, 48),
        LZSSMatch(64, 63),
        LZSSMatch(41, 41),
    ]
    assert tokens == expected_tokens

    first_group = b"\x1fAAA" + b"\x0c\x03\x18\x06\x30\x0c\x60\x18\xc0\x30"
    second_group = b"\xc0" + b"\xfc\x40\xa4\x29"
    assert _encode(b"A" * 200, suppress_padding=True) == first_group + second_group

    # exact padding: 6 no-op matches complete the second group (31 bytes) and one more byte
    # (a flag byte) gets to 32
    encoded = _encode(b"A" * 200, exact_padding=True)
    assert encoded == first_group + b"\xff" + b"\xfc\x40\xa4\x29" + b"\x00" * 12 + b"\xff"
    assert _decode(encoded) == b"A" * 200


def test_periodic_input_tokens():
    """the first match can only be at distance 3, and the 63 cap stops the search at distance 66"""
    data = (b"ABC" * 400)[:1025]
    tokens = LZSSEncoder().lzss_parse_and_generate_tokens(data)
    assert tokens[:9] == [
        LZSSLiteral(0x41),
        LZSSLiteral(0x42),
        LZSSLiteral(0x43),
        LZSSMatch(3, 3),
        LZSSMatch(6, 6),
        LZSSMatch(12, 12),
        LZSSMatch(24, 24),
        LZSSMatch(48, 48),
        LZSSMatch(66, 63),
    ]


def test_token_invariants():
    data_block = get_random_data_block({0: 0.5, 1: 0.3, 2: 0.15, 255: 0.05}, size=2000, seed=0)
    tokens = LZSSEncoder().lzss_parse_and_generate_tokens(data_block.data_list)
    assert sum(token.length if token.is_match else 1 for token in tokens) == 2000
    for token in tokens:
        if token.is_match:
            assert MIN_DISTANCE <= token.distance <= WINDOW_SIZE
            assert 3 <= token.length <= MAX_MATCH_LENGTH
            assert token.length <= token.distance


def test_flag_group_framing():
    """all groups but the last have 8 tokens: re-reading the stream gives back the same tokens"""
    data = b"This is a simple test. This is a simple test." * 3
    encoder = LZSSEncoder(suppress_padding=True)
    tokens = encoder.lzss_parse_and_generate_tokens(data)
    encoded = encoder.encode_block(DataBlock(data))

    decoder = LZSSDecoder()
    decoded_tokens, num_bytes_consumed = decoder.decode_tokens(encoded)
    assert decoded_tokens == tokens
    assert num_bytes_consumed == len(encoded)
    num_groups = -(-len(tokens) // FLAG_GROUP_NUM_TOKENS)
    num_token_bytes = sum(LZSSTokenCodec.token_size(token) for token in tokens)
    assert len(encoded) == num_groups + num_token_bytes


def test_truncated_stream():
    """cutting the stream in the middle of a match keeps what was decoded before"""
    encoded = _encode(b"A" * 200, suppress_padding=True)
    decoder = LZSSDecoder()
    decoded_block, num_bytes_consumed = decoder.decode_block(encoded[:-1])
    # the group with the 2 last matches: only the first one is complete
    assert bytes(decoded_block.data_list) == b"A" * 159
    assert decoder.truncated
    assert num_bytes_consumed == len(encoded) - 2

    # a clean stream resets the flag
    decoded_block, num_bytes_consumed = decoder.decode_block(encoded)
    assert bytes(decoded_block.data_list) == b"A" * 200
    assert not decoder.truncated


def test_decoder_handles_crafted_streams():
    # a match before any output reads the window fill byte
    assert _decode(b"\x80\x14\x00") == b"\x11" * 5
    # a self overlapping match copies the window as it was
    assert _decode(b"\x40A\x10\x01") == b"AA\x11\x11\x11"
    # no-op matches only
    assert _decode(b"\xff" + b"\x00" * 16) == b""


def test_lzss_lossless_compression():
    data_block = get_random_data_block({44: 0.5, 45: 0.25, 46: 0.2, 255: 0.05}, size=1500, seed=1)
    for exact_padding in [False, True]:
        encoder = LZSSEncoder(suppress_padding=True, exact_padding=exact_padding)
        decoder = LZSSDecoder()
        is_lossless, encoded_size, _ = try_lossless_compression(data_block, encoder, decoder)
        assert is_lossless
        assert encoded_size < data_block.size


def test_lzss_file_encode_decode():
    """full test for LZSSEncoder and LZSSDecoder going through files"""
    encoder = LZSSEncoder(exact_padding=True)
    decoder = LZSSDecoder()

    with tempfile.TemporaryDirectory() as tmpdirname:
        input_file_path = os.path.join(tmpdirname, "inp_file.bin")
        create_random_binary_file(
            input_file_path,
            file_size=3000,
            prob_dict={44: 0.5, 45: 0.25, 46: 0.2, 255: 0.05},
            seed=2,
        )
        assert try_file_lossless_compression(input_file_path, encoder, decoder)

        # empty file
        empty_file_path = os.path.join(tmpdirname, "empty.bin")
        open(empty_file_path, "wb").close()
        assert try_file_lossless_compression(empty_file_path, encoder, decoder)

        encoded_file_path = os.path.join(tmpdirname, "encoded.bin")
        assert encoder.encode_file(input_file_path, encoded_file_path) == os.path.getsize(
            encoded_file_path
        )
        assert os.path.getsize(encoded_file_path) % PADDING_ALIGNMENT == 0


def test_compressed_size_report():
    report = io.StringIO()
    print_compressed_size(0x1f0, file=report)
    assert report.getvalue() == "compressedSize 1f0\n"

    # an empty input writes nothing, and reports nothing
    report = io.StringIO()
    print_compressed_size(len(_encode(b"")), file=report)
    assert report.getvalue() == ""


class LZSSEncoderReuseTest(unittest.TestCase):
    def test_encoder_reuse(self):
        """no state is carried from one call to the next"""
        encoder = LZSSEncoder(suppress_padding=True)
        first = encoder.encode_block(DataBlock(b"Hello World! " * 10))
        encoder.encode_block(DataBlock(b"something else entirely"))
        self.assertEqual(encoder.encode_block(DataBlock(b"Hello World! " * 10)), first)

    def test_decoder_reuse(self):
        decoder = LZSSDecoder()
        encoded = _encode(b"Hello World! " * 10, suppress_padding=True)
        first, _ = decoder.decode_block(encoded)
        second, _ = decoder.decode_block(encoded)
        self.assertEqual(bytes(first.data_list), bytes(second.data_list))


if __name__ == "__main__":
    # Provide a simple CLI interface below for convenient experimentation
    parser = argparse.ArgumentParser(description="LZSS encoder/decoder")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("-c", "--compress", help="compress (default)", action="store_true")
    mode.add_argument("-d", "--decompress", help="decompress", action="store_true")
    parser.add_argument("-i", "--input", help="input file", type=str)
    parser.add_argument("-o", "--output", help="output file", type=str)
    parser.add_argument("-s", "--stdio", help="use stdin/stdout", action="store_true")
    parser.add_argument(
        "-p", "--no_pad", help="do not pad output data to multiples of 0x10", action="store_true"
    )
    parser.add_argument(
        "-e",
        "--exact_pad",
        help="pad compressed data to produce exact length decompressed data",
        action="store_true",
    )

    args = parser.parse_args()

    if args.stdio:
        args.input = args.input or "-"
        args.output = args.output or "-"
    if args.input is None:
        parser.error("input file must be provided (-i or -s)")
    if args.output is None:
        parser.error("output file must be provided (-o or -s)")

    if args.decompress:
        decoder = LZSSDecoder()
        decoder.decode_file(args.input, args.output)
    else:
        encoder = LZSSEncoder(suppress_padding=args.no_pad, exact_padding=args.exact_pad)
        compressed_size = encoder.encode_file(args.input, args.output)
        print_compressed_size(compressed_size)
