"""Decoder side sliding window for LZSS

The LZSSWindow implements the sliding window as a circular buffer based on a bytearray of
window_size (1023) bytes. Unlike the encoder (which just searches the input it has in memory), the
decoder only keeps the last 1023 bytes it produced. All the slots are primed with a fill byte (0x11)
before decoding starts. A valid stream never refers to the primed bytes (the encoder never emits a
distance larger than the number of bytes produced so far), but a hand crafted stream can, and it then
gets the fill byte.

Matches are replayed in two phases: the source bytes are first staged into a separate buffer, and only
then written back into the window. So even a match whose source overlaps the bytes it writes
(length > distance, never produced by the encoder) only ever reads bytes that were in the window
before the match started.

All the wraparound arithmetic goes through LZSSWindow.wrap.
"""

from lzss_codec.compressors.lzss_tokens import NOOP_MATCH, WINDOW_SIZE, LZSSMatch

WINDOW_FILL_BYTE = 0x11


class LZSSWindow:
    """circular buffer holding the last window_size decoded bytes

    next_char is the slot the next decoded byte goes to.
    """

    def __init__(self, size=WINDOW_SIZE, fill_byte=WINDOW_FILL_BYTE):
        self.size = size
        self.fill_byte = fill_byte
        self.data = bytearray([fill_byte] * size)
        self.next_char = 0

    def wrap(self, index):
        return index % self.size

    def append(self, byte):
        self.data[self.next_char] = byte
        self.next_char = self.wrap(self.next_char + 1)

    def extend(self, data):
        for byte in data:
            self.append(byte)

    def read_back(self, distance, length) -> bytearray:
        """stage `length` bytes starting `distance` bytes before next_char

        The window is not modified, the caller appends the staged bytes afterwards.
        """
        src = self.wrap(self.next_char - distance)
        staged = bytearray(length)
        for i in range(length):
            staged[i] = self.data[self.wrap(src + i)]
        return staged


class LZSSWindowReconstructor:
    """replays decoded tokens through the window and collects the output"""

    def __init__(self, window_size=WINDOW_SIZE, fill_byte=WINDOW_FILL_BYTE):
        self.window_size = window_size
        self.fill_byte = fill_byte
        self.reset()

    def reset(self):
        self.window = LZSSWindow(self.window_size, fill_byte=self.fill_byte)
        self.output = bytearray()

    def put_literal(self, byte):
        self.output.append(byte)
        self.window.append(byte)

    def put_match(self, match: LZSSMatch):
        if match.is_noop:
            return
        staged = self.window.read_back(match.distance, match.length)
        self.output.extend(staged)
        self.window.extend(staged)


############################## TESTS ####################################


def test_window_priming_and_wraparound():
    window = LZSSWindow(4)
    assert window.data == bytearray([0x11] * 4)

    window.extend(b"ABC")
    assert window.data == bytearray(b"ABC\x11")
    assert window.next_char == 3

    # overflow the window, 'E' overwrites 'A'
    window.extend(b"DE")
    assert window.data == bytearray(b"EBCD")
    assert window.next_char == 1

    # the source of the copy wraps around the end of the buffer
    assert window.read_back(distance=3, length=3) == bytearray(b"CDE")


def test_reconstructor_replays_matches():
    reconstructor = LZSSWindowReconstructor()
    for byte in b"abc":
        reconstructor.put_literal(byte)
    reconstructor.put_match(LZSSMatch(3, 3))
    reconstructor.put_match(LZSSMatch(6, 6))
    # zero length matches copy nothing, whatever their distance
    reconstructor.put_match(NOOP_MATCH)
    reconstructor.put_match(LZSSMatch(1023, 0))
    assert bytes(reconstructor.output) == b"abc" * 4


def test_reconstructor_reads_fill_byte_before_start():
    reconstructor = LZSSWindowReconstructor()
    reconstructor.put_match(LZSSMatch(5, 5))
    assert bytes(reconstructor.output) == b"\x11" * 5


def test_overlapping_copy_is_staged():
    """a self overlapping copy reads the window as it was before the match"""
    reconstructor = LZSSWindowReconstructor()
    reconstructor.put_literal(ord("A"))
    reconstructor.put_match(LZSSMatch(1, 4))
    # a byte by byte copy would have produced AAAAA
    assert bytes(reconstructor.output) == b"AA\x11\x11\x11"


def test_window_wraps_over_long_outputs():
    reconstructor = LZSSWindowReconstructor()
    data = bytes(range(256)) * 5
    for byte in data:
        reconstructor.put_literal(byte)
    # 1023 back from 1280 is 257, i.e. byte value 1
    reconstructor.put_match(LZSSMatch(1023, 3))
    assert bytes(reconstructor.output[-3:]) == bytes([1, 2, 3])
    assert reconstructor.window.next_char == (1280 + 3) % 1023
