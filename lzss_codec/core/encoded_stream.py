"""encoded stream writers and readers

The LZSS stream has no block headers, no length field and no checksum: the decoder relies on
running out of data. So unlike a block based format, the writer just appends the encoded bytes
to the file (or stdout) and the reader hands back everything that is in the file (or stdin).

The EncodedStreamWriter also keeps track of how many bytes it wrote, which is what the padding
logic of the encoder cares about. Any object with a `write(bytes)` method can be used as an
output sink by the encoders; EncodedStreamWriter is the file backed one.
"""

import os
import sys
import tempfile

from lzss_codec.core.data_stream import STDIO_PATH


class EncodedStreamWriter:
    """writer to write encoded bytes to the encoded file"""

    def __init__(self, file_path: str):
        self.file_path = file_path
        self.num_bytes_written = 0

    def __enter__(self):
        if self.file_path == STDIO_PATH:
            self.file_writer = sys.stdout.buffer
        else:
            self.file_writer = open(self.file_path, "wb")  # open binary file
        return self

    def __exit__(self, exc_type, exc_value, exc_traceback):
        if self.file_path == STDIO_PATH:
            self.file_writer.flush()
        else:
            self.file_writer.close()

    def write(self, payload: bytes):
        """appends the payload bytes to the file

        Args:
            payload (bytes): encoded bytes
        """
        assert isinstance(payload, (bytes, bytearray))
        self.file_writer.write(payload)
        self.num_bytes_written += len(payload)


class EncodedStreamReader:
    """Reader to read the encoded bytes from a compressed binary file"""

    def __init__(self, file_path: str):
        self.file_path = file_path

    def __enter__(self):
        if self.file_path == STDIO_PATH:
            self.file_reader = sys.stdin.buffer
        else:
            self.file_reader = open(self.file_path, "rb")  # open binary file
        return self

    def __exit__(self, exc_type, exc_value, exc_traceback):
        if self.file_path != STDIO_PATH:
            self.file_reader.close()

    def read(self) -> bytes:
        """read the rest of the encoded file

        Returns:
            bytes: the encoded bytes (empty if the file is empty)
        """
        return self.file_reader.read()


###################################


def test_encoded_stream_reader_writer():
    """tests EncodedStreamReader and EncodedStreamWriter

    - write a few payloads to a binary file using EncodedStreamWriter
    - read the binary file back using EncodedStreamReader and check the data is the concatenation
    """

    with tempfile.TemporaryDirectory() as tmpdirname:
        payloads = [b"\x00\x41\x41\x41", b"", b"\xff" * 13, bytearray(b"\x10\x01")]

        temp_file_path = os.path.join(tmpdirname, "encoded.bin")
        with EncodedStreamWriter(temp_file_path) as writer:
            for payload in payloads:
                writer.write(payload)
            assert writer.num_bytes_written == 19

        with EncodedStreamReader(temp_file_path) as reader:
            encoded = reader.read()
            # nothing left after reading everything
            assert reader.read() == b""

        assert encoded == b"".join(bytes(p) for p in payloads)
