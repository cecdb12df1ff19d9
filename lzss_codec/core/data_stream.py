import abc
import os
import sys
import tempfile
from lzss_codec.core.data_block import DataBlock

# file path used to denote stdin (when reading) or stdout (when writing)
STDIO_PATH = "-"


class DataStream(abc.ABC):
    """abstract class to represent a Data Stream

    The DataStream facilitates the block interface.
    From the interface standpoint, the two functions which are useful are:
    - get_block(block_size) -> returns a DataBlock of (at most) the given block_size from the stream
    - write_block(block) -> writes the block of data to the stream

    The DataStream can act as a stream object for both writing and reading blocks.
    """

    @abc.abstractmethod
    def get_block(self, block_size: int = -1) -> DataBlock:
        """returns a block of data (of the given max size) from the stream

        In case the remaining stream is shorter, a smaller block will be returned

        Args:
            block_size (int): the (max) size of the block of data to be returned, -1 for the rest of the stream.

        Returns:
            DataBlock: None if the stream is already over
        """
        pass

    @abc.abstractmethod
    def write_block(self, data_block: DataBlock):
        """write the input block to the stream

        Args:
            data_block (DataBlock): block to be written to the stream
        """
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, exc_traceback):
        pass


class FileDataStream(DataStream):
    """Abstract class to create a data stream from a File

    The FileDataStream defines __exit__, __enter__ methods on top of DataStream.
    These methods handle file obj opening/closing. The special path "-" maps to
    stdin (read permissions) or stdout (write permissions), which are never closed.

    Example:
    with Uint8FileDataStream(path, "rb") as fds:
        block = fds.get_block(5)
    """

    def __init__(self, file_path: str, permissions="r"):
        """Initialize the FileDataStream object

        Args:
            file_path (str): path of the file to read from/write to ("-" for stdin/stdout)
            permissions (str, optional): Permissions to open the file obj. Defaults to "r".
        """
        self.file_path = file_path
        self.permissions = permissions

    @property
    def is_stdio(self):
        return self.file_path == STDIO_PATH

    def __enter__(self):
        if self.is_stdio:
            std_stream = sys.stdin if "r" in self.permissions else sys.stdout
            # use the underlying binary buffer for binary permissions
            self.file_obj = std_stream.buffer if "b" in self.permissions else std_stream
        else:
            self.file_obj = open(self.file_path, self.permissions)
        return self

    def __exit__(self, exc_type, exc_value, exc_traceback):
        if not self.is_stdio:
            self.file_obj.close()
        elif "r" not in self.permissions:
            # stdout stays open, but everything written must reach it
            self.file_obj.flush()


class Uint8FileDataStream(FileDataStream):
    """reads/writes Uint8 numbers (bytes) from/to a file"""

    def get_block(self, block_size: int = -1) -> DataBlock:
        """read a block directly from the file object

        Args:
            block_size (int, optional): max number of bytes to read. Defaults to -1 (read the
            rest of the file)

        Returns:
            DataBlock: None if the stream is already over
        """
        data = self.file_obj.read(block_size)
        if not data:
            return None
        return DataBlock(list(data))

    def write_block(self, data_block: DataBlock):
        """write the whole block in one go"""
        self.file_obj.write(data_block.tobytes())


#################################


def test_uint8_file_data_stream():
    """function to test file data stream"""

    # create a temporary file
    with tempfile.TemporaryDirectory() as tmpdirname:
        temp_file_path = os.path.join(tmpdirname, "tmp_file.bin")

        # write data to the file, in two blocks
        with Uint8FileDataStream(temp_file_path, "wb") as fds:
            fds.write_block(DataBlock([5, 2, 255, 0]))
            fds.write_block(DataBlock(b"\x63\x22"))

        # read data from the file
        with Uint8FileDataStream(temp_file_path, "rb") as fds:
            block = fds.get_block(block_size=4)
            assert block.size == 4
            assert block.data_list == [5, 2, 255, 0]

            # the rest of the file is shorter than the block size
            block = fds.get_block(block_size=4)
            assert block.data_list == [99, 34]
            assert fds.get_block(block_size=4) is None

        # read the whole file
        with Uint8FileDataStream(temp_file_path, "rb") as fds:
            block = fds.get_block()
            assert block.data_list == [5, 2, 255, 0, 99, 34]
            assert fds.get_block() is None


def test_empty_file_data_stream():
    """reading an empty file gives no block"""
    with tempfile.TemporaryDirectory() as tmpdirname:
        temp_file_path = os.path.join(tmpdirname, "empty.bin")
        with Uint8FileDataStream(temp_file_path, "wb"):
            pass

        with Uint8FileDataStream(temp_file_path, "rb") as fds:
            assert fds.get_block() is None
