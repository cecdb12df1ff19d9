"""defines DataEncoder and DataDecoder classes

DataEncoder and DataDecoder are the base classes for the encoders, decoders.
They implement the utility functions which make it easier to implement different encoders/decoders.
More info in respective docstrings

NOTE: the formats handled here are byte oriented and header-less, so encoders
produce `bytes` and the whole input stream is processed as a single block
(the encoders need random access to all of the input).
"""

import abc
from lzss_codec.core.data_block import DataBlock
from lzss_codec.core.data_stream import DataStream, Uint8FileDataStream
from lzss_codec.core.encoded_stream import EncodedStreamReader, EncodedStreamWriter


class DataEncoder(abc.ABC):
    """base abstract class for implementing any data encoder

    - any subclassing encoder needs to only implement encode_block function, which just operates on a given block of data
    - reading the input stream and writing the output is handled by the encode function, and need not be re-implemented by
    subclasses
    """

    def reset(self):
        """reset the state if any"""
        # NOTE: the user can call this to clear any state the encoder might
        # have persisted across encode_block calls
        pass

    def encode_block(self, data_block: DataBlock) -> bytes:
        """Abstract method to encode a given block of data

        Subclassing encoders need to mainly implement this method

        Args:
            data_block (DataBlock): input data_block

        Returns:
            bytes: the encoded bytes
        """
        raise NotImplementedError

    def encode(self, data_stream: DataStream, encode_writer: EncodedStreamWriter):
        """function to encode a given data_stream

        - the whole data_stream is read as one block
        - the data_block is encoded by the self.encode_block function
        - the encoded bytes are then written to the output using the encode_writer

        Args:
            data_stream (DataStream): input data stream
            encode_writer (EncodedStreamWriter): the writer used to write the encoded bytes
        """
        data_block = data_stream.get_block()

        # empty input, nothing to write
        if data_block is None:
            return

        output = self.encode_block(data_block)
        assert isinstance(output, bytes)
        encode_writer.write(output)

    def encode_file(self, input_file_path: str, encoded_file_path: str):
        """utility wrapper around the encode function

        Args:
            input_file_path (str): path of the input file ("-" for stdin)
            encoded_file_path (str): path of the encoded binary file ("-" for stdout)
        """
        with Uint8FileDataStream(input_file_path, "rb") as fds:
            with EncodedStreamWriter(encoded_file_path) as writer:
                self.encode(fds, encode_writer=writer)
                return writer.num_bytes_written


class DataDecoder(abc.ABC):
    """abstract class used to define a decoder

    - any subclassing decoder needs to mainly implement the decode_block method
    - reading the encoded data and writing the decoded block is handled by the decode function
    """

    def reset(self):
        """reset the state, if any"""
        pass

    def decode_block(self, encoded_bytes: bytes):
        """abstract function to decode encoded bytes

        subclassing decoders mainly need to only implement this function.

        Args:
            encoded_bytes (bytes): input encoded bytes

        Returns:
            decoded_block (DataBlock), num_bytes_consumed (int): returns the decoded data and how many bytes were used
        """
        raise NotImplementedError

    def decode(self, encode_reader: EncodedStreamReader, output_stream: DataStream):
        """function to decode a binary encoded stream

        Args:
            encode_reader (EncodedStreamReader): reader for the encoded bytes
            output_stream (DataStream): DataStream object to write decoded data

        Returns:
            int: number of encoded bytes consumed by the decoder
        """
        encoded_bytes = encode_reader.read()
        output_block, num_bytes_consumed = self.decode_block(encoded_bytes)
        output_stream.write_block(output_block)
        return num_bytes_consumed

    def decode_file(self, encoded_file_path: str, output_file_path: str):
        """utility wrapper around the decode function

        Args:
            encoded_file_path (str): input binary file ("-" for stdin)
            output_file_path (str): output file to which decoded data is written ("-" for stdout)
        """
        with EncodedStreamReader(encoded_file_path) as reader:
            with Uint8FileDataStream(output_file_path, "wb") as fds:
                return self.decode(reader, fds)
