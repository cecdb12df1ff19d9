"""
Utility functions useful for testing
"""

import filecmp
import os
import tempfile
from typing import Dict, Tuple
import numpy as np
from lzss_codec.core.data_block import DataBlock
from lzss_codec.core.data_encoder_decoder import DataDecoder, DataEncoder
from lzss_codec.core.data_stream import Uint8FileDataStream


def get_random_data_block(prob_dict: Dict[int, float], size: int, seed: int = None):
    """generates i.i.d random data from the given distribution

    Args:
        prob_dict (Dict[int, float]): {symbol: probability}, the symbols being byte values (0-255)
        size (int): size of the block to be returned
        seed (int): random seed used to generate the data
    """
    rng = np.random.default_rng(seed)
    alphabet = list(prob_dict.keys())
    prob_list = [prob_dict[s] for s in alphabet]
    data = rng.choice(alphabet, size=size, p=prob_list)
    return DataBlock(data.tolist())


def create_random_binary_file(file_path: str, file_size: int, prob_dict: Dict[int, float], seed: int = None):
    """creates a random binary file at the given path

    Args:
        file_path (str): file path to which random data needs to be written
        file_size (int): The size of the random file to be generated
        prob_dict (Dict[int, float]): the distribution to use to generate the random data.
                                      The distribution must be on alphabet of bytes/u8's (0-255)
    """
    data_block = get_random_data_block(prob_dict, file_size, seed=seed)
    with Uint8FileDataStream(file_path, "wb") as fds:
        fds.write_block(data_block)


def are_blocks_equal(data_block_1: DataBlock, data_block_2: DataBlock):
    """
    return True is the blocks are equal
    """
    if data_block_1.size != data_block_2.size:
        return False

    for inp_symbol, out_symbol in zip(data_block_1.data_list, data_block_2.data_list):
        if inp_symbol != out_symbol:
            return False

    return True


def try_lossless_compression(
    data_block: DataBlock,
    encoder: DataEncoder,
    decoder: DataDecoder,
    verbose: bool = False,
) -> Tuple[bool, int, bytes]:
    """Encodes the data_block using the encoder and returns True if the compression was lossless

    NOTE: the encoder output needs to decode to exactly the input, so plain (0x00) padding
    should not be used here (see lzss_padding.py).

    Args:
        data_block (DataBlock): input data_block to encode
        encoder (DataEncoder): Encoder obj
        decoder (DataDecoder): Decoder obj to test with
        verbose (bool, optional): print the sizes. Defaults to False.

    Returns:
        Tuple[bool, int, bytes]: whether encoding is lossless, size of the output block, encoded bytes
    """
    # test encode
    encoded_bytes = encoder.encode_block(data_block)

    # test decode
    decoded_block, num_bytes_consumed = decoder.decode_block(encoded_bytes)
    assert num_bytes_consumed <= len(encoded_bytes)

    if verbose:
        print(f" input size: {data_block.size}, encoded size: {len(encoded_bytes)}")

    return are_blocks_equal(data_block, decoded_block), len(encoded_bytes), encoded_bytes


def try_file_lossless_compression(input_file_path: str, encoder: DataEncoder, decoder: DataDecoder):
    """try encoding the input file and check if it is lossless

    Args:
        input_file_path (str): input file path
        encoder (DataEncoder): encoder object
        decoder (DataDecoder): decoder object
    """
    with tempfile.TemporaryDirectory() as tmpdirname:
        encoded_file_path = os.path.join(tmpdirname, "encoded_file.bin")
        reconst_file_path = os.path.join(tmpdirname, "reconst_file.bin")

        # encode data using the given encoder and write to the binary file
        encoder.encode_file(input_file_path, encoded_file_path)

        # decode data using the given decoder and write output to a binary file
        decoder.decode_file(encoded_file_path, reconst_file_path)

        # check if the reconst file and input match
        return filecmp.cmp(input_file_path, reconst_file_path, shallow=False)
