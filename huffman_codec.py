"""Huffman compression and decompression of files and byte streams."""

import argparse
import io
import logging
import sys
from collections import namedtuple

from bitstreams import BitReader, BitWriter
from header import read_header, serialize_frequency_table
from huffman import (HuffmanError, build_frequency_table, decode_data,
                     encode_data, make_encoding_table, make_huffman_tree)


logger = logging.getLogger(__name__)

DEFAULT_SUFFIX = '.huff'
DECODED_SUFFIX = '.out'

EncodeStats = namedtuple('EncodeStats', 'input_size header_size payload_size')
DecodeStats = namedtuple('DecodeStats', 'output_size payload_bits')


def huffman_encode(source, sink):
    """Encode the seekable byte stream `source` into `sink`.

    The source is read twice, once to count byte frequencies and once to
    encode, and is left at its end. Returns an EncodeStats.
    """
    start = source.tell()
    freq_table = build_frequency_table(source)
    logger.debug('Frequency table: %s', freq_table)
    header = serialize_frequency_table(freq_table)
    sink.write(header)
    source.seek(start)

    tree = make_huffman_tree(freq_table)
    encoding_table = make_encoding_table(tree)
    logger.debug('Encoding table: %s', encoding_table)
    with BitWriter(sink) as bits:
        encode_data(source, encoding_table, bits)

    stats = EncodeStats(input_size=sum(freq_table) - 1,
                        header_size=len(header),
                        payload_size=(bits.bits_written + 7) // 8)
    logger.info('Encoded %d bytes into %d header + %d payload bytes',
                stats.input_size, stats.header_size, stats.payload_size)
    return stats


def huffman_decode(source, sink):
    """Decode one encoded stream from `source` into `sink`.

    Raises HeaderError on a malformed header and TruncatedStreamError when
    the payload ends before the end-of-stream symbol. Returns a DecodeStats.
    """
    freq_table = read_header(source)
    logger.debug('Frequency table: %s', freq_table)
    tree = make_huffman_tree(freq_table)
    bits = BitReader(source)
    written = decode_data(bits, tree, sink)

    expected = sum(freq_table) - 1
    if written != expected:
        raise HuffmanError(
            f'decoded {written} bytes but the header counts {expected}')
    logger.info('Decoded %d payload bits into %d bytes',
                bits.bits_read, written)
    return DecodeStats(output_size=written, payload_bits=bits.bits_read)


def compress(data):
    out = io.BytesIO()
    huffman_encode(io.BytesIO(data), out)
    return out.getvalue()


def decompress(data):
    out = io.BytesIO()
    huffman_decode(io.BytesIO(data), out)
    return out.getvalue()


def encode_file(input_filename, output_filename):
    logger.info('Encoding %s %s', input_filename, output_filename)
    with open(input_filename, 'rb') as source, \
            open(output_filename, 'wb') as sink:
        return huffman_encode(source, sink)


def decode_file(input_filename, output_filename):
    logger.info('Decoding %s %s', input_filename, output_filename)
    with open(input_filename, 'rb') as source, \
            open(output_filename, 'wb') as sink:
        return huffman_decode(source, sink)


def decoded_filename(filename):
    if filename.endswith(DEFAULT_SUFFIX):
        filename = filename[:-len(DEFAULT_SUFFIX)]
    return filename + DECODED_SUFFIX


def print_encode_stats(stats):
    compressed = stats.header_size + stats.payload_size
    print(f'Original size: {stats.input_size}')
    print(f'Compressed size: {compressed}')
    if stats.input_size > 0:
        print(f'Compression ratio: {compressed / stats.input_size}')


def make_parser():
    p = argparse.ArgumentParser(
        prog='huffman-codec',
        description='Compress and decompress files with Huffman coding.')
    mode = p.add_mutually_exclusive_group(required=True)
    mode.add_argument(
        '-e', '--encode', action='store_true',
        help=f'encode FILE, writing FILE{DEFAULT_SUFFIX} unless -o is given')
    mode.add_argument(
        '-d', '--decode', action='store_true',
        help=f'decode FILE, writing FILE without {DEFAULT_SUFFIX} plus '
             f'{DECODED_SUFFIX} unless -o is given')
    mode.add_argument(
        '-t', '--test', action='store_true',
        help='encode FILE, decode the result and compare it with FILE')
    p.add_argument('-o', '--output', help='output file name')
    p.add_argument('-v', '--verbose', action='count', default=0,
                   help='log progress (-v) or also the code tables (-vv)')
    p.add_argument('file', metavar='FILE')
    return p


def main(argv=None):
    args = make_parser().parse_args(argv)
    level = [logging.WARNING, logging.INFO, logging.DEBUG][min(args.verbose, 2)]
    logging.basicConfig(level=level, format='%(levelname)s %(name)s: %(message)s')

    try:
        if args.encode:
            output = args.output or args.file + DEFAULT_SUFFIX
            print('Encoding...')
            print_encode_stats(encode_file(args.file, output))
        elif args.decode:
            output = args.output or decoded_filename(args.file)
            print('Decoding...')
            stats = decode_file(args.file, output)
            print(f'Decoded size: {stats.output_size}')
        else:
            encoded = args.output or args.file + DEFAULT_SUFFIX
            decoded = decoded_filename(encoded)
            print('Encoding...')
            print_encode_stats(encode_file(args.file, encoded))
            print('Decoding...')
            decode_file(encoded, decoded)
            with open(args.file, 'rb') as f1, open(decoded, 'rb') as f2:
                matches = f1.read() == f2.read()
            print(f'Decoded data matches original: {matches}')
            if not matches:
                return 1
    except (HuffmanError, OSError) as e:
        print(f'huffman-codec: error: {e}', file=sys.stderr)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
