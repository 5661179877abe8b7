"""Serialized frequency table at the head of every encoded stream.

Layout: the magic bytes, one byte giving the bit width W of every count,
then the 257 counts as big-endian W-bit unsigned integers in symbol order,
zero-padded to a whole byte. W is the bit length of the largest count.
"""

from bitstring import Bits, BitArray, ConstBitStream, ReadError

from huffman import EOF_SYMBOL, SYMBOL_COUNT, HuffmanError


MAGIC = b'HUF'
MAX_COUNT_BITS = 64


class HeaderError(HuffmanError):
    """The header is not a valid frequency table."""


def counts_size(width):
    """Number of bytes taken by 257 counts of `width` bits each."""
    return (SYMBOL_COUNT * width + 7) // 8


def serialize_frequency_table(freq_table):
    if len(freq_table) != SYMBOL_COUNT:
        raise ValueError(f'expected {SYMBOL_COUNT} counts, got {len(freq_table)}')
    width = max(max(freq_table).bit_length(), 1)
    if width > MAX_COUNT_BITS:
        raise ValueError(f'count does not fit in {MAX_COUNT_BITS} bits')
    out = BitArray(bytes=MAGIC)
    out.append(Bits(uint=width, length=8))
    for c in freq_table:
        out.append(Bits(uint=c, length=width))
    return out.tobytes()


def deserialize_frequency_table(serialized):
    bits = ConstBitStream(serialized)
    try:
        magic = bits.read(f'bytes:{len(MAGIC)}')
        if magic != MAGIC:
            raise HeaderError(f'bad magic {magic!r}, not a Huffman stream')
        width = bits.read('uint:8')
        if not 1 <= width <= MAX_COUNT_BITS:
            raise HeaderError(f'count width {width} outside 1..{MAX_COUNT_BITS}')
        freq_table = [bits.read(f'uint:{width}') for _ in range(SYMBOL_COUNT)]
    except ReadError as e:
        raise HeaderError('header is truncated') from e
    if freq_table[EOF_SYMBOL] != 1:
        raise HeaderError(
            f'end-of-stream count is {freq_table[EOF_SYMBOL]}, expected 1')
    return freq_table


def read_header(source):
    """Read exactly one header from `source` and return its frequency table.

    The stream is left positioned at the first payload byte.
    """
    prefix = source.read(len(MAGIC) + 1)
    if len(prefix) < len(MAGIC) + 1:
        raise HeaderError('header is truncated')
    if prefix[:len(MAGIC)] != MAGIC:
        raise HeaderError(f'bad magic {prefix[:len(MAGIC)]!r}, not a Huffman stream')
    width = prefix[-1]
    if not 1 <= width <= MAX_COUNT_BITS:
        raise HeaderError(f'count width {width} outside 1..{MAX_COUNT_BITS}')
    size = counts_size(width)
    body = source.read(size)
    if len(body) < size:
        raise HeaderError('header is truncated')
    return deserialize_frequency_table(prefix + body)
