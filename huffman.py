"""Huffman coding of byte streams with an end-of-stream symbol."""

import itertools
from functools import total_ordering
from heapq import heapify, heappop, heappush

from bitstreams import END_OF_STREAM


SYMBOL_COUNT = 257
EOF_SYMBOL = 256
READ_CHUNK_SIZE = 64 * 1024


class HuffmanError(ValueError):
    """Base class for malformed encoded streams."""


class TruncatedStreamError(HuffmanError):
    """The payload ended before the end-of-stream symbol was decoded."""


@total_ordering
class HuffmanNode:
    # Equal counts are ordered by creation, so the same table always
    # gives the same tree.
    def __init__(self, count, order):
        self.count = count
        self.order = order

    def __lt__(self, other):
        return (self.count, self.order) < (other.count, other.order)

    def __eq__(self, other):
        return (self.count, self.order) == (other.count, other.order)


class Leaf(HuffmanNode):
    def __init__(self, symbol, count, order):
        super().__init__(count, order)
        self.symbol = symbol

    def __repr__(self):
        return f'Leaf({self.symbol}, {self.count})'


class Node(HuffmanNode):
    def __init__(self, left, right, order):
        super().__init__(left.count + right.count, order)
        self.left = left
        self.right = right

    def __repr__(self):
        return f'Node({self.left!r}, {self.right!r})'


def build_frequency_table(source):
    """Count every byte value in `source`, reading it to the end.

    Index 256 is the end-of-stream symbol and is always 1.
    """
    freq_table = [0] * SYMBOL_COUNT
    freq_table[EOF_SYMBOL] = 1
    for chunk in iter(lambda: source.read(READ_CHUNK_SIZE), b''):
        for b in chunk:
            freq_table[b] += 1
    return freq_table


def make_huffman_tree(freq_table):
    order = itertools.count()
    pq = [Leaf(symbol, c, next(order))
          for symbol, c in enumerate(freq_table) if c > 0]
    heapify(pq)
    while len(pq) > 1:
        s1 = heappop(pq)
        s2 = heappop(pq)
        heappush(pq, Node(s1, s2, next(order)))
    return pq[0]


def make_encoding_table(tree):
    def encode_node(node, code, table):
        if isinstance(node, Leaf):
            table[node.symbol] = code
        else:
            encode_node(node.left, code + '0', table)
            encode_node(node.right, code + '1', table)
        return table
    return encode_node(tree, '', {})


def decode_symbol(tree, bits):
    """Walk from the root of `tree` to a leaf, reading bits from `bits`."""
    node = tree
    while isinstance(node, Node):
        bit = bits.read_bit()
        if bit == END_OF_STREAM:
            raise TruncatedStreamError(
                f'stream ended after {bits.bits_read} payload bits, '
                'before the end-of-stream symbol')
        node = node.right if bit else node.left
    return node.symbol


def encode_data(source, encoding_table, bits):
    for chunk in iter(lambda: source.read(READ_CHUNK_SIZE), b''):
        for b in chunk:
            bits.write_code(encoding_table[b])
    bits.write_code(encoding_table[EOF_SYMBOL])


def decode_data(bits, tree, sink):
    """Write decoded bytes to `sink` until the end-of-stream symbol.

    Returns the number of bytes written.
    """
    out = bytearray()
    written = 0
    symbol = decode_symbol(tree, bits)
    while symbol != EOF_SYMBOL:
        out.append(symbol)
        if len(out) >= READ_CHUNK_SIZE:
            sink.write(out)
            written += len(out)
            out = bytearray()
        symbol = decode_symbol(tree, bits)
    sink.write(out)
    written += len(out)
    return written
