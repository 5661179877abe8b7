"""Bit-at-a-time reading and writing on top of byte streams."""

from bitstring import Bits, BitArray, ConstBitStream


END_OF_STREAM = -1

ZERO = Bits('0b0')
ONE = Bits('0b1')


class BitWriter:
    """Packs bits MSB-first into bytes written to `sink`.

    `close` must run on every path so the last partial byte gets out;
    use the writer as a context manager. The sink is only closed when
    `close_sink` is true, otherwise it is flushed and left to its owner.
    """

    def __init__(self, sink, close_sink=False):
        self.sink = sink
        self.close_sink = close_sink
        self.buffer = BitArray()
        self.bits_written = 0
        self.closed = False

    def write_bit(self, bit):
        self.buffer.append(ONE if bit else ZERO)
        self.bits_written += 1
        if len(self.buffer) == 8:
            self._flush_byte()

    def write_code(self, code):
        for c in code:
            self.write_bit(c == '1')

    def _flush_byte(self):
        self.sink.write(self.buffer.tobytes())
        self.buffer = BitArray()

    def close(self):
        if self.closed:
            return
        self.closed = True
        # tobytes() pads the low-order side with zeros
        if len(self.buffer) > 0:
            self._flush_byte()
        if self.close_sink:
            self.sink.close()
        else:
            self.sink.flush()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class BitReader:
    """Reads bits MSB-first from `source`, one byte at a time."""

    def __init__(self, source):
        self.source = source
        self.buffer = ConstBitStream()
        self.bits_read = 0

    def read_bit(self):
        if self.buffer.bitpos == len(self.buffer):
            byte = self.source.read(1)
            if not byte:
                return END_OF_STREAM
            self.buffer = ConstBitStream(byte)
        self.bits_read += 1
        return self.buffer.read('uint:1')
