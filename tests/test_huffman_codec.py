import io
import logging
import random

import pytest

from header import HeaderError, read_header
from huffman import HuffmanError, TruncatedStreamError, build_frequency_table
from huffman_codec import (compress, decode_file, decoded_filename, decompress,
                           encode_file, huffman_decode, huffman_encode, main)


def random_bytes(n, seed=0):
    rng = random.Random(seed)
    return bytes(rng.getrandbits(8) for _ in range(n))


@pytest.mark.parametrize('data', [
    b'',
    b'\x00',
    b'A',
    b'AB',
    bytes(range(256)),
    b'A' * 10240,
    b'This is a test' * 100,
])
def test_roundtrip(data):
    assert decompress(compress(data)) == data


def test_roundtrip_random_10kb():
    data = random_bytes(10 * 1024)
    assert decompress(compress(data)) == data


def test_empty_input_emits_only_the_header():
    source, sink = io.BytesIO(b''), io.BytesIO()
    stats = huffman_encode(source, sink)
    assert stats.input_size == 0
    assert stats.payload_size == 0
    assert len(sink.getvalue()) == stats.header_size
    out = io.BytesIO()
    assert huffman_decode(io.BytesIO(sink.getvalue()), out).output_size == 0
    assert out.getvalue() == b''


def test_repeated_byte():
    data = bytes([65]) * 1000
    encoded = compress(data)
    out = io.BytesIO()
    stats = huffman_decode(io.BytesIO(encoded), out)
    assert out.getvalue() == data
    # one bit per byte plus one for the sentinel
    assert stats.payload_bits == 1001


def test_encode_stats():
    data = b'abracadabra' * 10
    sink = io.BytesIO()
    stats = huffman_encode(io.BytesIO(data), sink)
    assert stats.input_size == len(data)
    assert stats.header_size + stats.payload_size == len(sink.getvalue())
    assert stats.payload_size < len(data)


def test_header_fidelity():
    data = random_bytes(5000, seed=7) + b'z' * 500
    assert read_header(io.BytesIO(compress(data))) == \
        build_frequency_table(io.BytesIO(data))


def test_output_is_deterministic():
    data = random_bytes(2000, seed=3)
    assert compress(data) == compress(data)


def test_source_rewound_to_its_start():
    source = io.BytesIO(b'skip me|hello hello')
    source.seek(len(b'skip me|'))
    sink = io.BytesIO()
    huffman_encode(source, sink)
    assert decompress(sink.getvalue()) == b'hello hello'


def test_caller_streams_stay_open():
    source, sink = io.BytesIO(b'data'), io.BytesIO()
    huffman_encode(source, sink)
    assert not source.closed
    assert not sink.closed


def test_trailing_bytes_are_not_interpreted():
    data = b'hello world'
    assert decompress(compress(data) + b'\xff\x00garbage') == data


def test_truncated_stream():
    compressed = compress(b'This is a test' * 100)
    with pytest.raises(TruncatedStreamError):
        decompress(compressed[:-3])


def test_header_only_stream_is_truncated():
    compressed = compress(b'hello')
    header_size = huffman_encode(io.BytesIO(b'hello'), io.BytesIO()).header_size
    with pytest.raises(TruncatedStreamError):
        decompress(compressed[:header_size])


def test_corrupted_header():
    compressed = bytearray(compress(b'Hello World' * 50))
    compressed[0] ^= 0xFF
    with pytest.raises(HeaderError):
        decompress(bytes(compressed))


def test_not_an_encoded_stream():
    with pytest.raises(HuffmanError):
        decompress(b'plain text, not compressed')


def test_logs_code_tables(caplog):
    with caplog.at_level(logging.DEBUG):
        compress(b'abc')
    assert 'Frequency table' in caplog.text
    assert 'Encoding table' in caplog.text


def test_file_roundtrip(tmp_path):
    original = tmp_path / 'input.bin'
    encoded = tmp_path / 'input.bin.huff'
    decoded = tmp_path / 'input.bin.out'
    data = random_bytes(3000, seed=11) + b'\n' * 3000
    original.write_bytes(data)
    enc_stats = encode_file(str(original), str(encoded))
    dec_stats = decode_file(str(encoded), str(decoded))
    assert decoded.read_bytes() == data
    assert enc_stats.input_size == dec_stats.output_size == len(data)
    assert encoded.stat().st_size == enc_stats.header_size + enc_stats.payload_size


def test_encode_missing_file(tmp_path):
    with pytest.raises(OSError):
        encode_file(str(tmp_path / 'missing'), str(tmp_path / 'out.huff'))


def test_decoded_filename():
    assert decoded_filename('notes.txt.huff') == 'notes.txt.out'
    assert decoded_filename('notes.bin') == 'notes.bin.out'


def test_cli_encode_and_decode(tmp_path, capsys):
    original = tmp_path / 'notes.txt'
    original.write_bytes(b'to be or not to be' * 20)
    assert main(['-e', str(original)]) == 0
    assert (tmp_path / 'notes.txt.huff').exists()
    assert 'Compression ratio' in capsys.readouterr().out

    restored = tmp_path / 'restored.txt'
    assert main(['-d', str(tmp_path / 'notes.txt.huff'), '-o', str(restored)]) == 0
    assert restored.read_bytes() == original.read_bytes()


def test_cli_test_mode(tmp_path, capsys):
    original = tmp_path / 'data.bin'
    original.write_bytes(random_bytes(500, seed=5))
    assert main(['-t', str(original)]) == 0
    assert 'Decoded data matches original: True' in capsys.readouterr().out
    assert (tmp_path / 'data.bin.out').read_bytes() == original.read_bytes()


def test_cli_reports_bad_input(tmp_path, capsys):
    bogus = tmp_path / 'bogus.huff'
    bogus.write_bytes(b'not huffman at all')
    assert main(['-d', str(bogus)]) == 1
    assert 'error' in capsys.readouterr().err


def test_cli_requires_a_mode(tmp_path):
    with pytest.raises(SystemExit):
        main([str(tmp_path / 'x')])
