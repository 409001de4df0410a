"""Unit tests for the bounds-checked byte cursor."""

from __future__ import annotations

import struct

import pytest

from gitlink.domain.errors import SymbolFileError
from gitlink.symbols.binary import ByteReader


def test_reads_little_endian_integers_and_strings() -> None:
    data = struct.pack("<BHIQ", 1, 2, 3, 4) + b"#~\x00\x00"
    reader = ByteReader(data)

    assert (reader.u8(), reader.u16(), reader.u32(), reader.u64()) == (1, 2, 3, 4)
    start = reader.offset
    assert reader.cstring() == "#~"
    reader.align(4, base=start)
    assert reader.remaining == 0


@pytest.mark.parametrize(
    ("encoded", "value"),
    [(b"\x03", 0x03), (b"\x7f", 0x7F), (b"\x80\x80", 0x80), (b"\xbf\xff", 0x3FFF), (b"\xc0\x00\x40\x00", 0x4000)],
)
def test_compressed_uint(encoded: bytes, value: int) -> None:
    assert ByteReader(encoded).compressed_uint() == value


def test_truncated_reads_raise_symbol_file_error() -> None:
    reader = ByteReader(b"\x01\x02", label="stream")
    with pytest.raises(SymbolFileError, match="stream: truncated"):
        reader.u32()


def test_invalid_compressed_uint_and_unterminated_string() -> None:
    with pytest.raises(SymbolFileError, match="invalid compressed integer"):
        ByteReader(b"\xff").compressed_uint()
    with pytest.raises(SymbolFileError, match="unterminated string"):
        ByteReader(b"abc").cstring()


def test_seek_out_of_range() -> None:
    with pytest.raises(SymbolFileError):
        ByteReader(b"abc").seek(4)
