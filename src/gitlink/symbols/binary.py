"""Bounds-checked little-endian cursor over symbol-file bytes."""

from __future__ import annotations

import struct

from gitlink.domain.errors import SymbolFileError


class ByteReader:
    """Sequential reader that raises ``SymbolFileError`` instead of ``struct.error``."""

    __slots__ = ("_data", "_label", "offset")

    def __init__(self, data: bytes, *, offset: int = 0, label: str = "symbol data") -> None:
        self._data = data
        self._label = label
        self.offset = offset

    @property
    def remaining(self) -> int:
        return len(self._data) - self.offset

    def seek(self, offset: int) -> None:
        if offset < 0 or offset > len(self._data):
            raise SymbolFileError(f"{self._label}: offset {offset} is out of range")
        self.offset = offset

    def skip(self, count: int) -> None:
        self.seek(self.offset + count)

    def align(self, boundary: int, *, base: int = 0) -> None:
        misalignment = (self.offset - base) % boundary
        if misalignment:
            self.skip(boundary - misalignment)

    def read(self, count: int) -> bytes:
        if count < 0 or self.offset + count > len(self._data):
            raise SymbolFileError(
                f"{self._label}: truncated at offset {self.offset} (wanted {count} bytes)"
            )
        chunk = self._data[self.offset : self.offset + count]
        self.offset += count
        return chunk

    def unpack(self, fmt: str) -> tuple[int, ...]:
        size = struct.calcsize(fmt)
        return struct.unpack(fmt, self.read(size))

    def u8(self) -> int:
        return self.read(1)[0]

    def u16(self) -> int:
        return int(self.unpack("<H")[0])

    def u32(self) -> int:
        return int(self.unpack("<I")[0])

    def u64(self) -> int:
        return int(self.unpack("<Q")[0])

    def cstring(self, *, encoding: str = "utf-8") -> str:
        end = self._data.find(b"\x00", self.offset)
        if end < 0:
            raise SymbolFileError(f"{self._label}: unterminated string at offset {self.offset}")
        raw = self._data[self.offset : end]
        self.offset = end + 1
        return raw.decode(encoding, errors="replace")

    def compressed_uint(self) -> int:
        """ECMA-335 II.23.2 compressed unsigned integer."""

        first = self.u8()
        if first & 0x80 == 0:
            return first
        if first & 0xC0 == 0x80:
            return ((first & 0x3F) << 8) | self.u8()
        if first & 0xE0 == 0xC0:
            rest = self.read(3)
            return ((first & 0x1F) << 24) | (rest[0] << 16) | (rest[1] << 8) | rest[2]
        raise SymbolFileError(f"{self._label}: invalid compressed integer at {self.offset - 1}")


__all__ = ["ByteReader"]
