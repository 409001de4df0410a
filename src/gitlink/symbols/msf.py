"""
gitlink — Windows PDB (MSF 7.00) source checksum reader

File: src/gitlink/symbols/msf.py

Purpose
- Walk the multi-stream container of a native/full PDB and collect the
  per-module FILECHKSMS debug subsections.

Functional requirements
- File names are resolved through the ``/names`` string table named stream.
- Modules without a symbol stream contribute nothing.
- Duplicate paths across modules are reported once (first occurrence wins).

Notes
- Managed full PDBs often carry no C13 checksum subsections; callers then
  see an empty table, which verification reports as missing entries.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Final

from gitlink.domain.errors import SymbolFileError
from gitlink.domain.models import SymbolTableEntry
from gitlink.symbols.binary import ByteReader

MSF_MAGIC: Final[bytes] = b"Microsoft C/C++ MSF 7.00\r\n\x1aDS\x00\x00\x00"

PDB_INFO_STREAM: Final[int] = 1
DBI_STREAM: Final[int] = 3

NIL_STREAM_SIZE: Final[int] = 0xFFFFFFFF
NO_MODULE_STREAM: Final[int] = 0xFFFF
STRING_TABLE_SIGNATURE: Final[int] = 0xEFFEEFFE

DEBUG_S_FILECHKSMS: Final[int] = 0xF4
DEBUG_S_IGNORE: Final[int] = 0x80000000

DBI_HEADER_SIZE: Final[int] = 64
_DBI_MODINFO_SIZE_OFFSET: Final[int] = 24

CHECKSUM_KINDS: Final[dict[int, str]] = {1: "md5", 2: "sha1", 3: "sha256"}


def is_msf_pdb(data: bytes) -> bool:
    return data[: len(MSF_MAGIC)] == MSF_MAGIC


class MsfFile:
    """Random access to the streams of an MSF container."""

    def __init__(self, data: bytes) -> None:
        if not is_msf_pdb(data):
            raise SymbolFileError("not an MSF 7.00 PDB: bad superblock magic")
        self._data = data
        header = ByteReader(data, offset=len(MSF_MAGIC), label="MSF superblock")
        self.block_size = header.u32()
        header.skip(4)  # free block map block
        self.block_count = header.u32()
        directory_bytes = header.u32()
        header.skip(4)  # unknown
        block_map_addr = header.u32()

        if self.block_size not in (512, 1024, 2048, 4096, 8192, 16384, 32768):
            raise SymbolFileError(f"MSF superblock: unsupported block size {self.block_size}")

        directory_block_count = self._blocks_for(directory_bytes)
        block_map = ByteReader(self._block(block_map_addr), label="MSF directory block map")
        directory_blocks = [block_map.u32() for _ in range(directory_block_count)]
        directory = ByteReader(
            self._gather(directory_blocks, directory_bytes), label="MSF stream directory"
        )

        stream_count = directory.u32()
        sizes = [directory.u32() for _ in range(stream_count)]
        self._streams: list[tuple[int, list[int]]] = []
        for size in sizes:
            if size == NIL_STREAM_SIZE:
                self._streams.append((0, []))
                continue
            blocks = [directory.u32() for _ in range(self._blocks_for(size))]
            self._streams.append((size, blocks))

    @property
    def stream_count(self) -> int:
        return len(self._streams)

    def stream(self, index: int) -> bytes:
        if index < 0 or index >= len(self._streams):
            raise SymbolFileError(f"MSF stream {index} does not exist")
        size, blocks = self._streams[index]
        return self._gather(blocks, size)

    def _blocks_for(self, size: int) -> int:
        return (size + self.block_size - 1) // self.block_size

    def _block(self, index: int) -> bytes:
        if index >= self.block_count:
            raise SymbolFileError(f"MSF block {index} is out of range")
        start = index * self.block_size
        chunk = self._data[start : start + self.block_size]
        if len(chunk) != self.block_size:
            raise SymbolFileError(f"MSF block {index} is truncated")
        return chunk

    def _gather(self, blocks: list[int], size: int) -> bytes:
        return b"".join(self._block(index) for index in blocks)[:size]


def read_named_streams(info_stream: bytes) -> dict[str, int]:
    """Decode the named stream map that follows the PDB info header."""

    reader = ByteReader(info_stream, label="PDB info stream")
    reader.skip(4 + 4 + 4 + 16)  # version, signature, age, guid
    names_size = reader.u32()
    names = reader.read(names_size)
    reader.skip(4)  # hash table size
    capacity = reader.u32()
    present_words = reader.u32()
    present = [reader.u32() for _ in range(present_words)]
    deleted_words = reader.u32()
    reader.skip(4 * deleted_words)

    # Buckets past the present bit vector are empty whatever capacity claims.
    occupied = [
        bucket
        for bucket in range(min(capacity, 32 * len(present)))
        if present[bucket // 32] & (1 << (bucket % 32))
    ]
    if 8 * len(occupied) > reader.remaining:
        raise SymbolFileError(
            f"PDB info stream: {len(occupied)} named stream entries exceed the stream size"
        )

    mapping: dict[str, int] = {}
    for _ in occupied:
        name_offset = reader.u32()
        stream_index = reader.u32()
        names_reader = ByteReader(names, offset=name_offset, label="named stream map")
        mapping[names_reader.cstring()] = stream_index
    return mapping


class StringTable:
    """The ``/names`` stream: offsets into a NUL-separated string buffer."""

    def __init__(self, data: bytes) -> None:
        reader = ByteReader(data, label="/names stream")
        signature = reader.u32()
        if signature != STRING_TABLE_SIGNATURE:
            raise SymbolFileError(f"/names stream: bad signature 0x{signature:08x}")
        reader.skip(4)  # hash version
        size = reader.u32()
        self._buffer = reader.read(size)

    def get(self, offset: int) -> str:
        return ByteReader(self._buffer, offset=offset, label="/names buffer").cstring()


def iter_module_streams(dbi_stream: bytes) -> Iterator[tuple[int, int, int]]:
    """Yield ``(stream index, symbol bytes, C11 bytes)`` per module."""

    if len(dbi_stream) < DBI_HEADER_SIZE:
        return
    header = ByteReader(dbi_stream, offset=_DBI_MODINFO_SIZE_OFFSET, label="DBI header")
    modinfo_size = header.u32()
    start = DBI_HEADER_SIZE
    modinfo = ByteReader(dbi_stream[start : start + modinfo_size], label="DBI module info")

    while modinfo.remaining > 0:
        record_start = modinfo.offset
        modinfo.skip(34)  # unused, section contribution, flags
        stream_index = modinfo.u16()
        symbol_bytes = modinfo.u32()
        c11_bytes = modinfo.u32()
        modinfo.seek(record_start + 64)
        modinfo.cstring()  # module name
        modinfo.cstring()  # object file name
        modinfo.align(4)
        if stream_index != NO_MODULE_STREAM:
            yield stream_index, symbol_bytes, c11_bytes


def iter_file_checksums(
    module_stream: bytes, c13_offset: int
) -> Iterator[tuple[int, str | None, bytes]]:
    """Yield ``(name offset, algorithm, digest)`` from a module's C13 lines."""

    reader = ByteReader(module_stream, offset=c13_offset, label="C13 debug subsections")
    while reader.remaining >= 8:
        kind = reader.u32()
        length = reader.u32()
        body = reader.read(length)
        reader.align(4)
        if kind & DEBUG_S_IGNORE or kind != DEBUG_S_FILECHKSMS:
            continue
        entries = ByteReader(body, label="FILECHKSMS subsection")
        while entries.remaining >= 6:
            name_offset = entries.u32()
            size = entries.u8()
            algorithm = CHECKSUM_KINDS.get(entries.u8())
            digest = entries.read(size)
            entries.align(4)
            yield name_offset, algorithm, digest


def read_checksum_table(data: bytes) -> tuple[SymbolTableEntry, ...]:
    """Collect every FILECHKSMS entry across the modules of an MSF PDB."""

    msf = MsfFile(data)
    if msf.stream_count <= DBI_STREAM:
        raise SymbolFileError("MSF PDB has no DBI stream")

    named = read_named_streams(msf.stream(PDB_INFO_STREAM))
    names_index = named.get("/names")
    if names_index is None:
        return ()
    strings = StringTable(msf.stream(names_index))

    entries: list[SymbolTableEntry] = []
    seen: set[str] = set()
    for stream_index, symbol_bytes, c11_bytes in iter_module_streams(msf.stream(DBI_STREAM)):
        module = msf.stream(stream_index)
        for name_offset, algorithm, digest in iter_file_checksums(module, symbol_bytes + c11_bytes):
            path = strings.get(name_offset)
            if not path or path in seen:
                continue
            seen.add(path)
            entries.append(SymbolTableEntry(path=path, algorithm=algorithm, checksum=digest.hex()))
    return tuple(entries)


__all__ = [
    "CHECKSUM_KINDS",
    "DEBUG_S_FILECHKSMS",
    "MSF_MAGIC",
    "MsfFile",
    "StringTable",
    "is_msf_pdb",
    "iter_file_checksums",
    "iter_module_streams",
    "read_checksum_table",
    "read_named_streams",
]
