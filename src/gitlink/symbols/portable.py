"""
gitlink — Portable PDB document table reader

File: src/gitlink/symbols/portable.py

Purpose
- Extract (document path, hash algorithm, checksum) rows from a standalone
  Portable PDB (ECMA-335 metadata with the ``#Pdb`` stream).

Functional requirements
- Only the Document table (0x30) is decoded; other debug tables are not needed.
- Document names are reassembled from the separator + blob-part encoding.
- Unknown hash algorithm GUIDs yield entries with ``algorithm=None``.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Final

from gitlink.domain.errors import SymbolFileError
from gitlink.domain.models import SymbolTableEntry
from gitlink.symbols.binary import ByteReader

METADATA_SIGNATURE: Final[bytes] = b"BSJB"

DOCUMENT_TABLE: Final[int] = 0x30
_FIRST_DEBUG_TABLE: Final[int] = 0x30

_HEAP_GUID_WIDE: Final[int] = 0x02
_HEAP_BLOB_WIDE: Final[int] = 0x04
_HEAP_EXTRA_DATA: Final[int] = 0x40

HASH_ALGORITHMS: Final[dict[uuid.UUID, str]] = {
    uuid.UUID("ff1816ec-aa5e-4d10-87f7-6f4963833460"): "sha1",
    uuid.UUID("8829d00f-11b8-4213-878b-770e8597ac16"): "sha256",
}


@dataclass(frozen=True, slots=True)
class _StreamHeader:
    name: str
    offset: int
    size: int


class _Heaps:
    __slots__ = ("_blob", "_guid")

    def __init__(self, blob: bytes, guid: bytes) -> None:
        self._blob = blob
        self._guid = guid

    def blob(self, index: int) -> bytes:
        if index == 0:
            return b""
        reader = ByteReader(self._blob, offset=index, label="#Blob heap")
        length = reader.compressed_uint()
        return reader.read(length)

    def guid(self, index: int) -> uuid.UUID | None:
        if index == 0:
            return None
        start = (index - 1) * 16
        raw = self._guid[start : start + 16]
        if len(raw) != 16:
            raise SymbolFileError(f"#GUID heap: index {index} is out of range")
        return uuid.UUID(bytes_le=raw)


def is_portable_pdb(data: bytes) -> bool:
    return data[:4] == METADATA_SIGNATURE


def read_document_table(data: bytes) -> tuple[SymbolTableEntry, ...]:
    """Return every Document row of a standalone Portable PDB."""

    if not is_portable_pdb(data):
        raise SymbolFileError("not a Portable PDB: missing BSJB metadata signature")

    streams = {item.name: item for item in _read_stream_headers(data)}
    for required in ("#~", "#Blob", "#GUID"):
        if required not in streams:
            raise SymbolFileError(f"Portable PDB is missing the {required} stream")

    heaps = _Heaps(
        blob=_stream_bytes(data, streams["#Blob"]),
        guid=_stream_bytes(data, streams["#GUID"]),
    )
    tables = ByteReader(_stream_bytes(data, streams["#~"]), label="#~ stream")

    tables.skip(4)  # reserved
    tables.skip(2)  # major/minor version
    heap_sizes = tables.u8()
    tables.skip(1)  # reserved
    valid = tables.u64()
    tables.skip(8)  # sorted mask

    present = [bit for bit in range(64) if valid & (1 << bit)]
    row_counts = {bit: tables.u32() for bit in present}
    if heap_sizes & _HEAP_EXTRA_DATA:
        tables.skip(4)

    if any(bit < _FIRST_DEBUG_TABLE for bit in present):
        raise SymbolFileError(
            "embedded type-system tables are not supported; expected a standalone PDB"
        )
    if DOCUMENT_TABLE not in row_counts:
        return ()

    # Document is the lowest-numbered debug table, so its rows start right here.
    blob_wide = bool(heap_sizes & _HEAP_BLOB_WIDE)
    guid_wide = bool(heap_sizes & _HEAP_GUID_WIDE)

    entries: list[SymbolTableEntry] = []
    for _ in range(row_counts[DOCUMENT_TABLE]):
        name_index = tables.u32() if blob_wide else tables.u16()
        algorithm_index = tables.u32() if guid_wide else tables.u16()
        hash_index = tables.u32() if blob_wide else tables.u16()
        _language_index = tables.u32() if guid_wide else tables.u16()

        name = _decode_document_name(heaps, name_index)
        if not name:
            continue
        algorithm_guid = heaps.guid(algorithm_index)
        algorithm = HASH_ALGORITHMS.get(algorithm_guid) if algorithm_guid is not None else None
        entries.append(
            SymbolTableEntry(
                path=name,
                algorithm=algorithm,
                checksum=heaps.blob(hash_index).hex(),
            )
        )
    return tuple(entries)


def _read_stream_headers(data: bytes) -> list[_StreamHeader]:
    reader = ByteReader(data, label="metadata root")
    reader.skip(4)  # signature
    reader.skip(4)  # major/minor version
    reader.skip(4)  # reserved
    version_length = reader.u32()
    reader.skip(version_length)
    reader.skip(2)  # flags
    stream_count = reader.u16()

    headers: list[_StreamHeader] = []
    for _ in range(stream_count):
        offset = reader.u32()
        size = reader.u32()
        start = reader.offset
        name = reader.cstring(encoding="ascii")
        reader.align(4, base=start)
        headers.append(_StreamHeader(name=name, offset=offset, size=size))
    return headers


def _stream_bytes(data: bytes, header: _StreamHeader) -> bytes:
    end = header.offset + header.size
    if end > len(data):
        raise SymbolFileError(f"{header.name} stream extends past end of file")
    return data[header.offset : end]


def _decode_document_name(heaps: _Heaps, index: int) -> str:
    blob = heaps.blob(index)
    if not blob:
        return ""
    reader = ByteReader(blob, label="document name blob")
    separator_byte = reader.u8()
    separator = chr(separator_byte) if separator_byte else ""
    parts: list[str] = []
    while reader.remaining > 0:
        part_index = reader.compressed_uint()
        parts.append(heaps.blob(part_index).decode("utf-8", errors="replace"))
    return separator.join(parts)


__all__ = [
    "DOCUMENT_TABLE",
    "HASH_ALGORITHMS",
    "METADATA_SIGNATURE",
    "is_portable_pdb",
    "read_document_table",
]
