"""
gitlink — shared test fixtures

File: tests/conftest.py

Purpose
- Synthesize minimal Portable PDB and MSF 7.00 symbol files in memory so
  reader, verifier and engine tests run without a compiler toolchain.
"""

from __future__ import annotations

import struct
import uuid
from collections.abc import Callable, Sequence
from typing import Final

import pytest

SHA1_GUID: Final[uuid.UUID] = uuid.UUID("ff1816ec-aa5e-4d10-87f7-6f4963833460")
SHA256_GUID: Final[uuid.UUID] = uuid.UUID("8829d00f-11b8-4213-878b-770e8597ac16")
MSF_MAGIC: Final[bytes] = b"Microsoft C/C++ MSF 7.00\r\n\x1aDS\x00\x00\x00"
MSF_CHECKSUM_KINDS: Final[dict[str, int]] = {"md5": 1, "sha1": 2, "sha256": 3}

DocumentRow = tuple[str, str | None, bytes]
PdbBuilder = Callable[[Sequence[DocumentRow]], bytes]


def _pad4(data: bytes) -> bytes:
    return data + b"\x00" * (-len(data) % 4)


def _compressed_uint(value: int) -> bytes:
    if value < 0x80:
        return bytes([value])
    if value < 0x4000:
        return struct.pack(">H", value | 0x8000)
    return struct.pack(">I", value | 0xC0000000)


def build_portable_pdb(documents: Sequence[DocumentRow]) -> bytes:
    """Standalone Portable PDB whose Document table lists ``documents``."""

    blob_heap = bytearray(b"\x00")

    def add_blob(data: bytes) -> int:
        index = len(blob_heap)
        blob_heap.extend(_compressed_uint(len(data)) + data)
        return index

    guid_heap = SHA1_GUID.bytes_le + SHA256_GUID.bytes_le
    guid_index = {"sha1": 1, "sha256": 2}

    rows = bytearray()
    for name, algorithm, digest in documents:
        separator = "/" if "/" in name else "\\"
        encoded = bytearray(separator.encode("ascii"))
        for part in name.split(separator):
            encoded.extend(_compressed_uint(add_blob(part.encode("utf-8")) if part else 0))
        rows.extend(
            struct.pack(
                "<HHHH",
                add_blob(bytes(encoded)),
                guid_index.get(algorithm or "", 0),
                add_blob(digest),
                0,
            )
        )

    tables = (
        struct.pack("<IBBBBQQ", 0, 2, 0, 0, 1, 1 << 0x30, 0)
        + struct.pack("<I", len(documents))
        + bytes(rows)
    )
    streams = [
        ("#Pdb", _pad4(b"\x00" * 20)),
        ("#~", _pad4(tables)),
        ("#Strings", _pad4(b"\x00")),
        ("#Blob", _pad4(bytes(blob_heap))),
        ("#GUID", guid_heap),
    ]

    version = _pad4(b"PDB v1.0\x00")
    header_names = [_pad4(name.encode("ascii") + b"\x00") for name, _ in streams]
    header_size = 16 + len(version) + 4 + sum(8 + len(item) for item in header_names)

    header = bytearray(b"BSJB" + struct.pack("<HHII", 1, 1, 0, len(version)) + version)
    header.extend(struct.pack("<HH", 0, len(streams)))
    offset = header_size
    body = bytearray()
    for (_, data), encoded_name in zip(streams, header_names, strict=True):
        header.extend(struct.pack("<II", offset, len(data)) + encoded_name)
        body.extend(data)
        offset += len(data)
    return bytes(header + body)


def _msf_names_stream(paths: Sequence[str]) -> tuple[bytes, dict[str, int]]:
    buffer = bytearray(b"\x00")
    offsets: dict[str, int] = {}
    for path in paths:
        offsets.setdefault(path, len(buffer))
        if offsets[path] == len(buffer):
            buffer.extend(path.encode("utf-8") + b"\x00")
    stream = struct.pack("<III", 0xEFFEEFFE, 1, len(buffer)) + bytes(buffer)
    return stream + struct.pack("<II", 0, len(offsets)), offsets


def _msf_info_stream(names_stream_index: int) -> bytes:
    names = b"/names\x00"
    return (
        struct.pack("<III", 20000404, 0x5EED, 1)
        + b"\x11" * 16
        + struct.pack("<I", len(names))
        + names
        + struct.pack("<IIIIIII", 1, 1, 1, 0b1, 0, 0, names_stream_index)
        + struct.pack("<I", 0)
    )


def _msf_module_stream(entries: Sequence[tuple[int, str | None, bytes]]) -> bytes:
    body = bytearray()
    for name_offset, algorithm, digest in entries:
        kind = MSF_CHECKSUM_KINDS.get(algorithm or "", 0)
        body.extend(_pad4(struct.pack("<IBB", name_offset, len(digest), kind) + digest))
    subsection = struct.pack("<II", 0xF4, len(body)) + bytes(body)
    return struct.pack("<I", 4) + subsection


def _msf_dbi_stream(module_stream_index: int, c13_size: int) -> bytes:
    record = bytearray(64)
    struct.pack_into("<H", record, 34, module_stream_index)
    struct.pack_into("<III", record, 36, 4, 0, c13_size)
    record.extend(b"App.obj\x00App.obj\x00")
    modinfo = _pad4(bytes(record))
    header = bytearray(64)
    struct.pack_into("<i", header, 0, -1)
    struct.pack_into("<I", header, 24, len(modinfo))
    return bytes(header) + modinfo


def build_msf_pdb(documents: Sequence[DocumentRow], *, block_size: int = 512) -> bytes:
    """MSF 7.00 PDB with one module whose FILECHKSMS lists ``documents``."""

    names_stream, offsets = _msf_names_stream([name for name, _, _ in documents])
    module = _msf_module_stream(
        [(offsets[name], algorithm, digest) for name, algorithm, digest in documents]
    )
    streams: list[bytes | None] = [
        b"",
        _msf_info_stream(names_stream_index=4),
        None,
        _msf_dbi_stream(module_stream_index=5, c13_size=len(module) - 4),
        names_stream,
        module,
    ]

    blocks: list[bytes] = [b"", b"", b""]  # superblock + free block maps

    def allocate(data: bytes) -> list[int]:
        indices: list[int] = []
        for start in range(0, len(data), block_size):
            indices.append(len(blocks))
            blocks.append(data[start : start + block_size])
        return indices

    stream_blocks = [allocate(data) if data else [] for data in streams]
    directory = bytearray(struct.pack("<I", len(streams)))
    for data in streams:
        directory.extend(struct.pack("<I", 0xFFFFFFFF if data is None else len(data)))
    for indices in stream_blocks:
        directory.extend(struct.pack(f"<{len(indices)}I", *indices))

    directory_blocks = allocate(bytes(directory))
    block_map_addr = len(blocks)
    blocks.append(struct.pack(f"<{len(directory_blocks)}I", *directory_blocks))

    blocks[0] = MSF_MAGIC + struct.pack(
        "<IIIIII", block_size, 1, len(blocks), len(directory), 0, block_map_addr
    )
    return b"".join(block.ljust(block_size, b"\x00") for block in blocks)


@pytest.fixture
def portable_pdb() -> PdbBuilder:
    return build_portable_pdb


@pytest.fixture
def msf_pdb() -> PdbBuilder:
    return build_msf_pdb
