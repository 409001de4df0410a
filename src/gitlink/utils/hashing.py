"""
gitlink — hashing utilities

File: src/gitlink/utils/hashing.py

Purpose
- Provide deterministic digest helpers for bytes and files.
- Support every checksum algorithm a symbol file may declare for a source document.

Functional requirements
- Algorithm names are normalized (``SHA-1``, ``sha1`` and ``SHA1`` are the same algorithm).
- Digests compare case-insensitively as lowercase hex.

Non-functional requirements
- Standard library only; files are read in chunks.
"""

from __future__ import annotations

import hashlib
import os
from pathlib import Path
from typing import Final

PathLike = str | os.PathLike[str]

_FILE_READ_CHUNK_BYTES = 1024 * 1024

SUPPORTED_ALGORITHMS: Final[tuple[str, ...]] = ("md5", "sha1", "sha256")

__all__ = [
    "SUPPORTED_ALGORITHMS",
    "digest_bytes",
    "digest_file",
    "normalize_algorithm",
]


def normalize_algorithm(name: str) -> str:
    """Return the canonical lowercase algorithm name or raise ``ValueError``."""

    normalized = name.strip().lower().replace("-", "").replace("_", "")
    if normalized not in SUPPORTED_ALGORITHMS:
        expected = ", ".join(SUPPORTED_ALGORITHMS)
        raise ValueError(f"unsupported hash algorithm {name!r}; expected one of: {expected}")
    return normalized


def digest_bytes(data: bytes, algorithm: str = "sha256") -> str:
    """Return the hex digest of ``data`` for ``algorithm``."""

    digest = hashlib.new(normalize_algorithm(algorithm))
    digest.update(data)
    return digest.hexdigest()


def digest_file(
    path: PathLike,
    algorithm: str = "sha256",
    *,
    chunk_size: int = _FILE_READ_CHUNK_BYTES,
) -> str:
    """Return the hex digest of a file read in chunks."""

    if chunk_size <= 0:
        raise ValueError("chunk_size must be > 0")
    digest = hashlib.new(normalize_algorithm(algorithm))
    with Path(path).open("rb") as file_handle:
        while True:
            chunk = file_handle.read(chunk_size)
            if not chunk:
                break
            digest.update(chunk)
    return digest.hexdigest()

