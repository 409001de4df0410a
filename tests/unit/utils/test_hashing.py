"""Unit tests for digest helpers used by checksum verification."""

from __future__ import annotations

import hashlib
from typing import TYPE_CHECKING

import pytest

from gitlink.utils.hashing import (
    SUPPORTED_ALGORITHMS,
    digest_bytes,
    digest_file,
    normalize_algorithm,
)

if TYPE_CHECKING:
    from pathlib import Path


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("SHA-1", "sha1"), ("sha_256", "sha256"), (" MD5 ", "md5"), ("Sha256", "sha256")],
)
def test_normalize_algorithm_accepts_common_spellings(raw: str, expected: str) -> None:
    assert normalize_algorithm(raw) == expected


def test_normalize_algorithm_rejects_unknown_names() -> None:
    with pytest.raises(ValueError, match="unsupported hash algorithm"):
        normalize_algorithm("crc32")


@pytest.mark.parametrize("algorithm", SUPPORTED_ALGORITHMS)
def test_digest_file_matches_hashlib_for_every_supported_algorithm(
    tmp_path: Path, algorithm: str
) -> None:
    payload = b"namespace App { class A {} }\r\n" * 1000
    target = tmp_path / "A.cs"
    target.write_bytes(payload)

    expected = hashlib.new(algorithm, payload).hexdigest()
    assert digest_file(target, algorithm, chunk_size=7) == expected
    assert digest_bytes(payload, algorithm) == expected

