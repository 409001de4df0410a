"""Utility exports for filesystem, hashing, and concurrency helpers."""

from gitlink.utils.concurrency import map_in_threads, run_in_threads
from gitlink.utils.fs import atomic_write, is_within, relative_display_path, temp_directory
from gitlink.utils.hashing import (
    SUPPORTED_ALGORITHMS,
    digest_bytes,
    digest_file,
    normalize_algorithm,
)

__all__ = [
    "SUPPORTED_ALGORITHMS",
    "atomic_write",
    "digest_bytes",
    "digest_file",
    "is_within",
    "map_in_threads",
    "normalize_algorithm",
    "relative_display_path",
    "run_in_threads",
    "temp_directory",
]
