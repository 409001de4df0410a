"""Advisory comparison of on-disk sources with a symbol file's checksum table."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from gitlink.domain.models import SymbolFile, VerificationWarning, WarningKind, symbol_path_key
from gitlink.utils.hashing import SUPPORTED_ALGORITHMS, digest_file

logger = logging.getLogger(__name__)

UNREADABLE_DIGEST = "unreadable"


class ChecksumVerifier:
    """Produce warnings for compiled sources the symbol file does not vouch for.

    Never raises for a per-file problem and never fails a project on its own.
    Table entries with no compiled counterpart are ignored.
    """

    def verify(
        self,
        compiled_paths: Iterable[str | Path],
        symbol_table: SymbolFile,
    ) -> tuple[VerificationWarning, ...]:
        lookup = symbol_table.lookup()
        warnings: list[VerificationWarning] = []

        for compiled in compiled_paths:
            path = Path(compiled)
            entry = lookup.get(symbol_path_key(path))
            if entry is None:
                warnings.append(VerificationWarning(kind=WarningKind.MISSING, path=path))
                continue
            if entry.algorithm not in SUPPORTED_ALGORITHMS:
                logger.debug("No usable checksum algorithm recorded for %s", path)
                continue
            try:
                actual = digest_file(path, entry.algorithm)
            except OSError:
                actual = UNREADABLE_DIGEST
            if actual != entry.checksum:
                warnings.append(
                    VerificationWarning(
                        kind=WarningKind.MISMATCH,
                        path=path,
                        expected=entry.checksum,
                        actual=actual,
                    )
                )
        return tuple(warnings)


__all__ = ["UNREADABLE_DIGEST", "ChecksumVerifier"]
