"""Symbol-file format detection and checksum table extraction."""

from __future__ import annotations

from pathlib import Path

from gitlink.domain.errors import SymbolFileError
from gitlink.domain.models import SymbolFile
from gitlink.symbols.msf import is_msf_pdb, read_checksum_table
from gitlink.symbols.portable import is_portable_pdb, read_document_table

PORTABLE_FORMAT = "portable"
MSF_FORMAT = "msf"


def read_symbol_bytes(data: bytes, *, path: Path) -> SymbolFile:
    if is_portable_pdb(data):
        return SymbolFile(path=path, format_name=PORTABLE_FORMAT, entries=read_document_table(data))
    if is_msf_pdb(data):
        return SymbolFile(path=path, format_name=MSF_FORMAT, entries=read_checksum_table(data))
    raise SymbolFileError(f"unrecognized symbol file format: {path}")


def read_symbol_table(path: str | Path) -> SymbolFile:
    """Read the source checksum table recorded in ``path``.

    Raises:
        SymbolFileError: if the file is unreadable or neither a Portable nor an MSF PDB.
    """

    symbol_path = Path(path)
    try:
        data = symbol_path.read_bytes()
    except OSError as exc:
        raise SymbolFileError(f"unable to read symbol file {symbol_path}: {exc}") from exc
    return read_symbol_bytes(data, path=symbol_path)


__all__ = ["MSF_FORMAT", "PORTABLE_FORMAT", "read_symbol_bytes", "read_symbol_table"]
