"""
gitlink — symbol file readers

Purpose
- Read the per-document checksum table from Portable PDBs and MSF 7.00 PDBs.
"""

from gitlink.symbols.binary import ByteReader
from gitlink.symbols.msf import MsfFile, is_msf_pdb, read_checksum_table
from gitlink.symbols.portable import HASH_ALGORITHMS, is_portable_pdb, read_document_table
from gitlink.symbols.reader import MSF_FORMAT, PORTABLE_FORMAT, read_symbol_bytes, read_symbol_table

__all__ = [
    "HASH_ALGORITHMS",
    "MSF_FORMAT",
    "PORTABLE_FORMAT",
    "ByteReader",
    "MsfFile",
    "is_msf_pdb",
    "is_portable_pdb",
    "read_checksum_table",
    "read_document_table",
    "read_symbol_bytes",
    "read_symbol_table",
]
