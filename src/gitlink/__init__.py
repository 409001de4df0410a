"""
gitlink — source indexing for PDB symbol files

File: src/gitlink/__init__.py

Purpose
- Package root. Patches compiled symbol files with a srcsrv stream so a
  debugger fetches every source file from the repository host at the
  exact revision that was built.

Functional requirements
- Must not have side effects at import time (no config loading, no logging init).
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
