"""Module entrypoint for ``python -m gitlink``."""

from __future__ import annotations

from gitlink.main import cli_entrypoint

if __name__ == "__main__":
    raise SystemExit(cli_entrypoint())
