"""
gitlink — external symbol-file indexer port

File: src/gitlink/linking/indexer.py

Purpose
- Embed a srcsrv document into a symbol file by running ``pdbstr``.
- Stage the indexer executable into a scoped temporary directory for the run.

Functional requirements
- ``<prefix...> <pdbstr> -w -p:<pdb> -i:<srcsrv> -s:srcsrv``; the prefix allows
  running the Windows tool through a launcher such as ``wine``.
- Non-zero exit, timeout or launch failure raise ``IndexerError``. No retry.
- The staged copy is deleted on every exit path.
"""

from __future__ import annotations

import shutil
import subprocess
import time
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from gitlink.domain.errors import FatalConfigurationError, ProjectLinkError
from gitlink.linking.srcsrv import STREAM_NAME
from gitlink.utils.fs import temp_directory


class IndexerError(ProjectLinkError):
    """Raised when the external indexer cannot embed the document."""

    def __init__(
        self,
        message: str,
        *,
        command: Sequence[str] = (),
        returncode: int | None = None,
        stderr: str = "",
    ) -> None:
        self.command = tuple(command)
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)


class IndexerUnavailableError(FatalConfigurationError):
    """Raised when the indexer executable cannot be located for staging."""


@dataclass(frozen=True, slots=True)
class IndexerCompletion:
    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str
    duration_ms: float


class ExternalIndexer(Protocol):
    """Port: embed ``document`` into ``symbol_file``."""

    def invoke(self, symbol_file: Path, document: Path) -> IndexerCompletion:
        """Run the indexer; raise ``IndexerError`` on any failure."""


def _coerce_stream(value: str | bytes | None) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


class PdbStrIndexer:
    """Runs ``pdbstr`` as a subprocess."""

    def __init__(
        self,
        executable: str | Path,
        *,
        command_prefix: Sequence[str] = (),
        timeout_seconds: float | None = None,
    ) -> None:
        if timeout_seconds is not None and timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")
        self.executable = Path(executable)
        self.command_prefix = tuple(command_prefix)
        self.timeout_seconds = timeout_seconds

    def build_command(self, symbol_file: Path, document: Path) -> tuple[str, ...]:
        return (
            *self.command_prefix,
            str(self.executable),
            "-w",
            f"-p:{symbol_file}",
            f"-i:{document}",
            f"-s:{STREAM_NAME}",
        )

    def invoke(self, symbol_file: Path, document: Path) -> IndexerCompletion:
        command = self.build_command(symbol_file, document)
        started = time.perf_counter()
        try:
            completed = subprocess.run(
                list(command),
                check=False,
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
            )
        except subprocess.TimeoutExpired as exc:
            raise IndexerError(
                f"indexer timed out after {self.timeout_seconds}s",
                command=command,
                stderr=_coerce_stream(exc.stderr),
            ) from exc
        except OSError as exc:
            raise IndexerError(f"unable to launch indexer: {exc}", command=command) from exc

        duration_ms = (time.perf_counter() - started) * 1000.0
        if completed.returncode != 0:
            detail = completed.stderr.strip() or completed.stdout.strip()
            message = f"indexer exited with code {completed.returncode}"
            raise IndexerError(
                f"{message}: {detail}" if detail else message,
                command=command,
                returncode=completed.returncode,
                stderr=completed.stderr,
            )
        return IndexerCompletion(
            command=command,
            returncode=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
            duration_ms=duration_ms,
        )


def locate_executable(executable: str | Path) -> Path:
    """Resolve a configured executable as a path, or by name on ``PATH``."""

    candidate = Path(executable).expanduser()
    if candidate.is_file():
        return candidate.resolve()
    found = shutil.which(str(executable))
    if found is None:
        raise IndexerUnavailableError(f"indexer executable not found: {executable}")
    return Path(found).resolve()


@contextmanager
def staged_indexer(
    executable: str | Path,
    *,
    command_prefix: Sequence[str] = (),
    timeout_seconds: float | None = None,
) -> Iterator[PdbStrIndexer]:
    """Copy the indexer into a private temporary directory for one run."""

    source = locate_executable(executable)
    with temp_directory(prefix="gitlink-indexer-") as workdir:
        staged = workdir / source.name
        shutil.copy2(source, staged)
        yield PdbStrIndexer(
            staged,
            command_prefix=command_prefix,
            timeout_seconds=timeout_seconds,
        )


__all__ = [
    "ExternalIndexer",
    "IndexerCompletion",
    "IndexerError",
    "IndexerUnavailableError",
    "PdbStrIndexer",
    "locate_executable",
    "staged_indexer",
]
