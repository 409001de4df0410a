"""Read-only git helpers used to resolve the revision stamp and origin URL."""

from __future__ import annotations

import os
import re
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

_REF_RE = re.compile(r"^[A-Za-z0-9._/@{}^~-]+$")


class GitError(RuntimeError):
    """Base error for git lookups."""


class GitCommandError(GitError):
    """Raised when a git subprocess command exits non-zero."""

    def __init__(
        self,
        *,
        command: Sequence[str],
        returncode: int,
        stdout: str,
        stderr: str,
    ) -> None:
        self.command = tuple(command)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        message = f"git command failed ({returncode}): {' '.join(command)}"
        if stderr.strip():
            message = f"{message}: {stderr.strip()}"
        super().__init__(message)


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Normalized subprocess result."""

    command: tuple[str, ...]
    cwd: str
    returncode: int
    stdout: str
    stderr: str


class GitRepository:
    """Thin read-only wrapper around the git CLI for one working tree."""

    def __init__(
        self,
        repo_path: Path | str,
        *,
        env_overrides: Mapping[str, str] | None = None,
    ) -> None:
        self.repo_path = Path(repo_path).resolve()
        self._env_overrides = dict(env_overrides or {})

    def resolve_commit(self, ref: str = "HEAD") -> str:
        """Return the full commit id ``ref`` points at."""

        if not _REF_RE.fullmatch(ref) or ref.startswith("-"):
            raise GitError(f"unsafe git ref: {ref!r}")
        result = self._run_git(["rev-parse", "--verify", f"{ref}^{{commit}}"])
        return result.stdout.strip()

    def remote_url(self, remote: str = "origin") -> str | None:
        """Return the fetch URL configured for ``remote``, if any."""

        result = self._run_git(["remote", "get-url", remote], check=False)
        if result.returncode != 0:
            return None
        url = result.stdout.strip()
        return url or None

    def toplevel(self) -> Path:
        result = self._run_git(["rev-parse", "--show-toplevel"])
        return Path(result.stdout.strip())

    def _run_git(self, args: Sequence[str], *, check: bool = True) -> CommandResult:
        command = ("git", *args)
        env = os.environ.copy()
        env["GIT_TERMINAL_PROMPT"] = "0"
        env.setdefault("GIT_CONFIG_NOSYSTEM", "1")
        env.update(self._env_overrides)

        try:
            completed = subprocess.run(
                command,
                cwd=self.repo_path,
                env=env,
                text=True,
                capture_output=True,
                check=False,
            )
        except FileNotFoundError as exc:
            raise GitError("git executable not found on PATH") from exc

        result = CommandResult(
            command=command,
            cwd=self.repo_path.as_posix(),
            returncode=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
        )
        if check and result.returncode != 0:
            raise GitCommandError(
                command=result.command,
                returncode=result.returncode,
                stdout=result.stdout,
                stderr=result.stderr,
            )
        return result


__all__ = [
    "CommandResult",
    "GitCommandError",
    "GitError",
    "GitRepository",
]
