"""
gitlink — Visual Studio solution discovery

File: src/gitlink/discovery/solution.py

Purpose
- Locate ``*.sln`` files under a solution root, or honor an explicitly named one.
- Extract the MSBuild project references a solution declares.

Functional requirements
- Discovery order is deterministic (sorted paths).
- Solution folders and non-MSBuild entries (web sites, shared items) are skipped.
- Project paths recorded with Windows separators resolve on any platform.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from gitlink.domain.errors import FatalConfigurationError, SolutionNotFoundError

SOLUTION_PATTERN: Final[str] = "*.sln"
SOLUTION_FOLDER_TYPE: Final[str] = "2150E333-8FDC-42A3-9474-1A3956D46DE8"
PROJECT_EXTENSIONS: Final[frozenset[str]] = frozenset({".csproj", ".vbproj", ".fsproj"})

_PROJECT_LINE_RE = re.compile(
    r'^\s*Project\("\{(?P<type>[0-9A-Fa-f-]+)\}"\)\s*=\s*'
    r'"(?P<name>[^"]+)"\s*,\s*"(?P<path>[^"]+)"\s*,\s*"\{(?P<guid>[0-9A-Fa-f-]+)\}"'
)


class SolutionParseError(FatalConfigurationError):
    """Raised when a solution file cannot be read."""


@dataclass(frozen=True, slots=True)
class SolutionProject:
    """One MSBuild project reference declared by a solution."""

    name: str
    project_file: Path
    type_guid: str
    project_guid: str
    solution_file: Path


def find_solution_files(root: str | Path) -> tuple[Path, ...]:
    """Return every ``*.sln`` below ``root``, recursively, in sorted order."""

    base = Path(root)
    if not base.is_dir():
        return ()
    return tuple(sorted(path.resolve() for path in base.rglob(SOLUTION_PATTERN) if path.is_file()))


def resolve_solution_files(root: str | Path, solution_file: str | None = None) -> tuple[Path, ...]:
    """Return the explicitly named solution, or every solution under ``root``.

    Raises:
        SolutionNotFoundError: if ``solution_file`` is given but does not exist.
    """

    base = Path(root)
    if not solution_file:
        return find_solution_files(base)

    candidate = base / solution_file
    if not candidate.is_file():
        raise SolutionNotFoundError(str(candidate))
    return (candidate.resolve(),)


def _windows_relative(raw: str) -> Path:
    return Path(*[part for part in re.split(r"[\\/]+", raw.strip()) if part])


def parse_solution(path: str | Path) -> tuple[SolutionProject, ...]:
    """Parse the ``Project(...) = ...`` lines of a solution file."""

    solution = Path(path).resolve()
    try:
        text = solution.read_text(encoding="utf-8-sig", errors="replace")
    except OSError as exc:
        raise SolutionParseError(f"unable to read solution file {solution}: {exc}") from exc

    projects: list[SolutionProject] = []
    for line in text.splitlines():
        match = _PROJECT_LINE_RE.match(line)
        if match is None:
            continue
        type_guid = match.group("type").upper()
        if type_guid == SOLUTION_FOLDER_TYPE:
            continue
        relative = _windows_relative(match.group("path"))
        if relative.suffix.lower() not in PROJECT_EXTENSIONS:
            continue
        projects.append(
            SolutionProject(
                name=match.group("name").strip(),
                project_file=(solution.parent / relative).resolve(),
                type_guid=type_guid,
                project_guid=match.group("guid").upper(),
                solution_file=solution,
            )
        )
    return tuple(projects)


__all__ = [
    "PROJECT_EXTENSIONS",
    "SOLUTION_FOLDER_TYPE",
    "SolutionParseError",
    "SolutionProject",
    "find_solution_files",
    "parse_solution",
    "resolve_solution_files",
]
