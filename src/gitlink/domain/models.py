"""Dataclass domain models for projects, symbol tables, and link results."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path, PurePath


class LinkStatus(StrEnum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


class FailureReason(StrEnum):
    MISSING_SYMBOL_FILE = "missing-symbol-file"
    INDEX_DOCUMENT_ERROR = "index-document-error"
    INDEXER_ERROR = "indexer-error"
    UNEXPECTED_ERROR = "unexpected-error"


class WarningKind(StrEnum):
    MISSING = "missing"
    MISMATCH = "mismatch"


def _require_text(value: str, field_name: str) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{field_name} must be a string")
    normalized = value.strip()
    if not normalized:
        raise ValueError(f"{field_name} must not be empty")
    return normalized


@dataclass(frozen=True, slots=True)
class Project:
    """A build project as produced by discovery; treated as immutable."""

    name: str
    project_file: Path
    compiled_files: tuple[Path, ...]
    pdb_file: Path
    configuration: str = "Release"
    platform: str = "AnyCPU"

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", _require_text(self.name, "Project.name"))
        object.__setattr__(self, "project_file", Path(self.project_file))
        object.__setattr__(self, "pdb_file", Path(self.pdb_file))
        # Duplicates collapse; first occurrence keeps its position.
        ordered = dict.fromkeys(Path(item) for item in self.compiled_files)
        object.__setattr__(self, "compiled_files", tuple(ordered))

    @property
    def symbol_file_name(self) -> str:
        return self.pdb_file.name


@dataclass(frozen=True, slots=True)
class SymbolTableEntry:
    """One source document recorded in a symbol file."""

    path: str
    algorithm: str | None
    checksum: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", _require_text(self.path, "SymbolTableEntry.path"))
        object.__setattr__(self, "checksum", self.checksum.strip().lower())


def symbol_path_key(path: str | PurePath) -> str:
    """Return the lookup key used to match compiled paths with recorded paths.

    Windows symbol files record ``C:\\src\\A.cs`` style paths; matching ignores
    separator style and letter case.
    """

    return str(path).replace("\\", "/").casefold()


@dataclass(frozen=True, slots=True)
class SymbolFile:
    """Checksum table extracted from a symbol file on disk."""

    path: Path
    format_name: str
    entries: tuple[SymbolTableEntry, ...] = ()

    def lookup(self) -> dict[str, SymbolTableEntry]:
        table: dict[str, SymbolTableEntry] = {}
        for entry in self.entries:
            table[symbol_path_key(entry.path)] = entry
        return table


@dataclass(frozen=True, slots=True)
class VerificationWarning:
    """Advisory finding from checksum verification; never fails a project."""

    kind: WarningKind
    path: Path
    expected: str | None = None
    actual: str | None = None

    def describe(self) -> str:
        if self.kind is WarningKind.MISSING:
            return f"Missing file '{self.path}' in symbol file checksum table"
        return (
            f"Checksum of '{self.path}' did not match "
            f"(recorded '{self.expected}', on disk '{self.actual}')"
        )


class PathMapping(Mapping[str, str]):
    """Local compiled path -> repository-relative URL path.

    Keys are unique and the last write wins.
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Mapping[str, str] | None = None) -> None:
        self._entries: dict[str, str] = {}
        for key, value in (entries or {}).items():
            self.add(key, value)

    def add(self, local_path: str, relative_path: str) -> None:
        self._entries[_require_text(local_path, "local_path")] = relative_path

    def __getitem__(self, key: str) -> str:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"PathMapping({self._entries!r})"


@dataclass(frozen=True, slots=True)
class LinkResult:
    """Outcome of linking one project."""

    project: Project
    status: LinkStatus
    warnings: tuple[VerificationWarning, ...] = ()
    reason: FailureReason | None = None
    detail: str | None = None
    symbol_file: Path | None = None

    @classmethod
    def skipped(cls, project: Project) -> LinkResult:
        return cls(project=project, status=LinkStatus.SKIPPED)

    @classmethod
    def failed(
        cls,
        project: Project,
        reason: FailureReason,
        detail: str,
        *,
        warnings: tuple[VerificationWarning, ...] = (),
        symbol_file: Path | None = None,
    ) -> LinkResult:
        return cls(
            project=project,
            status=LinkStatus.FAILED,
            warnings=warnings,
            reason=reason,
            detail=detail,
            symbol_file=symbol_file,
        )


@dataclass(frozen=True, slots=True)
class RunResult:
    """Ordered per-project results for one run."""

    results: tuple[LinkResult, ...] = field(default_factory=tuple)

    def _with_status(self, status: LinkStatus) -> tuple[Project, ...]:
        return tuple(item.project for item in self.results if item.status is status)

    @property
    def succeeded(self) -> tuple[Project, ...]:
        return self._with_status(LinkStatus.SUCCEEDED)

    @property
    def failed(self) -> tuple[Project, ...]:
        return self._with_status(LinkStatus.FAILED)

    @property
    def skipped(self) -> tuple[Project, ...]:
        return self._with_status(LinkStatus.SKIPPED)

    @property
    def attempted_count(self) -> int:
        return len(self.succeeded) + len(self.failed)

    @property
    def is_success(self) -> bool:
        return not self.failed


__all__ = [
    "FailureReason",
    "LinkResult",
    "LinkStatus",
    "PathMapping",
    "Project",
    "RunResult",
    "SymbolFile",
    "SymbolTableEntry",
    "VerificationWarning",
    "WarningKind",
    "symbol_path_key",
]
