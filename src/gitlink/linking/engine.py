"""
gitlink — link engine

File: src/gitlink/linking/engine.py

Purpose
- Link every project of a run: locate its symbol file, verify recorded
  checksums, map compiled paths to repository-relative URL paths, write the
  srcsrv document and hand it to the external indexer.

Functional requirements
- One project's failure never aborts the next; every outcome is a LinkResult.
- Ignored projects are SKIPPED and excluded from success/failure counts.
- A single revision and URL template apply to every project of the run.
- ``jobs > 1`` links projects in worker threads; results keep project order.

Non-functional requirements
- The engine never mutates a symbol file itself; only the indexer does.
"""

from __future__ import annotations

import fnmatch
from functools import partial
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path

from gitlink.domain.errors import SymbolFileError
from gitlink.domain.models import (
    FailureReason,
    LinkResult,
    LinkStatus,
    PathMapping,
    Project,
    RunResult,
    SymbolFile,
)
from gitlink.linking.indexer import ExternalIndexer, IndexerError
from gitlink.linking.srcsrv import IndexDocumentError, SrcSrvWriter, document_path_for
from gitlink.linking.verifier import ChecksumVerifier
from gitlink.observability.logging import LogScope, project_scope
from gitlink.providers.base import RevisionProvider
from gitlink.symbols.reader import read_symbol_table
from gitlink.utils.concurrency import map_in_threads
from gitlink.utils.fs import is_within, relative_display_path

SymbolReader = Callable[[Path], SymbolFile]

_SEPARATORS = "/\\"


def compute_relative_path(path: str | Path, root: str | Path) -> str:
    """Strip the solution-root prefix and normalize to a URL path.

    The result uses ``/`` exclusively and never starts with a separator. Paths
    outside ``root`` keep their full text minus any leading separators.
    """

    text = str(path)
    prefix = str(root).rstrip(_SEPARATORS)
    if prefix and text.casefold().startswith(prefix.casefold()):
        remainder = text[len(prefix) :]
        if not remainder or remainder[0] in _SEPARATORS:
            text = remainder
    return text.replace("\\", "/").lstrip("/")


def raw_url_template(raw_base_url: str) -> str:
    """``<base>/{0}/%var2%``: revision token, then the per-file token."""

    return f"{raw_base_url.rstrip('/')}/{{0}}/%var2%"


def is_ignored(project: Project, patterns: Iterable[str]) -> bool:
    name = project.name.casefold()
    return any(fnmatch.fnmatchcase(name, pattern.strip().casefold()) for pattern in patterns)


def _failure_reason(exc: BaseException) -> FailureReason:
    if isinstance(exc, IndexerError):
        return FailureReason.INDEXER_ERROR
    if isinstance(exc, IndexDocumentError):
        return FailureReason.INDEX_DOCUMENT_ERROR
    return FailureReason.UNEXPECTED_ERROR


class LinkEngine:
    """Per-project orchestration with fault isolation."""

    def __init__(
        self,
        *,
        solution_root: str | Path,
        indexer: ExternalIndexer,
        ignore_patterns: Sequence[str] = (),
        verifier: ChecksumVerifier | None = None,
        writer: SrcSrvWriter | None = None,
        symbol_reader: SymbolReader = read_symbol_table,
        jobs: int = 1,
        scope: LogScope | None = None,
    ) -> None:
        if jobs <= 0:
            raise ValueError("jobs must be > 0")
        self.solution_root = Path(solution_root).resolve()
        self._indexer = indexer
        self._ignore_patterns = tuple(item for item in ignore_patterns if item.strip())
        self._verifier = verifier or ChecksumVerifier()
        self._writer = writer or SrcSrvWriter()
        self._symbol_reader = symbol_reader
        self._jobs = jobs
        self._scope = scope or LogScope()

    def run(
        self,
        projects: Sequence[Project],
        revision: str,
        provider: RevisionProvider,
        pdb_directory: str | Path | None = None,
    ) -> RunResult:
        template = raw_url_template(provider.raw_content_base_url())
        override = Path(pdb_directory).resolve() if pdb_directory else None

        if self._jobs > 1 and len(projects) > 1:
            calls = [
                partial(
                    self.link_project, project, revision, template, override, self._scope.fork()
                )
                for project in projects
            ]
            results = map_in_threads(calls, self._jobs)
        else:
            results = [
                self.link_project(project, revision, template, override, self._scope)
                for project in projects
            ]
        return RunResult(results=tuple(results))

    def resolve_symbol_file(self, project: Project, override: Path | None) -> Path:
        if override is not None:
            return override / project.symbol_file_name
        return project.pdb_file.resolve()

    def link_project(
        self,
        project: Project,
        revision: str,
        template: str,
        override: Path | None,
        scope: LogScope,
    ) -> LinkResult:
        """Link one project; every exception becomes a FAILED result."""

        with project_scope(project.name):
            if is_ignored(project, self._ignore_patterns):
                scope.info("Ignoring '%s'", project.name)
                scope.blank()
                return LinkResult.skipped(project)

            scope.info("Handling project '%s'", project.name)
            try:
                with scope.indented():
                    try:
                        return self._link(project, revision, template, override, scope)
                    except Exception as exc:
                        scope.warning(
                            "An error occurred while processing project '%s': %s",
                            project.name,
                            exc,
                        )
                        return LinkResult.failed(
                            project,
                            _failure_reason(exc),
                            str(exc),
                            symbol_file=self.resolve_symbol_file(project, override),
                        )
            finally:
                scope.blank()

    def _link(
        self,
        project: Project,
        revision: str,
        template: str,
        override: Path | None,
        scope: LogScope,
    ) -> LinkResult:
        symbol_file = self.resolve_symbol_file(project, override)
        if not symbol_file.is_file():
            scope.warning(
                "No pdb file found for '%s', is project built in '%s' mode with pdb files "
                "enabled? Expected file is '%s'",
                project.name,
                project.configuration,
                symbol_file,
            )
            return LinkResult.failed(
                project,
                FailureReason.MISSING_SYMBOL_FILE,
                f"symbol file not found: {symbol_file}",
                symbol_file=symbol_file,
            )

        scope.info("Verifying pdb file")
        try:
            table = self._symbol_reader(symbol_file)
        except SymbolFileError as exc:
            scope.warning("Unable to read checksums from '%s': %s", symbol_file.name, exc)
            warnings = ()
        else:
            warnings = self._verifier.verify(project.compiled_files, table)
        for warning in warnings:
            scope.warning("%s", warning.describe())

        mapping = PathMapping()
        for compiled in project.compiled_files:
            if not is_within(compiled, self.solution_root):
                scope.warning(
                    "File '%s' is outside the solution directory '%s'",
                    compiled,
                    self.solution_root,
                )
            mapping.add(str(compiled), compute_relative_path(compiled, self.solution_root))

        document = self._writer.write(document_path_for(symbol_file), mapping, revision, template)
        scope.debug(
            "Created source server link file, updating pdb file '%s'",
            relative_display_path(symbol_file, self.solution_root),
        )
        self._indexer.invoke(symbol_file, document)

        return LinkResult(
            project=project,
            status=LinkStatus.SUCCEEDED,
            warnings=warnings,
            symbol_file=symbol_file,
        )


__all__ = [
    "LinkEngine",
    "SymbolReader",
    "compute_relative_path",
    "is_ignored",
    "raw_url_template",
]
