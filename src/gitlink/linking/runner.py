"""
gitlink — whole-run flow

File: src/gitlink/linking/runner.py

Purpose
- Drive one link run from typed settings: stage the indexer, discover
  projects, select the provider, resolve the revision once, link, report.

Functional requirements
- Every fatal condition (missing solution, no provider, unresolvable
  revision) is raised before any project is processed.
- An empty target URL falls back to the ``origin`` remote of the solution root.
- The staged indexer directory is removed on every exit path.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from contextlib import ExitStack
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

from gitlink.config.schema import LinkSettings
from gitlink.discovery import discover_projects, resolve_solution_files
from gitlink.domain.errors import FatalConfigurationError
from gitlink.domain.models import Project, RunResult
from gitlink.linking.engine import LinkEngine
from gitlink.linking.indexer import ExternalIndexer, staged_indexer
from gitlink.linking.report import Reporter
from gitlink.observability.logging import LogScope
from gitlink.providers.base import ProviderRegistry, RepositoryFactory, RevisionProvider
from gitlink.providers.git import GitRepository
from gitlink.providers.hosts import default_registry

ProjectSource = Callable[[LinkSettings], Sequence[Project]]


@dataclass(frozen=True, slots=True)
class RunOutcome:
    result: RunResult
    revision: str
    provider_name: str
    duration_seconds: float

    @property
    def is_success(self) -> bool:
        return self.result.is_success


def discover_from_settings(settings: LinkSettings) -> tuple[Project, ...]:
    solutions = resolve_solution_files(settings.solution_directory, settings.solution_file)
    return discover_projects(
        solutions,
        configuration=settings.configuration,
        platform=settings.platform,
    )


class LinkRunner:
    """Runs the link flow for one ``LinkSettings`` value."""

    def __init__(
        self,
        settings: LinkSettings,
        *,
        registry: ProviderRegistry | None = None,
        indexer: ExternalIndexer | None = None,
        project_source: ProjectSource = discover_from_settings,
        repository_factory: RepositoryFactory = GitRepository,
        scope: LogScope | None = None,
        reporter: Reporter | None = None,
    ) -> None:
        self.settings = settings
        self._registry = registry or default_registry()
        self._indexer = indexer
        self._project_source = project_source
        self._repository_factory = repository_factory
        self._scope = scope or LogScope()
        self._reporter = reporter or Reporter(self._scope)

    def run(self) -> RunOutcome:
        started = time.perf_counter()
        try:
            with ExitStack() as stack:
                indexer = self._indexer
                if indexer is None:
                    self._scope.info("Staging indexer '%s'", self.settings.indexer_executable)
                    indexer = stack.enter_context(
                        staged_indexer(
                            self.settings.indexer_executable,
                            command_prefix=self.settings.indexer_command_prefix,
                            timeout_seconds=self.settings.indexer_timeout_seconds,
                        )
                    )
                return self._run_with(indexer, started)
        finally:
            self._scope.blank()
            elapsed = timedelta(seconds=time.perf_counter() - started)
            self._scope.info("Completed in '%s'", elapsed)

    def _run_with(self, indexer: ExternalIndexer, started: float) -> RunOutcome:
        settings = self.settings
        solution_root = Path(settings.solution_directory).resolve()
        projects = self._project_source(settings)

        provider = self.select_provider(solution_root)
        self._scope.info("Using provider '%s'", provider.name)
        revision = provider.resolve_revision(solution_root)
        self._scope.info("Using commit sha '%s' as version stamp", revision)

        self._scope.info("Found '%d' project(s)", len(projects))
        self._scope.blank()

        engine = LinkEngine(
            solution_root=solution_root,
            indexer=indexer,
            ignore_patterns=settings.ignore_projects,
            jobs=settings.jobs,
            scope=self._scope,
        )
        result = engine.run(projects, revision, provider, settings.pdb_directory)
        self._reporter.report(result, revision=revision, provider_name=provider.name)
        return RunOutcome(
            result=result,
            revision=revision,
            provider_name=provider.name,
            duration_seconds=time.perf_counter() - started,
        )

    def select_provider(self, solution_root: Path) -> RevisionProvider:
        target_url = self.settings.target_url
        if not target_url:
            target_url = self._repository_factory(solution_root).remote_url("origin")
            if not target_url:
                raise FatalConfigurationError(
                    "no target URL configured and the solution directory has no 'origin' remote"
                )
            self._scope.debug("Using origin remote '%s' as target URL", target_url)
        return self._registry.select(
            target_url,
            branch=self.settings.branch,
            commit=self.settings.commit,
        )


__all__ = ["LinkRunner", "ProjectSource", "RunOutcome", "discover_from_settings"]
