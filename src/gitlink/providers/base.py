"""
gitlink — revision provider interface and host registry

File: src/gitlink/providers/base.py

Purpose
- Capability interface for host-specific revision and raw-URL resolution.
- Registry of host-pattern matchers; exactly one provider is selected per run.

Functional requirements
- Selection is a pure lookup against registered patterns, in registration order.
- The resolved revision is a full lowercase commit id.
"""

from __future__ import annotations

import abc
import re
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, TypeAlias

from gitlink.domain.errors import FatalConfigurationError, GitLinkError
from gitlink.providers.git import GitError, GitRepository

_COMMIT_RE = re.compile(r"^[0-9a-fA-F]{7,64}$")


class ProviderError(GitLinkError):
    """Base error for provider selection and revision resolution."""


class ProviderNotFoundError(ProviderError, FatalConfigurationError):
    """Raised when no registered provider matches the target URL."""

    def __init__(self, target_url: str) -> None:
        self.target_url = target_url
        super().__init__(f"Cannot find a matching provider for '{target_url}'")


class RevisionError(ProviderError):
    """Raised when the revision stamp cannot be resolved."""


class RevisionProvider(Protocol):
    """Capability implemented by every host provider."""

    name: str

    def resolve_revision(self, repo_root: Path) -> str:
        """Return the immutable revision stamp for ``repo_root``."""

    def raw_content_base_url(self) -> str:
        """Return the URL prefix that serves raw file content per revision."""


@dataclass(frozen=True, slots=True)
class ProviderTarget:
    """Inputs handed to a provider factory once its pattern matched."""

    url: str
    match: re.Match[str]
    branch: str | None = None
    commit: str | None = None


ProviderFactory: TypeAlias = Callable[[ProviderTarget], RevisionProvider]
RepositoryFactory: TypeAlias = Callable[[Path], GitRepository]


class BaseProvider(abc.ABC):
    """Shared revision resolution: explicit commit override, else git."""

    name: str = "provider"

    def __init__(
        self,
        target: ProviderTarget,
        *,
        repository_factory: RepositoryFactory = GitRepository,
    ) -> None:
        self.target = target
        self._repository_factory = repository_factory

    def resolve_revision(self, repo_root: Path) -> str:
        if self.target.commit:
            commit = self.target.commit.strip()
            if not _COMMIT_RE.fullmatch(commit):
                raise RevisionError(f"commit override is not a hex commit id: {commit!r}")
            return commit.lower()

        ref = self.target.branch or "HEAD"
        try:
            return self._repository_factory(repo_root).resolve_commit(ref).lower()
        except GitError as exc:
            raise RevisionError(f"unable to resolve '{ref}' in {repo_root}: {exc}") from exc

    @abc.abstractmethod
    def raw_content_base_url(self) -> str:
        """Return the URL prefix that serves raw file content per revision."""


@dataclass(frozen=True, slots=True)
class ProviderRegistration:
    name: str
    pattern: re.Pattern[str]
    factory: ProviderFactory


class ProviderRegistry:
    """Ordered registry of host-pattern matchers."""

    def __init__(self) -> None:
        self._registrations: list[ProviderRegistration] = []

    def register(
        self,
        name: str,
        pattern: str | re.Pattern[str],
        factory: ProviderFactory,
        *,
        overwrite: bool = False,
    ) -> None:
        normalized = name.strip().lower()
        if not normalized:
            raise ValueError("provider name must not be empty")
        compiled = re.compile(pattern, re.IGNORECASE) if isinstance(pattern, str) else pattern
        existing = [item for item in self._registrations if item.name == normalized]
        if existing and not overwrite:
            raise ValueError(f"provider already registered: {normalized}")
        registration = ProviderRegistration(name=normalized, pattern=compiled, factory=factory)
        if existing:
            index = self._registrations.index(existing[0])
            self._registrations[index] = registration
        else:
            self._registrations.append(registration)

    def unregister(self, name: str) -> None:
        normalized = name.strip().lower()
        self._registrations = [item for item in self._registrations if item.name != normalized]

    def names(self) -> tuple[str, ...]:
        return tuple(item.name for item in self._registrations)

    def select(
        self,
        target_url: str,
        *,
        branch: str | None = None,
        commit: str | None = None,
    ) -> RevisionProvider:
        """Return the provider for the first pattern matching ``target_url``."""

        url = target_url.strip()
        for registration in self._registrations:
            match = registration.pattern.fullmatch(url)
            if match is None:
                continue
            return registration.factory(
                ProviderTarget(url=url, match=match, branch=branch, commit=commit)
            )
        raise ProviderNotFoundError(url)


__all__ = [
    "BaseProvider",
    "ProviderError",
    "ProviderFactory",
    "ProviderNotFoundError",
    "ProviderRegistration",
    "ProviderRegistry",
    "ProviderTarget",
    "RepositoryFactory",
    "RevisionError",
    "RevisionProvider",
]
