"""
gitlink — revision providers

Purpose
- Host-specific strategies that supply a revision stamp and a raw-content URL base.
- One provider is selected per run from a registry of host-pattern matchers.
"""

from gitlink.providers.base import (
    BaseProvider,
    ProviderError,
    ProviderFactory,
    ProviderNotFoundError,
    ProviderRegistration,
    ProviderRegistry,
    ProviderTarget,
    RevisionError,
    RevisionProvider,
)
from gitlink.providers.git import CommandResult, GitCommandError, GitError, GitRepository
from gitlink.providers.hosts import (
    BitbucketProvider,
    CustomRawUrlProvider,
    GitHubProvider,
    default_registry,
)

__all__ = [
    "BaseProvider",
    "BitbucketProvider",
    "CommandResult",
    "CustomRawUrlProvider",
    "GitCommandError",
    "GitError",
    "GitHubProvider",
    "GitRepository",
    "ProviderError",
    "ProviderFactory",
    "ProviderNotFoundError",
    "ProviderRegistration",
    "ProviderRegistry",
    "ProviderTarget",
    "RevisionError",
    "RevisionProvider",
    "default_registry",
]
