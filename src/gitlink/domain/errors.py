"""Error taxonomy shared across gitlink layers."""

from __future__ import annotations


class GitLinkError(RuntimeError):
    """Base error for every failure gitlink raises on purpose."""


class FatalConfigurationError(GitLinkError):
    """Raised before any project is processed; aborts the whole run."""


class SolutionNotFoundError(FatalConfigurationError):
    """Raised when an explicitly named solution file does not exist."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Could not find solution file: {path}")


class ProjectLinkError(GitLinkError):
    """Raised inside a single project's link; isolated at the project boundary."""


class SymbolFileError(ProjectLinkError):
    """Raised when a symbol file cannot be read or has an unknown layout."""


__all__ = [
    "FatalConfigurationError",
    "GitLinkError",
    "ProjectLinkError",
    "SolutionNotFoundError",
    "SymbolFileError",
]
