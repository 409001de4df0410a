"""Domain types shared across gitlink layers; free of IO side effects."""

from gitlink.domain.errors import (
    FatalConfigurationError,
    GitLinkError,
    ProjectLinkError,
    SolutionNotFoundError,
    SymbolFileError,
)
from gitlink.domain.models import (
    FailureReason,
    LinkResult,
    LinkStatus,
    PathMapping,
    Project,
    RunResult,
    SymbolFile,
    SymbolTableEntry,
    VerificationWarning,
    WarningKind,
    symbol_path_key,
)

__all__ = [
    "FailureReason",
    "FatalConfigurationError",
    "GitLinkError",
    "LinkResult",
    "LinkStatus",
    "PathMapping",
    "Project",
    "ProjectLinkError",
    "RunResult",
    "SolutionNotFoundError",
    "SymbolFile",
    "SymbolFileError",
    "SymbolTableEntry",
    "VerificationWarning",
    "WarningKind",
    "symbol_path_key",
]
