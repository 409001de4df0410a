"""
gitlink — config schema, defaults, and validation.

File: src/gitlink/config/schema.py

Purpose
- Define the built-in defaults for ``gitlink.toml``.
- Validate raw mappings into normalized config with structured issues.
- Materialize the frozen ``LinkSettings`` consumed by the runner.

Functional requirements
- Unknown keys are rejected with a deterministic issue path.
- Empty strings mean "unset" for optional text fields.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final, TypedDict

from gitlink.domain.errors import FatalConfigurationError


class LinkSection(TypedDict):
    solution_directory: str
    solution_file: str
    configuration: str
    platform: str
    pdb_directory: str
    ignore_projects: list[str]
    target_url: str
    branch: str
    commit: str
    jobs: int


class IndexerSection(TypedDict):
    executable: str
    command_prefix: list[str]
    timeout_seconds: float


class LoggingSection(TypedDict):
    level: str
    log_file: str
    debug: bool


class GitLinkConfig(TypedDict):
    link: LinkSection
    indexer: IndexerSection
    logging: LoggingSection


DEFAULT_CONFIG: Final[GitLinkConfig] = {
    "link": {
        "solution_directory": ".",
        "solution_file": "",
        "configuration": "Release",
        "platform": "AnyCPU",
        "pdb_directory": "",
        "ignore_projects": [],
        "target_url": "",
        "branch": "",
        "commit": "",
        "jobs": 1,
    },
    "indexer": {
        "executable": "pdbstr.exe",
        "command_prefix": [],
        "timeout_seconds": 0.0,
    },
    "logging": {
        "level": "INFO",
        "log_file": "",
        "debug": False,
    },
}

PATH_FIELDS: Final[tuple[tuple[str, ...], ...]] = (
    ("link", "solution_directory"),
    ("link", "pdb_directory"),
    ("logging", "log_file"),
)

_LOG_LEVELS: Final[tuple[str, ...]] = ("CRITICAL", "DEBUG", "ERROR", "INFO", "WARNING")


@dataclass(frozen=True, slots=True)
class ConfigValidationIssue:
    """Single structured validation failure."""

    path: str
    message: str


class ConfigValidationError(FatalConfigurationError, ValueError):
    """Raised when strict config validation fails."""

    def __init__(self, issues: Sequence[ConfigValidationIssue]) -> None:
        self.issues = tuple(issues)
        if not self.issues:
            rendered = "unknown validation failure"
        else:
            rendered = "\n".join(f"- {item.path}: {item.message}" for item in self.issues)
        super().__init__(f"invalid config:\n{rendered}")


class _IssueCollector:
    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: list[ConfigValidationIssue] = []

    def add(self, path: str, message: str) -> None:
        self._items.append(ConfigValidationIssue(path=path, message=message))

    def items(self) -> tuple[ConfigValidationIssue, ...]:
        return tuple(self._items)

    @property
    def has_issues(self) -> bool:
        return bool(self._items)


@dataclass(frozen=True, slots=True)
class LinkSettings:
    """Effective, typed settings for one link run."""

    solution_directory: Path
    solution_file: str | None
    configuration: str
    platform: str
    pdb_directory: Path | None
    ignore_projects: tuple[str, ...]
    target_url: str | None
    branch: str | None
    commit: str | None
    jobs: int
    indexer_executable: str
    indexer_command_prefix: tuple[str, ...]
    indexer_timeout_seconds: float | None
    log_level: str
    log_file: Path | None
    debug: bool

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> LinkSettings:
        validated = assert_valid_config(config)
        link = validated["link"]
        indexer = validated["indexer"]
        logging_section = validated["logging"]
        timeout = float(indexer["timeout_seconds"])
        return cls(
            solution_directory=Path(link["solution_directory"]),
            solution_file=link["solution_file"] or None,
            configuration=link["configuration"],
            platform=link["platform"],
            pdb_directory=Path(link["pdb_directory"]) if link["pdb_directory"] else None,
            ignore_projects=tuple(link["ignore_projects"]),
            target_url=link["target_url"] or None,
            branch=link["branch"] or None,
            commit=link["commit"] or None,
            jobs=int(link["jobs"]),
            indexer_executable=indexer["executable"],
            indexer_command_prefix=tuple(indexer["command_prefix"]),
            indexer_timeout_seconds=timeout if timeout > 0 else None,
            log_level=logging_section["level"],
            log_file=Path(logging_section["log_file"]) if logging_section["log_file"] else None,
            debug=bool(logging_section["debug"]),
        )


def default_config() -> dict[str, Any]:
    """Return a deep copy of the built-in defaults."""

    return copy.deepcopy(dict(DEFAULT_CONFIG))


def merge_config(base: Mapping[str, object], overlay: Mapping[str, object]) -> dict[str, Any]:
    """Deterministically deep-merge ``overlay`` onto ``base``."""

    merged = copy.deepcopy(dict(base))
    _merge_into(merged, overlay)
    return merged


def validate_config(
    config: Mapping[str, object] | object,
) -> tuple[dict[str, Any] | None, tuple[ConfigValidationIssue, ...]]:
    """Validate config and return ``(normalized, issues)``."""

    issues = _IssueCollector()
    if not isinstance(config, Mapping):
        issues.add("<root>", f"expected object, got {type(config).__name__}")
        return None, issues.items()

    _reject_unknown_keys(config, set(DEFAULT_CONFIG), "", issues)
    normalized = default_config()

    link = _section(config, "link", issues)
    if link is not None:
        _reject_unknown_keys(link, set(DEFAULT_CONFIG["link"]), "link", issues)
        target = normalized["link"]
        for key in (
            "solution_directory",
            "solution_file",
            "configuration",
            "platform",
            "pdb_directory",
            "target_url",
            "branch",
            "commit",
        ):
            if key in link:
                parsed = _as_text(link[key], f"link.{key}", issues)
                if parsed is not None:
                    target[key] = parsed
        for key in ("configuration", "platform", "solution_directory"):
            if not target[key]:
                issues.add(f"link.{key}", "must not be empty")
        if "ignore_projects" in link:
            patterns = _as_str_list(link["ignore_projects"], "link.ignore_projects", issues)
            if patterns is not None:
                target["ignore_projects"] = patterns
        if "jobs" in link:
            jobs = _as_int(link["jobs"], "link.jobs", issues, minimum=1)
            if jobs is not None:
                target["jobs"] = jobs

    indexer = _section(config, "indexer", issues)
    if indexer is not None:
        _reject_unknown_keys(indexer, set(DEFAULT_CONFIG["indexer"]), "indexer", issues)
        target = normalized["indexer"]
        if "executable" in indexer:
            executable = _as_text(indexer["executable"], "indexer.executable", issues)
            if executable:
                target["executable"] = executable
            elif executable is not None:
                issues.add("indexer.executable", "must not be empty")
        if "command_prefix" in indexer:
            prefix = _as_str_list(indexer["command_prefix"], "indexer.command_prefix", issues)
            if prefix is not None:
                target["command_prefix"] = prefix
        if "timeout_seconds" in indexer:
            timeout = _as_float(indexer["timeout_seconds"], "indexer.timeout_seconds", issues)
            if timeout is not None:
                target["timeout_seconds"] = timeout

    logging_section = _section(config, "logging", issues)
    if logging_section is not None:
        _reject_unknown_keys(logging_section, set(DEFAULT_CONFIG["logging"]), "logging", issues)
        target = normalized["logging"]
        if "level" in logging_section:
            level = _as_text(logging_section["level"], "logging.level", issues)
            if level is not None:
                if level.upper() not in _LOG_LEVELS:
                    expected = ", ".join(_LOG_LEVELS)
                    issues.add(
                        "logging.level", f"invalid value {level!r}; expected one of: {expected}"
                    )
                else:
                    target["level"] = level.upper()
        if "log_file" in logging_section:
            log_file = _as_text(logging_section["log_file"], "logging.log_file", issues)
            if log_file is not None:
                target["log_file"] = log_file
        if "debug" in logging_section:
            debug = logging_section["debug"]
            if isinstance(debug, bool):
                target["debug"] = debug
            else:
                issues.add("logging.debug", f"expected boolean, got {type(debug).__name__}")

    if issues.has_issues:
        return None, issues.items()
    return normalized, issues.items()


def assert_valid_config(config: Mapping[str, object] | object) -> dict[str, Any]:
    """Validate config and raise ``ConfigValidationError`` on failure."""

    normalized, issues = validate_config(config)
    if normalized is None:
        raise ConfigValidationError(issues)
    return normalized


def _section(
    payload: Mapping[str, object], key: str, issues: _IssueCollector
) -> Mapping[str, object] | None:
    if key not in payload:
        return None
    value = payload[key]
    if not isinstance(value, Mapping):
        issues.add(key, f"expected object, got {type(value).__name__}")
        return None
    return value


def _as_text(value: object, path: str, issues: _IssueCollector) -> str | None:
    if not isinstance(value, str):
        issues.add(path, f"expected string, got {type(value).__name__}")
        return None
    if "\x00" in value:
        issues.add(path, "must not contain NUL bytes")
        return None
    return value.strip()


def _as_str_list(value: object, path: str, issues: _IssueCollector) -> list[str] | None:
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    if not isinstance(value, (list, tuple)):
        issues.add(path, f"expected list of strings, got {type(value).__name__}")
        return None
    items: list[str] = []
    for index, item in enumerate(value):
        if not isinstance(item, str) or not item.strip():
            issues.add(f"{path}[{index}]", "expected non-empty string")
            continue
        items.append(item.strip())
    return items


def _as_int(
    value: object,
    path: str,
    issues: _IssueCollector,
    *,
    minimum: int | None = None,
) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        issues.add(path, f"expected integer, got {type(value).__name__}")
        return None
    if minimum is not None and value < minimum:
        issues.add(path, f"must be >= {minimum}")
        return None
    return value


def _as_float(value: object, path: str, issues: _IssueCollector) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        issues.add(path, f"expected number, got {type(value).__name__}")
        return None
    if value < 0:
        issues.add(path, "must be >= 0")
        return None
    return float(value)


def _reject_unknown_keys(
    payload: Mapping[str, object],
    allowed: set[str],
    path: str,
    issues: _IssueCollector,
) -> None:
    for key in sorted(payload):
        if key not in allowed:
            issues.add(f"{path}.{key}" if path else key, "unknown field")


def _merge_into(target: dict[str, Any], overlay: Mapping[str, object]) -> None:
    for key in sorted(overlay):
        value = overlay[key]
        if isinstance(value, Mapping):
            existing = target.get(key)
            if not isinstance(existing, dict):
                existing = {}
                target[key] = existing
            _merge_into(existing, value)
        else:
            target[key] = copy.deepcopy(value)


__all__ = [
    "DEFAULT_CONFIG",
    "PATH_FIELDS",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "GitLinkConfig",
    "LinkSettings",
    "assert_valid_config",
    "default_config",
    "merge_config",
    "validate_config",
]
