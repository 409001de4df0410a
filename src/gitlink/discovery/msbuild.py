"""
gitlink — MSBuild project evaluation (subset)

File: src/gitlink/discovery/msbuild.py

Purpose
- Turn a ``.csproj``/``.vbproj``/``.fsproj`` into a ``Project``: its compiled
  sources and the path of the symbol file a build writes.

Functional requirements
- Both legacy (namespaced ``ToolsVersion``) and SDK-style projects are read.
- Property groups apply when unconditioned or when their condition holds for
  the selected configuration/platform.
- Explicit ``Compile`` items honor wildcards, ``Exclude`` and ``Remove``.
- SDK-style projects glob default sources, excluding ``bin/`` and ``obj/``.

Non-functional requirements
- No MSBuild install is needed; only the simple ``'a' == 'b'`` / ``'a' != 'b'``
  condition forms are evaluated, everything else is treated as false.
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import Final

from gitlink.domain.errors import FatalConfigurationError
from gitlink.domain.models import Project

logger = logging.getLogger(__name__)

DEFAULT_COMPILE_GLOBS: Final[dict[str, str]] = {
    ".csproj": "**/*.cs",
    ".vbproj": "**/*.vb",
}
DEFAULT_EXCLUDED_DIRS: Final[frozenset[str]] = frozenset({"bin", "obj"})

_PROPERTY_RE = re.compile(r"\$\((?P<name>[A-Za-z_][A-Za-z0-9_.-]*)\)")
_CONDITION_RE = re.compile(r"^\s*'(?P<left>[^']*)'\s*(?P<op>==|!=)\s*'(?P<right>[^']*)'\s*$")


class ProjectLoadError(FatalConfigurationError):
    """Raised when a project file is missing or is not well-formed XML."""


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1] if "}" in tag else tag


def _children(element: ET.Element, name: str) -> Iterator[ET.Element]:
    for child in element:
        if isinstance(child.tag, str) and _local_name(child.tag) == name:
            yield child


def expand_properties(value: str, properties: Mapping[str, str]) -> str:
    """Substitute ``$(Name)`` references; unknown properties expand to ''."""

    lowered = {key.lower(): item for key, item in properties.items()}
    return _PROPERTY_RE.sub(lambda match: lowered.get(match.group("name").lower(), ""), value)


def evaluate_condition(condition: str | None, properties: Mapping[str, str]) -> bool:
    if condition is None or not condition.strip():
        return True
    match = _CONDITION_RE.match(expand_properties(condition, properties))
    if match is None:
        logger.debug("Unsupported MSBuild condition treated as false: %s", condition.strip())
        return False
    equal = match.group("left").strip().lower() == match.group("right").strip().lower()
    return equal if match.group("op") == "==" else not equal


def _to_relative(raw: str) -> str:
    return raw.strip().replace("\\", "/")


def _has_wildcard(pattern: str) -> bool:
    return any(char in pattern for char in "*?")


def _expand_include(project_dir: Path, pattern: str) -> list[Path]:
    normalized = _to_relative(pattern)
    if not normalized:
        return []
    if not _has_wildcard(normalized):
        return [(project_dir / normalized).resolve()]
    if normalized.endswith("**"):
        # A trailing ``**`` means every file below the directory.
        normalized = f"{normalized}/*"
    if Path(normalized).is_absolute():
        anchor = Path(normalized).anchor
        matches = Path(anchor).glob(normalized[len(anchor) :])
        return sorted(path.resolve() for path in matches if path.is_file())
    return sorted(path.resolve() for path in project_dir.glob(normalized) if path.is_file())


def _split_items(raw: str | None, properties: Mapping[str, str]) -> list[str]:
    if not raw:
        return []
    expanded = expand_properties(raw, properties)
    return [item.strip() for item in expanded.split(";") if item.strip()]


def _in_default_excluded_dir(path: Path, project_dir: Path) -> bool:
    try:
        relative = path.relative_to(project_dir)
    except ValueError:
        return False
    return bool(relative.parts) and relative.parts[0].lower() in DEFAULT_EXCLUDED_DIRS


def _parse_xml(path: Path) -> ET.Element:
    if not path.is_file():
        raise ProjectLoadError(f"project file does not exist: {path}")
    try:
        return ET.parse(path).getroot()
    except ET.ParseError as exc:
        raise ProjectLoadError(f"project file is not valid XML: {path}: {exc}") from exc


def evaluate_properties(
    root: ET.Element,
    *,
    project_file: Path,
    configuration: str,
    platform: str,
) -> dict[str, str]:
    """Evaluate ``PropertyGroup`` elements in document order."""

    properties: dict[str, str] = {
        "Configuration": configuration,
        "Platform": platform,
        "MSBuildProjectName": project_file.stem,
        "MSBuildProjectDirectory": str(project_file.parent),
        "MSBuildProjectFile": project_file.name,
    }
    # Global selectors win over the defaults legacy projects declare.
    pinned = {"configuration", "platform"}

    for group in _children(root, "PropertyGroup"):
        if not evaluate_condition(group.get("Condition"), properties):
            continue
        for element in group:
            if not isinstance(element.tag, str):
                continue
            name = _local_name(element.tag)
            if name.lower() in pinned:
                continue
            if not evaluate_condition(element.get("Condition"), properties):
                continue
            properties[name] = expand_properties((element.text or "").strip(), properties)
    return properties


def collect_compile_items(
    root: ET.Element,
    *,
    project_file: Path,
    properties: Mapping[str, str],
    sdk_style: bool,
) -> tuple[Path, ...]:
    """Return the ordered absolute paths of every compiled source."""

    project_dir = project_file.parent
    items: dict[Path, None] = {}

    default_glob = DEFAULT_COMPILE_GLOBS.get(project_file.suffix.lower())
    enable_defaults = properties.get("EnableDefaultCompileItems", "").strip().lower() != "false"
    if sdk_style and default_glob and enable_defaults:
        for path in _expand_include(project_dir, default_glob):
            if not _in_default_excluded_dir(path, project_dir):
                items[path] = None

    for group in _children(root, "ItemGroup"):
        if not evaluate_condition(group.get("Condition"), properties):
            continue
        for element in _children(group, "Compile"):
            if not evaluate_condition(element.get("Condition"), properties):
                continue
            excluded: set[Path] = set()
            for pattern in _split_items(element.get("Exclude"), properties):
                excluded.update(_expand_include(project_dir, pattern))
            for pattern in _split_items(element.get("Include"), properties):
                for path in _expand_include(project_dir, pattern):
                    if path not in excluded:
                        items[path] = None
            for pattern in _split_items(element.get("Remove"), properties):
                for path in _expand_include(project_dir, pattern):
                    items.pop(path, None)
    return tuple(items)


def output_directory(
    properties: Mapping[str, str],
    *,
    project_file: Path,
    sdk_style: bool,
) -> Path:
    configuration = properties.get("Configuration", "")
    raw = properties.get("OutputPath") or f"bin/{configuration}/"
    directory = project_file.parent / _to_relative(raw)

    append_framework = properties.get("AppendTargetFrameworkToOutputPath", "true")
    if sdk_style and append_framework.strip().lower() != "false":
        framework = properties.get("TargetFramework") or next(
            iter(_split_items(properties.get("TargetFrameworks"), properties)), ""
        )
        if framework:
            directory = directory / framework
    return directory.resolve()


def load_project(
    project_file: str | Path,
    *,
    configuration: str = "Release",
    platform: str = "AnyCPU",
    name: str | None = None,
) -> Project:
    """Evaluate one project file into a ``Project``.

    Raises:
        ProjectLoadError: if the file is missing or malformed.
    """

    path = Path(project_file).resolve()
    root = _parse_xml(path)
    sdk_style = bool(root.get("Sdk")) or any(True for _ in _children(root, "Sdk"))

    properties = evaluate_properties(
        root, project_file=path, configuration=configuration, platform=platform
    )
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("Evaluated properties of %s:", path.name)
        for key in sorted(properties, key=str.lower):
            logger.debug("  %s = %s", key, properties[key])
    assembly_name = properties.get("AssemblyName") or path.stem
    compiled = collect_compile_items(
        root, project_file=path, properties=properties, sdk_style=sdk_style
    )
    pdb_file = output_directory(properties, project_file=path, sdk_style=sdk_style) / (
        f"{assembly_name}.pdb"
    )
    logger.debug(
        "Evaluated %s: %d compiled file(s), symbol file %s", path.name, len(compiled), pdb_file
    )
    return Project(
        name=name or path.stem,
        project_file=path,
        compiled_files=compiled,
        pdb_file=pdb_file,
        configuration=configuration,
        platform=platform,
    )


__all__ = [
    "DEFAULT_COMPILE_GLOBS",
    "ProjectLoadError",
    "collect_compile_items",
    "evaluate_condition",
    "evaluate_properties",
    "expand_properties",
    "load_project",
    "output_directory",
]
