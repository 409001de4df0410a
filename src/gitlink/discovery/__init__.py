"""
gitlink — project discovery

Purpose
- Find solutions, evaluate their MSBuild projects, and produce ``Project`` values.
"""

from gitlink.discovery.catalog import discover_projects
from gitlink.discovery.msbuild import ProjectLoadError, evaluate_condition, load_project
from gitlink.discovery.solution import (
    SolutionParseError,
    SolutionProject,
    find_solution_files,
    parse_solution,
    resolve_solution_files,
)

__all__ = [
    "ProjectLoadError",
    "SolutionParseError",
    "SolutionProject",
    "discover_projects",
    "evaluate_condition",
    "find_solution_files",
    "load_project",
    "parse_solution",
    "resolve_solution_files",
]
