"""Solution-wide project discovery."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from gitlink.discovery.msbuild import load_project
from gitlink.discovery.solution import parse_solution
from gitlink.domain.models import Project

logger = logging.getLogger(__name__)


def discover_projects(
    solution_files: Iterable[str | Path],
    *,
    configuration: str = "Release",
    platform: str = "AnyCPU",
) -> tuple[Project, ...]:
    """Load every project of every solution, in solution order.

    A project referenced by several solutions is loaded once, at its first
    occurrence.
    """

    projects: list[Project] = []
    seen: set[Path] = set()
    for solution_file in solution_files:
        references = parse_solution(solution_file)
        logger.debug("Solution %s references %d project(s)", solution_file, len(references))
        for reference in references:
            if reference.project_file in seen:
                continue
            seen.add(reference.project_file)
            projects.append(
                load_project(
                    reference.project_file,
                    configuration=configuration,
                    platform=platform,
                    name=reference.name,
                )
            )
    return tuple(projects)


__all__ = ["discover_projects"]
