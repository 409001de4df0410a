"""Run summary: human narrative plus one structured ``link_run_completed`` event."""

from __future__ import annotations

from typing import Any

import structlog

from gitlink.domain.models import RunResult
from gitlink.observability.logging import LogScope


def summary_line(result: RunResult) -> str:
    """``All projects are done. N of M succeeded``; skipped projects are not counted."""

    return f"All projects are done. {len(result.succeeded)} of {result.attempted_count} succeeded"


class Reporter:
    """Aggregates a RunResult into log output."""

    def __init__(
        self,
        scope: LogScope | None = None,
        *,
        logger: Any | None = None,
    ) -> None:
        self._scope = scope or LogScope()
        self._logger = logger if logger is not None else structlog.get_logger(__name__)

    def report(
        self,
        result: RunResult,
        *,
        revision: str,
        provider_name: str,
    ) -> bool:
        """Log the summary and return whether the run succeeded."""

        self._scope.info(summary_line(result))
        if result.failed:
            self._scope.blank()
            self._scope.info("The following projects have failed:")
            with self._scope.indented():
                for project in result.failed:
                    self._scope.info("* %s", project.name)

        self._logger.info(
            "link_run_completed",
            revision=revision,
            provider=provider_name,
            succeeded=[project.name for project in result.succeeded],
            failed=[project.name for project in result.failed],
            skipped=[project.name for project in result.skipped],
            warning_count=sum(len(item.warnings) for item in result.results),
            is_success=result.is_success,
        )
        return result.is_success


__all__ = ["Reporter", "summary_line"]
