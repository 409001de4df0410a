"""Unit tests for the run summary narrative and structured completion event."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any
from uuid import uuid4

from gitlink.domain.models import (
    FailureReason,
    LinkResult,
    LinkStatus,
    Project,
    RunResult,
    VerificationWarning,
    WarningKind,
)
from gitlink.linking.report import Reporter, summary_line
from gitlink.observability.logging import LogScope


class RecordingHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__(logging.DEBUG)
        self.lines: list[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.lines.append(record.getMessage())


class FakeEventLogger:
    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []

    def info(self, event: str, **fields: Any) -> None:
        self.events.append((event, fields))


def _project(name: str) -> Project:
    return Project(
        name=name,
        project_file=Path(f"/repo/{name}/{name}.csproj"),
        compiled_files=(),
        pdb_file=Path(f"/repo/{name}/bin/{name}.pdb"),
    )


def _scope() -> tuple[LogScope, RecordingHandler]:
    handler = RecordingHandler()
    logger = logging.getLogger(f"gitlink.tests.report.{uuid4().hex}")
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    logger.addHandler(handler)
    return LogScope(logger), handler


def _mixed_result() -> RunResult:
    warning = VerificationWarning(kind=WarningKind.MISSING, path=Path("/repo/App/A.cs"))
    return RunResult(
        results=(
            LinkResult(project=_project("App"), status=LinkStatus.SUCCEEDED, warnings=(warning,)),
            LinkResult.failed(_project("Lib"), FailureReason.MISSING_SYMBOL_FILE, "no pdb"),
            LinkResult.skipped(_project("App.Tests")),
        )
    )


def test_summary_line_excludes_skipped_projects() -> None:
    assert summary_line(_mixed_result()) == "All projects are done. 1 of 2 succeeded"
    assert summary_line(RunResult()) == "All projects are done. 0 of 0 succeeded"


def test_report_lists_failed_projects() -> None:
    scope, handler = _scope()
    events = FakeEventLogger()

    is_success = Reporter(scope, logger=events).report(
        _mixed_result(), revision="abc123", provider_name="github"
    )

    assert is_success is False
    assert handler.lines == [
        "All projects are done. 1 of 2 succeeded",
        "",
        "The following projects have failed:",
        "  * Lib",
    ]


def test_report_emits_structured_completion_event() -> None:
    scope, _ = _scope()
    events = FakeEventLogger()

    Reporter(scope, logger=events).report(
        _mixed_result(), revision="abc123", provider_name="github"
    )

    ((name, fields),) = events.events
    assert name == "link_run_completed"
    assert fields == {
        "revision": "abc123",
        "provider": "github",
        "succeeded": ["App"],
        "failed": ["Lib"],
        "skipped": ["App.Tests"],
        "warning_count": 1,
        "is_success": False,
    }


def test_successful_run_prints_only_the_summary() -> None:
    scope, handler = _scope()
    result = RunResult(results=(LinkResult(project=_project("App"), status=LinkStatus.SUCCEEDED),))

    assert Reporter(scope, logger=FakeEventLogger()).report(
        result, revision="abc123", provider_name="custom"
    )
    assert handler.lines == ["All projects are done. 1 of 1 succeeded"]
