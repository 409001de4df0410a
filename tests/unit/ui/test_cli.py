"""
gitlink — unit tests for the command-line surface

File: tests/unit/ui/test_cli.py

Purpose
- Validate flag-to-config mapping, ``--show-config``, and the exit-code
  contract of ``cli_entrypoint``.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

import pytest

from gitlink.main import ExitCode, cli_entrypoint
from gitlink.observability.logging import shutdown_logging
from gitlink.ui.cli import build_parser, cli_overrides

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


@pytest.fixture(autouse=True)
def _isolated(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.chdir(tmp_path)
    for name in ("GITLINK_LINK_TARGET_URL", "GITLINK_LINK_COMMIT", "GITLINK_INDEXER_EXECUTABLE"):
        monkeypatch.delenv(name, raising=False)
    yield
    shutdown_logging()
    logging.getLogger("gitlink").propagate = True


@pytest.fixture
def fake_indexer(tmp_path: Path) -> Path:
    tool = tmp_path / "tools" / "pdbstr.exe"
    tool.parent.mkdir()
    tool.write_bytes(b"")
    return tool


def test_cli_overrides_map_flags_to_config_keys() -> None:
    args = build_parser().parse_args(
        ["repo", "-c", "Debug", "-u", "https://host/raw", "--ignore", "Tests,Samples", "-j", "2"]
    )

    assert cli_overrides(args) == {
        "link.solution_directory": "repo",
        "link.configuration": "Debug",
        "link.target_url": "https://host/raw",
        "link.ignore_projects": "Tests,Samples",
        "link.jobs": 2,
    }


def test_unset_flags_do_not_override_config() -> None:
    assert cli_overrides(build_parser().parse_args([])) == {}


def test_show_config_prints_effective_json(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = cli_entrypoint(["-c", "Debug", "--indexer-prefix", "wine", "--show-config"])

    assert exit_code == ExitCode.SUCCESS
    payload = json.loads(capsys.readouterr().out)
    assert payload["link"]["configuration"] == "Debug"
    assert payload["indexer"]["command_prefix"] == ["wine"]


def test_run_with_no_projects_succeeds(
    tmp_path: Path, fake_indexer: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    exit_code = cli_entrypoint(
        [str(tmp_path), "-u", "https://host/raw", "-s", "abc1234", "--indexer", str(fake_indexer)]
    )

    assert exit_code == ExitCode.SUCCESS
    err = capsys.readouterr().err
    assert "Using commit sha 'abc1234' as version stamp" in err
    assert "All projects are done. 0 of 0 succeeded" in err


def test_missing_solution_file_exits_with_config_error(
    tmp_path: Path, fake_indexer: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    args = [str(tmp_path), "-f", "Missing.sln", "-u", "https://host/raw"]

    exit_code = cli_entrypoint([*args, "--indexer", str(fake_indexer)])

    assert exit_code == ExitCode.CONFIG_ERROR
    assert "Could not find solution file" in capsys.readouterr().err


def test_unknown_host_exits_with_provider_error(
    tmp_path: Path, fake_indexer: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    exit_code = cli_entrypoint(
        [str(tmp_path), "-u", "ftp://host/repo", "-s", "abc1234", "--indexer", str(fake_indexer)]
    )

    assert exit_code == ExitCode.PROVIDER_ERROR
    assert "ftp://host/repo" in capsys.readouterr().err


def test_missing_indexer_exits_with_config_error(tmp_path: Path) -> None:
    exit_code = cli_entrypoint(
        [str(tmp_path), "-u", "https://host/raw", "--indexer", str(tmp_path / "absent.exe")]
    )

    assert exit_code == ExitCode.CONFIG_ERROR


def test_invalid_flag_value_exits_with_usage_error(capsys: pytest.CaptureFixture[str]) -> None:
    assert cli_entrypoint(["--jobs", "many"]) == 2
    assert "invalid int value" in capsys.readouterr().err


def test_invalid_config_value_exits_with_config_error(capsys: pytest.CaptureFixture[str]) -> None:
    assert cli_entrypoint(["--jobs", "0", "--show-config"]) == ExitCode.CONFIG_ERROR
    assert "link.jobs: must be >= 1" in capsys.readouterr().err


def test_unexpected_errors_exit_with_internal_error(
    tmp_path: Path,
    fake_indexer: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    class ExplodingRunner:
        def __init__(self, settings: object) -> None:
            pass

        def run(self) -> None:
            raise RuntimeError("unexpected state")

    monkeypatch.setattr("gitlink.ui.cli.LinkRunner", ExplodingRunner)

    exit_code = cli_entrypoint([str(tmp_path), "--indexer", str(fake_indexer)])

    assert exit_code == ExitCode.INTERNAL_ERROR
    assert "Traceback" in capsys.readouterr().err
