"""
gitlink — unit tests for config schema

File: tests/unit/config/test_schema.py

Purpose
- Validate defaults, strict validation issues, deep merge, and typed settings.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from gitlink.config.schema import (
    DEFAULT_CONFIG,
    ConfigValidationError,
    LinkSettings,
    assert_valid_config,
    default_config,
    merge_config,
    validate_config,
)


def test_default_config_is_a_deep_copy() -> None:
    config = default_config()
    config["link"]["ignore_projects"].append("Tests")

    assert DEFAULT_CONFIG["link"]["ignore_projects"] == []
    assert default_config()["link"]["ignore_projects"] == []


def test_defaults_validate_cleanly() -> None:
    normalized, issues = validate_config(default_config())

    assert issues == ()
    assert normalized == default_config()


def test_merge_config_overlays_nested_values_without_mutating_base() -> None:
    base = default_config()
    merged = merge_config(base, {"link": {"platform": "x64"}, "logging": {"debug": True}})

    assert merged["link"]["platform"] == "x64"
    assert merged["link"]["configuration"] == "Release"
    assert merged["logging"]["debug"] is True
    assert base["link"]["platform"] == "AnyCPU"


def test_non_mapping_root_is_rejected() -> None:
    normalized, issues = validate_config(["link"])

    assert normalized is None
    assert [(issue.path, issue.message) for issue in issues] == [
        ("<root>", "expected object, got list")
    ]


@pytest.mark.parametrize(
    ("payload", "path", "fragment"),
    [
        ({"link": {"configuration": ""}}, "link.configuration", "must not be empty"),
        ({"link": {"jobs": 0}}, "link.jobs", "must be >= 1"),
        ({"link": {"jobs": True}}, "link.jobs", "expected integer"),
        ({"link": {"ignore_projects": ["App", ""]}}, "link.ignore_projects[1]", "non-empty"),
        ({"link": {"commit": 1234}}, "link.commit", "expected string"),
        ({"indexer": {"executable": "  "}}, "indexer.executable", "must not be empty"),
        ({"indexer": {"timeout_seconds": -1}}, "indexer.timeout_seconds", "must be >= 0"),
        ({"logging": {"level": "LOUD"}}, "logging.level", "invalid value 'LOUD'"),
        ({"logging": {"debug": "yes"}}, "logging.debug", "expected boolean"),
        ({"indexer": "pdbstr"}, "indexer", "expected object"),
    ],
)
def test_invalid_values_report_issue_paths(payload: dict, path: str, fragment: str) -> None:
    normalized, issues = validate_config(merge_config(default_config(), payload))

    assert normalized is None
    assert any(issue.path == path and fragment in issue.message for issue in issues), issues


def test_assert_valid_config_renders_every_issue() -> None:
    payload = merge_config(default_config(), {"link": {"jobs": 0}, "bogus": 1})

    with pytest.raises(ConfigValidationError) as excinfo:
        assert_valid_config(payload)

    message = str(excinfo.value)
    assert message.startswith("invalid config:\n")
    assert "- bogus: unknown field" in message
    assert "- link.jobs: must be >= 1" in message


def test_validation_normalizes_text_and_lists() -> None:
    normalized = assert_valid_config(
        merge_config(
            default_config(),
            {
                "link": {"commit": "  abc123  ", "ignore_projects": "Tests, Samples"},
                "logging": {"level": "debug"},
            },
        )
    )

    assert normalized["link"]["commit"] == "abc123"
    assert normalized["link"]["ignore_projects"] == ["Tests", "Samples"]
    assert normalized["logging"]["level"] == "DEBUG"


def test_link_settings_from_config_maps_empty_text_to_none() -> None:
    config = merge_config(
        default_config(),
        {
            "link": {"solution_directory": "/repo", "pdb_directory": "/repo/out", "jobs": 3},
            "indexer": {"command_prefix": ["wine"], "timeout_seconds": 30},
            "logging": {"log_file": "/tmp/gitlink.log"},
        },
    )

    settings = LinkSettings.from_config(config)

    assert settings.solution_directory == Path("/repo")
    assert settings.pdb_directory == Path("/repo/out")
    assert settings.solution_file is None
    assert settings.target_url is None
    assert settings.commit is None
    assert settings.jobs == 3
    assert settings.indexer_executable == "pdbstr.exe"
    assert settings.indexer_command_prefix == ("wine",)
    assert settings.indexer_timeout_seconds == 30.0
    assert settings.log_file == Path("/tmp/gitlink.log")
    assert settings.debug is False
