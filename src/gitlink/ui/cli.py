"""Command-line interface for gitlink."""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from typing import Any

from gitlink.config import dump_effective_config, load_config
from gitlink.config.schema import LinkSettings
from gitlink.linking.runner import LinkRunner
from gitlink.main import ExitCode
from gitlink.observability.logging import LoggingConfig, setup_logging, shutdown_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gitlink",
        description=(
            "gitlink — index PDB symbol files with source server data so debuggers\n"
            "download each source file from the repository host.\n\n"
            "Examples:\n"
            "  gitlink c:\\source\\catel -u https://github.com/catel/catel\n"
            "  gitlink . -f Catel.sln -c Debug -b develop\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "solution_directory",
        nargs="?",
        default=None,
        help="Directory containing the solution(s) (default: link.solution_directory).",
    )
    parser.add_argument(
        "-f",
        "--solution-file",
        default=None,
        help="Solution file name, relative to the directory.",
    )
    parser.add_argument(
        "-c",
        "--configuration",
        default=None,
        help="Build configuration (default: Release).",
    )
    parser.add_argument(
        "-p",
        "--platform",
        default=None,
        help="Build platform (default: AnyCPU).",
    )
    parser.add_argument(
        "-d",
        "--pdb-directory",
        default=None,
        help="Directory holding the pdb files to index.",
    )
    parser.add_argument(
        "-u",
        "--url",
        dest="target_url",
        default=None,
        help="Repository URL; selects the provider.",
    )
    parser.add_argument(
        "-b",
        "--branch",
        default=None,
        help="Branch whose head commit is the revision stamp.",
    )
    parser.add_argument(
        "-s",
        "--commit",
        default=None,
        help="Explicit commit id used as the revision stamp.",
    )
    parser.add_argument(
        "-l",
        "--log-file",
        default=None,
        help="Also write JSON-lines logs to this file.",
    )
    parser.add_argument(
        "--ignore",
        default=None,
        help="Comma-separated project name patterns to skip.",
    )
    parser.add_argument(
        "-j", "--jobs", type=int, default=None, help="Projects linked in parallel."
    )
    parser.add_argument(
        "--indexer", default=None, help="Path or name of the pdbstr executable."
    )
    parser.add_argument(
        "--indexer-prefix",
        default=None,
        help="Comma-separated launcher prepended to the indexer command (e.g. wine).",
    )
    parser.add_argument(
        "--timeout", type=float, default=None, help="Indexer timeout in seconds."
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=None,
        help="Enable debug logging.",
    )
    parser.add_argument(
        "--config",
        dest="config_path",
        default=None,
        help="Path to gitlink TOML config (default: ./gitlink.toml if present).",
    )
    parser.add_argument(
        "--show-config",
        action="store_true",
        default=False,
        help="Print the effective configuration as JSON and exit.",
    )
    return parser


def cli_overrides(args: argparse.Namespace) -> dict[str, Any]:
    """Map parsed arguments onto dotted config keys; unset flags are omitted."""

    mapping = {
        "link.solution_directory": args.solution_directory,
        "link.solution_file": args.solution_file,
        "link.configuration": args.configuration,
        "link.platform": args.platform,
        "link.pdb_directory": args.pdb_directory,
        "link.target_url": args.target_url,
        "link.branch": args.branch,
        "link.commit": args.commit,
        "link.ignore_projects": args.ignore,
        "link.jobs": args.jobs,
        "indexer.executable": args.indexer,
        "indexer.command_prefix": args.indexer_prefix,
        "indexer.timeout_seconds": args.timeout,
        "logging.log_file": args.log_file,
        "logging.debug": args.debug,
    }
    return {key: value for key, value in mapping.items() if value is not None}


def run_cli(argv: Sequence[str] | None = None) -> int:
    """Parse argv, run one link pass, and return the process exit code."""

    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    config = load_config(args.config_path, cli_overrides=cli_overrides(args))
    if args.show_config:
        print(dump_effective_config(config))
        return int(ExitCode.SUCCESS)

    settings = LinkSettings.from_config(config)
    handle = setup_logging(
        LoggingConfig(level=settings.log_level, debug=settings.debug, log_file=settings.log_file)
    )
    try:
        outcome = LinkRunner(settings).run()
    finally:
        shutdown_logging(handle)
    return int(ExitCode.SUCCESS if outcome.is_success else ExitCode.PROJECTS_FAILED)


def main(argv: Sequence[str] | None = None) -> int:
    return run_cli(argv)


__all__ = ["build_parser", "cli_overrides", "main", "run_cli"]
