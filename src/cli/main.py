"""RecordLoader CLI entry points.
This module exposes commands for loading records and inspecting config.
It maps argparse commands onto SDK calls.
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Sequence

from cli.load_command import add_load_command, load_overrides, run_load_command
from core.config import LoaderConfig
from core.errors import RecordLoaderConfigError, RecordLoaderDependencyError
from core.logging_config import configure_logging
from ingest.loader_sdk import RecordLoaderClient


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(
        prog="recordloader",
        description="Load records into a content store",
    )
    parser.add_argument("--config-file", help="YAML config file; overrides RECORDLOADER_* env")
    parser.add_argument("--log-level", help="Override RECORDLOADER_LOG_LEVEL for this command")
    subparsers = parser.add_subparsers(dest="command", required=True)
    add_load_command(subparsers)
    _add_check_config_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the RecordLoader CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = _build_config(args)
        configure_logging(args.log_level or config.log_level)
    except (RecordLoaderConfigError, RecordLoaderDependencyError) as error:
        print(f"config_error={error}", file=sys.stderr)
        return 2
    client = RecordLoaderClient(config)
    if args.command == "load":
        return run_load_command(client, args)
    if args.command == "check-config":
        return _run_check_config_command(client)
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_config(args: argparse.Namespace) -> LoaderConfig:
    """Resolve config from env, optional file, and command flags."""
    overrides = load_overrides(args) if args.command == "load" else {}
    if args.log_level:
        overrides["log_level"] = args.log_level
    return LoaderConfig.from_sources(args.config_file, overrides)


def _run_check_config_command(client: RecordLoaderClient) -> int:
    """Print resolved configuration as JSON."""
    print(json.dumps(client.config.describe(), indent=2, sort_keys=True))
    return 0


def _add_check_config_command(subparsers: Any) -> None:
    """Register check-config subcommand."""
    subparsers.add_parser("check-config", help="Print resolved configuration and exit")
