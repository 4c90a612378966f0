"""Load command wiring for RecordLoader CLI."""

from __future__ import annotations

import argparse
from typing import Any

from core.constants import SUPPORTED_DOCUMENT_FORMATS, SUPPORTED_LOADER_TYPES
from core.errors import RecordLoaderIOError
from core.types import LoadOptions
from ingest.loader_sdk import RecordLoaderClient

# CLI flag dest -> config key; values are passed through config validation.
LOAD_OVERRIDE_KEYS = {
    "connection_uri": "connection_uri",
    "threads": "thread_count",
    "uri_prefix": "uri_prefix",
    "uri_suffix": "uri_suffix",
    "strip_prefix": "input_strip_prefix",
    "skip_existing": "skip_existing",
    "error_existing": "error_existing",
    "document_format": "document_format",
    "loader": "loader_type",
    "id_field": "id_field",
    "delimiter": "delimiter",
    "encoding": "input_encoding",
    "normalize_paths": "input_normalize_paths",
    "filename_ids": "use_filename_ids",
    "filename_collection": "use_filename_collection",
}


def add_load_command(subparsers: Any) -> None:
    """Register load subcommand."""
    parser = subparsers.add_parser("load", help="Load records into a content store")
    parser.add_argument("inputs", nargs="+", help="Input files, directories, or zip archives")
    parser.add_argument("--connection-uri", help="file://<dir> or s3://bucket/prefix destination")
    parser.add_argument("--threads", help="Maximum concurrent loaders")
    parser.add_argument("--start-id", help="Skip records until this identifier is seen")
    parser.add_argument("--uri-prefix", help="Prefix for every destination URI")
    parser.add_argument("--uri-suffix", help="Suffix for every destination URI")
    parser.add_argument("--strip-prefix", help="Literal prefix removed from record ids")
    parser.add_argument(
        "--skip-existing",
        action="store_true",
        default=None,
        help="Skip records whose URI already exists",
    )
    parser.add_argument(
        "--error-existing",
        action="store_true",
        default=None,
        help="Fail records whose URI already exists",
    )
    parser.add_argument(
        "--format",
        dest="document_format",
        choices=SUPPORTED_DOCUMENT_FORMATS,
        help="Document format for loaded records",
    )
    parser.add_argument("--loader", choices=SUPPORTED_LOADER_TYPES, help="Record discovery strategy")
    parser.add_argument("--id-field", help="JSON field or column holding record ids")
    parser.add_argument("--delimiter", help="Column delimiter for delimited inputs")
    parser.add_argument("--encoding", help="Input character encoding")
    parser.add_argument(
        "--normalize-paths",
        action="store_true",
        default=None,
        help="Coalesce backslashes in record paths into '/'",
    )
    parser.add_argument(
        "--filename-ids",
        action="store_true",
        default=None,
        help="Use escaped record paths as ids without the file basename",
    )
    parser.add_argument(
        "--filename-collection",
        action="store_true",
        default=None,
        help="Tag documents with their source file name",
    )


def load_overrides(args: argparse.Namespace) -> dict[str, str]:
    """Collect explicitly passed load flags as config override strings."""
    overrides: dict[str, str] = {}
    for dest, config_key in LOAD_OVERRIDE_KEYS.items():
        value = getattr(args, dest, None)
        if value is not None:
            overrides[config_key] = str(value).lower() if isinstance(value, bool) else str(value)
    return overrides


def run_load_command(client: RecordLoaderClient, args: argparse.Namespace) -> int:
    """Execute a load job and print its summary."""
    options = LoadOptions(inputs=tuple(args.inputs), start_id=args.start_id)
    try:
        summary = client.load(options)
    except RecordLoaderIOError as error:
        print(f"load_error={error}")
        return 1
    print(f"work_units={summary.work_units}")
    print(f"committed={summary.committed}")
    print(f"skipped={summary.skipped}")
    print(f"failed_units={summary.failed_units}")
    print(f"bytes_loaded={summary.bytes_loaded}")
    print(f"elapsed_seconds={summary.elapsed_seconds:.3f}")
    if summary.halted:
        print(f"halted={summary.halt_reason or '-'}")
        return 1
    return 0 if summary.failed_units == 0 else 1
