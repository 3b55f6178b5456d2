"""Loader CLI entry point.

This module loads a local DMF file or the current monthly update.
It maps argparse options onto acquisition and load calls.
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import asdict
from pathlib import Path
from typing import NoReturn, Sequence

from acquire.downloader import acquire_monthly_update
from acquire.integrity import read_checksum_sidecar
from core.config import DmfConfig
from core.constants import DEFAULT_COMMIT_INTERVAL, DEFAULT_DATABASE_NAME
from core.errors import DmfError
from core.logging_config import configure_logging, dated_log_file, get_logger
from core.types import ERROR_POLICIES, AcquiredFile, LoadOptions, LoadSummary
from ingest.pipeline import load_death_index

_LOGGER = get_logger(__name__)

_DESCRIPTION = "Load SSN death index data into the death_index table."
_EPILOG = """Two modes:
  1) If <file> is given, loads <file>. Used for a full file load or to apply an
     historical update.
  2) If -u is given, downloads and applies the current monthly update.
     Meant to be called from cron. Incompatible with <file>.
"""


class _LoaderArgumentParser(argparse.ArgumentParser):
    """Argument parser that exits with status 1 on bad arguments."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = _LoaderArgumentParser(
        prog="dmf-sync",
        description=_DESCRIPTION,
        epilog=_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
    )
    parser.add_argument("file", nargs="?", help="Local full file or update to load")
    parser.add_argument(
        "-u",
        "--update",
        action="store_true",
        help="Download and load the current monthly update; implies --md5",
    )
    parser.add_argument(
        "--md5",
        help="Verify a local file against this MD5 hex digest (default: its .md5 sidecar)",
    )
    parser.add_argument(
        "-c",
        "--commit",
        type=_positive_int,
        default=DEFAULT_COMMIT_INTERVAL,
        help=f"Commit interval in rows (default {DEFAULT_COMMIT_INTERVAL})",
    )
    parser.add_argument(
        "-d",
        "--database",
        default=DEFAULT_DATABASE_NAME,
        help=f"Target database (default '{DEFAULT_DATABASE_NAME}')",
    )
    parser.add_argument(
        "--on-error",
        choices=ERROR_POLICIES,
        default="abort",
        help="On a failed row: abort the whole load, or skip the row and continue",
    )
    parser.add_argument(
        "--init-schema",
        action="store_true",
        help="Create the death_index table if it does not exist",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Raise log level; may be repeated",
    )
    parser.add_argument("-h", "--help", action="store_true", help="Show this message and exit")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the loader CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.help or args.update == bool(args.file):
        parser.print_help()
        return 1
    try:
        config = DmfConfig.from_env()
        configure_logging(args.verbose, dated_log_file(config.log_dir))
    except (DmfError, OSError) as error:
        print(f"error: {error}", file=sys.stderr)
        return 1
    try:
        summary = _run_load(config, args)
    except DmfError as error:
        _LOGGER.critical("load_failed", error=str(error), error_type=type(error).__name__)
        return 1
    _LOGGER.info("load_complete", **asdict(summary), skipped=summary.skipped)
    return 0


def _run_load(config: DmfConfig, args: argparse.Namespace) -> LoadSummary:
    """Resolve the source file and reconcile it into the target database."""
    if args.update:
        _LOGGER.info("web_update_started")
        source = acquire_monthly_update(config)
    else:
        _LOGGER.info("local_load_started", path=args.file)
        source_path = Path(args.file).expanduser()
        md5 = args.md5 or read_checksum_sidecar(source_path)
        if md5 and not args.md5:
            _LOGGER.info("checksum_sidecar_found", path=str(source_path), md5=md5)
        source = AcquiredFile(path=source_path, md5=md5)
    _LOGGER.info("using_database", database=args.database, host=config.db_host)
    _LOGGER.info("commit_interval", rows=args.commit)
    options = LoadOptions(commit_interval=args.commit, error_policy=args.on_error)
    return load_death_index(
        source,
        config.database_url(args.database),
        options,
        init_schema=args.init_schema,
    )


def _positive_int(raw_value: str) -> int:
    """Parse a positive integer argument."""
    try:
        value = int(raw_value)
    except ValueError as error:
        raise argparse.ArgumentTypeError(f"expected an integer, got '{raw_value}'") from error
    if value < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value}")
    return value
