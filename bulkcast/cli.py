#!/usr/bin/env python3
"""CLI entry point for bulkcast.

Read commands line by line, group them into bulks and print each bulk to
the console and to a ``bulk<seconds>.log`` file.

Usage:
    bulkcast 3 < commands.txt
    bulkcast --config bulkcast.yaml --input commands.txt
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import TextIO

from .config import BulkConfig, load_config, parse_bulk_size
from .engine import UnterminatedBlockPolicy
from .errors import ConfigError, UnbalancedBlockError
from .gate import UnmatchedClosePolicy
from .pipeline import run

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_RUNTIME_ERROR = 2
EXIT_INTERRUPTED = 130


# ---------------------------------------------------------------------------
# CLI Argument Parsing
# ---------------------------------------------------------------------------


def _create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="bulkcast",
        description="Group commands from standard input into bulks.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Bulks of three commands, printed and written to ./bulk<seconds>.log
    bulkcast 3

    # Console only, read from a file
    bulkcast 3 --no-files --input commands.txt

    # Settings from a YAML file
    bulkcast --config bulkcast.yaml
""",
    )

    # Bulk size is validated by hand so a missing value exits with 1.
    parser.add_argument(
        "bulk_size",
        nargs="?",
        default=None,
        help="Number of commands per bulk (positive integer)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a YAML config file",
    )
    parser.add_argument(
        "--input",
        type=Path,
        default=None,
        help="Read commands from FILE instead of standard input",
    )

    files = parser.add_mutually_exclusive_group()
    files.add_argument(
        "--log-dir",
        type=Path,
        default=None,
        help="Directory for bulk<seconds>.log files (default: .)",
    )
    files.add_argument(
        "--no-files",
        action="store_true",
        help="Do not write bulk log files",
    )

    parser.add_argument(
        "--no-console",
        action="store_true",
        help="Do not print bulks to standard output",
    )
    parser.add_argument(
        "--on-unterminated-block",
        choices=[p.value for p in UnterminatedBlockPolicy],
        default=None,
        help="What to do with an open block at end of input (default: drop)",
    )
    parser.add_argument(
        "--on-unmatched-close",
        choices=[p.value for p in UnmatchedClosePolicy],
        default=None,
        help="What to do with a close marker outside a block (default: ignore)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (default: WARNING)",
    )

    return parser


def setup_logging(level: str) -> None:
    """Configure logging on stderr.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def build_config(args: argparse.Namespace) -> BulkConfig:
    """Merge the config file (if any) with command-line overrides.

    Raises:
        ConfigError: If the bulk size is missing or any value is invalid.
    """
    data: dict = load_config(args.config) if args.config is not None else {}
    data = dict(data)
    blocks = dict(data.get("blocks") or {})
    sinks = dict(data.get("sinks") or {})

    if args.bulk_size is not None:
        data["bulk_size"] = parse_bulk_size(args.bulk_size)
    if args.on_unterminated_block is not None:
        blocks["unterminated"] = args.on_unterminated_block
    if args.on_unmatched_close is not None:
        blocks["unmatched_close"] = args.on_unmatched_close
    if args.no_files:
        sinks["log_dir"] = None
    elif args.log_dir is not None:
        sinks["log_dir"] = str(args.log_dir)
    if args.no_console:
        sinks["console"] = False

    data["blocks"] = blocks
    data["sinks"] = sinks
    return BulkConfig.from_dict(data)


def _run_input(config: BulkConfig, input_path: Path | None, stdout: TextIO | None) -> int:
    if input_path is None:
        return run(config, sys.stdin, stdout=stdout)
    with open(input_path, encoding="utf-8") as f:
        return run(config, f, stdout=stdout)


# ---------------------------------------------------------------------------
# Main Entry Point
# ---------------------------------------------------------------------------


def main(args: list[str] | None = None, *, stdout: TextIO | None = None) -> int:
    """Run bulkcast.

    Args:
        args: Command line arguments (defaults to sys.argv[1:]).
        stdout: Stream for console bulks (defaults to sys.stdout).

    Returns:
        Exit code: 0 on success, 1 on a configuration error, 2 on an
        I/O failure or unbalanced blocks, 130 when interrupted.
    """
    parsed = _create_parser().parse_args(args)
    setup_logging(parsed.log_level)

    try:
        config = build_config(parsed)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    try:
        _run_input(config, parsed.input, stdout)
    except UnbalancedBlockError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except (OSError, UnicodeDecodeError) as e:
        logger.error("io_failure", extra={"error": str(e)})
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except KeyboardInterrupt:
        return EXIT_INTERRUPTED

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
