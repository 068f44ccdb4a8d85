#!/usr/bin/env python3
"""
SymDedup CLI: find duplicate files and consolidate them into a content-addressed store.
Redundant copies are soft-deleted to a trash directory and optionally replaced by symlinks.
"""
from __future__ import annotations  # Enable postponed evaluation of annotations (PEP 563)
import argparse
import dataclasses
import logging
import os
import signal
import sys
import threading
import time
from typing import NoReturn, Optional

from symdedup.commands import DeduplicationCommand
from symdedup.core.config import DEFAULT_CONFIG_FILE, load_configuration
from symdedup.core.errors import ConfigurationError, RollbackError
from symdedup.core.models import Configuration

logger = logging.getLogger("symdedup")

LOG_FORMAT = "%(levelname)-8s | %(name)-25s | %(message)s"

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INTERRUPTED = 130

EPILOG_TEXT = """
Examples:
  Preview what would happen (nothing is moved)
  %(prog)s config.yaml --dry-run

  Run with a dedicated metadata cache and 8 workers
  %(prog)s config.yaml --metadata ~/.cache/symdedup.csv --workers 8

  Show per-file hashing and a final statistics summary
  %(prog)s config.yaml --verbose
"""


class CLIApplication:
    """Main CLI application controller."""

    def __init__(self):
        self.start_time: float = time.time()
        self.verbose: bool = False
        self.quiet: bool = False
        self.stop_event = threading.Event()

    @staticmethod
    def parse_args(args=None) -> argparse.Namespace:
        """Parse and validate command-line arguments."""
        parser = argparse.ArgumentParser(
            prog="symdedup",
            description="SymDedup: consolidate duplicate files into a content-addressed store",
            formatter_class=argparse.RawTextHelpFormatter,
            epilog=EPILOG_TEXT
        )

        parser.add_argument(
            "config",
            nargs="?",
            default=DEFAULT_CONFIG_FILE,
            help=f"YAML configuration file. Default: {DEFAULT_CONFIG_FILE}"
        )
        parser.add_argument(
            "--metadata",
            type=str,
            metavar="PATH",
            help="Metadata cache (CSV) location, overrides the 'metadata' config key"
        )
        parser.add_argument(
            "--dry-run", "-n",
            action="store_true",
            dest="dry_run",
            help="Only log what would be done, regardless of the 'dryRun' config key"
        )
        parser.add_argument(
            "--workers", "-w",
            type=int,
            metavar="N",
            help="Worker threads for hashing and resolution, overrides 'maxWorkers'"
        )

        verbosity = parser.add_mutually_exclusive_group()
        verbosity.add_argument(
            "--quiet", "-q",
            action="store_true",
            help="Only log warnings and errors"
        )
        verbosity.add_argument(
            "--verbose", "-v",
            action="store_true",
            help="Log every hashed file and show detailed statistics"
        )

        return parser.parse_args(args)

    def configure_logging(self) -> None:
        level = logging.INFO
        if self.verbose:
            level = logging.DEBUG
        elif self.quiet:
            level = logging.WARNING
        logging.basicConfig(level=level, format=LOG_FORMAT, force=True)

    def create_configuration(self, args: argparse.Namespace) -> Configuration:
        """Load the YAML configuration and apply command-line overrides."""
        try:
            config = load_configuration(args.config)
            overrides = {}
            if args.dry_run:
                overrides["dry_run"] = True
            if args.metadata:
                overrides["metadata"] = args.metadata
            if args.workers is not None:
                overrides["max_workers"] = args.workers
            return dataclasses.replace(config, **overrides) if overrides else config
        except ConfigurationError as e:
            self.error_exit(f"Configuration error: {e}")

    def handle_interrupt(self, signum, frame) -> None:
        """First Ctrl+C requests a graceful stop; the second one aborts immediately."""
        if self.stop_event.is_set():
            raise KeyboardInterrupt
        logger.info("Interrupt detected! Shutting down gracefully.")
        self.stop_event.set()

    def progress_callback(self, stage: str, current: int, total: Optional[int]) -> None:
        """CLI progress callback - shows progress in console."""
        if not self.verbose:
            return

        if total and total > 0:
            percent = (current / total) * 100
            sys.stderr.write(f"\r  [{stage}] {current}/{total} ({percent:.1f}%)")
        else:
            sys.stderr.write(f"\r  [{stage}] {current} files processed...")
        sys.stderr.flush()

    @staticmethod
    def error_exit(message: str, code: int = EXIT_ERROR) -> NoReturn:
        """Log error and exit."""
        logger.error(message)
        sys.exit(code)

    def run(self, argv=None) -> int:
        """Main entry point. Returns the process exit status."""
        args = self.parse_args(argv)
        self.verbose = args.verbose
        self.quiet = args.quiet
        self.configure_logging()

        config = self.create_configuration(args)
        signal.signal(signal.SIGINT, self.handle_interrupt)

        try:
            with DeduplicationCommand(config) as command:
                _, resolution_stats = command.execute(
                    stopped_flag=self.stop_event.is_set,
                    progress_callback=self.progress_callback if self.verbose else None
                )
        except RollbackError as e:
            logger.critical(f"{e}. Stopping to avoid losing track of the file.")
            return EXIT_ERROR

        if self.verbose:
            sys.stderr.write("\n")

        if self.stop_event.is_set():
            logger.info("Stopped before completion; metadata cache flushed and closed")
            return EXIT_INTERRUPTED

        if resolution_stats and self.verbose:
            logger.info(resolution_stats.print_summary())
            logger.info(f"Completed in {time.time() - self.start_time:.2f} seconds")
        return EXIT_OK


def main() -> None:
    """Application entry point."""
    app = CLIApplication()
    try:
        sys.exit(app.run())
    except KeyboardInterrupt:
        logger.warning("Operation cancelled by user (Ctrl+C)")
        sys.exit(EXIT_INTERRUPTED)
    except Exception as e:
        if os.environ.get("DEBUG"):
            raise
        logger.error(f"Unexpected error: {e}")
        sys.exit(EXIT_ERROR)


if __name__ == "__main__":
    main()
