"""CLI entry point."""

import argparse
import os
from typing import Optional, Sequence

from common.logging_config import setup_logging
from cli.repl import repl_loop

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="s3duplex",
        description="Interactive upload/download shell for S3-compatible endpoints",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Shortcut for --log-level DEBUG",
    )

    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=os.getenv("LOG_LEVEL", "WARNING").upper(),
        help="Logging level (default: from LOG_LEVEL env var or WARNING)",
    )

    args = parser.parse_args(argv)
    if args.debug:
        args.log_level = "DEBUG"
    return args


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Entry point for CLI."""
    args = parse_args(argv)

    logger = setup_logging('cli', log_level=args.log_level)
    setup_logging('storage_client', log_level=args.log_level)
    if args.debug:
        logger.info("Debug logging enabled")

    logger.info("CLI starting...")
    try:
        repl_loop()
    except Exception as e:
        logger.error(f"CLI error: {e}", exc_info=True)
        raise
    finally:
        logger.info("CLI exiting")


if __name__ == "__main__":
    main()
