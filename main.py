# main.py

"""Entry point for the logam_mulia gold price scraper CLI."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from logam_mulia.config.logging_config import setup_logging
from logam_mulia.config.settings import Settings

logger = logging.getLogger("logam_mulia.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    valid_ids = ", ".join(Settings.source_ids())

    parser = argparse.ArgumentParser(
        prog="logam_mulia",
        description="Indonesian gold price scraper with price deltas.",
        epilog=f"Supported sites: {valid_ids}",
    )
    parser.add_argument(
        "site",
        nargs="?",
        default=None,
        help="Source id to scrape.",
    )
    parser.add_argument(
        "-c",
        "--category",
        default=None,
        help="Only show one product category (e.g. antam-certicard).",
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=["json", "rss", "table"],
        default="json",
        dest="output_format",
        help="Output format (default: json).",
    )
    parser.add_argument(
        "-d",
        "--deltas",
        action="store_true",
        default=False,
        help="Annotate prices with the change since the previous update.",
    )
    parser.add_argument(
        "--history",
        type=float,
        default=None,
        metavar="WEIGHT",
        help="Show stored history for one weight (needs --category).",
    )
    parser.add_argument(
        "--db",
        default=None,
        help="Path to the price history database.",
    )
    parser.add_argument(
        "--list-sources",
        action="store_true",
        default=False,
        dest="list_sources",
        help="List supported sites and exit.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Echo progress logs to stderr, not only warnings.",
    )
    return parser


def main() -> None:
    """Route to the requested CLI action."""
    parser = _build_parser()
    args = parser.parse_args()

    log_file = setup_logging(
        run_name=args.site or "cli", verbose=args.verbose
    )
    logger.info("logam_mulia starting, log file: %s", log_file)

    if args.db is not None:
        Settings.PRICE_DB_PATH = Path(args.db)

    from logam_mulia.cli import runner

    if args.list_sources:
        sys.exit(runner.list_sources())
    if args.site is None:
        parser.print_help()
        sys.exit(2)
    if args.history is not None:
        sys.exit(
            runner.run_history(args.site, args.category, args.history)
        )

    exit_code = asyncio.run(
        runner.cli_scrape(
            site=args.site,
            category=args.category,
            output_format=args.output_format,
            with_deltas=args.deltas,
        )
    )
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
