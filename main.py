# main.py

"""Entry point for the pricewise price tracker CLI."""

import argparse
import logging
import sys

from pricewise.config.logging_config import setup_logging
from pricewise.config.settings import Settings

logger = logging.getLogger("pricewise.main")


def _add_user(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-u",
        "--user",
        required=True,
        dest="user_id",
        help="Owner id of the tracked products.",
    )


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    trackable = ", ".join(Settings.TRACKABLE_VENDORS)
    searchable = ", ".join(Settings.SEARCHABLE_VENDORS)

    parser = argparse.ArgumentParser(
        prog="pricewise",
        description="Price tracker for Indian e-commerce sites.",
        epilog=f"Trackable: {trackable}. Searched: {searchable}.",
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=["json", "table"],
        default="table",
        dest="output_format",
        help="Output format (default: table).",
    )
    parser.add_argument(
        "--db",
        default=None,
        dest="db_path",
        help="SQLite database path (default: data/pricewise.db).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Echo INFO logs to stderr as well as the run log.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    track = commands.add_parser("track", help="Track a product URL.")
    track.add_argument("url")
    _add_user(track)

    list_cmd = commands.add_parser("list", help="List tracked products.")
    _add_user(list_cmd)

    history = commands.add_parser("history", help="Show price history.")
    history.add_argument("product_id")
    _add_user(history)

    recommend = commands.add_parser(
        "recommend", help="Buy-or-wait recommendation.",
    )
    recommend.add_argument("product_id")
    _add_user(recommend)

    search = commands.add_parser(
        "search", help="Search other platforms for a product.",
    )
    search.add_argument("name")
    search.add_argument("-b", "--brand", default=None)
    search.add_argument(
        "-p",
        "--product-id",
        default=None,
        dest="product_id",
        help="Save matches to this tracked product's history.",
    )

    delete = commands.add_parser("delete", help="Stop tracking a product.")
    delete.add_argument("product_id")
    _add_user(delete)

    alert = commands.add_parser("alert", help="Set a target-price alert.")
    alert.add_argument("product_id")
    alert.add_argument("target_price", type=float)
    _add_user(alert)

    commands.add_parser("daily", help="Refresh every tracked product.")
    return parser


def _dispatch(args: argparse.Namespace) -> int:
    """Run the chosen command and return its exit code."""
    from pricewise.api.handlers import RequestHandlers
    from pricewise.cli import runner

    handlers = RequestHandlers.from_settings(args.db_path)
    fmt = args.output_format
    try:
        if args.command == "track":
            return runner.run_track(handlers, args.url, args.user_id, fmt)
        if args.command == "list":
            return runner.run_list(handlers, args.user_id, fmt)
        if args.command == "history":
            return runner.run_history(
                handlers, args.product_id, args.user_id, fmt,
            )
        if args.command == "recommend":
            return runner.run_recommend(
                handlers, args.product_id, args.user_id, fmt,
            )
        if args.command == "search":
            return runner.run_search(
                handlers, args.name, args.brand, args.product_id, fmt,
            )
        if args.command == "delete":
            return runner.run_delete(handlers, args.product_id, args.user_id)
        if args.command == "alert":
            return runner.run_alert(
                handlers, args.product_id, args.target_price, args.user_id,
            )
        return runner.run_daily(handlers, fmt)
    finally:
        handlers.close()


def main() -> None:
    """Parse arguments and run one command."""
    args = _build_parser().parse_args()
    log_file = setup_logging(
        console_level=logging.INFO if args.verbose else logging.WARNING,
    )
    logger.info("pricewise starting, log file: %s", log_file)

    try:
        exit_code = _dispatch(args)
    except Exception:
        logger.critical("Fatal error running %s", args.command, exc_info=True)
        raise
    finally:
        logger.info("pricewise shutting down")
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
