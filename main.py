# main.py

"""Entry point for the OUMG operator console CLI."""

import argparse
import asyncio
import logging
import sys

from oumg_console.config.logging_config import setup_logging
from oumg_console.config.settings import Settings

logger = logging.getLogger("oumg_console.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="oumg",
        description="OUMG gold-token pricing and operations console.",
        epilog=f"Backend: {Settings.API_BASE} (set OUMG_API_BASE)",
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=["json", "table"],
        default="json",
        dest="output_format",
        help="Output format (default: json).",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    price = commands.add_parser(
        "price", help="Show the current normalized gold price.",
    )
    price.add_argument(
        "--record",
        action="store_true",
        default=False,
        help="Also archive the snapshot in the local history DB.",
    )

    history = commands.add_parser(
        "history", help="List backend price history (admin).",
    )
    history.add_argument(
        "--limit",
        type=int,
        default=Settings.PAGE_SIZE,
        help=f"Page size (default: {Settings.PAGE_SIZE}).",
    )
    history.add_argument(
        "--offset", type=int, default=0, help="Rows to skip.",
    )

    normalize = commands.add_parser(
        "normalize", help="Normalize raw price JSON from a file.",
    )
    normalize.add_argument("file", help="JSON file (object or list).")

    sheet = commands.add_parser(
        "sheet", help="Preview (and optionally publish) a new price.",
    )
    sheet.add_argument("--buy", default=None, help="Direct buy price.")
    sheet.add_argument("--sell", default=None, help="Direct sell price.")
    sheet.add_argument(
        "--base", default=None, help="Base price (base+spread mode).",
    )
    spread = sheet.add_mutually_exclusive_group()
    spread.add_argument(
        "--spread-myr", default=None, dest="spread_myr",
        help="Spread in MYR per gram.",
    )
    spread.add_argument(
        "--spread-bps", default=None, dest="spread_bps",
        help="Spread in basis points of base.",
    )
    sheet.add_argument("--note", default=None, help="Free-text note.")
    sheet.add_argument(
        "--apply",
        action="store_true",
        default=False,
        help="Publish the sheet to the backend (admin).",
    )

    quote = commands.add_parser(
        "quote", help="Quote the MYR cost of minting grams.",
    )
    quote.add_argument("grams", help="Grams of OUMG to mint.")

    trend = commands.add_parser(
        "trend", help="Summarise the local price history DB.",
    )
    trend.add_argument(
        "--limit",
        type=int,
        default=Settings.PAGE_SIZE,
        help="Recent rows to show.",
    )

    import_history = commands.add_parser(
        "import-history",
        help="Import raw price JSON files into the local history DB.",
    )
    import_history.add_argument("files", nargs="+")

    commands.add_parser(
        "health", help="Run a connectivity check on the backend.",
    )
    return parser


def _dispatch(args: argparse.Namespace) -> int:
    """Run the selected sub-command and return its exit code."""
    from oumg_console.cli import runner

    if args.command == "price":
        return runner.run_price(args.output_format, record=args.record)
    if args.command == "history":
        return runner.run_history(args.limit, args.offset, args.output_format)
    if args.command == "normalize":
        return runner.run_normalize(args.file, args.output_format)
    if args.command == "sheet":
        return runner.run_sheet(
            buy=args.buy,
            sell=args.sell,
            base=args.base,
            spread_myr=args.spread_myr,
            spread_bps=args.spread_bps,
            note=args.note,
            apply=args.apply,
            output_format=args.output_format,
        )
    if args.command == "quote":
        return runner.run_quote(args.grams, args.output_format)
    if args.command == "trend":
        return runner.run_trend(args.output_format, limit=args.limit)
    if args.command == "import-history":
        return runner.run_import_history(args.files)
    if args.command == "health":
        return asyncio.run(runner.run_health_check())
    return 2


def main(argv: list[str] | None = None) -> None:
    """Parse arguments, run one command and exit with its code."""
    log_file = setup_logging()
    logger.info("oumg console starting, log file: %s", log_file)

    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command == "sheet" and args.base is None and (
        args.buy is None or args.sell is None
    ):
        parser.error("sheet needs --buy and --sell, or --base")

    try:
        exit_code = _dispatch(args)
    except Exception:
        logger.critical("Fatal error in %s", args.command, exc_info=True)
        raise
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
