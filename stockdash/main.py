"""CLI entry point for the stock analytics dashboard."""

from __future__ import annotations

import argparse
import datetime
import logging
import sys
from pathlib import Path

from stockdash.comparison import ComparisonRow, format_value
from stockdash.config import DashboardConfig
from stockdash.data.price_feed import feed_from_config
from stockdash.data.store import SqliteStore
from stockdash.runner import (
    CompanyReport,
    build_company_report,
    export_comparison_csv,
    refresh_prices,
)

logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Argument list (defaults to sys.argv[1:]).

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(
        prog="stockdash",
        description="Company vs. sector vs. market financial comparison",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # Shared options
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--db-path",
        type=Path,
        default=None,
        help="SQLite database path (default: data/stockdash.db)",
    )
    common.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    subparsers.add_parser(
        "init-db", parents=[common], help="Create the database tables"
    )

    compare_parser = subparsers.add_parser(
        "compare",
        parents=[common],
        help="Print a company's metrics against its sector and market",
    )
    compare_parser.add_argument("stock_id", type=int, help="Company stock ID")
    compare_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Also write the table to this CSV path",
    )

    refresh_parser = subparsers.add_parser(
        "refresh-prices",
        parents=[common],
        help="Record share prices from the price feed",
    )
    refresh_parser.add_argument(
        "--date",
        type=datetime.date.fromisoformat,
        default=None,
        help="Price date, YYYY-MM-DD (default: today)",
    )
    refresh_parser.add_argument(
        "--feed-url",
        default=None,
        help="Price feed endpoint (default: $PRICE_FEED_URL)",
    )

    return parser.parse_args(argv)


def _build_config(args: argparse.Namespace) -> DashboardConfig:
    config = DashboardConfig()
    if args.db_path is not None:
        config.db_path = args.db_path
    if getattr(args, "feed_url", None):
        config.price_feed_url = args.feed_url
    return config


def render_report(report: CompanyReport) -> str:
    """Format a report as a plain-text table."""
    summary = report.summary
    company = summary.company
    lines = [
        f"{company.company_name} ({company.ticker})",
        f"Sector: {company.sector or 'N/A'}",
        f"Price: {format_value(summary.latest_price, False)}",
        f"Market Cap: {format_value(summary.market_cap, False)}",
        "",
    ]

    header = ("Metric", "Company", "Sector", "Market")
    table = [header] + [_row_cells(r) for r in report.rows]
    widths = [max(len(row[i]) for row in table) for i in range(len(header))]
    for cells in table:
        lines.append(
            "  ".join(
                cell.ljust(w) if i == 0 else cell.rjust(w)
                for i, (cell, w) in enumerate(zip(cells, widths))
            )
        )
    return "\n".join(lines)


def _row_cells(row: ComparisonRow) -> tuple[str, str, str, str]:
    return (
        row.title,
        format_value(row.value, row.is_percentage),
        format_value(row.sector, row.is_percentage),
        format_value(row.market, row.is_percentage),
    )


def run_init_db(args: argparse.Namespace) -> None:
    """Execute the init-db command."""
    config = _build_config(args)
    SqliteStore(config).initialise_schema()


def run_compare(args: argparse.Namespace) -> None:
    """Execute the compare command.

    Args:
        args: Parsed CLI arguments (stock_id, output, db_path).
    """
    config = _build_config(args)
    store = SqliteStore(config)

    report = build_company_report(store, args.stock_id, config)
    if report is None:
        logger.error("Failed to fetch data for stock ID %d", args.stock_id)
        sys.exit(1)

    print(render_report(report))

    if args.output is not None:
        export_comparison_csv(report.rows, args.output)


def run_refresh_prices(args: argparse.Namespace) -> None:
    """Execute the refresh-prices command.

    Args:
        args: Parsed CLI arguments (date, feed_url, db_path).
    """
    config = _build_config(args)
    feed = feed_from_config(config)
    if feed is None:
        logger.error("Set --feed-url or PRICE_FEED_URL to refresh prices")
        sys.exit(1)

    date = (args.date or datetime.date.today()).isoformat()
    inserted = refresh_prices(SqliteStore(config), feed, date)
    logger.info("Recorded %d prices for %s", inserted, date)


def main(argv: list[str] | None = None) -> None:
    """Main entry point.

    Args:
        argv: Argument list (defaults to sys.argv[1:]).
    """
    args = _parse_args(argv)

    # Configure logging
    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    if args.command == "init-db":
        run_init_db(args)
    elif args.command == "compare":
        run_compare(args)
    elif args.command == "refresh-prices":
        run_refresh_prices(args)
    else:
        logger.error("Unknown command: %s", args.command)
        sys.exit(1)


if __name__ == "__main__":
    main()
