"""Report orchestration.

Fetches everything one company page needs from the store, runs the
ratio and aggregation functions, and composes the comparison table.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from stockdash.comparison import (
    ComparisonRow,
    PeerBaseline,
    build_peer_baseline,
    compose_comparison,
    comparison_frame,
)
from stockdash.config import DashboardConfig
from stockdash.data.models import Company, PriceSnapshot
from stockdash.data.price_feed import PriceFeed
from stockdash.data.store import StockStore
from stockdash.metrics.ratios import DerivedRatios, compute_ratios

logger = logging.getLogger(__name__)


@dataclass
class CompanySummary:
    """Headline figures for the company overview.

    Attributes:
        company: Row from ``stocks``.
        latest_price: Most recent share price. None if unavailable.
        previous_price: Price before the latest one. None if unavailable.
        market_cap: latest_price * shares_outstanding. None without a price.
        price_history: Recent prices, newest first.
    """

    company: Company
    latest_price: float | None
    previous_price: float | None
    market_cap: float | None
    price_history: list[PriceSnapshot] = field(default_factory=list)


@dataclass
class CompanyReport:
    """Complete output for one company page."""

    summary: CompanySummary
    derived: DerivedRatios
    sector: PeerBaseline
    market: PeerBaseline
    rows: list[ComparisonRow]


def _summarise(company: Company, history: list[PriceSnapshot]) -> CompanySummary:
    priced = [p.share_price for p in history if p.share_price is not None]
    latest_price = priced[0] if priced else None
    previous_price = priced[1] if len(priced) > 1 else None

    market_cap = None
    if latest_price is not None:
        market_cap = latest_price * (company.shares_outstanding or 0.0)

    return CompanySummary(
        company=company,
        latest_price=latest_price,
        previous_price=previous_price,
        market_cap=market_cap,
        price_history=history,
    )


def build_company_report(
    store: StockStore, stock_id: int, config: DashboardConfig
) -> CompanyReport | None:
    """Build the comparison report for one company.

    Loading sequence:
        1. Company row; stop if unknown.
        2. Company metrics, price history and latest statement.
        3. Sector and market members, their latest statements and
           metrics, and their latest price and EPS maps.
        4. Ratios, baselines and the comparison rows.

    Args:
        store: Data store.
        stock_id: Company to report on.
        config: Dashboard configuration.

    Returns:
        CompanyReport, or None if the company does not exist.
    """
    company = store.get_company(stock_id)
    if company is None:
        logger.warning("Stock %d: not found, no report", stock_id)
        return None

    metrics = store.get_latest_metrics(stock_id)
    history = store.get_price_history(stock_id, config.price_history_limit)
    statement = store.get_latest_financials(stock_id)
    summary = _summarise(company, history)
    derived = compute_ratios(statement)

    sector_ids = store.get_sector_stock_ids(company.sector)
    market_ids = store.get_all_stock_ids()

    market_statements = store.get_financials()
    sector_members = set(sector_ids)
    sector_statements = [s for s in market_statements if s.stock_id in sector_members]

    sector = build_peer_baseline(
        store.get_metrics(sector_ids),
        sector_statements,
        store.get_latest_prices(sector_ids),
        store.get_latest_eps(sector_ids),
    )
    market = build_peer_baseline(
        store.get_metrics(),
        market_statements,
        store.get_latest_prices(market_ids),
        store.get_latest_eps(market_ids),
    )
    logger.info(
        "%s: sector '%s' has %d stocks, market has %d",
        company.ticker,
        company.sector,
        len(sector_ids),
        len(market_ids),
    )

    rows = compose_comparison(metrics, derived, summary.latest_price, sector, market)
    return CompanyReport(
        summary=summary,
        derived=derived,
        sector=sector,
        market=market,
        rows=rows,
    )


def refresh_prices(store: StockStore, feed: PriceFeed, date: str) -> int:
    """Record one price per ticker for date from the price feed.

    Tickers the feed has no price for are skipped.

    Args:
        store: Data store to write to.
        feed: Price source.
        date: ISO date to fetch and record.

    Returns:
        Number of price rows inserted.
    """
    tickers = store.get_tickers()
    prices = feed.get_prices([t for _, t in tickers], date=date)

    snapshots: list[PriceSnapshot] = []
    missing: list[str] = []
    for stock_id, ticker in tickers:
        price = prices.get(ticker)
        if price is None:
            missing.append(ticker)
            continue
        snapshots.append(PriceSnapshot(stock_id=stock_id, share_price=price, date=date))

    if missing:
        logger.warning(
            "No price for %d of %d tickers on %s: %s",
            len(missing),
            len(tickers),
            date,
            ", ".join(missing),
        )
    return store.insert_prices(snapshots)


def export_comparison_csv(rows: list[ComparisonRow], path: Path) -> None:
    """Write the comparison table to CSV.

    Args:
        rows: Rows from compose_comparison.
        path: Output file; parent directories are created.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    comparison_frame(rows).to_csv(path, index=False)
    logger.info("Exported %s (%d rows)", path, len(rows))
