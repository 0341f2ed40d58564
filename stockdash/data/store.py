"""SQLite data store (explicit column selects, one connection per call)."""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterable, Sequence
from typing import Protocol

import pandas as pd

from stockdash.config import DashboardConfig
from stockdash.data.models import (
    Company,
    FinancialStatement,
    MetricSnapshot,
    PriceSnapshot,
    to_number,
)

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS stocks (
    stock_id INTEGER PRIMARY KEY,
    ticker TEXT NOT NULL,
    company_name TEXT,
    sector TEXT,
    shares_outstanding REAL
);

CREATE TABLE IF NOT EXISTS financials (
    financial_id INTEGER PRIMARY KEY AUTOINCREMENT,
    stock_id INTEGER NOT NULL REFERENCES stocks (stock_id),
    date TEXT,
    total_revenue REAL,
    cost_of_revenue REAL,
    other_expenses REAL,
    total_assets REAL,
    current_assets REAL,
    current_liabilities REAL,
    inventory REAL,
    ebit REAL,
    interest_expenses REAL
);

CREATE TABLE IF NOT EXISTS stock_metrics (
    metric_id INTEGER PRIMARY KEY AUTOINCREMENT,
    stock_id INTEGER NOT NULL REFERENCES stocks (stock_id),
    date TEXT,
    return_on_equity REAL,
    return_on_assets REAL,
    payout_ratio REAL,
    eps REAL,
    trailing_annual_dividend_rate REAL
);

CREATE TABLE IF NOT EXISTS stock_prices (
    price_id INTEGER PRIMARY KEY AUTOINCREMENT,
    stock_id INTEGER NOT NULL REFERENCES stocks (stock_id),
    share_price REAL,
    date TEXT
);
"""

_FINANCIAL_COLUMNS = ("stock_id", "date") + FinancialStatement.NUMERIC_FIELDS
_METRIC_COLUMNS = ("stock_id", "date") + MetricSnapshot.NUMERIC_FIELDS


class StockStore(Protocol):
    """Read interface the report builder depends on."""

    def get_company(self, stock_id: int) -> Company | None: ...

    def get_latest_metrics(self, stock_id: int) -> MetricSnapshot | None: ...

    def get_price_history(self, stock_id: int, limit: int) -> list[PriceSnapshot]: ...

    def get_latest_financials(self, stock_id: int) -> FinancialStatement | None: ...

    def get_sector_stock_ids(self, sector: str | None) -> list[int]: ...

    def get_all_stock_ids(self) -> list[int]: ...

    def get_financials(
        self, stock_ids: Sequence[int] | None = None
    ) -> list[FinancialStatement]: ...

    def get_metrics(
        self, stock_ids: Sequence[int] | None = None
    ) -> list[MetricSnapshot]: ...

    def get_latest_eps(self, stock_ids: Sequence[int]) -> dict[int, float]: ...

    def get_latest_prices(self, stock_ids: Sequence[int]) -> dict[int, float]: ...

    def get_tickers(self) -> list[tuple[int, str]]: ...

    def insert_prices(self, prices: Iterable[PriceSnapshot]) -> int: ...


def _id_filter(stock_ids: Sequence[int] | None) -> tuple[str, list[int]]:
    """WHERE clause fragment and params restricting rows to stock_ids."""
    if stock_ids is None:
        return "", []
    placeholders = ", ".join("?" for _ in stock_ids)
    return f"WHERE stock_id IN ({placeholders})", list(stock_ids)


class SqliteStore:
    """Stock data held in a SQLite database.

    Reads use a read-only connection; only insert_prices and
    initialise_schema write.

    Args:
        config: Dashboard configuration (provides db_path).
    """

    def __init__(self, config: DashboardConfig) -> None:
        self._db_path = config.db_path

    def _connect(self, readonly: bool = True) -> sqlite3.Connection:
        if readonly:
            return sqlite3.connect(f"file:{self._db_path}?mode=ro", uri=True)
        return sqlite3.connect(self._db_path)

    def _query(self, query: str, params: Sequence[object] = ()) -> pd.DataFrame:
        conn = self._connect()
        try:
            return pd.read_sql_query(query, conn, params=list(params))
        finally:
            conn.close()

    def initialise_schema(self) -> None:
        """Create the dashboard tables if they do not exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = self._connect(readonly=False)
        try:
            conn.executescript(SCHEMA)
            conn.commit()
        finally:
            conn.close()
        logger.info("Schema ready at %s", self._db_path)

    # -- single company --

    def get_company(self, stock_id: int) -> Company | None:
        df = self._query(
            "SELECT stock_id, ticker, company_name, sector, shares_outstanding "
            "FROM stocks WHERE stock_id = ?",
            (stock_id,),
        )
        if df.empty:
            logger.warning("Stock %d not found", stock_id)
            return None
        return Company.from_row(df.to_dict("records")[0])

    def get_latest_metrics(self, stock_id: int) -> MetricSnapshot | None:
        df = self._query(
            f"SELECT {', '.join(_METRIC_COLUMNS)} FROM stock_metrics "
            "WHERE stock_id = ? ORDER BY date DESC, metric_id DESC LIMIT 1",
            (stock_id,),
        )
        if df.empty:
            logger.debug("Stock %d: no metrics", stock_id)
            return None
        return MetricSnapshot.from_row(df.to_dict("records")[0])

    def get_price_history(self, stock_id: int, limit: int) -> list[PriceSnapshot]:
        """Most recent prices for one stock, newest first."""
        df = self._query(
            "SELECT stock_id, share_price, date FROM stock_prices "
            "WHERE stock_id = ? ORDER BY date DESC, price_id DESC LIMIT ?",
            (stock_id, limit),
        )
        return [PriceSnapshot.from_row(r) for r in df.to_dict("records")]

    def get_latest_financials(self, stock_id: int) -> FinancialStatement | None:
        df = self._query(
            f"SELECT {', '.join(_FINANCIAL_COLUMNS)} FROM financials "
            "WHERE stock_id = ? ORDER BY date DESC, financial_id DESC LIMIT 1",
            (stock_id,),
        )
        if df.empty:
            logger.debug("Stock %d: no financial statement", stock_id)
            return None
        return FinancialStatement.from_row(df.to_dict("records")[0])

    # -- peer groups --

    def get_sector_stock_ids(self, sector: str | None) -> list[int]:
        """Members of sector. None selects the stocks with no sector."""
        df = self._query(
            "SELECT stock_id FROM stocks WHERE sector IS ? ORDER BY stock_id",
            (sector,),
        )
        return [int(v) for v in df["stock_id"]]

    def get_all_stock_ids(self) -> list[int]:
        df = self._query("SELECT stock_id FROM stocks ORDER BY stock_id")
        return [int(v) for v in df["stock_id"]]

    def get_financials(
        self, stock_ids: Sequence[int] | None = None
    ) -> list[FinancialStatement]:
        """Latest statement per stock, optionally restricted to stock_ids."""
        if stock_ids is not None and not stock_ids:
            return []
        where, params = _id_filter(stock_ids)
        df = self._query(
            f"SELECT {', '.join(_FINANCIAL_COLUMNS)} FROM financials {where} "
            "ORDER BY stock_id, date DESC, financial_id DESC",
            params,
        )
        latest = df.drop_duplicates(subset="stock_id", keep="first")
        logger.info("Loaded %d financial statements", len(latest))
        return [FinancialStatement.from_row(r) for r in latest.to_dict("records")]

    def get_metrics(
        self, stock_ids: Sequence[int] | None = None
    ) -> list[MetricSnapshot]:
        """Latest metric snapshot per stock, optionally restricted to stock_ids."""
        if stock_ids is not None and not stock_ids:
            return []
        where, params = _id_filter(stock_ids)
        df = self._query(
            f"SELECT {', '.join(_METRIC_COLUMNS)} FROM stock_metrics {where} "
            "ORDER BY stock_id, date DESC, metric_id DESC",
            params,
        )
        latest = df.drop_duplicates(subset="stock_id", keep="first")
        logger.info("Loaded %d metric snapshots", len(latest))
        return [MetricSnapshot.from_row(r) for r in latest.to_dict("records")]

    def get_latest_eps(self, stock_ids: Sequence[int]) -> dict[int, float]:
        """Newest non-zero EPS per stock. Stocks without one are omitted."""
        if not stock_ids:
            return {}
        where, params = _id_filter(stock_ids)
        df = self._query(
            f"SELECT stock_id, eps FROM stock_metrics {where} "
            "AND eps IS NOT NULL AND eps != 0 "
            "ORDER BY date DESC, metric_id DESC",
            params,
        )
        result: dict[int, float] = {}
        for stock_id, eps in zip(df["stock_id"], df["eps"]):
            value = to_number(eps, "eps")
            if value is not None and int(stock_id) not in result:
                result[int(stock_id)] = value
        return result

    def get_latest_prices(self, stock_ids: Sequence[int]) -> dict[int, float]:
        """Newest share price per stock. Stocks without one are omitted."""
        if not stock_ids:
            return {}
        where, params = _id_filter(stock_ids)
        df = self._query(
            f"SELECT stock_id, share_price FROM stock_prices {where} "
            "AND share_price IS NOT NULL "
            "ORDER BY date DESC, price_id DESC",
            params,
        )
        result: dict[int, float] = {}
        for stock_id, price in zip(df["stock_id"], df["share_price"]):
            value = to_number(price, "share_price")
            if value is not None and int(stock_id) not in result:
                result[int(stock_id)] = value
        return result

    # -- price refresh --

    def get_tickers(self) -> list[tuple[int, str]]:
        conn = self._connect()
        try:
            rows = conn.execute(
                "SELECT stock_id, ticker FROM stocks ORDER BY stock_id"
            ).fetchall()
        finally:
            conn.close()
        return [(int(stock_id), str(ticker)) for stock_id, ticker in rows]

    def insert_prices(self, prices: Iterable[PriceSnapshot]) -> int:
        """Append price rows.

        Returns:
            Number of rows inserted.
        """
        rows = [(p.stock_id, p.share_price, p.date) for p in prices]
        if not rows:
            return 0
        conn = self._connect(readonly=False)
        try:
            conn.executemany(
                "INSERT INTO stock_prices (stock_id, share_price, date) "
                "VALUES (?, ?, ?)",
                rows,
            )
            conn.commit()
        finally:
            conn.close()
        logger.info("Inserted %d price rows", len(rows))
        return len(rows)
