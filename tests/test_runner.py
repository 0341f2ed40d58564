"""Tests for stockdash.runner."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from pathlib import Path

import pandas as pd
import pytest

from stockdash.config import DashboardConfig
from stockdash.data.models import (
    Company,
    FinancialStatement,
    MetricSnapshot,
    PriceSnapshot,
)
from stockdash.runner import (
    build_company_report,
    export_comparison_csv,
    refresh_prices,
)


class FakeStore:
    """In-memory StockStore holding one record set per table."""

    def __init__(
        self,
        companies: list[Company],
        statements: list[FinancialStatement],
        snapshots: list[MetricSnapshot],
        prices: list[PriceSnapshot],
    ) -> None:
        self.companies = {c.stock_id: c for c in companies}
        self.statements = statements
        self.snapshots = snapshots
        self.prices = prices
        self.inserted: list[PriceSnapshot] = []

    def get_company(self, stock_id: int) -> Company | None:
        return self.companies.get(stock_id)

    def get_latest_metrics(self, stock_id: int) -> MetricSnapshot | None:
        return next((m for m in self.snapshots if m.stock_id == stock_id), None)

    def get_price_history(self, stock_id: int, limit: int) -> list[PriceSnapshot]:
        own = [p for p in self.prices if p.stock_id == stock_id]
        own.sort(key=lambda p: p.date or "", reverse=True)
        return own[:limit]

    def get_latest_financials(self, stock_id: int) -> FinancialStatement | None:
        return next((s for s in self.statements if s.stock_id == stock_id), None)

    def get_sector_stock_ids(self, sector: str | None) -> list[int]:
        return sorted(i for i, c in self.companies.items() if c.sector == sector)

    def get_all_stock_ids(self) -> list[int]:
        return sorted(self.companies)

    def get_financials(
        self, stock_ids: Sequence[int] | None = None
    ) -> list[FinancialStatement]:
        return [s for s in self.statements if stock_ids is None or s.stock_id in stock_ids]

    def get_metrics(
        self, stock_ids: Sequence[int] | None = None
    ) -> list[MetricSnapshot]:
        return [m for m in self.snapshots if stock_ids is None or m.stock_id in stock_ids]

    def get_latest_eps(self, stock_ids: Sequence[int]) -> dict[int, float]:
        return {
            m.stock_id: m.eps for m in self.snapshots
            if m.stock_id in stock_ids and m.eps
        }

    def get_latest_prices(self, stock_ids: Sequence[int]) -> dict[int, float]:
        result: dict[int, float] = {}
        for stock_id in stock_ids:
            history = self.get_price_history(stock_id, 1)
            if history and history[0].share_price is not None:
                result[stock_id] = history[0].share_price
        return result

    def get_tickers(self) -> list[tuple[int, str]]:
        return [(i, c.ticker) for i, c in sorted(self.companies.items())]

    def insert_prices(self, prices: Iterable[PriceSnapshot]) -> int:
        rows = list(prices)
        self.inserted.extend(rows)
        return len(rows)


class FakeFeed:

    def __init__(self, quotes: dict[str, float]) -> None:
        self.quotes = quotes
        self.calls: list[tuple[list[str], str | None]] = []

    def get_prices(
        self, tickers: list[str], date: str | None = None
    ) -> dict[str, float]:
        self.calls.append((tickers, date))
        return {t: self.quotes[t] for t in tickers if t in self.quotes}


def _statement(stock_id: int, current_assets: float, current_liabilities: float) -> FinancialStatement:
    return FinancialStatement(
        stock_id=stock_id,
        total_revenue=1000.0,
        cost_of_revenue=600.0,
        other_expenses=100.0,
        total_assets=2000.0,
        current_assets=current_assets,
        current_liabilities=current_liabilities,
        inventory=100.0,
        ebit=300.0,
        interest_expenses=50.0,
    )


@pytest.fixture
def store() -> FakeStore:
    return FakeStore(
        companies=[
            Company(1, "1120", "Alpha Bank", "Banks", 1000.0),
            Company(2, "1180", "Beta Bank", "Banks", 500.0),
            Company(3, "2222", "Gamma Energy", "Energy", None),
        ],
        statements=[
            _statement(1, 500.0, 250.0),   # current ratio 2.0
            _statement(2, 400.0, 100.0),   # current ratio 4.0
            _statement(3, 300.0, 0.0),     # current ratio None
        ],
        snapshots=[
            MetricSnapshot(1, return_on_equity=0.10, eps=5.0),
            MetricSnapshot(2, return_on_equity=0.20, eps=2.0),
            MetricSnapshot(3, return_on_equity=0.60, eps=0.0),
        ],
        prices=[
            PriceSnapshot(1, 95.0, "2025-01-01"),
            PriceSnapshot(1, 100.0, "2025-01-02"),
            PriceSnapshot(2, 40.0, "2025-01-02"),
            PriceSnapshot(3, 30.0, "2025-01-02"),
        ],
    )


class TestBuildCompanyReport:

    def test_unknown_company(self, store: FakeStore) -> None:
        assert build_company_report(store, 99, DashboardConfig()) is None

    def test_summary(self, store: FakeStore) -> None:
        report = build_company_report(store, 1, DashboardConfig())

        assert report is not None
        assert report.summary.latest_price == 100.0
        assert report.summary.previous_price == 95.0
        assert report.summary.market_cap == pytest.approx(100_000.0)
        assert len(report.summary.price_history) == 2

    def test_history_limited_by_config(self, store: FakeStore) -> None:
        report = build_company_report(store, 1, DashboardConfig(price_history_limit=1))

        assert report is not None
        assert len(report.summary.price_history) == 1
        assert report.summary.previous_price is None

    def test_rows(self, store: FakeStore) -> None:
        report = build_company_report(store, 1, DashboardConfig())

        assert report is not None
        rows = {r.key: r for r in report.rows}
        assert len(report.rows) == 12

        assert rows["current_ratio"].value == pytest.approx(2.0)
        # Sector: banks 1 and 2.
        assert rows["current_ratio"].sector == pytest.approx(3.0)
        # Market: stock 3 has no current ratio and is excluded.
        assert rows["current_ratio"].market == pytest.approx(3.0)

        assert rows["roe"].sector == pytest.approx(0.15)
        assert rows["roe"].market == pytest.approx(0.30)

        # Own P/E 100 / 5; sector (20 + 20) / 2; stock 3 has zero EPS.
        assert rows["pe"].value == pytest.approx(20.0)
        assert rows["pe"].sector == pytest.approx(20.0)
        assert rows["pe"].market == pytest.approx(20.0)

    def test_company_without_price(self, store: FakeStore) -> None:
        store.prices = [p for p in store.prices if p.stock_id != 2]
        report = build_company_report(store, 2, DashboardConfig())

        assert report is not None
        assert report.summary.latest_price is None
        assert report.summary.market_cap is None
        rows = {r.key: r for r in report.rows}
        assert rows["pe"].value is None
        assert rows["pe"].sector == pytest.approx(20.0)

    def test_unclassified_companies_share_a_sector(self, store: FakeStore) -> None:
        store.companies[1] = Company(1, "1120", "Alpha Bank", None, 1000.0)
        store.companies[2] = Company(2, "1180", "Beta Bank", None, 500.0)

        report = build_company_report(store, 1, DashboardConfig())

        assert report is not None
        rows = {r.key: r for r in report.rows}
        assert rows["current_ratio"].sector == pytest.approx(3.0)

    def test_missing_shares_gives_zero_market_cap(self, store: FakeStore) -> None:
        report = build_company_report(store, 3, DashboardConfig())

        assert report is not None
        assert report.summary.market_cap == 0.0


class TestRefreshPrices:

    def test_inserts_priced_tickers(self, store: FakeStore) -> None:
        feed = FakeFeed({"1120": 101.0, "2222": 31.0})

        inserted = refresh_prices(store, feed, "2025-01-03")

        assert inserted == 2
        assert feed.calls == [(["1120", "1180", "2222"], "2025-01-03")]
        assert store.inserted == [
            PriceSnapshot(1, 101.0, "2025-01-03"),
            PriceSnapshot(3, 31.0, "2025-01-03"),
        ]

    def test_empty_feed(self, store: FakeStore) -> None:
        assert refresh_prices(store, FakeFeed({}), "2025-01-03") == 0


class TestExportComparisonCsv:

    def test_writes_csv(self, store: FakeStore, tmp_path: Path) -> None:
        report = build_company_report(store, 1, DashboardConfig())
        assert report is not None
        path = tmp_path / "out" / "comparison.csv"

        export_comparison_csv(report.rows, path)

        frame = pd.read_csv(path)
        assert len(frame) == 12
        assert list(frame.columns) == [
            "title", "key", "value", "sector", "market", "is_percentage",
        ]
        assert frame.loc[0, "key"] == "roe"
