"""Tests for stockdash.data.models row validation."""

from __future__ import annotations

import math

import numpy as np
import pandas as pd
import pytest

from stockdash.data.models import (
    Company,
    FinancialStatement,
    MetricSnapshot,
    PriceSnapshot,
    to_number,
)


class TestToNumber:

    @pytest.mark.parametrize(
        "raw, expected",
        [
            (1, 1.0),
            (2.5, 2.5),
            ("3.75", 3.75),
            (" -4 ", -4.0),
            (np.float64(1.5), 1.5),
            (np.int64(7), 7.0),
        ],
    )
    def test_numeric_values(self, raw: object, expected: float) -> None:
        assert to_number(raw, "x") == expected

    @pytest.mark.parametrize("raw", [None, float("nan"), np.nan, pd.NA])
    def test_missing_values(self, raw: object) -> None:
        assert to_number(raw, "x") is None

    @pytest.mark.parametrize("raw", ["abc", "", True, [1.0], float("inf"), "-inf"])
    def test_malformed_values_raise(self, raw: object) -> None:
        with pytest.raises(ValueError, match="x"):
            to_number(raw, "x")


class TestFromRow:

    def test_financial_statement(self) -> None:
        row = {
            "stock_id": 3,
            "date": "2024-12-31",
            "total_revenue": "1000",
            "cost_of_revenue": 600,
            "other_expenses": float("nan"),
            "total_assets": None,
        }
        statement = FinancialStatement.from_row(row)

        assert statement.stock_id == 3
        assert statement.date == "2024-12-31"
        assert statement.total_revenue == 1000.0
        assert statement.cost_of_revenue == 600.0
        assert statement.other_expenses is None
        assert statement.total_assets is None
        assert statement.ebit is None

    def test_statement_with_text_field_rejected(self) -> None:
        with pytest.raises(ValueError, match="ebit"):
            FinancialStatement.from_row({"stock_id": 1, "ebit": "n/a"})

    def test_metric_snapshot(self) -> None:
        snapshot = MetricSnapshot.from_row(
            {"stock_id": np.int64(2), "eps": 1.25, "payout_ratio": None}
        )

        assert snapshot.stock_id == 2
        assert snapshot.eps == 1.25
        assert snapshot.payout_ratio is None
        assert snapshot.date is None

    def test_missing_stock_id_rejected(self) -> None:
        with pytest.raises(ValueError, match="stock_id"):
            MetricSnapshot.from_row({"eps": 1.0})

    def test_price_snapshot(self) -> None:
        price = PriceSnapshot.from_row(
            {"stock_id": 5, "share_price": 31.4, "date": "2025-01-02"}
        )

        assert price == PriceSnapshot(stock_id=5, share_price=31.4, date="2025-01-02")

    def test_company_defaults(self) -> None:
        company = Company.from_row(
            {"stock_id": 9, "ticker": "2222", "company_name": None, "sector": "Energy"}
        )

        assert company.ticker == "2222"
        assert company.company_name == ""
        assert company.shares_outstanding is None

    def test_company_null_sector_kept_as_none(self) -> None:
        company = Company.from_row(
            {"stock_id": 9, "ticker": "2222", "sector": float("nan")}
        )

        assert company.sector is None

    def test_records_are_immutable(self) -> None:
        statement = FinancialStatement(stock_id=1, total_revenue=1.0)

        with pytest.raises(AttributeError):
            statement.total_revenue = 2.0  # type: ignore[misc]

    def test_nan_never_stored(self) -> None:
        snapshot = MetricSnapshot.from_row(
            {"stock_id": 1, "return_on_equity": float("nan")}
        )

        assert snapshot.return_on_equity is None
        assert not any(
            isinstance(v, float) and math.isnan(v) for v in vars(snapshot).values()
        )
