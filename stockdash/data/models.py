"""Data models for the dashboard.

Records are immutable once fetched. Each one has a ``from_row``
constructor that validates a raw database row, so malformed rows are
rejected at the store boundary and never reach the metric functions.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd


def to_number(value: object, name: str) -> float | None:
    """Coerce a raw column value to a finite float or None.

    Args:
        value: Raw value (None, NaN, int, float, numpy scalar or
            numeric string).
        name: Column name, used in the error message.

    Returns:
        Finite float, or None if the value is missing.

    Raises:
        ValueError: If the value is non-numeric, boolean or non-finite.
    """
    if value is None or value is pd.NA:
        return None
    if isinstance(value, (bool, np.bool_)):
        raise ValueError(f"{name}: expected a number, got boolean {value!r}")
    if isinstance(value, (int, float, np.integer, np.floating)):
        f = float(value)
        if math.isnan(f):
            return None
    elif isinstance(value, str):
        try:
            f = float(value.strip())
        except ValueError:
            raise ValueError(f"{name}: expected a number, got {value!r}") from None
    else:
        raise ValueError(
            f"{name}: expected a number, got {type(value).__name__}"
        )
    if not math.isfinite(f):
        raise ValueError(f"{name}: non-finite value {value!r}")
    return f


def _to_text(value: object) -> str | None:
    if value is None or value is pd.NA:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    return str(value)


def _stock_id(row: Mapping[str, Any]) -> int:
    value = row.get("stock_id")
    if value is None or isinstance(value, bool):
        raise ValueError(f"stock_id: expected an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"stock_id: expected an integer, got {value!r}") from None


@dataclass(frozen=True)
class Company:
    """One row of the ``stocks`` table.

    Attributes:
        stock_id: Primary key.
        ticker: Exchange ticker symbol.
        company_name: Display name.
        sector: Business sector, used to build the sector peer group.
            None if unclassified; unclassified stocks form one group.
        shares_outstanding: Shares outstanding. None if unknown.
    """

    stock_id: int
    ticker: str
    company_name: str
    sector: str | None
    shares_outstanding: float | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Company:
        return cls(
            stock_id=_stock_id(row),
            ticker=str(row.get("ticker") or ""),
            company_name=str(row.get("company_name") or ""),
            sector=_to_text(row.get("sector")),
            shares_outstanding=to_number(
                row.get("shares_outstanding"), "shares_outstanding"
            ),
        )


@dataclass(frozen=True)
class FinancialStatement:
    """Financial statement for one company and one reporting period.

    Attributes:
        stock_id: Owning company.
        date: Period date (ISO string). None if unknown.
        total_revenue: Revenue for the period.
        cost_of_revenue: Direct cost of revenue.
        other_expenses: All other expenses below gross profit.
        total_assets: Balance-sheet total assets.
        current_assets: Balance-sheet current assets.
        current_liabilities: Balance-sheet current liabilities.
        inventory: Balance-sheet inventory.
        ebit: Earnings before interest and tax.
        interest_expenses: Interest expense for the period.
    """

    stock_id: int
    date: str | None = None
    total_revenue: float | None = None
    cost_of_revenue: float | None = None
    other_expenses: float | None = None
    total_assets: float | None = None
    current_assets: float | None = None
    current_liabilities: float | None = None
    inventory: float | None = None
    ebit: float | None = None
    interest_expenses: float | None = None

    NUMERIC_FIELDS = (
        "total_revenue",
        "cost_of_revenue",
        "other_expenses",
        "total_assets",
        "current_assets",
        "current_liabilities",
        "inventory",
        "ebit",
        "interest_expenses",
    )

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> FinancialStatement:
        values = {name: to_number(row.get(name), name) for name in cls.NUMERIC_FIELDS}
        return cls(stock_id=_stock_id(row), date=_to_text(row.get("date")), **values)


@dataclass(frozen=True)
class MetricSnapshot:
    """Market metrics for one company and one period."""

    stock_id: int
    date: str | None = None
    return_on_equity: float | None = None
    return_on_assets: float | None = None
    payout_ratio: float | None = None
    eps: float | None = None
    trailing_annual_dividend_rate: float | None = None

    NUMERIC_FIELDS = (
        "return_on_equity",
        "return_on_assets",
        "payout_ratio",
        "eps",
        "trailing_annual_dividend_rate",
    )

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> MetricSnapshot:
        values = {name: to_number(row.get(name), name) for name in cls.NUMERIC_FIELDS}
        return cls(stock_id=_stock_id(row), date=_to_text(row.get("date")), **values)


@dataclass(frozen=True)
class PriceSnapshot:
    """Closing share price for one company on one date."""

    stock_id: int
    share_price: float | None
    date: str | None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> PriceSnapshot:
        return cls(
            stock_id=_stock_id(row),
            share_price=to_number(row.get("share_price"), "share_price"),
            date=_to_text(row.get("date")),
        )
