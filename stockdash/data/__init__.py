"""Data access: record types, the SQLite store and the price feed."""

from __future__ import annotations

from stockdash.data.models import (
    Company,
    FinancialStatement,
    MetricSnapshot,
    PriceSnapshot,
)
from stockdash.data.store import SqliteStore, StockStore

__all__ = [
    "Company",
    "FinancialStatement",
    "MetricSnapshot",
    "PriceSnapshot",
    "SqliteStore",
    "StockStore",
]
