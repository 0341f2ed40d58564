"""Company vs. sector vs. market comparison table."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

import pandas as pd

from stockdash.data.models import FinancialStatement, MetricSnapshot
from stockdash.metrics.aggregation import (
    FinancialBaseline,
    MetricBaseline,
    aggregate_financials,
    aggregate_metrics,
)
from stockdash.metrics.pe import average_pe, company_pe
from stockdash.metrics.ratios import DerivedRatios

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PeerBaseline:
    """All baselines for one peer group (a sector or the whole market).

    Attributes:
        metrics: Mean market metrics.
        financials: Mean statement ratios.
        pe: Cross-sectional mean P/E. None if no member qualifies.
    """

    metrics: MetricBaseline = field(default_factory=MetricBaseline)
    financials: FinancialBaseline = field(default_factory=FinancialBaseline)
    pe: float | None = None

    @classmethod
    def empty(cls) -> PeerBaseline:
        return cls()


@dataclass(frozen=True)
class ComparisonRow:
    """One displayed metric with its peer baselines."""

    title: str
    key: str
    value: float | None
    sector: float | None
    market: float | None
    is_percentage: bool


# (title, key, is_percentage, value source, baseline source).
# Sources are (object name, attribute); "pe" is computed inline.
_ROWS: tuple[tuple[str, str, bool, tuple[str, str], tuple[str, str]], ...] = (
    ("Return on Equity", "roe", True,
     ("snapshot", "return_on_equity"), ("metrics", "return_on_equity")),
    ("Return on Assets", "roa", True,
     ("snapshot", "return_on_assets"), ("metrics", "return_on_assets")),
    ("Payout Ratio", "payout", True,
     ("snapshot", "payout_ratio"), ("metrics", "payout_ratio")),
    ("EPS", "eps", False,
     ("snapshot", "eps"), ("metrics", "eps")),
    ("Asset Turnover", "asset_turnover", False,
     ("derived", "asset_turnover"), ("financials", "asset_turnover")),
    ("Gross Margin", "gross_margin", True,
     ("derived", "gross_margin"), ("financials", "gross_margin")),
    ("Net Profit Margin", "net_margin", True,
     ("derived", "net_margin"), ("financials", "net_margin")),
    ("Dividend Yield", "div_yield", True,
     ("snapshot", "trailing_annual_dividend_rate"),
     ("metrics", "trailing_annual_dividend_rate")),
    ("P/E Ratio", "pe", False,
     ("pe", ""), ("pe", "")),
    ("Current Ratio", "current_ratio", False,
     ("derived", "current_ratio"), ("financials", "current_ratio")),
    ("Quick Ratio", "quick_ratio", False,
     ("derived", "quick_ratio"), ("financials", "quick_ratio")),
    ("Interest Coverage", "interest_coverage", False,
     ("derived", "interest_coverage"), ("financials", "interest_coverage")),
)

METRIC_KEYS: tuple[str, ...] = tuple(key for _, key, _, _, _ in _ROWS)


def _finite(value: object) -> float | None:
    if value is None:
        return None
    f = float(value)  # type: ignore[arg-type]
    return f if math.isfinite(f) else None


def _baseline_value(baseline: PeerBaseline | None, source: tuple[str, str]) -> float | None:
    if baseline is None:
        return None
    part, attr = source
    if part == "pe":
        return _finite(baseline.pe)
    return _finite(getattr(getattr(baseline, part), attr))


def build_peer_baseline(
    snapshots: Iterable[MetricSnapshot] | None,
    statements: Iterable[FinancialStatement] | None,
    prices: Mapping[int, float | None],
    eps: Mapping[int, float | None],
) -> PeerBaseline:
    """Compute every baseline for one peer group.

    Args:
        snapshots: Latest metric snapshot per member.
        statements: Latest financial statement per member.
        prices: stock id -> latest share price for the members.
        eps: stock id -> latest EPS for the members.

    Returns:
        PeerBaseline for the group.
    """
    return PeerBaseline(
        metrics=aggregate_metrics(snapshots),
        financials=aggregate_financials(statements),
        pe=average_pe(prices, eps),
    )


def compose_comparison(
    company: MetricSnapshot | None,
    derived: DerivedRatios | None,
    price: float | None,
    sector: PeerBaseline | None,
    market: PeerBaseline | None,
) -> list[ComparisonRow]:
    """Pair each tracked metric with its sector and market baselines.

    Every tracked metric always produces a row. Missing inputs only
    blank the affected cells, so the table keeps a stable shape.

    Args:
        company: The company's latest metric snapshot, or None.
        derived: The company's statement ratios, or None.
        price: The company's latest share price, or None.
        sector: Sector baseline, or None.
        market: Market baseline, or None.

    Returns:
        One ComparisonRow per tracked metric, in display order.
    """
    if company is None:
        logger.debug("No metric snapshot, company metric cells set to None")
    values = {
        "snapshot": company,
        "derived": derived,
    }
    own_pe = company_pe(price, company.eps if company is not None else None)

    rows: list[ComparisonRow] = []
    for title, key, is_percentage, value_source, baseline_source in _ROWS:
        part, attr = value_source
        if part == "pe":
            value = own_pe
        else:
            holder = values[part]
            value = _finite(getattr(holder, attr)) if holder is not None else None

        rows.append(
            ComparisonRow(
                title=title,
                key=key,
                value=value,
                sector=_baseline_value(sector, baseline_source),
                market=_baseline_value(market, baseline_source),
                is_percentage=is_percentage,
            )
        )
    return rows


def format_value(value: float | None, is_percentage: bool) -> str:
    """Render a table cell: "N/A", "12.34%" or "1.23"."""
    if value is None:
        return "N/A"
    if is_percentage:
        return f"{value * 100:.2f}%"
    return f"{value:.2f}"


def comparison_frame(rows: Iterable[ComparisonRow]) -> pd.DataFrame:
    """Tabulate comparison rows in display order.

    Args:
        rows: Rows from compose_comparison.

    Returns:
        DataFrame with columns title, key, value, sector, market,
        is_percentage.
    """
    columns = ["title", "key", "value", "sector", "market", "is_percentage"]
    return pd.DataFrame(
        [
            {
                "title": r.title,
                "key": r.key,
                "value": r.value,
                "sector": r.sector,
                "market": r.market,
                "is_percentage": r.is_percentage,
            }
            for r in rows
        ],
        columns=columns,
    )
