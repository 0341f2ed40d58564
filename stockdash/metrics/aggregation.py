"""Peer-group baselines: arithmetic means across a sector or market.

Each company counts as one equally weighted sample. Statement ratios are
computed per company before averaging; raw totals are never summed
across companies.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

import numpy as np

from stockdash.data.models import FinancialStatement, MetricSnapshot
from stockdash.metrics.ratios import compute_ratios

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetricBaseline:
    """Mean market metrics across a peer group. None if no member has a value."""

    return_on_equity: float | None = None
    return_on_assets: float | None = None
    payout_ratio: float | None = None
    eps: float | None = None
    trailing_annual_dividend_rate: float | None = None


@dataclass(frozen=True)
class FinancialBaseline:
    """Mean statement ratios across a peer group. None if no member has a value."""

    asset_turnover: float | None = None
    current_ratio: float | None = None
    quick_ratio: float | None = None
    interest_coverage: float | None = None
    gross_margin: float | None = None
    net_margin: float | None = None


def mean_of_present(values: Iterable[float | None]) -> float | None:
    """Arithmetic mean of the finite values, skipping None and NaN.

    Args:
        values: Candidate values.

    Returns:
        The mean, or None if no finite value remains.
    """
    arr = np.array([v for v in values if v is not None], dtype=float)
    arr = arr[np.isfinite(arr)]
    if arr.size == 0:
        return None
    with np.errstate(over="ignore"):
        result = float(arr.mean())
    if not np.isfinite(result):
        # Sum overflowed; scale each term first.
        result = float((arr / arr.size).sum())
    return result if np.isfinite(result) else None


def aggregate_metrics(
    snapshots: Iterable[MetricSnapshot] | None,
) -> MetricBaseline:
    """Average each market metric across a peer group.

    Args:
        snapshots: One snapshot per member, or None.

    Returns:
        MetricBaseline. All fields None for a missing or empty group.
    """
    if snapshots is None:
        return MetricBaseline()

    members = list(snapshots)
    if not members:
        logger.debug("Empty peer group, metric baseline is empty")
        return MetricBaseline()

    return MetricBaseline(
        **{
            name: mean_of_present(getattr(m, name) for m in members)
            for name in MetricSnapshot.NUMERIC_FIELDS
        }
    )


def aggregate_financials(
    statements: Iterable[FinancialStatement] | None,
) -> FinancialBaseline:
    """Average each statement ratio across a peer group.

    Args:
        statements: One statement per member, or None.

    Returns:
        FinancialBaseline. Members whose ratio is None are left out of
        that ratio's mean.
    """
    if statements is None:
        return FinancialBaseline()

    derived = [compute_ratios(s) for s in statements]
    if not derived:
        logger.debug("Empty peer group, financial baseline is empty")
        return FinancialBaseline()

    baseline = FinancialBaseline(
        asset_turnover=mean_of_present(d.asset_turnover for d in derived),
        current_ratio=mean_of_present(d.current_ratio for d in derived),
        quick_ratio=mean_of_present(d.quick_ratio for d in derived),
        interest_coverage=mean_of_present(d.interest_coverage for d in derived),
        gross_margin=mean_of_present(d.gross_margin for d in derived),
        net_margin=mean_of_present(d.net_margin for d in derived),
    )
    logger.debug("Aggregated statement ratios over %d companies", len(derived))
    return baseline
