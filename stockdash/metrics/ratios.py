"""Per-company financial ratios derived from one statement."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from stockdash.data.models import FinancialStatement

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DerivedRatios:
    """Ratios derived from a single financial statement.

    Every field is a finite float or None.

    Attributes:
        gross_profit: total_revenue - cost_of_revenue.
        net_income: gross_profit - other_expenses.
        gross_margin: gross_profit / total_revenue.
        net_margin: net_income / total_revenue.
        asset_turnover: total_revenue / total_assets.
        current_ratio: current_assets / current_liabilities.
        quick_ratio: (current_assets - inventory) / current_liabilities.
        interest_coverage: ebit / interest_expenses.
    """

    gross_profit: float | None = None
    net_income: float | None = None
    gross_margin: float | None = None
    net_margin: float | None = None
    asset_turnover: float | None = None
    current_ratio: float | None = None
    quick_ratio: float | None = None
    interest_coverage: float | None = None


def ratio(
    a: float | None,
    b: float | None,
    allow_zero_denominator: bool = False,
) -> float | None:
    """Divide a by b, returning None instead of an undefined result.

    Args:
        a: Numerator. None propagates.
        b: Denominator. None propagates.
        allow_zero_denominator: Skip the explicit zero check. The
            quotient is still discarded if it is not finite.

    Returns:
        a / b as a finite float, or None.
    """
    if a is None or b is None:
        return None
    if not allow_zero_denominator and b == 0:
        return None
    try:
        result = a / b
    except (ZeroDivisionError, OverflowError):
        return None
    if not math.isfinite(result):
        return None
    return float(result)


def _difference(a: float | None, b: float | None) -> float | None:
    if a is None or b is None:
        return None
    result = a - b
    return result if math.isfinite(result) else None


def compute_ratios(statement: FinancialStatement | None) -> DerivedRatios:
    """Derive the per-company ratios from one financial statement.

    A missing statement is normal for companies that have not yet
    reported and yields an all-None result.

    Args:
        statement: Latest statement for the company, or None.

    Returns:
        DerivedRatios with each derivable field populated.
    """
    if statement is None:
        return DerivedRatios()

    s = statement
    gross_profit = _difference(s.total_revenue, s.cost_of_revenue)
    net_income = _difference(gross_profit, s.other_expenses)

    derived = DerivedRatios(
        gross_profit=gross_profit,
        net_income=net_income,
        gross_margin=ratio(gross_profit, s.total_revenue),
        net_margin=ratio(net_income, s.total_revenue),
        asset_turnover=ratio(s.total_revenue, s.total_assets),
        current_ratio=ratio(s.current_assets, s.current_liabilities),
        quick_ratio=ratio(
            _difference(s.current_assets, s.inventory), s.current_liabilities
        ),
        interest_coverage=ratio(s.ebit, s.interest_expenses),
    )

    if s.current_liabilities == 0:
        logger.debug(
            "stock %d: current liabilities are zero, liquidity ratios set to None",
            s.stock_id,
        )
    return derived
