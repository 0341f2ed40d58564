"""Price/earnings: one company's P/E and the cross-sectional mean."""

from __future__ import annotations

import logging
from collections.abc import Hashable, Mapping

from stockdash.metrics.aggregation import mean_of_present
from stockdash.metrics.ratios import ratio

logger = logging.getLogger(__name__)


def company_pe(price: float | None, eps: float | None) -> float | None:
    """P/E for one company. None if price or EPS is missing or EPS is zero."""
    return ratio(price, eps)


def average_pe(
    prices: Mapping[Hashable, float | None],
    eps: Mapping[Hashable, float | None],
) -> float | None:
    """Mean P/E across the stocks present in both maps.

    Iterates the price map. A stock qualifies when its EPS is present
    and non-zero; stocks found in only one map are skipped.

    Args:
        prices: stock id -> latest share price.
        eps: stock id -> latest EPS.

    Returns:
        Mean P/E of the qualifying stocks, or None if none qualify.
    """
    pe_values: list[float] = []
    for stock_id, price in prices.items():
        stock_eps = eps.get(stock_id)
        if not stock_eps:
            continue
        pe = ratio(price, stock_eps)
        if pe is not None:
            pe_values.append(pe)

    logger.debug(
        "P/E computed for %d of %d priced stocks", len(pe_values), len(prices)
    )
    return mean_of_present(pe_values)
