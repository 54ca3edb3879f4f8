"""Summary statistics over one analysis cycle's deltas."""

from dataclasses import dataclass
from decimal import Decimal

import numpy as np

from ..models import Delta


@dataclass(frozen=True)
class MarketStats:
    average_delta: float
    max_delta: float
    min_delta: float
    trade_opportunities: int
    volatility: float
    total_instruments: int


def market_stats(deltas: list[Delta], threshold: Decimal) -> MarketStats:
    """Average, extremes, opportunities above ``threshold`` and the population
    standard deviation of the deltas."""
    if not deltas:
        return MarketStats(0.0, 0.0, 0.0, 0, 0.0, 0)

    values = np.array([float(d.delta) for d in deltas])

    return MarketStats(
        average_delta=float(values.mean()),
        max_delta=float(values.max()),
        min_delta=float(values.min()),
        trade_opportunities=sum(1 for d in deltas if d.delta > threshold),
        volatility=float(values.std()),
        total_instruments=len(deltas) + 1,
    )
