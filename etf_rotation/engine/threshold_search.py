"""Naive grid search over candidate trading thresholds.

Replays recorded quote snapshots and sums the net gain every delta above a
candidate threshold would have produced. It ignores execution order, fees
compounding and position state, so it is a rough comparison tool only.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Mapping, Optional

import numpy as np

from ..config import TradingConfig
from ..models import Instrument, Quote
from ..registry import InstrumentRegistry
from .deltas import DeltaEngine

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLDS = np.round(np.arange(0.3, 1.05, 0.1), 2)


@dataclass(frozen=True)
class AnalysisSnapshot:
    """One recorded refresh cycle."""

    quotes: Mapping[str, Quote]
    reference_symbol: str
    portfolio_value: Decimal


@dataclass(frozen=True)
class ThresholdResult:
    threshold: Decimal
    total_profit: Decimal
    trade_count: int

    @property
    def average_profit(self) -> Decimal:
        if self.trade_count == 0:
            return Decimal("0")
        return self.total_profit / self.trade_count


def search_thresholds(
    instruments: Iterable[Instrument],
    snapshots: Iterable[AnalysisSnapshot],
    thresholds: Optional[Iterable[float]] = None,
    fee: Decimal = TradingConfig.TRADING_FEE,
) -> list[ThresholdResult]:
    """Evaluate each threshold over all snapshots.

    Returns:
        Results sorted by total profit, best first. Ties keep the candidate
        order.
    """
    candidates = [
        Decimal(str(t))
        for t in (DEFAULT_THRESHOLDS if thresholds is None else thresholds)
    ]
    instruments = list(instruments)

    # Deltas do not depend on the threshold, compute them once per snapshot
    snapshot_deltas = []
    for snapshot in snapshots:
        registry = InstrumentRegistry(instruments)
        registry.apply_snapshot(snapshot.quotes)
        engine = DeltaEngine(registry, fee=fee)
        snapshot_deltas.append(
            engine.compute_deltas(snapshot.reference_symbol, snapshot.portfolio_value)
        )

    results: list[ThresholdResult] = []
    for threshold in candidates:
        signals = [d for deltas in snapshot_deltas for d in deltas if d.delta > threshold]
        results.append(
            ThresholdResult(
                threshold=threshold,
                total_profit=sum((d.net_gain for d in signals), start=Decimal("0")),
                trade_count=len(signals),
            )
        )

    results.sort(key=lambda r: r.total_profit, reverse=True)

    for rank, result in enumerate(results[:3], start=1):
        logger.info(
            "%d. threshold %s%%: %.0f over %d trades",
            rank, result.threshold, result.total_profit, result.trade_count,
        )

    return results
