"""Read-side statistics over the trade log and the signal history."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence

from .ledger import Valuation
from .models import TradeRecommendation, TradeRecord

ZERO = Decimal("0")


@dataclass(frozen=True)
class PortfolioStats:
    current_symbol: str
    shares: Decimal
    current_value: Decimal
    invested_value: Decimal
    performance: Decimal
    performance_percent: Decimal
    total_fees: Decimal
    total_trades: int
    profitable_trades: int
    success_rate: Decimal
    total_volume: Decimal
    average_trade_value: Decimal


@dataclass(frozen=True)
class SignalPerformance:
    total_signals: int
    successful_signals: int
    success_rate: Decimal
    average_net_gain: Decimal
    total_net_gain: Decimal
    best_signal: Optional[TradeRecommendation]
    worst_signal: Optional[TradeRecommendation]


@dataclass(frozen=True)
class ReturnStep:
    index: int
    timestamp: datetime
    trade: str
    before_value: Decimal
    after_value: Decimal
    change: Decimal
    change_percent: Decimal
    cumulative_return_percent: Decimal


@dataclass(frozen=True)
class HistoricalReturn:
    initial_value: Decimal
    final_value: Decimal
    total_return: Decimal
    total_return_percent: Decimal
    total_fees: Decimal
    net_return: Decimal
    steps: list[ReturnStep] = field(default_factory=list)


def _percent(part: Decimal, whole: Decimal) -> Decimal:
    return part / whole * 100 if whole else ZERO


def portfolio_stats(valuation: Valuation, records: Sequence[TradeRecord]) -> PortfolioStats:
    """Portfolio performance plus win rate and volume over the trade log.

    A trade counts as profitable when its value difference is positive.
    Volume is the sum of sold values.
    """
    total_trades = len(records)
    profitable = sum(1 for r in records if r.value_difference > 0)
    volume = sum((r.sold_value for r in records), start=ZERO)

    return PortfolioStats(
        current_symbol=valuation.current_symbol,
        shares=valuation.shares,
        current_value=valuation.current_value,
        invested_value=valuation.invested_value,
        performance=valuation.performance,
        performance_percent=valuation.performance_percent,
        total_fees=valuation.total_fees,
        total_trades=total_trades,
        profitable_trades=profitable,
        success_rate=_percent(Decimal(profitable), Decimal(total_trades)),
        total_volume=volume,
        average_trade_value=volume / total_trades if total_trades else ZERO,
    )


def signal_performance(signals: Sequence[TradeRecommendation]) -> SignalPerformance:
    """Hit rate and net gains of the TRADE signals that were emitted."""
    if not signals:
        return SignalPerformance(0, 0, ZERO, ZERO, ZERO, None, None)

    gains = [s.net_gain for s in signals]
    total = sum(gains, start=ZERO)
    successful = sum(1 for g in gains if g > 0)

    return SignalPerformance(
        total_signals=len(signals),
        successful_signals=successful,
        success_rate=_percent(Decimal(successful), Decimal(len(signals))),
        average_net_gain=total / len(signals),
        total_net_gain=total,
        # max/min return the first of equal elements
        best_signal=max(signals, key=lambda s: s.net_gain),
        worst_signal=min(signals, key=lambda s: s.net_gain),
    )


def simulate_historical_return(
    records: Sequence[TradeRecord],
    invested_value: Decimal,
    total_fees: Decimal = ZERO,
) -> HistoricalReturn:
    """Replay the trade log oldest first.

    Each record's bought value becomes the baseline for the next step; the
    cumulative return is relative to ``invested_value``.
    """
    value = invested_value
    steps: list[ReturnStep] = []

    for index, record in enumerate(records, start=1):
        before = value
        value = record.bought_value
        steps.append(
            ReturnStep(
                index=index,
                timestamp=record.timestamp,
                trade=f"{record.sold_symbol} -> {record.bought_symbol}",
                before_value=before,
                after_value=value,
                change=value - before,
                change_percent=_percent(value - before, before),
                cumulative_return_percent=_percent(value - invested_value, invested_value),
            )
        )

    total_return = value - invested_value
    return HistoricalReturn(
        initial_value=invested_value,
        final_value=value,
        total_return=total_return,
        total_return_percent=_percent(total_return, invested_value),
        total_fees=total_fees,
        net_return=total_return - total_fees,
        steps=steps,
    )
