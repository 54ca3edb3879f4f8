"""Tests for portfolio and signal performance aggregation."""

from decimal import Decimal

from conftest import FIXED_TIME
from etf_rotation.ledger import LedgerState, Valuation
from etf_rotation.models import TradeRecommendation, TradeRecord
from etf_rotation.performance import (
    portfolio_stats,
    signal_performance,
    simulate_historical_return,
)


def record(sold_value, bought_value, sold="V", bought="W", fee="50"):
    sold_value, bought_value = Decimal(sold_value), Decimal(bought_value)
    return TradeRecord(
        id=f"trade_{sold}_{bought}_{bought_value}",
        timestamp=FIXED_TIME,
        sold_symbol=sold,
        sold_price=Decimal("100"),
        sold_variation=Decimal("1"),
        sold_shares=sold_value / 100,
        sold_value=sold_value,
        bought_symbol=bought,
        bought_price=Decimal("50"),
        bought_variation=Decimal("-1"),
        bought_shares=bought_value / 50,
        bought_value=bought_value,
        fee=Decimal(fee),
        previous_value=sold_value,
        value_difference=bought_value - sold_value,
        reason="test",
        expected_gain=Decimal("0"),
    )


def signal(to_symbol, net_gain):
    return TradeRecommendation(
        from_symbol="V",
        to_symbol=to_symbol,
        delta=Decimal("1"),
        reference_change=Decimal("0.5"),
        target_change=Decimal("-0.5"),
        potential_gain=Decimal(net_gain) + 50,
        net_gain=Decimal(net_gain),
        confidence=Decimal("40"),
        reason="test",
        timestamp=FIXED_TIME,
    )


VALUATION = Valuation(
    state=LedgerState.HOLDING,
    current_symbol="W",
    shares=Decimal("1999"),
    current_price=Decimal("51"),
    current_value=Decimal("101949"),
    invested_value=Decimal("100000"),
    total_fees=Decimal("100"),
)


class TestPortfolioStats:
    def test_no_trades(self):
        stats = portfolio_stats(VALUATION, [])
        assert stats.total_trades == 0
        assert stats.success_rate == 0
        assert stats.average_trade_value == 0
        assert stats.performance == Decimal("1949")

    def test_win_rate_and_volume(self):
        records = [record("100000", "99950"), record("99950", "101000", sold="W", bought="V")]
        stats = portfolio_stats(VALUATION, records)

        assert stats.total_trades == 2
        assert stats.profitable_trades == 1
        assert stats.success_rate == Decimal("50")
        assert stats.total_volume == Decimal("199950")
        assert stats.average_trade_value == Decimal("99975")
        assert stats.total_fees == Decimal("100")
        assert stats.performance_percent == Decimal("1.949")

    def test_idempotent(self):
        records = [record("100000", "99950")]
        assert portfolio_stats(VALUATION, records) == portfolio_stats(VALUATION, records)


class TestSignalPerformance:
    def test_empty(self):
        perf = signal_performance([])
        assert perf.total_signals == 0
        assert perf.best_signal is None
        assert perf.worst_signal is None

    def test_aggregates(self):
        signals = [signal("W", "150"), signal("X", "-30"), signal("Y", "60")]
        perf = signal_performance(signals)

        assert perf.total_signals == 3
        assert perf.successful_signals == 2
        assert round(perf.success_rate, 2) == Decimal("66.67")
        assert perf.total_net_gain == Decimal("180")
        assert perf.average_net_gain == Decimal("60")
        assert perf.best_signal.to_symbol == "W"
        assert perf.worst_signal.to_symbol == "X"


class TestSimulateHistoricalReturn:
    def test_no_trades(self):
        result = simulate_historical_return([], Decimal("100000"))
        assert result.final_value == Decimal("100000")
        assert result.total_return == 0
        assert result.steps == []

    def test_replay(self):
        records = [record("100000", "99950"), record("101000", "100950", sold="W", bought="V")]
        result = simulate_historical_return(records, Decimal("100000"), Decimal("100"))

        assert [s.after_value for s in result.steps] == [Decimal("99950"), Decimal("100950")]
        assert result.steps[0].change == Decimal("-50")
        assert result.steps[1].before_value == Decimal("99950")
        assert result.steps[1].change == Decimal("1000")
        assert result.steps[1].trade == "W -> V"
        assert result.steps[1].cumulative_return_percent == Decimal("0.95")
        assert result.final_value == Decimal("100950")
        assert result.total_return == Decimal("950")
        assert result.total_return_percent == Decimal("0.95")
        assert result.net_return == Decimal("850")
