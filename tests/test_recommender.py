"""Tests for recommendations, signal de-duplication and market statistics."""

from decimal import Decimal

import pytest

from etf_rotation.engine import (
    DeltaEngine,
    RecommendationGenerator,
    SignalTracker,
    market_stats,
)
from etf_rotation.models import HoldRecommendation, TradeRecommendation


def generator_for(registry, clock, threshold="0.5"):
    return RecommendationGenerator(DeltaEngine(registry), Decimal(threshold), clock=clock)


class TestRecommendationGenerator:
    def test_no_data_returns_none(self, make_registry, clock):
        registry = make_registry({"V": (None, "100"), "W": ("0.1", "100")})
        assert generator_for(registry, clock).recommend("V", Decimal("1000")) is None

    def test_trade_above_threshold(self, make_registry, clock):
        registry = make_registry({"V": ("1.0", "100"), "W": ("-0.5", "50")})
        rec = generator_for(registry, clock).recommend("V", Decimal("100000"))

        assert isinstance(rec, TradeRecommendation)
        assert rec.action == "TRADE"
        assert rec.pair == ("V", "W")
        assert rec.delta == Decimal("1.5")
        assert rec.net_gain == Decimal("1450")
        assert rec.reason == "delta of 1.50% exceeds threshold of 0.5%"

    def test_delta_equal_to_threshold_holds(self, make_registry, clock):
        registry = make_registry({"V": ("0.5", "100"), "W": ("0", "100")})
        rec = generator_for(registry, clock).recommend("V", Decimal("1000"))

        assert isinstance(rec, HoldRecommendation)
        assert rec.best_delta == Decimal("0.5")
        assert rec.reason == "best delta of 0.50% is below threshold of 0.5%"

    def test_delta_just_above_threshold_trades(self, make_registry, clock):
        registry = make_registry({"V": ("0.50001", "100"), "W": ("0", "100")})
        rec = generator_for(registry, clock).recommend("V", Decimal("1000"))
        assert isinstance(rec, TradeRecommendation)

    def test_picks_first_delta_above_threshold(self, make_registry, clock):
        registry = make_registry({
            "V": ("1.0", "100"),
            "A": ("0.2", "100"),
            "B": ("-1.0", "100"),
        })
        rec = generator_for(registry, clock).recommend("V", Decimal("1000"))
        assert rec.to_symbol == "B"

    def test_hold_carries_best_delta(self, make_registry, clock):
        registry = make_registry({
            "V": ("-1.0", "100"),
            "A": ("-1.2", "100"),
            "B": ("0.4", "100"),
        })
        rec = generator_for(registry, clock).recommend("V", Decimal("1000"))

        assert isinstance(rec, HoldRecommendation)
        assert rec.current_symbol == "V"
        assert rec.best_delta == Decimal("0.2")

    def test_custom_threshold(self, make_registry, clock):
        registry = make_registry({"V": ("1.0", "100"), "W": ("0.2", "100")})
        rec = generator_for(registry, clock, threshold="1.0").recommend("V", Decimal("1000"))
        assert isinstance(rec, HoldRecommendation)

    def test_recommend_is_repeatable(self, make_registry, clock):
        registry = make_registry({"V": ("1.0", "100"), "W": ("-0.5", "50")})
        generator = generator_for(registry, clock)
        assert generator.recommend("V", Decimal("1000")) == generator.recommend("V", Decimal("1000"))


def trade(from_symbol, to_symbol, net_gain="100", clock_time=None):
    return TradeRecommendation(
        from_symbol=from_symbol,
        to_symbol=to_symbol,
        delta=Decimal("1"),
        reference_change=Decimal("0.5"),
        target_change=Decimal("-0.5"),
        potential_gain=Decimal(net_gain) + 50,
        net_gain=Decimal(net_gain),
        confidence=Decimal("50"),
        reason="test",
        timestamp=clock_time,
    )


def hold(symbol):
    return HoldRecommendation(current_symbol=symbol, best_delta=Decimal("0.1"), reason="test", timestamp=None)


class TestSignalTracker:
    def test_first_trade_is_new(self):
        tracker = SignalTracker()
        assert tracker.observe(trade("V", "W")) is True
        assert tracker.last_pair == ("V", "W")

    def test_same_pair_twice_is_not_new(self):
        tracker = SignalTracker()
        tracker.observe(trade("V", "W"))
        assert tracker.observe(trade("V", "W")) is False
        assert len(tracker.history) == 1

    def test_changed_pair_is_new(self):
        tracker = SignalTracker()
        tracker.observe(trade("V", "W"))
        assert tracker.observe(trade("V", "X")) is True
        assert len(tracker.history) == 2

    def test_hold_clears_pair(self):
        tracker = SignalTracker()
        tracker.observe(trade("V", "W"))
        assert tracker.observe(hold("V")) is False
        assert tracker.last_pair is None
        assert tracker.observe(trade("V", "W")) is True

    def test_none_clears_pair(self):
        tracker = SignalTracker()
        tracker.observe(trade("V", "W"))
        tracker.observe(None)
        assert tracker.last_pair is None

    def test_reset(self):
        tracker = SignalTracker()
        tracker.observe(trade("V", "W"))
        tracker.reset()
        assert tracker.last_pair is None
        assert tracker.history == []


class TestMarketStats:
    def test_empty(self):
        stats = market_stats([], Decimal("0.5"))
        assert stats.average_delta == 0
        assert stats.trade_opportunities == 0
        assert stats.total_instruments == 0

    def test_values(self, make_registry):
        registry = make_registry({
            "REF": ("1.0", "100"),
            "X": ("-0.6", "100"),
            "Y": ("0.2", "100"),
            "Z": ("0.3", "100"),
        })
        deltas = DeltaEngine(registry).compute_deltas("REF", Decimal("1000"))
        stats = market_stats(deltas, Decimal("0.5"))

        assert stats.average_delta == pytest.approx(1.0333333)
        assert stats.max_delta == pytest.approx(1.6)
        assert stats.min_delta == pytest.approx(0.7)
        assert stats.trade_opportunities == 3
        assert stats.volatility == pytest.approx(0.4027682, rel=1e-6)
        assert stats.total_instruments == 4

    def test_opportunities_use_strict_threshold(self, make_registry):
        registry = make_registry({"REF": ("0.5", "100"), "X": ("0", "100")})
        deltas = DeltaEngine(registry).compute_deltas("REF", Decimal("1000"))
        assert market_stats(deltas, Decimal("0.5")).trade_opportunities == 0
