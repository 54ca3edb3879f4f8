"""Wiring of registry, engine, ledger and event bus into one dashboard."""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional

from .config import DEFAULT_INSTRUMENTS, TradingConfig
from .engine import DeltaEngine, MarketStats, RecommendationGenerator, SignalTracker, market_stats
from .engine.recommender import Clock, utc_now
from .errors import ErrorCode, InvalidOperationError
from .events import ErrorRaised, EventBus, RefreshCompleted, TradeExecuted, TradeSignal
from .ledger import PortfolioLedger
from .models import Delta, Instrument, Recommendation, TradeRecommendation, TradeRecord
from .performance import (
    HistoricalReturn,
    PortfolioStats,
    SignalPerformance,
    portfolio_stats,
    signal_performance,
    simulate_historical_return,
)
from .quotes import RefreshResult
from .registry import InstrumentRegistry
from .store import MemoryStore, Store

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MarketAnalysis:
    reference_symbol: str
    deltas: list[Delta]
    recommendation: Optional[Recommendation]
    stats: MarketStats
    is_new_signal: bool
    timestamp: datetime


class RotationDashboard:
    """Application facade consumed by the presentation layer."""

    def __init__(
        self,
        registry: InstrumentRegistry,
        engine: DeltaEngine,
        generator: RecommendationGenerator,
        tracker: SignalTracker,
        ledger: PortfolioLedger,
        bus: EventBus,
        config: Optional[TradingConfig] = None,
        clock: Clock = utc_now,
    ) -> None:
        self.registry = registry
        self.engine = engine
        self.generator = generator
        self.tracker = tracker
        self.ledger = ledger
        self.bus = bus
        self.config = config or TradingConfig()
        self.clock = clock
        self.last_analysis: Optional[MarketAnalysis] = None

    def apply_refresh(self, result: RefreshResult) -> MarketAnalysis:
        """Take in one polling cycle's quotes and re-run the analysis."""
        self.registry.apply_snapshot(result.quotes)

        for symbol, message in result.failures.items():
            self.bus.publish(ErrorRaised(ErrorCode.UPSTREAM_UNAVAILABLE, message, symbol))

        self.ledger.sync()
        analysis = self.analyze()
        self.bus.publish(RefreshCompleted(result.success_count, result.total_count))
        return analysis

    def analyze(
        self,
        reference_symbol: Optional[str] = None,
        portfolio_value: Optional[Decimal] = None,
    ) -> MarketAnalysis:
        """Deltas, verdict and market statistics for the reference instrument.

        Defaults to the held instrument and the portfolio's current value
        (the invested value while uninitialized).
        """
        valuation = self.ledger.valuation()
        reference = reference_symbol or valuation.current_symbol
        if portfolio_value is None:
            portfolio_value = valuation.current_value or valuation.invested_value

        deltas = self.engine.compute_deltas(reference, portfolio_value)
        recommendation = self.generator.recommend_from(deltas, reference)
        if recommendation is None:
            self.bus.publish(
                ErrorRaised(
                    ErrorCode.DATA_INSUFFICIENT,
                    f"Not enough variation data to analyse {reference}",
                    reference,
                )
            )

        is_new = self.tracker.observe(recommendation)
        if is_new:
            self.bus.publish(TradeSignal(recommendation))

        self.last_analysis = MarketAnalysis(
            reference_symbol=reference,
            deltas=deltas,
            recommendation=recommendation,
            stats=market_stats(deltas, self.generator.threshold),
            is_new_signal=is_new,
            timestamp=self.clock(),
        )
        return self.last_analysis

    def execute_trade(self, symbol: str) -> TradeRecord:
        """Rotate the paper portfolio into ``symbol``.

        Raises:
            InvalidOperationError: See PortfolioLedger.execute_trade.
        """
        record = self.ledger.execute_trade(symbol)
        self.bus.publish(TradeExecuted(record))
        return record

    def execute_recommendation(self) -> TradeRecord:
        """Follow the last TRADE recommendation."""
        recommendation = self.last_analysis.recommendation if self.last_analysis else None
        if not isinstance(recommendation, TradeRecommendation):
            raise InvalidOperationError("No trade recommendation to execute")
        if recommendation.from_symbol != self.ledger.portfolio.current_symbol:
            raise InvalidOperationError(
                f"Recommendation is for {recommendation.from_symbol}, "
                f"portfolio holds {self.ledger.portfolio.current_symbol}"
            )
        return self.execute_trade(recommendation.to_symbol)

    def reset(self) -> None:
        """Reset portfolio and signal state, re-anchoring shares if a price is known."""
        self.ledger.reset()
        self.tracker.reset()
        self.last_analysis = None
        self.ledger.sync()

    def portfolio_stats(self) -> PortfolioStats:
        return portfolio_stats(self.ledger.valuation(), self.ledger.trade_log)

    def signal_performance(self) -> SignalPerformance:
        return signal_performance(self.tracker.history)

    def historical_return(self) -> HistoricalReturn:
        portfolio = self.ledger.portfolio
        return simulate_historical_return(
            self.ledger.trade_log, portfolio.invested_value, portfolio.total_fees
        )

    def trade_log(self, limit: Optional[int] = None) -> list[TradeRecord]:
        return self.ledger.records(limit)


def build_dashboard(
    config: Optional[TradingConfig] = None,
    store: Optional[Store] = None,
    instruments: Iterable[Instrument] = DEFAULT_INSTRUMENTS,
    bus: Optional[EventBus] = None,
    clock: Clock = utc_now,
) -> RotationDashboard:
    """Construct a dashboard with its collaborators and load the saved portfolio."""
    config = config or TradingConfig()
    registry = InstrumentRegistry(instruments)

    if config.DEFAULT_SYMBOL not in registry:
        raise ValueError(f"Default instrument {config.DEFAULT_SYMBOL} is not registered")

    engine = DeltaEngine(registry, fee=config.TRADING_FEE)
    generator = RecommendationGenerator(engine, threshold=config.TRADING_THRESHOLD, clock=clock)
    ledger = PortfolioLedger(registry, store or MemoryStore(), config, clock)
    ledger.load()

    return RotationDashboard(
        registry=registry,
        engine=engine,
        generator=generator,
        tracker=SignalTracker(),
        ledger=ledger,
        bus=bus or EventBus(),
        config=config,
        clock=clock,
    )
