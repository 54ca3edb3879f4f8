"""
ETF Rotation - Delta signals and a paper portfolio for rotating between ETFs.

Exports:
    Instrument, Quote, Delta: Reference data, latest quotes and computed deltas
    TradeRecommendation, HoldRecommendation: The engine's verdict
    Portfolio, TradeRecord: Paper portfolio state and its trade log entries
    InstrumentRegistry: Instruments with their latest-quote slots
    DeltaEngine, RecommendationGenerator, SignalTracker: Signal computation
    PortfolioLedger: Paper portfolio with fee-adjusted rotations
    EventBus: Synchronous event channel for signals, refreshes and errors
    RotationDashboard, build_dashboard: Composition root
"""

from .config import DEFAULT_INSTRUMENTS, QuoteSourceConfig, TradingConfig
from .dashboard import MarketAnalysis, RotationDashboard, build_dashboard
from .engine import DeltaEngine, MarketStats, RecommendationGenerator, SignalTracker
from .errors import (
    ErrorCode,
    InvalidOperationError,
    PersistenceError,
    RotationError,
    UpstreamUnavailableError,
)
from .events import ErrorRaised, EventBus, RefreshCompleted, TradeExecuted, TradeSignal
from .ledger import LedgerState, PortfolioLedger, TradePreview, Valuation
from .models import (
    Delta,
    HoldRecommendation,
    Instrument,
    Portfolio,
    Quote,
    Recommendation,
    TradeRecommendation,
    TradeRecord,
)
from .quotes import QuoteSource, RefreshResult, parse_quote, simulate_quotes
from .registry import InstrumentRegistry
from .store import JsonFileStore, MemoryStore, Store

__all__ = [
    "DEFAULT_INSTRUMENTS",
    "QuoteSourceConfig",
    "TradingConfig",
    "MarketAnalysis",
    "RotationDashboard",
    "build_dashboard",
    "DeltaEngine",
    "MarketStats",
    "RecommendationGenerator",
    "SignalTracker",
    "ErrorCode",
    "InvalidOperationError",
    "PersistenceError",
    "RotationError",
    "UpstreamUnavailableError",
    "ErrorRaised",
    "EventBus",
    "RefreshCompleted",
    "TradeExecuted",
    "TradeSignal",
    "LedgerState",
    "PortfolioLedger",
    "TradePreview",
    "Valuation",
    "Delta",
    "HoldRecommendation",
    "Instrument",
    "Portfolio",
    "Quote",
    "Recommendation",
    "TradeRecommendation",
    "TradeRecord",
    "QuoteSource",
    "RefreshResult",
    "parse_quote",
    "simulate_quotes",
    "InstrumentRegistry",
    "JsonFileStore",
    "MemoryStore",
    "Store",
]
