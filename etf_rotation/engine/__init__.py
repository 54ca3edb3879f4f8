"""Signal computation: deltas, recommendations and market statistics."""

from .deltas import DeltaEngine, confidence, potential_gain
from .market_stats import MarketStats, market_stats
from .recommender import RecommendationGenerator, SignalTracker
from .threshold_search import AnalysisSnapshot, ThresholdResult, search_thresholds

__all__ = [
    "DeltaEngine",
    "confidence",
    "potential_gain",
    "MarketStats",
    "market_stats",
    "RecommendationGenerator",
    "SignalTracker",
    "AnalysisSnapshot",
    "ThresholdResult",
    "search_thresholds",
]
