"""Threshold policy turning deltas into a TRADE or HOLD verdict."""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Optional

from ..config import TradingConfig
from ..models import Delta, HoldRecommendation, Recommendation, TradeRecommendation
from .deltas import DeltaEngine

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RecommendationGenerator:
    """Recommends a rotation when a delta strictly exceeds the threshold."""

    def __init__(
        self,
        engine: DeltaEngine,
        threshold: Decimal = TradingConfig.TRADING_THRESHOLD,
        clock: Clock = utc_now,
    ) -> None:
        self.engine = engine
        self.threshold = threshold
        self.clock = clock

    def recommend(
        self, reference_symbol: str, portfolio_value: Decimal
    ) -> Optional[Recommendation]:
        """Compute deltas and decide.

        Returns:
            A TradeRecommendation or HoldRecommendation, or None when no delta
            could be computed.
        """
        deltas = self.engine.compute_deltas(reference_symbol, portfolio_value)
        return self.recommend_from(deltas, reference_symbol)

    def recommend_from(
        self, deltas: list[Delta], reference_symbol: str
    ) -> Optional[Recommendation]:
        """Decide over deltas already sorted best first."""
        if not deltas:
            logger.info("No computable delta for %s, no recommendation", reference_symbol)
            return None

        chosen = next((d for d in deltas if d.delta > self.threshold), None)

        if chosen is None:
            best = deltas[0]
            logger.info(
                "Hold %s: best delta %.2f%% below threshold %s%%",
                reference_symbol, best.delta, self.threshold,
            )
            return HoldRecommendation(
                current_symbol=reference_symbol,
                best_delta=best.delta,
                reason=f"best delta of {best.delta:.2f}% is below threshold of {self.threshold}%",
                timestamp=self.clock(),
            )

        logger.info(
            "Trade signal %s -> %s (delta %.2f%%)",
            reference_symbol, chosen.target_symbol, chosen.delta,
        )
        return TradeRecommendation(
            from_symbol=reference_symbol,
            to_symbol=chosen.target_symbol,
            delta=chosen.delta,
            reference_change=chosen.reference_change,
            target_change=chosen.target_change,
            potential_gain=chosen.potential_gain,
            net_gain=chosen.net_gain,
            confidence=chosen.confidence,
            reason=f"delta of {chosen.delta:.2f}% exceeds threshold of {self.threshold}%",
            timestamp=self.clock(),
        )


class SignalTracker:
    """Remembers the last TRADE pair so a signal is announced only once."""

    def __init__(self) -> None:
        self.last_pair: Optional[tuple[str, str]] = None
        self.history: list[TradeRecommendation] = []

    def observe(self, recommendation: Optional[Recommendation]) -> bool:
        """Record a recommendation.

        Returns:
            True if it is a TRADE whose (from, to) pair differs from the last
            one remembered. A HOLD or None forgets the remembered pair.
        """
        if not isinstance(recommendation, TradeRecommendation):
            if self.last_pair is not None:
                logger.info("Previous trade signal %s -> %s expired", *self.last_pair)
                self.last_pair = None
            return False

        if recommendation.pair == self.last_pair:
            return False

        self.last_pair = recommendation.pair
        self.history.append(recommendation)
        return True

    def reset(self) -> None:
        self.last_pair = None
        self.history = []
