"""Pairwise performance deltas between the reference instrument and the others."""

import logging
from decimal import Decimal

from ..config import TradingConfig
from ..models import Delta
from ..registry import InstrumentRegistry

logger = logging.getLogger(__name__)

CONFIDENCE_FLOOR = Decimal("0")
CONFIDENCE_CEILING = Decimal("100")
OPPOSITE_SIGN_BONUS = Decimal("20")
LARGE_DELTA_BONUS = Decimal("15")
LARGE_DELTA_CUTOFF = Decimal("1.0")


def potential_gain(delta: Decimal, portfolio_value: Decimal) -> Decimal:
    return portfolio_value * delta / Decimal("100")


def confidence(delta: Decimal, reference_change: Decimal, target_change: Decimal) -> Decimal:
    """Heuristic 0-100 score for a delta signal.

    Half the absolute delta, plus a bonus when the two instruments moved in
    strictly opposite directions (zero is not a direction) and another when
    the delta exceeds one percentage point.
    """
    score = min(abs(delta) / 2, CONFIDENCE_CEILING)

    if (reference_change > 0 and target_change < 0) or (
        reference_change < 0 and target_change > 0
    ):
        score += OPPOSITE_SIGN_BONUS

    if abs(delta) > LARGE_DELTA_CUTOFF:
        score += LARGE_DELTA_BONUS

    return max(CONFIDENCE_FLOOR, min(score, CONFIDENCE_CEILING))


class DeltaEngine:
    """Computes deltas from the quotes currently held by a registry."""

    def __init__(
        self,
        registry: InstrumentRegistry,
        fee: Decimal = TradingConfig.TRADING_FEE,
    ) -> None:
        self.registry = registry
        self.fee = fee

    def compute_deltas(self, reference_symbol: str, portfolio_value: Decimal) -> list[Delta]:
        """Deltas of ``reference_symbol`` against every other quoted instrument.

        Args:
            reference_symbol: Instrument currently held.
            portfolio_value: Value the gains are computed on.

        Returns:
            Deltas sorted best opportunity first. Empty when the reference has
            no variation data yet.
        """
        reference_change = self.registry.change_percent(reference_symbol)
        if reference_symbol not in self.registry or reference_change is None:
            logger.info("No variation data for %s, skipping delta computation", reference_symbol)
            return []

        reference_price = self.registry.price(reference_symbol)
        deltas: list[Delta] = []

        for instrument in self.registry:
            symbol = instrument.symbol
            if symbol == reference_symbol:
                continue

            target_change = self.registry.change_percent(symbol)
            if target_change is None:
                logger.debug("No variation data for %s, excluded from deltas", symbol)
                continue

            delta = reference_change - target_change
            gross = potential_gain(delta, portfolio_value)

            deltas.append(
                Delta(
                    reference_symbol=reference_symbol,
                    target_symbol=symbol,
                    delta=delta,
                    reference_change=reference_change,
                    target_change=target_change,
                    reference_price=reference_price,
                    target_price=self.registry.price(symbol),
                    potential_gain=gross,
                    net_gain=gross - self.fee,
                    confidence=confidence(delta, reference_change, target_change),
                )
            )

        # sorted() is stable, so equal deltas keep registry order
        return sorted(deltas, key=lambda d: d.delta, reverse=True)
