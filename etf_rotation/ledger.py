"""Paper portfolio ledger: one position, full rotations, append-only trade log."""

import logging
import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from .config import TradingConfig
from .engine.recommender import Clock, utc_now
from .errors import InvalidOperationError, PersistenceError
from .models import Portfolio, TradeRecord
from .registry import InstrumentRegistry
from .store import Store

logger = logging.getLogger(__name__)

DOCUMENT_VERSION = "1.0"


class LedgerState(Enum):
    UNINITIALIZED = "uninitialized"
    # Shares anchored on the configured fallback price, not a live quote
    PROVISIONAL = "provisional"
    HOLDING = "holding"


@dataclass(frozen=True)
class Valuation:
    """Portfolio value at the latest known price of the held instrument."""

    state: LedgerState
    current_symbol: str
    shares: Decimal
    current_price: Optional[Decimal]
    current_value: Decimal
    invested_value: Decimal
    total_fees: Decimal

    @property
    def performance(self) -> Decimal:
        return self.current_value - self.invested_value

    @property
    def performance_percent(self) -> Decimal:
        if self.invested_value == 0:
            return Decimal("0")
        return self.performance / self.invested_value * 100


@dataclass(frozen=True)
class TradePreview:
    """What a rotation into ``target_symbol`` would do at current prices."""

    target_symbol: str
    sale_value: Decimal
    new_value: Decimal
    new_shares: Decimal
    delta: Decimal
    fee: Decimal

    @property
    def difference(self) -> Decimal:
        return self.new_value - self.sale_value

    @property
    def difference_percent(self) -> Decimal:
        return self.difference / self.sale_value * 100


class PortfolioLedger:
    """Owns the paper portfolio and its trade log.

    Every mutation is persisted to the store; a failed write is logged and the
    in-memory state stays authoritative.
    """

    def __init__(
        self,
        registry: InstrumentRegistry,
        store: Store,
        config: Optional[TradingConfig] = None,
        clock: Clock = utc_now,
    ) -> None:
        self.registry = registry
        self.store = store
        self.config = config or TradingConfig()
        self.clock = clock
        self.portfolio = self._fresh_portfolio()
        self._records: list[TradeRecord] = []
        self._provisional = False
        self._trade_in_flight = False

    def _fresh_portfolio(self) -> Portfolio:
        return Portfolio(
            current_symbol=self.config.DEFAULT_SYMBOL,
            shares=Decimal("0"),
            invested_value=self.config.DEFAULT_INVESTED_VALUE,
        )

    @property
    def state(self) -> LedgerState:
        if self.portfolio.shares <= 0:
            return LedgerState.UNINITIALIZED
        if self._provisional:
            return LedgerState.PROVISIONAL
        return LedgerState.HOLDING

    @property
    def is_initialized(self) -> bool:
        return self.state is not LedgerState.UNINITIALIZED

    # -- lifecycle -----------------------------------------------------------

    def initialize_shares(self) -> bool:
        """Buy the initial position with the invested value.

        Uses the live price of the held instrument. Without one, falls back to
        ``FALLBACK_REFERENCE_PRICE`` only if it is configured, leaving the
        ledger PROVISIONAL until a live price arrives.

        Returns:
            True if shares were assigned.
        """
        symbol = self.portfolio.current_symbol
        price = self.registry.price(symbol)
        provisional = False

        if price is None:
            fallback = self.config.FALLBACK_REFERENCE_PRICE
            if fallback is None or fallback <= 0:
                logger.info("No price for %s yet, portfolio stays uninitialized", symbol)
                return False
            logger.warning(
                "No price for %s, anchoring shares on fallback reference price %s",
                symbol, fallback,
            )
            price = fallback
            provisional = True

        self.portfolio.shares = self.portfolio.invested_value / price
        self.portfolio.current_value = self.portfolio.shares * price
        self._provisional = provisional
        logger.info(
            "Portfolio initialized: %.4f %s at %s = %.2f",
            self.portfolio.shares, symbol, price, self.portfolio.current_value,
        )
        self._persist()
        return True

    def sync(self) -> None:
        """Bring the ledger up to date after a quote refresh."""
        price = self.registry.price(self.portfolio.current_symbol)
        state = self.state

        if state is LedgerState.UNINITIALIZED:
            self.initialize_shares()
        elif state is LedgerState.PROVISIONAL and price is not None and not self._records:
            logger.info("Live price available, re-anchoring provisional shares")
            self._provisional = False
            self.portfolio.shares = Decimal("0")
            self.initialize_shares()
        elif price is not None:
            self.portfolio.current_value = self.portfolio.shares * price

    def reset(self) -> None:
        """Back to an uninitialized default portfolio with an empty log."""
        self.portfolio = self._fresh_portfolio()
        self._records = []
        self._provisional = False
        self._persist()
        logger.info(
            "Portfolio reset to %s in %s",
            self.portfolio.invested_value, self.portfolio.current_symbol,
        )

    # -- read path -----------------------------------------------------------

    def valuation(self) -> Valuation:
        """Current value from the latest price; never mutates the ledger."""
        price = self.registry.price(self.portfolio.current_symbol)
        if price is not None and self.portfolio.shares > 0:
            value = self.portfolio.shares * price
        else:
            value = self.portfolio.current_value

        return Valuation(
            state=self.state,
            current_symbol=self.portfolio.current_symbol,
            shares=self.portfolio.shares,
            current_price=price,
            current_value=value,
            invested_value=self.portfolio.invested_value,
            total_fees=self.portfolio.total_fees,
        )

    def can_trade(self, symbol: str) -> bool:
        return (
            self.is_initialized
            and symbol != self.portfolio.current_symbol
            and symbol in self.registry
            and self.registry.price(symbol) is not None
            and self.registry.price(self.portfolio.current_symbol) is not None
        )

    def preview_trade(self, symbol: str) -> Optional[TradePreview]:
        """Rotation arithmetic without committing; None if not tradable."""
        if not self.can_trade(symbol):
            return None

        current_price = self.registry.price(self.portfolio.current_symbol)
        target_price = self.registry.price(symbol)
        fee = self.config.TRADING_FEE
        sale_value = self.portfolio.shares * current_price
        available = sale_value - fee
        if available <= 0:
            return None

        new_shares = available / target_price
        return TradePreview(
            target_symbol=symbol,
            sale_value=sale_value,
            new_value=new_shares * target_price,
            new_shares=new_shares,
            delta=self._variation(self.portfolio.current_symbol) - self._variation(symbol),
            fee=fee,
        )

    def records(self, limit: Optional[int] = None) -> list[TradeRecord]:
        """Trade log, most recent first."""
        newest_first = list(reversed(self._records))
        return newest_first[:limit] if limit else newest_first

    @property
    def trade_log(self) -> tuple[TradeRecord, ...]:
        """Trade log in execution order."""
        return tuple(self._records)

    def get_record(self, record_id: str) -> Optional[TradeRecord]:
        return next((r for r in self._records if r.id == record_id), None)

    # -- mutations -----------------------------------------------------------

    def execute_trade(self, symbol: str) -> TradeRecord:
        """Sell the whole position and buy ``symbol`` with the proceeds net of fee.

        Raises:
            InvalidOperationError: If the ledger is uninitialized, the target is
                the held instrument or unknown, a price is missing, a trade is
                already in progress, or the fee would consume the proceeds.
                The ledger is unchanged in every case.
        """
        if self._trade_in_flight:
            raise InvalidOperationError("A trade is already in progress", symbol)

        self._trade_in_flight = True
        try:
            return self._execute_trade(symbol)
        finally:
            self._trade_in_flight = False

    def _execute_trade(self, symbol: str) -> TradeRecord:
        if not self.is_initialized:
            raise InvalidOperationError("Portfolio is not initialized", symbol)

        held = self.portfolio.current_symbol
        if symbol == held:
            raise InvalidOperationError(f"Already holding {symbol}", symbol)

        if symbol not in self.registry:
            raise InvalidOperationError(f"Unknown instrument: {symbol}", symbol)

        current_price = self.registry.price(held)
        target_price = self.registry.price(symbol)
        if current_price is None or target_price is None:
            raise InvalidOperationError(
                f"Missing price data to trade {held} -> {symbol}", symbol
            )

        fee = self.config.TRADING_FEE
        sale_value = self.portfolio.shares * current_price
        available = sale_value - fee
        if available <= 0:
            raise InvalidOperationError(
                f"Sale value {sale_value:.2f} does not cover the trading fee {fee}", symbol
            )

        new_shares = available / target_price
        new_value = new_shares * target_price
        sold_variation = self._variation(held)
        bought_variation = self._variation(symbol)
        delta = sold_variation - bought_variation

        record = TradeRecord(
            id=f"trade_{uuid.uuid4().hex[:12]}",
            timestamp=self.clock(),
            sold_symbol=held,
            sold_price=current_price,
            sold_variation=sold_variation,
            sold_shares=self.portfolio.shares,
            sold_value=sale_value,
            bought_symbol=symbol,
            bought_price=target_price,
            bought_variation=bought_variation,
            bought_shares=new_shares,
            bought_value=new_value,
            fee=fee,
            previous_value=sale_value,
            value_difference=new_value - sale_value,
            reason=(
                f"delta {delta:.2f}% ({held} {sold_variation:+.2f}% -> "
                f"{symbol} {bought_variation:+.2f}%)"
            ),
            expected_gain=sale_value * delta / 100 - fee,
        )

        # Commit in one step: nothing above has touched ledger state
        self.portfolio = replace(
            self.portfolio,
            current_symbol=symbol,
            shares=new_shares,
            current_value=new_value,
            total_fees=self.portfolio.total_fees + fee,
        )
        self._provisional = False
        self._records.append(record)
        self._persist()

        logger.info(
            "Trade executed: %.4f %s -> %.4f %s (difference %.2f)",
            record.sold_shares, held, new_shares, symbol, record.value_difference,
        )
        return record

    def delete_record(self, record_id: str) -> Optional[TradeRecord]:
        """Remove one log entry. Portfolio state is not recomputed."""
        for index, record in enumerate(self._records):
            if record.id == record_id:
                del self._records[index]
                self._persist()
                logger.info("Deleted trade record %s", record_id)
                return record
        return None

    # -- persistence ---------------------------------------------------------

    def to_document(self) -> dict[str, Any]:
        return {
            "portfolio": self.portfolio.to_dict(),
            "tradingLogs": [r.to_dict() for r in self._records],
            "lastUpdate": self.clock().isoformat(),
            "version": DOCUMENT_VERSION,
        }

    def restore(self, document: dict[str, Any]) -> None:
        """Replace state from a persisted document.

        Raises:
            InvalidOperationError: If the document is malformed; state is unchanged.
        """
        try:
            portfolio = Portfolio.from_dict(document["portfolio"])
            records = [TradeRecord.from_dict(r) for r in document["tradingLogs"]]
            amounts = (
                portfolio.shares,
                portfolio.invested_value,
                portfolio.current_value,
                portfolio.total_fees,
            )
            if not all(amount.is_finite() for amount in amounts):
                raise ValueError("non-finite amount")
            if portfolio.shares < 0 or portfolio.total_fees < 0:
                raise ValueError("negative shares or fees")
        except (KeyError, TypeError, ValueError, ArithmeticError) as e:
            raise InvalidOperationError(f"Invalid portfolio document: {e}") from e

        if portfolio.current_symbol not in self.registry:
            raise InvalidOperationError(
                f"Invalid portfolio document: unknown instrument {portfolio.current_symbol}",
                portfolio.current_symbol,
            )

        self.portfolio = portfolio
        self._records = records
        self._provisional = False

    def import_document(self, document: dict[str, Any]) -> None:
        """Restore from an external document and persist it."""
        self.restore(document)
        self._persist()
        logger.info("Imported %d trade records", len(self._records))

    def load(self) -> bool:
        """Load the persisted document, if any.

        Returns:
            True if a stored portfolio was restored.
        """
        try:
            document = self.store.load(self.config.STORAGE_KEY)
        except PersistenceError as e:
            logger.warning("Could not load portfolio: %s", e)
            return False

        if document is None:
            logger.info("No saved portfolio found")
            return False

        try:
            self.restore(document)
        except InvalidOperationError as e:
            logger.warning("Ignoring saved portfolio: %s", e)
            return False

        logger.info(
            "Portfolio loaded: %d trades, holding %s",
            len(self._records), self.portfolio.current_symbol,
        )
        return True

    def _persist(self) -> None:
        try:
            self.store.save(self.config.STORAGE_KEY, self.to_document())
        except PersistenceError as e:
            logger.warning("Could not save portfolio: %s", e)

    def _variation(self, symbol: str) -> Decimal:
        change = self.registry.change_percent(symbol)
        return change if change is not None else Decimal("0")

    def __repr__(self) -> str:
        return (
            f"PortfolioLedger(state={self.state.value}, "
            f"holding={self.portfolio.current_symbol}, "
            f"shares={self.portfolio.shares}, trades={len(self._records)})"
        )
