"""Instrument registry holding static reference data and the latest quotes."""

import logging
from decimal import Decimal
from typing import Iterable, Iterator, Mapping, Optional

from .models import Instrument, Quote

logger = logging.getLogger(__name__)


class InstrumentRegistry:
    """Ordered set of instruments, each with one latest-quote slot.

    Iteration order is registration order; the delta engine relies on it to
    break ties between equal deltas.
    """

    def __init__(self, instruments: Iterable[Instrument] = ()) -> None:
        self._instruments: dict[str, Instrument] = {}
        self._quotes: dict[str, Quote] = {}
        for instrument in instruments:
            self.register(instrument)

    def register(self, instrument: Instrument) -> None:
        if instrument.symbol in self._instruments:
            raise ValueError(f"Instrument {instrument.symbol} is already registered")
        self._instruments[instrument.symbol] = instrument

    def get(self, symbol: str) -> Optional[Instrument]:
        return self._instruments.get(symbol)

    def symbols(self) -> list[str]:
        return list(self._instruments)

    def quote(self, symbol: str) -> Optional[Quote]:
        return self._quotes.get(symbol)

    def price(self, symbol: str) -> Optional[Decimal]:
        """Latest usable price, or None if unknown or non-positive."""
        quote = self._quotes.get(symbol)
        if quote is None or not quote.has_price:
            return None
        return quote.price

    def change_percent(self, symbol: str) -> Optional[Decimal]:
        quote = self._quotes.get(symbol)
        return quote.change_percent if quote is not None else None

    def update_quote(self, symbol: str, quote: Quote) -> None:
        if symbol not in self._instruments:
            raise KeyError(f"Unknown instrument: {symbol}")
        self._quotes[symbol] = quote

    def apply_snapshot(self, quotes: Mapping[str, Quote]) -> int:
        """Write a (possibly partial) set of quotes.

        Instruments missing from ``quotes`` keep their previous quote.

        Returns:
            Number of quotes written.
        """
        written = 0
        for symbol, quote in quotes.items():
            if symbol not in self._instruments:
                logger.warning("Ignoring quote for unregistered instrument %s", symbol)
                continue
            self._quotes[symbol] = quote
            written += 1
        return written

    def clear_quotes(self) -> None:
        self._quotes.clear()

    def __contains__(self, symbol: object) -> bool:
        return symbol in self._instruments

    def __iter__(self) -> Iterator[Instrument]:
        return iter(self._instruments.values())

    def __len__(self) -> int:
        return len(self._instruments)

    def __repr__(self) -> str:
        return (
            f"InstrumentRegistry(instruments={self.symbols()}, "
            f"quoted={list(self._quotes)})"
        )
