from datetime import datetime, timezone
from decimal import Decimal

import pytest

from etf_rotation.models import Instrument, Quote
from etf_rotation.registry import InstrumentRegistry

FIXED_TIME = datetime(2026, 3, 2, 10, 30, tzinfo=timezone.utc)


def instrument(symbol: str) -> Instrument:
    return Instrument(symbol=symbol, isin=f"XX{symbol}0000000", name=f"{symbol} ETF", currency="EUR")


def quote(change: str | None, price: str | None = "100") -> Quote:
    return Quote(
        price=Decimal(price) if price is not None else None,
        change_percent=Decimal(change) if change is not None else None,
    )


@pytest.fixture
def clock():
    return lambda: FIXED_TIME


@pytest.fixture
def make_registry():
    """Build a registry from {symbol: (change_percent, price)}; None skips the quote."""

    def _make(quotes_by_symbol: dict[str, tuple[str | None, str | None] | None]) -> InstrumentRegistry:
        registry = InstrumentRegistry(instrument(s) for s in quotes_by_symbol)
        for symbol, values in quotes_by_symbol.items():
            if values is not None:
                registry.update_quote(symbol, quote(*values))
        return registry

    return _make
