"""Configuration constants for the ETF rotation engine."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from .models import Instrument


@dataclass(frozen=True)
class TradingConfig:
    """Thresholds, fees and portfolio defaults."""

    TRADING_THRESHOLD: Decimal = Decimal("0.5")
    TRADING_FEE: Decimal = Decimal("50")
    DEFAULT_SYMBOL: str = "VWCE"
    DEFAULT_INVESTED_VALUE: Decimal = Decimal("100000")
    # Only used when set: anchors shares before the first live quote arrives
    FALLBACK_REFERENCE_PRICE: Optional[Decimal] = None
    STORAGE_KEY: str = "etf-rotation-portfolio"


@dataclass(frozen=True)
class QuoteSourceConfig:
    """Configuration for the Börse Frankfurt quote box endpoint."""

    BASE_URL: str = "https://api.boerse-frankfurt.de/v1/data/quote_box/single"
    REQUEST_TIMEOUT: float = 10.0
    REQUEST_DELAY: float = 0.3
    USER_AGENT: str = "Mozilla/5.0"


DEFAULT_INSTRUMENTS: tuple[Instrument, ...] = (
    Instrument(
        symbol="IWDA",
        isin="IE00B4L5Y983",
        name="iShares Core MSCI World UCITS ETF",
        currency="EUR",
        wkn="A0RPWH",
        ticker="EUNL",
        description="Developed markets world equity",
    ),
    Instrument(
        symbol="VWCE",
        isin="IE00BK5BQT80",
        name="Vanguard FTSE All-World UCITS ETF (USD) Acc",
        currency="EUR",
        wkn="A2PKXG",
        ticker="VWCE",
        description="All-world equity, developed and emerging",
    ),
    Instrument(
        symbol="MEUD",
        isin="LU0908500753",
        name="Amundi STOXX Europe 600 UCITS ETF Acc",
        currency="EUR",
        wkn="LYX0Q0",
        ticker="LYP6",
        description="Broad European equity",
    ),
    Instrument(
        symbol="IMAE",
        isin="IE00B4K48X80",
        name="iShares Core MSCI Europe UCITS ETF EUR (Acc)",
        currency="EUR",
        wkn="A0RPWG",
        ticker="EUNK",
        description="Developed European equity",
    ),
)

# Each entry: (base price, daily volatility in percent) for offline simulation
SIMULATION_PROFILES: dict[str, tuple[Decimal, float]] = {
    "IWDA": (Decimal("75.30"), 0.7),
    "VWCE": (Decimal("108.50"), 0.8),
    "MEUD": (Decimal("52.80"), 0.9),
    "IMAE": (Decimal("41.20"), 1.0),
}
