"""Data models for the ETF rotation engine."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Literal, Optional, Union


@dataclass(frozen=True)
class Instrument:
    """A tradable fund tracked by the dashboard."""

    symbol: str
    isin: str
    name: str
    currency: str
    wkn: Optional[str] = None
    ticker: Optional[str] = None
    description: str = ""


@dataclass(frozen=True)
class Quote:
    """Latest price and variation snapshot for an instrument.

    ``None`` means "not yet known" and is never interchangeable with zero.
    """

    price: Optional[Decimal] = None
    change_abs: Optional[Decimal] = None
    change_percent: Optional[Decimal] = None
    open_price: Optional[Decimal] = None
    timestamp: Optional[str] = None
    trading_status: Optional[str] = None
    instrument_status: Optional[str] = None
    volume: Optional[Decimal] = None
    bid: Optional[Decimal] = None
    ask: Optional[Decimal] = None

    @property
    def has_price(self) -> bool:
        return self.price is not None and self.price > 0

    @property
    def usable_for_deltas(self) -> bool:
        return self.change_percent is not None


@dataclass(frozen=True)
class Delta:
    """Performance gap between the reference instrument and one target."""

    reference_symbol: str
    target_symbol: str
    delta: Decimal
    reference_change: Decimal
    target_change: Decimal
    reference_price: Optional[Decimal]
    target_price: Optional[Decimal]
    potential_gain: Decimal
    net_gain: Decimal
    confidence: Decimal


@dataclass(frozen=True)
class TradeRecommendation:
    """Rotate out of the held instrument into ``to_symbol``."""

    from_symbol: str
    to_symbol: str
    delta: Decimal
    reference_change: Decimal
    target_change: Decimal
    potential_gain: Decimal
    net_gain: Decimal
    confidence: Decimal
    reason: str
    timestamp: datetime

    action: Literal["TRADE"] = "TRADE"

    @property
    def pair(self) -> tuple[str, str]:
        return (self.from_symbol, self.to_symbol)

    def __str__(self) -> str:
        return (
            f"TRADE {self.from_symbol} -> {self.to_symbol} "
            f"(delta {self.delta:+.2f}%, net {self.net_gain:,.2f}, "
            f"confidence {self.confidence:.0f})"
        )


@dataclass(frozen=True)
class HoldRecommendation:
    """Keep the held instrument; no delta cleared the threshold."""

    current_symbol: str
    best_delta: Decimal
    reason: str
    timestamp: datetime

    action: Literal["HOLD"] = "HOLD"

    def __str__(self) -> str:
        return f"HOLD {self.current_symbol} (best delta {self.best_delta:+.2f}%)"


Recommendation = Union[TradeRecommendation, HoldRecommendation]


@dataclass
class Portfolio:
    """Single-position paper portfolio."""

    current_symbol: str
    shares: Decimal
    invested_value: Decimal
    current_value: Decimal = Decimal("0")
    total_fees: Decimal = Decimal("0")

    def to_dict(self) -> dict[str, Any]:
        return {
            "currentInstrument": self.current_symbol,
            "shares": str(self.shares),
            "investedValue": str(self.invested_value),
            "currentValue": str(self.current_value),
            "totalFees": str(self.total_fees),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Portfolio":
        return cls(
            current_symbol=data["currentInstrument"],
            shares=_to_decimal(data["shares"]),
            invested_value=_to_decimal(data["investedValue"]),
            current_value=_to_decimal(data.get("currentValue", "0")),
            total_fees=_to_decimal(data.get("totalFees", "0")),
        )


@dataclass(frozen=True)
class TradeRecord:
    """Immutable log entry describing both legs of a rotation."""

    id: str
    timestamp: datetime
    sold_symbol: str
    sold_price: Decimal
    sold_variation: Decimal
    sold_shares: Decimal
    sold_value: Decimal
    bought_symbol: str
    bought_price: Decimal
    bought_variation: Decimal
    bought_shares: Decimal
    bought_value: Decimal
    fee: Decimal
    previous_value: Decimal
    value_difference: Decimal
    reason: str
    expected_gain: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "soldInstrument": self.sold_symbol,
            "soldPrice": str(self.sold_price),
            "soldVariation": str(self.sold_variation),
            "soldShares": str(self.sold_shares),
            "soldValue": str(self.sold_value),
            "boughtInstrument": self.bought_symbol,
            "boughtPrice": str(self.bought_price),
            "boughtVariation": str(self.bought_variation),
            "boughtShares": str(self.bought_shares),
            "boughtValue": str(self.bought_value),
            "fee": str(self.fee),
            "previousValue": str(self.previous_value),
            "valueDifference": str(self.value_difference),
            "reason": self.reason,
            "expectedGain": str(self.expected_gain),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TradeRecord":
        return cls(
            id=data["id"],
            timestamp=datetime.fromisoformat(data["timestamp"]),
            sold_symbol=data["soldInstrument"],
            sold_price=_to_decimal(data["soldPrice"]),
            sold_variation=_to_decimal(data.get("soldVariation", "0")),
            sold_shares=_to_decimal(data["soldShares"]),
            sold_value=_to_decimal(data["soldValue"]),
            bought_symbol=data["boughtInstrument"],
            bought_price=_to_decimal(data["boughtPrice"]),
            bought_variation=_to_decimal(data.get("boughtVariation", "0")),
            bought_shares=_to_decimal(data["boughtShares"]),
            bought_value=_to_decimal(data["boughtValue"]),
            fee=_to_decimal(data["fee"]),
            previous_value=_to_decimal(data.get("previousValue", data["soldValue"])),
            value_difference=_to_decimal(data["valueDifference"]),
            reason=data.get("reason", ""),
            expected_gain=_to_decimal(data.get("expectedGain", "0")),
        )

    def __str__(self) -> str:
        return (
            f"{self.sold_shares:.4f} {self.sold_symbol} @ {self.sold_price:.2f} -> "
            f"{self.bought_shares:.4f} {self.bought_symbol} @ {self.bought_price:.2f} "
            f"(fee {self.fee:.2f}, diff {self.value_difference:+.2f})"
        )


def _to_decimal(value: Any) -> Decimal:
    """Convert a JSON scalar to Decimal without float artefacts."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))
