"""Quote acquisition from the Börse Frankfurt quote box API."""

import json
import logging
import random
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Optional
from urllib.error import URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from .config import SIMULATION_PROFILES, QuoteSourceConfig
from .errors import UpstreamUnavailableError
from .models import Instrument, Quote
from .registry import InstrumentRegistry

logger = logging.getLogger(__name__)


@dataclass
class RefreshResult:
    """Outcome of one polling cycle: quotes obtained and per-symbol failures."""

    quotes: dict[str, Quote] = field(default_factory=dict)
    failures: dict[str, str] = field(default_factory=dict)

    @property
    def success_count(self) -> int:
        return len(self.quotes)

    @property
    def total_count(self) -> int:
        return len(self.quotes) + len(self.failures)


def _decimal_or_none(value: Any) -> Optional[Decimal]:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    return result if result.is_finite() else None


def parse_quote(payload: dict[str, Any]) -> Quote:
    """Map a quote box payload to a Quote.

    Absent fields stay None. A missing or non-positive ``lastPrice`` yields a
    Quote without price, which makes the instrument untradable this cycle.
    """
    price = _decimal_or_none(payload.get("lastPrice"))
    if price is not None and price <= 0:
        price = None

    timestamp = payload.get("timestampLastPrice") or payload.get("timestamp")

    return Quote(
        price=price,
        change_abs=_decimal_or_none(payload.get("changeToPrevDayAbsolute")),
        change_percent=_decimal_or_none(payload.get("changeToPrevDayInPercent")),
        open_price=_decimal_or_none(payload.get("open")),
        timestamp=str(timestamp) if timestamp is not None else None,
        trading_status=payload.get("tradingStatus"),
        instrument_status=payload.get("instrumentStatus"),
        volume=_decimal_or_none(payload.get("turnoverInPieces")),
        bid=_decimal_or_none(payload.get("bid")),
        ask=_decimal_or_none(payload.get("ask")),
    )


class QuoteSource:
    """Fetches one quote per instrument over HTTP."""

    def __init__(self, config: Optional[QuoteSourceConfig] = None) -> None:
        self.config = config or QuoteSourceConfig()

    def url_for(self, instrument: Instrument) -> str:
        return f"{self.config.BASE_URL}?{urlencode({'isin': instrument.isin})}"

    def fetch(self, instrument: Instrument) -> Quote:
        """Fetch and parse the latest quote for ``instrument``.

        Raises:
            UpstreamUnavailableError: On network, HTTP or decoding failure, or
                when the payload carries no price.
        """
        req = Request(
            self.url_for(instrument),
            headers={"User-Agent": self.config.USER_AGENT, "Accept": "application/json"},
        )
        try:
            with urlopen(req, timeout=self.config.REQUEST_TIMEOUT) as resp:
                payload = json.loads(resp.read())
        except (URLError, OSError, ValueError) as e:
            raise UpstreamUnavailableError(
                f"Quote request for {instrument.symbol} failed: {e}", instrument.symbol
            ) from e

        if not isinstance(payload, dict):
            raise UpstreamUnavailableError(
                f"Unexpected payload for {instrument.symbol}", instrument.symbol
            )

        quote = parse_quote(payload)
        if not quote.has_price:
            raise UpstreamUnavailableError(
                f"No price in payload for {instrument.symbol}", instrument.symbol
            )
        return quote

    def fetch_all(self, registry: InstrumentRegistry) -> RefreshResult:
        """Fetch every registered instrument; failures are collected, not raised."""
        result = RefreshResult()

        for i, instrument in enumerate(registry):
            if i and self.config.REQUEST_DELAY > 0:
                time.sleep(self.config.REQUEST_DELAY)
            try:
                result.quotes[instrument.symbol] = self.fetch(instrument)
            except UpstreamUnavailableError as e:
                logger.warning("Failed to fetch quote for %s: %s", instrument.symbol, e)
                result.failures[instrument.symbol] = str(e)

        logger.info("Fetched %d/%d quotes", result.success_count, result.total_count)
        return result


def simulate_quotes(
    registry: InstrumentRegistry,
    rng: Optional[random.Random] = None,
) -> RefreshResult:
    """Generate plausible quotes around the configured base prices.

    Offline mode only: instruments without a simulation profile are reported
    as failures.
    """
    rng = rng or random.Random()
    stamp = datetime.now(timezone.utc).isoformat()
    result = RefreshResult()

    for instrument in registry:
        profile = SIMULATION_PROFILES.get(instrument.symbol)
        if profile is None:
            result.failures[instrument.symbol] = "no simulation profile"
            continue

        base_price, volatility = profile
        change_percent = Decimal(str(round(rng.gauss(0, volatility), 2)))
        change_abs = (base_price * change_percent / 100).quantize(Decimal("0.01"))
        result.quotes[instrument.symbol] = Quote(
            price=base_price + change_abs,
            change_abs=change_abs,
            change_percent=change_percent,
            open_price=base_price,
            timestamp=stamp,
            trading_status="SIMULATED",
            instrument_status="ACTIVE",
        )

    return result
