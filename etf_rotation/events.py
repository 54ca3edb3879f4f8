"""Synchronous publish/subscribe channel between the engine and its consumers."""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Optional

from .errors import ErrorCode
from .models import TradeRecommendation, TradeRecord

logger = logging.getLogger(__name__)

Handler = Callable[[Any], None]


@dataclass(frozen=True)
class TradeSignal:
    """A new (from, to) rotation signal."""

    recommendation: TradeRecommendation


@dataclass(frozen=True)
class RefreshCompleted:
    success_count: int
    total_count: int

    @property
    def complete(self) -> bool:
        return self.success_count == self.total_count


@dataclass(frozen=True)
class ErrorRaised:
    code: ErrorCode
    message: str
    symbol: Optional[str] = None


@dataclass(frozen=True)
class TradeExecuted:
    record: TradeRecord


class EventBus:
    """Dispatches events to handlers registered for their exact type.

    Handlers run synchronously in registration order. A failing handler is
    logged and does not stop the others.
    """

    def __init__(self) -> None:
        self._handlers: dict[type, list[Handler]] = defaultdict(list)

    def subscribe(self, event_type: type, handler: Handler) -> None:
        if not callable(handler):
            raise TypeError(f"Handler for {event_type.__name__} must be callable")
        self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: type, handler: Handler) -> bool:
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)
            return True
        return False

    def publish(self, event: Any) -> int:
        """Deliver ``event``.

        Returns:
            Number of handlers that returned without raising.
        """
        delivered = 0
        for handler in list(self._handlers.get(type(event), [])):
            try:
                handler(event)
            except Exception:
                logger.exception("Handler %r failed on %s", handler, type(event).__name__)
                continue
            delivered += 1
        return delivered

    def handler_count(self, event_type: type) -> int:
        return len(self._handlers.get(event_type, []))
