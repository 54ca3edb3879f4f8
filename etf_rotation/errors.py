"""Error taxonomy for the rotation engine."""

from enum import Enum
from typing import Optional


class ErrorCode(Enum):
    """Codes carried by errors and error events so callers can pick a message."""

    DATA_INSUFFICIENT = "data-insufficient"
    INVALID_OPERATION = "invalid-operation"
    PERSISTENCE_FAILURE = "persistence-failure"
    UPSTREAM_UNAVAILABLE = "upstream-unavailable"


class RotationError(Exception):
    """Base class for errors raised by the rotation engine."""

    code: ErrorCode = ErrorCode.INVALID_OPERATION

    def __init__(self, message: str, symbol: Optional[str] = None) -> None:
        super().__init__(message)
        self.symbol = symbol


class InvalidOperationError(RotationError, ValueError):
    """A ledger operation was rejected; the ledger is unchanged."""

    code = ErrorCode.INVALID_OPERATION


class PersistenceError(RotationError):
    """The store could not read or write a document."""

    code = ErrorCode.PERSISTENCE_FAILURE


class UpstreamUnavailableError(RotationError):
    """The quote provider could not supply data for an instrument."""

    code = ErrorCode.UPSTREAM_UNAVAILABLE
