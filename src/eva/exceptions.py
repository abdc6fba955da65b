"""Custom exceptions for the EVA trading core.

Signal, exchange and execution errors live here to avoid circular
imports between modules. The autonomous loop decides skip-vs-fail by
exception type, so every recoverable condition has its own class.
"""


class EvaError(Exception):
    """Base exception for all EVA errors."""


class InsufficientDataError(EvaError):
    """Raised when a price series is too short for the slowest indicator.

    Recoverable: the loop skips the tick.
    """

    def __init__(self, available: int, required: int) -> None:
        super().__init__(f"need {required} samples, got {available}")
        self.available = available
        self.required = required


class MissingCredentialsError(EvaError):
    """Raised before any private call when the API key or secret is blank."""


class PriceUnavailableError(EvaError):
    """Raised when no cached price exists for a simulated fill."""


class ExchangeError(EvaError):
    """Base class for failures reported by (or on the way to) the exchange.

    Attributes:
        status_code: HTTP status when the venue answered, else None.
        code: Venue error code from the JSON body (e.g. -1021), else None.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code


class MarketDataError(ExchangeError):
    """Network or parse failure on public market data. Retryable."""

    retryable = True


class AuthError(ExchangeError):
    """Signature, timestamp or API key rejected by the venue."""


class OrderError(ExchangeError):
    """The venue rejected an order, or the order call failed in transit.

    Never retried automatically: a blind retry can double-fill.
    """


class StoreError(EvaError):
    """The decision log could not be written or read."""
