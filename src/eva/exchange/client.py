"""Abstract exchange client interface.

Defines the contract the loop, executors and API depend on, keeping
Binance-specific details isolated in the concrete implementation.
Credentials are passed per call and never stored on the client.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from eva.models import (
    DepthSnapshot,
    ExchangeCredentials,
    OrderResult,
    OrderSide,
    PriceSeries,
    TickerSnapshot,
)

if TYPE_CHECKING:
    from eva.exchange.streams import StreamSubscription

TickerCallback = Callable[[TickerSnapshot], Awaitable[None] | None]
DepthCallback = Callable[[DepthSnapshot], Awaitable[None] | None]


class ExchangeClient(ABC):
    """Abstract base class for exchange API clients."""

    @abstractmethod
    async def connect(self) -> None:
        """Open the HTTP session."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Close the HTTP session and every open stream subscription."""
        ...

    @abstractmethod
    async def fetch_candles(self, symbol: str, interval: str, limit: int) -> PriceSeries:
        """Fetch closed candles, oldest first.

        Raises:
            MarketDataError: Transport failure, non-2xx or unparseable payload.
        """
        ...

    @abstractmethod
    async def signed_request(
        self,
        method: str,
        path: str,
        params: dict[str, Any],
        credentials: ExchangeCredentials | None,
    ) -> Any:
        """Perform a signed private call and return the decoded JSON.

        Raises:
            MissingCredentialsError: Credentials absent or blank.
            AuthError: Signature, timestamp or key rejected.
            ExchangeError: Any other failure.
        """
        ...

    @abstractmethod
    async def fetch_account(self, credentials: ExchangeCredentials | None) -> dict:
        """Fetch account info including balances."""
        ...

    @abstractmethod
    async def place_order(
        self,
        credentials: ExchangeCredentials | None,
        symbol: str,
        side: OrderSide,
        quantity: Decimal,
        price: Decimal | None = None,
    ) -> OrderResult:
        """Place a MARKET order, or a GTC LIMIT order when ``price`` is given.

        Raises:
            MissingCredentialsError: Before any network call.
            AuthError: Credentials rejected.
            OrderError: Venue rejected the order or the call failed.
        """
        ...

    @abstractmethod
    def subscribe_ticker(self, symbol: str, on_update: TickerCallback) -> StreamSubscription:
        """Stream 24h ticker updates; ``on_update`` fires on every message."""
        ...

    @abstractmethod
    def subscribe_depth(self, symbol: str, on_update: DepthCallback) -> StreamSubscription:
        """Stream top-of-book depth; ``on_update`` fires on every message."""
        ...
