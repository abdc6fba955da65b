"""Shared last-known-value cache for streamed market data.

Stream subscriptions write ticker and depth snapshots here; the paper
executor and the API read them. Each write replaces a whole frozen
snapshot, so readers always see a complete (possibly one-message-stale)
value without locking.
"""

import time
from decimal import Decimal

from eva.logging import get_logger
from eva.models import DepthSnapshot, TickerSnapshot

logger = get_logger(__name__)


class MarketDataCache:
    """Latest ticker and depth snapshot per symbol, with staleness checks."""

    def __init__(self) -> None:
        self._tickers: dict[str, TickerSnapshot] = {}
        self._depths: dict[str, DepthSnapshot] = {}

    def on_ticker(self, snapshot: TickerSnapshot) -> None:
        """Stream callback: store the latest ticker."""
        self._tickers[snapshot.symbol] = snapshot

    def on_depth(self, snapshot: DepthSnapshot) -> None:
        """Stream callback: store the latest depth snapshot."""
        self._depths[snapshot.symbol] = snapshot

    def get_ticker(self, symbol: str) -> TickerSnapshot | None:
        return self._tickers.get(symbol.upper())

    def get_depth(self, symbol: str) -> DepthSnapshot | None:
        return self._depths.get(symbol.upper())

    def get_price(self, symbol: str) -> Decimal | None:
        """Return the latest traded price as Decimal, or None if not cached."""
        ticker = self.get_ticker(symbol)
        if ticker is None:
            return None
        return Decimal(str(ticker.price))

    def get_price_age(self, symbol: str) -> float | None:
        """Return seconds since the last ticker update, or None if never received."""
        ticker = self.get_ticker(symbol)
        if ticker is None:
            return None
        return time.time() - ticker.received_at

    def is_stale(self, symbol: str, max_age_seconds: float = 60.0) -> bool:
        """True when the ticker is missing or older than ``max_age_seconds``."""
        age = self.get_price_age(symbol)
        if age is None:
            return True
        return age > max_age_seconds
