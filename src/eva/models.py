"""Shared data models for the EVA trading core.

Order prices and quantities use Decimal. Candle, ticker and depth values
are floats: they only feed indicator math and display.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class OrderSide(str, Enum):
    """Order direction, as Binance spells it."""

    BUY = "BUY"
    SELL = "SELL"


class OrderType(str, Enum):
    """Order type."""

    MARKET = "MARKET"
    LIMIT = "LIMIT"


@dataclass(frozen=True)
class Candle:
    """One kline. Times are Unix milliseconds."""

    time: int
    open: float
    high: float
    low: float
    close: float
    volume: float
    close_time: int = 0

    @property
    def is_green(self) -> bool:
        return self.close > self.open


class PriceSeries:
    """Fixed-length sliding window of candles, ascending by time.

    Appending to a full window evicts the oldest candle.
    """

    def __init__(self, candles: Iterable[Candle] = (), maxlen: int = 50) -> None:
        self._candles: deque[Candle] = deque(candles, maxlen=maxlen)

    @property
    def maxlen(self) -> int:
        return self._candles.maxlen or 0

    def append(self, candle: Candle) -> None:
        self._candles.append(candle)

    @property
    def closes(self) -> list[float]:
        return [c.close for c in self._candles]

    @property
    def volumes(self) -> list[float]:
        return [c.volume for c in self._candles]

    @property
    def latest(self) -> Candle | None:
        return self._candles[-1] if self._candles else None

    def __len__(self) -> int:
        return len(self._candles)

    def __iter__(self) -> Iterator[Candle]:
        return iter(self._candles)

    def __getitem__(self, index: int) -> Candle:
        return self._candles[index]

    def __repr__(self) -> str:
        return f"PriceSeries(len={len(self)}, maxlen={self.maxlen})"


@dataclass(frozen=True)
class TickerSnapshot:
    """Latest 24h ticker for a symbol, as last received from the stream."""

    symbol: str
    price: float
    change_24h: float  # percent
    high_24h: float
    low_24h: float
    volume: float
    received_at: float


@dataclass(frozen=True)
class DepthLevel:
    price: float
    size: float


@dataclass(frozen=True)
class DepthSnapshot:
    """Top-of-book levels per side, capped to a fixed depth."""

    symbol: str
    bids: tuple[DepthLevel, ...]
    asks: tuple[DepthLevel, ...]
    received_at: float


@dataclass(frozen=True)
class ExchangeCredentials:
    """API key pair for one signed call. Never cached, never logged."""

    api_key: str
    api_secret: str

    @property
    def is_complete(self) -> bool:
        return bool(self.api_key) and bool(self.api_secret)

    def __repr__(self) -> str:
        return "ExchangeCredentials(api_key='***', api_secret='***')"


@dataclass
class OrderRequest:
    """Request to place an order. No price means a MARKET order."""

    symbol: str
    side: OrderSide
    quantity: Decimal
    price: Decimal | None = None

    @property
    def order_type(self) -> OrderType:
        return OrderType.MARKET if self.price is None else OrderType.LIMIT


@dataclass
class OrderResult:
    """Result of a placed order."""

    order_id: str
    symbol: str
    side: OrderSide
    quantity: Decimal
    executed_price: Decimal
    raw_status: str
    is_simulated: bool = False

    def to_dict(self) -> dict:
        return {
            "order_id": self.order_id,
            "symbol": self.symbol,
            "side": self.side.value,
            "quantity": str(self.quantity),
            "executed_price": str(self.executed_price),
            "raw_status": self.raw_status,
            "is_simulated": self.is_simulated,
        }
