"""Binance payload parsers for REST and stream messages.

Prices and quantities sent to or returned by the venue use Decimal.
Candle and stream values feed indicator math and are parsed to float.
"""

from __future__ import annotations

import time
from decimal import Decimal

from eva.models import Candle, DepthLevel, DepthSnapshot, PriceSeries, TickerSnapshot


def parse_klines(
    rows: list[list],
    limit: int,
    now_ms: int | None = None,
) -> PriceSeries:
    """Convert a /api/v3/klines payload into a PriceSeries of closed candles.

    Binance returns ``[openTime, open, high, low, close, volume, closeTime, ...]``
    with numeric strings. The last row is usually the still-forming candle;
    rows whose closeTime lies in the future are dropped when ``now_ms`` is given.

    Raises:
        ValueError, TypeError, IndexError: On a malformed row.
    """
    series = PriceSeries(maxlen=limit)
    for row in rows:
        close_time = int(row[6]) if len(row) > 6 else int(row[0])
        if now_ms is not None and close_time > now_ms:
            continue
        series.append(
            Candle(
                time=int(row[0]),
                open=float(row[1]),
                high=float(row[2]),
                low=float(row[3]),
                close=float(row[4]),
                volume=float(row[5]),
                close_time=close_time,
            )
        )
    return series


def parse_ticker(symbol: str, msg: dict) -> TickerSnapshot:
    """Convert a ``<symbol>@ticker`` stream message."""
    return TickerSnapshot(
        symbol=symbol,
        price=float(msg["c"]),
        change_24h=float(msg["P"]),
        high_24h=float(msg["h"]),
        low_24h=float(msg["l"]),
        volume=float(msg["v"]),
        received_at=time.time(),
    )


def parse_depth(symbol: str, msg: dict, levels: int = 10) -> DepthSnapshot:
    """Convert a ``<symbol>@depth10@100ms`` stream message.

    Both sides arrive best-first. Bids keep that order. Asks are capped to
    the nearest ``levels`` and then reversed, so the best ask ends up last,
    directly above the best bid when the book is drawn top-down.
    """
    bids = tuple(
        DepthLevel(price=float(price), size=float(size))
        for price, size in msg["bids"][:levels]
    )
    asks = tuple(
        DepthLevel(price=float(price), size=float(size))
        for price, size in msg["asks"][:levels]
    )[::-1]
    return DepthSnapshot(symbol=symbol, bids=bids, asks=asks, received_at=time.time())


def format_decimal(value: Decimal) -> str:
    """Render a Decimal for a query string without exponent notation."""
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"
