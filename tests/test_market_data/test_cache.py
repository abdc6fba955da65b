"""Tests for MarketDataCache."""

import time
from decimal import Decimal

from eva.market_data.cache import MarketDataCache
from eva.models import DepthLevel, DepthSnapshot, TickerSnapshot


def _ticker(price: float, received_at: float) -> TickerSnapshot:
    return TickerSnapshot("BTCUSDT", price, 1.0, price, price, 10.0, received_at)


class TestMarketDataCache:
    def test_empty_cache(self) -> None:
        cache = MarketDataCache()
        assert cache.get_ticker("BTCUSDT") is None
        assert cache.get_price("BTCUSDT") is None
        assert cache.get_price_age("BTCUSDT") is None
        assert cache.is_stale("BTCUSDT") is True

    def test_latest_ticker_wins(self) -> None:
        cache = MarketDataCache()
        now = time.time()
        cache.on_ticker(_ticker(100.0, now))
        cache.on_ticker(_ticker(101.25, now))
        assert cache.get_price("btcusdt") == Decimal("101.25")
        assert cache.is_stale("BTCUSDT") is False

    def test_stale_after_max_age(self) -> None:
        cache = MarketDataCache()
        cache.on_ticker(_ticker(100.0, time.time() - 90))
        assert cache.is_stale("BTCUSDT", max_age_seconds=60) is True
        assert cache.is_stale("BTCUSDT", max_age_seconds=120) is False

    def test_depth_snapshot(self) -> None:
        cache = MarketDataCache()
        snapshot = DepthSnapshot(
            symbol="BTCUSDT",
            bids=(DepthLevel(99.0, 1.0),),
            asks=(DepthLevel(101.0, 2.0),),
            received_at=time.time(),
        )
        cache.on_depth(snapshot)
        assert cache.get_depth("btcusdt") is snapshot
        assert cache.get_depth("ETHUSDT") is None
