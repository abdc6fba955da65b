"""Tests for PaperExecutor simulated order execution.

Verifies:
- Market orders fill at the cached ticker price
- Limit orders fill at their limit price
- PriceUnavailableError when price is missing or stale
- is_simulated=True on all results
- Order ID format (paper_{hex})
"""

import time
from decimal import Decimal

import pytest

from eva.exceptions import PriceUnavailableError
from eva.execution.paper_executor import PaperExecutor
from eva.market_data.cache import MarketDataCache
from eva.models import OrderRequest, OrderSide, TickerSnapshot


def _ticker(price: float, received_at: float | None = None) -> TickerSnapshot:
    return TickerSnapshot(
        symbol="BTCUSDT",
        price=price,
        change_24h=0.5,
        high_24h=price + 100,
        low_24h=price - 100,
        volume=1000.0,
        received_at=time.time() if received_at is None else received_at,
    )


@pytest.fixture
def market_data() -> MarketDataCache:
    return MarketDataCache()


@pytest.fixture
def executor(market_data: MarketDataCache) -> PaperExecutor:
    return PaperExecutor(market_data)


@pytest.mark.asyncio
async def test_market_order_fills_at_cached_price(
    executor: PaperExecutor, market_data: MarketDataCache
) -> None:
    market_data.on_ticker(_ticker(64000.5))

    result = await executor.place_order(
        OrderRequest(symbol="BTCUSDT", side=OrderSide.BUY, quantity=Decimal("0.001"))
    )

    assert result.executed_price == Decimal("64000.5")
    assert result.quantity == Decimal("0.001")
    assert result.side is OrderSide.BUY
    assert result.raw_status == "FILLED"
    assert result.is_simulated is True
    assert result.order_id.startswith("paper_")
    assert len(result.order_id) == len("paper_") + 12


@pytest.mark.asyncio
async def test_limit_order_fills_at_limit_price(executor: PaperExecutor) -> None:
    """No ticker needed when the caller names the price."""
    result = await executor.place_order(
        OrderRequest(
            symbol="BTCUSDT", side=OrderSide.SELL, quantity=Decimal("0.002"), price=Decimal("65000")
        )
    )
    assert result.executed_price == Decimal("65000")
    assert result.side is OrderSide.SELL


@pytest.mark.asyncio
async def test_missing_price_raises(executor: PaperExecutor) -> None:
    with pytest.raises(PriceUnavailableError):
        await executor.place_order(
            OrderRequest(symbol="BTCUSDT", side=OrderSide.BUY, quantity=Decimal("0.001"))
        )


@pytest.mark.asyncio
async def test_stale_price_raises(executor: PaperExecutor, market_data: MarketDataCache) -> None:
    market_data.on_ticker(_ticker(64000.0, received_at=time.time() - 120))
    with pytest.raises(PriceUnavailableError, match="stale"):
        await executor.place_order(
            OrderRequest(symbol="BTCUSDT", side=OrderSide.SELL, quantity=Decimal("0.001"))
        )


@pytest.mark.asyncio
async def test_order_ids_are_unique(executor: PaperExecutor, market_data: MarketDataCache) -> None:
    market_data.on_ticker(_ticker(64000.0))
    request = OrderRequest(symbol="BTCUSDT", side=OrderSide.BUY, quantity=Decimal("0.001"))
    first = await executor.place_order(request)
    second = await executor.place_order(request)
    assert first.order_id != second.order_id
