"""Market data layer -- last-known ticker and order-book snapshots."""

from eva.market_data.cache import MarketDataCache

__all__ = ["MarketDataCache"]
