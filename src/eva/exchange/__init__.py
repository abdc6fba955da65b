"""Exchange client layer -- Binance REST signing and market-data streams."""

from eva.exchange.binance_client import BinanceClient
from eva.exchange.client import ExchangeClient
from eva.exchange.signing import build_query_string, build_signed_query, sign_query
from eva.exchange.streams import StreamSubscription

__all__ = [
    "BinanceClient",
    "ExchangeClient",
    "StreamSubscription",
    "build_query_string",
    "build_signed_query",
    "sign_query",
]
