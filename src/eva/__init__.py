"""EVA trading core: signal engine, autonomous loop and Binance client."""

__version__ = "0.1.0"
