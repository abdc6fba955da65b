"""Configuration system using pydantic-settings with environment variable loading."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from decimal import Decimal
from typing import Literal

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from eva.models import ExchangeCredentials
from eva.logging import get_logger

logger = get_logger(__name__)


class ExchangeSettings(BaseSettings):
    """Binance connection settings."""

    model_config = SettingsConfigDict(env_prefix="BINANCE_")

    api_key: SecretStr = SecretStr("")
    api_secret: SecretStr = SecretStr("")
    testnet: bool = False
    request_timeout: float = 5.0  # seconds, every REST call; below TRADING_TICK_TIMEOUT
    recv_window: int | None = None  # ms; venue default (5000) when unset
    depth_levels: int = 10  # order-book levels kept per side
    stream_open_timeout: float = 10.0
    stream_reconnect_delay: float = 1.0
    stream_max_reconnect_delay: float = 30.0


class TradingSettings(BaseSettings):
    """Autonomous loop and execution parameters."""

    model_config = SettingsConfigDict(env_prefix="TRADING_")

    mode: Literal["paper", "live"] = "paper"
    symbol: str = "BTCUSDT"
    interval: str = "15m"
    candle_limit: int = 50
    tick_interval: float = 10.0  # seconds between loop ticks
    tick_timeout: float = 8.0  # bound on fetch + evaluate; orders are not cut short
    order_quantity: Decimal = Decimal("0.001")  # fixed size, not risk-derived
    auto_execute: bool = True
    autostart: bool = False
    leverage: int = 20  # passed through to the presentation layer only
    max_backoff_ticks: int = 6  # cap on ticks skipped after repeated data failures
    min_liquidity_usd: Decimal = Decimal("5")


class SignalSettings(BaseSettings):
    """Initial signal configuration, loaded once at startup.

    The operator edits the live copy through ConfigHandle; these values are
    only the defaults the handle starts from.
    """

    model_config = SettingsConfigDict(env_prefix="SIGNAL_")

    learning_rate: float = 0.65
    risk_tolerance: float = 50.0
    use_rsi: bool = True
    use_whale_tracking: bool = True
    use_pattern_recognition: bool = True
    use_volatility_shield: bool = True
    use_news_integration: bool = False
    use_arbitrage_scanner: bool = False
    use_dark_pool_detection: bool = False
    invert_logic: bool = False

    def to_signal_config(self) -> SignalConfig:
        """Build the immutable SignalConfig the engine consumes."""
        return SignalConfig(**self.model_dump())


class StoreSettings(BaseSettings):
    """Decision log backend."""

    model_config = SettingsConfigDict(env_prefix="STORE_")

    backend: Literal["memory", "sqlite"] = "sqlite"
    db_path: str = "data/decisions.db"
    recent_limit: int = 50


class ApiSettings(BaseSettings):
    """HTTP bridge consumed by the presentation layer."""

    model_config = SettingsConfigDict(env_prefix="API_")

    enabled: bool = True
    host: str = "0.0.0.0"
    port: int = 8080


@dataclass(frozen=True)
class SignalConfig:
    """Operator-owned weights and toggles read by the engine on every tick.

    Frozen: changes go through ConfigHandle, which swaps the whole object,
    so a tick never sees a half-applied edit. The pattern, news, arbitrage
    and dark-pool toggles are reserved and have no effect on the score.
    """

    learning_rate: float = 0.65  # RSI weight, [0, 1]
    risk_tolerance: float = 50.0  # decision threshold, [1, 100], inversely scaled
    use_rsi: bool = True
    use_whale_tracking: bool = True
    use_pattern_recognition: bool = True
    use_volatility_shield: bool = True
    use_news_integration: bool = False
    use_arbitrage_scanner: bool = False
    use_dark_pool_detection: bool = False
    invert_logic: bool = False

    def to_dict(self) -> dict:
        return dataclasses.asdict(self)


class ConfigHandle:
    """Single holder for the current SignalConfig.

    Readers call get() once per tick and keep that reference for the whole
    tick; writers replace the reference. Attribute assignment is atomic
    under asyncio, so no lock is needed.
    """

    def __init__(self, initial: SignalConfig | None = None) -> None:
        self._config = initial if initial is not None else SignalConfig()

    def get(self) -> SignalConfig:
        """Return the current configuration."""
        return self._config

    def replace(self, config: SignalConfig) -> SignalConfig:
        """Swap in a new configuration object.

        Raises:
            TypeError: If ``config`` is not a SignalConfig.
        """
        if not isinstance(config, SignalConfig):
            raise TypeError(f"expected SignalConfig, got {type(config).__name__}")
        self._config = config
        logger.info("signal_config_replaced", **config.to_dict())
        return config

    def update(self, **changes: object) -> SignalConfig:
        """Replace the configuration with a copy carrying ``changes``."""
        return self.replace(dataclasses.replace(self._config, **changes))


def credentials_from_settings(settings: ExchangeSettings) -> ExchangeCredentials | None:
    """Build credentials for one signed call, or None when not configured."""
    api_key = settings.api_key.get_secret_value()
    api_secret = settings.api_secret.get_secret_value()
    if not api_key or not api_secret:
        return None
    return ExchangeCredentials(api_key=api_key, api_secret=api_secret)


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    log_format: str = "console"
    exchange: ExchangeSettings = ExchangeSettings()
    trading: TradingSettings = TradingSettings()
    signal: SignalSettings = SignalSettings()
    store: StoreSettings = StoreSettings()
    api: ApiSettings = ApiSettings()

    @model_validator(mode="after")
    def validate_timeouts(self) -> AppSettings:
        # A candle fetch must fail on its own HTTP timeout (MarketDataError,
        # with backoff) before the tick timeout fires.
        if self.trading.tick_timeout <= self.exchange.request_timeout:
            raise ValueError(
                "TRADING_TICK_TIMEOUT must be greater than BINANCE_REQUEST_TIMEOUT"
            )
        return self
