"""Tests for settings loading, SignalConfig and ConfigHandle."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from eva.config import (
    AppSettings,
    ConfigHandle,
    ExchangeSettings,
    SignalConfig,
    SignalSettings,
    TradingSettings,
    credentials_from_settings,
)


class TestSettings:
    def test_trading_defaults(self) -> None:
        settings = TradingSettings()
        assert settings.symbol == "BTCUSDT"
        assert settings.interval == "15m"
        assert settings.candle_limit == 50
        assert settings.tick_interval == 10.0
        assert settings.order_quantity == Decimal("0.001")

    def test_env_prefix(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TRADING_SYMBOL", "ETHUSDT")
        monkeypatch.setenv("SIGNAL_RISK_TOLERANCE", "80")
        monkeypatch.setenv("BINANCE_TESTNET", "true")
        assert TradingSettings().symbol == "ETHUSDT"
        assert SignalSettings().risk_tolerance == 80.0
        assert ExchangeSettings().testnet is True

    def test_signal_settings_defaults_match_config(self) -> None:
        assert SignalSettings().to_signal_config() == SignalConfig()

    def test_default_timeouts_are_ordered(self) -> None:
        settings = AppSettings()
        assert settings.trading.tick_timeout > settings.exchange.request_timeout

    def test_tick_timeout_must_exceed_request_timeout(self) -> None:
        with pytest.raises(ValidationError, match="TRADING_TICK_TIMEOUT"):
            AppSettings(
                exchange=ExchangeSettings(request_timeout=10.0),
                trading=TradingSettings(tick_timeout=8.0),
            )

    def test_default_toggles(self) -> None:
        config = SignalConfig()
        assert config.learning_rate == 0.65
        assert config.risk_tolerance == 50.0
        assert (config.use_rsi, config.use_whale_tracking, config.use_volatility_shield) == (True, True, True)
        assert config.use_pattern_recognition is True
        assert config.use_news_integration is False
        assert config.use_arbitrage_scanner is False
        assert config.use_dark_pool_detection is False
        assert config.invert_logic is False


class TestCredentials:
    def test_blank_is_none(self) -> None:
        assert credentials_from_settings(ExchangeSettings()) is None
        assert credentials_from_settings(ExchangeSettings(api_key="k")) is None  # type: ignore[arg-type]

    def test_present(self) -> None:
        settings = ExchangeSettings(api_key="k", api_secret="s")  # type: ignore[arg-type]
        credentials = credentials_from_settings(settings)
        assert credentials is not None
        assert credentials.api_key == "k"
        assert credentials.api_secret == "s"
        assert repr(credentials) == "ExchangeCredentials(api_key='***', api_secret='***')"

    def test_secret_hidden_in_settings_repr(self) -> None:
        settings = ExchangeSettings(api_key="visible-key", api_secret="hidden-secret")  # type: ignore[arg-type]
        assert "hidden-secret" not in repr(settings)


class TestConfigHandle:
    def test_replace_swaps_whole_object(self) -> None:
        handle = ConfigHandle()
        original = handle.get()
        new = SignalConfig(risk_tolerance=80.0)
        assert handle.replace(new) is new
        assert handle.get() is new
        assert original.risk_tolerance == 50.0

    def test_replace_rejects_other_types(self) -> None:
        handle = ConfigHandle()
        with pytest.raises(TypeError):
            handle.replace({"risk_tolerance": 80.0})  # type: ignore[arg-type]

    def test_update_copies_with_changes(self) -> None:
        handle = ConfigHandle(SignalConfig(learning_rate=0.3))
        updated = handle.update(invert_logic=True)
        assert updated.invert_logic is True
        assert updated.learning_rate == 0.3

    def test_update_unknown_field(self) -> None:
        with pytest.raises(TypeError):
            ConfigHandle().update(use_telepathy=True)

    def test_reference_held_by_reader_is_stable(self) -> None:
        handle = ConfigHandle()
        held = handle.get()
        handle.update(risk_tolerance=10.0)
        assert held.risk_tolerance == 50.0
