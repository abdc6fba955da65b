"""Shared test fixtures for the EVA trading core."""

from collections.abc import Callable, Sequence

import pytest

from eva.config import AppSettings, ExchangeSettings, SignalConfig, TradingSettings
from eva.models import Candle, PriceSeries
from eva.signals.models import Decision, DecisionType, InputPattern

SeriesFactory = Callable[..., PriceSeries]


@pytest.fixture
def mock_settings() -> AppSettings:
    """Return AppSettings with test defaults (paper mode, dummy API keys)."""
    return AppSettings(
        log_level="DEBUG",
        exchange=ExchangeSettings(
            api_key="test-api-key",  # type: ignore[arg-type]
            api_secret="test-api-secret",  # type: ignore[arg-type]
            testnet=True,
        ),
        trading=TradingSettings(
            mode="paper",
        ),
    )


@pytest.fixture
def make_series() -> SeriesFactory:
    """Build a PriceSeries from closes.

    Each candle opens half a point below its close (green) unless
    ``green=False``. Volumes default to 1000.
    """

    def _make(
        closes: Sequence[float],
        volumes: Sequence[float] | None = None,
        green: bool = True,
        start_ms: int = 1_700_000_000_000,
        step_ms: int = 900_000,
    ) -> PriceSeries:
        if volumes is None:
            volumes = [1000.0] * len(closes)
        offset = -0.5 if green else 0.5
        candles = [
            Candle(
                time=start_ms + i * step_ms,
                open=close + offset,
                high=max(close, close + offset) + 0.25,
                low=min(close, close + offset) - 0.25,
                close=close,
                volume=volume,
                close_time=start_ms + (i + 1) * step_ms - 1,
            )
            for i, (close, volume) in enumerate(zip(closes, volumes))
        ]
        return PriceSeries(candles, maxlen=max(len(candles), 1))

    return _make


@pytest.fixture
def rising_series(make_series: SeriesFactory) -> PriceSeries:
    """Closes 100..119 in unit steps, flat volume except a 3x spike on the last candle."""
    closes = [100.0 + i for i in range(20)]
    volumes = [1000.0] * 19 + [3000.0]
    return make_series(closes, volumes)


@pytest.fixture
def neutral_config() -> SignalConfig:
    """Every scoring toggle off: the engine must always HOLD at score 0."""
    return SignalConfig(
        use_rsi=False,
        use_whale_tracking=False,
        use_volatility_shield=False,
        invert_logic=False,
    )


@pytest.fixture
def make_decision() -> Callable[..., Decision]:
    def _make(
        decision: DecisionType = DecisionType.LONG,
        timestamp: float = 1_700_000_000.0,
        price: float = 100.0,
        confidence: float = 0.5,
        score: float = 25.0,
    ) -> Decision:
        return Decision(
            timestamp=timestamp,
            symbol="BTCUSDT",
            input_pattern=InputPattern(rsi=45.0, volatility=1.2, whale_detected=False, price=price),
            decision=decision,
            score=score,
            strategy_label="STANDARD_NEURAL_V2",
            confidence=confidence,
        )

    return _make
