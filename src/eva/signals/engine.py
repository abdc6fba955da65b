"""Signal engine combining indicator readings into a weighted decision.

The engine is the only place the scoring rules live:
1. Require a minimum window (20 samples)
2. Compute RSI(14), volatility of the last 10 closes, whale activity
3. Add the RSI term (oversold/overbought bonus or signed neutral-band pull)
4. Add the whale term, signed by the colour of the latest candle
5. Dampen in high volatility, then optionally invert (contrarian mode)
6. Threshold into LONG / SHORT / HOLD, derive confidence from |score|

No I/O and no randomness: the same series, config and timestamp always
produce an identical Decision.
"""

from __future__ import annotations

import time

from eva.config import SignalConfig
from eva.exceptions import InsufficientDataError
from eva.logging import get_logger
from eva.models import PriceSeries
from eva.signals.indicators import (
    RSI_PERIOD,
    compute_rsi,
    compute_volatility,
    detect_whale_activity,
)
from eva.signals.models import Decision, DecisionType, InputPattern, StrategyLabel

logger = get_logger(__name__)

#: Samples required before the engine will score a window.
MIN_SAMPLES = 20

#: Closes used for the volatility reading.
VOLATILITY_WINDOW = 10

RSI_OVERSOLD = 30.0
RSI_OVERBOUGHT = 70.0
RSI_EXTREME_WEIGHT = 40.0
RSI_NEUTRAL_WEIGHT = 0.5

WHALE_WEIGHT = 25.0

#: Shield engages when volatility exceeds this fraction of the current price.
VOLATILITY_SHIELD_RATIO = 0.005
VOLATILITY_SHIELD_DAMPING = 0.6

#: |score| mapped to confidence 1.0, before the cap.
CONFIDENCE_SCALE = 50.0
CONFIDENCE_CAP = 0.99


def decision_threshold(risk_tolerance: float) -> float:
    """Score magnitude needed to leave HOLD. Higher tolerance, lower bar."""
    return (100.0 - risk_tolerance) / 3.0


class SignalEngine:
    """Scores a price window against the operator's SignalConfig.

    Args:
        symbol: Symbol stamped on every Decision.
    """

    def __init__(self, symbol: str = "BTCUSDT") -> None:
        self._symbol = symbol

    def evaluate(
        self,
        series: PriceSeries,
        config: SignalConfig,
        timestamp: float | None = None,
    ) -> Decision:
        """Turn a candle window into a Decision.

        Args:
            series: Closed candles, oldest first.
            config: Weights and toggles, read once for the whole evaluation.
            timestamp: Decision time; defaults to now.

        Returns:
            The Decision, HOLD included.

        Raises:
            InsufficientDataError: Fewer than MIN_SAMPLES candles.
        """
        if len(series) < MIN_SAMPLES:
            raise InsufficientDataError(available=len(series), required=MIN_SAMPLES)

        closes = series.closes
        latest = series[-1]
        current_price = latest.close

        rsi = compute_rsi(closes, RSI_PERIOD)
        volatility = compute_volatility(closes[-VOLATILITY_WINDOW:])
        is_whale = detect_whale_activity(series.volumes)

        score = 0.0

        if config.use_rsi:
            if rsi < RSI_OVERSOLD:
                score += RSI_EXTREME_WEIGHT * config.learning_rate
            elif rsi > RSI_OVERBOUGHT:
                score -= RSI_EXTREME_WEIGHT * config.learning_rate
            else:
                score += (50.0 - rsi) * RSI_NEUTRAL_WEIGHT * config.learning_rate

        if config.use_whale_tracking and is_whale:
            score += WHALE_WEIGHT if latest.is_green else -WHALE_WEIGHT

        shielded = (
            config.use_volatility_shield
            and volatility > current_price * VOLATILITY_SHIELD_RATIO
        )
        if shielded:
            score *= VOLATILITY_SHIELD_DAMPING

        if config.invert_logic:
            score = -score

        threshold = decision_threshold(config.risk_tolerance)
        if score > threshold:
            decision = DecisionType.LONG
        elif score < -threshold:
            decision = DecisionType.SHORT
        else:
            decision = DecisionType.HOLD

        confidence = min(abs(score) / CONFIDENCE_SCALE, CONFIDENCE_CAP)
        label = StrategyLabel.QUANTUM if config.invert_logic else StrategyLabel.STANDARD

        logger.debug(
            "signal_evaluated",
            symbol=self._symbol,
            rsi=round(rsi, 2),
            volatility=round(volatility, 4),
            whale=is_whale,
            shielded=shielded,
            score=round(score, 4),
            threshold=round(threshold, 4),
            decision=decision.value,
        )

        return Decision(
            timestamp=time.time() if timestamp is None else timestamp,
            symbol=self._symbol,
            input_pattern=InputPattern(
                rsi=rsi,
                volatility=volatility,
                whale_detected=is_whale,
                price=current_price,
            ),
            decision=decision,
            score=score,
            strategy_label=label.value,
            confidence=confidence,
        )
