"""Technical indicators over plain numeric series.

Pure functions: no state, no I/O. Each one fails soft on short input by
returning a neutral value instead of raising, so callers decide whether
the window is long enough to act on.
"""

import math
from collections.abc import Sequence

#: Default RSI lookback.
RSI_PERIOD = 14

#: Whale detection needs at least this many volume samples.
WHALE_MIN_SAMPLES = 10

#: Latest volume must exceed the prior mean by this factor to count as a whale.
WHALE_VOLUME_MULTIPLIER = 2.5


def compute_rsi(closes: Sequence[float], period: int = RSI_PERIOD) -> float:
    """Relative Strength Index with Wilder's smoothing.

    The first ``period`` deltas seed the average gain and loss as plain
    means. Every later delta updates them as
    ``avg = (avg * (period - 1) + value) / period``.

    Args:
        closes: Closing prices, oldest first.
        period: Lookback in deltas.

    Returns:
        RSI in [0, 100]. Exactly 50.0 when there are fewer than
        ``period + 1`` closes, 100.0 when the average loss is zero.
    """
    if len(closes) < period + 1:
        return 50.0

    gains = 0.0
    losses = 0.0
    for i in range(1, period + 1):
        change = closes[i] - closes[i - 1]
        if change > 0:
            gains += change
        else:
            losses -= change

    avg_gain = gains / period
    avg_loss = losses / period

    for i in range(period + 1, len(closes)):
        change = closes[i] - closes[i - 1]
        gain = change if change > 0 else 0.0
        loss = -change if change < 0 else 0.0
        avg_gain = (avg_gain * (period - 1) + gain) / period
        avg_loss = (avg_loss * (period - 1) + loss) / period

    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


def compute_volatility(window: Sequence[float]) -> float:
    """Population standard deviation of ``window`` (divides by N, not N-1).

    Returns 0.0 for an empty window.
    """
    if not window:
        return 0.0
    mean = sum(window) / len(window)
    variance = sum((x - mean) ** 2 for x in window) / len(window)
    return math.sqrt(variance)


def detect_whale_activity(
    volumes: Sequence[float],
    min_samples: int = WHALE_MIN_SAMPLES,
    multiplier: float = WHALE_VOLUME_MULTIPLIER,
) -> bool:
    """Flag an unusually large latest volume.

    True when the most recent volume exceeds ``multiplier`` times the mean
    of every earlier volume in the window. False for windows shorter than
    ``min_samples``.
    """
    if len(volumes) < min_samples:
        return False
    prior = volumes[:-1]
    average = sum(prior) / len(prior)
    return volumes[-1] > average * multiplier
