"""Signal analysis: indicator functions and the weighted decision engine."""

from eva.signals.engine import MIN_SAMPLES, SignalEngine, decision_threshold
from eva.signals.indicators import compute_rsi, compute_volatility, detect_whale_activity
from eva.signals.models import Decision, DecisionType, InputPattern, StrategyLabel

__all__ = [
    "MIN_SAMPLES",
    "Decision",
    "DecisionType",
    "InputPattern",
    "SignalEngine",
    "StrategyLabel",
    "compute_rsi",
    "compute_volatility",
    "decision_threshold",
    "detect_whale_activity",
]
