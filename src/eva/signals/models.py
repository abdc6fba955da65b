"""Signal engine data models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class DecisionType(str, Enum):
    """Discrete engine outcome."""

    LONG = "LONG"
    SHORT = "SHORT"
    HOLD = "HOLD"


class StrategyLabel(str, Enum):
    """Label recorded with each decision, by scoring mode."""

    STANDARD = "STANDARD_NEURAL_V2"
    QUANTUM = "QUANTUM_HEURISTIC"  # contrarian: score negated before thresholding


@dataclass(frozen=True)
class InputPattern:
    """Indicator readings a decision was made from."""

    rsi: float
    volatility: float
    whale_detected: bool
    price: float


@dataclass(frozen=True)
class Decision:
    """One evaluated market decision. Immutable once created.

    ``confidence`` is in [0, 1); ``score`` is the signed composite score
    after shielding and inversion.
    """

    timestamp: float
    symbol: str
    input_pattern: InputPattern
    decision: DecisionType
    score: float
    strategy_label: str
    confidence: float

    @property
    def is_actionable(self) -> bool:
        return self.decision is not DecisionType.HOLD

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "symbol": self.symbol,
            "input_pattern": {
                "rsi": self.input_pattern.rsi,
                "volatility": self.input_pattern.volatility,
                "whale_detected": self.input_pattern.whale_detected,
                "price": self.input_pattern.price,
            },
            "decision": self.decision.value,
            "score": self.score,
            "strategy_label": self.strategy_label,
            "confidence": self.confidence,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Decision:
        pattern = data["input_pattern"]
        return cls(
            timestamp=float(data["timestamp"]),
            symbol=data["symbol"],
            input_pattern=InputPattern(
                rsi=float(pattern["rsi"]),
                volatility=float(pattern["volatility"]),
                whale_detected=bool(pattern["whale_detected"]),
                price=float(pattern["price"]),
            ),
            decision=DecisionType(data["decision"]),
            score=float(data["score"]),
            strategy_label=data["strategy_label"],
            confidence=float(data["confidence"]),
        )
