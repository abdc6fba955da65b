"""Tests for decision-log and balance summaries."""

from decimal import Decimal

import pytest

from eva.analytics import average_confidence, summarize_liquidity, trailing_accuracy
from eva.signals.models import DecisionType


class TestAverageConfidence:
    def test_empty_is_zero(self) -> None:
        assert average_confidence([]) == 0.0

    def test_percentage(self, make_decision) -> None:
        decisions = [make_decision(confidence=0.2), make_decision(confidence=0.6)]
        assert average_confidence(decisions) == pytest.approx(40.0)


class TestTrailingAccuracy:
    def test_nothing_to_grade(self, make_decision) -> None:
        assert trailing_accuracy([], 100.0) is None
        assert trailing_accuracy([make_decision(decision=DecisionType.HOLD)], 100.0) is None

    def test_grades_direction_against_current_price(self, make_decision) -> None:
        decisions = [
            make_decision(decision=DecisionType.LONG, price=100.0),  # right
            make_decision(decision=DecisionType.LONG, price=120.0),  # wrong
            make_decision(decision=DecisionType.SHORT, price=120.0),  # right
            make_decision(decision=DecisionType.SHORT, price=110.0),  # unchanged: wrong
            make_decision(decision=DecisionType.HOLD, price=50.0),  # ignored
        ]
        assert trailing_accuracy(decisions, 110.0) == pytest.approx(0.5)


class TestSummarizeLiquidity:
    def test_sums_usdt_and_fdusd_free_and_locked(self) -> None:
        account = {
            "balances": [
                {"asset": "BTC", "free": "1.0", "locked": "0.0"},
                {"asset": "USDT", "free": "3.50000000", "locked": "1.00000000"},
                {"asset": "FDUSD", "free": "0.25", "locked": "0.25"},
                {"asset": "BUSD", "free": "100", "locked": "0"},
            ]
        }
        assert summarize_liquidity(account) == Decimal("5.0")

    def test_no_balances(self) -> None:
        assert summarize_liquidity({}) == Decimal("0")

    def test_malformed_amount_ignored(self) -> None:
        account = {"balances": [{"asset": "USDT", "free": "n/a", "locked": "2"}]}
        assert summarize_liquidity(account) == Decimal("2")
