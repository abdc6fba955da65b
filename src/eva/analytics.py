"""Read-only summaries over the decision log and account balances.

Nothing here feeds back into scoring; these numbers are for the operator.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal, InvalidOperation

from eva.signals.models import Decision, DecisionType

#: Stablecoins counted as spendable quote liquidity.
LIQUIDITY_ASSETS = ("USDT", "FDUSD")


def average_confidence(decisions: Sequence[Decision]) -> float:
    """Mean confidence as a percentage in [0, 100); 0 for an empty log."""
    if not decisions:
        return 0.0
    return sum(d.confidence for d in decisions) / len(decisions) * 100.0


def trailing_accuracy(decisions: Sequence[Decision], current_price: float) -> float | None:
    """Share of directional decisions the market has since agreed with.

    A LONG counts as correct if ``current_price`` is above the price it was
    made at, a SHORT if below. HOLD decisions are ignored. Returns None
    when there is nothing to grade.
    """
    graded = [d for d in decisions if d.decision is not DecisionType.HOLD]
    if not graded:
        return None

    correct = 0
    for d in graded:
        entry = d.input_pattern.price
        if d.decision is DecisionType.LONG and current_price > entry:
            correct += 1
        elif d.decision is DecisionType.SHORT and current_price < entry:
            correct += 1
    return correct / len(graded)


def summarize_liquidity(account: dict) -> Decimal:
    """Sum free and locked balances of the quote stablecoins.

    Args:
        account: Decoded ``GET /api/v3/account`` response.
    """
    total = Decimal("0")
    for balance in account.get("balances", []):
        if balance.get("asset") not in LIQUIDITY_ASSETS:
            continue
        for field in ("free", "locked"):
            try:
                total += Decimal(str(balance.get(field, "0")))
            except InvalidOperation:
                continue
    return total
