"""In-memory decision log for paper sessions and tests."""

from collections import deque
from collections.abc import Callable

from eva.signals.models import Decision
from eva.store.base import InsertListener, InsertNotifier


class InMemoryDecisionStore:
    """Bounded in-memory DecisionStore. Oldest decisions drop off past ``capacity``."""

    def __init__(self, capacity: int = 1000) -> None:
        self._decisions: deque[Decision] = deque(maxlen=capacity)
        self._notifier = InsertNotifier()

    async def insert(self, decision: Decision) -> None:
        self._decisions.append(decision)
        await self._notifier.notify(decision)

    async def query_recent(self, limit: int = 50) -> list[Decision]:
        if limit <= 0:
            return []
        return list(reversed(self._decisions))[:limit]

    def subscribe(self, listener: InsertListener) -> Callable[[], None]:
        return self._notifier.subscribe(listener)

    def __len__(self) -> int:
        return len(self._decisions)
