"""Decision log interface.

The core only appends decisions and reads recent ones back; how they are
stored is the adapter's business. Listeners registered through
``subscribe`` are told about every insert, which is how the presentation
layer gets realtime updates.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from typing import Protocol, runtime_checkable

from eva.logging import get_logger
from eva.signals.models import Decision

logger = get_logger(__name__)

InsertListener = Callable[[Decision], Awaitable[None] | None]


@runtime_checkable
class DecisionStore(Protocol):
    """Append-only decision log."""

    async def insert(self, decision: Decision) -> None:
        """Append one decision and notify listeners."""
        ...

    async def query_recent(self, limit: int = 50) -> list[Decision]:
        """Return up to ``limit`` decisions, newest first."""
        ...

    def subscribe(self, listener: InsertListener) -> Callable[[], None]:
        """Register an insert listener; the returned callable unregisters it."""
        ...


class InsertNotifier:
    """Listener registry shared by the store adapters."""

    def __init__(self) -> None:
        self._listeners: list[InsertListener] = []

    def subscribe(self, listener: InsertListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def notify(self, decision: Decision) -> None:
        """Call every listener; a failing listener never fails the insert."""
        for listener in list(self._listeners):
            try:
                result = listener(decision)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.warning("decision_listener_failed", exc_info=True)
