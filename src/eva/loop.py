"""Autonomous decision loop.

Every ``tick_interval`` seconds the loop fetches candles, asks the engine
for a decision, records non-HOLD decisions and optionally sends them to
the executor. Ticks are launched on schedule without waiting for the
previous one; a busy flag makes a tick that finds another still running
skip instead of overlapping it.

Recoverable failures (short data, exchange errors, store errors, slow
candle fetches) cost one log line and one tick. Only fetching and
scoring run under ``tick_timeout``; once a decision is actionable, the
record and order steps are never cancelled. Repeated market data failures back
off for a growing number of ticks. Anything else is a bug: the loop logs
it at CRITICAL, disarms itself and re-raises.
"""

from __future__ import annotations

import asyncio
import contextlib
import time
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

import structlog

from eva.config import ConfigHandle, TradingSettings
from eva.exceptions import EvaError, InsufficientDataError, MarketDataError
from eva.exchange.client import ExchangeClient
from eva.execution.executor import Executor
from eva.logging import get_logger
from eva.models import OrderRequest, OrderSide
from eva.signals.engine import SignalEngine
from eva.signals.models import Decision, DecisionType
from eva.store.base import DecisionStore

logger = get_logger(__name__)


class TickOutcome(str, Enum):
    """What a single tick ended up doing."""

    EXECUTED = "executed"  # decision recorded and order placed
    RECORDED = "recorded"  # decision recorded, execution disabled
    HOLD = "hold"
    SKIPPED_BUSY = "skipped_busy"
    SKIPPED_BACKOFF = "skipped_backoff"
    INSUFFICIENT_DATA = "insufficient_data"
    FAILED = "failed"


class AutonomousLoop:
    """Periodic fetch, evaluate, record and execute cycle.

    Args:
        exchange: Candle source.
        engine: Scores each candle window.
        store: Receives every non-HOLD decision.
        config_handle: Read once per tick for the current SignalConfig.
        settings: Symbol, interval, timing and order size.
        executor: Places orders for actionable decisions; None records only.
        sleep: Awaitable sleep used by the timer, replaceable in tests.
    """

    def __init__(
        self,
        exchange: ExchangeClient,
        engine: SignalEngine,
        store: DecisionStore,
        config_handle: ConfigHandle,
        settings: TradingSettings,
        executor: Executor | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._exchange = exchange
        self._engine = engine
        self._store = store
        self._config_handle = config_handle
        self._settings = settings
        self._executor = executor
        self._sleep = sleep

        self._running = False
        self._busy = False
        self._timer_task: asyncio.Task | None = None
        self._tick_tasks: set[asyncio.Task] = set()
        self._tick_count = 0
        self._consecutive_failures = 0
        self._backoff_remaining = 0

        self.last_outcome: TickOutcome | None = None
        self.last_decision: Decision | None = None
        self.last_tick_at: float | None = None

    @property
    def running(self) -> bool:
        return self._running

    @property
    def busy(self) -> bool:
        return self._busy

    async def start(self) -> None:
        """Run one tick now, then arm the timer. No-op if already running."""
        if self._running:
            logger.debug("loop_already_running")
            return

        self._running = True
        logger.info(
            "loop_started",
            symbol=self._settings.symbol,
            interval=self._settings.interval,
            tick_interval=self._settings.tick_interval,
            auto_execute=self._settings.auto_execute and self._executor is not None,
        )
        await self.tick()

        # stop() may have been called while the first tick ran
        if self._running:
            self._timer_task = asyncio.create_task(self._run_timer(), name="eva-loop-timer")

    async def stop(self) -> None:
        """Disarm the timer. Ticks already in flight run to completion."""
        if not self._running and self._timer_task is None:
            return
        self._running = False
        task, self._timer_task = self._timer_task, None
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        logger.info("loop_stopped", in_flight=len(self._tick_tasks))

    async def wait_idle(self) -> None:
        """Wait for every tick launched by the timer to finish."""
        if self._tick_tasks:
            await asyncio.gather(*self._tick_tasks, return_exceptions=True)

    async def _run_timer(self) -> None:
        while self._running:
            await self._sleep(self._settings.tick_interval)
            if not self._running:
                break
            task = asyncio.create_task(self.tick(), name=f"eva-tick-{self._tick_count + 1}")
            self._tick_tasks.add(task)
            task.add_done_callback(self._on_tick_done)

    def _on_tick_done(self, task: asyncio.Task) -> None:
        self._tick_tasks.discard(task)
        # Already logged at CRITICAL inside tick(); retrieve it so asyncio
        # does not report it a second time.
        if not task.cancelled():
            task.exception()

    def _disarm(self) -> None:
        self._running = False
        if self._timer_task is not None and self._timer_task is not asyncio.current_task():
            self._timer_task.cancel()
        self._timer_task = None

    async def tick(self) -> TickOutcome:
        """Run a single cycle and report what happened.

        Raises:
            Exception: Anything that is not a recoverable EvaError or a
                tick timeout. The loop is disarmed first.
        """
        if self._busy:
            logger.info("tick_skipped", reason="busy", symbol=self._settings.symbol)
            return self._record(TickOutcome.SKIPPED_BUSY)
        self._busy = True

        try:
            self._tick_count += 1
            with structlog.contextvars.bound_contextvars(
                tick=self._tick_count, symbol=self._settings.symbol
            ):
                return self._record(await self._guarded_tick())
        finally:
            self._busy = False

    async def _guarded_tick(self) -> TickOutcome:
        if self._backoff_remaining > 0:
            self._backoff_remaining -= 1
            logger.info(
                "tick_skipped",
                reason="backoff",
                remaining=self._backoff_remaining,
                consecutive_failures=self._consecutive_failures,
            )
            return TickOutcome.SKIPPED_BACKOFF

        try:
            decision = await asyncio.wait_for(self._evaluate(), timeout=self._settings.tick_timeout)
        except InsufficientDataError as e:
            logger.info(
                "tick_skipped",
                reason="insufficient_data",
                available=e.available,
                required=e.required,
            )
            return TickOutcome.INSUFFICIENT_DATA
        except MarketDataError as e:
            self._consecutive_failures += 1
            self._backoff_remaining = min(
                2 ** (self._consecutive_failures - 1) - 1,
                self._settings.max_backoff_ticks,
            )
            logger.warning(
                "tick_skipped",
                reason="market_data_error",
                error=str(e),
                consecutive_failures=self._consecutive_failures,
                backoff_ticks=self._backoff_remaining,
            )
            return TickOutcome.FAILED
        except EvaError as e:
            logger.warning("tick_skipped", reason=type(e).__name__, error=str(e))
            return TickOutcome.FAILED
        except TimeoutError:
            logger.warning("tick_skipped", reason="timeout", timeout=self._settings.tick_timeout)
            return TickOutcome.FAILED
        except Exception:
            self._crash()
            raise

        if not decision.is_actionable:
            logger.debug("tick_hold", score=round(decision.score, 4))
            return TickOutcome.HOLD

        # Outside the tick timeout; an order is bounded by the HTTP timeout only.
        context = {"decision": decision.decision.value, "score": round(decision.score, 4)}
        try:
            return await self._act(decision)
        except EvaError as e:
            logger.warning("tick_skipped", reason=type(e).__name__, error=str(e), **context)
            return TickOutcome.FAILED
        except Exception:
            self._crash(**context)
            raise

    def _crash(self, **context: Any) -> None:
        logger.critical("tick_crashed", exc_info=True, **context)
        self._disarm()

    async def _evaluate(self) -> Decision:
        config = self._config_handle.get()
        series = await self._exchange.fetch_candles(
            self._settings.symbol, self._settings.interval, self._settings.candle_limit
        )
        self._consecutive_failures = 0

        decision = self._engine.evaluate(series, config)
        self.last_decision = decision
        return decision

    async def _act(self, decision: Decision) -> TickOutcome:
        """Record an actionable decision, then execute it when enabled."""
        await self._store.insert(decision)

        if not self._settings.auto_execute or self._executor is None:
            logger.info("decision_recorded", decision=decision.decision.value, score=round(decision.score, 4))
            return TickOutcome.RECORDED

        side = OrderSide.BUY if decision.decision is DecisionType.LONG else OrderSide.SELL
        await self._executor.place_order(
            OrderRequest(
                symbol=self._settings.symbol,
                side=side,
                quantity=self._settings.order_quantity,
            )
        )
        return TickOutcome.EXECUTED

    def _record(self, outcome: TickOutcome) -> TickOutcome:
        self.last_outcome = outcome
        self.last_tick_at = time.time()
        return outcome

    def status(self) -> dict:
        """Snapshot for the presentation layer."""
        return {
            "running": self._running,
            "busy": self._busy,
            "symbol": self._settings.symbol,
            "tick_count": self._tick_count,
            "last_outcome": self.last_outcome.value if self.last_outcome else None,
            "last_tick_at": self.last_tick_at,
            "last_decision": self.last_decision.to_dict() if self.last_decision else None,
            "consecutive_failures": self._consecutive_failures,
            "backoff_remaining": self._backoff_remaining,
        }
