"""Long-lived websocket subscriptions for market-data streams.

Each subscription owns one background task and one connection at a time.
Every inbound message is parsed and handed to the callback immediately,
without coalescing. Dropped connections are re-opened with exponential
backoff until close() is called.
"""

from __future__ import annotations

import asyncio
import inspect
import json
from collections.abc import Callable
from typing import Any

import websockets
from websockets.exceptions import WebSocketException

from eva.logging import get_logger

logger = get_logger(__name__)


class StreamSubscription:
    """One websocket stream feeding one callback.

    Args:
        name: Stream name for logs (e.g. "btcusdt@ticker").
        url: Full websocket URL.
        parser: Turns a decoded JSON message into the callback payload.
        on_update: Sync or async callable receiving each parsed payload.
        connect: Connection factory; ``websockets.connect`` by default.
        open_timeout: Handshake timeout in seconds.
        reconnect_delay: First delay before reconnecting.
        max_reconnect_delay: Cap for the doubling reconnect delay.
    """

    def __init__(
        self,
        name: str,
        url: str,
        parser: Callable[[dict], Any],
        on_update: Callable[[Any], Any],
        connect: Callable[..., Any] = websockets.connect,
        open_timeout: float = 10.0,
        reconnect_delay: float = 1.0,
        max_reconnect_delay: float = 30.0,
    ) -> None:
        self.name = name
        self._url = url
        self._parser = parser
        self._on_update = on_update
        self._connect = connect
        self._open_timeout = open_timeout
        self._reconnect_delay = reconnect_delay
        self._max_reconnect_delay = max_reconnect_delay
        self._task: asyncio.Task | None = None  # type: ignore[type-arg]
        self._closed = False
        self.messages_received = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        """Spawn the reader task. Requires a running event loop."""
        if self._closed:
            raise RuntimeError(f"subscription {self.name} is closed")
        if self._task is None:
            self._task = asyncio.create_task(self._run(), name=f"stream:{self.name}")

    async def close(self) -> None:
        """Stop delivering callbacks and release the connection. Idempotent."""
        if self._closed:
            return
        self._closed = True
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("stream_closed", stream=self.name, messages=self.messages_received)

    async def _run(self) -> None:
        delay = self._reconnect_delay
        while not self._closed:
            try:
                async with self._connect(
                    self._url,
                    open_timeout=self._open_timeout,
                    ping_interval=20,
                    ping_timeout=20,
                    close_timeout=5,
                ) as ws:
                    logger.info("stream_connected", stream=self.name)
                    delay = self._reconnect_delay
                    async for raw in ws:
                        if self._closed:
                            return
                        await self._dispatch(raw)
                logger.warning("stream_ended", stream=self.name)
            except asyncio.CancelledError:
                raise
            except (OSError, TimeoutError, WebSocketException) as e:
                logger.warning("stream_connection_error", stream=self.name, error=str(e))

            if self._closed:
                return
            logger.info("stream_reconnecting", stream=self.name, delay=delay)
            await asyncio.sleep(delay)
            delay = min(delay * 2, self._max_reconnect_delay)

    async def _dispatch(self, raw: str | bytes) -> None:
        try:
            payload = self._parser(json.loads(raw))
        except (ValueError, KeyError, TypeError, IndexError) as e:
            logger.warning("stream_message_malformed", stream=self.name, error=str(e))
            return

        self.messages_received += 1
        try:
            result = self._on_update(payload)
            if inspect.isawaitable(result):
                await result
        except Exception:
            # A faulty consumer must not tear down the connection.
            logger.error("stream_callback_failed", stream=self.name, exc_info=True)
