"""Entry point for the EVA trading core.

Wires all components together, optionally embeds the FastAPI bridge, and
runs the autonomous loop. When the API is enabled (default) the loop and
the API share one asyncio event loop via uvicorn's programmatic API and
FastAPI's lifespan context manager.

Handles SIGINT/SIGTERM for graceful shutdown.

Component wiring order (in _build_components):
1. BinanceClient (REST + streams)
2. MarketDataCache (shared ticker/depth snapshots)
3. DecisionStore (in-memory or SQLite)
4. ConfigHandle (live SignalConfig)
5. Executor (PaperExecutor or LiveExecutor based on mode)
6. SignalEngine
7. AutonomousLoop
"""

import asyncio
import functools
import signal
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI

from eva.config import AppSettings, ConfigHandle, credentials_from_settings
from eva.exchange.binance_client import BinanceClient
from eva.logging import get_logger, setup_logging
from eva.loop import AutonomousLoop
from eva.market_data.cache import MarketDataCache
from eva.signals.engine import SignalEngine
from eva.store.memory import InMemoryDecisionStore
from eva.store.sqlite import SqliteDecisionStore


def _build_components(settings: AppSettings) -> dict[str, Any]:
    """Build all components from settings.

    Does NOT connect anything: the exchange session, the SQLite file and
    the streams are opened by _start_components.

    Args:
        settings: Application-wide settings.

    Returns:
        Dict mapping component names to instances.
    """
    logger = get_logger("eva.main")

    exchange_client = BinanceClient(settings.exchange)
    market_data = MarketDataCache()

    if settings.store.backend == "sqlite":
        store = SqliteDecisionStore(settings.store.db_path)
    else:
        store = InMemoryDecisionStore()

    config_handle = ConfigHandle(settings.signal.to_signal_config())

    # Resolved on every call, never stored on a component
    credentials_provider = functools.partial(credentials_from_settings, settings.exchange)

    if credentials_provider() is None:
        logger.warning(
            "no_api_keys_configured",
            mode=settings.trading.mode,
            note="Market data will work. Account and order calls will fail.",
        )

    if settings.trading.mode == "paper":
        from eva.execution.paper_executor import PaperExecutor

        executor = PaperExecutor(market_data)
    else:
        from eva.execution.live_executor import LiveExecutor

        executor = LiveExecutor(
            exchange_client,
            credentials_provider,
            min_liquidity_usd=settings.trading.min_liquidity_usd,
        )

    engine = SignalEngine(symbol=settings.trading.symbol)

    loop = AutonomousLoop(
        exchange=exchange_client,
        engine=engine,
        store=store,
        config_handle=config_handle,
        settings=settings.trading,
        executor=executor,
    )

    return {
        "exchange_client": exchange_client,
        "market_data": market_data,
        "store": store,
        "config_handle": config_handle,
        "credentials_provider": credentials_provider,
        "executor": executor,
        "engine": engine,
        "loop": loop,
    }


async def _start_components(settings: AppSettings, components: dict[str, Any]) -> None:
    """Connect the exchange and store, then open the market data streams."""
    exchange_client: BinanceClient = components["exchange_client"]
    market_data: MarketDataCache = components["market_data"]
    store = components["store"]

    await exchange_client.connect()
    if isinstance(store, SqliteDecisionStore):
        await store.connect()

    symbol = settings.trading.symbol
    exchange_client.subscribe_ticker(symbol, market_data.on_ticker)
    exchange_client.subscribe_depth(symbol, market_data.on_depth)

    if settings.trading.autostart:
        await components["loop"].start()


async def _stop_components(components: dict[str, Any]) -> None:
    """Disarm the loop, let in-flight ticks finish, then release resources."""
    loop: AutonomousLoop = components["loop"]
    await loop.stop()
    await loop.wait_idle()

    await components["exchange_client"].close()
    store = components["store"]
    if isinstance(store, SqliteDecisionStore):
        await store.close()


def _setup_signal_handlers(stop_event: asyncio.Event) -> None:
    """Register SIGINT/SIGTERM to request a graceful stop.

    Must be called after the asyncio event loop is running.
    """
    logger = get_logger("eva.main")
    loop = asyncio.get_running_loop()

    def _graceful_handler() -> None:
        logger.info("graceful_shutdown_signal")
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _graceful_handler)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage component lifecycle within the FastAPI application.

    On startup: stores components on app.state, connects exchange and store,
    opens streams, forwards decision inserts to the WebSocket hub.

    On shutdown: stops the loop and closes everything it opened.
    """
    logger = get_logger("eva.main")
    settings: AppSettings = app.state.settings
    components = app.state.components

    # Store all components on app.state for route handler access
    app.state.loop = components["loop"]
    app.state.store = components["store"]
    app.state.market_data = components["market_data"]
    app.state.config_handle = components["config_handle"]
    app.state.credentials_provider = components["credentials_provider"]
    app.state.executor = components["executor"]
    app.state.exchange = components["exchange_client"]

    unsubscribe = components["store"].subscribe(app.state.hub.on_decision)

    await _start_components(settings, components)
    logger.info("lifespan_started", mode=settings.trading.mode, symbol=settings.trading.symbol)

    yield

    unsubscribe()
    await _stop_components(components)
    logger.info("eva_stopped")


async def run() -> None:
    """Run the EVA trading core.

    When the API is enabled (API_ENABLED=true, the default) the bridge is
    served by uvicorn, which handles SIGINT/SIGTERM itself and drives
    shutdown through the lifespan. Otherwise the loop runs headless until
    a signal arrives.
    """
    settings = AppSettings()

    setup_logging(settings.log_level, settings.log_format)
    logger = get_logger("eva.main")

    components = _build_components(settings)

    if settings.api.enabled:
        from eva.api.app import create_app

        app = create_app(lifespan=lifespan)
        app.state.settings = settings
        app.state.components = components

        logger.info(
            "starting_with_api",
            host=settings.api.host,
            port=settings.api.port,
            mode=settings.trading.mode,
        )

        config = uvicorn.Config(
            app,
            host=settings.api.host,
            port=settings.api.port,
            log_level="warning",  # Suppress uvicorn access logs
        )
        server = uvicorn.Server(config)
        await server.serve()
    else:
        stop_event = asyncio.Event()
        _setup_signal_handlers(stop_event)

        logger.info(
            "starting_headless",
            mode=settings.trading.mode,
            symbol=settings.trading.symbol,
            tick_interval=settings.trading.tick_interval,
        )

        try:
            await _start_components(settings, components)
            if not settings.trading.autostart:
                await components["loop"].start()
            await stop_event.wait()
        finally:
            await _stop_components(components)
            logger.info("eva_stopped")


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
