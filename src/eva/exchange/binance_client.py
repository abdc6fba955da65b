"""Binance spot client over httpx (REST) and websockets (streams).

Public market data goes through plain GETs. Private calls are signed with
HMAC-SHA256 over the exact query string sent; each attempt carries a fresh
timestamp. Orders are never retried except after an explicit timestamp
rejection, where the venue guarantees nothing was placed.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx
import websockets

from eva.config import ExchangeSettings
from eva.exceptions import (
    AuthError,
    ExchangeError,
    MarketDataError,
    MissingCredentialsError,
    OrderError,
)
from eva.exchange.client import DepthCallback, ExchangeClient, TickerCallback
from eva.exchange.payloads import format_decimal, parse_depth, parse_klines, parse_ticker
from eva.exchange.signing import build_signed_query
from eva.exchange.streams import StreamSubscription
from eva.logging import get_logger
from eva.models import ExchangeCredentials, OrderResult, OrderSide, OrderType, PriceSeries

logger = get_logger(__name__)

MAINNET_REST_URL = "https://api.binance.com"
MAINNET_WS_URL = "wss://stream.binance.com:9443/ws"
TESTNET_REST_URL = "https://testnet.binance.vision"
TESTNET_WS_URL = "wss://stream.testnet.binance.vision/ws"

#: Timestamp outside recvWindow: regenerate and retry once.
ERR_TIMESTAMP = -1021
#: Signature invalid, API key invalid/format, or key lacks permission.
AUTH_ERROR_CODES = frozenset({-1022, -2014, -2015})


class BinanceClient(ExchangeClient):
    """Concrete Binance spot client.

    Args:
        settings: Connection settings (base URLs, timeouts, depth levels).
        transport: Optional httpx transport, used by tests.
        connect: Websocket connection factory, used by tests.
        clock: Wall clock in seconds, used for request timestamps.
    """

    def __init__(
        self,
        settings: ExchangeSettings,
        transport: httpx.AsyncBaseTransport | None = None,
        connect: Callable[..., Any] = websockets.connect,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._connect = connect
        self._clock = clock
        self._client: httpx.AsyncClient | None = None
        self._subscriptions: list[StreamSubscription] = []

        if settings.testnet:
            self.rest_url, self.ws_url = TESTNET_REST_URL, TESTNET_WS_URL
        else:
            self.rest_url, self.ws_url = MAINNET_REST_URL, MAINNET_WS_URL

    async def connect(self) -> None:
        """Open the HTTP session."""
        await self._get_client()
        logger.info("binance_client_connected", rest_url=self.rest_url, testnet=self._settings.testnet)

    async def close(self) -> None:
        """Close every stream subscription, then the HTTP session."""
        for subscription in list(self._subscriptions):
            await subscription.close()
        self._subscriptions.clear()
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None
        logger.info("binance_client_closed")

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.rest_url,
                timeout=self._settings.request_timeout,
                transport=self._transport,
            )
        return self._client

    def _timestamp_ms(self) -> int:
        return int(self._clock() * 1000)

    # ──────────────────────────────────────────────
    # Public market data
    # ──────────────────────────────────────────────

    async def fetch_candles(self, symbol: str, interval: str, limit: int) -> PriceSeries:
        """Fetch closed klines for ``symbol``, oldest first.

        The still-forming candle is dropped. An empty venue response yields
        an empty series, which callers treat as "skip this tick".

        Raises:
            MarketDataError: Transport failure, non-2xx or unparseable rows.
        """
        client = await self._get_client()
        params = {"symbol": symbol.upper(), "interval": interval, "limit": limit}
        try:
            response = await client.get("/api/v3/klines", params=params)
        except httpx.HTTPError as e:
            raise MarketDataError(f"klines request failed: {e!r}") from e

        if not response.is_success:
            code, msg = _error_details(response)
            raise MarketDataError(
                f"klines HTTP {response.status_code}: {msg}",
                status_code=response.status_code,
                code=code,
            )

        try:
            series = parse_klines(response.json(), limit=limit, now_ms=self._timestamp_ms())
        except (ValueError, TypeError, IndexError) as e:
            raise MarketDataError(f"klines payload malformed: {e}") from e

        logger.debug("candles_fetched", symbol=symbol, interval=interval, count=len(series))
        return series

    # ──────────────────────────────────────────────
    # Signed private calls
    # ──────────────────────────────────────────────

    async def signed_request(
        self,
        method: str,
        path: str,
        params: dict[str, Any],
        credentials: ExchangeCredentials | None,
    ) -> Any:
        """Sign and send a private request, returning decoded JSON.

        A timestamp rejection (-1021) is retried once with a regenerated
        timestamp; a second rejection surfaces as AuthError.
        """
        credentials = _require_credentials(credentials)
        client = await self._get_client()
        headers = {"X-MBX-APIKEY": credentials.api_key}
        if method.upper() == "POST":
            headers["Content-Type"] = "application/x-www-form-urlencoded"

        for attempt in (1, 2):
            query = build_signed_query(
                params,
                credentials.api_secret,
                timestamp=self._timestamp_ms(),
                recv_window=self._settings.recv_window,
            )
            try:
                response = await client.request(method, f"{path}?{query}", headers=headers)
            except httpx.HTTPError as e:
                raise ExchangeError(f"{method} {path} failed: {e!r}") from e

            if response.is_success:
                return response.json()

            code, msg = _error_details(response)
            if code == ERR_TIMESTAMP and attempt == 1:
                logger.warning("signed_request_timestamp_rejected", method=method, path=path, retry=True)
                continue
            if code == ERR_TIMESTAMP or code in AUTH_ERROR_CODES or response.status_code == 401:
                raise AuthError(
                    f"{method} {path} rejected: {msg}",
                    status_code=response.status_code,
                    code=code,
                )
            raise ExchangeError(
                f"{method} {path} HTTP {response.status_code}: {msg}",
                status_code=response.status_code,
                code=code,
            )

        raise AssertionError("unreachable")  # pragma: no cover

    async def fetch_account(self, credentials: ExchangeCredentials | None) -> dict:
        """GET /api/v3/account."""
        return await self.signed_request("GET", "/api/v3/account", {}, credentials)

    async def place_order(
        self,
        credentials: ExchangeCredentials | None,
        symbol: str,
        side: OrderSide,
        quantity: Decimal,
        price: Decimal | None = None,
    ) -> OrderResult:
        """POST /api/v3/order: MARKET without price, LIMIT GTC with price.

        Logs exactly one line per attempt, success or failure.
        """
        order_type = OrderType.MARKET if price is None else OrderType.LIMIT
        context = {
            "symbol": symbol.upper(),
            "side": side.value,
            "order_type": order_type.value,
            "quantity": str(quantity),
            "price": str(price) if price is not None else None,
        }

        try:
            _require_credentials(credentials)
        except MissingCredentialsError as e:
            logger.error("order_rejected_locally", error=str(e), **context)
            raise

        params: dict[str, Any] = {
            "symbol": symbol.upper(),
            "side": side.value,
            "type": order_type.value,
            "quantity": format_decimal(quantity),
        }
        if price is not None:
            params["price"] = format_decimal(price)
            params["timeInForce"] = "GTC"

        try:
            data = await self.signed_request("POST", "/api/v3/order", params, credentials)
        except AuthError as e:
            logger.error("order_auth_failed", error=str(e), code=e.code, **context)
            raise
        except ExchangeError as e:
            logger.error("order_failed", error=str(e), code=e.code, **context)
            raise OrderError(str(e), status_code=e.status_code, code=e.code) from e

        result = OrderResult(
            order_id=str(data.get("orderId", "")),
            symbol=symbol.upper(),
            side=side,
            quantity=_to_decimal(data.get("executedQty"), default=quantity),
            executed_price=_executed_price(data, fallback=price),
            raw_status=str(data.get("status", "")),
        )
        logger.info(
            "order_placed",
            order_id=result.order_id,
            executed_price=str(result.executed_price),
            status=result.raw_status,
            **context,
        )
        return result

    # ──────────────────────────────────────────────
    # Streams
    # ──────────────────────────────────────────────

    def subscribe_ticker(self, symbol: str, on_update: TickerCallback) -> StreamSubscription:
        """Open ``<symbol>@ticker``. Requires a running event loop."""
        stream = f"{symbol.lower()}@ticker"
        return self._subscribe(stream, lambda msg: parse_ticker(symbol.upper(), msg), on_update)

    def subscribe_depth(self, symbol: str, on_update: DepthCallback) -> StreamSubscription:
        """Open ``<symbol>@depth10@100ms``. Requires a running event loop."""
        stream = f"{symbol.lower()}@depth10@100ms"
        levels = self._settings.depth_levels
        return self._subscribe(
            stream, lambda msg: parse_depth(symbol.upper(), msg, levels), on_update
        )

    def _subscribe(
        self,
        stream: str,
        parser: Callable[[dict], Any],
        on_update: Callable[[Any], Any],
    ) -> StreamSubscription:
        subscription = StreamSubscription(
            name=stream,
            url=f"{self.ws_url}/{stream}",
            parser=parser,
            on_update=on_update,
            connect=self._connect,
            open_timeout=self._settings.stream_open_timeout,
            reconnect_delay=self._settings.stream_reconnect_delay,
            max_reconnect_delay=self._settings.stream_max_reconnect_delay,
        )
        subscription.start()
        self._subscriptions = [s for s in self._subscriptions if not s.closed]
        self._subscriptions.append(subscription)
        logger.info("stream_subscribed", stream=stream)
        return subscription


def _require_credentials(credentials: ExchangeCredentials | None) -> ExchangeCredentials:
    if credentials is None or not credentials.is_complete:
        raise MissingCredentialsError("API key and secret are required for private calls")
    return credentials


def _error_details(response: httpx.Response) -> tuple[int | None, str]:
    """Extract Binance's ``{"code": ..., "msg": ...}`` body, tolerating non-JSON."""
    try:
        body = response.json()
    except ValueError:
        return None, response.text[:200]
    if isinstance(body, dict):
        code = body.get("code")
        return (int(code) if isinstance(code, int) else None), str(body.get("msg", ""))
    return None, str(body)[:200]


def _to_decimal(value: Any, default: Decimal = Decimal("0")) -> Decimal:
    if value is None:
        return default
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return default


def _executed_price(data: dict, fallback: Decimal | None) -> Decimal:
    """Average fill price: cumulative quote over executed base quantity."""
    executed_qty = _to_decimal(data.get("executedQty"))
    quote_qty = _to_decimal(data.get("cummulativeQuoteQty"))
    if executed_qty > 0 and quote_qty > 0:
        return quote_qty / executed_qty
    if fallback is not None:
        return fallback
    return _to_decimal(data.get("price"))
