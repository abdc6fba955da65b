"""JSON read endpoints: loop status, config, market snapshot, decisions, account."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

import structlog
from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from eva.analytics import average_confidence, summarize_liquidity, trailing_accuracy
from eva.api.routes.errors import error_response
from eva.exceptions import EvaError
from eva.signals.models import StrategyLabel

log = structlog.get_logger(__name__)

router = APIRouter()


def _decimal_to_str(obj: Any) -> Any:
    """Recursively convert Decimal values to strings for JSON serialization."""
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, dict):
        return {k: _decimal_to_str(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_decimal_to_str(item) for item in obj]
    return obj


def config_payload(request: Request) -> dict:
    """Current SignalConfig plus the pass-through fields the UI shows."""
    config = request.app.state.config_handle.get()
    settings = request.app.state.settings
    credentials = request.app.state.credentials_provider()
    payload = config.to_dict()
    payload["strategy_label"] = (
        StrategyLabel.QUANTUM.value if config.invert_logic else StrategyLabel.STANDARD.value
    )
    payload["leverage"] = settings.trading.leverage
    payload["credentials_configured"] = credentials is not None and credentials.is_complete
    return payload


@router.get("/status")
async def get_status(request: Request) -> JSONResponse:
    """Loop state and the last decision."""
    loop = request.app.state.loop
    settings = request.app.state.settings
    status = loop.status()
    status["mode"] = settings.trading.mode
    status["testnet"] = settings.exchange.testnet
    return JSONResponse(content=status)


@router.get("/config")
async def get_config(request: Request) -> JSONResponse:
    return JSONResponse(content=config_payload(request))


@router.get("/market")
async def get_market(request: Request) -> JSONResponse:
    """Latest streamed ticker and depth, plus the last computed indicators."""
    market_data = request.app.state.market_data
    loop = request.app.state.loop
    symbol = request.app.state.settings.trading.symbol

    ticker = market_data.get_ticker(symbol)
    depth = market_data.get_depth(symbol)
    decision = loop.last_decision

    return JSONResponse(content={
        "symbol": symbol,
        "ticker": None if ticker is None else {
            "price": ticker.price,
            "change_24h": ticker.change_24h,
            "high_24h": ticker.high_24h,
            "low_24h": ticker.low_24h,
            "volume": ticker.volume,
            "received_at": ticker.received_at,
        },
        "depth": None if depth is None else {
            "bids": [[level.price, level.size] for level in depth.bids],
            "asks": [[level.price, level.size] for level in depth.asks],
            "received_at": depth.received_at,
        },
        "indicators": None if decision is None else {
            "rsi": decision.input_pattern.rsi,
            "volatility": decision.input_pattern.volatility,
            "whale_detected": decision.input_pattern.whale_detected,
            "price": decision.input_pattern.price,
        },
    })


@router.get("/decisions")
async def get_decisions(
    request: Request, limit: int = Query(default=50, ge=1, le=500)
) -> JSONResponse:
    """Recorded decisions, newest first."""
    store = request.app.state.store
    try:
        decisions = await store.query_recent(limit)
    except EvaError as e:
        return error_response(e)
    return JSONResponse(content=[d.to_dict() for d in decisions])


@router.get("/decisions/summary")
async def get_decision_summary(request: Request) -> JSONResponse:
    """Average confidence and trailing accuracy over the recent window."""
    store = request.app.state.store
    settings = request.app.state.settings
    market_data = request.app.state.market_data

    try:
        decisions = await store.query_recent(settings.store.recent_limit)
    except EvaError as e:
        return error_response(e)

    ticker = market_data.get_ticker(settings.trading.symbol)
    accuracy = trailing_accuracy(decisions, ticker.price) if ticker is not None else None

    return JSONResponse(content={
        "count": len(decisions),
        "average_confidence": round(average_confidence(decisions), 2),
        "trailing_accuracy": accuracy,
    })


@router.get("/account")
async def get_account(request: Request) -> JSONResponse:
    """Balances and USDT + FDUSD liquidity. Requires credentials."""
    exchange = request.app.state.exchange
    settings = request.app.state.settings
    credentials = request.app.state.credentials_provider()

    try:
        account = await exchange.fetch_account(credentials)
    except EvaError as e:
        return error_response(e)

    liquidity = summarize_liquidity(account)
    low_funds = liquidity < settings.trading.min_liquidity_usd
    if low_funds:
        log.warning("low_liquidity", liquidity_usd=str(liquidity))

    balances = [
        b for b in account.get("balances", [])
        if Decimal(str(b.get("free", "0"))) > 0 or Decimal(str(b.get("locked", "0"))) > 0
    ]
    return JSONResponse(content=_decimal_to_str({
        "liquidity_usd": liquidity,
        "low_funds": low_funds,
        "can_trade": account.get("canTrade"),
        "balances": balances,
    }))
