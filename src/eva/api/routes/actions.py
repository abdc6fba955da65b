"""Write endpoints: config updates, loop start/stop, manual orders."""

from __future__ import annotations

from decimal import Decimal
from typing import Literal

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from eva.api.routes.api import config_payload
from eva.api.routes.errors import error_response
from eva.exceptions import EvaError
from eva.models import OrderRequest, OrderSide

log = structlog.get_logger(__name__)

router = APIRouter()


class ConfigUpdate(BaseModel):
    """Partial SignalConfig update. Omitted fields keep their current value."""

    learning_rate: float | None = Field(default=None, ge=0.0, le=1.0)
    risk_tolerance: float | None = Field(default=None, ge=1.0, le=100.0)
    use_rsi: bool | None = None
    use_whale_tracking: bool | None = None
    use_pattern_recognition: bool | None = None
    use_volatility_shield: bool | None = None
    use_news_integration: bool | None = None
    use_arbitrage_scanner: bool | None = None
    use_dark_pool_detection: bool | None = None
    invert_logic: bool | None = None


class ManualOrder(BaseModel):
    """Operator-initiated order. Without a price it is a MARKET order."""

    side: Literal["BUY", "SELL"]
    quantity: Decimal = Field(gt=0)
    price: Decimal | None = Field(default=None, gt=0)
    symbol: str | None = None


@router.put("/config")
async def update_config(request: Request, body: ConfigUpdate) -> JSONResponse:
    """Swap in a new SignalConfig; the next tick picks it up."""
    changes = body.model_dump(exclude_none=True)
    if changes:
        request.app.state.config_handle.update(**changes)
        log.info("config_updated_via_api", fields=sorted(changes))
    return JSONResponse(content=config_payload(request))


@router.post("/loop/start")
async def start_loop(request: Request) -> JSONResponse:
    loop = request.app.state.loop
    await loop.start()
    log.info("loop_started_via_api")
    return JSONResponse(content=loop.status())


@router.post("/loop/stop")
async def stop_loop(request: Request) -> JSONResponse:
    loop = request.app.state.loop
    await loop.stop()
    log.info("loop_stopped_via_api")
    return JSONResponse(content=loop.status())


@router.post("/orders")
async def place_order(request: Request, body: ManualOrder) -> JSONResponse:
    """Send a manual order through the configured executor."""
    executor = request.app.state.executor
    settings = request.app.state.settings
    order = OrderRequest(
        symbol=(body.symbol or settings.trading.symbol).upper(),
        side=OrderSide(body.side),
        quantity=body.quantity,
        price=body.price,
    )
    try:
        result = await executor.place_order(order)
    except EvaError as e:
        return error_response(e)
    return JSONResponse(content=result.to_dict())
