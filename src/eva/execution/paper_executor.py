"""Paper trading executor with simulated fills.

Fills instantly at the last streamed ticker price (or at the limit price
for limit orders), so a session can run end to end without credentials.
"""

from decimal import Decimal
from uuid import uuid4

from eva.exceptions import PriceUnavailableError
from eva.execution.executor import Executor
from eva.logging import get_logger
from eva.market_data.cache import MarketDataCache
from eva.models import OrderRequest, OrderResult

logger = get_logger(__name__)

# Maximum price age in seconds before considered stale
_MAX_PRICE_AGE_SECONDS = 60.0


class PaperExecutor(Executor):
    """Simulated order executor. All results have is_simulated=True.

    Args:
        market_data: Shared cache the ticker stream writes into.
        max_price_age: Seconds after which a cached price is refused.
    """

    def __init__(
        self,
        market_data: MarketDataCache,
        max_price_age: float = _MAX_PRICE_AGE_SECONDS,
    ) -> None:
        self._market_data = market_data
        self._max_price_age = max_price_age

    async def place_order(self, request: OrderRequest) -> OrderResult:
        """Simulate order execution using the cached market price.

        Raises:
            PriceUnavailableError: If the price is missing or stale.
        """
        if request.price is not None:
            fill_price = request.price
        else:
            price = self._market_data.get_price(request.symbol)
            if price is None:
                raise PriceUnavailableError(f"No price available for {request.symbol}")
            if self._market_data.is_stale(request.symbol, max_age_seconds=self._max_price_age):
                raise PriceUnavailableError(
                    f"Price for {request.symbol} is stale (>{self._max_price_age}s old)"
                )
            fill_price = price

        order_id = f"paper_{uuid4().hex[:12]}"

        logger.info(
            "paper_order_filled",
            order_id=order_id,
            symbol=request.symbol,
            side=request.side.value,
            order_type=request.order_type.value,
            quantity=str(request.quantity),
            fill_price=str(fill_price),
        )

        return OrderResult(
            order_id=order_id,
            symbol=request.symbol,
            side=request.side,
            quantity=request.quantity,
            executed_price=Decimal(fill_price),
            raw_status="FILLED",
            is_simulated=True,
        )
