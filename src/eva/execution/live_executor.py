"""Live trading executor via exchange client.

Credentials are fetched from the provider for every order and passed
straight through to the signed call; nothing is kept between orders.
"""

from collections.abc import Callable
from decimal import Decimal

from eva.analytics import summarize_liquidity
from eva.exceptions import ExchangeError
from eva.exchange.client import ExchangeClient
from eva.execution.executor import Executor
from eva.logging import get_logger
from eva.models import ExchangeCredentials, OrderRequest, OrderResult

logger = get_logger(__name__)

CredentialsProvider = Callable[[], ExchangeCredentials | None]


class LiveExecutor(Executor):
    """Real order executor that delegates to an exchange client.

    Args:
        exchange_client: The exchange client to place real orders through.
        credentials_provider: Returns the current API key pair, or None.
        min_liquidity_usd: Below this stablecoin balance a warning is logged
            before the order is sent. Zero disables the check.
    """

    def __init__(
        self,
        exchange_client: ExchangeClient,
        credentials_provider: CredentialsProvider,
        min_liquidity_usd: Decimal = Decimal("5"),
    ) -> None:
        self._exchange_client = exchange_client
        self._credentials_provider = credentials_provider
        self._min_liquidity_usd = min_liquidity_usd

    async def check_liquidity(self, credentials: ExchangeCredentials | None) -> Decimal:
        """Return USDT + FDUSD liquidity, warning when below the minimum."""
        account = await self._exchange_client.fetch_account(credentials)
        liquidity = summarize_liquidity(account)
        if liquidity < self._min_liquidity_usd:
            logger.warning(
                "low_liquidity",
                liquidity_usd=str(liquidity),
                min_liquidity_usd=str(self._min_liquidity_usd),
            )
        return liquidity

    async def place_order(self, request: OrderRequest) -> OrderResult:
        """Place a real order on the exchange.

        Raises:
            MissingCredentialsError: No usable credentials; nothing is sent.
            AuthError: Credentials rejected.
            OrderError: Venue rejected the order or the call failed.
        """
        credentials = self._credentials_provider()
        if self._min_liquidity_usd > 0 and credentials is not None and credentials.is_complete:
            try:
                await self.check_liquidity(credentials)
            except ExchangeError as e:
                # Advisory only; the order goes out regardless.
                logger.warning(
                    "liquidity_check_failed",
                    symbol=request.symbol,
                    side=request.side.value,
                    error=str(e),
                )

        return await self._exchange_client.place_order(
            credentials,
            request.symbol,
            request.side,
            request.quantity,
            request.price,
        )
