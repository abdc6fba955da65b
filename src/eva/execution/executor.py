"""Abstract executor interface.

Defines the contract for order execution. Both PaperExecutor and
LiveExecutor implement this ABC, so the loop and the API place orders the
same way regardless of trading mode.
"""

from abc import ABC, abstractmethod

from eva.models import OrderRequest, OrderResult


class Executor(ABC):
    """Abstract base class for order executors.

    The concrete executor (paper or live) is injected at startup based on
    TradingSettings.mode.
    """

    @abstractmethod
    async def place_order(self, request: OrderRequest) -> OrderResult:
        """Execute an order and return the fill result.

        Args:
            request: Order parameters (symbol, side, quantity, optional price).

        Returns:
            OrderResult with fill details.

        Raises:
            PriceUnavailableError: Paper mode without a usable price.
            MissingCredentialsError: Live mode without credentials.
            OrderError: The venue rejected the order.
        """
        ...
