"""Abstract swap service interface.

Both RouterSwapService (real swaps) and SimulatedSwapService (paper mode and
fallback) implement this ABC, so the attempt executor never branches on
which one it was given.
"""

from abc import ABC, abstractmethod

from dca_bot.models import SwapReceipt, TokenRef


class SwapService(ABC):
    """Submits a USD-denominated swap from source to target token."""

    @property
    def is_available(self) -> bool:
        """Whether the service can currently accept a swap."""
        return True

    @abstractmethod
    async def swap(
        self,
        source: TokenRef,
        target: TokenRef,
        amount_usd: str,
        wallet_address: str,
    ) -> SwapReceipt:
        """Execute a swap and return its receipt.

        Args:
            source: Token being sold.
            target: Token being bought.
            amount_usd: USD value to swap, two-decimal string.
            wallet_address: Recipient and signer address.

        Raises:
            Exception: Any failure, with a descriptive message that the
                executor classifies.
        """
        ...
