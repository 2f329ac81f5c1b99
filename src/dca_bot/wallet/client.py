"""Abstract wallet interfaces.

The DCA engine only reads the address and USD balance and may ask for a
balance refresh. Connection and session handling live behind these
interfaces.
"""

from abc import ABC, abstractmethod

from dca_bot.models import SwapTransaction


class WalletClient(ABC):
    """Read-only view of the connected wallet."""

    @property
    @abstractmethod
    def address(self) -> str | None:
        """Connected wallet address, or None if disconnected."""
        ...

    @property
    @abstractmethod
    def balance_usd(self) -> str:
        """USD value of the source balance as a two-decimal string."""
        ...

    @abstractmethod
    def request_refresh(self) -> None:
        """Ask the wallet to re-read its balance. Must not block."""
        ...


class TransactionSender(ABC):
    """Signs and submits a router transaction from the connected wallet."""

    @abstractmethod
    async def send_transaction(self, tx: SwapTransaction) -> str:
        """Submit the transaction and return its hash.

        Raises:
            Exception: Wallet or RPC failures, with a descriptive message.
        """
        ...
