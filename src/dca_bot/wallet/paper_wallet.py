"""In-memory wallet for paper mode and tests.

The ledger balance moves as soon as a simulated fill is applied. The
reported balance only catches up on request_refresh(), the same way a
real wallet shows its old balance until it re-reads the chain.
"""

from decimal import ROUND_HALF_UP, Decimal

from dca_bot.logging import get_logger
from dca_bot.wallet.client import WalletClient

logger = get_logger(__name__)

_TWO_DP = Decimal("0.01")


class PaperWallet(WalletClient):
    """Virtual wallet holding a USD-denominated source balance.

    Args:
        address: Wallet address, or None to model a disconnected wallet.
        initial_balance_usd: Starting balance.
    """

    def __init__(self, address: str | None, initial_balance_usd: Decimal) -> None:
        self._address = address
        self._ledger_balance = initial_balance_usd
        self._reported_balance = initial_balance_usd
        self.refresh_count = 0

    @property
    def address(self) -> str | None:
        return self._address

    @property
    def balance_usd(self) -> str:
        return str(self._reported_balance.quantize(_TWO_DP, rounding=ROUND_HALF_UP))

    def set_balance(self, amount_usd: Decimal) -> None:
        """Overwrite both ledger and reported balance."""
        self._ledger_balance = amount_usd
        self._reported_balance = amount_usd

    def apply_fill(self, amount_in_usd: Decimal) -> None:
        """Debit a filled swap from the ledger balance."""
        self._ledger_balance = max(Decimal("0"), self._ledger_balance - amount_in_usd)
        logger.debug(
            "paper_wallet_debited",
            amount_in_usd=str(amount_in_usd),
            ledger_balance=str(self._ledger_balance),
        )

    def request_refresh(self) -> None:
        self._reported_balance = self._ledger_balance
        self.refresh_count += 1
        logger.info("paper_wallet_refreshed", balance_usd=self.balance_usd)
