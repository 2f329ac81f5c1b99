"""Real swaps through the Aerodrome v2 router on Base.

Builds the router call (route, amounts in base units, slippage floor,
deadline) and hands it to the wallet's TransactionSender. ABI encoding and
signing belong to the sender.
"""

import time
from decimal import ROUND_DOWN, Decimal

from dca_bot.exceptions import SwapSubmissionError
from dca_bot.execution.swap_service import SwapService
from dca_bot.logging import get_logger
from dca_bot.market_data.price_feed import CoinGeckoPriceFeed
from dca_bot.models import SwapReceipt, SwapTransaction, TokenRef
from dca_bot.wallet.client import TransactionSender

logger = get_logger(__name__)

AERODROME_ROUTER = "0xcF77a3Ba9A5CA399B7c97c74d54e5b1Beb874E43"
AERODROME_FACTORY = "0x420DD381b31aEf6683db6B902084cB0FFECe40Da"

# Sources whose USD amount converts 1:1 into token units
_USD_STABLES = frozenset({"USDC", "DAI", "USDbC"})

_SIX_DP = Decimal("0.000001")
_TWO_DP = Decimal("0.01")


def to_base_units(amount: Decimal, decimals: int) -> int:
    """Convert a token amount to integer base units, rounding down."""
    return int((amount * (Decimal(10) ** decimals)).to_integral_value(rounding=ROUND_DOWN))


class RouterSwapService(SwapService):
    """Live swap service submitting through the connected wallet.

    Args:
        sender: Wallet transaction sender; None means the wallet cannot sign.
        price_feed: USD prices used to size amount_in and the output floor.
        slippage_tolerance: Fraction below the expected output still accepted.
        deadline_seconds: Router deadline relative to submission time.
    """

    def __init__(
        self,
        sender: TransactionSender | None,
        price_feed: CoinGeckoPriceFeed,
        slippage_tolerance: Decimal = Decimal("0.01"),
        deadline_seconds: int = 1200,
    ) -> None:
        self._sender = sender
        self._price_feed = price_feed
        self._slippage_tolerance = slippage_tolerance
        self._deadline_seconds = deadline_seconds

    @property
    def is_available(self) -> bool:
        return self._sender is not None

    async def build_transaction(
        self,
        source: TokenRef,
        target: TokenRef,
        amount_usd: Decimal,
        wallet_address: str,
    ) -> tuple[SwapTransaction, Decimal, Decimal]:
        """Build the router call for a USD-sized swap.

        Returns:
            (transaction, expected output in target units, target USD price).
        """
        if amount_usd <= 0:
            raise SwapSubmissionError("Invalid swap amount")

        source_price = await self._price_feed.get_price(source.symbol)
        target_price = await self._price_feed.get_price(target.symbol)

        if source.symbol in _USD_STABLES:
            source_amount = amount_usd
        else:
            source_amount = amount_usd / source_price
        amount_in = to_base_units(source_amount, source.decimals)

        expected_out = amount_usd / target_price
        min_out = expected_out * (Decimal("1") - self._slippage_tolerance)

        is_native_in = source.symbol == "ETH"
        tx = SwapTransaction(
            router=AERODROME_ROUTER,
            function_name=(
                "swapExactETHForTokens" if is_native_in else "swapExactTokensForTokens"
            ),
            route_from=source.address,
            route_to=target.address,
            factory=AERODROME_FACTORY,
            stable=False,
            amount_in=amount_in,
            min_amount_out=to_base_units(min_out, target.decimals),
            recipient=wallet_address,
            deadline=int(time.time()) + self._deadline_seconds,
            value=amount_in if is_native_in else 0,
        )
        return tx, expected_out, target_price

    async def swap(
        self,
        source: TokenRef,
        target: TokenRef,
        amount_usd: str,
        wallet_address: str,
    ) -> SwapReceipt:
        """Submit a real swap through the router.

        Raises:
            SwapSubmissionError: If no sender is attached or submission fails.
                The sender's message is preserved for classification.
        """
        if self._sender is None:
            raise SwapSubmissionError("Wallet cannot sign transactions")

        tx, expected_out, target_price = await self.build_transaction(
            source, target, Decimal(amount_usd), wallet_address
        )

        try:
            tx_hash = await self._sender.send_transaction(tx)
        except Exception as e:
            raise SwapSubmissionError(str(e)) from e

        logger.info(
            "router_swap_submitted",
            tx_hash=tx_hash,
            function=tx.function_name,
            source=source.symbol,
            target=target.symbol,
            amount_usd=amount_usd,
            amount_in=tx.amount_in,
            min_amount_out=tx.min_amount_out,
        )

        return SwapReceipt(
            tx_hash=tx_hash,
            amount_out=expected_out.quantize(_SIX_DP, rounding=ROUND_DOWN),
            price=target_price.quantize(_TWO_DP),
            is_simulated=False,
        )
