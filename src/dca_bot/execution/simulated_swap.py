"""Simulated swaps priced from live market data.

Serves as the degraded path after a real swap fails and as the primary
swap service in paper mode. Every receipt has is_simulated=True.
"""

import asyncio
import random
from decimal import ROUND_HALF_UP, Decimal

from dca_bot.config import SimulationSettings
from dca_bot.exceptions import SimulationError
from dca_bot.execution.swap_service import SwapService
from dca_bot.logging import get_logger
from dca_bot.market_data.price_feed import CoinGeckoPriceFeed
from dca_bot.models import SwapReceipt, TokenRef
from dca_bot.wallet.paper_wallet import PaperWallet

logger = get_logger(__name__)

_SIX_DP = Decimal("0.000001")
_TWO_DP = Decimal("0.01")


class SimulatedSwapService(SwapService):
    """Fills swaps at market price minus a random slippage.

    Args:
        price_feed: Source of the target token USD price.
        settings: Slippage band, delay band, and failure rate.
        ledger: Paper wallet to debit on each fill. Leave unset for the
            fallback path so a real wallet is never touched.
        rng: Random source (tests pass a seeded instance).
    """

    def __init__(
        self,
        price_feed: CoinGeckoPriceFeed,
        settings: SimulationSettings,
        ledger: PaperWallet | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._price_feed = price_feed
        self._settings = settings
        self._ledger = ledger
        self._rng = rng if rng is not None else random.Random()

    async def swap(
        self,
        source: TokenRef,
        target: TokenRef,
        amount_usd: str,
        wallet_address: str,
    ) -> SwapReceipt:
        """Simulate a swap.

        1. Price the target token (PriceUnavailableError propagates).
        2. Wait a simulated network delay.
        3. Fail with SimulationError at the configured failure rate.
        4. Apply slippage and compute the output amount.
        5. Debit the paper ledger if one is attached.

        Raises:
            SimulationError: On a simulated network failure.
            PriceUnavailableError: If the target has no price.
        """
        amount = Decimal(amount_usd)
        market_price = await self._price_feed.get_price(target.symbol)

        delay = self._rng.uniform(
            self._settings.min_delay_seconds, self._settings.max_delay_seconds
        )
        if delay > 0:
            await asyncio.sleep(delay)

        if self._rng.random() < self._settings.failure_rate:
            logger.warning(
                "simulated_swap_failed",
                source=source.symbol,
                target=target.symbol,
                amount_usd=amount_usd,
            )
            raise SimulationError("Simulated network congestion")

        span = self._settings.max_slippage - self._settings.min_slippage
        slippage = self._settings.min_slippage + span * Decimal(str(self._rng.random()))
        effective_price = market_price * (Decimal("1") - slippage)
        amount_out = (amount / effective_price).quantize(_SIX_DP, rounding=ROUND_HALF_UP)
        tx_hash = "0x" + "".join(self._rng.choice("0123456789abcdef") for _ in range(64))

        if self._ledger is not None:
            self._ledger.apply_fill(amount)

        logger.info(
            "simulated_swap_filled",
            tx_hash=tx_hash,
            source=source.symbol,
            target=target.symbol,
            amount_usd=amount_usd,
            amount_out=str(amount_out),
            price=str(effective_price.quantize(_TWO_DP)),
            wallet=wallet_address,
        )

        return SwapReceipt(
            tx_hash=tx_hash,
            amount_out=amount_out,
            price=effective_price.quantize(_TWO_DP, rounding=ROUND_HALF_UP),
            is_simulated=True,
        )
