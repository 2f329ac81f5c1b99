"""Tests for SimulatedSwapService.

Verifies:
- Output priced from the target token with slippage in the configured band
- is_simulated=True on every receipt
- SimulationError at the configured failure rate
- Paper ledger debited only when attached
- PriceUnavailableError propagates
"""

import random
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from dca_bot.config import SimulationSettings
from dca_bot.exceptions import PriceUnavailableError, SimulationError
from dca_bot.execution.simulated_swap import SimulatedSwapService
from dca_bot.tokens import ETH, USDC
from dca_bot.wallet.paper_wallet import PaperWallet

WALLET_ADDRESS = "0x1111111111111111111111111111111111111111"


@pytest.mark.asyncio
async def test_fill_within_slippage_band(
    mock_price_feed: AsyncMock, sim_settings: SimulationSettings
) -> None:
    service = SimulatedSwapService(mock_price_feed, sim_settings, rng=random.Random(7))

    receipt = await service.swap(USDC, ETH, "5.00", WALLET_ADDRESS)

    mock_price_feed.get_price.assert_awaited_once_with("ETH")
    assert receipt.is_simulated
    # 0.1%..0.3% below 2000
    assert Decimal("1994") <= receipt.price <= Decimal("1998")
    assert Decimal("0.002502") <= receipt.amount_out <= Decimal("0.002508")
    assert receipt.amount_out == receipt.amount_out.quantize(Decimal("0.000001"))
    assert receipt.tx_hash.startswith("0x")
    assert len(receipt.tx_hash) == 66


@pytest.mark.asyncio
async def test_seeded_rng_is_deterministic(
    mock_price_feed: AsyncMock, sim_settings: SimulationSettings
) -> None:
    first = SimulatedSwapService(mock_price_feed, sim_settings, rng=random.Random(42))
    second = SimulatedSwapService(mock_price_feed, sim_settings, rng=random.Random(42))

    a = await first.swap(USDC, ETH, "5.00", WALLET_ADDRESS)
    b = await second.swap(USDC, ETH, "5.00", WALLET_ADDRESS)

    assert a == b


@pytest.mark.asyncio
async def test_failure_rate_raises(mock_price_feed: AsyncMock) -> None:
    settings = SimulationSettings(
        min_delay_seconds=0.0, max_delay_seconds=0.0, failure_rate=1.0
    )
    service = SimulatedSwapService(mock_price_feed, settings)

    with pytest.raises(SimulationError, match="congestion"):
        await service.swap(USDC, ETH, "5.00", WALLET_ADDRESS)


@pytest.mark.asyncio
async def test_ledger_debited_on_fill(
    mock_price_feed: AsyncMock, sim_settings: SimulationSettings
) -> None:
    wallet = PaperWallet(WALLET_ADDRESS, Decimal("100"))
    service = SimulatedSwapService(mock_price_feed, sim_settings, ledger=wallet)

    await service.swap(USDC, ETH, "5.00", WALLET_ADDRESS)

    # Reported balance lags until refresh
    assert wallet.balance_usd == "100.00"
    wallet.request_refresh()
    assert wallet.balance_usd == "95.00"


@pytest.mark.asyncio
async def test_failed_fill_leaves_ledger_untouched(mock_price_feed: AsyncMock) -> None:
    settings = SimulationSettings(
        min_delay_seconds=0.0, max_delay_seconds=0.0, failure_rate=1.0
    )
    wallet = PaperWallet(WALLET_ADDRESS, Decimal("100"))
    service = SimulatedSwapService(mock_price_feed, settings, ledger=wallet)

    with pytest.raises(SimulationError):
        await service.swap(USDC, ETH, "5.00", WALLET_ADDRESS)

    wallet.request_refresh()
    assert wallet.balance_usd == "100.00"


@pytest.mark.asyncio
async def test_price_unavailable_propagates(sim_settings: SimulationSettings) -> None:
    feed = AsyncMock()
    feed.get_price.side_effect = PriceUnavailableError("No price available for ETH")
    service = SimulatedSwapService(feed, sim_settings)

    with pytest.raises(PriceUnavailableError):
        await service.swap(USDC, ETH, "5.00", WALLET_ADDRESS)
