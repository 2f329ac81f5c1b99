"""Shared test fixtures for the DCA swap engine."""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from dca_bot.config import DCASettings, SimulationSettings
from dca_bot.execution.attempt import SwapAttemptExecutor
from dca_bot.execution.swap_service import SwapService
from dca_bot.history.tracker import HistoryTracker
from dca_bot.market_data.price_feed import CoinGeckoPriceFeed
from dca_bot.models import DCAConfig, SwapReceipt
from dca_bot.scheduler import DCAScheduler
from dca_bot.tokens import ETH, USDC
from dca_bot.wallet.paper_wallet import PaperWallet

WALLET_ADDRESS = "0x1111111111111111111111111111111111111111"

PRICES = {
    "ETH": Decimal("2000"),
    "USDC": Decimal("1"),
    "DAI": Decimal("1"),
    "USDbC": Decimal("1"),
}


@pytest.fixture
def dca_settings() -> DCASettings:
    """DCASettings with the balance refresh firing on the next loop turn."""
    return DCASettings(balance_refresh_delay=0.0)


@pytest.fixture
def sim_settings() -> SimulationSettings:
    """Instant, always-successful simulation."""
    return SimulationSettings(
        min_delay_seconds=0.0,
        max_delay_seconds=0.0,
        failure_rate=0.0,
    )


@pytest.fixture
def wallet() -> PaperWallet:
    """Paper wallet with $500, so 1% swaps are $5.00."""
    return PaperWallet(WALLET_ADDRESS, Decimal("500"))


@pytest.fixture
def mock_price_feed() -> AsyncMock:
    """Price feed returning fixed USD prices."""
    feed = AsyncMock(spec=CoinGeckoPriceFeed)
    feed.get_price.side_effect = lambda symbol: PRICES[symbol]
    return feed


@pytest.fixture
def receipt() -> SwapReceipt:
    return SwapReceipt(
        tx_hash="0x" + "ab" * 32,
        amount_out=Decimal("0.0025"),
        price=Decimal("2000.00"),
        is_simulated=False,
    )


@pytest.fixture
def mock_swap_service(receipt: SwapReceipt) -> AsyncMock:
    """Real-swap collaborator that succeeds immediately."""
    service = AsyncMock(spec=SwapService)
    service.is_available = True
    service.swap.return_value = receipt
    return service


@pytest.fixture
def mock_fallback_service() -> AsyncMock:
    service = AsyncMock(spec=SwapService)
    service.is_available = True
    service.swap.return_value = SwapReceipt(
        tx_hash="0x" + "cd" * 32,
        amount_out=Decimal("0.002496"),
        price=Decimal("1996.00"),
        is_simulated=True,
    )
    return service


@pytest.fixture
def config() -> DCAConfig:
    return DCAConfig(source_token=USDC, target_token=ETH, frequency_ms=3_600_000)


@pytest.fixture
def executor(
    mock_swap_service: AsyncMock,
    mock_fallback_service: AsyncMock,
    dca_settings: DCASettings,
    wallet: PaperWallet,
) -> SwapAttemptExecutor:
    return SwapAttemptExecutor(
        swap_service=mock_swap_service,
        settings=dca_settings,
        fallback_service=mock_fallback_service,
        wallet=wallet,
    )


@pytest.fixture
def history() -> HistoryTracker:
    return HistoryTracker()


@pytest.fixture
def scheduler(
    wallet: PaperWallet,
    executor: SwapAttemptExecutor,
    history: HistoryTracker,
    dca_settings: DCASettings,
) -> DCAScheduler:
    return DCAScheduler(
        wallet=wallet,
        executor=executor,
        history=history,
        settings=dca_settings,
    )
