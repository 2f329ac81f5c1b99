"""Tests for RouterSwapService transaction building and submission."""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from dca_bot.exceptions import SwapSubmissionError
from dca_bot.execution.router_swap import (
    AERODROME_FACTORY,
    AERODROME_ROUTER,
    RouterSwapService,
    to_base_units,
)
from dca_bot.tokens import ETH, USDC
from dca_bot.wallet.client import TransactionSender

WALLET_ADDRESS = "0x1111111111111111111111111111111111111111"
TX_HASH = "0x" + "12" * 32


@pytest.fixture
def sender() -> AsyncMock:
    sender = AsyncMock(spec=TransactionSender)
    sender.send_transaction.return_value = TX_HASH
    return sender


@pytest.fixture
def service(sender: AsyncMock, mock_price_feed: AsyncMock) -> RouterSwapService:
    return RouterSwapService(sender, mock_price_feed)


def test_to_base_units_rounds_down() -> None:
    assert to_base_units(Decimal("5.00"), 6) == 5_000_000
    assert to_base_units(Decimal("0.0000019"), 6) == 1


@pytest.mark.asyncio
async def test_usdc_to_eth_transaction(service: RouterSwapService) -> None:
    tx, expected_out, price = await service.build_transaction(
        USDC, ETH, Decimal("5.00"), WALLET_ADDRESS
    )

    assert tx.router == AERODROME_ROUTER
    assert tx.factory == AERODROME_FACTORY
    assert tx.function_name == "swapExactTokensForTokens"
    assert tx.route_from == USDC.address
    assert tx.route_to == ETH.address
    assert tx.stable is False
    assert tx.amount_in == 5_000_000
    assert tx.value == 0
    assert tx.recipient == WALLET_ADDRESS
    assert expected_out == Decimal("0.0025")
    # 1% slippage floor on 0.0025 ETH
    assert tx.min_amount_out == 2_475_000_000_000_000
    assert price == Decimal("2000")


@pytest.mark.asyncio
async def test_eth_source_sends_value(service: RouterSwapService) -> None:
    tx, expected_out, _ = await service.build_transaction(
        ETH, USDC, Decimal("5.00"), WALLET_ADDRESS
    )

    assert tx.function_name == "swapExactETHForTokens"
    assert tx.amount_in == 2_500_000_000_000_000
    assert tx.value == tx.amount_in
    assert expected_out == Decimal("5")


@pytest.mark.asyncio
async def test_swap_returns_receipt(service: RouterSwapService, sender: AsyncMock) -> None:
    receipt = await service.swap(USDC, ETH, "5.00", WALLET_ADDRESS)

    sender.send_transaction.assert_awaited_once()
    assert receipt.tx_hash == TX_HASH
    assert receipt.amount_out == Decimal("0.002500")
    assert receipt.price == Decimal("2000.00")
    assert not receipt.is_simulated


@pytest.mark.asyncio
async def test_sender_error_message_preserved(
    service: RouterSwapService, sender: AsyncMock
) -> None:
    sender.send_transaction.side_effect = RuntimeError("User rejected the request.")

    with pytest.raises(SwapSubmissionError, match="User rejected the request."):
        await service.swap(USDC, ETH, "5.00", WALLET_ADDRESS)


@pytest.mark.asyncio
async def test_no_sender_is_unavailable(mock_price_feed: AsyncMock) -> None:
    service = RouterSwapService(None, mock_price_feed)

    assert not service.is_available
    with pytest.raises(SwapSubmissionError):
        await service.swap(USDC, ETH, "5.00", WALLET_ADDRESS)
    mock_price_feed.get_price.assert_not_awaited()


@pytest.mark.asyncio
async def test_non_positive_amount_rejected(service: RouterSwapService) -> None:
    with pytest.raises(SwapSubmissionError, match="Invalid swap amount"):
        await service.build_transaction(USDC, ETH, Decimal("0"), WALLET_ADDRESS)
