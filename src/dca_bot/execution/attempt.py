"""Single DCA swap attempt: size, validate, submit, classify, fall back.

SwapAttemptExecutor.attempt() fails closed. Whatever happens inside, the
caller gets a SwapOutcome back, never an exception. The only state kept
between calls is the in-flight flag that serializes attempts.
"""

from __future__ import annotations

import asyncio
from decimal import ROUND_HALF_UP, Decimal
from uuid import uuid4

import structlog

from dca_bot.config import DCASettings
from dca_bot.execution.swap_service import SwapService
from dca_bot.logging import get_logger
from dca_bot.models import (
    DCAConfig,
    ErrorKind,
    SourceKind,
    SwapOutcome,
    SwapReceipt,
    TokenRef,
)
from dca_bot.wallet.client import WalletClient

logger = get_logger(__name__)

_TWO_DP = Decimal("0.01")

_ERROR_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.INSUFFICIENT_FUNDS: "Insufficient balance or liquidity",
    ErrorKind.USER_REJECTED: "Transaction rejected - please reconnect wallet",
    ErrorKind.NETWORK_ERROR: "Network error, please try again",
}


def classify_swap_error(message: str) -> ErrorKind:
    """Map a swap collaborator's error message to an ErrorKind.

    Case-insensitive substring match. This is the only place error text is
    inspected; everything downstream works on the enum.
    """
    msg = message.lower()
    if "insufficient" in msg:
        return ErrorKind.INSUFFICIENT_FUNDS
    if "user rejected" in msg or "user denied" in msg:
        return ErrorKind.USER_REJECTED
    if "network" in msg or "fetch" in msg:
        return ErrorKind.NETWORK_ERROR
    return ErrorKind.UNKNOWN


def validate_swap(
    source: TokenRef,
    target: TokenRef,
    amount_usd: Decimal,
    balance_usd: Decimal,
    min_swap_usd: Decimal = Decimal("0.01"),
    max_swap_usd: Decimal = Decimal("10000"),
) -> str | None:
    """Check swap invariants before any network call.

    Returns:
        A human-readable reason if the swap is invalid, otherwise None.
    """
    if amount_usd < min_swap_usd:
        return f"Minimum swap amount is ${min_swap_usd}"
    if amount_usd > max_swap_usd:
        return f"Maximum swap amount is ${max_swap_usd:,}"
    if source.same_asset(target):
        return "Cannot swap token with itself"
    if balance_usd < amount_usd:
        return (
            f"Insufficient balance. Have: ${_usd(balance_usd)}, "
            f"Need: ${_usd(amount_usd)}"
        )
    return None


def _usd(value: Decimal) -> str:
    return str(value.quantize(_TWO_DP, rounding=ROUND_HALF_UP))


def _failure(
    kind: ErrorKind, error: str, amount_in_usd: str = "0.00"
) -> SwapOutcome:
    return SwapOutcome(
        success=False,
        amount_in_usd=amount_in_usd,
        amount_out_estimate="0",
        error_kind=kind,
        error=error,
    )


class SwapAttemptExecutor:
    """Runs one swap attempt at a time for a scheduler.

    Args:
        swap_service: Primary swap collaborator; None means unavailable.
        settings: Sizing limits and the balance refresh delay.
        fallback_service: Degraded simulation path used after a real swap
            raises. None disables the fallback.
        wallet: Wallet asked to refresh its balance after a successful swap.
    """

    def __init__(
        self,
        swap_service: SwapService | None,
        settings: DCASettings,
        fallback_service: SwapService | None = None,
        wallet: WalletClient | None = None,
    ) -> None:
        self._swap_service = swap_service
        self._settings = settings
        self._fallback_service = fallback_service
        self._wallet = wallet
        self._in_flight = False

    @property
    def is_in_progress(self) -> bool:
        """True while an attempt is outstanding."""
        return self._in_flight

    async def attempt(
        self,
        config: DCAConfig,
        current_balance_usd: Decimal,
        wallet_address: str | None,
    ) -> SwapOutcome:
        """Run one swap attempt against the current config and balance.

        The in-flight flag is checked and set before the first await, so
        on a single event loop a second caller always sees it.

        Args:
            config: Current DCA configuration (tokens and percentage).
            current_balance_usd: Wallet balance in USD.
            wallet_address: Connected address, or None.

        Returns:
            SwapOutcome describing success, failure, or a simulated fill.
        """
        if self._in_flight:
            logger.info("swap_attempt_rejected_in_progress")
            return _failure(ErrorKind.ALREADY_IN_PROGRESS, "Swap already in progress")

        self._in_flight = True
        try:
            with structlog.contextvars.bound_contextvars(
                attempt_id=uuid4().hex[:12],
                source=config.source_token.symbol,
                target=config.target_token.symbol,
            ):
                return await self._run(config, current_balance_usd, wallet_address)
        except Exception as e:
            logger.error("swap_attempt_unexpected_error", error=str(e), exc_info=True)
            return _failure(ErrorKind.UNKNOWN, str(e))
        finally:
            self._in_flight = False

    async def _run(
        self,
        config: DCAConfig,
        balance: Decimal,
        wallet_address: str | None,
    ) -> SwapOutcome:
        service = self._swap_service
        if not wallet_address or service is None or not service.is_available:
            logger.warning("swap_attempt_wallet_unavailable")
            return _failure(
                ErrorKind.WALLET_UNAVAILABLE,
                "Wallet not connected or swap service unavailable",
            )

        if balance <= 0:
            logger.warning("swap_attempt_insufficient_balance", balance_usd=str(balance))
            return _failure(ErrorKind.INSUFFICIENT_BALANCE, "Insufficient balance")

        swap_amount = balance * config.percentage / Decimal("100")
        if swap_amount < self._settings.min_swap_usd:
            logger.warning("swap_attempt_amount_too_small", amount_usd=str(swap_amount))
            return _failure(
                ErrorKind.AMOUNT_TOO_SMALL,
                f"Swap amount too small (minimum ${self._settings.min_swap_usd} "
                "for reliable execution)",
            )

        amount_str = _usd(swap_amount)
        reason = validate_swap(
            config.source_token,
            config.target_token,
            swap_amount,
            balance,
            self._settings.min_swap_usd,
            self._settings.max_swap_usd,
        )
        if reason is not None:
            logger.warning("swap_attempt_validation_failed", reason=reason)
            return _failure(ErrorKind.VALIDATION_FAILED, reason, amount_str)

        logger.info(
            "swap_attempt_started",
            amount_usd=amount_str,
            balance_usd=_usd(balance),
            wallet=wallet_address,
        )

        try:
            receipt = await service.swap(
                config.source_token, config.target_token, amount_str, wallet_address
            )
        except Exception as e:
            return await self._fallback(config, amount_str, wallet_address, e)

        self._schedule_balance_refresh()
        outcome = self._success(amount_str, receipt)
        logger.info(
            "swap_attempt_succeeded",
            tx_hash=receipt.tx_hash,
            amount_out=outcome.amount_out_estimate,
            price=outcome.price,
            source_kind=outcome.source_kind.value,
        )
        return outcome

    async def _fallback(
        self,
        config: DCAConfig,
        amount_str: str,
        wallet_address: str,
        error: Exception,
    ) -> SwapOutcome:
        """Classify a failed real swap and try the simulation path once."""
        raw = str(error) or type(error).__name__
        kind = classify_swap_error(raw)
        message = _ERROR_MESSAGES.get(kind, raw)
        logger.warning("real_swap_failed", error_kind=kind.value, error=raw)

        if self._fallback_service is None:
            return _failure(kind, message, amount_str)

        try:
            receipt = await self._fallback_service.swap(
                config.source_token, config.target_token, amount_str, wallet_address
            )
        except Exception as sim_error:
            logger.error(
                "fallback_simulation_failed",
                error=str(sim_error),
                real_swap_error=raw,
            )
            return _failure(
                ErrorKind.UNKNOWN,
                f"{message}; simulation fallback failed: {sim_error}",
                amount_str,
            )

        self._schedule_balance_refresh()
        logger.info(
            "fallback_simulation_filled",
            fallback_cause=kind.value,
            amount_out=str(receipt.amount_out),
        )
        return self._success(
            amount_str,
            receipt,
            source_kind=SourceKind.SIMULATED,
            note=f"Real swap failed: {message}. Showing simulation.",
            fallback_cause=kind,
        )

    @staticmethod
    def _success(
        amount_str: str,
        receipt: SwapReceipt,
        source_kind: SourceKind | None = None,
        note: str | None = None,
        fallback_cause: ErrorKind | None = None,
    ) -> SwapOutcome:
        if source_kind is None:
            source_kind = SourceKind.SIMULATED if receipt.is_simulated else SourceKind.REAL
        return SwapOutcome(
            success=True,
            amount_in_usd=amount_str,
            amount_out_estimate=str(receipt.amount_out),
            source_kind=source_kind,
            price=str(receipt.price),
            tx_hash=receipt.tx_hash,
            note=note,
            fallback_cause=fallback_cause,
        )

    def _schedule_balance_refresh(self) -> None:
        """Ask the wallet to refresh its balance later, without awaiting it."""
        if self._wallet is None:
            return
        loop = asyncio.get_running_loop()
        loop.call_later(self._settings.balance_refresh_delay, self._refresh_balance)

    def _refresh_balance(self) -> None:
        try:
            self._wallet.request_refresh()  # type: ignore[union-attr]
        except Exception as e:
            logger.warning("balance_refresh_failed", error=str(e))
