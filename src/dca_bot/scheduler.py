"""DCA scheduler -- owns the Paused/Active state machine and both tickers.

While Active two asyncio tasks run:
  1. COUNTDOWN: every countdown_tick_ms, decrement next_swap_in_ms (floor 0)
  2. ACTION: every frequency_ms, launch a swap attempt unless one is
     already outstanding (skip, never queue). Each completed attempt
     restarts both the countdown and this ticker from that moment.

Attempts run as their own tasks so that stop() can cancel the tickers
without cancelling a swap that is already being submitted. Each start()
opens a new generation; an attempt that finishes after the generation
changed still lands in history but does not touch the countdown.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation

from dca_bot.config import DCASettings
from dca_bot.execution.attempt import SwapAttemptExecutor
from dca_bot.frequency import (
    TIER_RESET_VALUE,
    format_countdown,
    format_frequency,
    map_to_frequency,
)
from dca_bot.history.tracker import HistoryTracker
from dca_bot.logging import get_logger
from dca_bot.market_data.quote_service import QuoteService
from dca_bot.models import (
    DCAConfig,
    ErrorKind,
    FrequencyTier,
    Quote,
    SchedulerState,
    SwapOutcome,
    TokenRef,
)
from dca_bot.tokens import get_token
from dca_bot.wallet.client import WalletClient

logger = get_logger(__name__)


@dataclass(frozen=True)
class DCASnapshot:
    """Read model of a scheduler at one point in time."""

    config: DCAConfig
    tier: FrequencyTier | str
    control_value: float
    history: list[SwapOutcome]
    total_swapped_usd: Decimal
    total_simulated_usd: Decimal
    is_attempt_in_progress: bool
    stats: dict

    def to_dict(self) -> dict:
        cfg = self.config
        return {
            "state": (SchedulerState.ACTIVE if cfg.is_active else SchedulerState.PAUSED).value,
            "config": {
                "source_token": cfg.source_token.symbol,
                "target_token": cfg.target_token.symbol,
                "frequency_ms": cfg.frequency_ms,
                "frequency_label": format_frequency(cfg.frequency_ms / 1000),
                "percentage": str(cfg.percentage),
                "is_active": cfg.is_active,
                "next_swap_in_ms": cfg.next_swap_in_ms,
                "next_swap_in_label": format_countdown(cfg.next_swap_in_ms),
            },
            "tier": self.tier.value if isinstance(self.tier, FrequencyTier) else self.tier,
            "control_value": self.control_value,
            "history": [outcome.to_dict() for outcome in self.history],
            "total_swapped_usd": str(self.total_swapped_usd.quantize(Decimal("0.01"))),
            "total_simulated_usd": str(self.total_simulated_usd.quantize(Decimal("0.01"))),
            "is_attempt_in_progress": self.is_attempt_in_progress,
            "stats": self.stats,
        }


class DCAScheduler:
    """Recurring DCA swaps for one wallet.

    All state lives on the instance; construct one per wallet and pass it to
    whatever needs to drive it (control API, entry point, tests).

    Args:
        wallet: Source of address and balance. Read-only from here.
        executor: Serialized swap attempt executor.
        history: Receives every attempt outcome.
        settings: Defaults for tier, control value, percentage, tick size.
        quote_service: Optional display-quote provider.
        source_token: Initial source token (defaults to settings.source_symbol).
        target_token: Initial target token (defaults to settings.target_symbol).
    """

    def __init__(
        self,
        wallet: WalletClient,
        executor: SwapAttemptExecutor,
        history: HistoryTracker,
        settings: DCASettings,
        quote_service: QuoteService | None = None,
        source_token: TokenRef | None = None,
        target_token: TokenRef | None = None,
    ) -> None:
        self._wallet = wallet
        self._executor = executor
        self._history = history
        self._settings = settings
        self._quote_service = quote_service
        self._tier: FrequencyTier | str = settings.default_tier
        self._control_value: float = settings.default_control_value
        self._config = DCAConfig(
            source_token=source_token or get_token(settings.source_symbol),
            target_token=target_token or get_token(settings.target_symbol),
            frequency_ms=map_to_frequency(self._control_value, self._tier),
            percentage=settings.percentage,
        )
        self._generation = 0
        self._countdown_task: asyncio.Task | None = None  # type: ignore[type-arg]
        self._action_task: asyncio.Task | None = None  # type: ignore[type-arg]
        self._attempt_tasks: set[asyncio.Task] = set()  # type: ignore[type-arg]

    # ------------------------------------------------------------------
    # State transitions
    # ------------------------------------------------------------------

    def start(self) -> bool:
        """Paused -> Active. Must be called with a running event loop.

        Refused (returns False) if already Active or the balance is zero.
        """
        if self._config.is_active:
            logger.info("dca_start_ignored_already_active")
            return False

        balance = self._read_balance()
        if balance <= 0:
            logger.error("dca_start_rejected_zero_balance", balance_usd=str(balance))
            return False

        self._generation += 1
        self._config.is_active = True
        self._config.next_swap_in_ms = self._config.frequency_ms
        self._countdown_task = asyncio.create_task(self._countdown_loop(self._generation))
        self._arm_action_ticker()

        logger.info(
            "dca_started",
            frequency_ms=self._config.frequency_ms,
            tier=str(self._tier),
            control_value=self._control_value,
            source=self._config.source_token.symbol,
            target=self._config.target_token.symbol,
        )
        return True

    def stop(self) -> bool:
        """Active -> Paused. Safe at any time, including mid-attempt.

        Cancels both tickers; an attempt already running completes and is
        still recorded. Returns False if already Paused.
        """
        if not self._config.is_active:
            return False

        self._generation += 1
        self._cancel_tickers()
        self._config.is_active = False
        self._config.next_swap_in_ms = 0
        logger.info("dca_stopped", attempt_in_progress=self._executor.is_in_progress)
        return True

    async def close(self) -> None:
        """Tear down: cancel both tickers and drain outstanding attempts.

        An attempt already launched is awaited so its outcome is recorded.
        Attempts still running after shutdown_timeout_seconds are cancelled.
        """
        tickers = [t for t in (self._countdown_task, self._action_task) if t is not None]
        if not self.stop():
            self._cancel_tickers()
        if tickers:
            await asyncio.gather(*tickers, return_exceptions=True)

        attempts = set(self._attempt_tasks)
        if attempts:
            logger.info("dca_draining_attempts", count=len(attempts))
            _, pending = await asyncio.wait(
                attempts, timeout=self._settings.shutdown_timeout_seconds
            )
            if pending:
                logger.warning("dca_attempts_abandoned_at_shutdown", count=len(pending))
                for task in pending:
                    task.cancel()
                await asyncio.gather(*pending, return_exceptions=True)
        logger.info("dca_scheduler_closed")

    # ------------------------------------------------------------------
    # Reconfiguration (allowed in either state)
    # ------------------------------------------------------------------

    def update_tokens(self, source: TokenRef, target: TokenRef) -> None:
        """Replace the token pair. Same-asset pairs are rejected per attempt."""
        self._config.source_token = source
        self._config.target_token = target
        logger.info("dca_tokens_updated", source=source.symbol, target=target.symbol)

    def swap_tokens(self) -> None:
        """Exchange source and target tokens."""
        cfg = self._config
        cfg.source_token, cfg.target_token = cfg.target_token, cfg.source_token
        logger.info(
            "dca_tokens_swapped",
            source=cfg.source_token.symbol,
            target=cfg.target_token.symbol,
        )

    def on_tier_change(self, tier: FrequencyTier | str) -> None:
        """Switch tier and reset the control value to the midpoint."""
        try:
            self._tier = FrequencyTier(tier)
        except ValueError:
            logger.warning("unknown_frequency_tier", tier=str(tier))
            self._tier = tier
        self._control_value = TIER_RESET_VALUE
        self._apply_frequency()

    def on_value_change(self, value: float) -> None:
        """Set the 0-100 speed control (clamped)."""
        self._control_value = min(max(value, 0), 100)
        self._apply_frequency()

    def _apply_frequency(self) -> None:
        frequency_ms = map_to_frequency(self._control_value, self._tier)
        self._config.frequency_ms = frequency_ms
        if self._config.is_active:
            self._config.next_swap_in_ms = frequency_ms
            self._arm_action_ticker()
        logger.info(
            "dca_frequency_changed",
            tier=str(self._tier),
            control_value=self._control_value,
            frequency_ms=frequency_ms,
            is_active=self._config.is_active,
        )

    # ------------------------------------------------------------------
    # Attempts
    # ------------------------------------------------------------------

    async def trigger_attempt_now(self) -> SwapOutcome:
        """Run an attempt immediately, as if the action ticker fired.

        A call made while another attempt is outstanding reaches the
        executor and is recorded as AlreadyInProgress.
        """
        return await self._run_attempt(self._generation)

    async def _run_attempt(self, generation: int) -> SwapOutcome:
        outcome = await self._executor.attempt(
            replace(self._config),
            self._read_balance(),
            self._wallet.address,
        )
        self._history.record(outcome)

        if outcome.error_kind == ErrorKind.ALREADY_IN_PROGRESS:
            return outcome

        # Stale guard: a stopped or restarted schedule keeps its own countdown
        if generation == self._generation and self._config.is_active:
            self._config.next_swap_in_ms = self._config.frequency_ms
            self._arm_action_ticker()
        return outcome

    def _on_action_tick(self, generation: int) -> None:
        if self._executor.is_in_progress:
            logger.info("dca_tick_skipped_attempt_in_progress")
            return
        task = asyncio.create_task(self._run_attempt(generation))
        self._attempt_tasks.add(task)
        task.add_done_callback(self._attempt_tasks.discard)

    # ------------------------------------------------------------------
    # Tickers
    # ------------------------------------------------------------------

    def _arm_action_ticker(self) -> None:
        if self._action_task is not None:
            self._action_task.cancel()
        self._action_task = asyncio.create_task(
            self._action_loop(self._generation, self._config.frequency_ms)
        )

    def _cancel_tickers(self) -> None:
        for task in (self._countdown_task, self._action_task):
            if task is not None:
                task.cancel()
        self._countdown_task = None
        self._action_task = None

    async def _countdown_loop(self, generation: int) -> None:
        tick_ms = self._settings.countdown_tick_ms
        while generation == self._generation:
            await asyncio.sleep(tick_ms / 1000)
            if generation != self._generation:
                break
            self._config.next_swap_in_ms = max(0, self._config.next_swap_in_ms - tick_ms)

    async def _action_loop(self, generation: int, period_ms: int) -> None:
        while generation == self._generation:
            await asyncio.sleep(period_ms / 1000)
            if generation != self._generation:
                break
            try:
                self._on_action_tick(generation)
            except Exception:
                logger.error("dca_action_tick_error", exc_info=True)

    # ------------------------------------------------------------------
    # Read model
    # ------------------------------------------------------------------

    def _read_balance(self) -> Decimal:
        raw = self._wallet.balance_usd
        try:
            return Decimal(raw or "0")
        except InvalidOperation:
            logger.warning("unparseable_wallet_balance", balance_usd=raw)
            return Decimal("0")

    async def get_quote(self) -> Quote | None:
        """Quote the next swap for display. None if unavailable."""
        if self._quote_service is None:
            return None
        amount = self._read_balance() * self._config.percentage / Decimal("100")
        if amount <= 0:
            return None
        try:
            return await self._quote_service.quote(
                self._config.source_token, self._config.target_token, amount
            )
        except Exception as e:
            logger.warning("quote_unavailable", error=str(e))
            return None

    @property
    def config(self) -> DCAConfig:
        """Copy of the current configuration."""
        return replace(self._config)

    @property
    def state(self) -> SchedulerState:
        return SchedulerState.ACTIVE if self._config.is_active else SchedulerState.PAUSED

    @property
    def tier(self) -> FrequencyTier | str:
        return self._tier

    @property
    def control_value(self) -> float:
        return self._control_value

    @property
    def history(self) -> list[SwapOutcome]:
        return self._history.history

    @property
    def total_swapped_usd(self) -> Decimal:
        return self._history.total_swapped_usd

    @property
    def total_simulated_usd(self) -> Decimal:
        return self._history.total_simulated_usd

    @property
    def is_attempt_in_progress(self) -> bool:
        return self._executor.is_in_progress

    def snapshot(self) -> DCASnapshot:
        """Consistent read model of config, history, and totals."""
        return DCASnapshot(
            config=self.config,
            tier=self._tier,
            control_value=self._control_value,
            history=self._history.history,
            total_swapped_usd=self._history.total_swapped_usd,
            total_simulated_usd=self._history.total_simulated_usd,
            is_attempt_in_progress=self._executor.is_in_progress,
            stats=self._history.get_summary(),
        )
