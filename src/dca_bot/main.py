"""Entry point for the DCA swap engine.

Wires the components together and either serves the control API (default)
or runs the schedule headless. SWAP_MODE=paper (default) fills swaps
through the simulated swap service against an in-memory wallet;
SWAP_MODE=live submits Aerodrome router transactions through a
TransactionSender passed to build_components.

Component wiring order (in build_components):
1. PriceCache + CoinGeckoPriceFeed (USD prices)
2. QuoteService (display quotes)
3. Wallet (PaperWallet unless one is passed in)
4. Primary swap service by mode: SimulatedSwapService (debits the paper
   wallet) or RouterSwapService (live)
5. SimulatedSwapService as fallback (no ledger)
6. SwapAttemptExecutor
7. HistoryTracker
8. DCAScheduler

SIGINT/SIGTERM close the scheduler, which cancels both tickers and waits
for an in-flight attempt to be recorded.
"""

import asyncio
import signal
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI

from dca_bot.config import AppSettings
from dca_bot.execution.attempt import SwapAttemptExecutor
from dca_bot.execution.router_swap import RouterSwapService
from dca_bot.execution.simulated_swap import SimulatedSwapService
from dca_bot.execution.swap_service import SwapService
from dca_bot.history.tracker import HistoryTracker
from dca_bot.logging import get_logger, setup_logging
from dca_bot.market_data.price_cache import PriceCache
from dca_bot.market_data.price_feed import CoinGeckoPriceFeed
from dca_bot.market_data.quote_service import QuoteService
from dca_bot.scheduler import DCAScheduler
from dca_bot.wallet.client import TransactionSender, WalletClient
from dca_bot.wallet.paper_wallet import PaperWallet


def build_components(
    settings: AppSettings,
    sender: TransactionSender | None = None,
    wallet: WalletClient | None = None,
) -> dict[str, Any]:
    """Build the dependency graph.

    SWAP_MODE picks the primary swap service: "paper" fills against the
    paper wallet through SimulatedSwapService, "live" submits router
    transactions through the given sender. Both keep the simulated
    fallback, which never touches a wallet.

    Args:
        settings: Application-wide settings.
        sender: Wallet transaction sender for live mode. Without one the
            router reports itself unavailable and attempts fail with
            WALLET_UNAVAILABLE.
        wallet: Wallet collaborator; defaults to a PaperWallet built from
            WALLET_ settings.

    Returns:
        Dict mapping component names to instances.
    """
    price_feed = CoinGeckoPriceFeed(settings.price, PriceCache())
    quote_service = QuoteService(price_feed)

    if wallet is None:
        wallet = PaperWallet(
            address=settings.wallet.address,
            initial_balance_usd=settings.wallet.initial_balance_usd,
        )

    swap_service: SwapService
    if settings.swap.mode == "paper":
        ledger = wallet if isinstance(wallet, PaperWallet) else None
        swap_service = SimulatedSwapService(price_feed, settings.simulation, ledger=ledger)
    else:
        swap_service = RouterSwapService(
            sender,
            price_feed,
            slippage_tolerance=settings.swap.slippage_tolerance,
            deadline_seconds=settings.swap.deadline_seconds,
        )
    fallback_service = SimulatedSwapService(price_feed, settings.simulation)

    executor = SwapAttemptExecutor(
        swap_service=swap_service,
        settings=settings.dca,
        fallback_service=fallback_service,
        wallet=wallet,
    )
    history = HistoryTracker(limit=settings.dca.history_limit)

    scheduler = DCAScheduler(
        wallet=wallet,
        executor=executor,
        history=history,
        settings=settings.dca,
        quote_service=quote_service,
    )

    return {
        "price_feed": price_feed,
        "quote_service": quote_service,
        "wallet": wallet,
        "swap_service": swap_service,
        "fallback_service": fallback_service,
        "executor": executor,
        "history": history,
        "scheduler": scheduler,
    }


def _setup_signal_handlers(stop_event: asyncio.Event) -> None:
    """Set stop_event on SIGINT/SIGTERM. Requires a running loop."""
    logger = get_logger("dca_bot.main")
    loop = asyncio.get_running_loop()

    def _handler() -> None:
        logger.info("shutdown_signal_received")
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _handler)


async def _shutdown(components: dict[str, Any]) -> None:
    await components["scheduler"].close()
    await components["price_feed"].close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Expose the scheduler to routes and tear it down on shutdown."""
    logger = get_logger("dca_bot.main")
    components = app.state.components
    app.state.scheduler = components["scheduler"]
    logger.info("lifespan_started")

    yield

    await _shutdown(components)
    logger.info("dca_engine_stopped")


async def run() -> None:
    """Run the DCA engine.

    With the API enabled (API_ENABLED=true, the default) uvicorn serves the
    control API and the schedule is driven through it. Otherwise the
    schedule starts immediately and runs until a shutdown signal.
    """
    settings = AppSettings()
    setup_logging(settings.log_level, settings.log_format)
    logger = get_logger("dca_bot.main")

    components = build_components(settings)

    if settings.api.enabled:
        from dca_bot.api.app import create_api_app

        app = create_api_app(lifespan=lifespan)
        app.state.components = components

        logger.info(
            "starting_with_api",
            mode=settings.swap.mode,
            host=settings.api.host,
            port=settings.api.port,
        )
        config = uvicorn.Config(
            app,
            host=settings.api.host,
            port=settings.api.port,
            log_level="warning",
        )
        await uvicorn.Server(config).serve()
        return

    stop_event = asyncio.Event()
    _setup_signal_handlers(stop_event)

    scheduler: DCAScheduler = components["scheduler"]
    if not scheduler.start():
        logger.error("dca_engine_not_started", balance_usd=components["wallet"].balance_usd)
        await _shutdown(components)
        return

    logger.info(
        "starting_headless",
        mode=settings.swap.mode,
        frequency_ms=scheduler.config.frequency_ms,
    )
    try:
        await stop_event.wait()
    finally:
        await _shutdown(components)
        logger.info("dca_engine_stopped")


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
