"""Bounded swap history with running totals.

Real successful swaps add to total_swapped_usd. Simulated fills are
kept apart in total_simulated_usd, so the headline total only counts
funds that actually moved.
"""

from collections import deque
from decimal import Decimal, InvalidOperation

from dca_bot.logging import get_logger
from dca_bot.models import SourceKind, SwapOutcome

logger = get_logger(__name__)

DEFAULT_HISTORY_LIMIT = 10


class HistoryTracker:
    """Newest-first history of swap outcomes plus aggregate stats.

    Args:
        limit: Number of most recent outcomes kept; older ones are evicted.
    """

    def __init__(self, limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        self._history: deque[SwapOutcome] = deque(maxlen=limit)
        self._total_swapped_usd = Decimal("0")
        self._total_simulated_usd = Decimal("0")
        self._success_count = 0
        self._failure_count = 0

    def record(self, outcome: SwapOutcome) -> None:
        """Prepend an outcome and update totals."""
        self._history.appendleft(outcome)

        if not outcome.success:
            self._failure_count += 1
            logger.info(
                "swap_recorded",
                success=False,
                error_kind=outcome.error_kind.value if outcome.error_kind else None,
                error=outcome.error,
            )
            return

        self._success_count += 1
        amount = _parse_amount(outcome.amount_in_usd)
        if outcome.source_kind == SourceKind.SIMULATED:
            self._total_simulated_usd += amount
        else:
            self._total_swapped_usd += amount

        logger.info(
            "swap_recorded",
            success=True,
            amount_in_usd=outcome.amount_in_usd,
            source_kind=outcome.source_kind.value,
            total_swapped_usd=str(self._total_swapped_usd),
        )

    @property
    def history(self) -> list[SwapOutcome]:
        """Outcomes, newest first."""
        return list(self._history)

    @property
    def total_swapped_usd(self) -> Decimal:
        return self._total_swapped_usd

    @property
    def total_simulated_usd(self) -> Decimal:
        return self._total_simulated_usd

    def get_summary(self) -> dict:
        """Aggregate stats for the read model."""
        return {
            "total_swapped_usd": str(self._total_swapped_usd.quantize(Decimal("0.01"))),
            "total_simulated_usd": str(
                self._total_simulated_usd.quantize(Decimal("0.01"))
            ),
            "success_count": self._success_count,
            "failure_count": self._failure_count,
            "history_size": len(self._history),
        }


def _parse_amount(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation:
        logger.warning("unparseable_outcome_amount", amount_in_usd=value)
        return Decimal("0")
