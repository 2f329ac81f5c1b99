"""Tests for HistoryTracker."""

from decimal import Decimal

from dca_bot.history.tracker import HistoryTracker
from dca_bot.models import ErrorKind, SourceKind, SwapOutcome


def _ok(amount: str, source_kind: SourceKind = SourceKind.REAL) -> SwapOutcome:
    return SwapOutcome(
        success=True,
        amount_in_usd=amount,
        amount_out_estimate="0.001",
        source_kind=source_kind,
        price="2000.00",
    )


def _failed(amount: str = "0.00") -> SwapOutcome:
    return SwapOutcome(
        success=False,
        amount_in_usd=amount,
        amount_out_estimate="0",
        error_kind=ErrorKind.NETWORK_ERROR,
        error="Network error, please try again",
    )


class TestHistoryTracker:
    def test_newest_first_and_bounded(self) -> None:
        tracker = HistoryTracker(limit=10)
        outcomes = [_ok(f"{i}.00") for i in range(1, 13)]
        for outcome in outcomes:
            tracker.record(outcome)

        history = tracker.history
        assert len(history) == 10
        assert history[0] is outcomes[-1]
        assert history[-1] is outcomes[2]

    def test_total_counts_only_successes(self) -> None:
        tracker = HistoryTracker()
        tracker.record(_ok("5.00"))
        tracker.record(_failed("3.00"))
        tracker.record(_ok("2.00"))

        assert tracker.total_swapped_usd == Decimal("7.00")

    def test_total_survives_eviction(self) -> None:
        tracker = HistoryTracker(limit=2)
        for _ in range(5):
            tracker.record(_ok("1.00"))

        assert len(tracker.history) == 2
        assert tracker.total_swapped_usd == Decimal("5.00")

    def test_simulated_fills_tracked_separately(self) -> None:
        tracker = HistoryTracker()
        tracker.record(_ok("5.00"))
        tracker.record(_ok("4.00", SourceKind.SIMULATED))

        assert tracker.total_swapped_usd == Decimal("5.00")
        assert tracker.total_simulated_usd == Decimal("4.00")

    def test_summary(self) -> None:
        tracker = HistoryTracker()
        tracker.record(_ok("5"))
        tracker.record(_ok("1.5", SourceKind.SIMULATED))
        tracker.record(_failed())

        assert tracker.get_summary() == {
            "total_swapped_usd": "5.00",
            "total_simulated_usd": "1.50",
            "success_count": 2,
            "failure_count": 1,
            "history_size": 3,
        }

    def test_history_is_a_copy(self) -> None:
        tracker = HistoryTracker()
        tracker.record(_ok("1.00"))
        tracker.history.clear()
        assert len(tracker.history) == 1

    def test_unparseable_amount_counts_as_zero(self) -> None:
        tracker = HistoryTracker()
        tracker.record(_ok("n/a"))
        assert tracker.total_swapped_usd == Decimal("0")
        assert len(tracker.history) == 1
