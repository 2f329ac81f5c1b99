"""Shared data models for the DCA engine.

All monetary values are Decimal internally and travel as decimal strings on
SwapOutcome, so that history entries can be shown without float artifacts.
"""

import time
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum


class FrequencyTier(str, Enum):
    """Named band of the speed control, each with its own interval range."""

    SECONDS = "seconds"
    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"


class SchedulerState(str, Enum):
    """DCA scheduler state machine."""

    PAUSED = "paused"
    ACTIVE = "active"


class ErrorKind(str, Enum):
    """Closed set of reasons a swap attempt can fail."""

    ALREADY_IN_PROGRESS = "already_in_progress"
    WALLET_UNAVAILABLE = "wallet_unavailable"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    AMOUNT_TOO_SMALL = "amount_too_small"
    VALIDATION_FAILED = "validation_failed"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    USER_REJECTED = "user_rejected"
    NETWORK_ERROR = "network_error"
    UNKNOWN = "unknown"


class SourceKind(str, Enum):
    """Whether an outcome reflects a real swap or the simulation path."""

    REAL = "real"
    SIMULATED = "simulated"


@dataclass(frozen=True)
class TokenRef:
    """A tradable asset. The address is the identity."""

    address: str
    symbol: str
    decimals: int
    name: str = ""

    def same_asset(self, other: "TokenRef") -> bool:
        """Address equality, ignoring checksum casing."""
        return self.address.lower() == other.address.lower()


@dataclass
class DCAConfig:
    """Mutable schedule configuration owned by a single DCAScheduler."""

    source_token: TokenRef
    target_token: TokenRef
    frequency_ms: int
    percentage: Decimal = Decimal("1")
    is_active: bool = False
    next_swap_in_ms: int = 0


@dataclass(frozen=True)
class SwapOutcome:
    """Immutable result of one swap attempt.

    price is set only on success; error_kind only on failure. A simulated
    fill that replaced a failed real swap carries the classified cause in
    fallback_cause.
    """

    success: bool
    amount_in_usd: str
    amount_out_estimate: str
    source_kind: SourceKind = SourceKind.REAL
    price: str | None = None
    error_kind: ErrorKind | None = None
    error: str | None = None
    tx_hash: str | None = None
    note: str | None = None
    fallback_cause: ErrorKind | None = None
    completed_at: float = field(default_factory=time.time)

    @property
    def is_simulated(self) -> bool:
        return self.source_kind == SourceKind.SIMULATED

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "amount_in_usd": self.amount_in_usd,
            "amount_out_estimate": self.amount_out_estimate,
            "source_kind": self.source_kind.value,
            "price": self.price,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "error": self.error,
            "tx_hash": self.tx_hash,
            "note": self.note,
            "fallback_cause": (
                self.fallback_cause.value if self.fallback_cause else None
            ),
            "completed_at": self.completed_at,
        }


@dataclass(frozen=True)
class SwapReceipt:
    """What a swap service returns for a submitted (or simulated) swap."""

    tx_hash: str
    amount_out: Decimal
    price: Decimal
    is_simulated: bool = False


@dataclass(frozen=True)
class Quote:
    """Display-only price quote for the next swap."""

    expected_output: str
    price: str
    slippage_description: str


@dataclass(frozen=True)
class SwapTransaction:
    """Router call handed to a TransactionSender for signing and submission.

    Amounts are integer base units of the respective token.
    """

    router: str
    function_name: str
    route_from: str
    route_to: str
    factory: str
    stable: bool
    amount_in: int
    min_amount_out: int
    recipient: str
    deadline: int
    value: int = 0
    gas: int = 300_000
