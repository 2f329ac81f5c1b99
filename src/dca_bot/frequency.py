"""Maps the 0-100 speed control within a tier to a swap interval.

The mapping is linear and inverted: a higher control value means faster
swaps, so 100 lands on the tier minimum and 0 on the tier maximum.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from dca_bot.models import FrequencyTier

# Used when a tier name is not in the table
FALLBACK_FREQUENCY_MS = 3_600_000

# Control value applied whenever the tier changes
TIER_RESET_VALUE = 50


@dataclass(frozen=True)
class TierRange:
    """Inclusive interval range for one tier, in seconds."""

    tier: FrequencyTier
    min_seconds: int
    max_seconds: int
    label: str


TIERS: dict[FrequencyTier, TierRange] = {
    FrequencyTier.SECONDS: TierRange(FrequencyTier.SECONDS, 1, 60, "Seconds"),
    FrequencyTier.MINUTES: TierRange(FrequencyTier.MINUTES, 60, 3600, "Minutes"),
    FrequencyTier.HOURS: TierRange(FrequencyTier.HOURS, 3600, 86400, "Hours"),
    FrequencyTier.DAYS: TierRange(FrequencyTier.DAYS, 86400, 2_592_000, "Days"),
}


def get_tier_range(tier: FrequencyTier | str) -> TierRange | None:
    """Return the range for a tier, or None if the tier is unknown."""
    try:
        return TIERS.get(FrequencyTier(tier))
    except ValueError:
        return None


def map_to_frequency(control_value: float, tier: FrequencyTier | str) -> int:
    """Convert a control value within a tier to an interval in milliseconds.

    seconds = min + (max - min) * (1 - value / 100), rounded half-up to the
    nearest millisecond, so the seconds-tier midpoint is 30500 ms.

    Args:
        control_value: Speed control in [0, 100]; clamped if outside.
        tier: Tier enum member or its string value.

    Returns:
        Interval in milliseconds, or FALLBACK_FREQUENCY_MS for unknown tiers.
    """
    tier_range = get_tier_range(tier)
    if tier_range is None:
        return FALLBACK_FREQUENCY_MS

    value = min(max(Decimal(str(control_value)), Decimal("0")), Decimal("100"))
    normalized = value / Decimal("100")
    span = tier_range.max_seconds - tier_range.min_seconds
    seconds = tier_range.min_seconds + span * (1 - normalized)
    millis = (seconds * 1000).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(millis)


def format_frequency(seconds: float) -> str:
    """Render an interval as a short label: 45s, 5m, 3h, 2d."""
    if seconds < 60:
        return f"{round(seconds)}s"
    if seconds < 3600:
        return f"{round(seconds / 60)}m"
    if seconds < 86400:
        return f"{round(seconds / 3600)}h"
    return f"{round(seconds / 86400)}d"


def format_countdown(ms: int) -> str:
    """Render the time left until the next swap."""
    if ms < 1000:
        return f"{ms}ms"
    seconds = ms // 1000
    if seconds < 60:
        return f"{seconds}s"
    minutes = seconds // 60
    if minutes < 60:
        return f"{minutes}m {seconds % 60}s"
    hours = minutes // 60
    return f"{hours}h {minutes % 60}m"
