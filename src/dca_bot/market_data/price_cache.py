"""In-memory USD price cache shared by the price feed and its consumers."""

import asyncio
import time
from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class CachedPrice:
    """One USD price and when it was fetched (epoch seconds)."""

    price: Decimal
    fetched_at: float

    def age(self, now: float | None = None) -> float:
        return (now if now is not None else time.time()) - self.fetched_at


class PriceCache:
    """Latest USD price per token symbol.

    Symbols are matched case-insensitively. An asyncio.Lock keeps a
    scheduled attempt and a quote request from reading a half-written
    entry.
    """

    def __init__(self) -> None:
        self._entries: dict[str, CachedPrice] = {}
        self._lock = asyncio.Lock()

    async def update_price(
        self, symbol: str, price: Decimal, timestamp: float | None = None
    ) -> None:
        fetched_at = timestamp if timestamp is not None else time.time()
        async with self._lock:
            self._entries[symbol.upper()] = CachedPrice(price, fetched_at)

    async def get_entry(self, symbol: str) -> CachedPrice | None:
        async with self._lock:
            return self._entries.get(symbol.upper())

    async def get_price(self, symbol: str) -> Decimal | None:
        """Cached price regardless of age, or None."""
        entry = await self.get_entry(symbol)
        return entry.price if entry else None

    async def get_fresh(self, symbol: str, max_age_seconds: float) -> Decimal | None:
        """Cached price if it is at most max_age_seconds old, else None."""
        entry = await self.get_entry(symbol)
        if entry is None or entry.age() > max_age_seconds:
            return None
        return entry.price

    async def is_stale(self, symbol: str, max_age_seconds: float = 60.0) -> bool:
        return await self.get_fresh(symbol, max_age_seconds) is None
