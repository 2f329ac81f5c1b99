"""USD token prices from the CoinGecko simple price API.

Fresh prices are served from PriceCache. When CoinGecko is unreachable or
returns garbage, static reference prices keep the quote and simulation
paths usable.
"""

from decimal import Decimal

import httpx

from dca_bot.config import PriceSettings
from dca_bot.exceptions import PriceUnavailableError
from dca_bot.logging import get_logger
from dca_bot.market_data.price_cache import PriceCache

logger = get_logger(__name__)

COINGECKO_IDS: dict[str, str] = {
    "ETH": "ethereum",
    "USDC": "usd-coin",
    "DAI": "dai",
    "USDbC": "usd-coin",
}

REFERENCE_PRICES: dict[str, Decimal] = {
    "ETH": Decimal("2500"),
    "USDC": Decimal("1"),
    "DAI": Decimal("1"),
    "USDbC": Decimal("1"),
}


class CoinGeckoPriceFeed:
    """Async USD price lookup with caching and reference-price fallback.

    Args:
        settings: API base, key, timeout, and cache staleness.
        cache: Shared price cache.
        client: Optional pre-built httpx client (tests inject a MockTransport).
    """

    def __init__(
        self,
        settings: PriceSettings,
        cache: PriceCache | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings
        self._cache = cache if cache is not None else PriceCache()
        self._client = client
        self._owns_client = client is None

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        api_key = self._settings.api_key.get_secret_value()
        if api_key:
            headers["x-cg-demo-api-key"] = api_key
        return headers

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._settings.api_base,
                timeout=self._settings.timeout_seconds,
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client if this feed created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def get_price(self, symbol: str) -> Decimal:
        """Return the USD price of a token.

        Order of preference: fresh cache entry, CoinGecko, reference price.

        Raises:
            PriceUnavailableError: If every source came up empty.
        """
        cached = await self._cache.get_fresh(symbol, self._settings.max_age_seconds)
        if cached is not None:
            return cached

        try:
            price = await self._fetch_price(symbol)
        except (httpx.HTTPError, PriceUnavailableError) as e:
            fallback = REFERENCE_PRICES.get(symbol)
            logger.warning(
                "price_fetch_failed",
                symbol=symbol,
                error=str(e),
                fallback=str(fallback) if fallback is not None else None,
            )
            if fallback is None:
                raise PriceUnavailableError(
                    f"No price available for {symbol}"
                ) from e
            return fallback

        await self._cache.update_price(symbol, price)
        return price

    async def _fetch_price(self, symbol: str) -> Decimal:
        coin_id = COINGECKO_IDS.get(symbol, symbol.lower())
        client = await self._get_client()
        response = await client.get(
            "/simple/price",
            params={"ids": coin_id, "vs_currencies": "usd"},
            headers=self._headers(),
        )
        response.raise_for_status()
        data = response.json()

        raw = data.get(coin_id, {}).get("usd") if isinstance(data, dict) else None
        if not isinstance(raw, (int, float)) or isinstance(raw, bool) or raw <= 0:
            raise PriceUnavailableError(f"Invalid price data for {symbol}: {raw!r}")

        price = Decimal(str(raw))
        logger.debug("price_fetched", symbol=symbol, coin_id=coin_id, price=str(price))
        return price
