"""Display quotes for the next DCA swap."""

from decimal import ROUND_HALF_UP, Decimal

from dca_bot.market_data.price_feed import CoinGeckoPriceFeed
from dca_bot.models import Quote, TokenRef

SLIPPAGE_DESCRIPTION = "1% (Aerodrome DEX)"

_SIX_DP = Decimal("0.000001")
_TWO_DP = Decimal("0.01")


class QuoteService:
    """Estimates output for a USD-denominated swap from target token price."""

    def __init__(self, price_feed: CoinGeckoPriceFeed) -> None:
        self._price_feed = price_feed

    async def quote(
        self, source: TokenRef, target: TokenRef, amount_usd: Decimal
    ) -> Quote:
        """Quote a swap of amount_usd worth of source into target.

        Raises:
            PriceUnavailableError: Propagated from the price feed.
        """
        price = await self._price_feed.get_price(target.symbol)
        expected = (amount_usd / price).quantize(_SIX_DP, rounding=ROUND_HALF_UP)
        return Quote(
            expected_output=str(expected),
            price=str(price.quantize(_TWO_DP, rounding=ROUND_HALF_UP)),
            slippage_description=SLIPPAGE_DESCRIPTION,
        )
