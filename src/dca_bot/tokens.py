"""Base mainnet token catalog and the default DCA pair (USDC -> ETH)."""

from dca_bot.exceptions import UnsupportedTokenError
from dca_bot.models import TokenRef

USDC = TokenRef(
    address="0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",
    symbol="USDC",
    decimals=6,
    name="USD Coin",
)
# Wrapped ETH; native ETH swaps are routed through the WETH pool
ETH = TokenRef(
    address="0x4200000000000000000000000000000000000006",
    symbol="ETH",
    decimals=18,
    name="Ethereum",
)
DAI = TokenRef(
    address="0x50c5725949A6F0c72E6C4a641F24049A917DB0Cb",
    symbol="DAI",
    decimals=18,
    name="Dai Stablecoin",
)
USDBC = TokenRef(
    address="0xd9aAEc86B65D86f6A7B5B1b0c42FFA531710b6CA",
    symbol="USDbC",
    decimals=6,
    name="USD Base Coin",
)

BASE_TOKENS: tuple[TokenRef, ...] = (USDC, ETH, DAI, USDBC)

DEFAULT_SOURCE_TOKEN = USDC
DEFAULT_TARGET_TOKEN = ETH

_BY_SYMBOL = {token.symbol.upper(): token for token in BASE_TOKENS}


def get_token(symbol: str) -> TokenRef:
    """Look up a catalog token by symbol (case-insensitive).

    Raises:
        UnsupportedTokenError: If the symbol is not in the catalog.
    """
    token = _BY_SYMBOL.get(symbol.upper())
    if token is None:
        raise UnsupportedTokenError(f"Unsupported token: {symbol}")
    return token
