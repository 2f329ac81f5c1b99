"""Configuration system using pydantic-settings with environment variable loading."""

from decimal import Decimal
from typing import Literal

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from dca_bot.models import FrequencyTier


class DCASettings(BaseSettings):
    """Swap sizing and scheduling parameters."""

    model_config = SettingsConfigDict(env_prefix="DCA_")

    percentage: Decimal = Decimal("1")  # % of balance per swap
    min_swap_usd: Decimal = Decimal("0.01")
    max_swap_usd: Decimal = Decimal("10000")
    default_tier: FrequencyTier = FrequencyTier.HOURS
    default_control_value: int = 50  # 0-100, midpoint of the tier
    countdown_tick_ms: int = 100
    history_limit: int = 10
    balance_refresh_delay: float = 2.0  # seconds after a successful swap
    shutdown_timeout_seconds: float = 30.0  # wait for in-flight attempts on close
    source_symbol: str = "USDC"
    target_symbol: str = "ETH"


class SwapSettings(BaseSettings):
    """Primary swap path selection and router parameters."""

    model_config = SettingsConfigDict(env_prefix="SWAP_")

    mode: Literal["paper", "live"] = "paper"
    slippage_tolerance: Decimal = Decimal("0.01")  # 1% output floor
    deadline_seconds: int = 1200


class PriceSettings(BaseSettings):
    """CoinGecko price feed settings."""

    model_config = SettingsConfigDict(env_prefix="PRICE_")

    api_base: str = "https://api.coingecko.com/api/v3"
    api_key: SecretStr = SecretStr("")
    timeout_seconds: float = 10.0
    max_age_seconds: float = 60.0


class SimulationSettings(BaseSettings):
    """Degraded simulation path parameters.

    Applies to the fallback after a failed real swap and to paper mode.
    """

    model_config = SettingsConfigDict(env_prefix="SIMULATION_")

    min_slippage: Decimal = Decimal("0.001")  # 0.1%
    max_slippage: Decimal = Decimal("0.003")  # 0.3%
    min_delay_seconds: float = 1.5
    max_delay_seconds: float = 3.5
    failure_rate: float = 0.05


class WalletSettings(BaseSettings):
    """Paper wallet used when no real wallet collaborator is wired in."""

    model_config = SettingsConfigDict(env_prefix="WALLET_")

    address: str | None = "0x000000000000000000000000000000000000dCA0"
    initial_balance_usd: Decimal = Decimal("100")


class ApiSettings(BaseSettings):
    """Control API server configuration."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "127.0.0.1"
    port: int = 8080
    enabled: bool = True


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    log_format: str = "console"  # "json" or "console"
    dca: DCASettings = DCASettings()
    swap: SwapSettings = SwapSettings()
    price: PriceSettings = PriceSettings()
    simulation: SimulationSettings = SimulationSettings()
    wallet: WalletSettings = WalletSettings()
    api: ApiSettings = ApiSettings()
