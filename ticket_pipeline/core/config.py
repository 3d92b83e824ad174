"""Environment-driven settings passed explicitly into every pipeline stage."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from ticket_pipeline.core.errors import ConfigurationError

_DEFAULT_ENV_FILE = ".env"


class Settings(BaseSettings):
    """Application settings loaded from environment variables or a local .env file."""

    APP_NAME: str = "NFT Ticket Purchase"
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"
    VERSION: str = "0.1.0"
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    HTTP_TIMEOUT_S: float = 10.0

    WISE_API_KEY: str = ""
    WISE_API_URL: str = "https://api.transferwise.com"
    BINANCE_API_KEY: str = ""
    BINANCE_API_SECRET: str = ""
    BINANCE_API_URL: str = "https://api.binance.com"
    NFT_MARKETPLACE_API_KEY: str = ""
    NFT_MARKETPLACE_API_URL: str = "https://api.nftmarketplace.com"

    SOURCE_CURRENCY: str = "IDR"
    TARGET_CURRENCY: str = "USD"
    CRYPTO_ASSET: str = "BTC"
    TICKET_NFT_ID: str = "TICKET_NFT_ID"
    TICKET_AMOUNT_FROM_ORDER_QUANTITY: bool = False

    model_config = SettingsConfigDict(
        env_file=_DEFAULT_ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def source_currency(self) -> str:
        """Return the normalized currency code of inbound amounts."""

        return self.SOURCE_CURRENCY.strip().upper()

    def target_currency(self) -> str:
        """Return the normalized fiat currency used to size crypto orders."""

        return self.TARGET_CURRENCY.strip().upper()

    def crypto_asset(self) -> str:
        """Return the normalized symbol of the crypto asset to buy."""

        return self.CRYPTO_ASSET.strip().upper()

    def http_timeout_s(self) -> float:
        """Return the per-call timeout, never below 100ms."""

        return max(0.1, self.HTTP_TIMEOUT_S)


def load_settings(env_file: str | Path = _DEFAULT_ENV_FILE) -> Settings:
    """Build settings from a required env file plus the process environment."""

    path = Path(env_file)
    if not path.is_file():
        raise ConfigurationError(f"env file not found: {path}")
    return Settings(_env_file=path)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings to avoid repeated environment parsing."""

    return Settings()
