"""Settings fixture isolated from the host environment."""

import pytest

from ticket_pipeline.core.config import Settings


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the process environment and any local .env file."""

    return Settings(
        _env_file=None,
        WISE_API_KEY="wise-key",
        WISE_API_URL="https://wise.test",
        BINANCE_API_KEY="binance-key",
        BINANCE_API_SECRET="",
        BINANCE_API_URL="https://binance.test",
        NFT_MARKETPLACE_API_KEY="nft-key",
        NFT_MARKETPLACE_API_URL="https://nft.test",
        SOURCE_CURRENCY="IDR",
        TARGET_CURRENCY="USD",
        CRYPTO_ASSET="BTC",
        TICKET_NFT_ID="TICKET_NFT_ID",
        TICKET_AMOUNT_FROM_ORDER_QUANTITY=False,
        HTTP_TIMEOUT_S=5.0,
    )
