from pydantic_settings import BaseSettings
from pydantic import Field

from services.feed.models import FeedMode


class Settings(BaseSettings):
    feed_mode: FeedMode = Field(default=FeedMode.LIVE)
    price_provider: str = Field(default="coinmarketcap")

    coinmarketcap_api_key: str = Field(default="")
    coinmarketcap_base_url: str = Field(default="https://pro-api.coinmarketcap.com")
    coingecko_api_key: str = Field(default="")
    coingecko_base_url: str = Field(default="https://api.coingecko.com/api/v3")
    upstream_timeout_seconds: float = Field(default=5.0)

    fallback_base_price: float = Field(default=200.0)
    fallback_points: int = Field(default=24)

    payment_recipient_wallet: str = Field(default="")
    oracle_public_key: str = Field(default="")
    solana_network: str = Field(default="devnet")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = ""
        case_sensitive = False
        extra="ignore"
