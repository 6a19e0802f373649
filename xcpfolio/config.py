from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Server Settings
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, description="Server port")
    log_level: str = Field(default="INFO", description="Logging level")
    environment: str = Field(
        default="production",
        description="Deployment environment; 'development' enables mock order data",
    )

    # External APIs
    counterparty_api_base: str = Field(
        default="https://api.counterparty.io:4000",
        description="Base URL for the Counterparty v2 API",
    )
    mempool_api_base: str = Field(
        default="https://mempool.space/api",
        description="Base URL for the mempool.space API",
    )
    bot_api_url: str = Field(
        default="http://localhost:3001",
        description="Base URL for the settlement bot order API",
    )
    request_timeout_seconds: int = Field(default=30, description="Request timeout")

    # Fee Settings
    fee_cache_ttl_seconds: int = Field(default=30, ge=1, description="Fee rate cache TTL in seconds")
    default_fee_rate: float = Field(
        default=10.0,
        ge=1,
        description="sat/vB used by the composer when no fee advisor is wired",
    )

    # Order Settings
    default_order_expiration: int = Field(
        default=8064,
        ge=1,
        description="Default order expiration in blocks (~8 weeks)",
    )
    order_poll_interval_seconds: float = Field(
        default=10.0,
        gt=0,
        description="How often the status poller refreshes settlement orders",
    )
    orders_default_limit: int = Field(default=50, ge=1, le=1000, description="Default order list size")

    # Wallet Settings
    wallet_provider_name: str = Field(
        default="xcpwallet",
        description="Well-known name under which the wallet provider is injected",
    )
    wallet_connect_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout for wallet connection requests",
    )
    wallet_sign_timeout_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        description="Optional timeout for sign/broadcast requests; unbounded when unset",
    )

    @property
    def is_development(self) -> bool:
        return self.environment.lower() in {"development", "dev"}


# Global settings instance
settings = Settings()
