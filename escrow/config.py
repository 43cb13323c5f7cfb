"""
Configuration for the deal escrow service.

Values are read from environment variables (optionally from `.env`) with the
``ESCROW_`` prefix:

    ESCROW_PLATFORM_FEE_RATE    (decimal, default 0.10) - share kept by the platform
    ESCROW_CURRENCY             (str, default "RUB")    - single ledger currency
    ESCROW_INVOICE_PREFIX       (str, default "INV")    - invoice number prefix
    ESCROW_PLATFORM_ACTOR_ID    (uuid)                  - administrator allowed to resolve disputes
    ESCROW_LOG_LEVEL            (str, default "INFO")
    ESCROW_CORS_ALLOW_ORIGINS   (json list, default ["*"])
    ESCROW_SEED_DEMO_DATA       (bool, default True)    - seed demo users and a deal on startup
"""

from decimal import Decimal
from functools import lru_cache
from uuid import UUID

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="ESCROW_",
        env_file=".env",
        extra="ignore",
    )

    platform_fee_rate: Decimal = Field(default=Decimal("0.10"))
    currency: str = "RUB"
    invoice_prefix: str = "INV"
    platform_actor_id: UUID = UUID("00000000-0000-0000-0000-00000000a0a0")
    log_level: str = "INFO"
    cors_allow_origins: list[str] = Field(default_factory=lambda: ["*"])
    seed_demo_data: bool = True

    @field_validator("platform_fee_rate")
    @classmethod
    def _check_fee_rate(cls, value: Decimal) -> Decimal:
        if value < 0 or value >= 1:
            raise ValueError("platform_fee_rate must be in [0, 1)")
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.strip().upper()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
