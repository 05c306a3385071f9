# backend/pawledger/core/config.py
import logging
import os
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# Pick up a local .env before Settings reads the environment
load_dotenv(override=False)


class Settings(BaseSettings):
    environment: Literal["local", "test", "staging", "production"] = Field(
        default="local", description="Deployment environment name"
    )
    database_url: str = Field(
        default="sqlite:///./pawledger.db",
        description="SQLAlchemy URL for the primary datastore",
    )
    database_echo: bool = Field(default=False, description="Echo SQL statements to the log")
    log_level: str = Field(default="INFO", description="Root log level")

    # Facility
    daily_capacity: int = Field(
        default=40, ge=1, description="Facility-wide dog capacity per calendar day"
    )

    # Loyalty points
    points_cap: int = Field(default=500, ge=0, description="Maximum points balance from accrual")
    cents_per_point: int = Field(default=10, ge=1, description="Redemption value of one point")
    wallet_points_multiplier: int = Field(
        default=2, ge=0, description="Points per whole dollar paid from the wallet"
    )
    grooming_points_multiplier: float = Field(
        default=1.5, ge=1.0, description="Bonus multiplier when a grooming booking is paid"
    )

    # Wallet loads
    wallet_min_load_cents: int = 500  # $5
    wallet_max_load_cents: int = 50_000  # $500
    wallet_daily_load_limit_cents: int = 100_000  # $1,000 per calendar day
    auto_reload_max_amount_cents: int = 20_000  # $200
    auto_reload_min_threshold_cents: int = 500  # $5

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        env_prefix="PAWLEDGER_",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = value.upper()
        if normalized not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {value}")
        return normalized

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


settings = Settings()
