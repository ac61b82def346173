"""
Application configuration.

Values come from ``HOTEL_``-prefixed environment variables or a ``.env``
file, validated by pydantic-settings.
"""
from decimal import Decimal
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    model_config = SettingsConfigDict(
        env_prefix="HOTEL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    APP_NAME: str = "Hotel Booking API"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = Field(default="text", pattern="^(text|json)$")

    # Security
    SECRET_KEY: str = "change-me-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Seeded administrator account
    ADMIN_USERNAME: str = "admin"
    ADMIN_PASSWORD: str = "admin123"
    ADMIN_EMAIL: str = "admin@example.com"

    # Notifications
    OPERATOR_EMAIL: Optional[str] = None

    # Booking policy
    CANCELLATION_WINDOW_HOURS: int = Field(default=24, ge=0)
    PRICE_TOLERANCE: Decimal = Decimal("0.01")
    REFERENCE_PREFIX: str = "BK"
    REFERENCE_RETRY_LIMIT: int = Field(default=1, ge=0)
    BOOKING_REQUIRES_REVIEW: bool = False

    # Reporting
    OCCUPANCY_LOOKBACK_DAYS: int = Field(default=30, ge=1)
    AUDIT_LOG_LIMIT: int = 100

    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
