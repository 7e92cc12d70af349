# backend/chefhome/core/config.py
import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.debug(f"[CONFIG] Looking for .env at: {env_path}")
    load_dotenv(env_path)


_DEFAULT_SECRET_KEY = SecretStr("chefhome-development-secret-key-change-me")


class Settings(BaseSettings):
    environment: str = Field(default="development", description="Deployment environment name")

    # Store
    database_url: str = Field(
        default="sqlite:///./chefhome.db",
        description="SQLAlchemy URL of the shared reservation store",
    )
    database_echo: bool = False

    # Auth collaborator (bearer JWT)
    secret_key: SecretStr = Field(
        default=_DEFAULT_SECRET_KEY,
        description="Secret key used to verify access tokens",
    )
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 720  # 12 hours

    # Locks and retries
    redis_url: str = Field(
        default="",
        description="Redis URL for cross-process reservation locks; empty keeps locks process-local",
    )
    lock_namespace: str = "chefhome"
    reservation_retry_attempts: int = Field(default=3, ge=1)
    reservation_retry_backoff_seconds: float = Field(default=0.05, ge=0)
    reservation_lock_ttl_seconds: int = Field(default=30, ge=1)
    reservation_lock_wait_seconds: float = Field(default=2.0, gt=0)

    # Payments
    stripe_secret_key: Optional[SecretStr] = None
    payment_retry_attempts: int = Field(default=3, ge=1)
    payment_retry_backoff_seconds: float = Field(default=0.2, ge=0)
    currency: str = "eur"
    service_fee_rate: float = Field(default=0.10, ge=0, le=1)
    deposit_rate: float = Field(default=0.20, ge=0, le=1)
    refund_policy: str = Field(
        default="full", description="Cancellation refund policy: 'full' or 'notice_period'"
    )

    # Availability defaults for chefs that have not configured their own limits
    marketplace_timezone: str = "Europe/Paris"
    default_lead_time_days: int = Field(default=1, ge=0)
    default_advance_booking_limit_days: int = Field(default=180, ge=0)
    default_max_guests: int = Field(default=12, ge=1)

    # Background jobs
    celery_broker_url: Optional[str] = None
    start_due_bookings_interval_minutes: int = 15

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,  # allows DATABASE_URL to match database_url
        extra="ignore",
    )

    @field_validator("currency")
    @classmethod
    def _normalize_currency(cls, value: str) -> str:
        return value.strip().lower()

    @property
    def is_production(self) -> bool:
        return self.environment.lower() in {"prod", "production"}


settings = Settings()
