# backend/app/core/config.py
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


class Settings(BaseSettings):
    """Runtime configuration for the session credit ledger service."""

    # Core
    environment: str = Field(default="development", description="deployment environment")
    site_mode: str = Field(default="local", description="local | preview | prod")
    is_testing: bool = Field(default=False)
    cors_allowed_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])

    # Database
    database_url: str = Field(
        default="sqlite:///./session_ledger.db",
        description="SQLAlchemy database URL (PostgreSQL in production)",
    )
    database_pool_size: int = Field(default=5, ge=1)
    database_max_overflow: int = Field(default=5, ge=0)

    # Auth
    secret_key: SecretStr = Field(
        default=SecretStr("ci-test-secret-key-not-for-production"),
        description="Secret used to sign bearer tokens",
    )
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24
    admin_role_claim: str = "admin"

    # Payment provider webhook
    payment_webhook_secret: SecretStr | None = Field(
        default=None,
        description="Shared secret sent by the payment provider in X-Webhook-Secret",
    )

    # Video rooms (100ms)
    hundredms_enabled: bool = Field(default=False)
    hundredms_access_key: str | None = None
    hundredms_app_secret: SecretStr | None = None
    hundredms_base_url: str = "https://api.100ms.live/v2"
    hundredms_template_id: str | None = Field(
        default=None, description="Room template for 1:1 sessions"
    )
    hundredms_group_template_id: str | None = Field(
        default=None, description="Room template for group sessions"
    )

    # Notifications
    notifications_enabled: bool = Field(default=False)
    notifications_base_url: str = "http://localhost:54321/functions/v1"
    notifications_api_key: SecretStr | None = None

    # Outbound calls never block ledger mutations for longer than this
    outbound_timeout_seconds: float = Field(default=5.0, gt=0)

    # Ledger
    credit_expiry_days: Optional[int] = Field(
        default=None,
        description="Days until purchased credits expire; unset means credits never expire",
    )
    min_session_minutes: int = 15
    max_session_minutes: int = 240

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("credit_expiry_days")
    @classmethod
    def _validate_expiry_days(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value <= 0:
            raise ValueError("credit_expiry_days must be positive when set")
        return value

    @field_validator("database_url")
    @classmethod
    def _normalize_database_url(cls, value: str) -> str:
        # Heroku/Supabase style URLs still use the legacy scheme
        if value.startswith("postgres://"):
            return "postgresql://" + value[len("postgres://") :]
        return value

    def get_database_url(self) -> str:
        return self.database_url

    @property
    def is_production(self) -> bool:
        return self.site_mode.lower().strip() in {"prod", "production", "live"}


settings = Settings()
