# surplus/config.py
from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings.

    Priority:
      1) environment variables
      2) .env in the working directory
      3) defaults below
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite:///./app.db"

    # Admin / dev
    admin_token: Optional[str] = None
    dev_mode: bool = False

    # CORS
    frontend_url: Optional[str] = None

    # Reservation policy
    allow_customer_cancel_confirmed: bool = True
    low_stock_threshold: int = 2

    # Notifications
    notify_webhook_url: Optional[str] = None
    notify_dry_run: bool = False
    notify_timeout_seconds: float = 5.0
    notify_max_attempts: int = 3

    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()
