from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ==============================
    # Application
    # ==============================
    APP_NAME: str = "Stock Ledger"
    ENVIRONMENT: str = "local"

    # ==============================
    # Database
    # ==============================
    DATABASE_URL: str = "sqlite:///./stockledger.db"

    # ==============================
    # Logging
    # ==============================
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # ==============================
    # Security
    # ==============================
    JWT_SECRET: Optional[str] = None
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: Optional[str] = None
    JWT_ISSUER: Optional[str] = None
    JWT_EXPIRE_MINUTES: int = 12 * 60
    PBKDF2_ROUNDS: int = 200_000

    # ==============================
    # Bootstrap admin account
    # ==============================
    BOOTSTRAP_ADMIN_EMAIL: Optional[str] = None
    BOOTSTRAP_ADMIN_PASSWORD: Optional[str] = None
    BOOTSTRAP_ADMIN_NAME: str = "Admin User"

    # ==============================
    # Inventory rules
    # ==============================
    LOW_STOCK_THRESHOLD: int = 2
    ENFORCE_UNIQUE_PRODUCT_ID: bool = True

    # ==============================
    # Cleanup sweep
    # ==============================
    CLEANUP_ENABLED: bool = True
    CLEANUP_INTERVAL_SECONDS: int = 24 * 60 * 60
    SOLD_RETENTION_DAYS: int = 30
    SCHEDULER_POLL_SECONDS: int = 30


@lru_cache
def get_settings() -> Settings:
    """Cached settings loader (once per process)."""
    return Settings()


__all__ = ["Settings", "get_settings"]
