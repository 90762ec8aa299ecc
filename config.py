"""Application configuration loader."""

from __future__ import annotations

import importlib
import logging
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)
load_dotenv()


class Settings(BaseSettings):
    """Configuration loaded from environment variables."""

    DB_CONN_STRING: str
    ERROR_TRACKING_DSN: str | None = None
    ENABLE_RATE_LIMITING: bool = True

    DEFAULT_TIMEZONE: str = "UTC"
    ELEVATED_PROFILES: str = "admin,superadmin"
    TICKETS_PAGE_SIZE: int = 40

    @field_validator("DB_CONN_STRING")
    @classmethod
    def validate_db_conn_string(cls, value: str) -> str:
        if not value:
            raise ValueError("DB_CONN_STRING must not be empty")
        if value.startswith("mssql+pyodbc"):
            raise ValueError("Synchronous driver 'mssql+pyodbc' is not supported")
        return value

    @field_validator("DEFAULT_TIMEZONE")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Reject zone names the tz database does not know."""
        if v.upper() in {"UTC", "GMT"}:
            return v
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone {v!r}")
        return v

    @field_validator("TICKETS_PAGE_SIZE")
    @classmethod
    def validate_page_size(cls, value: int) -> int:
        if value < 1:
            raise ValueError("TICKETS_PAGE_SIZE must be positive")
        return value

    @property
    def elevated_profiles(self) -> frozenset[str]:
        return frozenset(
            p.strip().lower() for p in self.ELEVATED_PROFILES.split(",") if p.strip()
        )

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )


try:
    settings = Settings()
except ValidationError as exc:  # pragma: no cover - fail fast on invalid config
    logger.error("Invalid configuration: %s", exc)
    raise

try:
    env_module = importlib.import_module("config_env")
except ModuleNotFoundError:
    logger.debug("config_env.py not found; using environment variables only")
else:
    overrides = {k: v for k, v in vars(env_module).items() if k.isupper()}
    if overrides:
        settings = Settings(**{**settings.model_dump(), **overrides})

DB_CONN_STRING = settings.DB_CONN_STRING
ERROR_TRACKING_DSN = settings.ERROR_TRACKING_DSN
ENABLE_RATE_LIMITING = settings.ENABLE_RATE_LIMITING
DEFAULT_TIMEZONE = settings.DEFAULT_TIMEZONE
ELEVATED_PROFILES = settings.elevated_profiles
TICKETS_PAGE_SIZE = settings.TICKETS_PAGE_SIZE

__all__ = [
    "Settings",
    "settings",
    "DB_CONN_STRING",
    "ERROR_TRACKING_DSN",
    "ENABLE_RATE_LIMITING",
    "DEFAULT_TIMEZONE",
    "ELEVATED_PROFILES",
    "TICKETS_PAGE_SIZE",
]
