"""Application configuration."""
import json

import pytz
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


SERVICE_ACCOUNT_FIELDS = ("client_email", "private_key", "token_uri")


class Settings(BaseSettings):
    """Application settings."""

    # Spreadsheet store (required)
    SHEET_ID: str
    GOOGLE_SERVICE_ACCOUNT: str  # service account key as a JSON string
    SIGNUPS_GID: int
    SLOTS_GID: int

    SHEETS_API_BASE_URL: str = "https://sheets.googleapis.com/v4/spreadsheets"
    STORE_TIMEOUT_SECONDS: float = Field(default=30.0, gt=0)
    STORE_MAX_RETRIES: int = Field(default=3, ge=1)

    TIMEZONE: str = "America/New_York"
    LOG_LEVEL: str = "INFO"

    # Booking limits
    MAX_SLOTS_PER_BOOKING: int = Field(default=10, gt=0)
    MAX_NAME_LENGTH: int = Field(default=100, gt=0)
    MAX_EMAIL_LENGTH: int = Field(default=254, gt=0, le=254)
    MAX_PHONE_LENGTH: int = Field(default=20, gt=0)
    MAX_NOTES_LENGTH: int = Field(default=500, gt=0)
    MAX_CATEGORY_LENGTH: int = Field(default=50, gt=0)

    # Rate limiting / throttling / caching (milliseconds)
    RATE_LIMIT_WINDOW_MS: int = Field(default=60_000, gt=0)
    RATE_LIMIT_MAX_REQUESTS: int = Field(default=50, gt=0)
    CACHE_TTL_MS: int = Field(default=30_000, gt=0)
    MAX_CONCURRENT_BOOKINGS: int = Field(default=3, gt=0)
    SWEEP_INTERVAL_MS: int = Field(default=300_000, gt=0)

    class Config:
        env_file = ".env"
        case_sensitive = True

    @field_validator("SHEET_ID", "GOOGLE_SERVICE_ACCOUNT", mode="after")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("GOOGLE_SERVICE_ACCOUNT", mode="after")
    @classmethod
    def service_account_key(cls, v: str) -> str:
        try:
            info = json.loads(v)
        except json.JSONDecodeError as e:
            raise ValueError(f"not valid JSON: {e}") from e
        if not isinstance(info, dict):
            raise ValueError("must be a JSON object")
        missing = [k for k in SERVICE_ACCOUNT_FIELDS if not info.get(k)]
        if missing:
            raise ValueError(f"missing fields: {', '.join(missing)}")
        return v

    @field_validator("TIMEZONE", mode="after")
    @classmethod
    def known_timezone(cls, v: str) -> str:
        if v not in pytz.all_timezones_set:
            raise ValueError(f"unknown timezone: {v}")
        return v


settings = Settings()
