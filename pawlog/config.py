"""
PawLog — Centralized configuration.

Loads all settings from .env and validates required keys.
Only the bot and main.py read these; core modules get their values injected.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (one level up from pawlog/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Telegram
    TELEGRAM_BOT_TOKEN: str

    # Supabase backend (PostgREST)
    SUPABASE_URL: str
    SUPABASE_KEY: str
    REQUEST_TIMEOUT_SECONDS: float = 10.0

    # Security
    ALLOWED_USER_IDS: list[int] = []

    # Schedule
    TIMEZONE: str = "America/New_York"
    OVERDUE_THRESHOLD_MINUTES: int = 60
    OVERDUE_CHECK_SECONDS: int = 60

    # Raise on malformed slot times instead of skipping them (development)
    STRICT_CLOCK: bool = False

    @field_validator("ALLOWED_USER_IDS", mode="before")
    @classmethod
    def parse_user_ids(cls, v: str | list[int]) -> list[int]:
        if isinstance(v, list):
            return v
        if isinstance(v, str) and v.strip():
            return [int(uid.strip()) for uid in v.split(",") if uid.strip()]
        return []

    @field_validator("STRICT_CLOCK", mode="before")
    @classmethod
    def parse_flag(cls, v: str | bool) -> bool:
        if isinstance(v, bool):
            return v
        return str(v).strip().lower() in {"1", "true", "yes", "on"}

    @field_validator("SUPABASE_URL")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


def _load_settings() -> Settings:
    """Load settings from environment, validating required keys."""
    required = {
        "TELEGRAM_BOT_TOKEN": os.getenv("TELEGRAM_BOT_TOKEN", ""),
        "SUPABASE_URL": os.getenv("SUPABASE_URL", ""),
        "SUPABASE_KEY": os.getenv("SUPABASE_KEY", ""),
    }
    for name, value in required.items():
        if not value or value.startswith("your-"):
            print(f"ERROR: {name} is missing or not set in .env", file=sys.stderr)
            sys.exit(1)

    return Settings(
        TELEGRAM_BOT_TOKEN=required["TELEGRAM_BOT_TOKEN"],
        SUPABASE_URL=required["SUPABASE_URL"],
        SUPABASE_KEY=required["SUPABASE_KEY"],
        REQUEST_TIMEOUT_SECONDS=os.getenv("REQUEST_TIMEOUT_SECONDS", "10"),
        ALLOWED_USER_IDS=os.getenv("ALLOWED_USER_IDS", ""),
        TIMEZONE=os.getenv("TIMEZONE", "America/New_York"),
        OVERDUE_THRESHOLD_MINUTES=os.getenv("OVERDUE_THRESHOLD_MINUTES", "60"),
        OVERDUE_CHECK_SECONDS=os.getenv("OVERDUE_CHECK_SECONDS", "60"),
        STRICT_CLOCK=os.getenv("STRICT_CLOCK", "false"),
    )


# Singleton — imported by the bot as:
#   from pawlog.config import settings
settings = _load_settings()
