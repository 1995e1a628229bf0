"""
Scheduler Calendar — Centralized configuration.

Loads all settings from .env and validates them.
This module is the foundation for every other module in the project.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (one level up from scheduler/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Telegram (only needed to start the bot)
    TELEGRAM_BOT_TOKEN: str = ""

    # Security
    ALLOWED_USER_IDS: list[int] = []

    # Storage backend: "json" | "sqlite"
    STORAGE_BACKEND: str = "json"
    DATA_PATH: str = "data/scheduler-events.json"
    DATABASE_PATH: str = "data/scheduler.db"

    # Export document name
    EXPORT_FILENAME: str = "scheduler-events.json"

    # Clock line refresh interval
    CLOCK_REFRESH_SECONDS: int = 60

    LOG_LEVEL: str = "INFO"

    @field_validator("ALLOWED_USER_IDS", mode="before")
    @classmethod
    def parse_user_ids(cls, v: str | list[int]) -> list[int]:
        if isinstance(v, list):
            return v
        if isinstance(v, str) and v.strip():
            return [int(uid.strip()) for uid in v.split(",") if uid.strip()]
        return []

    @field_validator("CLOCK_REFRESH_SECONDS", mode="before")
    @classmethod
    def parse_refresh(cls, v: str | int) -> int:
        seconds = int(v)
        if seconds < 1:
            raise ValueError("CLOCK_REFRESH_SECONDS must be at least 1")
        return seconds

    @field_validator("STORAGE_BACKEND", "LOG_LEVEL", mode="before")
    @classmethod
    def strip_choice(cls, v: str) -> str:
        return str(v).strip()


def _load_settings() -> Settings:
    """Load settings from environment."""
    return Settings(
        TELEGRAM_BOT_TOKEN=os.getenv("TELEGRAM_BOT_TOKEN", ""),
        ALLOWED_USER_IDS=os.getenv("ALLOWED_USER_IDS", ""),
        STORAGE_BACKEND=os.getenv("STORAGE_BACKEND", "json"),
        DATA_PATH=os.getenv("DATA_PATH", "data/scheduler-events.json"),
        DATABASE_PATH=os.getenv("DATABASE_PATH", "data/scheduler.db"),
        EXPORT_FILENAME=os.getenv("EXPORT_FILENAME", "scheduler-events.json"),
        CLOCK_REFRESH_SECONDS=os.getenv("CLOCK_REFRESH_SECONDS", "60"),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
    )


# Singleton — imported by all other modules as:
#   from scheduler.config import settings
settings = _load_settings()
