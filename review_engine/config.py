"""
Configuration settings for the review engine.

Uses Pydantic Settings for environment variable management with .env file support.
Settings are an immutable snapshot: the engine reads them, never writes them.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Level names loguru accepts for a sink
LogLevel = Literal["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]


class SRSSettings(BaseSettings):
    """Per-user spaced repetition settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="REVIEW_ENGINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # ========================================
    # Review Scheduling
    # ========================================
    daily_new_items_limit: int = Field(
        default=20,
        ge=0,
        description="Maximum new items introduced per day",
    )
    daily_review_limit: int = Field(
        default=100,
        ge=0,
        description="Maximum reviews per day (0 = unlimited)",
    )
    review_threshold: Literal["strict", "moderate", "relaxed"] = Field(
        default="moderate",
        description="How strictly answers are judged by the presentation layer",
    )

    # ========================================
    # Difficulty Adjustments
    # ========================================
    ease_bonus: float = Field(
        default=0.0,
        ge=-0.2,
        le=0.2,
        description="Added to the ease factor after every successful review",
    )
    interval_multiplier: float = Field(
        default=1.0,
        ge=0.5,
        le=2.0,
        description="Scales every interval after a successful review",
    )
    lapse_new_interval: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Fraction of the old interval kept after a lapse",
    )
    required_accuracy: float = Field(
        default=0.75,
        ge=0.6,
        le=1.0,
        description="Session accuracy considered a pass",
    )

    # ========================================
    # Notifications
    # ========================================
    review_reminders: bool = Field(
        default=True,
        description="Whether review reminders are enabled",
    )
    reminder_time: str = Field(
        default="09:00",
        pattern=r"^([01]\d|2[0-3]):[0-5]\d$",
        description="Local time of day for reminders (HH:MM)",
    )
    reminder_threshold: int = Field(
        default=10,
        ge=0,
        description="Minimum queued reviews before a reminder is worth sending",
    )

    # ========================================
    # Sessions
    # ========================================
    session_batch_size: int = Field(
        default=20,
        ge=1,
        description="Default number of items per review session",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: LogLevel = Field(
        default="INFO",
        description="Loguru sink level for the CLI",
    )

    def get_scheduler_config(self) -> dict[str, float]:
        """Get the values the scheduler reads."""
        return {
            "ease_bonus": self.ease_bonus,
            "interval_multiplier": self.interval_multiplier,
            "lapse_new_interval": self.lapse_new_interval,
        }

    def get_queue_config(self) -> dict[str, int | bool]:
        """Get the values the queue builder reads."""
        return {
            "daily_new_items_limit": self.daily_new_items_limit,
            "daily_review_limit": self.daily_review_limit,
            "review_reminders": self.review_reminders,
            "reminder_threshold": self.reminder_threshold,
        }


# Built from code defaults only, without consulting the environment
DEFAULT_SRS_SETTINGS = SRSSettings.model_construct()


@lru_cache(maxsize=1)
def get_settings() -> SRSSettings:
    """Get cached settings instance."""
    return SRSSettings()
