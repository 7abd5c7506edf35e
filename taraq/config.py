"""Runtime settings, read from TARAQ_* environment variables or a .env file."""
from __future__ import annotations
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    # Cosmetic pause between "dice are rolling" and the result. 0 disables it.
    roll_settle_seconds: float = Field(default=1.0, ge=0)

    # When on, ACTION_DECIDE and the split messages get the same
    # sender-must-be-current-player check as ACTION_ROLL.
    strict_turn_ownership: bool = True

    # Generative content. Without an API key a null service is used.
    gemini_api_key: Optional[str] = None
    commentary_model: str = "gemini-2.5-flash"
    avatar_model: str = "gemini-2.5-flash-image"
    commentary_timeout: float = 15.0

    model_config = SettingsConfigDict(
        env_prefix="TARAQ_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Global instance
settings = Settings()
