"""Configuration settings for the recovery engine."""

from datetime import tzinfo
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings

from .dates import resolve_timezone
from .exceptions import ConfigurationError
from .scoring import validate_weights


class Settings(BaseSettings):
    """Settings loaded from RECOVERY_* environment variables."""

    # Calendar days are grouped in this timezone
    timezone: str = "UTC"

    # Sample source
    fetch_timeout_seconds: float = 10.0
    workout_fetch_limit: int = 50

    # Persistence
    db_path: Path = Path("recovery.db")

    # Scoring
    apply_cooldown: bool = True
    # JSON object, e.g. RECOVERY_WEIGHTS='{"hrv": 0.4, "heartRate": 0.3}'
    weights: Optional[Dict[str, float]] = None

    log_level: str = "INFO"

    @field_validator("fetch_timeout_seconds")
    @classmethod
    def check_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("fetch_timeout_seconds must be positive")
        return value

    @field_validator("weights")
    @classmethod
    def check_weights(cls, value: Optional[Dict[str, float]]) -> Optional[Dict[str, float]]:
        if value is None:
            return value
        try:
            return validate_weights(value)
        except ConfigurationError as e:
            raise ValueError(e.message) from e

    def get_timezone(self) -> tzinfo:
        """Resolve the configured timezone name."""
        return resolve_timezone(self.timezone)

    class Config:
        env_prefix = "RECOVERY_"
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
