"""
Engine configuration.

Centralized configuration management with environment variables.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings"""

    model_config = SettingsConfigDict(
        env_prefix="MATHGRADE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "mathgrade"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"  # development, staging, production

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"  # json or text
    LOG_FILE: Optional[str] = None

    # Equivalence checking
    DEFAULT_QUESTION_TOLERANCE: float = Field(default=0.01, ge=0, le=1)
    CLOSE_TOLERANCE_FACTOR: float = Field(default=100.0, ge=1)
    ALGEBRAIC_TOLERANCE: float = Field(default=1e-4, ge=0)
    MISCONCEPTION_TOLERANCE: float = Field(default=1e-3, gt=0)

    # Rewards (packaged reward_tables.yaml when unset)
    REWARD_TABLES_FILE: Optional[str] = None


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
