"""
Application configuration using pydantic-settings.
All config is loaded from environment variables with sensible defaults.
"""

from typing import Optional
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Venue Booking Admin"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Remote authority
    API_URL: str = "http://localhost:5000/api"
    API_TOKEN: Optional[str] = None
    REQUEST_TIMEOUT: float = 30.0

    # Query cache
    QUERY_RETRY_ATTEMPTS: int = 1
    QUERY_RETRY_DELAY: float = 1.0
    CACHE_TTL: Optional[float] = 300  # None keeps entries fresh until invalidated

    # Occupancy heuristic (display only)
    OCCUPANCY_NIGHTS_PER_BOOKING: int = 30
    OCCUPANCY_ANNUAL_NIGHTS: int = 365
    OCCUPANCY_TARGET_FACTOR: float = 0.7

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
    }


@lru_cache()
def get_settings() -> Settings:
    return Settings()
