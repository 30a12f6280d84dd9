from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import Optional

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    SERVICE_NAME: str = "tracking-service"
    PORT: int = 3000
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None

    # Empty REDIS_URL keeps history in process memory
    REDIS_URL: str = ""
    HISTORY_KEY: str = "expressHistory"
    HISTORY_LIMIT: int = 20

    FAILURE_RATE: float = 0.1
    LATENCY_MIN_SECONDS: float = 1.0
    LATENCY_MAX_SECONDS: float = 2.0
    RANDOM_SEED: Optional[int] = None

    REMINDER_DELAY_SECONDS: float = 5.0

    DEFAULT_CITY: str = "北京"
    GEOCODER_URL: str = "https://nominatim.openstreetmap.org/reverse"
    GEOCODER_TIMEOUT: float = 5.0

    STATIC_DIR: Optional[str] = None

@lru_cache
def get_settings() -> Settings:
    return Settings()
