from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from enum import Enum

class EnvironmentType(str, Enum):
    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"

class Settings(BaseSettings):
    # Basic Settings
    APP_NAME: str = "Interview Response Analysis"
    ENVIRONMENT: EnvironmentType = EnvironmentType.DEVELOPMENT
    DEBUG: bool = True
    API_PREFIX: str = "/api"
    WEBSOCKET_PATH: str = "/ws"

    # Server Settings
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "DEBUG"

    # Analysis Pipeline
    CACHE_MAX_ENTRIES: int = 100
    QUEUE_CAPACITY: int = 10
    DRAIN_DELAY_MS: int = 10
    PROGRESSIVE_FEEDBACK: bool = False
    PROGRESS_STEP_MS: int = 100

    # Speech Processing
    SILENCE_THRESHOLD: int = 10
    MIN_PAUSE_SECONDS: float = 0.5
    MAX_RECOGNITION_RETRIES: int = 3

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra='ignore'
    )

@lru_cache
def get_settings() -> Settings:
    return Settings()
