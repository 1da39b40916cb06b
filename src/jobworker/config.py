"""Configuration management for jobworker."""
from functools import lru_cache
from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    Workers, reporters and pools never read these directly; the CLI
    passes the relevant values in at construction.
    """

    # Application
    APP_NAME: str = "jobworker"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Redis
    REDIS_URL: str = "redis://localhost:6379/0"
    NAMESPACE: str = "resque:"

    # Connection pool
    POOL_MAX_CONNECTIONS: int = 10
    POOL_ACQUIRE_TIMEOUT: float = 5.0  # Seconds to wait for a free connection

    # Workers
    QUEUES: List[str] = ["default"]
    CONCURRENCY: int = 5
    POLL_INTERVAL: float = 5.0  # Seconds between polls of empty queues
    WORKER_ID: Optional[str] = None

    # Observability
    METRICS_PORT: Optional[int] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Singleton settings instance
    """
    return Settings()
