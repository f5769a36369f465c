"""
Engine configuration using pydantic-settings.
Loads from environment variables with .env file support.
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Local durable store
    database_url: str = "sqlite+aiosqlite:///./skillgate.db"
    telemetry_namespace: str = "skillgate.behavioral"
    retention_days: int = 30

    # Remote collector (sync disabled when unset)
    collector_url: Optional[str] = None
    collector_timeout_seconds: float = 10.0

    # Sync queue batching
    sync_batch_size: int = 10
    sync_flush_interval_seconds: float = 30.0
    sync_max_backoff_seconds: float = 300.0
    sync_probe_interval_seconds: float = 15.0
    sync_poll_interval_seconds: float = 1.0

    # Gating strategy ratios
    gating_progressive_ratio: float = 0.70
    gating_adaptive_ratio: float = 0.75
    gating_collaborative_ratio: float = 0.60

    # Optional JSON capability catalog; built-in catalog when unset
    capabilities_file: Optional[str] = None

    # Application
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR
    slow_request_ms: float = 1000.0

    # API Settings
    api_v1_prefix: str = "/api/v1"
    project_name: str = "SkillGate Competency Engine"
    version: str = "1.0.0"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
