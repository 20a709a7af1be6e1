# tutor_scheduling/core/config.py
import logging
import os
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Runtime configuration for the scheduling core, read from TUTOR_SCHEDULING_* env vars."""

    environment: str = "development"
    log_level: str = "INFO"

    database_url: str = "sqlite:///./tutor_scheduling.db"
    database_echo: bool = False

    # Calendar mutual exclusion, keyed by (provider_id, date)
    calendar_lock_backend: Literal["memory", "redis"] = "memory"
    calendar_lock_timeout_s: float = Field(
        default=5.0, gt=0, description="How long a caller waits for a busy calendar"
    )
    calendar_lock_ttl_s: int = Field(
        default=30, gt=0, description="Expiry of a Redis calendar lock held by a dead worker"
    )
    redis_url: str = "redis://localhost:6379"
    lock_namespace: str = "tutor_scheduling"

    meeting_reference_template: str = "/call/{booking_id}"

    slow_operation_threshold_s: float = 1.0
    event_flush_timeout_s: float = Field(
        default=5.0, gt=0, description="How long shutdown waits for queued domain events"
    )

    model_config = SettingsConfigDict(
        env_prefix="TUTOR_SCHEDULING_",
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("meeting_reference_template")
    @classmethod
    def _require_booking_placeholder(cls, value: str) -> str:
        if "{booking_id}" not in value:
            raise ValueError("meeting_reference_template must contain '{booking_id}'")
        return value

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() in {"prod", "production"}


settings = Settings()
logger.info(
    "[CONFIG] environment=%s lock_backend=%s",
    settings.environment,
    settings.calendar_lock_backend,
)
