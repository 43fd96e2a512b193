"""ChronoStudy configuration system — typed settings loaded from .env."""

import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

_config_instance: "ChronoConfig | None" = None


class ChronoConfig(BaseSettings):
    """All client settings, loaded from environment variables with CHRONO_ prefix."""

    # Backend
    api_base_url: str = "http://localhost:5000/api"
    request_timeout: float = 10.0

    # Timers (seconds)
    poll_interval: float = 1.0  # due-reminder check
    tick_interval: float = 1.0  # countdown repaint

    # Session storage (token + user, like browser localStorage)
    session_file: str = "~/.chronostudy/session.json"

    # Desktop notifications
    desktop_notifications: bool = True
    notification_icon: str = ""

    # System
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="CHRONO_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("request_timeout", "poll_interval", "tick_interval")
    @classmethod
    def _positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be greater than 0")
        return value

    @field_validator("api_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


def get_config() -> ChronoConfig:
    """Get the singleton ChronoConfig instance.

    Returns:
        The shared ChronoConfig loaded from environment.
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = ChronoConfig()
        logger.debug("Config loaded: api_base_url=%s", _config_instance.api_base_url)
    return _config_instance
