"""
Configuration settings for turnwise.
"""

from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Routing settings with environment variable support.

    Attributes:
        environment: Deployment environment, drives logging defaults
        log_level: Explicit log level; derived from environment when unset
        road_class_weight: Per-class penalty used by time-based search
        max_speed_kmh: Fastest speed any road allows, used by the time heuristic
        check_heuristic: Log a warning when a heuristic is found inconsistent
        slow_search_threshold_ms: Searches slower than this are logged at INFO
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="TURNWISE_",
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Optional[str] = None

    # Cost model
    road_class_weight: float = 0.06
    max_speed_kmh: float = 110.0

    # Search diagnostics
    check_heuristic: bool = False
    slow_search_threshold_ms: float = 250.0

    @property
    def debug(self) -> bool:
        """Whether debug-only diagnostics should be on by default."""
        return self.environment == "development"


# Global settings instance
settings = Settings()
