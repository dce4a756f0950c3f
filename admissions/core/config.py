"""Application configuration and feature flags."""

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings loaded from environment."""

    app_name: str = "Admissions Ruleset Engine"
    log_level: str = "INFO"

    # Paths
    rulesets_dir: str = "admissions/rules/data"

    # Editor behaviour
    drag_activation_distance: float = 5.0
    clone_beside_original: bool = False
    dev_warn_on_noop: bool = False

    model_config = SettingsConfigDict(
        env_prefix="ADMISSIONS_", env_file=".env", env_file_encoding="utf-8"
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
