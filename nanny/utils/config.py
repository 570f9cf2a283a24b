"""
Nanny Configuration Module.

Centralizes all configuration settings using Pydantic Settings.
Everything is read from the environment; there is no config file.
Requires Python 3.11+.
"""

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from nanny.errors import ConfigurationError


class WatcherSettings(BaseSettings):
    """Polling watcher settings."""

    model_config = SettingsConfigDict(env_prefix="NANNY_WATCH_")

    poll_interval: float = Field(default=1.0, gt=0.0, le=60.0, description="Seconds between scans")


class RunnerSettings(BaseSettings):
    """Command execution settings."""

    model_config = SettingsConfigDict(env_prefix="NANNY_RUN_")

    mode: Literal["script", "split"] = Field(default="script")
    separator: str = Field(default=";", min_length=1, description="Split-mode line separator")
    stop_on_failure: bool = Field(default=False)
    kill_grace: float = Field(default=2.0, ge=0.0, description="Seconds between terminate and kill")

    @field_validator("mode", mode="before")
    @classmethod
    def normalize_mode(cls, v: str) -> str:
        """Accept the mode name in any case."""
        if isinstance(v, str):
            return v.strip().lower()
        return v


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    model_config = SettingsConfigDict(env_prefix="NANNY_LOG_")

    level: str = Field(default="WARNING")
    format: Literal["console", "json"] = Field(default="console")

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        """Upper-case the level so it maps onto the logging module names."""
        if isinstance(v, str):
            return v.strip().upper()
        return v


class Settings(BaseSettings):
    """Main application settings aggregating all sub-settings."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application metadata
    app_name: str = Field(default="nanny", validation_alias="NANNY_APP_NAME")
    app_version: str = Field(default="0.1.0", validation_alias="NANNY_APP_VERSION")

    # Interpreter used in script mode; COMSPEC is the Windows equivalent
    shell: str | None = Field(default=None, validation_alias=AliasChoices("SHELL", "COMSPEC"))

    # Sub-settings
    watcher: WatcherSettings = Field(default_factory=WatcherSettings)
    runner: RunnerSettings = Field(default_factory=RunnerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @field_validator("shell", mode="before")
    @classmethod
    def blank_shell_is_unset(cls, v: str | None) -> str | None:
        """Treat an empty SHELL the same as a missing one."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def require_interpreter(self) -> str:
        """
        Return the configured interpreter.

        Raises:
            ConfigurationError: If neither SHELL nor COMSPEC is set
        """
        if self.shell is None:
            raise ConfigurationError("Missing SHELL environment variable")
        return self.shell


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns singleton instance of Settings, resolved once at startup.
    """
    return Settings()
