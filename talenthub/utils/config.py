"""
Configuration management for TalentHub.

Uses Pydantic Settings for type-safe configuration with environment variable support.
"""

from pathlib import Path
from typing import Literal
from urllib.parse import quote_plus

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Base paths
ROOT_DIR = Path(__file__).parent.parent.parent


class DatabaseSettings(BaseSettings):
    """MongoDB database configuration."""

    model_config = SettingsConfigDict(env_prefix="DB_")

    host: str = "localhost"
    port: int = 27017
    name: str = "talenthub"
    username: str | None = None
    password: str | None = None

    # Client pool and timeouts
    timeout_ms: int = 5000
    max_pool_size: int = 50
    min_pool_size: int = 5

    @field_validator("host")
    @classmethod
    def validate_host(cls, v: str) -> str:
        """Reject hosts that could smuggle extra URI options."""
        v = v.strip()
        if not v or any(c in v for c in ";&|$`/?@"):
            raise ValueError(f"Invalid database host: {v!r}")
        return v

    def uri(self, redact: bool = False) -> str:
        """
        Build the MongoDB connection URI.

        Credentials are URL-encoded; with ``redact`` the password is masked
        so the URI can be printed.
        """
        auth = ""
        if self.username and self.password:
            password = "****" if redact else quote_plus(self.password)
            auth = f"{quote_plus(self.username)}:{password}@"
        return f"mongodb://{auth}{self.host}:{self.port}"


class NotificationSettings(BaseSettings):
    """Notification fanout configuration."""

    model_config = SettingsConfigDict(env_prefix="NOTIFY_")

    enabled: bool = True

    # "background" hands delivery to a thread pool, "inline" delivers
    # before emit() returns (scripts and tests)
    dispatch_mode: Literal["background", "inline"] = "background"

    # Upper bound for a single transport call
    timeout_seconds: float = 2.0
    max_workers: int = 4

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Transport timeout must stay short and positive."""
        if v <= 0:
            raise ValueError("timeout_seconds must be positive")
        return min(v, 30.0)


class UrgencySettings(BaseSettings):
    """Action queue urgency configuration."""

    model_config = SettingsConfigDict(env_prefix="URGENCY_")

    # Dashboards that weight interviews higher warn after 24h instead of 48h
    interview_priority: bool = False

    # Window used for the "new candidates" health bonus
    recent_window_days: int = 7


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: str = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}"
    file_path: Path = ROOT_DIR / "logs" / "talenthub.log"
    audit_file_path: Path = ROOT_DIR / "logs" / "audit.log"
    rotation: str = "10 MB"
    retention: str = "30 days"
    audit_retention: str = "1 year"
    console_output: bool = True
    file_output: bool = True


class AppSettings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application metadata
    name: str = "TalentHub"
    version: str = "0.1.0"
    description: str = "Interview negotiation and disclosure core"
    debug: bool = False

    # Environment
    environment: Literal["development", "production", "testing"] = "development"

    # Nested settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)
    urgency: UrgencySettings = Field(default_factory=UrgencySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


# Global settings instance (singleton pattern)
_settings: AppSettings | None = None


def get_settings() -> AppSettings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = AppSettings()
    return _settings


def reload_settings() -> AppSettings:
    """Force reload settings from environment."""
    global _settings
    _settings = AppSettings()
    return _settings


# Convenience exports
settings = get_settings()
