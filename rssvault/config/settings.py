"""
RSSVault Configuration System
=============================

Simple configuration management with environment variables and Pydantic models.
Environment variables override Field defaults with clear precedence, e.g.
``RSSVAULT_INGESTION__MAX_SIZE_BYTES=1048576``.
"""

from pathlib import Path
from typing import Optional
from enum import Enum

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

from ..utils.exceptions import ConfigurationError, ErrorCode


DEFAULT_MAX_SIZE_BYTES = 7 * 1024 * 1024


class LogLevel(str, Enum):
    """Available log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class IngestionSettings(BaseModel):
    """Feed ingestion defaults."""
    max_size_bytes: int = Field(default=DEFAULT_MAX_SIZE_BYTES, gt=0, description="Default per-feed storage budget in bytes")
    fetch_images: bool = Field(default=False, description="Allow image/media tags for newly added feeds")
    request_timeout: int = Field(default=30, ge=1, le=300, description="Feed request timeout in seconds")
    user_agent: str = Field(default="RSSVault/1.0", description="User-Agent header sent with feed requests")
    storage_warning_percent: float = Field(default=80.0, ge=0.0, le=100.0, description="Storage usage that triggers an advisory warning")


class DatabaseSettings(BaseModel):
    """Database configuration."""
    path: str = Field(default="data/rssvault.db", description="SQLite database file path")
    pool_size: int = Field(default=5, ge=1, le=20, description="Connection pool size")


class LoggingSettings(BaseModel):
    """Logging configuration."""
    level: LogLevel = Field(default=LogLevel.INFO, description="Global log level")
    file_path: Optional[str] = Field(default="logs/rssvault.log", description="Log file path")
    max_file_size_mb: int = Field(default=10, ge=1, le=100, description="Max log file size in MB")
    backup_count: int = Field(default=5, ge=1, le=20, description="Number of log backup files")
    structured_logging: bool = Field(default=False, description="Use structured JSON logging")
    console_logging: bool = Field(default=True, description="Enable console logging")

    @field_validator("file_path")
    @classmethod
    def empty_path_disables_file(cls, v):
        """Treat an empty path as 'no log file'."""
        if v is not None and not v.strip():
            return None
        return v


class RSSVaultSettings(BaseSettings):
    """Main application settings."""

    ingestion: IngestionSettings = Field(default_factory=IngestionSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    app_name: str = Field(default="RSSVault", description="Application name")
    version: str = Field(default="1.0.0", description="Application version")
    debug: bool = Field(default=False, description="Enable debug mode")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "env_nested_delimiter": "__",
        "env_prefix": "RSSVAULT_",
        "extra": "ignore",
    }

    def validate_configuration(self) -> None:
        """Validate complete configuration."""
        errors = []

        try:
            db_path = Path(self.database.path)
            db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            errors.append(f"Invalid database path: {e}")

        if self.logging.file_path:
            try:
                log_path = Path(self.logging.file_path)
                log_path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                errors.append(f"Invalid log file path: {e}")

        if errors:
            raise ConfigurationError(
                f"Configuration validation failed: {'; '.join(errors)}",
                error_code=ErrorCode.CONFIG_INVALID
            )

    def get_effective_log_level(self) -> str:
        """Get effective log level considering debug mode."""
        if self.debug:
            return "DEBUG"
        return self.logging.level.value


def load_settings() -> RSSVaultSettings:
    """Load settings from environment variables and defaults.

    Returns:
        Loaded and validated settings

    Raises:
        ConfigurationError: If configuration is invalid
    """
    from dotenv import load_dotenv
    load_dotenv()

    try:
        settings = RSSVaultSettings()
        settings.validate_configuration()
        return settings

    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(
            f"Failed to initialize settings: {e}",
            error_code=ErrorCode.CONFIG_INVALID
        ) from e


# Global settings instance
_settings: Optional[RSSVaultSettings] = None


def get_settings(reload: bool = False) -> RSSVaultSettings:
    """Get global settings instance (singleton pattern).

    Args:
        reload: Force reload of settings

    Returns:
        Global settings instance
    """
    global _settings

    if _settings is None or reload:
        _settings = load_settings()

    return _settings
