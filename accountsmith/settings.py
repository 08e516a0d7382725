"""
Accountsmith Settings - Configuration management using Pydantic Settings.

Loads configuration from environment variables and .env files.
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Find project root (where .env file is located)
PROJECT_ROOT = Path(__file__).parent.parent


class AccountsmithSettings(BaseSettings):
    """
    Accountsmith configuration settings.

    Settings are loaded from:
    1. Environment variables (highest priority)
    2. .env file in project root
    3. Default values (lowest priority)
    """

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_prefix="ACCOUNTSMITH_",
    )

    # Logging Configuration
    log_level: str = Field(
        default="WARNING",
        description="Logging level (DEBUG, INFO, WARNING, ERROR) (env: ACCOUNTSMITH_LOG_LEVEL)",
    )

    # Host facts
    os_family: str | None = Field(
        default=None,
        description="OS family used for home directory defaults, skips host detection (env: ACCOUNTSMITH_OS_FAMILY)",
    )

    # Key defaults
    default_ssh_key_type: str = Field(
        default="ssh-rsa",
        description="Key type for ssh_keys entries that do not name one (env: ACCOUNTSMITH_DEFAULT_SSH_KEY_TYPE)",
    )


# Global settings instance
_settings: AccountsmithSettings | None = None


def get_settings() -> AccountsmithSettings:
    """
    Get the global settings instance.

    Creates the settings instance on first call, then returns cached instance.

    Returns:
        AccountsmithSettings instance
    """
    global _settings
    if _settings is None:
        _settings = AccountsmithSettings()
    return _settings


def reload_settings() -> AccountsmithSettings:
    """
    Reload settings from environment/files.

    Useful for testing or when .env file changes.

    Returns:
        Fresh AccountsmithSettings instance
    """
    global _settings
    _settings = AccountsmithSettings()
    return _settings
