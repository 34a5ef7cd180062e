"""
Configuration management for hostkit.

This module handles loading and validating environment variables.
"""

import os
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

LOG_FILE_MODES = ("overwrite", "append")


def _int_env(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _bool_env(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "y")


class Config:
    """Configuration class with environment variables."""

    # Database
    DB_URL: str = os.getenv("DB_URL", "")
    DB_USER: str = os.getenv("DB_USER", "")
    # Unset and empty are different: an empty password is a valid secret
    DB_PASSWORD: Optional[str] = os.getenv("DB_PASSWORD")
    DB_HEALTH_CHECK_TIMEOUT: int = _int_env("DB_HEALTH_CHECK_TIMEOUT", 5)
    DB_STRICT_TRANSACTIONS: bool = _bool_env("DB_STRICT_TRANSACTIONS", False)

    # Paths
    LOG_DIR: str = os.getenv("LOG_DIR", "suno/logs")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE_MODE: str = os.getenv("LOG_FILE_MODE", "overwrite").strip().lower()
    LOG_DELETE_ON_STARTUP: bool = _bool_env("LOG_DELETE_ON_STARTUP", False)

    @classmethod
    def validate(cls) -> None:
        """
        Validate configuration values.

        Raises:
            ValueError: If a configured value is out of range.
        """
        if cls.LOG_FILE_MODE not in LOG_FILE_MODES:
            raise ValueError(
                f"LOG_FILE_MODE must be one of {', '.join(LOG_FILE_MODES)}, "
                f"got {cls.LOG_FILE_MODE!r}"
            )

        if cls.DB_HEALTH_CHECK_TIMEOUT < 0:
            raise ValueError("DB_HEALTH_CHECK_TIMEOUT must not be negative")

        # Credentials are optional here; callers may configure them in code
        if not cls.DB_URL:
            print("WARNING: DB_URL not configured - configure_from_env() will fail")
