"""Configuration management for the Tech Incidents service.

Configuration can be loaded from environment variables, YAML/TOML files, or
direct instantiation.

Classes:
    AppConfig: Main configuration dataclass with validation.

Example:
    >>> from tech_incidents.config import AppConfig
    >>>
    >>> # Load from environment variables
    >>> config = AppConfig.from_env()
    >>>
    >>> # Load from file with env overrides
    >>> config = AppConfig.from_file("tech-incidents.yaml")
    >>>
    >>> # Automatic loading with fallback
    >>> config = AppConfig.load()
    >>> config.validate()
"""
import os
import logging
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

from .constants import (
    DEFAULT_MAX_IMAGE_SIZE_MB,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    DEFAULT_SORT,
    VALID_ENVIRONMENTS,
)
from .models import SortKey

logger = logging.getLogger(__name__)

ENV_PREFIX = "TECH_INCIDENTS_"


def _get_int_env(key: str, default: int) -> int:
    """Safely get a positive integer from an environment variable.

    Returns the default if the variable is unset, unparseable or not
    positive.

    Example:
        >>> os.environ['TECH_INCIDENTS_REQUEST_TIMEOUT'] = '30'
        >>> _get_int_env('TECH_INCIDENTS_REQUEST_TIMEOUT', 10)
        30
    """
    value = os.getenv(key)
    if value is None:
        return default

    try:
        result = int(value)
        if result <= 0:
            logger.warning(
                f"Environment variable {key}={value} must be positive. Using default: {default}"
            )
            return default
        return result
    except ValueError:
        logger.warning(
            f"Environment variable {key}={value} is not a valid integer. Using default: {default}"
        )
        return default


def _first_env(*keys: str, default: str = "") -> str:
    """Value of the first set environment variable among ``keys``."""
    for key in keys:
        value = os.getenv(key)
        if value:
            return value
    return default


@dataclass
class AppConfig:
    """
    Configuration for the Tech Incidents service.

    Configuration can be loaded from:
    1. Configuration files (YAML or TOML)
    2. Environment variables (override file settings)
    3. Direct instantiation with parameters

    Environment variables:
        TECH_INCIDENTS_BACKEND_URL (or SUPABASE_URL): Backend project URL
        TECH_INCIDENTS_BACKEND_KEY (or SUPABASE_ANON_KEY): Public API key
        TECH_INCIDENTS_ENV: development, test or production (default: development)
        TECH_INCIDENTS_REQUEST_TIMEOUT: Backend timeout in seconds (default: 10)
        TECH_INCIDENTS_MAX_IMAGE_MB: Largest accepted image upload (default: 5)
        TECH_INCIDENTS_DEFAULT_SORT: Listing sort order (default: "year-desc")
        TECH_INCIDENTS_LOG_LEVEL: Logging level (default: "INFO")
        TECH_INCIDENTS_LOG_FILE: Log file path (optional)

    Config file locations (searched in order):
        ./tech-incidents.yaml, ./tech-incidents.toml
        ~/.tech-incidents.yaml, ~/.tech-incidents.toml
        /etc/tech-incidents.yaml, /etc/tech-incidents.toml
    """
    # Backend
    backend_url: str = ""
    backend_anon_key: str = ""
    request_timeout: int = DEFAULT_REQUEST_TIMEOUT_SECONDS

    # Service
    environment: str = "development"
    max_image_size_mb: int = DEFAULT_MAX_IMAGE_SIZE_MB
    default_sort: str = DEFAULT_SORT

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @property
    def cookies_secure(self) -> bool:
        """Session cookies carry the ``Secure`` flag in production only."""
        return self.environment == "production"

    @property
    def is_backend_configured(self) -> bool:
        return bool(self.backend_url and self.backend_anon_key)

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ValueError: If any configuration value is invalid
        """
        errors = []

        if self.request_timeout <= 0:
            errors.append(f"request_timeout must be positive, got {self.request_timeout}")
        if self.max_image_size_mb <= 0:
            errors.append(f"max_image_size_mb must be positive, got {self.max_image_size_mb}")

        if self.environment not in VALID_ENVIRONMENTS:
            errors.append(
                f"environment must be one of {VALID_ENVIRONMENTS}, got '{self.environment}'"
            )

        if self.backend_url and not self.backend_url.startswith(("http://", "https://")):
            errors.append(f"backend_url must be an http(s) URL, got '{self.backend_url}'")

        valid_sorts = [key.value for key in SortKey]
        if self.default_sort not in valid_sorts:
            errors.append(f"default_sort must be one of {valid_sorts}, got '{self.default_sort}'")

        valid_log_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if self.log_level.upper() not in valid_log_levels:
            errors.append(
                f"log_level must be one of {valid_log_levels}, got '{self.log_level}'"
            )

        if errors:
            raise ValueError("Configuration validation failed:\n  - " + "\n  - ".join(errors))

    def to_dict(self, redact: bool = True) -> Dict[str, Any]:
        """Settings as a dict, with the API key masked unless ``redact`` is False."""
        data = asdict(self)
        if redact and data["backend_anon_key"]:
            data["backend_anon_key"] = "***REDACTED***"
        data["cookies_secure"] = self.cookies_secure
        return data

    @classmethod
    def from_env(cls) -> 'AppConfig':
        """
        Create configuration from environment variables only.

        Returns:
            AppConfig instance populated from environment variables
        """
        return cls(
            backend_url=_first_env(f"{ENV_PREFIX}BACKEND_URL", "SUPABASE_URL"),
            backend_anon_key=_first_env(f"{ENV_PREFIX}BACKEND_KEY", "SUPABASE_ANON_KEY"),
            request_timeout=_get_int_env(f"{ENV_PREFIX}REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT_SECONDS),
            environment=os.getenv(f"{ENV_PREFIX}ENV", "development"),
            max_image_size_mb=_get_int_env(f"{ENV_PREFIX}MAX_IMAGE_MB", DEFAULT_MAX_IMAGE_SIZE_MB),
            default_sort=os.getenv(f"{ENV_PREFIX}DEFAULT_SORT", DEFAULT_SORT),
            log_level=os.getenv(f"{ENV_PREFIX}LOG_LEVEL", "INFO"),
            log_file=os.getenv(f"{ENV_PREFIX}LOG_FILE"),
        )

    @classmethod
    def from_file(cls, config_path: Optional[str] = None) -> 'AppConfig':
        """
        Create configuration from file with environment variable overrides.

        If no path is provided, searches the standard locations. A file that
        cannot be read or parsed falls back to environment-only settings.

        Args:
            config_path: Optional explicit path to config file.

        Returns:
            AppConfig instance with merged configuration
        """
        from .config_loader import ConfigFileError, load_config_with_overrides

        try:
            config_dict = load_config_with_overrides(config_path)
            return cls(**config_dict)
        except (ConfigFileError, FileNotFoundError, ValueError, TypeError) as e:
            logger.error(f"Failed to load configuration from file: {e}")
            logger.warning("Falling back to environment variable configuration")
            return cls.from_env()

    @classmethod
    def load(cls, config_path: Optional[str] = None, use_file: bool = True) -> 'AppConfig':
        """
        Load configuration with automatic fallback.

        Example:
            >>> config = AppConfig.load()                 # file, then env
            >>> config = AppConfig.load("custom.toml")    # specific file
            >>> config = AppConfig.load(use_file=False)   # env only
        """
        if use_file:
            return cls.from_file(config_path)
        return cls.from_env()
