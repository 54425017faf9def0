"""
Configuration file loader for the Tech Incidents service.

Supports loading configuration from YAML and TOML files with environment
variable overrides and a standard search path. Files are structured in
sections::

    backend:
      url: https://project.supabase.co
      anon_key: public-anon-key
      timeout: 10
    service:
      environment: production
      max_image_size_mb: 5
      default_sort: year-desc
    logging:
      level: INFO
      file: /var/log/tech-incidents.log
"""

import os
import logging
import tomllib
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

CONFIG_BASENAME = "tech-incidents"


class ConfigFileError(Exception):
    """Raised when a configuration file cannot be parsed."""
    pass


def load_yaml_file(path: Path) -> dict:
    """
    Load configuration from a YAML file.

    Raises:
        FileNotFoundError: If file doesn't exist
        ConfigFileError: If YAML parsing fails
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        with open(path, 'r') as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigFileError(f"Failed to parse YAML config file {path}: {e}") from e

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigFileError(f"Config file {path} must contain a mapping at the top level")
    return config


def load_toml_file(path: Path) -> dict:
    """
    Load configuration from a TOML file.

    Raises:
        FileNotFoundError: If file doesn't exist
        ConfigFileError: If TOML parsing fails
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        with open(path, 'rb') as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigFileError(f"Failed to parse TOML config file {path}: {e}") from e


def load_config_file(path: str) -> dict:
    """
    Load configuration from a YAML or TOML file.

    The file format is determined by the file extension (.yaml, .yml, or .toml).

    Raises:
        ValueError: If file extension is not supported
        FileNotFoundError: If file doesn't exist
        ConfigFileError: If parsing fails
    """
    file_path = Path(path)
    suffix = file_path.suffix.lower()

    if suffix in ['.yaml', '.yml']:
        return load_yaml_file(file_path)
    elif suffix == '.toml':
        return load_toml_file(file_path)
    else:
        raise ValueError(
            f"Unsupported config file format: {suffix}. "
            "Supported formats: .yaml, .yml, .toml"
        )


def find_config_file() -> Optional[Path]:
    """
    Search for a configuration file in standard locations.

    Search order: the working directory, the home directory (dotfile), then
    ``/etc``; YAML before TOML in each.

    Returns:
        Path to the first configuration file found, or None
    """
    search_paths = [
        Path.cwd() / f"{CONFIG_BASENAME}.yaml",
        Path.cwd() / f"{CONFIG_BASENAME}.toml",
        Path.home() / f".{CONFIG_BASENAME}.yaml",
        Path.home() / f".{CONFIG_BASENAME}.toml",
        Path(f"/etc/{CONFIG_BASENAME}.yaml"),
        Path(f"/etc/{CONFIG_BASENAME}.toml"),
    ]

    for path in search_paths:
        if path.exists() and path.is_file():
            logger.info(f"Found configuration file: {path}")
            return path

    logger.debug("No configuration file found in standard locations")
    return None


def _int_env(key: str) -> Optional[int]:
    value = os.getenv(key)
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Invalid {key}, ignoring")
        return None


def get_env_config() -> dict:
    """
    Extract configuration from environment variables.

    Environment variables override file-based configuration.

    Returns:
        Nested configuration dictionary from environment variables
    """
    config = {}

    backend_config = {}
    url = os.getenv("TECH_INCIDENTS_BACKEND_URL") or os.getenv("SUPABASE_URL")
    if url:
        backend_config["url"] = url
    key = os.getenv("TECH_INCIDENTS_BACKEND_KEY") or os.getenv("SUPABASE_ANON_KEY")
    if key:
        backend_config["anon_key"] = key
    timeout = _int_env("TECH_INCIDENTS_REQUEST_TIMEOUT")
    if timeout is not None:
        backend_config["timeout"] = timeout

    if backend_config:
        config["backend"] = backend_config

    service_config = {}
    if os.getenv("TECH_INCIDENTS_ENV"):
        service_config["environment"] = os.getenv("TECH_INCIDENTS_ENV")
    max_image = _int_env("TECH_INCIDENTS_MAX_IMAGE_MB")
    if max_image is not None:
        service_config["max_image_size_mb"] = max_image
    if os.getenv("TECH_INCIDENTS_DEFAULT_SORT"):
        service_config["default_sort"] = os.getenv("TECH_INCIDENTS_DEFAULT_SORT")

    if service_config:
        config["service"] = service_config

    logging_config = {}
    if os.getenv("TECH_INCIDENTS_LOG_LEVEL"):
        logging_config["level"] = os.getenv("TECH_INCIDENTS_LOG_LEVEL")
    if os.getenv("TECH_INCIDENTS_LOG_FILE"):
        logging_config["file"] = os.getenv("TECH_INCIDENTS_LOG_FILE")

    if logging_config:
        config["logging"] = logging_config

    return config


def deep_merge(base: dict, override: dict) -> dict:
    """
    Deep merge two dictionaries, with override values taking precedence.

    Example:
        >>> deep_merge({"backend": {"url": "a", "timeout": 5}}, {"backend": {"url": "b"}})
        {'backend': {'url': 'b', 'timeout': 5}}
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


# (section, key in file) -> AppConfig field
_FIELD_MAP = {
    ("backend", "url"): "backend_url",
    ("backend", "anon_key"): "backend_anon_key",
    ("backend", "timeout"): "request_timeout",
    ("service", "environment"): "environment",
    ("service", "max_image_size_mb"): "max_image_size_mb",
    ("service", "default_sort"): "default_sort",
    ("logging", "level"): "log_level",
    ("logging", "file"): "log_file",
}


def flatten_config(config: dict) -> dict:
    """
    Flatten nested configuration dictionary to match AppConfig fields.

    Unknown sections and keys are ignored with a warning.
    """
    flat = {}

    for section, values in config.items():
        if not isinstance(values, dict):
            logger.warning(f"Ignoring config entry '{section}': expected a section")
            continue
        for key, value in values.items():
            field_name = _FIELD_MAP.get((section, key))
            if field_name is None:
                logger.warning(f"Ignoring unknown config key '{section}.{key}'")
                continue
            flat[field_name] = value

    return flat


def merge_config(file_config: dict, env_config: dict) -> dict:
    """
    Merge file-based and environment-based configuration.

    Environment variables take precedence over file-based configuration.

    Returns:
        Merged configuration dictionary (flattened)
    """
    merged = deep_merge(file_config, env_config)
    return flatten_config(merged)


def load_config_with_overrides(config_path: Optional[str] = None) -> dict:
    """
    Load configuration from file with environment variable overrides.

    Args:
        config_path: Optional explicit path to config file.
                    If None, searches standard locations.

    Returns:
        Dictionary of AppConfig keyword arguments

    Raises:
        FileNotFoundError: If explicit config_path is provided but doesn't exist
        ConfigFileError: If config parsing fails
    """
    file_config = {}

    if config_path:
        file_config = load_config_file(config_path)
        logger.info(f"Loaded configuration from: {config_path}")
    else:
        found_path = find_config_file()
        if found_path:
            file_config = load_config_file(str(found_path))
            logger.info(f"Loaded configuration from: {found_path}")

    env_config = get_env_config()
    if env_config:
        logger.info("Applying environment variable overrides")

    return merge_config(file_config, env_config)
