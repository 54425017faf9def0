"""
Centralized logging configuration for the Tech Incidents service.

Provides one logging setup for the web service and the CLI so that handlers
are installed once and every module logger shares the same format.

Functions:
    setup_logging: Configure console and optional rotating file logging.
    configure_cli_logging: Verbosity-driven setup for the command line.
    reset_logging_config: Undo setup (tests).

Example:
    >>> from tech_incidents.logging_config import setup_logging
    >>> setup_logging(level='DEBUG', log_file='tech-incidents.log')
"""
import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

from .logging_context import RequestContextFilter, JSONFormatter


# Track if logging has been configured to avoid duplicate configuration
_LOGGING_CONFIGURED = False

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s'
SHORT_FORMAT = '%(name)s - %(levelname)s - %(message)s'


def setup_logging(
    level: str = 'INFO',
    log_file: Optional[str | Path] = None,
    log_format: Optional[str] = None,
    include_timestamp: bool = True,
    use_json: bool = False,
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5
) -> None:
    """
    Configure logging for the service.

    Sets up console and optional file logging with consistent formatting.
    Every record gets the current request id (``-`` outside a request).
    Calling again only updates the level.

    Args:
        level: Log level ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')
        log_file: Optional path to log file; enables rotating file logging
        log_format: Custom log format string. If None, uses default format.
        include_timestamp: Whether to include timestamps in log messages
        use_json: Emit one JSON object per record instead of text
        max_bytes: Maximum size of log file before rotation (default 10MB)
        backup_count: Number of backup log files to keep (default 5)

    Example:
        >>> setup_logging(level='INFO')
        >>> setup_logging(level='DEBUG', log_file='tech-incidents.log')
    """
    global _LOGGING_CONFIGURED

    if _LOGGING_CONFIGURED:
        root_logger = logging.getLogger()
        root_logger.setLevel(getattr(logging, level.upper()))
        return

    if log_format is None:
        log_format = DEFAULT_FORMAT if include_timestamp else SHORT_FORMAT

    formatter: logging.Formatter
    if use_json:
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(log_format)
    context_filter = RequestContextFilter()

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    # Remove any existing handlers to prevent duplicates
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(context_filter)
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=max_bytes,
            backupCount=backup_count
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        file_handler.addFilter(context_filter)
        root_logger.addHandler(file_handler)

        root_logger.info(f"Logging to file: {log_path}")

    # Chatty third-party loggers
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("werkzeug").setLevel(logging.WARNING)

    _LOGGING_CONFIGURED = True

    root_logger.info(f"Logging configured at {level} level")


def reset_logging_config() -> None:
    """
    Reset logging configuration.

    Primarily useful in tests; production code configures logging once.
    """
    global _LOGGING_CONFIGURED

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    _LOGGING_CONFIGURED = False


def is_logging_configured() -> bool:
    return _LOGGING_CONFIGURED


def configure_cli_logging(verbose: bool = False, quiet: bool = False) -> None:
    """
    Configure logging for CLI usage.

    Args:
        verbose: Enable DEBUG level logging
        quiet: Only show WARNING and above
    """
    if quiet:
        level = 'WARNING'
    elif verbose:
        level = 'DEBUG'
    else:
        level = 'INFO'

    setup_logging(
        level=level,
        include_timestamp=verbose
    )
