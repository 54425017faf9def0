"""
Tech Incidents: a decade-themed catalog of technology failures.
"""
from .version import __version__, VERSION_INFO, get_version, get_version_info
from .config import AppConfig
from .models import Incident, Severity, SortKey
from .logging_context import (
    get_logger,
    set_context,
    get_context,
    clear_context,
    LoggingContext,
)
from .metrics import get_metrics_text

__all__ = [
    "__version__",
    "VERSION_INFO",
    "get_version",
    "get_version_info",
    "AppConfig",
    "Incident",
    "Severity",
    "SortKey",
    "get_logger",
    "set_context",
    "get_context",
    "clear_context",
    "LoggingContext",
    "get_metrics_text",
]
