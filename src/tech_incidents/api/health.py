"""
Health check API endpoints.

Provides liveness, readiness and version payloads for monitoring.
"""

import time
from typing import Dict, Optional

from ..session import AppState
from ..version import __version__, get_version_info as _version_info

# Track server start time
_start_time = time.time()


def get_health_status() -> Dict:
    """
    Liveness: the process is up and serving.

    Returns:
        Health status dictionary
    """
    uptime = time.time() - _start_time

    return {
        "status": "healthy",
        "uptime_seconds": round(uptime, 2),
        "service": "tech-incidents",
        "version": __version__,
    }


def get_readiness_status(state: Optional[AppState] = None, check_backend: bool = True) -> Dict:
    """
    Readiness: the service can relay requests.

    Requires a configured backend and, when ``check_backend`` is set, a
    backend that answers.

    Returns:
        Readiness status dictionary
    """
    checks = {"config": False, "backend": False}

    if state is not None:
        checks["config"] = state.config.is_backend_configured
        if checks["config"]:
            checks["backend"] = state.backend.ping() if check_backend else True

    is_ready = all(checks.values())

    return {
        "status": "ready" if is_ready else "not_ready",
        "checks": checks
    }


def get_version_info() -> Dict:
    """Version information for the ``/version`` endpoint."""
    info = _version_info()
    return {
        "version": info["version"],
        "api_version": info["api_version"],
        "platform": info["platform"],
    }
