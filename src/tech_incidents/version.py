"""
Version information for the Tech Incidents catalog.

Single source of truth for version information across the codebase.
"""

__version__ = "1.2.0"

VERSION_INFO = {
    "version": __version__,
    "api_version": "v1",
    "platform": "tech-incidents",
    "name": "Tech Incidents",
    "full_name": "Tech Incidents - a museum of technology failures",
}


def get_version() -> str:
    """Return the current version string."""
    return __version__


def get_version_info() -> dict:
    """Return detailed version information."""
    return VERSION_INFO.copy()
