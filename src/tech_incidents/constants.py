"""
Shared constants for the Tech Incidents catalog.
"""

# Severity ordinal used for sorting. Anything not listed is "Unknown".
SEVERITY_LEVELS = ("Low", "Moderate", "High", "Critical")
SEVERITY_ORDER = {name: rank for rank, name in enumerate(SEVERITY_LEVELS, start=1)}

UNKNOWN_LABEL = "Unknown"
ALL_SENTINEL = "all"

DEFAULT_SORT = "year-desc"

# Backend relay
DEFAULT_REQUEST_TIMEOUT_SECONDS = 10
BACKEND_FUNCTIONS_PATH = "/functions/v1"
INCIDENTS_FUNCTION = "tech-incidents"

# Uploads
DEFAULT_MAX_IMAGE_SIZE_MB = 5
ALLOWED_IMAGE_TYPES = frozenset({
    "image/png",
    "image/jpeg",
    "image/gif",
    "image/webp",
})

# Session cookies
ACCESS_TOKEN_COOKIE = "sb-access-token"
REFRESH_TOKEN_COOKIE = "sb-refresh-token"
ACCESS_TOKEN_MAX_AGE = 3600
REFRESH_TOKEN_MAX_AGE = 7776000

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Authorization, Content-Type",
}

# Form validation bounds
MIN_INCIDENT_DATE = (1980, 1, 1)
MAX_INCIDENT_DATE = (2029, 12, 31)
MIN_PASSWORD_LENGTH = 8

VALID_ENVIRONMENTS = ("development", "test", "production")
