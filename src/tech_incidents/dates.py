"""
Date helpers for incident records.

Incident dates arrive as ISO strings (``1996-06-04`` or full timestamps)
from the backend and as ``DD-MM-YYYY`` from the admin forms. Nothing in
here raises on malformed input: unparseable dates yield None (or an empty
string for display helpers).
"""
import logging
import re
from datetime import date, datetime
from functools import lru_cache
from typing import Optional

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)

_DISPLAY_FORMAT = re.compile(r"^(\d{2})-(\d{2})-(\d{4})$")
_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_HAS_YEAR = re.compile(r"\d{4}")


# Incident lists are re-sorted on every filter change, so the same handful
# of date strings is parsed over and over.
@lru_cache(maxsize=1024)
def _parse_cached(date_str: str) -> Optional[datetime]:
    match = _DISPLAY_FORMAT.match(date_str)
    try:
        if match:
            day, month, year = (int(part) for part in match.groups())
            return datetime(year, month, day)
        return date_parser.parse(date_str)
    except (ValueError, OverflowError, TypeError):
        return None


def parse_incident_date(value) -> Optional[datetime]:
    """
    Parse an incident date without ever raising.

    Args:
        value: ISO string, ``DD-MM-YYYY`` string, date/datetime, or None

    Returns:
        Parsed datetime, or None if missing or malformed

    Example:
        >>> parse_incident_date("1996-06-04").year
        1996
        >>> parse_incident_date("04-06-1996").month
        6
        >>> parse_incident_date("sometime in the 90s") is None
        True
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str):
        return None

    text = value.strip()
    # Without a four-digit year dateutil fills in the current one.
    if not text or not _HAS_YEAR.search(text):
        return None
    return _parse_cached(text)


def get_year(value) -> Optional[int]:
    """Year of an incident date, or None."""
    parsed = parse_incident_date(value)
    return parsed.year if parsed else None


def decade_of(year: Optional[int]) -> Optional[int]:
    """Round a year down to its decade (1996 -> 1990)."""
    if year is None:
        return None
    return (year // 10) * 10


def format_date_for_display(value, separator: str = "-") -> str:
    """
    Format a date as ``DD-MM-YYYY`` for display.

    Already-formatted display strings are returned unchanged; anything that
    cannot be parsed yields an empty string.
    """
    if not value:
        return ""
    if isinstance(value, str) and _DISPLAY_FORMAT.match(value.strip()) and separator == "-":
        return value.strip()

    parsed = parse_incident_date(value)
    if parsed is None:
        logger.warning(f"Invalid date provided for display: {value!r}")
        return ""
    return separator.join(
        [f"{parsed.day:02d}", f"{parsed.month:02d}", f"{parsed.year:04d}"]
    )


def convert_date_for_storage(value: Optional[str]) -> str:
    """
    Convert a ``DD-MM-YYYY`` form date to ``YYYY-MM-DD``.

    ISO dates pass through unchanged; other values are returned as given
    so the backend can reject them.
    """
    if not value:
        return ""
    text = value.strip()
    match = _DISPLAY_FORMAT.match(text)
    if match:
        day, month, year = match.groups()
        return f"{year}-{month}-{day}"
    return text


def format_date_input(raw: str) -> str:
    """
    Insert hyphens into a partially typed date (``0406199`` -> ``04-06-199``).
    """
    if not raw:
        return ""
    digits = re.sub(r"\D", "", raw)
    if len(digits) <= 2:
        return digits
    if len(digits) <= 4:
        return f"{digits[:2]}-{digits[2:]}"
    return f"{digits[:2]}-{digits[2:4]}-{digits[4:8]}"


def is_iso_date(value: str) -> bool:
    return bool(value) and bool(_ISO_DATE.match(value.strip()))
