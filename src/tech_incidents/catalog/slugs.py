"""
URL slugs for incident detail pages.
"""
import logging
import re
from typing import Optional, Sequence

from ..models import Incident

logger = logging.getLogger(__name__)

UNKNOWN_SLUG = "unknown"


def generate_slug(name: Optional[str]) -> str:
    """
    Build a slug from the first two words of an incident name.

    Example:
        >>> generate_slug("Database Outage in Production")
        'database-outage'
        >>> generate_slug("Y2K Bug!")
        'y2k-bug'
        >>> generate_slug("")
        'unknown'
    """
    if not name:
        return UNKNOWN_SLUG

    words = str(name).strip().split()
    slug = "-".join(words[:2]).lower()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[\s_-]+", "-", slug)
    slug = slug.strip("-")

    return slug or UNKNOWN_SLUG


def find_incident_by_slug(incidents: Sequence[Incident], slug: str) -> Optional[Incident]:
    """
    Find an incident by slug.

    Tries an exact slug match first, then the first incident whose slug
    starts with the slug's first word.
    """
    if not slug or not incidents:
        return None

    for incident in incidents:
        if generate_slug(incident.name) == slug:
            return incident

    first_word = slug.split("-")[0]
    for incident in incidents:
        if generate_slug(incident.name).startswith(first_word):
            logger.debug(f"Slug '{slug}' resolved by partial match to '{incident.name}'")
            return incident

    return None


def index_of_slug(incidents: Sequence[Incident], slug: str) -> int:
    """Index of the incident matching ``slug``, or -1."""
    incident = find_incident_by_slug(incidents, slug)
    if incident is None:
        return -1
    for index, candidate in enumerate(incidents):
        if str(candidate.id) == str(incident.id):
            return index
    return -1
