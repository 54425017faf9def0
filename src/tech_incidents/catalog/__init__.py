"""
Incident catalog: storage, filtering, navigation and era themes.
"""

from .store import IncidentStore, group_by_decade, group_by_year
from .filtering import (
    FilterCriteria,
    apply_filters,
    filter_incidents,
    sort_incidents,
)
from .navigation import NavigationState, NavigationView, ViewLevel
from .slugs import generate_slug, find_incident_by_slug, index_of_slug
from .themes import DecadeTheme, resolve_theme, decade_label

__all__ = [
    "IncidentStore",
    "group_by_decade",
    "group_by_year",
    "FilterCriteria",
    "apply_filters",
    "filter_incidents",
    "sort_incidents",
    "NavigationState",
    "NavigationView",
    "ViewLevel",
    "generate_slug",
    "find_incident_by_slug",
    "index_of_slug",
    "DecadeTheme",
    "resolve_theme",
    "decade_label",
]
