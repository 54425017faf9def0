"""
Decade themes for incident detail views.

Each incident is shown in a skin matching the era it happened in. The
skin is picked from a fixed table keyed by decade range; callers resolve
it once per render with :func:`resolve_theme`.
"""
from dataclasses import dataclass
from typing import Dict, Optional, Tuple, Union

from ..models import Incident
from ..dates import get_year


@dataclass(frozen=True)
class DecadeTheme:
    """
    One era's look.

    Attributes:
        name: Decade label, e.g. "1990s" ("default" when undated)
        window_class: CSS class of the detail window
        detail_window: Name of the detail-window skin
        first_year: First year covered (inclusive)
        last_year: Last year covered (inclusive), None for open-ended
    """
    name: str
    window_class: str
    detail_window: str
    first_year: Optional[int] = None
    last_year: Optional[int] = None

    def covers(self, year: int) -> bool:
        if self.first_year is None or year < self.first_year:
            return False
        return self.last_year is None or year <= self.last_year

    def to_dict(self) -> Dict[str, Optional[Union[str, int]]]:
        return {
            "name": self.name,
            "window_class": self.window_class,
            "detail_window": self.detail_window,
        }


DEFAULT_THEME = DecadeTheme("default", "default", "Win98DetailsWindow")

DECADE_THEMES: Tuple[DecadeTheme, ...] = (
    DecadeTheme("1980s", "eighties", "MacintoshDetailsWindow", 1980, 1989),
    DecadeTheme("1990s", "nineties", "Win98DetailsWindow", 1990, 1999),
    DecadeTheme("2000s", "two_thousands", "AeroDetailsWindow", 2000, 2009),
    DecadeTheme("2010s", "twenty_tens", "MaterialDetailsWindow", 2010, 2019),
    DecadeTheme("2020s", "twenty_twenties", "GlassmorphicDetailsWindow", 2020, None),
)


def theme_for_year(year: Optional[int]) -> DecadeTheme:
    """Theme covering ``year``; the default theme for None or pre-1980 years."""
    if year is None:
        return DEFAULT_THEME
    for theme in DECADE_THEMES:
        if theme.covers(year):
            return theme
    return DEFAULT_THEME


def resolve_theme(incident: Optional[Union[Incident, str]]) -> DecadeTheme:
    """Theme for an incident (or a bare date string)."""
    if incident is None:
        return DEFAULT_THEME
    if isinstance(incident, Incident):
        return theme_for_year(incident.year)
    return theme_for_year(get_year(incident))


def decade_label(incident: Optional[Incident]) -> str:
    """
    Human label for an incident's decade.

    Example:
        >>> decade_label(Incident(id=1, name="Y2K", incident_date="1999-12-31"))
        '1990s'
    """
    if incident is None or incident.decade is None:
        return "Unknown Decade"
    return f"{incident.decade}s"
