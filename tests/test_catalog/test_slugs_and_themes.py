"""
Tests for incident slugs and decade themes.
"""
import pytest

from tech_incidents.catalog.slugs import find_incident_by_slug, generate_slug, index_of_slug
from tech_incidents.catalog.themes import (
    DEFAULT_THEME,
    decade_label,
    resolve_theme,
    theme_for_year,
)
from tech_incidents.models import Incident


@pytest.mark.parametrize("name,slug", [
    ("Ariane 5 Flight 501", "ariane-5"),
    ("Pentium FDIV Bug", "pentium-fdiv"),
    ("Y2K Bug!", "y2k-bug"),
    ("Therac-25 Overdoses", "therac-25-overdoses"),
    ("  Morris   Worm  ", "morris-worm"),
    ("", "unknown"),
    (None, "unknown"),
    ("!!!", "unknown"),
])
def test_generate_slug(name, slug):
    assert generate_slug(name) == slug


def test_find_exact_slug(store):
    assert find_incident_by_slug(store.incidents, "knight-capital").id == 8


def test_find_partial_slug(store):
    """Only the first word has to match when no exact slug exists."""
    assert find_incident_by_slug(store.incidents, "ariane-rocket").id == 4


def test_find_missing_slug(store):
    assert find_incident_by_slug(store.incidents, "zebra-crossing") is None
    assert find_incident_by_slug(store.incidents, "") is None
    assert find_incident_by_slug([], "y2k-bug") is None


def test_index_of_slug(store):
    assert index_of_slug(store.incidents, "y2k-bug") == 5
    assert index_of_slug(store.incidents, "zebra") == -1


@pytest.mark.parametrize("year,name", [
    (1980, "1980s"),
    (1989, "1980s"),
    (1996, "1990s"),
    (2003, "2000s"),
    (2012, "2010s"),
    (2024, "2020s"),
    (2031, "2020s"),
])
def test_theme_for_year(year, name):
    assert theme_for_year(year).name == name


def test_default_theme():
    assert theme_for_year(None) is DEFAULT_THEME
    assert theme_for_year(1975) is DEFAULT_THEME


def test_resolve_theme():
    incident = Incident(id=1, name="x", incident_date="1985-06-03")

    assert resolve_theme(incident).detail_window == "MacintoshDetailsWindow"
    assert resolve_theme("2012-08-01").window_class == "twenty_tens"
    assert resolve_theme(None) is DEFAULT_THEME
    assert resolve_theme(Incident(id=2, name="y")) is DEFAULT_THEME


def test_theme_to_dict():
    assert theme_for_year(1999).to_dict() == {
        "name": "1990s",
        "window_class": "nineties",
        "detail_window": "Win98DetailsWindow",
    }


def test_decade_label():
    assert decade_label(Incident(id=1, name="x", incident_date="1999-12-31")) == "1990s"
    assert decade_label(Incident(id=1, name="x")) == "Unknown Decade"
    assert decade_label(None) == "Unknown Decade"
