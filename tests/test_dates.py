"""
Tests for incident date helpers.
"""
from datetime import date, datetime

import pytest

from tech_incidents.dates import (
    convert_date_for_storage,
    decade_of,
    format_date_for_display,
    format_date_input,
    get_year,
    is_iso_date,
    parse_incident_date,
)


@pytest.mark.parametrize("value,expected", [
    ("1996-06-04", datetime(1996, 6, 4)),
    ("04-06-1996", datetime(1996, 6, 4)),
    (date(1999, 12, 31), datetime(1999, 12, 31)),
])
def test_parse_valid_dates(value, expected):
    """ISO, form and date values all parse."""
    assert parse_incident_date(value) == expected


@pytest.mark.parametrize("value", [None, "", "   ", "garbage", "31-02-1999", "June", 1996])
def test_parse_invalid_dates_return_none(value):
    """Malformed input yields None instead of raising."""
    assert parse_incident_date(value) is None


def test_get_year():
    assert get_year("2024-07-19") == 2024
    assert get_year(None) is None


def test_decade_of():
    assert decade_of(1996) == 1990
    assert decade_of(2000) == 2000
    assert decade_of(None) is None


def test_format_date_for_display():
    assert format_date_for_display("1996-06-04") == "04-06-1996"
    assert format_date_for_display("1996-06-04", separator="/") == "04/06/1996"


def test_format_date_for_display_passthrough():
    """Already formatted dates are returned unchanged."""
    assert format_date_for_display("04-06-1996") == "04-06-1996"


def test_format_date_for_display_invalid():
    assert format_date_for_display("nonsense") == ""
    assert format_date_for_display(None) == ""


def test_convert_date_for_storage():
    assert convert_date_for_storage("04-06-1996") == "1996-06-04"
    assert convert_date_for_storage("1996-06-04") == "1996-06-04"
    assert convert_date_for_storage("") == ""


def test_convert_date_for_storage_leaves_unknown_formats():
    """Unrecognized formats pass through for the backend to reject."""
    assert convert_date_for_storage("June 1996") == "June 1996"


@pytest.mark.parametrize("raw,expected", [
    ("04", "04"),
    ("0406", "04-06"),
    ("0406199", "04-06-199"),
    ("04061996", "04-06-1996"),
    ("04/06/1996", "04-06-1996"),
])
def test_format_date_input(raw, expected):
    assert format_date_input(raw) == expected


def test_is_iso_date():
    assert is_iso_date("1996-06-04")
    assert not is_iso_date("04-06-1996")
    assert not is_iso_date("")
