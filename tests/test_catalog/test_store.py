"""
Tests for the incident store and its groupings.
"""
import pytest

from tech_incidents.catalog.store import IncidentStore, coerce_incident, group_by_decade
from tech_incidents.exceptions import IncidentNotFoundError, ValidationError
from tech_incidents.models import Incident


def test_decades(store):
    assert store.decades() == [1980, 1990, 2000, 2010, 2020]


def test_years_in_decade(store):
    assert store.years_in_decade(1990) == [1994, 1996, 1999]
    assert store.years_in_decade(1970) == []


def test_groupings_keep_collection_order(store):
    assert [i.id for i in store.incidents_in_decade(1990)] == [3, 4, 5, 6]
    assert [i.id for i in store.incidents_in_year(1996)] == [4, 5]


def test_undated_left_out_of_groupings(store):
    """Incidents without a date are stored but not grouped."""
    assert len(store) == 10
    assert [i.id for i in store.undated()] == [10]
    assert sum(len(v) for v in store.by_decade.values()) == 9


def test_group_by_decade_boundaries():
    incidents = [
        Incident(id=1, name="a", incident_date="1989-12-31"),
        Incident(id=2, name="b", incident_date="1990-01-01"),
    ]

    assert {k: [i.id for i in v] for k, v in group_by_decade(incidents).items()} == {
        1980: [1],
        1990: [2],
    }


def test_get_and_contains(store):
    assert store.get(3).name == "Pentium FDIV Bug"
    assert store.get("3").name == "Pentium FDIV Bug"
    assert 3 in store
    assert "42" not in store


def test_get_missing(store):
    with pytest.raises(IncidentNotFoundError):
        store.get(42)


def test_find_by_slug(store):
    assert store.find("morris-worm").id == 2
    assert store.find(7).id == 7


def test_find_missing(store):
    with pytest.raises(IncidentNotFoundError):
        store.find("nothing-here")


def test_index_of(store):
    assert store.index_of(1) == 0
    assert store.index_of(99) == -1


def test_duplicate_ids_rejected(records):
    records[1]["id"] = 1

    with pytest.raises(ValidationError, match="Duplicate incident id"):
        IncidentStore(records)


def test_invalid_record_rejected():
    """A record without a name cannot be stored."""
    with pytest.raises(ValidationError, match="position 0"):
        IncidentStore([{"id": 1}])


def test_replace_rebuilds_groupings(store):
    store.replace([{"id": "x", "name": "Solo", "incident_date": "2015-03-03"}])

    assert store.decades() == [2010]
    assert len(store) == 1


def test_coerce_keeps_models():
    incident = Incident(id=1, name="x")

    assert coerce_incident(incident) is incident


def test_to_dicts(store, records):
    data = store.to_dicts()

    assert data[0]["name"] == records[0]["name"]
    assert data[0]["cause"] == records[0]["cause"]
