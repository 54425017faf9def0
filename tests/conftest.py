"""
Shared fixtures for the test suite.
"""
import copy
from unittest.mock import create_autospec

import pytest

from tech_incidents.backend.client import BackendClient
from tech_incidents.catalog import IncidentStore
from tech_incidents.config import AppConfig
from tech_incidents.logging_context import clear_context
from tech_incidents.metrics import metrics

SAMPLE_RECORDS = [
    {
        "id": 1,
        "name": "Therac-25 Overdoses",
        "category": "Software",
        "severity": "Critical",
        "incident_date": "1985-06-03",
        "description": "Radiation therapy machine delivered massive overdoses",
        "cause": "Race condition in the control software",
    },
    {
        "id": 2,
        "name": "Morris Worm",
        "category": "Security",
        "severity": "High",
        "incident_date": "1988-11-02",
        "description": "One of the first worms spread across the internet",
    },
    {
        "id": 3,
        "name": "Pentium FDIV Bug",
        "category": "Hardware",
        "severity": "Moderate",
        "incident_date": "1994-10-30",
        "description": "Floating point division returned wrong results",
    },
    {
        "id": 4,
        "name": "Ariane 5 Flight 501",
        "category": "Software",
        "severity": "Critical",
        "incident_date": "1996-06-04",
        "description": "Rocket self-destructed after an integer overflow",
    },
    {
        "id": 5,
        "name": "AOL Outage",
        "category": "Network",
        "severity": "Moderate",
        "incident_date": "1996-08-07",
        "description": "Nineteen hours without email for millions",
    },
    {
        "id": 6,
        "name": "Y2K Bug",
        "category": "Software",
        "severity": "High",
        "incident_date": "1999-12-31",
        "description": "Two-digit years everywhere",
    },
    {
        "id": 7,
        "name": "Northeast Blackout",
        "category": "Hardware",
        "severity": "Critical",
        "incident_date": "2003-08-14",
        "description": "Alarm system failure left 55 million without power",
    },
    {
        "id": 8,
        "name": "Knight Capital Glitch",
        "category": "Software",
        "severity": "High",
        "incident_date": "2012-08-01",
        "description": "Dormant trading code lost $440 million in 45 minutes",
    },
    {
        "id": 9,
        "name": "CrowdStrike Outage",
        "category": "Software",
        "severity": "Critical",
        "incident_date": "2024-07-19",
        "description": "Faulty sensor update crashed Windows machines worldwide",
    },
    {
        "id": 10,
        "name": "Mystery Outage",
        "category": "Network",
        "severity": "Unknown",
        "incident_date": None,
        "description": "Nobody remembers when this happened",
    },
]


@pytest.fixture
def records():
    """A fresh copy of the sample incident records."""
    return copy.deepcopy(SAMPLE_RECORDS)


@pytest.fixture
def store(records):
    return IncidentStore(records)


@pytest.fixture
def app_config():
    return AppConfig(
        backend_url="https://demo.supabase.co",
        backend_anon_key="anon-key",
        environment="test",
    )


@pytest.fixture
def backend(records):
    """Autospecced backend client serving the sample records."""
    client = create_autospec(BackendClient, instance=True)
    client.fetch_incidents.return_value = records
    client.ping.return_value = True
    return client


@pytest.fixture
def app(app_config, backend):
    from tech_incidents.web.app import create_app

    return create_app(config=app_config, backend=backend)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture(autouse=True)
def reset_state():
    """Keep the process-wide metrics and logging context isolated per test."""
    metrics.reset()
    clear_context()
    yield
    metrics.reset()
    clear_context()
