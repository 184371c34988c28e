"""Shared fixtures for the campaign dashboard tests."""

import pytest
from fastapi.testclient import TestClient

from campaign_api.main import app, get_store
from campaign_core.options import IngestSettings
from campaign_core.state import DashboardStore, initial_state


SCENARIO_A = "title\nheader\nDeptA;100;50;50\nDeptB;200;150;50"


@pytest.fixture
def scenario_a_text():
    return SCENARIO_A


@pytest.fixture
def state():
    return initial_state()


@pytest.fixture
def store():
    return DashboardStore()


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def lenient_client():
    """Client whose store keeps unparseable numbers as NaN."""
    lenient = DashboardStore(settings=IngestSettings(strict_numbers=False))
    app.dependency_overrides[get_store] = lambda: lenient
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
