import pytest
from fastapi.testclient import TestClient

from backend import main
from tests.helpers import sample_flights


@pytest.fixture
def app_client(monkeypatch):
    """App running with in-memory storage, no provider key and a seeded catalog."""
    monkeypatch.setattr(main, "DATABASE_URL", "")
    monkeypatch.setattr(main, "REDIS_URL", "")
    monkeypatch.setattr(main, "AVIATIONSTACK_API_KEY", "")
    monkeypatch.setattr(main, "POLL_INTERVAL_SECONDS", 3600)

    with TestClient(main.app) as client:
        main.catalog.replace(sample_flights())
        yield client


@pytest.fixture
def empty_app_client(monkeypatch):
    monkeypatch.setattr(main, "DATABASE_URL", "")
    monkeypatch.setattr(main, "REDIS_URL", "")
    monkeypatch.setattr(main, "AVIATIONSTACK_API_KEY", "")
    monkeypatch.setattr(main, "POLL_INTERVAL_SECONDS", 3600)

    with TestClient(main.app) as client:
        yield client

