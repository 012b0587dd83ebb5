"""API test fixtures — the real app over ASGI with a fresh store per test."""

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from vigil.dependencies import get_event_bus, get_exporter, get_incident_store, reset_singletons
from vigil.engine.incident_store import IncidentStore
from vigil.export.exporter import IncidentExporter
from vigil.main import app
from vigil.utils.event_bus import EventBus


@pytest_asyncio.fixture
async def event_bus():
    return EventBus()


@pytest_asyncio.fixture
async def api_store(clock, event_bus):
    return IncidentStore(event_bus=event_bus, clock=clock)


@pytest_asyncio.fixture
async def client(api_store, event_bus, tmp_path):
    """Async HTTP client; the lifespan is not run, so nothing is seeded."""
    app.dependency_overrides[get_incident_store] = lambda: api_store
    app.dependency_overrides[get_event_bus] = lambda: event_bus
    app.dependency_overrides[get_exporter] = lambda: IncidentExporter(export_dir=str(tmp_path))

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    reset_singletons()


@pytest_asyncio.fixture
async def created_incident(client):
    resp = await client.post("/api/v1/incidents/", json={
        "title": "Credential stuffing against VPN",
        "description": "Spike of failed logins from a residential proxy pool",
        "category": "Unauthorized",
        "severity": "High",
        "reported_by": "soc-analyst",
        "affected_systems": ["vpn-gw-01"],
        "indicators": ["198.51.100.7"],
        "tags": ["vpn", "credentials"],
    })
    assert resp.status_code == 201
    return resp.json()
