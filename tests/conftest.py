"""Shared test fixtures."""

import os
from datetime import datetime, timedelta, timezone

import pytest

# Keep app imports quiet and side-effect free
os.environ.setdefault("SEED_SAMPLE_DATA", "false")
os.environ.setdefault("LOG_DIR", os.path.join(os.path.dirname(__file__), ".logs"))

from vigil.engine.incident_store import IncidentStore
from vigil.utils.clock import MonotonicClock


class FakeTime:
    """Manually advanced time source for MonotonicClock."""

    def __init__(self, start: datetime | None = None):
        self.current = start or datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current


@pytest.fixture
def fake_time():
    return FakeTime()


@pytest.fixture
def clock(fake_time):
    return MonotonicClock(source=fake_time)


@pytest.fixture
def store(clock):
    """Permissive store, as the service runs by default."""
    return IncidentStore(clock=clock)


@pytest.fixture
def strict_store(clock):
    return IncidentStore(clock=clock, enforce_transitions=True)


@pytest.fixture
def incident_id(store):
    return store.create_incident({
        "title": "Ransomware on file server",
        "description": "Encrypted shares detected on fs-02",
        "category": "Malware",
        "severity": "High",
        "reported_by": "soc-analyst",
        "affected_systems": ["fs-02", "backup-01"],
        "indicators": ["evil.example.com", "45.33.12.9"],
        "tags": ["ransomware", "urgent"],
    })


@pytest.fixture
def responder_id(store):
    return store.add_responder({
        "name": "Dana Lee",
        "email": "dana.lee@example.com",
        "role": "ForensicsAnalyst",
        "skills": ["forensics", "malware_analysis"],
    })
