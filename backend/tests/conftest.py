"""
Shared pytest fixtures for the clinic status radar tests.
"""
import pytest
from fastapi.testclient import TestClient

from main import app
from models import ProcedureRecord
from seed import seed_data, SEED_REFERENCE_DATE

# Reference day every seeded status assertion is computed against
TODAY = SEED_REFERENCE_DATE


class FakeClock:
    """Manually advanced clock for DurationCache expiry tests."""

    def __init__(self, start: float = 1_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


def make_proc(name, performed, duration=None, patient_id="PX", proc_id=None, **extra) -> ProcedureRecord:
    """Helper: build a ProcedureRecord with only the fields a test cares about."""
    return ProcedureRecord(
        procedureId=proc_id or f"{name}-{performed}",
        patientId=patient_id,
        procedureName=name,
        performedDate=performed,
        effectDurationMonths=duration,
        **extra,
    )


@pytest.fixture
def client():
    """FastAPI TestClient."""
    return TestClient(app)


@pytest.fixture(autouse=True)
def seeded_data(monkeypatch):
    """Reset to seed data and a cold duration cache before each test."""
    monkeypatch.delenv("REFERENCE_DATE", raising=False)
    seed_data()
    app.state.duration_cache.invalidate()
    yield
    app.state.duration_cache.invalidate()


@pytest.fixture
def fake_clock():
    return FakeClock()
