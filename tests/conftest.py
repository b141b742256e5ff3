"""Shared fixtures: stores of both variants, a controllable clock and a recording notifier."""

# pylint: disable=redefined-outer-name

import datetime
import os
from zoneinfo import ZoneInfo

os.environ.setdefault("DAYCARE_STORE", "memory")

import pytest
from fastapi.testclient import TestClient

from daycare_desk.data.database import build_engine
from daycare_desk.data.memory import InMemoryRecordStore
from daycare_desk.data.store import SqlRecordStore
from daycare_desk.domain.broadcaster import Broadcaster
from daycare_desk.domain.clock import Clock
from daycare_desk.domain.seed import seed_settings
from daycare_desk.domain.services import LifecycleService
from daycare_desk.errors import DependencyError
from daycare_desk.main import create_app
from daycare_desk.security.guard import AccessGuard

MONDAY_MORNING = datetime.datetime(2024, 3, 4, 8, 0, tzinfo=datetime.timezone.utc)


class FakeClock(Clock):
    """Clock that only moves when a test tells it to."""

    def __init__(self, start: datetime.datetime, timezone: str = "UTC"):
        super().__init__(timezone)
        self.current = start

    def now(self) -> datetime.datetime:
        return self.current.astimezone(self.tz)

    def advance(self, **kwargs) -> None:
        self.current += datetime.timedelta(**kwargs)


class RecordingNotifier:
    """Stands in for the webhook notifier and remembers every send."""

    def __init__(self):
        self.calls = []
        self.fail = False

    def send(self, phone: str, message: str, child_name: str) -> None:
        self.calls.append((phone, message, child_name))
        if self.fail:
            raise DependencyError("Notification webhook is unreachable")


@pytest.fixture(params=["memory", "sql"])
def store(request, tmp_path):
    """Every store-backed test runs against both the in-memory and the SQLite store."""
    if request.param == "memory":
        record_store = InMemoryRecordStore()
    else:
        record_store = SqlRecordStore(build_engine(f"sqlite:///{tmp_path / 'daycare.sqlite3'}"))
    record_store.initialize()
    seed_settings(record_store)
    return record_store


@pytest.fixture
def clock():
    return FakeClock(MONDAY_MORNING)


@pytest.fixture
def zoned_clock():
    """Build a clock whose calendar day follows the given timezone."""

    def build(timezone: str, local_start: datetime.datetime) -> FakeClock:
        return FakeClock(local_start.replace(tzinfo=ZoneInfo(timezone)), timezone)

    return build


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def broadcaster():
    return Broadcaster()


@pytest.fixture
def events(broadcaster):
    """List that collects every published event."""
    received = []
    broadcaster.subscribe(received.append)
    return received


@pytest.fixture
def lifecycle(store, clock, broadcaster, notifier):
    service = LifecycleService(store, clock, broadcaster, notifier)
    service.reconcile_day()
    return service


@pytest.fixture
def guard(store):
    return AccessGuard(store, "test-secret", token_expire_minutes=60)


@pytest.fixture
def client(store, clock, notifier, broadcaster):
    app = create_app(store=store, clock=clock, notifier=notifier, broadcaster=broadcaster)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers(client):
    response = client.post("/api/auth/register", json={"username": "frontdesk", "password": "sunshine"})
    assert response.status_code == 201
    return {"Authorization": f"Bearer {response.json()['token']}"}
