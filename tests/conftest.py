"""Pytest configuration and fixtures."""

import os
import tempfile
from datetime import datetime, timedelta, timezone

# Settings are read at import time, so the environment must be ready first
_tmp_dir = tempfile.mkdtemp(prefix="halalchain-tests-")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["ADMIN_ADDRESS"] = "0xADMIN"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["STATIC_DIR"] = os.path.join(_tmp_dir, "static")
os.environ["LOG_FILE"] = os.path.join(_tmp_dir, "logs", "test.log")
os.environ["LEDGER_LOG_FILE"] = os.path.join(_tmp_dir, "logs", "ledger_events.log")
os.environ["PUBLIC_URL"] = "http://trace.test"

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from halalchain.core.notifications import NotificationBus
from halalchain.db.core import create_db_and_tables
from halalchain.services.lifecycle import LifecycleEngine


ADMIN = "0xADMIN"
PRODUCER = "0xA"
HALAL = "0xH"
DISTRIBUTOR = "0xD"
RETAILER = "0xR"
PRODUCER_2 = "0xP2"
NOBODY = "0xN"


class StepClock:
    """Deterministic commit timestamps, one second apart."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)):
        self.current = start
        self.readings = []

    def __call__(self) -> datetime:
        self.current = self.current + timedelta(seconds=1)
        self.readings.append(self.current)
        return self.current


@pytest.fixture
def db_engine():
    """Fresh in-memory database shared across threads."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_db_and_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(db_engine):
    with Session(db_engine) as session:
        yield session


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def received():
    """Notifications delivered to a subscriber, in delivery order."""
    return []


@pytest.fixture
def notification_bus(received) -> NotificationBus:
    bus = NotificationBus()
    bus.subscribe(received.append)
    return bus


@pytest.fixture
def ledger(session, clock, notification_bus) -> LifecycleEngine:
    """An initialized ledger administered by ADMIN, with no roles granted."""
    engine = LifecycleEngine(session, clock=clock, notifications=notification_bus)
    engine.initialize(ADMIN)
    return engine


@pytest.fixture
def staffed_ledger(ledger, received) -> LifecycleEngine:
    """Ledger with one participant per role and a second producer."""
    ledger.assign_role("producer", PRODUCER, caller=ADMIN)
    ledger.assign_role("halal_authority", HALAL, caller=ADMIN)
    ledger.assign_role("distributor", DISTRIBUTOR, caller=ADMIN)
    ledger.assign_role("retailer", RETAILER, caller=ADMIN)
    ledger.assign_role("producer", PRODUCER_2, caller=ADMIN)
    received.clear()
    return ledger
