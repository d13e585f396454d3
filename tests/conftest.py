import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session as DbSession, SQLModel, create_engine

from smartpark.cars import CarRegistry
from smartpark.fees import FeeEngine
from smartpark.main import app, get_db, get_fee_engine
from smartpark.models import RECORD_ACTIVE, SLOT_OCCUPIED, ParkingRecord, ParkingSlot
from smartpark.payments import PaymentRecorder
from smartpark.reports import Reporting
from smartpark.sessions import SessionWorkflow
from smartpark.slots import SlotManager
from smartpark.store import EntityStore


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    with DbSession(engine, expire_on_commit=False) as db:
        yield db


@pytest.fixture
def store(db):
    return EntityStore(db)


@pytest.fixture
def cars(store):
    return CarRegistry(store)


@pytest.fixture
def slots(store):
    return SlotManager(store)


@pytest.fixture
def workflow(store, cars, slots):
    return SessionWorkflow(store, cars, slots)


@pytest.fixture
def fees():
    return FeeEngine(rate_per_hour=500, minimum_one_hour=False)


@pytest.fixture
def payments(store, fees):
    return PaymentRecorder(store, fees, enforce_quoted_amount=False)


@pytest.fixture
def reporting(store):
    return Reporting(store)


@pytest.fixture
def client(engine, fees):
    def override_db():
        with DbSession(engine, expire_on_commit=False) as db:
            yield db

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_fee_engine] = lambda: fees
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def check_slots(store):
    """Occupied iff exactly one Active record points at the slot."""
    def check():
        for slot in store.find_by(ParkingSlot):
            active = store.find_by(ParkingRecord, slot_number=slot.slot_number, status=RECORD_ACTIVE)
            if slot.slot_status == SLOT_OCCUPIED:
                assert len(active) == 1, slot.slot_number
            else:
                assert len(active) == 0, slot.slot_number

    return check
