"""
EduRegister - Test Configuration and Fixtures
"""
import os
import itertools
from datetime import datetime, timedelta, timezone

import pytest
from faker import Faker

# Keep the app off the on-disk database
os.environ.setdefault('DATABASE_URL', 'sqlite://')

from fastapi.testclient import TestClient

from app.main import app
from app.models.student import StudentForm
from app.routes.students import get_registration_service
from app.services.record_store import InMemoryBackend, RecordStore
from app.services.registration import RegistrationService

fake = Faker()

START_TIME = datetime(2026, 10, 17, 9, 30, tzinfo=timezone.utc)


class FixedClock:
    """Clock returning a pinned time that tests move forward explicitly."""

    def __init__(self, now: datetime = START_TIME):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def id_sequence():
    """Deterministic ids: S001, S002, ..."""
    counter = itertools.count(1)
    return lambda: f"S{next(counter):03d}"


@pytest.fixture
def backend() -> InMemoryBackend:
    return InMemoryBackend()


@pytest.fixture
def store(backend) -> RecordStore:
    return RecordStore(backend)


@pytest.fixture
def service(store, clock, id_sequence) -> RegistrationService:
    return RegistrationService(store, clock=clock, id_generator=id_sequence)


@pytest.fixture
def client(service):
    """Test client whose routes share the in-memory service"""
    app.dependency_overrides[get_registration_service] = lambda: service
    with TestClient(app) as tc:
        yield tc
    app.dependency_overrides.clear()


@pytest.fixture
def make_form():
    """Factory for valid forms; keyword overrides use snake_case names."""
    counter = itertools.count(1)

    def factory(**overrides) -> StudentForm:
        n = next(counter)
        values = {
            "first_name": fake.first_name(),
            "last_name": fake.last_name(),
            "email": f"student{n}@college.edu",
            "phone": f"98765{n:05d}",
            "dob": "2005-04-12",
            "gender": "Female",
            "course": "B.Tech",
            "year": "1st Year",
            "roll_no": f"RN{n:04d}",
            "admission_date": "2026-07-01",
            "address": fake.street_address(),
            "guardian_name": fake.name(),
            "guardian_phone": "9123456780",
        }
        values.update(overrides)
        return StudentForm(**values)

    return factory


@pytest.fixture
def form_payload(make_form):
    """Same as make_form but as the camelCase JSON body the API takes."""
    def factory(**overrides) -> dict:
        return make_form(**overrides).model_dump(by_alias=True)
    return factory
