"""Test fixtures."""

import itertools
import os
from datetime import timedelta

# Set test environment before importing app
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["RATE_LIMIT_ENABLED"] = "true"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from barbershop import models  # noqa: F401
from barbershop.auth import hash_password, token_for_admin, token_for_client
from barbershop.core import utcnow
from barbershop.db import get_session
from barbershop.main import app
from barbershop.models import Admin, Client, Reward, ScannerSettings, Service, ServiceCategory
from barbershop.rate_limiter import reset_rate_limits

PASSWORD = "password123"
PASSWORD_HASH = hash_password(PASSWORD)

_sequence = itertools.count(1)


@pytest.fixture
def engine():
    """In-memory database shared by the test and the app."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def foreign_keys(engine):
    """Turn on SQLite foreign key enforcement, as Postgres would enforce them."""
    with engine.connect() as connection:
        connection.exec_driver_sql("PRAGMA foreign_keys=ON")


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(engine):
    """HTTP client with the session dependency pointed at the test database."""

    def override_get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    reset_rate_limits()

    yield TestClient(app)

    app.dependency_overrides.clear()
    reset_rate_limits()


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_staff(session):
    def _make(role="barber", name=None, email=None, **fields):
        n = next(_sequence)
        staff = Admin(
            username=fields.pop("username", f"{role}{n}"),
            email=email or f"{role}{n}@barbershop.test",
            password_hash=PASSWORD_HASH,
            name=name or f"{role.title()} {n}",
            role=role,
            **fields,
        )
        session.add(staff)
        session.commit()
        session.refresh(staff)
        return staff

    return _make


@pytest.fixture
def make_client(session):
    def _make(first_name="John", last_name=None, phone_number=None, **fields):
        n = next(_sequence)
        customer = Client(
            client_code=fields.pop("client_code", f"C{10000000 + n}"),
            first_name=first_name,
            last_name=last_name or f"Doe{n}",
            phone_number=phone_number or f"555-01{n:04d}",
            password_hash=PASSWORD_HASH,
            **fields,
        )
        session.add(customer)
        session.commit()
        session.refresh(customer)
        return customer

    return _make


@pytest.fixture
def owner(make_staff):
    return make_staff(role="owner", name="Owner User")


@pytest.fixture
def receptionist(make_staff):
    return make_staff(role="receptionist", name="Sarah Williams")


@pytest.fixture
def barber(make_staff):
    return make_staff(role="barber", name="Mike Johnson", join_date=utcnow() - timedelta(days=10))


@pytest.fixture
def customer(make_client):
    return make_client(first_name="Alice", last_name="Smith", phone_number="555-0100")


@pytest.fixture
def owner_headers(owner):
    return auth_headers(token_for_admin(owner))


@pytest.fixture
def receptionist_headers(receptionist):
    return auth_headers(token_for_admin(receptionist))


@pytest.fixture
def barber_headers(barber):
    return auth_headers(token_for_admin(barber))


@pytest.fixture
def customer_headers(customer):
    return auth_headers(token_for_client(customer))


@pytest.fixture
def category(session):
    category = ServiceCategory(name="Haircuts", description="All haircut services", display_order=1)
    session.add(category)
    session.commit()
    session.refresh(category)
    return category


@pytest.fixture
def make_service(session, category):
    def _make(name="Regular Haircut", price=25.0, duration_minutes=30, **fields):
        service = Service(
            name=name,
            description=fields.pop("description", f"{name} service"),
            price=price,
            duration_minutes=duration_minutes,
            category_id=category.id,
            **fields,
        )
        session.add(service)
        session.commit()
        session.refresh(service)
        return service

    return _make


@pytest.fixture
def service(make_service):
    return make_service()


@pytest.fixture
def make_reward(session):
    def _make(name="Free Haircut", visits_required=5, **fields):
        reward = Reward(
            name=name,
            description=fields.pop("description", f"{name} reward"),
            visits_required=visits_required,
            **fields,
        )
        session.add(reward)
        session.commit()
        session.refresh(reward)
        return reward

    return _make


@pytest.fixture
def scanner_on(session, barber):
    """Global scanner enabled for two hours and switched on for the barber."""
    settings = ScannerSettings(
        global_scanner_enabled=True,
        auto_disable_hours=2,
        disabled_until=utcnow() + timedelta(hours=2),
    )
    barber.scanner_enabled = True
    session.add(settings)
    session.add(barber)
    session.commit()
    session.refresh(settings)
    return settings
