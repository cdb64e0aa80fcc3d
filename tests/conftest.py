"""Shared pytest fixtures for testing."""

import os
from datetime import date, time
from decimal import Decimal

import pytest

# Set test environment before the package reads its settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENFORCE_AVAILABILITY_ON_BOOKING"] = "true"
os.environ["JWT_SECRET_KEY"] = "test-secret"

from fastapi.testclient import TestClient  # noqa: E402

from studio_scheduler.config import database  # noqa: E402
from studio_scheduler.models import (  # noqa: E402
    AvailabilityRule,
    Base,
    Client,
    Location,
    Service,
    ServiceBuffer,
    Studio,
    TeamMember,
)
from studio_scheduler.services.appointment.appointment_service import AppointmentService  # noqa: E402
from studio_scheduler.services.store.scheduling_store import SqlAlchemySchedulingStore  # noqa: E402

# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def db():
    """Fresh in-memory schema per test."""
    Base.metadata.create_all(bind=database.engine)
    session = database.SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=database.engine)


@pytest.fixture
def store(db):
    return SqlAlchemySchedulingStore(db)


@pytest.fixture
def appointment_service(store):
    return AppointmentService(store)


# =============================================================================
# Test Data Fixtures
# =============================================================================


@pytest.fixture
def studio(db):
    studio = Studio(name="Glow Studio", timezone="Europe/Berlin")
    db.add(studio)
    db.commit()
    return studio


@pytest.fixture
def location(db, studio):
    location = Location(studio_id=studio.id, name="Main Street", address="1 Main Street", is_primary=True)
    db.add(location)
    db.commit()
    return location


@pytest.fixture
def second_location(db, studio):
    location = Location(studio_id=studio.id, name="Harbour", address="9 Quay Road")
    db.add(location)
    db.commit()
    return location


@pytest.fixture
def team_member(db, studio):
    member = TeamMember(studio_id=studio.id, first_name="Ana", last_name="Silva", calendar_color="#7c3aed")
    db.add(member)
    db.commit()
    return member


@pytest.fixture
def haircut(db, studio):
    service = Service(studio_id=studio.id, name="Haircut", duration=60, price=Decimal("50.00"))
    db.add(service)
    db.commit()
    return service


@pytest.fixture
def trim(db, studio):
    service = Service(studio_id=studio.id, name="Fringe trim", duration=30, price=Decimal("20.00"))
    db.add(service)
    db.commit()
    return service


@pytest.fixture
def client_record(db, studio):
    client = Client(studio_id=studio.id, first_name="Maya", last_name="Lind", phone="+4915112345678")
    db.add(client)
    db.commit()
    return client


@pytest.fixture
def working_hours(db, studio, team_member):
    """Team member works 09:00-17:00, Monday to Friday."""
    rules = [
        AvailabilityRule(
            studio_id=studio.id,
            team_member_id=team_member.id,
            day_of_week=day,
            start_time=time(9, 0),
            end_time=time(17, 0),
            effective_from=date(2025, 1, 1),
        )
        for day in range(1, 6)
    ]
    db.add_all(rules)
    db.commit()
    return rules


@pytest.fixture
def make_buffer(db):
    """Attach setup/cleanup/travel minutes to a service."""
    def _make(service, setup=0, cleanup=0, travel=0):
        buffer = ServiceBuffer(service_id=service.id, setup_time=setup, cleanup_time=cleanup, travel_time=travel)
        db.add(buffer)
        db.commit()
        return buffer
    return _make


# =============================================================================
# API Fixtures
# =============================================================================


@pytest.fixture
def api_client(db, studio):
    """Authenticated test client bound to the test session."""
    from studio_scheduler.api.dependencies import create_access_token
    from studio_scheduler.main import create_app

    app = create_app()

    def override_get_db():
        yield db

    app.dependency_overrides[database.get_db] = override_get_db

    token = create_access_token({"sub": "user-123", "studio_id": str(studio.id)})
    with TestClient(app) as test_client:
        test_client.headers["Authorization"] = f"Bearer {token}"
        yield test_client
