"""
Shared pytest fixtures for the field service test suite.

Provides:
    - app: FastAPI application (session-scoped)
    - db: Per-test session on a fresh in-memory SQLite schema
    - client: TestClient whose requests share the test session
    - notifier: RecordingNotifier that keeps emitted NotificationEvents
    - rate_limit_store: in-memory Redis stand-in for the rate limiter (autouse)
    - org / manager / technician / customer: pre-created entities
    - auth: Authorization header factory for a user
    - make_contract / make_job: ORM factories
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["DB_LOG_SLOW_QUERIES"] = "false"
os.environ.pop("CRON_SECRET", None)

from dataclasses import dataclass, field  # noqa: E402
from datetime import date, datetime  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from fieldservice import rate_limiter  # noqa: E402
from fieldservice.auth import create_access_token  # noqa: E402
from fieldservice.database import Base, SessionLocal, engine, get_db  # noqa: E402
from fieldservice.main import app as fastapi_app  # noqa: E402
from fieldservice.models import (  # noqa: E402
    ContractService,
    Customer,
    Organization,
    ServiceAgreement,
    User,
)
from fieldservice.models_job import Job, JobTechnician  # noqa: E402
from fieldservice.services.notification_service import NotificationEvent  # noqa: E402


@dataclass
class RecordingNotifier:
    """Notifier stub that records events instead of writing rows."""

    events: list[NotificationEvent] = field(default_factory=list)

    def notify(self, event: NotificationEvent) -> int:
        self.events.append(event)
        return len(event.recipient_user_ids)

    def of_type(self, notification_type: str) -> list[NotificationEvent]:
        return [event for event in self.events if event.type == notification_type]


class ExplodingNotifier:
    """Notifier stub whose dispatch always fails."""

    def notify(self, event: NotificationEvent) -> int:
        raise RuntimeError("notification backend down")


class InMemoryRedis:
    """The handful of Redis calls the rate limiter makes, kept in a dict."""

    def __init__(self):
        self.store: dict[str, str] = {}

    def get(self, key):
        return self.store.get(key)

    def ttl(self, key):
        return 60 if key in self.store else -2

    def set(self, key, value, ex=None):
        self.store[key] = str(value)

    def pipeline(self):
        return self

    def execute(self):
        return []


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    return fastapi_app


@pytest.fixture
def db():
    """Create all tables, hand out a session, drop everything afterwards."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    yield session
    session.rollback()
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(app, db):
    """TestClient whose requests reuse the test session."""

    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture(autouse=True)
def rate_limit_store(monkeypatch):
    """Fresh rate limit counters per test, backed by InMemoryRedis."""
    store = InMemoryRedis()
    monkeypatch.setattr(rate_limiter, "get_redis_client", lambda: store)
    rate_limiter.memory_cache.clear()
    yield store
    rate_limiter.memory_cache.clear()


# ── Entity fixtures ──────────────────────────────────────────────────────


def _user(db, org, role, email, name, login_code=None):
    user = User(
        organization_id=org.id,
        email=email,
        full_name=name,
        role=role,
        login_code=login_code,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def org(db):
    organization = Organization(name="Acme Mechanical")
    db.add(organization)
    db.commit()
    db.refresh(organization)
    return organization


@pytest.fixture
def other_org(db):
    organization = Organization(name="Other Co")
    db.add(organization)
    db.commit()
    db.refresh(organization)
    return organization


@pytest.fixture
def manager(db, org):
    return _user(db, org, "manager", "manager@acme.test", "Maria Manager", login_code="MGR001")


@pytest.fixture
def dispatcher(db, org):
    return _user(db, org, "dispatcher", "dispatch@acme.test", "Dan Dispatcher")


@pytest.fixture
def technician(db, org):
    return _user(db, org, "technician", "tech@acme.test", "Tina Tech", login_code="TECH01")


@pytest.fixture
def second_technician(db, org):
    return _user(db, org, "technician", "tech2@acme.test", "Tom Tech")


@pytest.fixture
def customer(db, org):
    record = Customer(organization_id=org.id, company_name="Globex Corp", type="commercial")
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


@pytest.fixture
def auth():
    def _header(user):
        return {"Authorization": f"Bearer {create_access_token({'sub': user.id})}"}

    return _header


# ── ORM factories ────────────────────────────────────────────────────────


@pytest.fixture
def make_contract(db, org, customer):
    def _make(
        status="in_progress",
        start_date=date(2024, 1, 1),
        end_date=date(2025, 12, 31),
        services=(("MJPM", 2), ("MNPM", 2)),
        name="Rooftop PM",
        **kwargs,
    ):
        contract = ServiceAgreement(
            organization_id=kwargs.pop("organization_id", org.id),
            customer_id=kwargs.pop("customer_id", customer.id),
            name=name,
            agreement_number=kwargs.pop("agreement_number", None),
            status=status,
            start_date=start_date,
            end_date=end_date,
            **kwargs,
        )
        contract.services = [
            ContractService(
                organization_id=contract.organization_id,
                service_type=service_type,
                frequency_months=frequency,
            )
            for service_type, frequency in services
        ]
        db.add(contract)
        db.commit()
        db.refresh(contract)
        return contract

    return _make


@pytest.fixture
def make_job(db, org, customer):
    def _make(
        status="pending",
        scheduled_start=None,
        contract=None,
        technicians=(),
        title="Quarterly PM",
        **kwargs,
    ):
        job = Job(
            organization_id=kwargs.pop("organization_id", org.id),
            customer_id=kwargs.pop("customer_id", customer.id),
            service_agreement_id=contract.id if contract else None,
            job_number=kwargs.pop("job_number", "JOB-TEST"),
            title=title,
            status=status,
            scheduled_start=scheduled_start,
            completed_at=datetime.utcnow() if status == "completed" else None,
            **kwargs,
        )
        job.technicians = [
            JobTechnician(technician_id=tech.id, status="pending") for tech in technicians
        ]
        db.add(job)
        db.commit()
        db.refresh(job)
        return job

    return _make
