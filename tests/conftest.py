"""Shared fixtures for the billing backend tests.

Provides SQLite engines and sessions, recording notification/audit
collaborators, wired billing services, job factories and a FastAPI
TestClient with a signed bearer token.
"""

import os
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Iterable, List, Optional, Tuple

# Point the application at an in-memory database BEFORE importing modules
# that build the default engine at import time.
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from config import BillingSettings, get_settings
from database import create_db_engine, create_session_factory, get_session
from dependencies import get_invoice_service, get_payment_ledger
from models import Base, Customer, Job, JobCharge, JobStatus
from services.invoice_service import InvoiceService
from services.locks import InvoiceLockRegistry
from services.notification_service import NotificationEvent
from services.number_allocator import InMemoryNumberAllocator
from services.payment_ledger import PaymentLedger

TEST_JWT_SECRET = "test-secret-key-for-billing-tests"
FIXED_NOW = datetime(2026, 3, 1, 9, 30, 0)


# ---------------------------------------------------------------------------
# Recording collaborators
# ---------------------------------------------------------------------------


class RecordingNotifier:
    """Notifier that keeps every event; optionally fails on send."""

    def __init__(self, fail: bool = False) -> None:
        self.events: List[NotificationEvent] = []
        self.fail = fail

    def send(self, event: NotificationEvent) -> None:
        if self.fail:
            raise RuntimeError("notification service unavailable")
        self.events.append(event)

    def types(self) -> List[str]:
        return [event.type.value for event in self.events]


class RecordingAuditSink:
    """Audit sink that keeps every event; optionally fails on record."""

    def __init__(self, fail: bool = False) -> None:
        self.events: List[Any] = []
        self.fail = fail

    def record(self, event: Any) -> None:
        if self.fail:
            raise RuntimeError("audit sink unavailable")
        self.events.append(event)

    def actions(self) -> List[str]:
        return [event.action for event in self.events]


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def engine():
    """In-memory SQLite shared by every session of the test."""
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def file_engine(tmp_path):
    """File-backed SQLite for tests that use one connection per thread."""
    eng = create_db_engine(f"sqlite:///{tmp_path / 'billing.db'}")
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def file_session_factory(file_engine):
    return create_session_factory(file_engine)


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


@pytest.fixture()
def settings() -> BillingSettings:
    return BillingSettings(
        jwt_secret=TEST_JWT_SECRET,
        lock_timeout_seconds=5.0,
        company_name="CargoClear Test Co",
    )


@pytest.fixture()
def allocator() -> InMemoryNumberAllocator:
    return InMemoryNumberAllocator(clock=lambda: datetime(2026, 3, 1, tzinfo=timezone.utc))


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def audit_sink() -> RecordingAuditSink:
    return RecordingAuditSink()


@pytest.fixture()
def locks() -> InvoiceLockRegistry:
    return InvoiceLockRegistry()


@pytest.fixture()
def invoice_service(allocator, notifier, audit_sink, settings, locks) -> InvoiceService:
    return InvoiceService(
        allocator=allocator,
        notifier=notifier,
        audit_sink=audit_sink,
        settings=settings,
        locks=locks,
    )


@pytest.fixture()
def payment_ledger(allocator, notifier, audit_sink, settings, locks) -> PaymentLedger:
    return PaymentLedger(
        allocator=allocator,
        notifier=notifier,
        audit_sink=audit_sink,
        settings=settings,
        locks=locks,
    )


# ---------------------------------------------------------------------------
# Data factories
# ---------------------------------------------------------------------------


def _create_job(
    session,
    charges: Iterable[Tuple[Any, Any]],
    email: Optional[str] = "billing@harbor-imports.test",
    job_number: Optional[str] = None,
    status: JobStatus = JobStatus.OPEN,
) -> Job:
    customer = Customer(name="Harbor Imports Ltd", email=email)
    session.add(customer)
    session.flush()

    job = Job(
        job_number=job_number or f"JOB-{customer.id:05d}",
        customer_id=customer.id,
        status=status,
    )
    for index, (amount, tax) in enumerate(charges):
        job.charges.append(
            JobCharge(
                fee_id=f"FEE-{index + 1}",
                fee_name=f"Fee {index + 1}",
                amount=Decimal(str(amount)),
                tax_amount=Decimal(str(tax)),
            )
        )
    session.add(job)
    session.commit()
    return job


@pytest.fixture()
def make_job(db) -> Callable[..., Job]:
    """Factory: persist a customer and a job with ``(amount, tax)`` charges."""

    def _make(charges: Iterable[Tuple[Any, Any]] = ((100, 5),), **kwargs: Any) -> Job:
        return _create_job(db, charges, **kwargs)

    return _make


@pytest.fixture()
def make_invoice(db, make_job, invoice_service) -> Callable[..., Any]:
    """Factory: persisted DRAFT invoice for a fresh job."""

    def _make(charges: Iterable[Tuple[Any, Any]] = ((100, 5),), **kwargs: Any):
        job = make_job(charges, **kwargs)
        return invoice_service.generate_invoice(db, job, now=FIXED_NOW)

    return _make


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------


def make_token(role: str = "ADMIN", sub: str = "tester@cargoclear.test") -> str:
    return jwt.encode({"sub": sub, "role": role}, TEST_JWT_SECRET, algorithm="HS256")


def auth_headers(role: str = "ADMIN") -> dict:
    return {"Authorization": f"Bearer {make_token(role)}"}


@pytest.fixture()
def client(session_factory, settings, invoice_service, payment_ledger):
    """TestClient with the database and services swapped for test ones."""
    from main import create_app

    app = create_app()

    def _get_session():
        session = session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    app.dependency_overrides[get_session] = _get_session
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_invoice_service] = lambda: invoice_service
    app.dependency_overrides[get_payment_ledger] = lambda: payment_ledger

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def create_job() -> Callable[..., Job]:
    """Factory taking an explicit session, for tests on the file-backed engine."""
    return _create_job
