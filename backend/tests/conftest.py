# backend/tests/conftest.py
"""
Pytest configuration for PawLedger.

Every test gets a fresh in-memory SQLite database with the reference data
seeded. Concurrency tests use a file-backed database instead, because each
thread needs its own connection to the same data.
"""

import os

# Set before any pawledger import so Settings picks them up
os.environ.setdefault("PAWLEDGER_ENVIRONMENT", "test")
os.environ.setdefault("PAWLEDGER_DATABASE_URL", "sqlite://")

from datetime import date, timedelta
from typing import Callable, Dict, Iterator, List, Optional, Sequence

from fastapi.testclient import TestClient
import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from pawledger import models  # noqa: F401
from pawledger.api.dependencies.database import get_db
from pawledger.core.enums import BookingStatus, ServiceName, SizeCategory, WalletTransactionType
from pawledger.database import Base, build_engine
from pawledger.init_db import seed_reference_data
from pawledger.main import app
from pawledger.models.booking import Booking, BookingDog
from pawledger.models.customer import Customer, Dog, StaffUser
from pawledger.models.service_type import ServiceType
from pawledger.repositories.wallet_repository import WalletRepository
from pawledger.services.ledger_service import LedgerService


def _enable_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)


# ============================================================================
# Database
# ============================================================================


@pytest.fixture
def test_engine() -> Iterator[Engine]:
    """In-memory database shared by every thread of one test (TestClient included)."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine, "connect", _enable_foreign_keys)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(test_engine: Engine) -> Iterator[Session]:
    session = _make_session_factory(test_engine)()
    seed_reference_data(session)
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def file_session_factory(tmp_path) -> Iterator[sessionmaker]:
    """File-backed database for tests that run real threads."""
    engine = build_engine(f"sqlite:///{tmp_path / 'pawledger_concurrency.db'}")
    Base.metadata.create_all(bind=engine)
    factory = _make_session_factory(engine)
    session = factory()
    try:
        seed_reference_data(session)
    finally:
        session.close()
    yield factory
    engine.dispose()


@pytest.fixture
def client(db: Session) -> Iterator[TestClient]:
    """Create a test client bound to the test database session."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    test_client = TestClient(app)
    yield test_client
    app.dependency_overrides.clear()
    test_client.close()


# ============================================================================
# Reference data
# ============================================================================


def _services(db: Session) -> Dict[ServiceName, ServiceType]:
    return {service.name: service for service in db.query(ServiceType).all()}


@pytest.fixture
def daycare(db: Session) -> ServiceType:
    return _services(db)[ServiceName.DAYCARE]


@pytest.fixture
def boarding(db: Session) -> ServiceType:
    return _services(db)[ServiceName.BOARDING]


@pytest.fixture
def grooming(db: Session) -> ServiceType:
    return _services(db)[ServiceName.GROOMING]


@pytest.fixture
def booking_day() -> date:
    return date.today() + timedelta(days=14)


# ============================================================================
# People
# ============================================================================


def create_customer(
    db: Session,
    email: str,
    dogs: Sequence[tuple] = (),
    first_name: str = "Jamie",
    last_name: str = "Rivera",
) -> Customer:
    """Create a customer with ``dogs`` given as ``(name, size)`` pairs."""
    customer = Customer(first_name=first_name, last_name=last_name, email=email, phone="5550100")
    db.add(customer)
    db.flush()
    for name, size in dogs:
        db.add(Dog(customer_id=customer.id, name=name, breed="Mixed", size_category=size))
    db.commit()
    db.refresh(customer)
    return customer


@pytest.fixture
def customer(db: Session) -> Customer:
    return create_customer(
        db,
        "jamie@example.com",
        dogs=[("Rex", SizeCategory.MEDIUM), ("Bella", SizeCategory.SMALL)],
    )


@pytest.fixture
def other_customer(db: Session) -> Customer:
    return create_customer(
        db,
        "morgan@example.com",
        dogs=[("Ziggy", SizeCategory.LARGE)],
        first_name="Morgan",
        last_name="Lee",
    )


@pytest.fixture
def rex(customer: Customer) -> Dog:
    return next(dog for dog in customer.dogs if dog.name == "Rex")


@pytest.fixture
def bella(customer: Customer) -> Dog:
    return next(dog for dog in customer.dogs if dog.name == "Bella")


@pytest.fixture
def staff(db: Session) -> StaffUser:
    member = StaffUser(name="Sam Keeper", email="sam@pawledger.test", role="staff")
    db.add(member)
    db.commit()
    return member


@pytest.fixture
def customer_headers(customer: Customer) -> Dict[str, str]:
    return {"X-Customer-Id": customer.id}


@pytest.fixture
def staff_headers(staff: StaffUser) -> Dict[str, str]:
    return {"X-Staff-Id": staff.id}


# ============================================================================
# Builders
# ============================================================================


def _fund_wallet(db: Session, customer_id: str, amount_cents: int) -> str:
    wallet = WalletRepository(db).get_or_create(customer_id)
    LedgerService(db).credit_wallet(
        wallet.id, amount_cents, txn_type=WalletTransactionType.LOAD, description="Test load"
    )
    db.commit()
    return wallet.id


def _grant_points(db: Session, customer_id: str, points: int) -> int:
    award = LedgerService(db).award_points(customer_id, points, description="Test grant")
    db.commit()
    return award.new_balance


@pytest.fixture
def fund_wallet(db: Session) -> Callable[[str, int], str]:
    """Credit a customer's wallet directly through the ledger. Returns the wallet id."""
    return lambda customer_id, amount_cents: _fund_wallet(db, customer_id, amount_cents)


@pytest.fixture
def grant_points(db: Session) -> Callable[[str, int], int]:
    return lambda customer_id, points: _grant_points(db, customer_id, points)


@pytest.fixture
def customer_factory(db: Session) -> Callable[..., Customer]:
    return lambda email, dogs=(), **names: create_customer(db, email, dogs, **names)


@pytest.fixture
def make_booking(db: Session) -> Callable[..., Booking]:
    """
    Insert a booking directly, bypassing pricing and capacity.

    Lets checkout tests choose an exact total.
    """

    def _make(
        customer: Customer,
        service_type: ServiceType,
        dogs: List[Dog],
        day: date,
        total_cents: int,
        status: BookingStatus = BookingStatus.PENDING,
        end_day: Optional[date] = None,
    ) -> Booking:
        booking = Booking(
            customer_id=customer.id,
            service_type_id=service_type.id,
            date=day,
            start_date=day if end_day else None,
            end_date=end_day,
            status=status,
            total_cents=total_cents,
        )
        db.add(booking)
        db.flush()
        for dog in dogs:
            db.add(BookingDog(booking_id=booking.id, dog_id=dog.id))
        db.commit()
        db.refresh(booking)
        return booking

    return _make
