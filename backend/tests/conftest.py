"""Pytest configuration and fixtures."""

import os
from datetime import date
from decimal import Decimal
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# The application engine must never touch a file during tests
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from supplychain.core.rate_limit import limiter
from supplychain.core.rbac import Principal, UserRole
from supplychain.core.security import create_access_token
from supplychain.db.base import Base
from supplychain.db.session import enable_sqlite_foreign_keys, get_db, get_uow
from supplychain.db.unit_of_work import KeyedLockRegistry, UnitOfWork
from supplychain.main import app
# Import all models to ensure they're registered with Base.metadata
from supplychain.models import *  # noqa: F401,F403
from supplychain.models.material import CommissionType, Material
from supplychain.models.user import User
from supplychain.services.assignment_service import AssignmentService
from supplychain.services.material_service import MaterialService
from supplychain.services.production_service import ProductionService

# Use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Create a test database session."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def uow(db_session: Session) -> UnitOfWork:
    """Unit of work with its own lock registry so tests never share mutexes."""
    return UnitOfWork(db_session, registry=KeyedLockRegistry(), lock_timeout=2)


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create a test client with database override."""
    registry = KeyedLockRegistry()

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    def override_get_uow():
        return UnitOfWork(db_session, registry=registry, lock_timeout=2)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_uow] = override_get_uow
    # Disable rate limiting during tests to avoid flaky failures
    limiter.enabled = False
    # Don't raise server exceptions so we can test error status codes
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    limiter.enabled = True
    app.dependency_overrides.clear()


def _make_user(db_session: Session, email: str, name: str, role: UserRole) -> User:
    user = User(email=email, name=name, role=role, is_active=True)
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def admin_user(db_session: Session) -> User:
    return _make_user(db_session, "admin@example.com", "Admin", UserRole.ADMIN)


@pytest.fixture
def manufacturer_user(db_session: Session) -> User:
    return _make_user(db_session, "factory@example.com", "Sunrise Foods", UserRole.MANUFACTURER)


@pytest.fixture
def retailer_user(db_session: Session) -> User:
    return _make_user(db_session, "shop@example.com", "Corner Store", UserRole.RETAILER)


@pytest.fixture
def admin(admin_user: User) -> Principal:
    return Principal(user_id=admin_user.id, role=UserRole.ADMIN)


@pytest.fixture
def manufacturer(manufacturer_user: User) -> Principal:
    return Principal(user_id=manufacturer_user.id, role=UserRole.MANUFACTURER)


@pytest.fixture
def retailer(retailer_user: User) -> Principal:
    return Principal(user_id=retailer_user.id, role=UserRole.RETAILER)


@pytest.fixture
def material(uow: UnitOfWork, admin: Principal) -> Material:
    """Biscuits: 10 units per packet at 100.00 per packet, 18% GST, 5% commission."""
    return MaterialService(uow).create_material(
        admin,
        name="Butter Biscuits",
        hsn_code="1905",
        gst_rate=Decimal("18"),
        units_per_packet=10,
        mrp_per_packet=Decimal("100.00"),
        commission_type=CommissionType.PERCENTAGE,
        commission_value=Decimal("5"),
    )


@pytest.fixture
def second_material(uow: UnitOfWork, admin: Principal) -> Material:
    """Juice: 6 units per packet at 90.00 per packet, 12% GST, 1.50 flat commission per unit."""
    return MaterialService(uow).create_material(
        admin,
        name="Mango Juice",
        hsn_code="2009",
        gst_rate=Decimal("12"),
        units_per_packet=6,
        mrp_per_packet=Decimal("90.00"),
        commission_type=CommissionType.FLAT_PER_UNIT,
        commission_value=Decimal("1.50"),
    )


@pytest.fixture
def assignment(uow: UnitOfWork, admin: Principal, retailer: Principal, manufacturer: Principal):
    return AssignmentService(uow).create_assignment(admin, retailer.user_id, manufacturer.user_id)


@pytest.fixture
def produce(uow: UnitOfWork, manufacturer: Principal):
    """Record a production batch for the manufacturer fixture."""
    counter = {"n": 0}

    def _produce(material_id: int, packets: int = 0, loose_units: int = 0, batch_number: str = None):
        counter["n"] += 1
        return ProductionService(uow).record_production(
            manufacturer,
            batch_number=batch_number or f"B-{counter['n']:03d}",
            manufacture_date=date(2026, 1, 1),
            expiry_date=date(2026, 7, 1),
            packets=packets,
            loose_units=loose_units,
            material_id=material_id,
        )

    return _produce


def auth_headers_for(user: User) -> dict:
    token = create_access_token(data={"sub": str(user.id), "role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(admin_user: User) -> dict:
    return auth_headers_for(admin_user)


@pytest.fixture
def manufacturer_headers(manufacturer_user: User) -> dict:
    return auth_headers_for(manufacturer_user)


@pytest.fixture
def retailer_headers(retailer_user: User) -> dict:
    return auth_headers_for(retailer_user)
