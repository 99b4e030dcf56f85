"""Pytest fixtures for testing"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import pytest
from decimal import Decimal
from typing import Callable, Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from fraudshield.api.main import create_app
from fraudshield.infrastructure.database.models import Account, Base
from fraudshield.infrastructure.database.repositories import AccountRepository
from fraudshield.infrastructure.database.session import engine_options, get_db
from fraudshield.domain.models import TransactionAttempt, TransferKind


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, **engine_options(TEST_DATABASE_URL))
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session_factory(db: Session) -> sessionmaker:
    """Independent sessions against the test database, for concurrent writers"""
    return TestingSessionLocal


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def make_account(db: Session) -> Callable[..., Account]:
    """Factory for committed accounts"""

    def _make(email: str, balance: str = "1000.00") -> Account:
        account = AccountRepository(db).create_account(email, Decimal(balance))
        db.commit()
        return account

    return _make


@pytest.fixture
def payment() -> Callable[..., TransactionAttempt]:
    """Factory for a low-risk card payment, overridable per field"""

    def _make(**overrides) -> TransactionAttempt:
        fields = dict(
            amount=Decimal("50.00"),
            category="food",
            transfer_kind=TransferKind.PAYMENT,
            merchant="Corner Cafe",
            location="Manchester",
            device_id="device-123",
            ip_address="81.2.69.160",
        )
        fields.update(overrides)
        return TransactionAttempt(**fields)

    return _make


@pytest.fixture
def transfer(payment) -> Callable[..., TransactionAttempt]:
    """Factory for a P2P transfer"""

    def _make(recipient_email: str, **overrides) -> TransactionAttempt:
        fields = dict(
            transfer_kind=TransferKind.P2P_TRANSFER,
            category="money_transfer",
            merchant=None,
            recipient_email=recipient_email,
        )
        fields.update(overrides)
        return payment(**fields)

    return _make
