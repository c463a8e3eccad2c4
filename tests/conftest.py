"""Pytest fixtures for testing"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import pytest
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Generator
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sacco_risk.api.main import create_app
from sacco_risk.domain.models import Client, Loan
from sacco_risk.domain.store import CLIENTS, LOANS
from sacco_risk.infrastructure.database.models import Base
from sacco_risk.infrastructure.database.repositories import SqlRecordStore
from sacco_risk.infrastructure.database.session import build_engine, get_db


@pytest.fixture
def engine(tmp_path) -> Generator[Engine, None, None]:
    """Fresh SQLite database file per test"""
    engine = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory: sessionmaker) -> Generator[Session, None, None]:
    """Create test database session"""
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def store(db: Session) -> SqlRecordStore:
    return SqlRecordStore(db)


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
def make_client(store: SqlRecordStore) -> Callable[..., Client]:
    """Insert a SACCO member; keyword arguments override the defaults"""
    counter = {"n": 0}

    def _make(**overrides: Any) -> Client:
        counter["n"] += 1
        fields = {
            "member_number": f"M-{counter['n']:04d}",
            "first_name": "Achieng",
            "last_name": "Otieno",
            "phone": "+254700000000",
            "national_id": f"ID{counter['n']:06d}",
            "monthly_income": Decimal("5000.00"),
            "status": "active",
            "joined_date": date(2023, 1, 15),
        }
        fields.update(overrides)
        with store.transaction():
            return store.insert(CLIENTS, fields)

    return _make


@pytest.fixture
def make_loan(store: SqlRecordStore) -> Callable[..., Loan]:
    """Insert an active loan for a client; keyword arguments override the defaults"""
    counter = {"n": 0}

    def _make(client_id: str, **overrides: Any) -> Loan:
        counter["n"] += 1
        principal = Decimal(overrides.pop("principal_amount", Decimal("10000.00")))
        fields = {
            "client_id": client_id,
            "loan_number": f"LN-TEST-{counter['n']:04d}",
            "loan_product": "development",
            "principal_amount": principal,
            "interest_rate": Decimal("10"),
            "loan_term_months": 12,
            "disbursement_date": date(2024, 1, 1),
            "status": "active",
            "outstanding_balance": principal,
            "total_paid": Decimal("0"),
            "arrears_amount": Decimal("0"),
            "days_in_arrears": 0,
            "version": 1,
        }
        fields.update(overrides)
        with store.transaction():
            return store.insert(LOANS, fields)

    return _make
