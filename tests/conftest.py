"""Pytest fixtures for testing"""

import pytest
from datetime import date
from decimal import Decimal
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from billing_gateway.api.dependencies import get_clock
from billing_gateway.api.main import create_app
from billing_gateway.infrastructure.database.models import Base, ContractRecord
from billing_gateway.infrastructure.database.repositories import BracketRepository
from billing_gateway.infrastructure.database.session import get_db
from billing_gateway.domain.models import Bracket


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

TODAY = date(2024, 3, 15)


class FixedClock:
    """Clock pinned to a known day"""

    def __init__(self, today: date = TODAY):
        self._today = today

    def today(self) -> date:
        return self._today


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


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
def client(db: Session, clock: FixedClock) -> TestClient:
    """Create FastAPI test client with test database and a fixed clock"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    return TestClient(app)


@pytest.fixture
def sample_brackets() -> list[Bracket]:
    """Two 2024 brackets (A: 1-10, B: 11+) and one 2023 bracket"""
    return [
        Bracket(name="A", year=2024, rate=Decimal("20.00"), min_units=1, max_units=10),
        Bracket(name="B", year=2024, rate=Decimal("15.00"), min_units=11, max_units=None, hours=Decimal("2")),
        Bracket(name="A", year=2023, rate=Decimal("18.00"), min_units=1, max_units=10),
    ]


@pytest.fixture
def seeded_db(db: Session, sample_brackets: list[Bracket]) -> Session:
    """Database holding the sample brackets and two contracts (ids 1 and 2)"""
    brackets = BracketRepository(db)
    for bracket in sample_brackets:
        brackets.add(bracket)
    db.add(ContractRecord(id=1, client_code="CLI001", total=Decimal("1200.00"), activation_date=date(2023, 6, 1)))
    db.add(ContractRecord(id=2, client_code="CLI002", total=Decimal("500.00"), activation_date=None))
    db.commit()
    return db
