"""Pytest fixtures for testing"""

import pytest
from datetime import date
from typing import Callable, Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from cardwise.api.main import create_app
from cardwise.infrastructure.database.models import Base
from cardwise.infrastructure.database.session import get_db
from cardwise.domain.models import CreditInstrument


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
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
def make_card() -> Callable[..., CreditInstrument]:
    """Factory for credit cards with sensible defaults"""

    def _make(card_id: str = "card-1", **overrides) -> CreditInstrument:
        values = dict(
            id=card_id,
            bank_id="bca",
            alias=card_id.upper(),
            credit_limit=20_000_000,
            current_usage=0,
            due_day=15,
        )
        values.update(overrides)
        return CreditInstrument(**values)

    return _make


@pytest.fixture
def feb_25() -> date:
    """Non-leap-year reference day used by month-end scenarios"""
    return date(2023, 2, 25)
