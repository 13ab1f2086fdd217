"""
Shared fixtures: in-memory SQLite database, API client and auth headers.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime, date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from haulsettle.core.config import SettlementConfig
from haulsettle.core.security import create_access_token
from haulsettle.db.base import Base
from haulsettle.db.repository import SettlementRepository
from haulsettle.db.session import get_db
from haulsettle.main import app
from haulsettle.models import PayRate, RateScope, RateType
from haulsettle.schemas.ticket import TicketPayload
from haulsettle.services.sequence_service import DatabaseSequenceGenerator

ORG_ID = "org-1"

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def repo(db):
    return SettlementRepository(db)


@pytest.fixture
def sequences(db):
    return DatabaseSequenceGenerator(db)


@pytest.fixture
def config():
    return SettlementConfig()


@pytest.fixture
def make_rate(db):
    """Persist a pay rate for ORG_ID."""
    def _make_rate(
        scope_type=RateScope.DEFAULT,
        scope_value=None,
        rate_value="15.00",
        rate_type=RateType.PER_TON,
        rate_name=None,
        created_at=None,
        organization_id=ORG_ID,
        **kwargs
    ):
        rate = PayRate(
            organization_id=organization_id,
            scope_type=scope_type,
            scope_value=scope_value,
            rate_name=rate_name or f"{scope_type.value} rate",
            rate_type=rate_type,
            rate_value=Decimal(rate_value),
            created_at=created_at or datetime(2024, 1, 1, 8, 0, 0),
            **kwargs
        )
        db.add(rate)
        db.commit()
        db.refresh(rate)
        return rate
    return _make_rate


@pytest.fixture
def make_ticket():
    def _make_ticket(**overrides):
        data = {
            "driver_id": "D1",
            "load_id": "L-1",
            "ticket_number": "T-100",
            "ticket_date": date(2024, 6, 5),
            "net_quantity": Decimal("10"),
        }
        data.update(overrides)
        return TicketPayload(**data)
    return _make_ticket


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    token = create_access_token(data={"sub": "admin-1", "organization_id": ORG_ID})
    return {"Authorization": f"Bearer {token}"}
