"""Pytest fixtures for testing"""

import pytest
import httpx
from datetime import date
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from zakat_admin.api.main import create_app
from zakat_admin.api.dependencies import get_erp_client
from zakat_admin.infrastructure.database.models import Base
from zakat_admin.infrastructure.database.session import get_db
from zakat_admin.infrastructure.clients.erp import ErpClient
from zakat_admin.domain.models import AuthContext, DistributionPhase
from mock_server.erp_api import main as mock_erp


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

MOCK_ERP_BASE = "http://erp.test/api"


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
def mock_erp_state():
    """Fresh in-memory data in the mock ERP server"""
    mock_erp.reset()
    yield mock_erp
    mock_erp.reset()


@pytest.fixture
def erp_client(mock_erp_state) -> ErpClient:
    """ERP client wired to the mock ERP server in-process"""
    return ErpClient(
        base_url=MOCK_ERP_BASE,
        auth=AuthContext(token="test-token"),
        transport=httpx.ASGITransport(app=mock_erp_state.app),
    )


@pytest.fixture
def client(db: Session, erp_client: ErpClient) -> TestClient:
    """Create FastAPI test client with test database and mock ERP"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_erp_client] = lambda: erp_client
    return TestClient(app)


@pytest.fixture
def three_phases() -> list[DistributionPhase]:
    """Three-term education fee timeline"""
    return [
        DistributionPhase(description="First term", percentage=40),
        DistributionPhase(description="Second term", percentage=30, days_from_approval=120),
        DistributionPhase(description="Final term", percentage=30, days_from_approval=240),
    ]


@pytest.fixture
def start_date() -> date:
    return date(2026, 1, 15)
