import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import settings
from app.core.security import create_user_token
from app.database import get_db
from app.db.base import Base
from app.main import app
from app.models import Developer, Enquiry, Lead, LeadStatus, Project, SalesStage  # noqa: F401
from app.services import listing_cache as listing_cache_module
from app.services.aggregator_service import alnair_service
from app.services.auth_service import create_user

TEST_DATABASE_URL = "sqlite://"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def test_db(monkeypatch):
    Base.metadata.create_all(bind=engine)
    app.dependency_overrides[get_db] = override_get_db
    monkeypatch.setattr(listing_cache_module.listing_cache, "session_factory", TestingSessionLocal)
    listing_cache_module.listing_cache.clear()
    alnair_service.clear_cache()

    yield

    app.dependency_overrides.clear()
    listing_cache_module.listing_cache.clear()
    alnair_service.clear_cache()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    # No context manager: startup would bootstrap the real database
    return TestClient(app)


@pytest.fixture
def admin_user(db):
    return create_user(db, "admin@example.com", "AdminPass123", name="Admin", role="ADMIN")


@pytest.fixture
def admin_headers(admin_user):
    return {"Authorization": f"Bearer {create_user_token(admin_user)}"}


@pytest.fixture
def alnair_token(monkeypatch):
    monkeypatch.setattr(settings, "ALNAIR_AUTH_TOKEN", "test-token")
    return "test-token"


@pytest.fixture
def developer(db):
    dev = Developer(name="Emaar Properties", logo="https://cdn.example.com/emaar.png", project_count=0)
    db.add(dev)
    db.commit()
    db.refresh(dev)
    return dev


def make_aggregator_project(**overrides):
    """Aggregator-shaped project with sensible Dubai defaults"""
    project = {
        "id": 1,
        "slug": "creek-views",
        "title": "Creek Views Residences",
        "builder": "Emaar Properties",
        "type": "project",
        "latitude": 25.2,
        "longitude": 55.3,
        "construction_percent": "45",
        "district": {"id": 10, "title": "Dubai Creek Harbour"},
        "logo": {"src": "logo.png"},
        "cover": {"src": "cover.png"},
        "statistics": {
            "total": {"price_from": 900000, "price_to": 2500000, "units_count": 30},
            "units": {
                "111": {"price_from": 900000, "price_to": 1200000, "count": 20},
                "112": {"price_from": 1500000, "price_to": 2500000, "count": 10},
            },
        },
    }
    project.update(overrides)
    return project


@pytest.fixture
def aggregator_project():
    return make_aggregator_project
