import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app import models  # noqa: F401
from app.api.deps import get_text_service
from app.db.session import Base, get_db
from main import app

from fakes import FakeTextService

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session():
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def fake_service():
    return FakeTextService()


@pytest.fixture
def make_client(db_session, fake_service):
    """Factory: each client has its own cookie jar (one per user)."""

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_text_service] = lambda: fake_service
    yield lambda: TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def client(make_client):
    return make_client()


@pytest.fixture
def signed_in(client):
    resp = client.post(
        "/api/auth/signup",
        json={"name": "Ada", "email": "ada@example.com", "password": "s3cret-pass"},
    )
    assert resp.status_code == 201
    return client
