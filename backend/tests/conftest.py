import os

# Must be set before anything imports app.core.config
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CLEANUP_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from app.core.expiry import utcnow
from app.core.user import register
from app.infra.postgres import Base, SessionLocal, db_session, engine
from app.models.content import Content
from app.models.user import User  # noqa: F401
from app.services.file_store import FileStore


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def store(tmp_path):
    return FileStore(tmp_path / "uploads")


@pytest.fixture
def owner(db):
    _, user = register(db, "owner@example.com", "password123")
    return user


@pytest.fixture
def stranger(db):
    _, user = register(db, "stranger@example.com", "password123")
    return user


@pytest.fixture
def client(store):
    from app.api.deps import get_file_store
    from app.main import app

    app.dependency_overrides[get_file_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


def register_via_api(client: TestClient, email: str, password: str = "password123") -> dict:
    res = client.post("/api/auth/register", json={"email": email, "password": password})
    assert res.status_code == 201, res.text
    return {"Authorization": f"Bearer {res.json()['token']}"}


def expire_content(content_id: str) -> None:
    """Push a record's expiry into the past without running the sweep."""
    with db_session() as session:
        session.get(Content, content_id).expires_at = utcnow() - timedelta(seconds=1)


def content_exists(content_id: str) -> bool:
    with db_session() as session:
        return session.get(Content, content_id) is not None
