"""Test fixtures"""
import os

# Keep the module-level engine off the filesystem
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from readingbuddy.database import build_engine, get_db, init_db
from readingbuddy.main import app


@pytest.fixture
def db_session():
    """A session on a fresh in-memory database"""
    engine = build_engine("sqlite://")
    init_db(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(client):
    def _make_user(name="Test Child", age=8, level="beginner"):
        response = client.post("/api/users", json={"name": name, "age": age, "level": level})
        assert response.status_code == 200
        return response.json()

    return _make_user


@pytest.fixture
def make_content(client):
    def _make_content(title="Test Story", difficulty="beginner", order_index=1, type="story"):
        response = client.post("/api/content", json={
            "title": title,
            "type": type,
            "difficulty": difficulty,
            "text_content": "Once upon a time...",
            "order_index": order_index,
        })
        assert response.status_code == 200
        return response.json()

    return _make_content
