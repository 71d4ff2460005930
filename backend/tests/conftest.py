"""Global pytest fixtures for the Walkin backend."""

from __future__ import annotations

from typing import Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from tests.helpers import ADMIN_EMAIL, PASSWORD
from walkin.api.main_app import create_app
from walkin.core.config import Settings
from walkin.core.db import Base, User, build_engine, create_session_factory
from walkin.services import users


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite://",
        SEED_DEFAULT_OFFICES=False,
        SECRET_KEY="test-secret",
        ADMIN_EMAILS=[ADMIN_EMAIL],
        TIMEZONE="Asia/Seoul",
    )


@pytest.fixture
def engine() -> Iterator[Engine]:
    """In-memory SQLite shared by every session in a test"""
    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine: Engine) -> Iterator[Session]:
    session = create_session_factory(engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def employee(db: Session) -> User:
    return users.create_user(db, "kim@walkin.test", PASSWORD, "김철수")


@pytest.fixture
def admin_user(db: Session) -> User:
    return users.create_user(db, ADMIN_EMAIL, PASSWORD, "관리자", role="admin")


@pytest.fixture
def client(test_settings: Settings, engine: Engine) -> Iterator[TestClient]:
    app = create_app(test_settings, engine=engine)
    with TestClient(app) as test_client:
        yield test_client


def _signup(client: TestClient, email: str, name: str) -> dict[str, str]:
    response = client.post(
        "/api/v1/auth/signup",
        json={"email": email, "password": PASSWORD, "name": name},
    )
    assert response.status_code == 201, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def employee_headers(client: TestClient) -> dict[str, str]:
    return _signup(client, "lee@walkin.test", "이영희")


@pytest.fixture
def admin_headers(client: TestClient) -> dict[str, str]:
    return _signup(client, ADMIN_EMAIL, "관리자")


@pytest.fixture
def office(client: TestClient, admin_headers: dict[str, str]) -> dict:
    response = client.post(
        "/api/v1/admin/offices",
        json={"name": "본사", "address": "서울특별시 중구", "lat": 37.5665, "lng": 126.9780},
        headers=admin_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()
