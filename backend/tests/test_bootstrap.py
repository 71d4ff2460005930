"""Application wiring: explicit datasource, lifespan and core endpoints."""

from types import SimpleNamespace

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.engine import make_url
from sqlalchemy.exc import OperationalError

from walkin.api.main_app import create_app
from walkin.core.config import Settings
from walkin.core.db import init_db


def _file_settings(tmp_path, **overrides) -> Settings:
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite:///{tmp_path / 'data' / 'walkin.db'}",
        SECRET_KEY="test-secret",
        **overrides,
    )


def test_entry_point_exposes_app():
    import main

    assert isinstance(main.app, FastAPI)
    assert main.app.title == "WALKIN API"


def test_uses_the_engine_it_is_given(test_settings, engine):
    app = create_app(test_settings, engine=engine)
    assert app.state.engine is engine
    assert app.state.settings is test_settings


def test_nothing_connects_before_startup(tmp_path):
    settings = _file_settings(tmp_path)
    database = tmp_path / "data" / "walkin.db"

    app = create_app(settings)
    assert not database.exists()

    with TestClient(app):
        assert database.exists()


def test_startup_seeds_default_offices(tmp_path):
    app = create_app(_file_settings(tmp_path, SEED_DEFAULT_OFFICES=True, ADMIN_EMAILS=["boss@walkin.test"]))

    with TestClient(app) as client:
        response = client.post(
            "/api/v1/auth/signup",
            json={"email": "boss@walkin.test", "password": "walkin2024", "name": "대표"},
        )
        token = response.json()["access_token"]
        offices = client.get("/api/v1/admin/offices", headers={"Authorization": f"Bearer {token}"})

    assert [o["name"] for o in offices.json()] == ["본사", "지사"]


def test_root_and_health(client):
    root = client.get("/")
    assert root.status_code == 200
    assert root.json()["name"] == "WALKIN API"
    assert root.json()["timezone"] == "Asia/Seoul"

    health = client.get("/health")
    assert health.status_code == 200
    assert health.json()["status"] == "healthy"
    assert health.json()["components"]["database"] == "operational"


@pytest.mark.parametrize("retries", [1, 2])
def test_connect_attempts_follow_the_given_count(retries):
    attempts = []

    def refuse():
        attempts.append(1)
        raise OperationalError("SELECT 1", {}, Exception("database is down"))

    unreachable = SimpleNamespace(url=make_url("sqlite://"), connect=refuse)

    with pytest.raises(SystemExit):
        init_db(unreachable, retries=retries)
    assert len(attempts) == retries
