"""Pytest fixtures and configuration."""

from __future__ import annotations

import os
from typing import Any, Callable, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

# Set environment variables before importing app modules
os.environ["WALLETBOOK_DATABASE_URL"] = "sqlite://"
os.environ["WALLETBOOK_BCRYPT_ROUNDS"] = "4"
os.environ["WALLETBOOK_JWT_SECRET"] = "test-secret"
os.environ["WALLETBOOK_LOG_LEVEL"] = "WARNING"

from walletbook.api.deps import get_db  # noqa: E402
from walletbook.db.init_db import create_tables, ensure_seed_data  # noqa: E402
from walletbook.db.session import build_engine  # noqa: E402


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """A fresh in-memory database per test."""
    engine = build_engine("sqlite://")
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


@pytest.fixture
def db_session(session_factory: sessionmaker) -> Generator[Session, None, None]:
    """Session for arranging and inspecting data, with tables and categories in place."""
    db = session_factory()
    create_tables(db)
    ensure_seed_data(db)
    yield db
    db.close()


@pytest.fixture
def client(session_factory: sessionmaker, db_session: Session) -> Generator[TestClient, None, None]:
    """Test client whose requests use the per-test database."""
    from walletbook.main import app

    def override_get_db() -> Generator[Session, None, None]:
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def register(client: TestClient) -> Callable[..., dict[str, Any]]:
    """Register a user and return the response body."""

    def _register(email: str = "ana@example.com", username: str = "ana", password: str = "s3cret-pass", **extra: Any):
        body = {
            "name": "Ana",
            "surname": "Quispe",
            "username": username,
            "email": email,
            "password": password,
            **extra,
        }
        response = client.post("/api/auth/register", json=body)
        assert response.status_code == 200, response.text
        return response.json()

    return _register


@pytest.fixture
def login(client: TestClient) -> Callable[..., dict[str, str]]:
    """Log in and return bearer headers for the user."""

    def _login(email: str = "ana@example.com", password: str = "s3cret-pass") -> dict[str, str]:
        response = client.post("/api/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    return _login


@pytest.fixture
def auth_headers(register, login) -> dict[str, str]:
    register()
    return login()


@pytest.fixture
def category_id(client: TestClient, auth_headers: dict[str, str]) -> Callable[[str, str], int]:
    """Look up a seeded category id by kind and name."""

    def _category_id(kind: str, name: str) -> int:
        response = client.get("/api/categories", params={"kind": kind}, headers=auth_headers)
        assert response.status_code == 200, response.text
        for row in response.json():
            if row["name"] == name:
                return row["id"]
        raise AssertionError(f"category {kind}/{name} not seeded")

    return _category_id
