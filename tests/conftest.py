"""Pytest fixtures for backend tests."""

from __future__ import annotations

import os
from types import SimpleNamespace
from typing import Any

import pytest
from fastapi.testclient import TestClient

ANON_KEY = "eyJhbGciOiJIUzI1NiJ9.eyJyb2xlIjoiYW5vbiJ9.YW5vbg"
SERVICE_KEY = "eyJhbGciOiJIUzI1NiJ9.eyJyb2xlIjoic2VydmljZSJ9.c3Zj"


def _set_default_env() -> None:
    os.environ.setdefault("SUPABASE_URL", "https://example.supabase.co")
    os.environ.setdefault("SUPABASE_ANON_KEY", ANON_KEY)
    os.environ.setdefault("SUPABASE_SERVICE_KEY", SERVICE_KEY)
    os.environ.setdefault("FRONTEND_URL", "https://hlasovani.example.cz")
    os.environ.setdefault("ENABLE_SNAPSHOT_FALLBACK", "true")


_set_default_env()

from tests.fakes import FakeSupabase, StubMailer, seed_building  # noqa: E402


@pytest.fixture(scope="session")
def client() -> TestClient:
    """Create a FastAPI test client."""
    from svj.main import app

    return TestClient(app)


@pytest.fixture
def db() -> FakeSupabase:
    """Empty in-memory Supabase stand-in."""
    return FakeSupabase()


@pytest.fixture
def scenario(db: FakeSupabase) -> dict[str, Any]:
    """One building with five members, an active vote and a default template."""
    return seed_building(db)


@pytest.fixture
def mailer() -> StubMailer:
    """Mailer that records messages instead of sending them."""
    return StubMailer()


@pytest.fixture
def api(client: TestClient, db: FakeSupabase, mailer: StubMailer):
    """Test client wired to the fake store and mailer, signed in as ``login.email``."""
    from svj.dependencies import get_authenticated_user, get_db_client, get_mailer
    from svj.main import app

    login = SimpleNamespace(email="member1@example.cz")
    app.dependency_overrides[get_db_client] = lambda: db
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_authenticated_user] = lambda: login
    client.login = login  # type: ignore[attr-defined]
    yield client
    app.dependency_overrides.clear()
