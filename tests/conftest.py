# tests/conftest.py
import pytest
from fastapi.testclient import TestClient

from workclock.core.config import Settings
from workclock.main import create_app


@pytest.fixture()
def settings(tmp_path) -> Settings:
    """
    Settings pointing at a throwaway SQLite file and no directory token.
    """
    return Settings(
        APP_NAME="WorkClock Test",
        APP_ENV="test",
        DB_URL=f"sqlite+aiosqlite:///{tmp_path / 'workclock-test.db'}",
        MONDAY_API_TOKEN=None,
    )


@pytest.fixture()
def app(settings):
    return create_app(settings)


@pytest.fixture()
def client(app) -> TestClient:
    """
    TestClient running the full lifespan (DB init, service wiring).
    """
    with TestClient(app) as test_client:
        yield test_client
