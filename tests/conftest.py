import pytest

from fastapi.testclient import TestClient

from order_tracker.core.config import get_settings
from order_tracker.services import OrderStore, reset_services


@pytest.fixture()
def data_dir(tmp_path, monkeypatch):
    """Point the settings at an empty data directory for this test."""
    monkeypatch.setenv("DATA_DIRECTORY", str(tmp_path))
    monkeypatch.delenv("ENV_MODE", raising=False)
    monkeypatch.delenv("DEBUG", raising=False)
    get_settings.cache_clear()
    reset_services()
    yield tmp_path
    get_settings.cache_clear()
    reset_services()


@pytest.fixture()
def settings(data_dir):
    return get_settings()


@pytest.fixture()
def store(settings):
    return OrderStore.from_settings(settings)


@pytest.fixture()
def client(data_dir):
    """TestClient with lifespan; one event loop shared by HTTP and WebSockets."""
    from order_tracker.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def anyio_backend():
    return "asyncio"
