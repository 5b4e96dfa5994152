"""Fixtures for API tests: the app served in-process over httpx"""
import pytest
import pytest_asyncio
import httpx

from mindshift.api.middleware import limiter
from mindshift.api.server import create_api_application
from mindshift.services.container import reset_container


@pytest.fixture
def api_keys(monkeypatch, test_api_key):
    monkeypatch.setenv("API_KEYS", test_api_key)


@pytest.fixture
def headers(test_api_key):
    return {"Authorization": f"Bearer {test_api_key}"}


@pytest.fixture
def no_rate_limits():
    limiter.enabled = False
    yield
    limiter.enabled = True


@pytest_asyncio.fixture
async def client(store, clock, api_keys, no_rate_limits):
    """AsyncClient against an app backed by the test store and clock"""
    app = create_api_application(store=store, clock=clock)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    reset_container()
