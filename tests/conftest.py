import asyncio

import httpx
import pytest

from finboard.models import WidgetConfig


async def _wait_until(predicate, timeout: float = 2.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.005)


@pytest.fixture
def wait_until():
    return _wait_until


@pytest.fixture
def mock_client():
    """Factory: build an AsyncClient whose requests are answered by handler."""
    def factory(handler) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=True)
    return factory


@pytest.fixture
def make_config():
    def factory(url="https://api.example.com/quote", fields=("price",), interval=60000, mode="card"):
        return WidgetConfig(
            apiEndpoint=url,
            refreshInterval=interval,
            displayFields=list(fields),
            displayMode=mode,
        )
    return factory
