"""In-process API fixtures: the real app, with the registry swapped for one on scripted backends."""

from collections.abc import AsyncIterator, Iterator

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from threadkit.api.deps import get_thread_registry
from threadkit.domain.thread_registry import ThreadRegistry
from threadkit.main import app


@pytest.fixture
def client(registry: ThreadRegistry) -> Iterator[TestClient]:
    """FastAPI test client serving the fixture registry."""
    app.dependency_overrides[get_thread_registry] = lambda: registry
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def async_client(registry: ThreadRegistry) -> AsyncIterator[httpx.AsyncClient]:
    """Async client for tests that keep several requests in flight at once."""
    app.dependency_overrides[get_thread_registry] = lambda: registry
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as async_test_client:
        yield async_test_client
    app.dependency_overrides.clear()
