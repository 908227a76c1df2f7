import pytest

from aiohttp_auth_refresh.auth.coordinator import RefreshCoordinator
from aiohttp_auth_refresh.transport.client import HttpClient
from tests.fixtures.fake_backend import FakeBackend


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def client(backend: FakeBackend) -> HttpClient:
    return HttpClient(
        adapter=backend, headers={"Authorization": "Bearer stale"}, name="test"
    )


@pytest.fixture
def coordinator() -> RefreshCoordinator:
    return RefreshCoordinator()
