# Ensure project root is on sys.path so 'aiohttp_auth_refresh' is importable when running
# pytest from environments that don't automatically include it.
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).parent.resolve()
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture(autouse=True)
def reset_shared_refresh_state():
    """Return the process wide coordinator and client to a clean state after each test."""
    yield
    from aiohttp_auth_refresh.auth.coordinator import default_coordinator
    from aiohttp_auth_refresh.transport.client import default_client

    default_coordinator.reset()
    default_client.interceptors.request.clear()
    default_client.interceptors.response.clear()
