"""Automatic credential refresh for an interceptor based aiohttp client.

When a request fails with an authorization status, a single refresh runs,
concurrent and new requests wait for it, and every failed request is replayed
once the new credentials are in place.

Example:
    >>> client = HttpClient(base_url="https://api.example.com")
    >>> async def refresh(error):
    ...     token = await fetch_new_token()
    ...     client.headers["Authorization"] = f"Bearer {token}"
    >>> create_auth_refresh_interceptor(client, refresh)
"""

from .auth import (
    AuthRefreshInterceptor,
    CoordinationState,
    Idle,
    InterceptorState,
    RefreshCoordinator,
    Refreshing,
    create_auth_refresh_interceptor,
    default_coordinator,
    should_intercept_error,
)
from .config import DEFAULT_OPTIONS, RefreshOptions, merge_options
from .errors import (
    CallerContractError,
    HTTPStatusError,
    InternalError,
    NetworkError,
    RequestCancelledError,
    RequestError,
)
from .transport import HttpClient, RequestConfig, Response, default_client

__version__ = "1.0.0"

__all__ = [
    "AuthRefreshInterceptor",
    "CoordinationState",
    "Idle",
    "InterceptorState",
    "RefreshCoordinator",
    "Refreshing",
    "create_auth_refresh_interceptor",
    "default_coordinator",
    "should_intercept_error",
    "DEFAULT_OPTIONS",
    "RefreshOptions",
    "merge_options",
    "CallerContractError",
    "HTTPStatusError",
    "InternalError",
    "NetworkError",
    "RequestCancelledError",
    "RequestError",
    "HttpClient",
    "RequestConfig",
    "Response",
    "default_client",
]
