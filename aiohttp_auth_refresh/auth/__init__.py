"""Credential refresh coordination."""

from .classifier import should_intercept_error
from .coordinator import (
    CoordinationState,
    Idle,
    RefreshCall,
    RefreshCoordinator,
    Refreshing,
    default_coordinator,
)
from .interceptor import (
    AuthRefreshInterceptor,
    InterceptorState,
    create_auth_refresh_interceptor,
)

__all__ = [
    "should_intercept_error",
    "CoordinationState",
    "Idle",
    "RefreshCall",
    "RefreshCoordinator",
    "Refreshing",
    "default_coordinator",
    "AuthRefreshInterceptor",
    "InterceptorState",
    "create_auth_refresh_interceptor",
]
