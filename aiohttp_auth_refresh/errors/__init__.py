"""Error types and structured error reporting."""

from .handling import classify_error, log_error
from .internal import (
    CallerContractError,
    HTTPStatusError,
    InternalError,
    NetworkError,
    RequestCancelledError,
    RequestError,
)

__all__ = [
    "InternalError",
    "RequestError",
    "NetworkError",
    "HTTPStatusError",
    "CallerContractError",
    "RequestCancelledError",
    "classify_error",
    "log_error",
]
