"""Centralized internal error hierarchy.

Every failure the transport or the refresh interceptor surfaces to a caller is
one of these exceptions. Raw aiohttp errors never leave the transport; they are
wrapped with the request configuration attached so the interceptor chain can
reason about them.

Classes:
  InternalError          – Base for all internal errors.
  NetworkError           – Transport failure, no response was received.
  HTTPStatusError        – A response arrived with a rejected status code.
  CallerContractError    – The refresh function broke its contract.
  RequestCancelledError  – A request was aborted before being sent.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..transport.models import RequestConfig, Response


class InternalError(Exception):
    """Base class for all internal errors with metadata support.

    Attributes:
        data: Dictionary containing arbitrary structured context data.

    Args:
        message: Descriptive error message.
        data: Optional mapping of additional context data.
    """

    data: dict[str, object]

    def __init__(
        self, message: str, *, data: Mapping[str, object] | None = None
    ) -> None:
        super().__init__(message)
        # Copy into a plain dict to avoid unexpected mutations from caller.
        self.data = dict(data) if data else {}


class RequestError(InternalError):
    """Base for failures tied to a single request.

    Attributes:
        config: The configuration of the request that failed.
        response: The response received, or None when nothing was received.
    """

    def __init__(
        self,
        message: str,
        *,
        config: RequestConfig | None = None,
        response: Response | None = None,
        data: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(message, data=data)
        self.config = config
        self.response = response


class NetworkError(RequestError):
    """Exception raised for network or transport layer errors.

    No response is attached: connection resets, DNS failures and timeouts
    never reach the status code based refresh logic.
    """


class HTTPStatusError(RequestError):
    """Exception raised when a response status is rejected by the client."""

    def __init__(self, response: Response) -> None:
        super().__init__(
            f"Request failed with status code {response.status}",
            config=response.config,
            response=response,
            data={"status": response.status, "url": response.config.url},
        )

    @property
    def status(self) -> int:
        return self.response.status  # type: ignore[union-attr]


class CallerContractError(InternalError, TypeError):
    """Exception raised when the caller supplied refresh function is unusable.

    Raised at installation when no callable is given, and used as the failure
    of the placeholder refresh when the function does not return an awaitable.
    """


class RequestCancelledError(RequestError):
    """Exception raised when a request is aborted before it is dispatched.

    Attributes:
        reason: Human readable cancellation reason.
    """

    def __init__(self, reason: str, *, config: RequestConfig | None = None) -> None:
        super().__init__(reason, config=config, data={"reason": reason})
        self.reason = reason


__all__ = [
    "InternalError",
    "RequestError",
    "NetworkError",
    "HTTPStatusError",
    "CallerContractError",
    "RequestCancelledError",
]
