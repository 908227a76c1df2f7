"""Request and response value objects passed through the interceptor chains."""

from __future__ import annotations

import json as _json
from dataclasses import dataclass, field, replace
from typing import Any


@dataclass
class RequestConfig:
    """Everything needed to (re)issue a request.

    Attributes:
        method: HTTP method.
        url: Absolute URL, or a path joined onto the client's base URL.
        headers: Request headers.
        params: Query parameters.
        json: JSON body (mutually exclusive with ``data``).
        data: Raw body.
        skip_auth_refresh: Opt this request out of refresh handling and of
            being held while a refresh is in flight.
        extra: Free-form metadata for interceptors; never sent on the wire.
    """

    method: str = "GET"
    url: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    params: dict[str, Any] | None = None
    json: Any = None
    data: Any = None
    skip_auth_refresh: bool = False
    extra: dict[str, Any] = field(default_factory=dict)

    def copy(self, **changes: Any) -> RequestConfig:
        """Return an independent copy, optionally overriding fields.

        Header, parameter and metadata dictionaries are copied so that
        mutating the copy never leaks into the original.
        """
        merged = replace(self, **changes) if changes else self
        return replace(
            merged,
            headers=dict(merged.headers),
            params=dict(merged.params) if merged.params is not None else None,
            extra=dict(merged.extra),
        )


@dataclass
class Response:
    """A fully read HTTP response."""

    status: int
    headers: dict[str, str]
    body: bytes
    config: RequestConfig

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def text(self, encoding: str = "utf-8") -> str:
        return self.body.decode(encoding, errors="replace")

    def json(self) -> Any:
        if not self.body:
            return None
        return _json.loads(self.body)
