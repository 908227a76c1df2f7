from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..constants import AUTH_REFRESH_STATUS_CODES
from ..transport.client import HttpClient
from ..transport.models import RequestConfig

RetryHook = Callable[[RequestConfig], RequestConfig | Awaitable[RequestConfig | None] | None]


class RefreshOptions(BaseModel):
    """Options of one refresh interceptor installation.

    Attributes:
        instance: Client whose response pipeline gets the refresh hook.
            Defaults to the client passed at installation.
        status_codes: Response statuses that trigger a refresh.
        retry_instance: Client used to replay failed requests. Defaults to
            the client passed at installation.
        on_retry: Called with a copy of the failed request's configuration
            before it is replayed; may return a replacement.
        pause_instance_while_refreshing: Also hold requests made through
            ``instance`` (not only the installation client) while refreshing.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True, extra="forbid")

    instance: HttpClient | None = None
    status_codes: frozenset[int] = Field(
        default=AUTH_REFRESH_STATUS_CODES, validate_default=True
    )
    retry_instance: HttpClient | None = None
    on_retry: RetryHook | None = None
    pause_instance_while_refreshing: bool = False

    @field_validator("status_codes", mode="before")
    @classmethod
    def validate_status_codes(cls, v: Any) -> frozenset[int]:
        """Coerce any iterable of codes into a frozenset of HTTP statuses.

        A single integer is accepted as a one element set.
        """
        if isinstance(v, int):
            v = [v]
        if isinstance(v, str) or not hasattr(v, "__iter__"):
            raise ValueError("status_codes must be an iterable of integers")
        codes: set[int] = set()
        for code in v:
            try:
                value = int(code)
            except (TypeError, ValueError) as e:
                raise ValueError(f"invalid status code {code!r}") from e
            if not 100 <= value <= 599:
                raise ValueError(f"status code out of range: {value}")
            codes.add(value)
        return frozenset(codes)


DEFAULT_OPTIONS = RefreshOptions()


def coerce_options(options: RefreshOptions | Mapping[str, Any] | None) -> RefreshOptions:
    """Accept options as a model, a mapping or None."""
    if options is None:
        return RefreshOptions()
    if isinstance(options, RefreshOptions):
        return options
    return RefreshOptions(**dict(options))


def merge_options(
    options: RefreshOptions | Mapping[str, Any] | None,
    defaults: RefreshOptions = DEFAULT_OPTIONS,
) -> RefreshOptions:
    """Shallow merge: fields explicitly set on ``options`` win over ``defaults``.

    Args:
        options: Caller supplied options.
        defaults: Baseline options.

    Returns:
        A new frozen options object.
    """
    master = coerce_options(options)
    explicit = {name: getattr(master, name) for name in master.model_fields_set}
    return defaults.model_copy(update=explicit)
