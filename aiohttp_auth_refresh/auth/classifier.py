"""Decides which failures qualify for a credential refresh."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..config.model import RefreshOptions


def should_intercept_error(error: BaseException | None, options: RefreshOptions) -> bool:
    """Return True when ``error`` should trigger a refresh.

    Returns False when there is no error, when it carries no response, when
    the failed request opted out with ``skip_auth_refresh`` or when the
    response status is not one of ``options.status_codes``.
    """
    if error is None:
        return False
    config = getattr(error, "config", None)
    if config is not None and getattr(config, "skip_auth_refresh", False):
        return False
    response = getattr(error, "response", None)
    if response is None:
        return False
    try:
        status = int(response.status)
    except (AttributeError, TypeError, ValueError):
        return False
    return status in options.status_codes
