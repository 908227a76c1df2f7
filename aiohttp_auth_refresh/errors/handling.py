from __future__ import annotations

import logging

from ..logging_config import log_structured_error
from .internal import (
    CallerContractError,
    HTTPStatusError,
    InternalError,
    NetworkError,
    RequestCancelledError,
)


def classify_error(error: BaseException) -> str:
    """Return the structured logging category of an exception.

    Args:
        error: The exception to categorise.

    Returns:
        One of ``network``, ``auth``, ``http``, ``contract``, ``cancelled``,
        ``internal`` or ``unknown``.
    """
    if isinstance(error, CallerContractError):
        return "contract"
    if isinstance(error, RequestCancelledError):
        return "cancelled"
    if isinstance(error, NetworkError | OSError | ConnectionError):
        return "network"
    if isinstance(error, HTTPStatusError):
        return "auth" if error.status in (401, 403) else "http"
    if isinstance(error, InternalError):
        return "internal"
    return "unknown"


def log_error(
    message: str, error: BaseException, context: dict = None, level: int = logging.ERROR
) -> None:
    """Logs an error message with the associated exception details.

    The exception is categorised with :func:`classify_error` and written as
    one structured line.

    Args:
        message: A descriptive message about the error context.
        error: The exception instance to be logged.
        context: Optional additional context data for debugging.
        level: Logging level (default: ERROR).
    """
    log_structured_error(
        error_type=classify_error(error),
        message=f"{message}: {str(error)}",
        exception=error,
        context=context,
        level=level,
    )
