"""
Configuration constants for the auth refresh interceptor

This module contains the configurable defaults used throughout the package.
Each constant can be overridden by setting an environment variable with the same name.
"""

import os


def _get_env_int(name: str, default: int) -> int:
    """Retrieve an integer value from an environment variable.

    Attempts to parse the environment variable as an integer. If the variable
    is not set or cannot be parsed, prints a warning and returns the default value.

    Args:
        name: The name of the environment variable to read.
        default: The default integer value to return if parsing fails.

    Returns:
        The parsed integer value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return int(value)
        except ValueError:
            print(
                f"Warning: Invalid integer value for {name}='{value}', using default {default}"
            )
    return default


def _get_env_int_set(name: str, default: frozenset[int]) -> frozenset[int]:
    """Retrieve a comma separated set of HTTP status codes from an environment variable.

    Args:
        name: The name of the environment variable to read.
        default: The value returned when the variable is unset, empty or invalid.

    Returns:
        The parsed set of status codes, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        codes = frozenset(int(part) for part in value.split(",") if part.strip())
    except ValueError:
        codes = frozenset()
    if not codes or not all(100 <= code <= 599 for code in codes):
        print(
            f"Warning: Invalid integer list for {name}='{value}', using default {sorted(default)}"
        )
        return default
    return codes


# Response status codes that trigger a credential refresh
AUTH_REFRESH_STATUS_CODES = _get_env_int_set(
    "AUTH_REFRESH_STATUS_CODES", frozenset({401})
)

# Reason carried by requests cancelled because the refresh they waited on failed
REFRESH_CANCEL_REASON = "Refresh call failed"

# Network/HTTP constants
HTTP_REQUEST_TIMEOUT_SECONDS = _get_env_int(
    "HTTP_REQUEST_TIMEOUT_SECONDS", 30
)  # Default total timeout of the aiohttp session
HTTP_MAX_CONNECTIONS = _get_env_int(
    "HTTP_MAX_CONNECTIONS", 100
)  # Connector pool size
