"""Configuration package exports."""

from .model import DEFAULT_OPTIONS, RefreshOptions, RetryHook, coerce_options, merge_options

__all__ = [
    "DEFAULT_OPTIONS",
    "RefreshOptions",
    "RetryHook",
    "coerce_options",
    "merge_options",
]
