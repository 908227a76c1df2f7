"""aiohttp based transport with interceptor pipelines."""

from .client import Adapter, HttpClient, default_client, run_chain
from .interceptors import Interceptor, InterceptorManager, Interceptors
from .models import RequestConfig, Response

__all__ = [
    "Adapter",
    "HttpClient",
    "default_client",
    "run_chain",
    "Interceptor",
    "InterceptorManager",
    "Interceptors",
    "RequestConfig",
    "Response",
]
