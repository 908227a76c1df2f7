"""
Asynchronous HTTP client with request/response interceptor pipelines.

The client wraps an aiohttp session. Each call runs through:

    request interceptors -> adapter (aiohttp by default) -> status validation
    -> response interceptors

Both interceptor chains are snapshotted when the call starts, so installing or
ejecting interceptors while a request is in flight only affects later calls.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import replace
from typing import Any

import aiohttp

from ..constants import HTTP_MAX_CONNECTIONS, HTTP_REQUEST_TIMEOUT_SECONDS
from ..errors.internal import HTTPStatusError, NetworkError
from .interceptors import Interceptor, Interceptors, call_handler
from .models import RequestConfig, Response

Adapter = Callable[[RequestConfig], Awaitable[Response]]


def _default_validate_status(status: int) -> bool:
    return 200 <= status < 300


async def run_chain(chain: list[Interceptor], value: Any, error: Exception | None) -> Any:
    """Thread a value or an exception through a snapshot of interceptors.

    Values go to ``on_fulfilled`` and exceptions to ``on_rejected``. A
    fulfilled handler returning None leaves the value unchanged; a rejected
    handler's return value recovers the chain. Raising inside any handler
    turns the outcome into that exception.

    Raises:
        Exception: Whatever failure is left at the end of the chain.
    """
    for interceptor in chain:
        handler = (
            interceptor.on_rejected if error is not None else interceptor.on_fulfilled
        )
        if handler is None:
            continue
        try:
            result = await call_handler(handler, error if error is not None else value)
        except Exception as exc:  # noqa: BLE001
            error = exc
            continue
        if error is not None:
            value, error = result, None
        elif result is not None:
            value = result
    if error is not None:
        raise error
    return value


class HttpClient:
    """Asynchronous HTTP client with axios style interceptors.

    Attributes:
        base_url: Prefix joined onto relative request URLs.
        headers: Default headers merged under each request's own headers at
            dispatch time. Updating them (e.g. after a credential refresh)
            affects replays of already captured configurations.
        interceptors: The ``request`` and ``response`` interceptor registries.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession | None = None,
        *,
        base_url: str = "",
        headers: dict[str, str] | None = None,
        adapter: Adapter | None = None,
        validate_status: Callable[[int], bool] | None = None,
        name: str = "http",
    ) -> None:
        """Initialize the client.

        Args:
            session: Existing aiohttp session. When omitted the client creates
                and owns one lazily on first use.
            base_url: Prefix for relative URLs.
            headers: Default headers.
            adapter: Coroutine performing the actual exchange. Defaults to the
                aiohttp session.
            validate_status: Predicate deciding which statuses are successes.
            name: Label used in log messages.
        """
        self._session = session
        self._owns_session = session is None
        self._loop: asyncio.AbstractEventLoop | None = None
        self.base_url = base_url.rstrip("/")
        self.headers: dict[str, str] = dict(headers or {})
        self.adapter: Adapter = adapter or self._aiohttp_adapter
        self.validate_status = validate_status or _default_validate_status
        self.name = name
        self.interceptors = Interceptors()

    async def __aenter__(self) -> HttpClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ---- session management ----
    async def get_session(self) -> aiohttp.ClientSession:
        """Return the aiohttp session, creating it when needed.

        An owned session is recreated when it was closed or belongs to a
        different event loop than the running one.
        """
        current_loop = asyncio.get_running_loop()
        if self._session is not None and not self._owns_session:
            return self._session
        if self._should_create_new_session(current_loop):
            await self._close_owned_session()
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=HTTP_REQUEST_TIMEOUT_SECONDS),
                connector=aiohttp.TCPConnector(limit=HTTP_MAX_CONNECTIONS),
            )
            self._loop = current_loop
            logging.debug(f"🌐 {self.name} client created new aiohttp session")
        return self._session  # type: ignore[return-value]

    def _should_create_new_session(self, current_loop: asyncio.AbstractEventLoop) -> bool:
        if self._session is None or self._session.closed:
            return True
        return self._loop is not None and self._loop is not current_loop

    async def _close_owned_session(self) -> None:
        session, self._session = self._session, None
        if session is None or session.closed:
            return
        if self._loop is not None and self._loop is not asyncio.get_running_loop():
            # Cannot close cleanly from a foreign loop; drop the reference.
            logging.debug(f"🌐 {self.name} client discarding session from another loop")
            return
        await session.close()

    async def close(self) -> None:
        """Close the session if this client owns it."""
        if self._owns_session:
            await self._close_owned_session()
            self._loop = None

    # ---- request pipeline ----
    async def request(self, config: RequestConfig | None = None, **overrides: Any) -> Response:
        """Send a request through the interceptor pipelines.

        Args:
            config: Request configuration. It is copied, never mutated.
            **overrides: Field overrides applied to the copy.

        Returns:
            The response, possibly replaced by a response interceptor.

        Raises:
            HTTPStatusError: Response status rejected by ``validate_status``.
            NetworkError: The adapter failed before a response was received.
            RequestCancelledError: A request interceptor aborted the call.
        """
        config = (config or RequestConfig()).copy(**overrides)
        request_chain = self.interceptors.request.snapshot()
        response_chain = self.interceptors.response.snapshot()
        try:
            config = await run_chain(request_chain, config, None)
            response = await self._dispatch(config)
        except Exception as exc:  # noqa: BLE001
            return await run_chain(response_chain, None, exc)
        return await run_chain(response_chain, response, None)

    async def _dispatch(self, config: RequestConfig) -> Response:
        config = config.copy(url=self._resolve_url(config.url))
        wire = config.copy(headers={**self.headers, **config.headers})
        try:
            raw = await self.adapter(wire)
        except (aiohttp.ClientError, TimeoutError, OSError) as e:
            logging.debug(
                f"⚠️ {self.name} {config.method} {config.url} transport error type={type(e).__name__}"
            )
            raise NetworkError(
                f"Network error during {config.method} {config.url}: {str(e)}",
                config=config,
                data={"url": config.url},
            ) from e
        # Keep the captured config free of default headers so replays pick up
        # the client's current defaults.
        response = replace(raw, config=config)
        logging.debug(
            f"{self.name} {config.method} {config.url} status={response.status}"
        )
        if not self.validate_status(response.status):
            raise HTTPStatusError(response)
        return response

    def _resolve_url(self, url: str) -> str:
        if not self.base_url or url.startswith(("http://", "https://")):
            return url
        return f"{self.base_url}/{url.lstrip('/')}"

    async def _aiohttp_adapter(self, config: RequestConfig) -> Response:
        session = await self.get_session()
        async with session.request(
            config.method,
            config.url,
            headers=config.headers,
            params=config.params,
            json=config.json,
            data=config.data,
        ) as resp:
            body = await resp.read()
            return Response(resp.status, dict(resp.headers), body, config)

    # ---- convenience helpers ----
    async def get(self, url: str, **kwargs: Any) -> Response:
        return await self.request(method="GET", url=url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> Response:
        return await self.request(method="POST", url=url, **kwargs)

    async def put(self, url: str, **kwargs: Any) -> Response:
        return await self.request(method="PUT", url=url, **kwargs)

    async def patch(self, url: str, **kwargs: Any) -> Response:
        return await self.request(method="PATCH", url=url, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> Response:
        return await self.request(method="DELETE", url=url, **kwargs)


# Process wide client used when no explicit instance is configured.
default_client = HttpClient(name="default")
