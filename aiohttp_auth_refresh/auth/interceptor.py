"""Response interceptor that refreshes credentials and replays failed requests.

Lifecycle of one installation::

    LISTENING --qualifying failure--> HANDLING --refresh settled--> LISTENING

While HANDLING the hook is not installed on the response pipeline, so a
refresh call that itself fails with a qualifying status is not intercepted.
Going back to LISTENING installs a fresh hook; it happens once per refresh
cycle regardless of how many failures joined that cycle.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any

from ..config.model import RefreshOptions, coerce_options, merge_options
from ..constants import REFRESH_CANCEL_REASON
from ..errors.handling import log_error
from ..errors.internal import CallerContractError, RequestCancelledError
from ..transport.client import HttpClient
from ..transport.interceptors import call_handler
from ..transport.models import RequestConfig, Response
from .classifier import should_intercept_error
from .coordinator import RefreshCall, RefreshCoordinator, default_coordinator


class InterceptorState(Enum):
    """States of an :class:`AuthRefreshInterceptor`.

    Attributes:
        STOPPED: Not installed.
        LISTENING: Hook installed on the response pipeline.
        HANDLING: Hook removed while a refresh cycle runs.
    """

    STOPPED = "stopped"
    LISTENING = "listening"
    HANDLING = "handling"


class AuthRefreshInterceptor:
    """Refreshes credentials when responses fail with a qualifying status."""

    def __init__(
        self,
        client: HttpClient,
        refresh_call: RefreshCall,
        options: RefreshOptions | Mapping[str, Any] | None = None,
        *,
        coordinator: RefreshCoordinator | None = None,
    ) -> None:
        """Validate the arguments. Nothing is installed until :meth:`install`.

        Args:
            client: Client that holds requests during a refresh and, unless
                ``retry_instance`` is set, replays the failed ones.
            refresh_call: Called with the triggering error; must return an
                awaitable that settles when new credentials are in place.
            options: :class:`RefreshOptions` or a mapping of its fields.
            coordinator: Shared refresh state. Defaults to the process wide one.

        Raises:
            CallerContractError: ``refresh_call`` is not callable.
        """
        if not callable(refresh_call):
            error = CallerContractError(
                "auth refresh requires `refresh_call` to be a function that returns an awaitable"
            )
            log_error("Refresh interceptor installation rejected", error)
            raise error
        self.client = client
        self.refresh_call = refresh_call
        self.options = coerce_options(options)
        self.coordinator = coordinator or default_coordinator
        self.state = InterceptorState.STOPPED
        self.interceptor_id: int | None = None
        self._cycle: asyncio.Future[Any] | None = None

    @property
    def instance(self) -> HttpClient:
        """Client whose response pipeline carries the hook."""
        return self.options.instance or self.client

    def install(self) -> int:
        """Start listening. Returns the id of the installed response hook."""
        if self.state is InterceptorState.LISTENING and self.interceptor_id is not None:
            return self.interceptor_id
        self.interceptor_id = self.instance.interceptors.response.use(
            None, self._on_rejected
        )
        self.state = InterceptorState.LISTENING
        self._cycle = None
        logging.debug(
            f"👂 Auth refresh listening on {self.instance.name} client id={self.interceptor_id}"
        )
        return self.interceptor_id

    def uninstall(self) -> None:
        """Stop listening for good; a running cycle will not reinstall."""
        self.instance.interceptors.response.eject(self.interceptor_id)
        self.interceptor_id = None
        self.state = InterceptorState.STOPPED
        self._cycle = None

    async def _on_rejected(self, error: Exception) -> Response:
        options = merge_options(self.options)
        if not should_intercept_error(error, options):
            raise error

        self._stop_listening()
        refresh = self.coordinator.create_refresh_call(error, self.refresh_call)
        if self.state is InterceptorState.HANDLING and self._cycle is None:
            self._cycle = refresh
        self.coordinator.create_request_queue_interceptor(self.client)
        if options.pause_instance_while_refreshing:
            self.coordinator.create_request_queue_interceptor(self.instance)

        try:
            try:
                await asyncio.shield(refresh)
            except asyncio.CancelledError:
                if not refresh.cancelled():
                    raise
                raise RequestCancelledError(
                    REFRESH_CANCEL_REASON, config=getattr(error, "config", None)
                ) from None
            except Exception as e:
                log_error(
                    "Credential refresh failed",
                    e,
                    context={"client": self.client.name},
                    level=logging.WARNING,
                )
                raise
            finally:
                if refresh.done():
                    self.coordinator.eject_request_queue_interceptor()
            return await self._replay(error, options)
        finally:
            if refresh.done():
                self._finish_cycle(refresh)
            else:
                # The awaiting caller was cancelled; clean up once the refresh settles.
                refresh.add_done_callback(lambda _: self._finish_cycle(refresh))

    async def _replay(self, error: Exception, options: RefreshOptions) -> Response:
        """Re-issue the failed request from its own captured configuration."""
        captured: RequestConfig | None = getattr(error, "config", None)
        if captured is None:
            captured = error.response.config  # type: ignore[attr-defined]
        config = captured.copy()
        if options.on_retry is not None:
            updated = await call_handler(options.on_retry, config)
            if updated is not None:
                config = updated
        target = options.retry_instance or self.client
        logging.debug(f"🔁 Replaying {config.method} {config.url} via {target.name} client")
        return await target.request(config)

    def _stop_listening(self) -> None:
        if self.state is not InterceptorState.LISTENING:
            return
        self.instance.interceptors.response.eject(self.interceptor_id)
        self.interceptor_id = None
        self.state = InterceptorState.HANDLING

    def _finish_cycle(self, refresh: asyncio.Future[Any]) -> None:
        self.coordinator.release(refresh)
        if self.state is InterceptorState.HANDLING and self._cycle is refresh:
            self.install()


def create_auth_refresh_interceptor(
    client: HttpClient,
    refresh_call: RefreshCall,
    options: RefreshOptions | Mapping[str, Any] | None = None,
    *,
    coordinator: RefreshCoordinator | None = None,
) -> int:
    """Install a refresh interceptor and return its response hook id.

    The id changes every time the interceptor resumes listening after a
    refresh cycle; keep an :class:`AuthRefreshInterceptor` to uninstall it
    reliably.

    Raises:
        CallerContractError: ``refresh_call`` is not callable.
    """
    return AuthRefreshInterceptor(
        client, refresh_call, options, coordinator=coordinator
    ).install()
