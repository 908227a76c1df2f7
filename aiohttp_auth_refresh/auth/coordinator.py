"""Single-flight coordination of credential refreshes.

The coordinator owns the only shared mutable state of the package: the
refresh currently in flight and the hold interceptors installed while it
runs. Its state is either :class:`Idle` or :class:`Refreshing`; a hold
interceptor is recorded only inside ``Refreshing``.

All check-then-set sequences below run without an ``await`` between the
check and the store, which makes them atomic on a single event loop. They
are not thread safe.
"""

from __future__ import annotations

import asyncio
import contextvars
import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from ..constants import REFRESH_CANCEL_REASON
from ..errors.handling import log_error
from ..errors.internal import CallerContractError, RequestCancelledError
from ..transport.client import HttpClient
from ..transport.models import RequestConfig

RefreshCall = Callable[[Any], Any]


@dataclass(frozen=True)
class Idle:
    """No refresh in flight."""


@dataclass
class Refreshing:
    """A refresh is in flight.

    Attributes:
        refresh: Future shared by everyone waiting on this refresh.
        holds: ``(client, interceptor_id)`` pairs of installed hold hooks.
    """

    refresh: asyncio.Future[Any]
    holds: list[tuple[HttpClient, int]] = field(default_factory=list)

    @property
    def hold_interceptor_id(self) -> int | None:
        return self.holds[0][1] if self.holds else None


CoordinationState = Idle | Refreshing

IDLE = Idle()


# Set for the refresh task and inherited by every task it spawns.
_in_refresh: contextvars.ContextVar[bool] = contextvars.ContextVar(
    "in_refresh", default=False
)


async def _run_refresh(awaitable: Awaitable[Any]) -> Any:
    _in_refresh.set(True)
    return await awaitable


def _failed_future(error: BaseException) -> asyncio.Future[Any]:
    future = asyncio.get_running_loop().create_future()
    future.set_exception(error)
    return future


class RefreshCoordinator:
    """Holds the in-flight refresh and the hold interceptors guarding it."""

    def __init__(self) -> None:
        self._state: CoordinationState = IDLE

    @property
    def state(self) -> CoordinationState:
        return self._state

    @property
    def is_refreshing(self) -> bool:
        return isinstance(self._state, Refreshing)

    @property
    def refresh(self) -> asyncio.Future[Any] | None:
        state = self._state
        return state.refresh if isinstance(state, Refreshing) else None

    @property
    def hold_interceptor_id(self) -> int | None:
        state = self._state
        return state.hold_interceptor_id if isinstance(state, Refreshing) else None

    def create_refresh_call(self, error: Any, refresh_call: RefreshCall) -> asyncio.Future[Any]:
        """Return the in-flight refresh, starting one if none exists.

        ``refresh_call`` is invoked at most once per refresh cycle no matter
        how many failures arrive while the refresh runs.

        Args:
            error: The failure that triggered the refresh, passed to ``refresh_call``.
            refresh_call: Caller supplied function returning an awaitable.

        Returns:
            A future settling with the refresh outcome. When ``refresh_call``
            returns something that is not awaitable, an already failed future
            carrying :class:`CallerContractError` is returned and the
            coordinator stays idle.
        """
        state = self._state
        if isinstance(state, Refreshing):
            return state.refresh
        try:
            result = refresh_call(error)
        except Exception as e:  # noqa: BLE001
            logging.warning(
                f"⚠️ Refresh function raised before returning an awaitable type={type(e).__name__}"
            )
            refresh = _failed_future(e)
        else:
            if not inspect.isawaitable(result):
                contract_error = CallerContractError(
                    "auth refresh requires `refresh_call` to return an awaitable"
                )
                log_error(
                    "Refresh function broke its contract",
                    contract_error,
                    context={"returned": type(result).__name__},
                )
                return _failed_future(contract_error)
            if inspect.iscoroutine(result):
                refresh = asyncio.ensure_future(_run_refresh(result))
            else:
                refresh = asyncio.ensure_future(result)
        self._state = Refreshing(refresh)
        logging.info("🔄 Credential refresh started")
        return refresh

    def create_request_queue_interceptor(self, client: HttpClient) -> int | None:
        """Install the hold hook on ``client`` for the current refresh.

        Idempotent per client: a second call for the same client returns the
        recorded id, even after the hook was ejected at settle time.

        Returns:
            The hold interceptor id, or None when no refresh is in flight.
        """
        state = self._state
        if not isinstance(state, Refreshing):
            return None
        for held_client, interceptor_id in state.holds:
            if held_client is client:
                return interceptor_id
        refresh = state.refresh

        async def hold(config: RequestConfig) -> RequestConfig:
            return await _hold_request(refresh, config)

        interceptor_id = client.interceptors.request.use(hold)
        state.holds.append((client, interceptor_id))
        logging.debug(f"⏸️ Holding requests on {client.name} client id={interceptor_id}")
        return interceptor_id

    def eject_request_queue_interceptor(self) -> None:
        """Remove every hold hook of the current refresh. Ids stay recorded."""
        state = self._state
        if not isinstance(state, Refreshing):
            return
        for client, interceptor_id in state.holds:
            client.interceptors.request.eject(interceptor_id)

    def release(self, refresh: asyncio.Future[Any]) -> bool:
        """Return to idle if ``refresh`` is still the current refresh.

        Returns:
            True when the state was cleared by this call.
        """
        state = self._state
        if not isinstance(state, Refreshing) or state.refresh is not refresh:
            return False
        self.eject_request_queue_interceptor()
        self._state = IDLE
        logging.debug("🔄 Refresh cycle finished, coordinator idle")
        return True

    def reset(self) -> None:
        """Force the coordinator back to idle, ejecting any hold hooks."""
        self.eject_request_queue_interceptor()
        self._state = IDLE


async def _hold_request(refresh: asyncio.Future[Any], config: RequestConfig) -> RequestConfig:
    """Suspend a request until ``refresh`` settles.

    Opted-out requests and requests issued by the refresh, including from
    tasks the refresh spawned, pass straight through.

    Raises:
        RequestCancelledError: The refresh failed or was cancelled.
    """
    if (
        config.skip_auth_refresh
        or _in_refresh.get()
        or asyncio.current_task() is refresh
    ):
        return config
    try:
        await asyncio.shield(refresh)
    except asyncio.CancelledError:
        if not refresh.cancelled():
            raise
        raise RequestCancelledError(REFRESH_CANCEL_REASON, config=config) from None
    except Exception as e:
        raise RequestCancelledError(REFRESH_CANCEL_REASON, config=config) from e
    return config


# Shared by every installation that does not bring its own coordinator.
default_coordinator = RefreshCoordinator()
