"""Interceptor registries for the request and response pipelines."""

from __future__ import annotations

import inspect
import itertools
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

Handler = Callable[[Any], Any | Awaitable[Any]]


@dataclass(frozen=True)
class Interceptor:
    """One installed pair of pipeline handlers.

    Attributes:
        id: Identifier returned by :meth:`InterceptorManager.use`.
        on_fulfilled: Called with the value flowing through the pipeline.
        on_rejected: Called with the exception flowing through the pipeline.
    """

    id: int
    on_fulfilled: Handler | None = None
    on_rejected: Handler | None = None


async def call_handler(handler: Handler, value: Any) -> Any:
    """Invoke a handler that may be sync or async and return its result."""
    result = handler(value)
    if inspect.isawaitable(result):
        result = await result
    return result


class InterceptorManager:
    """Ordered registry of interceptors addressable by id.

    Ids are never reused within one manager, so ejecting a stale id can never
    remove a newer interceptor.
    """

    def __init__(self, name: str = "interceptors") -> None:
        self.name = name
        self._ids = itertools.count()
        self._handlers: dict[int, Interceptor] = {}

    def use(
        self,
        on_fulfilled: Handler | None = None,
        on_rejected: Handler | None = None,
    ) -> int:
        """Install an interceptor and return its id.

        Args:
            on_fulfilled: Handler for values (request configs or responses).
            on_rejected: Handler for exceptions raised earlier in the chain.

        Returns:
            Identifier to pass to :meth:`eject`.
        """
        interceptor_id = next(self._ids)
        self._handlers[interceptor_id] = Interceptor(
            interceptor_id, on_fulfilled, on_rejected
        )
        logging.debug(f"🔗 {self.name} interceptor installed id={interceptor_id}")
        return interceptor_id

    def eject(self, interceptor_id: int | None) -> None:
        """Remove an interceptor. Unknown or ``None`` ids are ignored."""
        if interceptor_id is None:
            return
        if self._handlers.pop(interceptor_id, None) is not None:
            logging.debug(f"✂️ {self.name} interceptor ejected id={interceptor_id}")

    def has(self, interceptor_id: int | None) -> bool:
        return interceptor_id in self._handlers

    def clear(self) -> None:
        self._handlers.clear()

    def snapshot(self) -> list[Interceptor]:
        """Return the installed interceptors in install order."""
        return list(self._handlers.values())

    def __len__(self) -> int:
        return len(self._handlers)


class Interceptors:
    """The request and response interceptor registries of one client."""

    def __init__(self) -> None:
        self.request = InterceptorManager("request")
        self.response = InterceptorManager("response")
