from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, Literal, TypeVar

logger = logging.getLogger(__name__)

_E = TypeVar("_E")

Listener = Callable[[_E], Awaitable[None] | None]
TabStatus = Literal["loading", "complete"]


@dataclass(frozen=True, slots=True)
class TabUpdate:
    tab_id: str
    status: TabStatus


class Subscription:
    """Handle returned by :meth:`EventHub.subscribe`; release it on every exit path."""

    def __init__(self, hub: EventHub, listener: Callable):
        self._hub = hub
        self._listener = listener
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def release(self) -> None:
        if not self._active:
            return
        self._active = False
        self._hub._discard(self._listener)

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


class EventHub(Generic[_E]):
    """Fan-out of browser notifications to subscribed listeners.

    Listeners may be plain callables or coroutine functions. Coroutine
    listeners run as tasks owned by the hub; :meth:`drain` waits for them.
    """

    def __init__(self, name: str):
        self.name = name
        self._listeners: list[Callable] = []
        self._tasks: set[asyncio.Task] = set()

    def subscribe(self, listener: Listener) -> Subscription:
        self._listeners.append(listener)
        return Subscription(self, listener)

    def emit(self, event: _E) -> None:
        for listener in list(self._listeners):
            try:
                result = listener(event)
            except Exception:
                logger.exception("Listener for %s failed", self.name)
                continue
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._tasks.add(task)
                task.add_done_callback(self._task_done)

    async def drain(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def __len__(self) -> int:
        return len(self._listeners)

    def _discard(self, listener: Callable) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Async listener for %s failed", self.name, exc_info=exc)
