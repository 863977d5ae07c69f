"""Named event subscription registry."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

_LOGGER = logging.getLogger(__name__)

Listener = Callable[..., Any]


@dataclass(slots=True)
class _Registration:
    listener: Listener
    once: bool


class EventEmitter:
    """Ordered publish/subscribe helper keyed by event name.

    Listeners run in registration order with the arguments passed to
    ``emit``. Coroutine listeners are scheduled as tasks on the running loop.
    A listener that raises is logged and does not stop delivery.

    Usage:
        emitter = EventEmitter()

        @emitter.on("chatMsg")
        def handle(data):
            ...

        emitter.once("ready", lambda: print("ready"))
        emitter.emit("chatMsg", {"msg": "hi"})
    """

    def __init__(self, *, logger: logging.Logger | None = None) -> None:
        self._registry: dict[str, list[_Registration]] = defaultdict(list)
        self._background_tasks: set[asyncio.Task[Any]] = set()
        self._logger = logger or _LOGGER

    def on(self, event: str, listener: Listener | None = None) -> Any:
        """Register a persistent listener.

        When ``listener`` is omitted, returns a decorator.
        """
        if listener is None:

            def decorator(fn: Listener) -> Listener:
                self._registry[event].append(_Registration(fn, once=False))
                return fn

            return decorator

        self._registry[event].append(_Registration(listener, once=False))
        return listener

    def once(self, event: str, listener: Listener) -> Listener:
        """Register a listener removed after its first call."""
        self._registry[event].append(_Registration(listener, once=True))
        return listener

    def off(self, event: str, listener: Listener) -> None:
        """Remove the first registration of ``listener`` for ``event``."""
        registrations = self._registry.get(event, [])
        for registration in registrations:
            if registration.listener == listener:
                registrations.remove(registration)
                break

    def listeners(self, event: str) -> list[Listener]:
        """Return the listeners for ``event`` in delivery order."""
        return [r.listener for r in self._registry.get(event, [])]

    def emit(self, event: str, *args: Any) -> bool:
        """Deliver ``args`` to every listener of ``event``.

        Returns:
            True if at least one listener was called
        """
        registrations = list(self._registry.get(event, []))
        if not registrations:
            if event == "error":
                err = args[0] if args else None
                self._logger.error("Unhandled error event: %s", err)
            return False

        for registration in registrations:
            if registration.once:
                self._discard(event, registration)
            try:
                result = registration.listener(*args)
                if asyncio.iscoroutine(result):
                    self._fire_task(result)
            except Exception as err:
                self._logger.exception(
                    "Listener error for '%s': %s", event, err
                )
        return True

    def _discard(self, event: str, registration: _Registration) -> None:
        registrations = self._registry.get(event, [])
        for index, candidate in enumerate(registrations):
            if candidate is registration:
                del registrations[index]
                break

    def _fire_task(self, coro: Any) -> None:
        """Schedule a coroutine with a strong reference to prevent GC."""
        task = asyncio.ensure_future(coro)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
