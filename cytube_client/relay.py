"""Forward allow-listed socket frames to local subscribers."""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable, Iterable
from typing import Any

from .protocol import RELAYED_FRAMES
from .transport import TransportSession

_LOGGER = logging.getLogger(__name__)


class EventRelay:
    """Re-emit every catalogued frame under its own name, arguments untouched."""

    def __init__(
        self,
        transport: TransportSession,
        notify: Callable[..., Any],
        *,
        frames: Iterable[str] = RELAYED_FRAMES,
        logger: logging.Logger | None = None,
    ) -> None:
        self._transport = transport
        self._notify = notify
        self._frames = tuple(dict.fromkeys(frames))
        self._logger = logger or _LOGGER
        self._installed = False

    @property
    def frames(self) -> tuple[str, ...]:
        return self._frames

    def install(self) -> None:
        """Subscribe to every catalogued frame. Repeated calls are no-ops."""
        if self._installed:
            return
        self._logger.debug("Assigning handlers for %d frames", len(self._frames))
        for frame in self._frames:
            self._transport.on_every(frame, functools.partial(self._forward, frame))
        self._installed = True

    def _forward(self, frame: str, *args: Any) -> None:
        self._notify(frame, *args)
