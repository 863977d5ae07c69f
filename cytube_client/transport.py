"""Socket.IO transport session for CyTube."""

from __future__ import annotations

import inspect
import logging
from collections import defaultdict
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

import socketio
from socketio.exceptions import ConnectionError as SocketConnectionError
from socketio.exceptions import SocketIOError

from .errors import TransportError

_LOGGER = logging.getLogger(__name__)

FrameHandler = Callable[..., Any]
Notify = Callable[..., Any]

CONNECT_TIMEOUT = 10.0


@dataclass(slots=True)
class _Subscription:
    handler: FrameHandler
    once: bool


class TransportSession:
    """Owns one Socket.IO connection and dispatches its frames.

    Lifecycle notifications (``connecting``, ``error``) go to ``notify``.
    Inbound frames, plus the ``connect`` and ``disconnect`` lifecycle frames,
    go to handlers registered with :meth:`on_every` (persistent) or
    :meth:`on_next` (consumed by the first matching frame).

    Usage:
        session = TransportSession(agent="bot/1.0", notify=emitter.emit)
        session.on_next("connect", on_connected)
        session.on_every("chatMsg", on_chat)
        await session.connect("https://cytu.be:10443")
        await session.send("chatMsg", {"msg": "hello"})
        await session.disconnect()
    """

    def __init__(
        self,
        *,
        agent: str,
        notify: Notify,
        transports: Sequence[str] | None = None,
        connect_timeout: float = CONNECT_TIMEOUT,
        logger: logging.Logger | None = None,
    ) -> None:
        self._agent = agent
        self._notify = notify
        self._transports = list(transports) if transports else None
        self._connect_timeout = connect_timeout
        self._logger = logger or _LOGGER

        self._subscriptions: dict[str, list[_Subscription]] = defaultdict(list)
        self._connected = False
        self._attempted = False
        self._connect_error: Any = None

        self._sio = socketio.AsyncClient(
            reconnection=False,
            logger=False,
            engineio_logger=False,
        )
        self._sio.on("connect", self._on_connect)
        self._sio.on("connect_error", self._on_connect_error)
        self._sio.on("disconnect", self._on_disconnect)
        self._sio.on("*", self._on_frame)

    @property
    def connected(self) -> bool:
        return self._connected

    # -------------------------------------------------------------------------
    # Public API: Subscriptions
    # -------------------------------------------------------------------------

    def on_every(self, frame: str, handler: FrameHandler) -> None:
        """Call ``handler`` for every ``frame`` received."""
        self._subscriptions[frame].append(_Subscription(handler, once=False))

    def on_next(self, frame: str, handler: FrameHandler) -> None:
        """Call ``handler`` for the next ``frame`` received only."""
        self._subscriptions[frame].append(_Subscription(handler, once=True))

    # -------------------------------------------------------------------------
    # Public API: Connection
    # -------------------------------------------------------------------------

    async def connect(self, url: str) -> bool:
        """Open the socket connection.

        Failures are reported as an ``error`` notification carrying a
        :class:`TransportError`; nothing is raised.

        Returns:
            True if the connection was established
        """
        if self._attempted:
            self._logger.warning("Transport session already used for %s", url)
            return self._connected
        self._attempted = True

        self._logger.info("Connecting to socket server %s", url)
        self._notify("connecting")

        try:
            await self._sio.connect(
                url,
                headers={"User-Agent": self._agent},
                transports=self._transports,
                wait_timeout=self._connect_timeout,
            )
        except SocketConnectionError as err:
            detail = self._connect_error if self._connect_error is not None else err
            self._logger.error("Socket connection failed: %s", detail)
            self._notify("error", TransportError(f"Socket connection failed: {detail}"))
            return False
        return True

    async def send(self, frame: str, data: Any = None) -> None:
        """Send an outbound frame.

        Raises:
            TransportError: If the socket is not connected
        """
        if not self._connected:
            raise TransportError("Socket is not connected")
        try:
            await self._sio.emit(frame, data)
        except SocketIOError as err:
            raise TransportError(f"Failed to send {frame}") from err
        self._logger.debug("Sent %s", frame)

    async def disconnect(self) -> None:
        """Close the socket connection if open."""
        if not self._connected:
            return
        try:
            await self._sio.disconnect()
        finally:
            self._connected = False

    # -------------------------------------------------------------------------
    # Internal: Socket.IO handlers
    # -------------------------------------------------------------------------

    async def _on_connect(self) -> None:
        self._connected = True
        self._logger.info("Socket connected")
        await self._dispatch("connect")

    async def _on_connect_error(self, data: Any = None) -> None:
        self._connect_error = data
        self._logger.warning("Socket connect error: %s", data)

    async def _on_disconnect(self, *args: Any) -> None:
        self._logger.info("Socket disconnected")
        try:
            await self._dispatch("disconnect", *args)
        finally:
            self._connected = False

    async def _on_frame(self, frame: str, *args: Any) -> None:
        if not self._connected:
            self._logger.debug("Dropping %s received before connect", frame)
            return
        await self._dispatch(frame, *args)

    async def _dispatch(self, frame: str, *args: Any) -> None:
        """Run subscribed handlers for ``frame`` in registration order."""
        subscriptions = list(self._subscriptions.get(frame, ()))
        for subscription in subscriptions:
            if subscription.once:
                self._discard(frame, subscription)
            try:
                result = subscription.handler(*args)
                if inspect.iscoroutine(result):
                    await result
            except Exception as err:
                self._logger.exception("Handler error for '%s': %s", frame, err)

    def _discard(self, frame: str, subscription: _Subscription) -> None:
        subscriptions = self._subscriptions.get(frame, [])
        for index, candidate in enumerate(subscriptions):
            if candidate is subscription:
                del subscriptions[index]
                break
