"""High-level CyTube channel client.

Composes socket server discovery, the Socket.IO transport, the channel
join sequence and the frame relay behind one event emitter:

    resolve()  ──> ready
    connect()  ──> connecting, connected
    start()    ──> starting, started | error

Every failure is reported as an ``error`` notification carrying a
:class:`~cytube_client.errors.CyTubeClientError`; the commands themselves
do not raise for connection problems.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Callable, Sequence
from typing import Any

import aiohttp

from .config import ConnectionConfig
from .discovery import EndpointResolver
from .errors import DiscoveryError, NoSecureEndpoint, TransportError
from .events import EventEmitter
from .handshake import HandshakeCoordinator, HandshakeState
from .relay import EventRelay
from .transport import TransportSession

_LOGGER = logging.getLogger(__name__)


class CyTubeClient(EventEmitter):
    """Client for one CyTube channel.

    Usage:
        client = CyTubeClient(ConnectionConfig(channel="mlp"), on_ready=on_ready)
        client.on("chatMsg", handle_chat)
        client.on("error", handle_error)
        await client.connect()
        await client.start()
        ...
        await client.close()
    """

    def __init__(
        self,
        config: ConnectionConfig | None = None,
        *,
        logger: logging.Logger | None = None,
        on_ready: Callable[[], Any] | None = None,
        http_session: aiohttp.ClientSession | None = None,
        transports: Sequence[str] | None = None,
    ) -> None:
        """Initialize client.

        Args:
            config: Connection settings (defaults to a guest on cytu.be/test)
            logger: Logger for all client components
            on_ready: Called once when the socket server URL is known
            http_session: Session for the socket config lookup; a private
                session is used when omitted
            transports: Socket.IO transports to allow (default: library default)

        When constructed inside a running event loop the socket server
        lookup starts right away; otherwise it starts on the first
        ``resolve()`` or ``connect()``.
        """
        super().__init__(logger=logger or _LOGGER)
        self.config = config or ConnectionConfig()
        self._transports = transports

        self._resolver = EndpointResolver(
            self.config, session=http_session, logger=self._logger
        )
        self._resolution: asyncio.Task[str | None] | None = None

        self._transport: TransportSession | None = None
        self._relay: EventRelay | None = None
        self._handshake: HandshakeCoordinator | None = None

        if on_ready is not None:
            self.once("ready", on_ready)

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None
        if loop is not None:
            self._resolution = loop.create_task(self._resolve())

    # -------------------------------------------------------------------------
    # Public API: State
    # -------------------------------------------------------------------------

    @property
    def config_url(self) -> str:
        return self._resolver.config_url

    @property
    def socket_url(self) -> str | None:
        return self._resolver.socket_url

    @property
    def connected(self) -> bool:
        return self._transport is not None and self._transport.connected

    @property
    def handshake_state(self) -> HandshakeState | None:
        """Join progress of the current session, None before connect."""
        if self._handshake is None:
            return None
        return self._handshake.state

    @property
    def is_started(self) -> bool:
        return self.handshake_state is HandshakeState.SUCCEEDED

    # -------------------------------------------------------------------------
    # Public API: Commands
    # -------------------------------------------------------------------------

    async def resolve(self) -> str | None:
        """Look up the socket server URL, once.

        Emits ``ready`` after a successful lookup, even when no server
        qualified. A failed lookup emits ``error`` instead and is retried
        on the next call.

        Returns:
            The socket server URL, or None
        """
        if self._resolution is None:
            self._resolution = asyncio.ensure_future(self._resolve())
        return await self._resolution

    async def connect(self) -> bool:
        """Resolve the socket server if needed and connect to it.

        Returns:
            True if the socket connected
        """
        url = await self.resolve()
        if url is None:
            if not self._resolver.resolved:
                # Lookup failed and already emitted its own error
                return False
            self.emit(
                "error",
                NoSecureEndpoint(
                    f"No secure socket server for channel {self.config.channel}"
                ),
            )
            return False

        if self.connected:
            self._logger.warning("[%s] Already connected", self.config.channel)
            return True

        self._logger.info("[%s] Connecting to socket server", self.config.channel)
        transport = TransportSession(
            agent=self.config.agent,
            notify=self.emit,
            transports=self._transports,
            logger=self._logger,
        )
        transport.on_next("connect", functools.partial(self._on_connected, transport))
        self._transport = transport
        self._relay = None
        self._handshake = None
        return await transport.connect(url)

    async def start(self) -> None:
        """Join the channel and log in."""
        if self._handshake is None:
            self.emit(
                "error", TransportError("Cannot join channel before socket connects")
            )
            return
        await self._handshake.start()

    async def send(self, frame: str, data: Any = None) -> bool:
        """Send a raw frame on the live socket.

        Returns:
            True if sent, False if an ``error`` was emitted instead
        """
        if self._transport is None:
            self.emit("error", TransportError("Socket is not connected"))
            return False
        try:
            await self._transport.send(frame, data)
        except TransportError as err:
            self.emit("error", err)
            return False
        return True

    async def close(self) -> None:
        """Stop the handshake and disconnect the socket."""
        transport = self._transport
        if transport is None:
            return

        self._logger.info("[%s] Closing client", self.config.channel)
        if self._handshake is not None:
            self._handshake.cancel()
        self._transport = None
        await transport.disconnect()
        self.emit("closed")

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    async def _resolve(self) -> str | None:
        try:
            url = await self._resolver.resolve()
        except DiscoveryError as err:
            self._resolution = None
            self.emit("error", err)
            return None
        self.emit("ready")
        return url

    def _on_connected(self, transport: TransportSession) -> None:
        self.emit("connected")
        self._relay = EventRelay(transport, self.emit, logger=self._logger)
        self._relay.install()
        self._handshake = HandshakeCoordinator(
            transport, self.config, self.emit, logger=self._logger
        )
