"""Channel join sequence for a connected CyTube socket.

After the socket connects, the client has to join the channel, answer a
password challenge when the channel is protected, and log in once the
server assigns a rank:

    joinChannel ──> [needPassword ──> channelPassword] ──> rank ──> login
                                                                      │
                                                  login {success} <───┘

The whole sequence runs against a single deadline. The first terminal
transition (SUCCEEDED or FAILED) cancels the deadline; the deadline
callback does nothing once a terminal state is reached, so a late
``login`` frame can never follow a timeout with ``started``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from enum import Enum
from typing import Any

from .config import ConnectionConfig
from .errors import (
    CyTubeClientError,
    HandshakeTimeout,
    LoginRejected,
    MissingPassword,
    TransportError,
)
from .protocol import (
    CHANNEL_PASSWORD,
    JOIN_CHANNEL,
    LOGIN,
    LOGIN_RESULT,
    NEED_PASSWORD,
    RANK,
    build_join_channel,
    build_login,
    is_login_success,
)
from .transport import TransportSession

_LOGGER = logging.getLogger(__name__)


class HandshakeState(Enum):
    """Channel join progress."""

    IDLE = "idle"
    AWAITING_PASSWORD = "awaiting_password"
    AWAITING_RANK = "awaiting_rank"
    AWAITING_LOGIN_RESULT = "awaiting_login_result"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (HandshakeState.SUCCEEDED, HandshakeState.FAILED)


class HandshakeCoordinator:
    """Drive the join/password/login sequence against a deadline.

    Notifications: ``starting`` when the join is sent, ``started`` on a
    successful login, ``error`` with a :class:`HandshakeError` or
    :class:`TransportError` on failure. Each server reaction is handled
    at most once; a new coordinator is needed for a new socket session.
    """

    def __init__(
        self,
        transport: TransportSession,
        config: ConnectionConfig,
        notify: Callable[..., Any],
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._transport = transport
        self._config = config
        self._notify = notify
        self._logger = logger or _LOGGER
        self._state = HandshakeState.IDLE
        self._deadline: asyncio.TimerHandle | None = None

    @property
    def state(self) -> HandshakeState:
        return self._state

    async def start(self) -> None:
        """Join the channel and arm the deadline."""
        if self._state is not HandshakeState.IDLE:
            self._logger.warning(
                "[%s] Handshake already %s", self._config.channel, self._state.value
            )
            return

        self._transport.on_next(NEED_PASSWORD, self._on_need_password)
        self._transport.on_next(RANK, self._on_rank)
        self._transport.on_next(LOGIN_RESULT, self._on_login)

        loop = asyncio.get_running_loop()
        self._deadline = loop.call_later(
            self._config.handshake_timeout, self._on_deadline
        )

        self._set_state(HandshakeState.AWAITING_RANK)
        self._logger.info("[%s] Connecting to channel", self._config.channel)
        self._notify("starting")
        await self._send(JOIN_CHANNEL, build_join_channel(self._config.channel))

    def cancel(self) -> None:
        """Stop waiting without reporting anything."""
        self._cancel_deadline()

    # -------------------------------------------------------------------------
    # Internal: Server reactions
    # -------------------------------------------------------------------------

    async def _on_need_password(self, *_args: Any) -> None:
        if self._state.terminal:
            return
        if self._config.password is None:
            self._fail(MissingPassword("Channel requires password"))
            return
        self._logger.info("[%s] Sending channel password", self._config.channel)
        self._set_state(HandshakeState.AWAITING_PASSWORD)
        await self._send(CHANNEL_PASSWORD, self._config.password)

    async def _on_rank(self, *_args: Any) -> None:
        if self._state.terminal:
            return
        self._set_state(HandshakeState.AWAITING_LOGIN_RESULT)
        await self._send(LOGIN, build_login(self._config.user, self._config.auth))

    def _on_login(self, data: Any = None, *_args: Any) -> None:
        if self._state.terminal:
            return
        if is_login_success(data):
            self._succeed()
            return

        reason = data.get("error") if isinstance(data, dict) else None
        if self._config.fail_on_login_rejected:
            self._fail(LoginRejected(f"Login rejected: {reason or 'no reason given'}"))
        else:
            self._logger.warning(
                "[%s] Login rejected (%s), waiting for deadline",
                self._config.channel,
                reason,
            )

    def _on_deadline(self) -> None:
        self._deadline = None
        if self._state.terminal:
            return
        self._logger.error(
            "[%s] Failure to establish connection within %s seconds",
            self._config.channel,
            self._config.handshake_timeout,
        )
        self._set_state(HandshakeState.FAILED)
        self._notify("error", HandshakeTimeout("Channel connection failure"))

    # -------------------------------------------------------------------------
    # Internal: Transitions
    # -------------------------------------------------------------------------

    async def _send(self, frame: str, data: Any) -> None:
        try:
            await self._transport.send(frame, data)
        except TransportError as err:
            if not self._state.terminal:
                self._fail(err)

    def _succeed(self) -> None:
        self._set_state(HandshakeState.SUCCEEDED)
        self._cancel_deadline()
        self._logger.info("[%s] Channel connection established", self._config.channel)
        self._notify("started")

    def _fail(self, err: CyTubeClientError) -> None:
        self._set_state(HandshakeState.FAILED)
        self._cancel_deadline()
        self._logger.error("[%s] Handshake failed: %s", self._config.channel, err)
        self._notify("error", err)

    def _cancel_deadline(self) -> None:
        if self._deadline is not None:
            self._deadline.cancel()
            self._deadline = None

    def _set_state(self, state: HandshakeState) -> None:
        if self._state is not state:
            self._logger.debug(
                "[%s] Handshake: %s → %s",
                self._config.channel,
                self._state.value,
                state.value,
            )
            self._state = state
