"""Pytest configuration and fixtures for cytube_client tests."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest


@pytest.fixture
def mock_session() -> MagicMock:
    """Create a mock aiohttp ClientSession."""
    import aiohttp

    return MagicMock(spec=aiohttp.ClientSession)


def create_mock_response(
    status: int = 200,
    json_data: Any = None,
    json_error: Exception | None = None,
) -> AsyncMock:
    """Create a configured mock response.

    Args:
        status: HTTP status code
        json_data: Data to return from json() call
        json_error: Exception to raise from json() call

    Returns:
        Configured AsyncMock response
    """
    response = AsyncMock()
    response.status = status

    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = json_data

    response.__aenter__.return_value = response
    response.__aexit__.return_value = None

    return response


def socket_config(*servers: dict[str, Any]) -> dict[str, Any]:
    """Build a socket config document."""
    return {"servers": list(servers)}


SECURE_SERVER = {"url": "https://cytu.be:10443", "secure": True}
PLAIN_SERVER = {"url": "http://sea.cytu.be:8880", "secure": False}


class FakeAsyncClient:
    """Stand-in for socketio.AsyncClient driven by the tests."""

    def __init__(self, connect_error: Exception | None = None, **kwargs: Any) -> None:
        self.kwargs = kwargs
        self.handlers: dict[str, Any] = {}
        self.emitted: list[tuple[str, Any]] = []
        self.connect_calls: list[tuple[str, dict[str, Any]]] = []
        self.connect_error = connect_error
        self.emit_error: Exception | None = None
        self.disconnected = False

    def on(self, event: str, handler: Any = None) -> Any:
        self.handlers[event] = handler
        return handler

    async def connect(self, url: str, **kwargs: Any) -> None:
        self.connect_calls.append((url, kwargs))
        if self.connect_error is not None:
            await self.handlers["connect_error"]({"message": "Connection refused"})
            raise self.connect_error
        await self.handlers["connect"]()

    async def emit(self, event: str, data: Any = None) -> None:
        if self.emit_error is not None:
            raise self.emit_error
        self.emitted.append((event, data))

    async def disconnect(self) -> None:
        self.disconnected = True
        await self.handlers["disconnect"]("client disconnect")

    async def push(self, event: str, *args: Any) -> None:
        """Deliver a server frame through the catch-all handler."""
        await self.handlers["*"](event, *args)

    async def server_disconnect(self, reason: str = "transport close") -> None:
        await self.handlers["disconnect"](reason)

    def sent(self, event: str) -> list[Any]:
        return [data for name, data in self.emitted if name == event]


class FakeSocketFactory:
    """Records every FakeAsyncClient created in place of socketio.AsyncClient."""

    def __init__(self) -> None:
        self.clients: list[FakeAsyncClient] = []
        self.connect_error: Exception | None = None

    def __call__(self, **kwargs: Any) -> FakeAsyncClient:
        client = FakeAsyncClient(connect_error=self.connect_error, **kwargs)
        self.clients.append(client)
        return client

    @property
    def client(self) -> FakeAsyncClient:
        return self.clients[-1]


@pytest.fixture
def fake_sio() -> Iterator[FakeSocketFactory]:
    """Patch socketio.AsyncClient inside the transport module."""
    factory = FakeSocketFactory()
    with patch("cytube_client.transport.socketio.AsyncClient", side_effect=factory):
        yield factory


class Recorder:
    """Collects notifications in arrival order."""

    def __init__(self) -> None:
        self.events: list[tuple[str, tuple[Any, ...]]] = []

    def __call__(self, event: str, *args: Any) -> bool:
        self.events.append((event, args))
        return True

    def attach(self, emitter: Any, *events: str) -> Recorder:
        for event in events:
            emitter.on(event, lambda *args, _event=event: self(_event, *args))
        return self

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self.events]

    def errors(self) -> list[Any]:
        return [args[0] for name, args in self.events if name == "error"]


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()
