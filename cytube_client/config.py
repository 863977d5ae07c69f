"""Connection settings for a CyTube channel."""

from __future__ import annotations

import secrets
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from typing import Any

DEFAULT_AGENT = "CyTube Client 0.1a"
DEFAULT_HOST = "cytu.be"
DEFAULT_PORT = 443
DEFAULT_CHANNEL = "test"

DISCOVERY_TIMEOUT = 20.0
HANDSHAKE_TIMEOUT = 60.0

# Short option names accepted by from_mapping()
_ALIASES: dict[str, str] = {
    "chan": "channel",
    "pass": "password",
}


def _guest_name() -> str:
    return f"Test-{secrets.token_hex(4)}"


@dataclass(frozen=True, slots=True)
class ConnectionConfig:
    """Immutable connection settings.

    Attributes:
        agent: User-Agent sent with the socket config lookup
        host: CyTube host name
        port: CyTube HTTPS port
        channel: Channel (room) to join
        password: Channel password, if the channel is protected
        user: Login name
        auth: Account password; anonymous login when omitted
        discovery_timeout: Socket config request timeout (seconds)
        handshake_timeout: Deadline for the channel join sequence (seconds)
        fail_on_login_rejected: Report a refused login immediately instead of
            waiting for the handshake deadline
    """

    agent: str = DEFAULT_AGENT
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    channel: str = DEFAULT_CHANNEL
    password: str | None = None
    user: str = field(default_factory=_guest_name)
    auth: str | None = None
    discovery_timeout: float = DISCOVERY_TIMEOUT
    handshake_timeout: float = HANDSHAKE_TIMEOUT
    fail_on_login_rejected: bool = True

    @property
    def config_url(self) -> str:
        """Socket config document URL for the configured channel."""
        return f"https://{self.host}:{self.port}/socketconfig/{self.channel}.json"

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> ConnectionConfig:
        """Build a config from a plain options mapping.

        Accepts field names as well as the short ``chan`` and ``pass`` keys.
        ``None`` values fall back to the defaults, except for the optional
        password and auth token.

        Raises:
            ValueError: If an option is unknown or the port is not numeric
        """
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in options.items():
            name = _ALIASES.get(key, key)
            if name not in known:
                raise ValueError(f"Unknown connection option: {key}")
            if value is None and name not in ("password", "auth"):
                continue
            kwargs[name] = value

        if "port" in kwargs:
            try:
                kwargs["port"] = int(kwargs["port"])
            except (TypeError, ValueError) as err:
                raise ValueError(f"Invalid port: {kwargs['port']!r}") from err

        return cls(**kwargs)
