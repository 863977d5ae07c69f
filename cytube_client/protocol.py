"""Wire protocol helpers for CyTube socket frames.

This module holds everything that depends on the shape of CyTube's
protocol: frame names, the relayed frame catalog, outbound payload
builders and socket config document parsing.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

# Outbound commands
JOIN_CHANNEL = "joinChannel"
CHANNEL_PASSWORD = "channelPassword"
LOGIN = "login"

# Inbound frames driving the channel join sequence
NEED_PASSWORD = "needPassword"
RANK = "rank"
LOGIN_RESULT = "login"

# Frames emitted by CyTube's user module (src/user.js)
_USER_FRAMES: tuple[str, ...] = (
    "announcement",
    "clearFlag",
    "clearVoteskipVote",
    "disconnect",
    "kick",
    "login",
    "setAFK",
    "setFlag",
)

# Frames emitted or broadcast by CyTube's channel modules (src/channel/)
_CHANNEL_FRAMES: tuple[str, ...] = (
    "addFilterSuccess",
    "addUser",
    "banlist",
    "banlistRemove",
    "cancelNeedPassword",
    "changeMedia",
    "channelCSSJS",
    "channelNotRegistered",
    "channelOpts",
    "channelRankFail",
    "channelRanks",
    "chatFilters",
    "chatMsg",
    "clearchat",
    "clearFlag",
    "closePoll",
    "cooldown",
    "costanza",
    "delete",
    "deleteChatFilter",
    "drinkCount",
    "effectiveRankChange",
    "emoteList",
    "empty",
    "errorMsg",
    "listPlaylists",
    "loadFail",
    "mediaUpdate",
    "moveVideo",
    "needPassword",
    "newPoll",
    "noflood",
    "playlist",
    "pm",
    "queue",
    "queueFail",
    "queueWarn",
    "rank",
    "readChanLog",
    "removeEmote",
    "renameEmote",
    "searchResults",
    "setCurrent",
    "setFlag",
    "setLeader",
    "setMotd",
    "setPermissions",
    "setPlaylistLocked",
    "setPlaylistMeta",
    "setTemp",
    "setUserMeta",
    "setUserProfile",
    "setUserRank",
    "spamFiltered",
    "updateChatFilter",
    "updateEmote",
    "updatePoll",
    "usercount",
    "userLeave",
    "userlist",
    "validationError",
    "validationPassed",
    "voteskip",
    "warnLargeChandump",
)

# Frames forwarded verbatim to local subscribers. Anything else is dropped.
RELAYED_FRAMES: tuple[str, ...] = tuple(dict.fromkeys(_USER_FRAMES + _CHANNEL_FRAMES))


@dataclass(frozen=True, slots=True)
class ServerDescriptor:
    """One candidate socket server from the socket config document."""

    url: str
    secure: bool
    ipv6: Any = None
    has_ipv6: bool = False


def build_join_channel(channel: str) -> dict[str, Any]:
    """Build the ``joinChannel`` payload."""
    return {"name": channel}


def build_login(user: str, auth: str | None = None) -> dict[str, Any]:
    """Build the ``login`` payload.

    Args:
        user: Login name
        auth: Account password. Omitted for an anonymous (guest) login.
    """
    payload: dict[str, Any] = {"name": user}
    if auth:
        payload["pw"] = auth
    return payload


def is_login_success(data: Any) -> bool:
    """Return True when a ``login`` frame reports success."""
    return isinstance(data, dict) and bool(data.get("success"))


def parse_socket_config(document: Any) -> list[ServerDescriptor]:
    """Parse a socket config document into server descriptors.

    Example document::

        {"servers": [{"url": "https://cytu.be:10443", "secure": true},
                     {"url": "http://sea.cytu.be:8880", "secure": false}]}

    Entries without a string ``url`` are skipped. Document order is kept.

    Raises:
        ValueError: If the document is not an object with a ``servers`` list
    """
    if not isinstance(document, dict):
        raise ValueError("Socket config must be a JSON object")
    servers = document.get("servers")
    if not isinstance(servers, list):
        raise ValueError("Socket config has no servers list")

    descriptors: list[ServerDescriptor] = []
    for entry in servers:
        if not isinstance(entry, dict) or not isinstance(entry.get("url"), str):
            continue
        descriptors.append(
            ServerDescriptor(
                url=entry["url"],
                secure=entry.get("secure") is True,
                ipv6=entry.get("ipv6"),
                has_ipv6="ipv6" in entry,
            )
        )
    return descriptors


def select_socket_url(servers: Iterable[ServerDescriptor]) -> str | None:
    """Pick the first secure server that carries no ``ipv6`` key at all.

    The key is checked for presence, so ``"ipv6": null`` and ``"ipv6": false``
    both disqualify a server.
    """
    for server in servers:
        if server.secure and not server.has_ipv6:
            return server.url
    return None
