"""Socket server discovery for CyTube channels."""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from .config import ConnectionConfig
from .errors import DiscoveryError, DiscoveryResponseError
from .protocol import parse_socket_config, select_socket_url

_LOGGER = logging.getLogger(__name__)


class EndpointResolver:
    """Resolve the live socket URL for a channel from its socket config.

    The lookup runs at most once per resolver; later calls return the
    cached result.
    """

    def __init__(
        self,
        config: ConnectionConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config
        self._session = session
        self._logger = logger or _LOGGER
        self._socket_url: str | None = None
        self._resolved = False

    @property
    def config_url(self) -> str:
        return self._config.config_url

    @property
    def socket_url(self) -> str | None:
        """Resolved socket URL, or None if unresolved or nothing qualified."""
        return self._socket_url

    @property
    def resolved(self) -> bool:
        """Whether a lookup has completed successfully."""
        return self._resolved

    async def resolve(self) -> str | None:
        """Fetch the socket config and select the socket URL.

        Returns:
            The first secure, non-IPv6 server URL, or None if the document
            lists no such server.

        Raises:
            DiscoveryError: If the lookup fails or the document is malformed
        """
        if self._resolved:
            return self._socket_url

        self._logger.info("[%s] Getting socket config", self._config.channel)
        document = await self.fetch_socket_config()
        try:
            servers = parse_socket_config(document)
        except ValueError as err:
            raise DiscoveryError(f"Malformed socket config: {err}") from err

        self._socket_url = select_socket_url(servers)
        self._resolved = True
        self._logger.info(
            "[%s] Socket server url retrieved: %s",
            self._config.channel,
            self._socket_url,
        )
        return self._socket_url

    async def fetch_socket_config(self) -> Any:
        """Fetch the raw socket config document.

        Raises:
            DiscoveryResponseError: If the endpoint returns a non-200 status
            DiscoveryError: On timeout, network failure or an undecodable body
        """
        if self._session is not None:
            return await self._fetch(self._session)
        async with aiohttp.ClientSession() as session:
            return await self._fetch(session)

    async def _fetch(self, session: aiohttp.ClientSession) -> Any:
        url = self.config_url
        try:
            async with session.get(
                url,
                headers={"User-Agent": self._config.agent},
                timeout=aiohttp.ClientTimeout(total=self._config.discovery_timeout),
            ) as resp:
                if resp.status != 200:
                    raise DiscoveryResponseError(
                        resp.status, f"Socket lookup failed with status {resp.status}"
                    )
                return await resp.json(content_type=None)
        except TimeoutError as err:
            self._logger.error("[%s] Socket lookup timed out", self._config.channel)
            raise DiscoveryError("Socket lookup timed out") from err
        except aiohttp.ClientError as err:
            self._logger.error("[%s] Socket lookup failed: %s", self._config.channel, err)
            raise DiscoveryError("Socket lookup failure") from err
        except ValueError as err:
            raise DiscoveryError("Socket config is not valid JSON") from err
