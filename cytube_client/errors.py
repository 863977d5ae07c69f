"""Client error types for CyTube channel connections."""

from __future__ import annotations


class CyTubeClientError(Exception):
    """Base error for CyTube client failures."""


class DiscoveryError(CyTubeClientError):
    """Socket server lookup failed."""


class DiscoveryResponseError(DiscoveryError):
    """Socket config endpoint answered with a non-200 status."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(message)
        self.status = status


class NoSecureEndpoint(CyTubeClientError):
    """Socket config listed no secure, non-IPv6 server."""


class TransportError(CyTubeClientError):
    """Socket connection failed or is not available."""


class HandshakeError(CyTubeClientError):
    """Channel join sequence failed."""


class MissingPassword(HandshakeError):
    """Channel requires a password but none was configured."""


class LoginRejected(HandshakeError):
    """Server refused the login."""


class HandshakeTimeout(HandshakeError):
    """Channel join did not complete before the deadline."""
