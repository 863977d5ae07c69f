"""Client for CyTube channel sockets."""

__version__ = "0.1.0"

from .client import CyTubeClient
from .config import ConnectionConfig
from .discovery import EndpointResolver
from .errors import (
    CyTubeClientError,
    DiscoveryError,
    DiscoveryResponseError,
    HandshakeError,
    HandshakeTimeout,
    LoginRejected,
    MissingPassword,
    NoSecureEndpoint,
    TransportError,
)
from .events import EventEmitter
from .handshake import HandshakeCoordinator, HandshakeState
from .protocol import RELAYED_FRAMES, ServerDescriptor, select_socket_url
from .relay import EventRelay
from .transport import TransportSession

__all__ = [
    "RELAYED_FRAMES",
    "ConnectionConfig",
    "CyTubeClient",
    "CyTubeClientError",
    "DiscoveryError",
    "DiscoveryResponseError",
    "EndpointResolver",
    "EventEmitter",
    "EventRelay",
    "HandshakeCoordinator",
    "HandshakeError",
    "HandshakeState",
    "HandshakeTimeout",
    "LoginRejected",
    "MissingPassword",
    "NoSecureEndpoint",
    "ServerDescriptor",
    "TransportError",
    "TransportSession",
    "__version__",
    "select_socket_url",
]
