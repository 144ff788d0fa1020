"""
Relay Hub

Real-time fan-out relay: every message sent by one client is broadcast
to all currently connected clients.
"""

__version__ = "1.0.0"
__description__ = "Real-time WebSocket fan-out relay"

# Hub core
from .hub import (
    Channel,
    Message,
    WebSocketChannel,
    Outbox,
    Connection,
    ConnectionState,
    Hub,
    RelayServer,
    run_server,
)

# Utilities
from .utils import RelayConfig, configure_logging, get_logger

# Exceptions
from .exceptions import (
    RelayError,
    ChannelError,
    ChannelClosedError,
    OutboxError,
    OutboxFullError,
    OutboxClosedError,
    ConnectionStateError,
    ConfigurationError,
    InvalidConfigurationError,
    ServerError,
    ServerOverloadError,
)

__all__ = [
    # Version info
    "__version__",
    "__description__",
    # Hub core
    "Channel",
    "Message",
    "WebSocketChannel",
    "Outbox",
    "Connection",
    "ConnectionState",
    "Hub",
    "RelayServer",
    "run_server",
    # Utils
    "RelayConfig",
    "configure_logging",
    "get_logger",
    # Exceptions
    "RelayError",
    "ChannelError",
    "ChannelClosedError",
    "OutboxError",
    "OutboxFullError",
    "OutboxClosedError",
    "ConnectionStateError",
    "ConfigurationError",
    "InvalidConfigurationError",
    "ServerError",
    "ServerOverloadError",
]


def get_version() -> str:
    """Get the current version of Relay Hub."""
    return __version__


def create_hub(echo_to_sender: bool = True) -> Hub:
    """Create a new Hub instance."""
    return Hub(echo_to_sender=echo_to_sender)


def create_server(hub: Hub, host: str = "0.0.0.0", port: int = 8080) -> RelayServer:
    """Create a new relay server bound to the given hub."""
    return RelayServer(hub, RelayConfig(host=host, port=port))
