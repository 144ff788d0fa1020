"""
Hub 模块

连接注册与广播：
- 连接注册表与广播 (Hub)
- 客户端连接与读写泵 (Connection)
- WebSocket 服务器
"""

from .channel import Channel, Message, WebSocketChannel
from .outbox import Outbox
from .connection import Connection, ConnectionState
from .manager import Hub
from .server import RelayServer, resolve_static_path, run_server

__all__ = [
    "Channel",
    "Message",
    "WebSocketChannel",
    "Outbox",
    "Connection",
    "ConnectionState",
    "Hub",
    "RelayServer",
    "resolve_static_path",
    "run_server",
]
