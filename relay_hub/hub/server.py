"""Hub WebSocket 服务器

接受 TCP 连接并升级为 WebSocket，把每个通道包装成 Connection 交给 Hub。
WebSocket 路径之外的 HTTP 请求按静态文件处理。
"""

import asyncio
import mimetypes
import signal
from http import HTTPStatus
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlsplit

from websockets.asyncio.server import Server, ServerConnection, serve
from websockets.datastructures import Headers
from websockets.http11 import Request, Response

from .channel import WebSocketChannel
from .connection import Connection
from .manager import Hub
from ..exceptions import ServerOverloadError
from ..utils import RelayConfig, get_logger


def resolve_static_path(root: Optional[str], request_path: str) -> Optional[Path]:
    """把请求路径解析为静态目录下的文件

    Args:
        root: 静态文件根目录，为空表示不提供静态文件
        request_path: HTTP 请求路径（可带查询串）

    Returns:
        存在的文件路径；不存在、越出根目录或未启用时返回 None
    """
    if not root:
        return None

    base = Path(root).resolve()
    path = unquote(urlsplit(request_path).path)
    relative = path.lstrip("/") or "index.html"

    try:
        candidate = (base / relative).resolve()
        if candidate != base and base not in candidate.parents:
            return None
        if candidate.is_dir():
            candidate = candidate / "index.html"
        if not candidate.is_file():
            return None
    except (ValueError, OSError):
        # 含 NUL 字节等无法解析的路径
        return None
    return candidate


class RelayServer:
    """Hub WebSocket 服务器"""

    def __init__(self, hub: Hub, config: Optional[RelayConfig] = None):
        self.hub = hub
        self.config = config or RelayConfig()

        # 服务器状态
        self.server: Optional[Server] = None
        self.running = False
        self._stopped = asyncio.Event()

        self.logger = get_logger("relay_hub.hub.server")

    @property
    def port(self) -> Optional[int]:
        """实际监听的端口（配置为 0 时由系统分配）"""
        if not self.server or not self.server.sockets:
            return None
        return self.server.sockets[0].getsockname()[1]

    async def start(self) -> None:
        """启动服务器"""
        if self.running:
            self.logger.warning("服务器已经在运行")
            return

        try:
            self.server = await serve(
                self._handle_client,
                self.config.host,
                self.config.port,
                process_request=self._process_request,
                max_size=self.config.max_message_size,
                ping_interval=self.config.ws_ping_interval,
                ping_timeout=self.config.ws_ping_timeout,
                close_timeout=self.config.ws_close_timeout,
            )
        except OSError as e:
            self.logger.error(f"启动服务器失败: {e}")
            raise

        self.running = True
        self._stopped.clear()
        self.logger.info(
            f"Hub 服务器启动: ws://{self.config.host}:{self.port}{self.config.ws_path}"
        )

    async def stop(self) -> None:
        """停止服务器

        先关闭 Hub 中的所有连接，再关闭监听并等待处理任务结束。
        """
        if not self.running:
            return

        self.logger.info("停止 Hub 服务器")
        self.running = False

        try:
            self.hub.close_all()
            if self.server:
                self.server.close()
                await self.server.wait_closed()
                self.server = None
            self.logger.info("Hub 服务器已停止")
        finally:
            self._stopped.set()

    async def serve_forever(self) -> None:
        """启动服务器并一直运行到 stop() 被调用"""
        await self.start()
        await self._stopped.wait()

    def request_stop(self) -> None:
        """让 serve_forever 返回，供信号处理器调用；实际关闭由调用方 await stop() 完成"""
        self._stopped.set()

    def get_stats(self) -> dict:
        """获取服务器统计信息

        Returns:
            统计信息字典
        """
        return {
            "server": {
                "running": self.running,
                "host": self.config.host,
                "port": self.port,
                "ws_path": self.config.ws_path,
                "max_connections": self.config.max_connections,
            },
            "hub": self.hub.get_stats(),
        }

    async def _process_request(
        self, connection: ServerConnection, request: Request
    ) -> Optional[Response]:
        """HTTP 路由：WebSocket 路径继续握手，其余路径返回静态文件"""
        if urlsplit(request.path).path == self.config.ws_path:
            return None

        path = resolve_static_path(self.config.static_dir, request.path)
        if path is None:
            self.logger.debug(f"静态文件不存在: {request.path}")
            return connection.respond(HTTPStatus.NOT_FOUND, "Not Found\n")

        body = await asyncio.to_thread(path.read_bytes)
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        headers = Headers(
            [
                ("Content-Type", content_type),
                ("Content-Length", str(len(body))),
                ("Connection", "close"),
            ]
        )
        return Response(HTTPStatus.OK.value, HTTPStatus.OK.phrase, headers, body)

    async def _handle_client(self, websocket: ServerConnection) -> None:
        """处理客户端连接

        Args:
            websocket: 已完成握手的 WebSocket 连接
        """
        max_connections = self.config.max_connections
        if max_connections and len(self.hub) >= max_connections:
            error = ServerOverloadError(details={"max_connections": max_connections})
            self.logger.warning(f"拒绝连接 {websocket.remote_address}: {error.message}")
            await websocket.close(code=1013, reason=error.message)
            return

        connection = Connection(WebSocketChannel(websocket), self.config.outbox_size)
        await connection.serve(self.hub)


async def run_server(config: Optional[RelayConfig] = None) -> None:
    """运行 Hub 服务器直到收到 SIGINT/SIGTERM

    Args:
        config: 服务器配置，默认从环境变量读取
    """
    config = config or RelayConfig.from_env()
    config.validate()

    hub = Hub(echo_to_sender=config.echo_to_sender)
    server = RelayServer(hub, config)
    logger = get_logger("relay_hub.hub.server")

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, server.request_stop)
        except NotImplementedError:
            # Windows 不支持 add_signal_handler，依赖 KeyboardInterrupt
            logger.debug(f"无法注册信号处理器: {sig.name}")

    try:
        await server.serve_forever()
    finally:
        await server.stop()
