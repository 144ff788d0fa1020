"""双向消息通道

Connection 只依赖 Channel 接口；WebSocketChannel 把 websockets 连接适配到该接口。
"""

from abc import ABC, abstractmethod
from typing import Optional, Union

from websockets.asyncio.server import ServerConnection
from websockets.exceptions import ConnectionClosed

from ..exceptions import ChannelClosedError

# 消息为不透明负载：文本帧保持 str，二进制帧保持 bytes
Message = Union[str, bytes]


class Channel(ABC):
    """双向消息通道接口"""

    @abstractmethod
    async def receive(self) -> Message:
        """阻塞读取下一条消息

        Raises:
            ChannelClosedError: 对端关闭或读取失败
        """

    @abstractmethod
    async def send(self, message: Message) -> None:
        """发送一条消息

        Raises:
            ChannelClosedError: 写入失败
        """

    @abstractmethod
    async def close(self, code: int = 1000, reason: str = "") -> None:
        """关闭通道，重复调用无副作用"""

    @property
    def remote_address(self) -> Optional[str]:
        return None


class WebSocketChannel(Channel):
    """基于 websockets 服务端连接的通道"""

    def __init__(self, websocket: ServerConnection):
        self.websocket = websocket

    @property
    def remote_address(self) -> Optional[str]:
        address = self.websocket.remote_address
        if not address:
            return None
        return f"{address[0]}:{address[1]}"

    async def receive(self) -> Message:
        try:
            return await self.websocket.recv()
        except ConnectionClosed as e:
            raise ChannelClosedError(
                f"读取失败: {e}", {"code": e.rcvd.code if e.rcvd else None}
            ) from e

    async def send(self, message: Message) -> None:
        try:
            await self.websocket.send(message)
        except ConnectionClosed as e:
            raise ChannelClosedError(
                f"写入失败: {e}", {"code": e.rcvd.code if e.rcvd else None}
            ) from e

    async def close(self, code: int = 1000, reason: str = "") -> None:
        await self.websocket.close(code, reason)
