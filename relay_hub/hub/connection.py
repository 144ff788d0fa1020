"""Hub 客户端连接"""

import asyncio
import uuid
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from .channel import Channel
from .outbox import Outbox
from ..exceptions import ChannelError
from ..utils import DEFAULT_OUTBOX_SIZE, get_logger

if TYPE_CHECKING:
    from .manager import Hub


class ConnectionState(Enum):
    """连接生命周期状态，只能单向推进"""

    CONNECTING = "connecting"
    ACTIVE = "active"
    CLOSING = "closing"
    CLOSED = "closed"


class Connection:
    """客户端连接

    独占一个 Channel，持有自己的 Outbox，并运行两个泵：
    读泵把收到的每条消息交给 Hub 广播，写泵把 Outbox 中的消息写到通道。
    Connection 只能使用一次，关闭后不能重新注册。
    """

    def __init__(self, channel: Channel, outbox_size: int = DEFAULT_OUTBOX_SIZE):
        self.connection_id = uuid.uuid4().hex[:8]
        self.channel = channel
        self.outbox = Outbox(outbox_size)
        self.state = ConnectionState.CONNECTING
        self.connected_at = datetime.now()
        self.logger = get_logger("relay_hub.hub.connection")

    def __repr__(self) -> str:
        return (
            f"<Connection {self.connection_id} {self.state.value} "
            f"peer={self.channel.remote_address}>"
        )

    async def serve(self, hub: "Hub") -> None:
        """运行连接的完整生命周期

        先注册到 Hub，再启动读泵任务，在当前任务中运行写泵。
        任一方向结束后关闭通道，等待读泵完成注销，最终进入 CLOSED。
        Outbox 被 Hub 关闭（注销或驱逐）时通道也随之关闭，
        阻塞在写入上的写泵因此能够退出。

        Args:
            hub: 负责广播的 Hub
        """
        hub.register(self)
        self.logger.info(f"客户端连接: {self.connection_id} ({self.channel.remote_address})")

        reader = asyncio.create_task(
            self._read_messages(hub), name=f"relay-read-{self.connection_id}"
        )
        watcher = asyncio.create_task(
            self._close_on_outbox_closed(), name=f"relay-watch-{self.connection_id}"
        )
        try:
            await self._write_messages()
        finally:
            # 关闭通道使读泵的 receive 失败，由读泵完成注销
            await self.close()
            try:
                await reader
                await watcher
            finally:
                self.state = ConnectionState.CLOSED
                self.logger.info(f"客户端断开: {self.connection_id}")

    async def close(self, code: int = 1000, reason: str = "") -> None:
        """关闭底层通道"""
        await self.channel.close(code, reason)

    async def _read_messages(self, hub: "Hub") -> None:
        """读泵：接收消息并广播，读取失败时注销并关闭通道"""
        try:
            while True:
                message = await self.channel.receive()
                if self.state is not ConnectionState.ACTIVE:
                    # 已被驱逐的连接不再转发消息
                    break
                hub.broadcast(message, sender=self)
        except ChannelError as e:
            self.logger.debug(f"客户端 {self.connection_id} 读取结束: {e}")
        finally:
            hub.unregister(self)
            await self.close()

    async def _close_on_outbox_closed(self) -> None:
        await self.outbox.wait_closed()
        await self.close()

    async def _write_messages(self) -> None:
        """写泵：按顺序发送 Outbox 中的消息，直到 Outbox 关闭或写入失败

        写泵不负责注销；退出后由 serve 关闭通道，读泵随之注销。
        """
        async for message in self.outbox:
            try:
                await self.channel.send(message)
            except ChannelError as e:
                self.logger.debug(f"客户端 {self.connection_id} 写入失败: {e}")
                return
