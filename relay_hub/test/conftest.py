"""测试共用的内存通道与 fixture"""

import asyncio
from typing import List, Optional

import pytest

from relay_hub.exceptions import ChannelClosedError
from relay_hub.hub import Channel, Connection, Hub, Message

# 对端关闭标记
_EOF = object()


class MemoryChannel(Channel):
    """内存双向通道

    feed() 模拟客户端发来的消息，sent 记录写出的消息。
    writable 清除后 send 会阻塞，用来模拟慢速客户端。
    """

    def __init__(self, name: str = "memory"):
        self.name = name
        self.incoming: asyncio.Queue = asyncio.Queue()
        self.sent: List[Message] = []
        self.closed = False
        self.close_calls = 0
        self.fail_writes = False
        self.writable = asyncio.Event()
        self.writable.set()
        self._sent_event = asyncio.Event()

    @property
    def remote_address(self) -> Optional[str]:
        return self.name

    def feed(self, message: Message) -> None:
        self.incoming.put_nowait(message)

    def disconnect(self) -> None:
        """模拟对端关闭"""
        self.incoming.put_nowait(_EOF)

    async def receive(self) -> Message:
        if self.closed:
            raise ChannelClosedError()
        item = await self.incoming.get()
        if item is _EOF or self.closed:
            raise ChannelClosedError()
        return item

    async def send(self, message: Message) -> None:
        await self.writable.wait()
        if self.closed or self.fail_writes:
            raise ChannelClosedError()
        self.sent.append(message)
        self._sent_event.set()

    async def close(self, code: int = 1000, reason: str = "") -> None:
        self.close_calls += 1
        if self.closed:
            return
        self.closed = True
        self.incoming.put_nowait(_EOF)
        self.writable.set()

    async def wait_for_sent(self, count: int, timeout: float = 1.0) -> List[Message]:
        async def _wait() -> None:
            while len(self.sent) < count:
                self._sent_event.clear()
                await self._sent_event.wait()

        await asyncio.wait_for(_wait(), timeout)
        return self.sent


async def wait_until(predicate, timeout: float = 1.0) -> None:
    """轮询等待条件成立"""

    async def _poll() -> None:
        while not predicate():
            await asyncio.sleep(0.005)

    await asyncio.wait_for(_poll(), timeout)


@pytest.fixture
def hub() -> Hub:
    return Hub()


@pytest.fixture
def make_connection():
    def _make(outbox_size: int = 8, name: str = "memory") -> Connection:
        return Connection(MemoryChannel(name), outbox_size=outbox_size)

    return _make
