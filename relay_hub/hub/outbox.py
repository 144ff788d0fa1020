"""Connection 的发送队列"""

import asyncio
from typing import AsyncIterator

from .channel import Message
from ..exceptions import OutboxClosedError, OutboxFullError

# 唤醒阻塞在 get() 上的写泵
_CLOSED = object()


class Outbox:
    """有界 FIFO 发送队列

    写入端只有 Hub（持锁调用 put_nowait），读取端只有所属 Connection 的写泵。
    关闭后 get() 立即结束，队列中尚未发送的消息被丢弃。
    """

    def __init__(self, maxsize: int = 0):
        self._queue: asyncio.Queue = asyncio.Queue(maxsize)
        self._closed = False
        self._closed_event = asyncio.Event()

    @property
    def maxsize(self) -> int:
        return self._queue.maxsize

    @property
    def closed(self) -> bool:
        return self._closed

    def qsize(self) -> int:
        return self._queue.qsize()

    def full(self) -> bool:
        return self._queue.full()

    def put_nowait(self, message: Message) -> None:
        """非阻塞入队

        Raises:
            OutboxClosedError: 队列已关闭
            OutboxFullError: 队列已满
        """
        if self._closed:
            raise OutboxClosedError()
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            raise OutboxFullError(details={"maxsize": self.maxsize}) from None

    def close(self) -> None:
        """关闭队列，重复调用无副作用"""
        if self._closed:
            return
        self._closed = True
        self._closed_event.set()
        # 队列为空时写泵阻塞在 get 上，放入哨兵将其唤醒；
        # 队列已满时写泵不会阻塞，下一次 get 会看到 closed
        try:
            self._queue.put_nowait(_CLOSED)
        except asyncio.QueueFull:
            pass

    async def wait_closed(self) -> None:
        """等待队列被关闭"""
        await self._closed_event.wait()

    async def get(self) -> Message:
        """按到达顺序取出下一条消息

        Raises:
            OutboxClosedError: 队列已关闭
        """
        if self._closed:
            raise OutboxClosedError()
        item = await self._queue.get()
        if item is _CLOSED or self._closed:
            raise OutboxClosedError()
        return item

    def __aiter__(self) -> AsyncIterator[Message]:
        return self._iter()

    async def _iter(self) -> AsyncIterator[Message]:
        while True:
            try:
                yield await self.get()
            except OutboxClosedError:
                return
