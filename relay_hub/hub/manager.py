"""Hub 连接注册表与广播"""

import threading
from typing import Dict, List, Optional, Set

from .channel import Message
from .connection import Connection, ConnectionState
from ..exceptions import ConnectionStateError, OutboxFullError
from ..utils import get_logger


class Hub:
    """连接注册表

    维护所有存活的 Connection，并把消息广播到每个连接的 Outbox。
    register、unregister、broadcast 对注册表的修改由同一把锁串行化。

    广播从不阻塞：Outbox 已满的慢速客户端会被立即驱逐，
    其他客户端的投递不受影响。
    """

    def __init__(self, echo_to_sender: bool = True):
        self.echo_to_sender = echo_to_sender

        # 注册表：只关心成员关系，不保证顺序
        self._connections: Set[Connection] = set()
        # 非可重入锁，持锁期间禁止再次调用加锁的公开方法
        self._lock = threading.Lock()

        self._stats: Dict[str, int] = {
            "registered_total": 0,
            "unregistered_total": 0,
            "evicted_total": 0,
            "broadcasts_total": 0,
            "messages_queued_total": 0,
        }

        self.logger = get_logger("relay_hub.hub.manager")

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)

    def __contains__(self, connection: Connection) -> bool:
        with self._lock:
            return connection in self._connections

    def register(self, connection: Connection) -> None:
        """注册连接

        每个 Connection 只能注册一次，必须在两个泵启动之前调用。

        Args:
            connection: 新建的连接

        Raises:
            ConnectionStateError: 连接不处于 CONNECTING 状态（重复注册或已关闭）
        """
        with self._lock:
            if connection.state is not ConnectionState.CONNECTING:
                raise ConnectionStateError(
                    connection.connection_id, connection.state.value
                )
            self._connections.add(connection)
            connection.state = ConnectionState.ACTIVE
            self._stats["registered_total"] += 1

        self.logger.debug(f"注册连接 {connection.connection_id}")

    def unregister(self, connection: Connection) -> bool:
        """注销连接并关闭其 Outbox

        连接不在注册表中时不做任何事，读泵清理和广播驱逐可以安全地重复注销。

        Args:
            connection: 要注销的连接

        Returns:
            是否真的移除了连接
        """
        with self._lock:
            removed = self._remove_locked(connection)
            if removed:
                self._stats["unregistered_total"] += 1

        if removed:
            self.logger.debug(f"注销连接 {connection.connection_id}")
        return removed

    def broadcast(self, message: Message, sender: Optional[Connection] = None) -> int:
        """广播消息到所有已注册连接

        每个连接最多投递一次。Outbox 已满的连接在持锁状态下被直接驱逐，
        不向调用方报告任何错误。

        Args:
            message: 不透明的消息负载
            sender: 发送方连接，echo_to_sender 为 False 时跳过它

        Returns:
            成功入队的连接数
        """
        evicted: List[Connection] = []
        delivered = 0

        with self._lock:
            self._stats["broadcasts_total"] += 1
            for connection in list(self._connections):
                if connection is sender and not self.echo_to_sender:
                    continue
                try:
                    connection.outbox.put_nowait(message)
                except OutboxFullError:
                    self._remove_locked(connection)
                    evicted.append(connection)
                else:
                    delivered += 1
            self._stats["messages_queued_total"] += delivered
            self._stats["evicted_total"] += len(evicted)

        for connection in evicted:
            self.logger.warning(
                f"连接 {connection.connection_id} 发送队列已满，驱逐慢速客户端"
            )
        return delivered

    def close_all(self) -> int:
        """移除所有连接并关闭它们的 Outbox，用于优雅关闭

        Returns:
            被移除的连接数
        """
        with self._lock:
            connections = list(self._connections)
            for connection in connections:
                self._remove_locked(connection)
            self._stats["unregistered_total"] += len(connections)

        if connections:
            self.logger.info(f"已关闭全部 {len(connections)} 个连接")
        return len(connections)

    def connections(self) -> List[Connection]:
        """获取注册表快照"""
        with self._lock:
            return list(self._connections)

    def get_stats(self) -> Dict[str, int]:
        """获取 Hub 统计

        Returns:
            统计信息字典
        """
        with self._lock:
            stats = dict(self._stats)
            stats["connections"] = len(self._connections)
        return stats

    def _remove_locked(self, connection: Connection) -> bool:
        # 调用方必须已持有 self._lock
        if connection not in self._connections:
            return False
        self._connections.discard(connection)
        connection.state = ConnectionState.CLOSING
        connection.outbox.close()
        return True
