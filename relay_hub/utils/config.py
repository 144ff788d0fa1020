"""Relay Hub 配置管理

本模块提供统一的配置管理接口，支持环境变量、默认值和运行时配置。
配置优先级：运行时设置 > 环境变量 > 默认值
"""

import os
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional

from ..exceptions import InvalidConfigurationError

DEFAULT_OUTBOX_SIZE = 256

_TRUE_VALUES = ("1", "true", "yes", "on")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _env_int(key: str, default: int) -> int:
    raw = os.getenv(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise InvalidConfigurationError(key, raw) from None


def _env_float(key: str, default: float) -> float:
    raw = os.getenv(key)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise InvalidConfigurationError(key, raw) from None


def _env_bool(key: str, default: bool) -> bool:
    raw = os.getenv(key)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in _TRUE_VALUES


@dataclass
class RelayConfig:
    """Relay Hub 配置类

    包含服务器、Hub 和日志的所有配置选项。
    """

    # 服务器配置
    host: str = "0.0.0.0"
    port: int = 8080
    ws_path: str = "/ws"
    static_dir: Optional[str] = "./static"
    max_connections: int = 0  # 0 表示不限制

    # Hub 配置
    outbox_size: int = DEFAULT_OUTBOX_SIZE
    echo_to_sender: bool = True

    # WebSocket 配置
    max_message_size: int = 1024 * 1024
    ws_ping_interval: float = 20.0
    ws_ping_timeout: float = 20.0
    ws_close_timeout: float = 10.0

    # 日志配置
    log_level: str = "INFO"
    log_file: Optional[str] = None
    enable_rich_logging: bool = True

    # 自定义配置
    custom: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_env(cls) -> "RelayConfig":
        """从环境变量创建配置

        环境变量格式：RELAY_<配置名>。端口额外兼容通用的 PORT 变量。

        Returns:
            从环境变量读取的配置实例

        Raises:
            InvalidConfigurationError: 数值类环境变量无法解析
        """
        config = cls()

        # 服务器配置
        config.host = os.getenv("RELAY_HOST", config.host)
        if os.getenv("RELAY_PORT"):
            config.port = _env_int("RELAY_PORT", config.port)
        else:
            config.port = _env_int("PORT", config.port)
        config.ws_path = os.getenv("RELAY_WS_PATH", config.ws_path)
        config.static_dir = os.getenv("RELAY_STATIC_DIR", config.static_dir)
        config.max_connections = _env_int(
            "RELAY_MAX_CONNECTIONS", config.max_connections
        )

        # Hub 配置
        config.outbox_size = _env_int("RELAY_OUTBOX_SIZE", config.outbox_size)
        config.echo_to_sender = _env_bool("RELAY_ECHO_TO_SENDER", config.echo_to_sender)

        # WebSocket 配置
        config.max_message_size = _env_int(
            "RELAY_MAX_MESSAGE_SIZE", config.max_message_size
        )
        config.ws_ping_interval = _env_float(
            "RELAY_WS_PING_INTERVAL", config.ws_ping_interval
        )
        config.ws_ping_timeout = _env_float(
            "RELAY_WS_PING_TIMEOUT", config.ws_ping_timeout
        )
        config.ws_close_timeout = _env_float(
            "RELAY_WS_CLOSE_TIMEOUT", config.ws_close_timeout
        )

        # 日志配置
        config.log_level = os.getenv("RELAY_LOG_LEVEL", config.log_level)
        config.log_file = os.getenv("RELAY_LOG_FILE", config.log_file)
        config.enable_rich_logging = _env_bool(
            "RELAY_ENABLE_RICH_LOGGING", config.enable_rich_logging
        )

        return config

    def validate(self) -> None:
        """校验配置

        Raises:
            InvalidConfigurationError: 配置项取值非法
        """
        if not 0 <= self.port <= 65535:
            raise InvalidConfigurationError("port", self.port)
        if not self.ws_path.startswith("/"):
            raise InvalidConfigurationError("ws_path", self.ws_path)
        if self.outbox_size < 0:
            raise InvalidConfigurationError("outbox_size", self.outbox_size)
        if self.max_connections < 0:
            raise InvalidConfigurationError("max_connections", self.max_connections)
        if self.max_message_size <= 0:
            raise InvalidConfigurationError("max_message_size", self.max_message_size)
        if str(self.log_level).upper() not in LOG_LEVELS:
            raise InvalidConfigurationError("log_level", self.log_level)

    def update(self, **kwargs) -> None:
        """更新配置项

        Args:
            **kwargs: 要更新的配置项，未知的键写入 custom
        """
        for key, value in kwargs.items():
            if hasattr(self, key) and key != "custom":
                setattr(self, key, value)
            else:
                self.custom[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        """获取配置项

        Args:
            key: 配置项名称
            default: 默认值

        Returns:
            配置项的值
        """
        if hasattr(self, key):
            return getattr(self, key)
        return self.custom.get(key, default)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典

        Returns:
            配置的字典表示，自定义配置平铺在顶层
        """
        result = {f.name: getattr(self, f.name) for f in fields(self) if f.name != "custom"}
        result.update(self.custom)
        return result
