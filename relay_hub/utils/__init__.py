"""Relay Hub 工具模块

提供基础设施支持：
- 配置管理 (RelayConfig)
- 日志系统 (configure_logging, get_logger)
"""

from .config import RelayConfig, DEFAULT_OUTBOX_SIZE

from .logger import (
    get_logger,
    # 便捷函数
    configure_logging,
)

__all__ = [
    # 配置管理
    "RelayConfig",
    "DEFAULT_OUTBOX_SIZE",
    # 日志系统
    "get_logger",
    # 便捷函数
    "configure_logging",
]
