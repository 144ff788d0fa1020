"""Relay Hub 命令行入口"""

import argparse
import asyncio
import sys
from typing import List, Optional

from .exceptions import ConfigurationError
from .hub import run_server
from .utils import RelayConfig, configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="relay-hub", description="Relay Hub WebSocket 广播服务器"
    )
    parser.add_argument("--host", help="绑定地址 (默认: RELAY_HOST 或 0.0.0.0)")
    parser.add_argument("--port", type=int, help="监听端口 (默认: RELAY_PORT/PORT 或 8080)")
    parser.add_argument("--ws-path", help="WebSocket 路径 (默认: /ws)")
    parser.add_argument("--static-dir", help="静态文件目录 (默认: ./static)")
    parser.add_argument("--outbox-size", type=int, help="每个连接的发送队列容量")
    parser.add_argument(
        "--max-connections", type=int, help="最大连接数，0 表示不限制"
    )
    parser.add_argument(
        "--no-echo", action="store_true", help="广播时不回发给发送方"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="日志级别 (默认: INFO)",
    )
    parser.add_argument("--log-file", help="日志文件路径")
    parser.add_argument("--no-rich", action="store_true", help="禁用 rich 日志")
    return parser


def load_config(argv: Optional[List[str]] = None) -> RelayConfig:
    """合并环境变量和命令行参数，命令行优先"""
    args = build_parser().parse_args(argv)
    config = RelayConfig.from_env()

    overrides = {
        "host": args.host,
        "port": args.port,
        "ws_path": args.ws_path,
        "static_dir": args.static_dir,
        "outbox_size": args.outbox_size,
        "max_connections": args.max_connections,
        "log_level": args.log_level,
        "log_file": args.log_file,
    }
    config.update(**{key: value for key, value in overrides.items() if value is not None})
    if args.no_echo:
        config.echo_to_sender = False
    if args.no_rich:
        config.enable_rich_logging = False

    config.validate()
    return config


def main(argv: Optional[List[str]] = None) -> None:
    try:
        config = load_config(argv)
    except ConfigurationError as e:
        print(f"配置错误: {e.message}", file=sys.stderr)
        sys.exit(2)

    configure_logging(
        level=config.log_level,
        log_file=config.log_file,
        enable_rich=config.enable_rich_logging,
    )

    try:
        asyncio.run(run_server(config))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
