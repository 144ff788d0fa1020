"""测试 WebSocket 服务器与静态文件路由"""

import asyncio

import pytest
from websockets.asyncio.client import connect
from websockets.exceptions import ConnectionClosed

from relay_hub.hub import Hub, RelayServer, resolve_static_path
from relay_hub.test.conftest import wait_until
from relay_hub.utils import RelayConfig


@pytest.fixture
def static_dir(tmp_path):
    root = tmp_path / "static"
    root.mkdir()
    (root / "index.html").write_text("<h1>relay</h1>")
    (root / "js").mkdir()
    (root / "js" / "app.js").write_text("console.log('relay')")
    (tmp_path / "secret.txt").write_text("top secret")
    return root


class TestStaticPath:
    def test_root_maps_to_index(self, static_dir):
        assert resolve_static_path(str(static_dir), "/") == (static_dir / "index.html").resolve()

    def test_nested_file_with_query(self, static_dir):
        path = resolve_static_path(str(static_dir), "/js/app.js?v=3")
        assert path == (static_dir / "js" / "app.js").resolve()

    def test_missing_file(self, static_dir):
        assert resolve_static_path(str(static_dir), "/nope.html") is None

    def test_traversal_outside_root(self, static_dir):
        assert resolve_static_path(str(static_dir), "/../secret.txt") is None
        assert resolve_static_path(str(static_dir), "/%2e%2e/secret.txt") is None

    def test_nul_byte_is_not_found(self, static_dir):
        assert resolve_static_path(str(static_dir), "/a%00b") is None
        assert resolve_static_path(str(static_dir), "/js/app%00.js") is None

    def test_disabled(self):
        assert resolve_static_path(None, "/") is None
        assert resolve_static_path("", "/index.html") is None


async def start_server(static_dir, **overrides):
    config = RelayConfig(host="127.0.0.1", port=0, static_dir=str(static_dir))
    config.update(**overrides)
    hub = Hub(echo_to_sender=config.echo_to_sender)
    server = RelayServer(hub, config)
    await server.start()
    return hub, server


async def http_get(port: int, path: str) -> bytes:
    reader, writer = await asyncio.open_connection("127.0.0.1", port)
    writer.write(f"GET {path} HTTP/1.1\r\nHost: localhost\r\n\r\n".encode())
    await writer.drain()
    data = await asyncio.wait_for(reader.read(), 2.0)
    writer.close()
    return data


@pytest.mark.asyncio
async def test_relay_between_clients(static_dir):
    hub, server = await start_server(static_dir)
    url = f"ws://127.0.0.1:{server.port}/ws"

    try:
        async with connect(url) as c1, connect(url) as c2, connect(url) as c3:
            await wait_until(lambda: len(hub) == 3, timeout=2.0)

            await c1.send("hello")

            assert await asyncio.wait_for(c2.recv(), 2.0) == "hello"
            assert await asyncio.wait_for(c3.recv(), 2.0) == "hello"
            assert await asyncio.wait_for(c1.recv(), 2.0) == "hello"

            await c2.send(b"\x01\x02")
            assert await asyncio.wait_for(c3.recv(), 2.0) == b"\x01\x02"
    finally:
        await server.stop()

    assert len(hub) == 0


@pytest.mark.asyncio
async def test_disconnected_client_is_removed(static_dir):
    hub, server = await start_server(static_dir, echo_to_sender=False)
    url = f"ws://127.0.0.1:{server.port}/ws"

    try:
        async with connect(url) as c2, connect(url) as c3:
            c1 = await connect(url)
            await wait_until(lambda: len(hub) == 3, timeout=2.0)

            await c1.close()
            await wait_until(lambda: len(hub) == 2, timeout=2.0)

            await c2.send("after close")
            assert await asyncio.wait_for(c3.recv(), 2.0) == "after close"
    finally:
        await server.stop()


@pytest.mark.asyncio
async def test_overload_refused(static_dir):
    hub, server = await start_server(static_dir, max_connections=1)
    url = f"ws://127.0.0.1:{server.port}/ws"

    try:
        async with connect(url):
            await wait_until(lambda: len(hub) == 1, timeout=2.0)

            async with connect(url) as refused:
                with pytest.raises(ConnectionClosed) as exc_info:
                    await asyncio.wait_for(refused.recv(), 2.0)
            assert exc_info.value.rcvd.code == 1013
            assert len(hub) == 1
    finally:
        await server.stop()


@pytest.mark.asyncio
async def test_static_files_served(static_dir):
    hub, server = await start_server(static_dir)

    try:
        response = await http_get(server.port, "/")
        assert b"200 OK" in response
        assert b"text/html" in response
        assert response.endswith(b"<h1>relay</h1>")

        response = await http_get(server.port, "/missing.css")
        assert b"404" in response

        response = await http_get(server.port, "/a%00b.html")
        assert b"404" in response
    finally:
        await server.stop()


@pytest.mark.asyncio
async def test_stats_and_idempotent_start(static_dir):
    hub, server = await start_server(static_dir)

    try:
        await server.start()
        stats = server.get_stats()
        assert stats["server"]["running"] is True
        assert stats["server"]["port"] == server.port
        assert stats["hub"]["connections"] == 0
    finally:
        await server.stop()

    assert server.get_stats()["server"]["running"] is False


@pytest.mark.asyncio
async def test_request_stop_ends_serve_forever(static_dir):
    config = RelayConfig(host="127.0.0.1", port=0, static_dir=str(static_dir))
    server = RelayServer(Hub(), config)

    task = asyncio.create_task(server.serve_forever())
    await wait_until(lambda: server.running, timeout=2.0)

    server.request_stop()
    await asyncio.wait_for(task, 2.0)
    await server.stop()

    assert server.running is False
    assert server.port is None
