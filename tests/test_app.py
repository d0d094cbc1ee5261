"""End-to-end live-reload tests."""

import asyncio
import json
from pathlib import Path

import httpx
import pytest
import uvicorn

from devserver.__main__ import serve
from devserver.app import create_app
from devserver.config import Settings
from devserver.events import ConfigurationError, WatcherState

FRAME = 'data: [{"eventType":"change","filename":"index.html"}]'


async def _eventually(predicate, timeout: float = 5.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


@pytest.mark.asyncio
async def test_edit_reloads_connected_client(settings: Settings, web_root: Path) -> None:
    """Serving index.html, then editing it, pushes one change frame."""
    app = create_app(settings)
    bus = app.state.event_bus
    hub = app.state.broadcast_hub

    async with app.router.lifespan_context(app):
        assert app.state.watcher.state is WatcherState.WATCHING

        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert "Hi" in response.text
        assert '<script src="/_dev-events.js"></script></body>' in response.text

        stream = hub.stream(hub.connect())
        pending = asyncio.create_task(anext(stream))
        while bus.subscriber_count == 0:
            await asyncio.sleep(0)

        (web_root / "index.html").write_text("<html><body>Hello again</body></html>")
        event = await asyncio.wait_for(pending, timeout=5.0)
        assert json.loads(event.data) == [{"eventType": "change", "filename": "index.html"}]

        extra = asyncio.create_task(anext(stream))
        done, _ = await asyncio.wait({extra}, timeout=0.5)
        assert not done
        extra.cancel()
        with pytest.raises(asyncio.CancelledError):
            await extra

        assert bus.subscriber_count == 0

    assert app.state.watcher.state is WatcherState.STOPPED


@pytest.mark.asyncio
async def test_ignored_change_is_not_pushed(settings: Settings, web_root: Path) -> None:
    """Edits under .git never reach connected clients."""
    (web_root / ".git").mkdir()
    (web_root / ".git" / "HEAD").write_text("ref: refs/heads/main\n")
    app = create_app(settings)
    hub = app.state.broadcast_hub

    async with app.router.lifespan_context(app):
        stream = hub.stream(hub.connect())
        pending = asyncio.create_task(anext(stream))
        (web_root / ".git" / "HEAD").write_text("ref: refs/heads/dev\n")
        done, _ = await asyncio.wait({pending}, timeout=0.5)
        assert not done
        pending.cancel()
        with pytest.raises(asyncio.CancelledError):
            await pending


@pytest.mark.asyncio
async def test_serve_fails_fast_on_missing_root(tmp_path: Path) -> None:
    """A missing web root aborts before the listener starts."""
    settings = Settings(root=str(tmp_path / "nope"), port=0)
    with pytest.raises(ConfigurationError):
        await serve(settings)


@pytest.mark.asyncio
async def test_event_stream_over_http(settings: Settings, web_root: Path) -> None:
    """A real browser-style connection gets headers, a flushed frame and cleanup."""
    app = create_app(settings)
    bus = app.state.event_bus
    server = uvicorn.Server(
        uvicorn.Config(app, host="127.0.0.1", port=0, log_level="warning")
    )
    serve_task = asyncio.create_task(server.serve())
    try:
        await _eventually(lambda: server.started)
        port = server.servers[0].sockets[0].getsockname()[1]

        async with httpx.AsyncClient(
            base_url=f"http://127.0.0.1:{port}", timeout=5.0
        ) as client:
            async with client.stream("GET", "/_dev-events") as response:
                assert response.status_code == 200
                assert response.headers["content-type"].startswith("text/event-stream")
                assert response.headers["cache-control"] == "no-cache"
                assert response.headers["connection"] == "keep-alive"
                assert response.headers["x-accel-buffering"] == "no"
                await _eventually(lambda: bus.subscriber_count == 1)

                (web_root / "index.html").write_text("<html><body>Edited</body></html>")

                lines = response.aiter_lines()
                line = ""
                while not line.startswith("data:"):
                    line = await asyncio.wait_for(anext(lines), timeout=5.0)
                assert line == FRAME
                assert json.loads(line.removeprefix("data: ")) == [
                    {"eventType": "change", "filename": "index.html"}
                ]

        await _eventually(lambda: bus.subscriber_count == 0)
        assert app.state.broadcast_hub.active_connections == 0
    finally:
        server.should_exit = True
        await asyncio.wait_for(serve_task, timeout=10.0)
