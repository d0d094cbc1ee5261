"""FastAPI application factory and lifespan management."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from devserver.config import Settings
from devserver.events import BroadcastHub, ChangeWatcher, EventBus
from devserver.middleware.logging import RequestLoggingMiddleware
from devserver.routes import events, static

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifecycle events.

    Starts the filesystem watcher when live reload is enabled and stops
    it on shutdown. A watcher started earlier by the caller is reused.

    Args:
        app: FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings: Settings = app.state.settings
    watcher: ChangeWatcher | None = app.state.watcher
    logger.info("server_startup", root=str(settings.root_path))

    if watcher is not None:
        watcher.start()

    try:
        yield
    finally:
        if watcher is not None:
            await watcher.stop()

        await app.state.broadcast_hub.shutdown()
        logger.info("server_shutdown")


def create_app(
    settings: Settings | None = None,
    event_bus: EventBus | None = None,
) -> FastAPI:
    """Factory function to create the dev server application.

    Routes are matched in order: the event stream (live reload only),
    the reload client script, then any path from the web root.

    Args:
        settings: Configuration instance. Creates default if None.
        event_bus: Shared bus. A new one is created if None.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        settings = Settings()
    if event_bus is None:
        event_bus = EventBus()

    app = FastAPI(
        title="devserver",
        version="0.1.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings
    app.state.event_bus = event_bus
    app.state.broadcast_hub = BroadcastHub(event_bus)
    app.state.watcher = (
        ChangeWatcher(
            settings.root_path,
            event_bus,
            ignores=settings.ignore_list,
            debounce_ms=settings.debounce_ms,
        )
        if settings.live_reload
        else None
    )

    app.add_middleware(RequestLoggingMiddleware)

    if settings.live_reload:
        app.include_router(events.stream_router)
    app.include_router(events.client_router)
    app.include_router(static.router)

    return app
