"""Live-reload endpoints: the event stream and its browser client."""

from typing import TYPE_CHECKING

from fastapi import APIRouter, Request
from fastapi.responses import Response
from sse_starlette.sse import EventSourceResponse
from starlette.background import BackgroundTask

from devserver.events.hub import FRAME_SEPARATOR
from devserver.static.responder import NO_CACHE_HEADERS, RELOAD_CLIENT_PATH

if TYPE_CHECKING:
    from devserver.events.hub import BroadcastHub

EVENTS_PATH = "/_dev-events"

RELOAD_CLIENT_JS = f"""
const eventSource = new EventSource('{EVENTS_PATH}');
window.addEventListener('beforeunload', () => eventSource.close(), false);
eventSource.addEventListener('message', (e) => {{
  const events = JSON.parse(e.data);
  if (events.length > 0) {{
    document.location.reload();
  }}
}});
"""

stream_router = APIRouter(tags=["live-reload"])
client_router = APIRouter(tags=["live-reload"])


@stream_router.get(EVENTS_PATH)
async def event_stream(request: Request) -> EventSourceResponse:
    """Stream change notifications via Server-Sent Events.

    Each frame's data is a JSON array of ``{eventType, filename}``
    objects. The bus subscription is made before the response starts and
    released when the browser closes the connection, whether or not the
    stream generator ever ran.

    Args:
        request: FastAPI request object.

    Returns:
        SSE response stream.
    """
    hub: BroadcastHub = request.app.state.broadcast_hub
    connection = hub.connect()

    return EventSourceResponse(
        hub.stream(connection),
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
        ping=request.app.state.settings.sse_ping_interval,
        sep=FRAME_SEPARATOR,
        background=BackgroundTask(hub.disconnect, connection),
    )


@client_router.get(RELOAD_CLIENT_PATH)
async def reload_client() -> Response:
    """Serve the browser script that reloads the page on every change."""
    return Response(
        content=RELOAD_CLIENT_JS,
        media_type="text/javascript",
        headers=NO_CACHE_HEADERS,
    )
