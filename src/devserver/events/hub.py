"""SSE broadcast hub for streaming change notifications to browsers."""

import asyncio
from collections.abc import AsyncIterator
from dataclasses import dataclass

import structlog
from sse_starlette import ServerSentEvent

from devserver.events.bus import EventBus, Subscription
from devserver.events.types import ChangeNotification, dump_batch

logger = structlog.get_logger()

FRAME_SEPARATOR = "\n"


@dataclass(eq=False)
class Connection:
    """One browser's registration on the hub.

    Attributes:
        subscription: Bus subscription feeding the queue.
        queue: Notifications not yet sent to the browser.
        closed: Set once the subscription has been released.
    """

    subscription: Subscription
    queue: asyncio.Queue[ChangeNotification]
    closed: bool = False


class BroadcastHub:
    """SSE broadcast hub bridging the event bus to connected browsers.

    Every connection gets its own bus subscription and queue, registered
    by connect() before the response starts so no change is missed, and
    released exactly once by disconnect().
    """

    def __init__(self, event_bus: EventBus) -> None:
        """Initialize broadcast hub.

        Args:
            event_bus: Event bus carrying change notifications.
        """
        self._bus = event_bus
        self._active_connections = 0

    @property
    def active_connections(self) -> int:
        """Number of open SSE connections."""
        return self._active_connections

    def connect(self) -> Connection:
        """Subscribe a new client connection to the bus.

        Returns:
            Connection to pass to stream() and disconnect().
        """
        queue: asyncio.Queue[ChangeNotification] = asyncio.Queue()
        connection = Connection(self._bus.subscribe(queue.put_nowait), queue)
        self._active_connections += 1

        logger.info(
            "sse_client_connected",
            subscription_id=connection.subscription.id,
            active_connections=self._active_connections,
        )
        return connection

    async def disconnect(self, connection: Connection) -> None:
        """Release a connection's subscription. Safe to call twice.

        A coroutine so Starlette background tasks run it on the event loop.

        Args:
            connection: Connection returned by connect().
        """
        if connection.closed:
            return
        connection.closed = True
        self._bus.unsubscribe(connection.subscription)
        self._active_connections -= 1

        logger.info(
            "sse_client_disconnected",
            subscription_id=connection.subscription.id,
            active_connections=self._active_connections,
        )

    async def stream(self, connection: Connection) -> AsyncIterator[ServerSentEvent]:
        """Generate SSE frames for one client connection.

        Notifications queued since the last frame are sent together as a
        single JSON array. The connection is released when the client
        disconnects and sse-starlette closes the generator.

        Args:
            connection: Connection returned by connect().

        Yields:
            One server-sent event per batch of notifications.
        """
        queue = connection.queue
        try:
            while True:
                batch = [await queue.get()]
                while not queue.empty():
                    batch.append(queue.get_nowait())
                yield ServerSentEvent(data=dump_batch(batch), sep=FRAME_SEPARATOR)
        finally:
            await self.disconnect(connection)

    async def shutdown(self) -> None:
        """Log hub state at application shutdown."""
        logger.info(
            "broadcast_hub_shutdown",
            active_connections=self._active_connections,
            subscribers=self._bus.subscriber_count,
        )
