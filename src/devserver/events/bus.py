"""In-memory event bus for change notifications."""
import itertools
from collections.abc import Callable
from dataclasses import dataclass

import structlog

from devserver.events.types import ChangeNotification

logger = structlog.get_logger()

Listener = Callable[[ChangeNotification], None]


@dataclass(frozen=True, eq=False)
class Subscription:
    """Handle for one registered listener.

    Attributes:
        id: Subscription number, unique within its bus.
        callback: Listener invoked on every publish.
    """

    id: int
    callback: Listener


class EventBus:
    """Synchronous publish/subscribe registry for change notifications.

    Listeners are called in subscription order on the publisher's stack.
    Nothing is retained: a listener registered after a publish never
    sees that notification. All access happens on the event loop thread,
    so no locking is needed.
    """

    def __init__(self) -> None:
        """Initialize an empty bus."""
        self._subscriptions: dict[int, Subscription] = {}
        self._ids = itertools.count(1)

    @property
    def subscriber_count(self) -> int:
        """Number of active subscriptions."""
        return len(self._subscriptions)

    def subscribe(self, callback: Listener) -> Subscription:
        """Register a listener.

        Args:
            callback: Called with each published notification.

        Returns:
            Handle to pass to unsubscribe().
        """
        subscription = Subscription(next(self._ids), callback)
        self._subscriptions[subscription.id] = subscription
        logger.debug("subscriber_added", subscription_id=subscription.id)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        """Remove a listener. Unknown or already removed handles are ignored.

        Args:
            subscription: Handle returned by subscribe().
        """
        if self._subscriptions.pop(subscription.id, None) is not None:
            logger.debug("subscriber_removed", subscription_id=subscription.id)

    def publish(self, notification: ChangeNotification) -> int:
        """Deliver a notification to every current listener.

        Listeners removed while this publish is running still receive
        this notification, but no later ones.

        Args:
            notification: Change to deliver.

        Returns:
            Number of listeners called.
        """
        delivered = 0
        for subscription in list(self._subscriptions.values()):
            subscription.callback(notification)
            delivered += 1
        return delivered
