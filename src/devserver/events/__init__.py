"""Events subsystem for filesystem monitoring and SSE broadcasting."""
from devserver.events.bus import EventBus, Subscription
from devserver.events.debounce import ChangeDebouncer
from devserver.events.hub import BroadcastHub
from devserver.events.types import ChangeNotification, RawChange
from devserver.events.watcher import (
    ChangeWatcher,
    ConfigurationError,
    WatchFailure,
    WatcherState,
)

__all__ = [
    "BroadcastHub",
    "ChangeDebouncer",
    "ChangeNotification",
    "ChangeWatcher",
    "ConfigurationError",
    "EventBus",
    "RawChange",
    "Subscription",
    "WatchFailure",
    "WatcherState",
]
