"""Async-friendly filesystem watcher feeding the event bus."""

import asyncio
import contextlib
import posixpath
from collections.abc import Callable, Iterable
from enum import Enum
from pathlib import Path

import structlog
from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from devserver.events.bus import EventBus
from devserver.events.debounce import ChangeDebouncer
from devserver.events.types import (
    DEFAULT_IGNORES,
    ChangeNotification,
    RawChange,
    RawEventType,
)

logger = structlog.get_logger()

RAW_EVENT_TYPES: dict[str, RawEventType] = {
    EVENT_TYPE_CREATED: "rename",
    EVENT_TYPE_DELETED: "rename",
    EVENT_TYPE_MOVED: "rename",
    EVENT_TYPE_MODIFIED: "change",
}


class ConfigurationError(Exception):
    """Raised when the watched directory is missing at startup."""

    def __init__(self, message: str, path: str) -> None:
        """Initialize configuration error.

        Args:
            message: Error description.
            path: The offending directory.
        """
        super().__init__(message)
        self.path = path


class WatchFailure(Exception):
    """Raised when the underlying watch mechanism fails unexpectedly."""


class WatcherState(str, Enum):
    """Lifecycle of a ChangeWatcher. Stopped is terminal."""

    IDLE = "idle"
    WATCHING = "watching"
    STOPPED = "stopped"


def _decode(path: str | bytes) -> str:
    if isinstance(path, str):
        return path
    return bytes(path).decode("utf-8", errors="replace")


def to_raw_change(event: FileSystemEvent, root: Path) -> RawChange | None:
    """Translate a watchdog event into a RawChange relative to root.

    Directory events, open/close notifications and events without a
    usable path inside root are dropped.

    Args:
        event: Raw watchdog event.
        root: Absolute watched directory.

    Returns:
        RawChange, or None if the event carries nothing to report.
    """
    if event.is_directory:
        return None

    kind = RAW_EVENT_TYPES.get(event.event_type)
    if kind is None:
        return None

    src = event.dest_path if event.event_type == EVENT_TYPE_MOVED else event.src_path
    if not src:
        return None

    try:
        relative = Path(_decode(src)).relative_to(root)
    except ValueError:
        return None

    filename = relative.as_posix()
    if filename in ("", "."):
        return None

    return RawChange(event_type=kind, filename=filename)


def normalize_ignores(prefixes: Iterable[str]) -> tuple[str, ...]:
    """Normalize ignore prefixes, always keeping the defaults first.

    Args:
        prefixes: Extra directory prefixes relative to the watched root.

    Returns:
        Ordered, de-duplicated prefixes.
    """
    result: list[str] = []
    for prefix in (*DEFAULT_IGNORES, *prefixes):
        normalized = posixpath.normpath(prefix.strip().replace("\\", "/"))
        if normalized in (".", "/") or normalized in result:
            continue
        result.append(normalized)
    return tuple(result)


class ForwardingHandler(FileSystemEventHandler):
    """Watchdog handler that hands events to the event loop.

    Runs on the observer thread and does no filtering beyond translation,
    so debouncing and publishing stay on the loop.
    """

    def __init__(
        self,
        root: Path,
        loop: asyncio.AbstractEventLoop,
        sink: Callable[[RawChange], None],
    ) -> None:
        """Initialize forwarding handler.

        Args:
            root: Absolute watched directory.
            loop: Event loop owning the sink.
            sink: Called on the loop with each translated change.
        """
        super().__init__()
        self._root = root
        self._loop = loop
        self._sink = sink

    def on_any_event(self, event: FileSystemEvent) -> None:
        """Forward a filesystem event to the loop.

        Args:
            event: Raw watchdog filesystem event.
        """
        raw = to_raw_change(event, self._root)
        if raw is None:
            return

        # Loop already closed during shutdown.
        with contextlib.suppress(RuntimeError):
            self._loop.call_soon_threadsafe(self._sink, raw)


class ChangeWatcher:
    """Recursive directory watcher publishing debounced changes.

    Wraps a watchdog Observer and a consumer task on the event loop. Each
    raw change is debounced, checked against the ignore list and published
    to the bus as a ChangeNotification.

    Attributes:
        root: Absolute directory being watched.
        ignores: Directory prefixes whose changes are never published.
    """

    def __init__(
        self,
        root: str | Path,
        event_bus: EventBus,
        ignores: Iterable[str] = (),
        debounce_ms: float = 100.0,
        health_interval: float = 1.0,
    ) -> None:
        """Initialize change watcher.

        Args:
            root: Directory to watch recursively.
            event_bus: Bus receiving accepted notifications.
            ignores: Extra ignore prefixes, added after the defaults.
            debounce_ms: Debounce window in milliseconds.
            health_interval: Seconds between observer liveness checks.
        """
        self.root = Path(root).resolve()
        self.ignores = normalize_ignores(ignores)
        self._bus = event_bus
        self._debouncer = ChangeDebouncer(debounce_ms)
        self._health_interval = health_interval
        self._queue: asyncio.Queue[RawChange] = asyncio.Queue()
        self._observer: Observer | None = None  # pyright: ignore[reportInvalidTypeForm]
        self._task: asyncio.Task[None] | None = None
        self._state = WatcherState.IDLE

    @property
    def state(self) -> WatcherState:
        """Current lifecycle state."""
        return self._state

    def is_ignored(self, filename: str) -> bool:
        """Check whether a file's parent directory matches an ignore prefix.

        Args:
            filename: Path relative to the watched root.

        Returns:
            True if changes to the file must not be published.
        """
        parent = posixpath.dirname(filename)
        return any(parent.startswith(prefix) for prefix in self.ignores)

    def process(self, raw: RawChange) -> ChangeNotification | None:
        """Run one raw change through debounce, ignore filter and publish.

        Args:
            raw: Change observed on disk.

        Returns:
            The published notification, or None if it was dropped.
        """
        if not raw.filename:
            return None

        if not self._debouncer.accept(raw.filename):
            return None

        if self.is_ignored(raw.filename):
            return None

        notification = ChangeNotification(filename=raw.filename)
        delivered = self._bus.publish(notification)
        logger.info(
            "file_changed",
            raw_event=raw.event_type,
            filename=raw.filename,
            delivered_to=delivered,
        )
        return notification

    def start(self) -> None:
        """Start watching. Calling it again while watching is a no-op.

        Raises:
            ConfigurationError: If the root is missing or not a directory.
            WatchFailure: If the observer cannot be started.
            RuntimeError: If the watcher was already stopped.
        """
        if self._state is WatcherState.WATCHING:
            return
        if self._state is WatcherState.STOPPED:
            raise RuntimeError("Watcher cannot be restarted once stopped")

        if not self.root.is_dir():
            raise ConfigurationError(
                f"Input directory not found: {self.root}", str(self.root)
            )

        loop = asyncio.get_running_loop()
        handler = ForwardingHandler(self.root, loop, self._queue.put_nowait)
        observer = Observer()
        try:
            observer.schedule(handler, str(self.root), recursive=True)
            observer.start()
        except OSError as e:
            raise WatchFailure(f"Cannot watch {self.root}: {e}") from e

        self._observer = observer
        self._state = WatcherState.WATCHING
        self._task = asyncio.create_task(self._run(), name="change-watcher")
        logger.info("watcher_started", path=str(self.root), ignores=list(self.ignores))

    async def _run(self) -> None:
        try:
            while True:
                try:
                    raw = await asyncio.wait_for(
                        self._queue.get(),
                        timeout=self._health_interval,
                    )
                except TimeoutError:
                    self._check_observer()
                    continue
                self.process(raw)
                self._check_observer()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("watcher_failed", path=str(self.root), error=str(e))
            raise

    def _check_observer(self) -> None:
        if self._observer is None:
            return
        if not self._observer.is_alive():
            raise WatchFailure(f"Observer for {self.root} exited unexpectedly")
        # Emitters die on their own when the root vanishes or inotify fails.
        emitters = self._observer.emitters
        if not emitters or not all(emitter.is_alive() for emitter in emitters):
            raise WatchFailure(f"Watch on {self.root} stopped unexpectedly")

    async def wait(self) -> None:
        """Wait until the watcher ends.

        Returns normally after stop(); cancellation is a clean shutdown.

        Raises:
            WatchFailure: If watching failed for any other reason.
        """
        if self._task is None:
            return
        await asyncio.wait({self._task})
        if self._task.cancelled():
            return
        exc = self._task.exception()
        if exc is not None:
            raise exc

    async def stop(self) -> None:
        """Cancel the consumer task and stop the observer."""
        if self._state is WatcherState.STOPPED:
            return
        self._state = WatcherState.STOPPED

        if self._task is not None:
            self._task.cancel()
            await asyncio.wait({self._task})

        if self._observer is not None:
            self._observer.stop()
            await asyncio.to_thread(self._observer.join, 5.0)
            self._observer = None

        logger.info("watcher_stopped", path=str(self.root))
