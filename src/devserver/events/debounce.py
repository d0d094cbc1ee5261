"""Per-file rate limiting for noisy filesystem events."""
import time


def monotonic_ms() -> float:
    """Current monotonic clock reading in milliseconds."""
    return time.monotonic() * 1000.0


class ChangeDebouncer:
    """Suppresses repeat notifications for a file inside a time window.

    Not a batching buffer: suppressed events are dropped, never replayed.
    The ledger only grows, bounded by the number of distinct files touched.

    Attributes:
        window_ms: Minimum gap between two accepted events for one file.
    """

    def __init__(self, window_ms: float = 100.0) -> None:
        """Initialize debouncer.

        Args:
            window_ms: Debounce window in milliseconds.
        """
        self.window_ms = window_ms
        self._ledger: dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._ledger)

    def last_accepted(self, filename: str) -> float | None:
        """Timestamp of the last accepted event for a file, if any."""
        return self._ledger.get(filename)

    def accept(self, filename: str, now: float | None = None) -> bool:
        """Decide whether an event for a file should pass.

        Args:
            filename: Key of the changed file.
            now: Monotonic time in milliseconds. Read from the clock if None.

        Returns:
            True if accepted (and recorded), False if suppressed.
        """
        if now is None:
            now = monotonic_ms()

        last = self._ledger.get(filename)
        if last is not None and now - last <= self.window_ms:
            return False

        self._ledger[filename] = now
        return True
