"""Deadline-carrying cancellation token shared by stress workers."""

import threading
import time
from collections.abc import Callable


class CancellationToken:
    """Stop signal for a group of workers.

    A token stops either when its deadline passes or when ``cancel()`` is
    called. Workers poll ``should_stop()`` once per loop iteration and use
    ``wait()`` instead of ``time.sleep`` so that cancellation wakes them.

    Example:
        >>> token = CancellationToken.after(30)
        >>> while not token.should_stop():
        ...     do_work()
    """

    def __init__(self, deadline: float, clock: Callable[[], float] = time.monotonic):
        """Create a token.

        Args:
            deadline: Absolute time, on ``clock``'s scale, to stop at.
            clock: Monotonic time source.
        """
        self.deadline = deadline
        self._clock = clock
        self._event = threading.Event()

    @classmethod
    def after(
        cls, seconds: float, clock: Callable[[], float] = time.monotonic
    ) -> "CancellationToken":
        """Create a token whose deadline is ``seconds`` from now."""
        return cls(clock() + seconds, clock)

    def cancel(self) -> None:
        """Stop all holders of this token before the deadline."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def expired(self) -> bool:
        return self._clock() >= self.deadline

    def should_stop(self) -> bool:
        return self.cancelled or self.expired

    def remaining(self) -> float:
        """Seconds until the deadline, never negative."""
        return max(0.0, self.deadline - self._clock())

    def wait(self, seconds: float) -> bool:
        """Sleep up to ``seconds`` (capped at the deadline) unless cancelled.

        Returns:
            True if the holder should stop.
        """
        timeout = min(seconds, self.remaining())
        if timeout > 0:
            self._event.wait(timeout)
        return self.should_stop()
