"""
Run context shared by every task of one synchronization run.
"""

from __future__ import annotations

import threading
import time
from typing import Optional

from modelatlas.errors import SyncCancelledError

# how often a child context re-checks its parents while waiting
WAIT_SLICE = 0.01


class RunContext:
    """
    Cancellation flag plus an optional deadline.

    A child created with ``with_timeout`` is cancelled when its parent is,
    and its deadline never extends past the parent's.
    """

    def __init__(
        self, timeout: Optional[float] = None, parent: Optional["RunContext"] = None
    ):
        self._event = threading.Event()
        self._parent = parent
        deadline = time.monotonic() + timeout if timeout is not None else None
        parent_deadline = parent.deadline if parent is not None else None
        if deadline is None or (parent_deadline is not None and parent_deadline < deadline):
            deadline = parent_deadline
        self._deadline = deadline

    @property
    def deadline(self) -> Optional[float]:
        return self._deadline

    def with_timeout(self, timeout: Optional[float]) -> "RunContext":
        return RunContext(timeout=timeout, parent=self)

    def cancel(self) -> None:
        self._event.set()

    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    def cancelled(self) -> bool:
        if self._event.is_set() or self.expired():
            return True
        return self._parent is not None and self._parent.cancelled()

    def remaining(self) -> Optional[float]:
        """
        Seconds left before the deadline, ``None`` when there is none.
        """
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def bounded_timeout(self, timeout: Optional[float]) -> Optional[float]:
        """
        ``timeout`` clipped to the time left in this context.
        """
        remaining = self.remaining()
        if remaining is None:
            return timeout
        if timeout is None:
            return remaining
        return min(timeout, remaining)

    def raise_if_cancelled(self) -> None:
        if not self.cancelled():
            return
        if self.expired():
            raise SyncCancelledError("synchronization deadline exceeded")
        raise SyncCancelledError()

    def wait(self, timeout: float) -> bool:
        """
        Sleep up to ``timeout`` seconds or until this context or any parent is
        cancelled; returns ``cancelled()``.
        """
        bounded = self.bounded_timeout(timeout)
        end = time.monotonic() + (bounded if bounded is not None else timeout)
        while not self.cancelled():
            left = end - time.monotonic()
            if left <= 0:
                break
            if self._parent is None:
                self._event.wait(left)
            else:
                self._event.wait(min(left, WAIT_SLICE))
        return self.cancelled()
