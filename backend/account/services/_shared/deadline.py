"""
Request-scoped deadline and cancellation token.

A :class:`Deadline` travels with a request through every blocking call
(refresh-store round trips, incremental scans). Callees invoke
:meth:`Deadline.check` before each unit of work so an abandoned or timed-out
request stops issuing backend operations.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable

from account.services._shared.errors import CanceledError, DeadlineExceededError


class Deadline:
    """
    Monotonic deadline with explicit cancellation.

    :param expires_at: Absolute ``time.monotonic()`` instant, or ``None`` for no limit.
    :param clock: Monotonic clock (injectable for tests).
    """

    def __init__(
        self,
        expires_at: float | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._expires_at = expires_at
        self._clock = clock
        self._canceled = threading.Event()

    @classmethod
    def after(cls, seconds: float, *, clock: Callable[[], float] = time.monotonic) -> Deadline:
        """Build a deadline expiring ``seconds`` from now."""
        return cls(clock() + seconds, clock=clock)

    @classmethod
    def never(cls) -> Deadline:
        """Build a deadline that only ends through :meth:`cancel`."""
        return cls(None)

    @property
    def canceled(self) -> bool:
        return self._canceled.is_set()

    def cancel(self) -> None:
        """Mark the owning request as abandoned."""
        self._canceled.set()

    def remaining(self) -> float | None:
        """Seconds left, clamped at zero; ``None`` when unbounded."""
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - self._clock())

    def expired(self) -> bool:
        return self._expires_at is not None and self._clock() >= self._expires_at

    def check(self) -> None:
        """
        Raise when the request can no longer make progress.

        :raises CanceledError: After :meth:`cancel`.
        :raises DeadlineExceededError: Once the deadline has passed.
        """
        if self._canceled.is_set():
            raise CanceledError()
        if self.expired():
            raise DeadlineExceededError()


def check_deadline(deadline: Deadline | None) -> None:
    """Convenience guard accepting an optional deadline."""
    if deadline is not None:
        deadline.check()
