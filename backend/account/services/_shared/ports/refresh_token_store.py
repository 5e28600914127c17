from __future__ import annotations

import fnmatch
import math
import threading
import time
from collections.abc import Callable
from datetime import timedelta
from typing import Protocol

from account.services._shared.deadline import Deadline, check_deadline
from account.services._shared.errors import RefreshTokenNotFoundError, StoreUnavailableError


def refresh_key(user_id: str, token_id: str) -> str:
    """Store key for one refresh token: ``"{user_id}:{token_id}"``."""
    return f"{user_id}:{token_id}"


def ttl_seconds(ttl: timedelta | int | float) -> int:
    """Round a TTL up to whole seconds; zero or less means already expired."""
    seconds = ttl.total_seconds() if isinstance(ttl, timedelta) else float(ttl)
    return math.ceil(seconds)


class RefreshTokenStore(Protocol):
    """
    Existence-tracking store for live refresh tokens.

    Key presence is the only source of truth for "this refresh token may still
    be redeemed". Every call accepts an optional :class:`Deadline` that is
    checked before any backend round trip.
    """

    def put(
        self,
        user_id: str,
        token_id: str,
        ttl: timedelta | int,
        *,
        deadline: Deadline | None = None,
    ) -> None:
        """
        Insert (or overwrite) the liveness marker, expiring after ``ttl``.
        A ``ttl`` of zero or less writes nothing.

        :raises StoreUnavailableError: On backend failure.
        """

    def delete(self, user_id: str, token_id: str, *, deadline: Deadline | None = None) -> None:
        """
        Remove the marker for a single token.

        :raises RefreshTokenNotFoundError: When the key is not live.
        :raises StoreUnavailableError: On backend failure.
        """

    def delete_all(self, user_id: str, *, deadline: Deadline | None = None) -> int:
        """
        Delete every marker prefixed by ``user_id`` using an incremental scan.

        Continues past individual failures; raises once at the end if any
        delete failed.

        :returns: Number of markers deleted.
        :raises StoreUnavailableError: If the scan failed or any delete failed.
        """

    def exists(self, user_id: str, token_id: str, *, deadline: Deadline | None = None) -> bool:
        """Return ``True`` while the marker is live."""


class InMemoryRefreshTokenStore(RefreshTokenStore):
    """
    In-memory refresh store with per-key expiry.

    .. note::
       Uses a threading lock so concurrent issuance can be exercised in unit tests.
       ``fail_keys`` lets tests simulate per-key backend failures.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.monotonic,
        scan_count: int = 100,
    ) -> None:
        self._expiry: dict[str, float] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self.scan_count = scan_count
        self.fail_keys: set[str] = set()

    # ------------------------- helpers -------------------------

    def _purge_expired(self) -> None:
        now = self._clock()
        for key in [k for k, exp in self._expiry.items() if exp <= now]:
            del self._expiry[key]

    def keys(self) -> list[str]:
        """Snapshot of live keys (test helper)."""
        with self._lock:
            self._purge_expired()
            return sorted(self._expiry)

    # -------------------------- API ----------------------------

    def put(
        self,
        user_id: str,
        token_id: str,
        ttl: timedelta | int,
        *,
        deadline: Deadline | None = None,
    ) -> None:
        check_deadline(deadline)
        key = refresh_key(user_id, token_id)
        if key in self.fail_keys:
            raise StoreUnavailableError(f"could not store refresh token {key}")
        seconds = ttl_seconds(ttl)
        if seconds <= 0:
            return
        with self._lock:
            self._expiry[key] = self._clock() + seconds

    def delete(self, user_id: str, token_id: str, *, deadline: Deadline | None = None) -> None:
        check_deadline(deadline)
        key = refresh_key(user_id, token_id)
        if key in self.fail_keys:
            raise StoreUnavailableError(f"could not delete refresh token {key}")
        with self._lock:
            self._purge_expired()
            if self._expiry.pop(key, None) is None:
                raise RefreshTokenNotFoundError(user_id, token_id)

    def delete_all(self, user_id: str, *, deadline: Deadline | None = None) -> int:
        pattern = refresh_key(user_id, "*")
        with self._lock:
            self._purge_expired()
            matched = [k for k in sorted(self._expiry) if fnmatch.fnmatchcase(k, pattern)]

        deleted = 0
        failed = 0
        for start in range(0, len(matched), self.scan_count):
            check_deadline(deadline)
            for key in matched[start : start + self.scan_count]:
                if key in self.fail_keys:
                    failed += 1
                    continue
                with self._lock:
                    if self._expiry.pop(key, None) is not None:
                        deleted += 1
        if failed:
            raise StoreUnavailableError(
                f"{failed} of {deleted + failed} refresh tokens for user {user_id} "
                "could not be deleted"
            )
        return deleted

    def exists(self, user_id: str, token_id: str, *, deadline: Deadline | None = None) -> bool:
        check_deadline(deadline)
        with self._lock:
            self._purge_expired()
            return refresh_key(user_id, token_id) in self._expiry
