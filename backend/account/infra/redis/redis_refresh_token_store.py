# comments in English; reST docstrings
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta

import redis  # type: ignore[import-untyped]

from account.services._shared.deadline import Deadline, check_deadline
from account.services._shared.errors import RefreshTokenNotFoundError, StoreUnavailableError
from account.services._shared.ports.refresh_token_store import (
    RefreshTokenStore,
    refresh_key,
    ttl_seconds,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RedisRefreshTokenStore(RefreshTokenStore):
    """
    Redis-backed refresh token store.

    One plain key per live token, ``"{user_id}:{token_id}"``, holding a
    marker value with ``EX`` set to the token lifetime. Redis evicts expired
    tokens on its own; revocation is ``DEL``.

    :param r: A Redis client (already connected).
    :param scan_count: ``COUNT`` hint for each ``SCAN`` batch in :meth:`delete_all`.
    """

    r: redis.Redis
    scan_count: int = 100

    # -------------------- API ------------------------

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
        seconds = ttl_seconds(ttl)
        if seconds <= 0:
            # Already expired; nothing left to redeem
            return
        try:
            self.r.set(key, "1", ex=seconds)
        except redis.RedisError as exc:
            raise StoreUnavailableError(f"could not store refresh token {key}: {exc}") from exc

    def delete(self, user_id: str, token_id: str, *, deadline: Deadline | None = None) -> None:
        check_deadline(deadline)
        key = refresh_key(user_id, token_id)
        try:
            removed = self.r.delete(key)
        except redis.RedisError as exc:
            raise StoreUnavailableError(f"could not delete refresh token {key}: {exc}") from exc
        if removed < 1:
            raise RefreshTokenNotFoundError(user_id, token_id)

    def delete_all(self, user_id: str, *, deadline: Deadline | None = None) -> int:
        """
        Scan ``"{user_id}:*"`` batch by batch and delete every match.

        Each batch is sent as one non-transactional pipeline. Failed deletes are
        counted and the scan carries on; a single error is raised at the end.
        """
        pattern = refresh_key(user_id, "*")
        deleted = 0
        failed = 0
        cursor = 0
        while True:
            check_deadline(deadline)
            try:
                cursor, keys = self.r.scan(cursor=cursor, match=pattern, count=self.scan_count)
            except redis.RedisError as exc:
                raise StoreUnavailableError(
                    f"scan of refresh tokens for user {user_id} failed: {exc}"
                ) from exc

            if keys:
                pipe = self.r.pipeline(transaction=False)
                for key in keys:
                    pipe.delete(key)
                try:
                    results = pipe.execute(raise_on_error=False)
                except redis.RedisError as exc:
                    logger.warning(
                        "Refresh token delete batch failed",
                        extra={"user_id": user_id, "batch": len(keys), "error": str(exc)},
                    )
                    failed += len(keys)
                    results = []
                for key, result in zip(keys, results, strict=False):
                    if isinstance(result, Exception):
                        logger.warning(
                            "Refresh token delete failed",
                            extra={"key": key, "error": str(result)},
                        )
                        failed += 1
                    else:
                        deleted += int(result)

            if int(cursor) == 0:
                break

        if failed:
            raise StoreUnavailableError(
                f"{failed} of {deleted + failed} refresh tokens for user {user_id} "
                "could not be deleted"
            )
        return deleted

    def exists(self, user_id: str, token_id: str, *, deadline: Deadline | None = None) -> bool:
        check_deadline(deadline)
        try:
            return bool(self.r.exists(refresh_key(user_id, token_id)))
        except redis.RedisError as exc:
            raise StoreUnavailableError(f"could not probe refresh token: {exc}") from exc
