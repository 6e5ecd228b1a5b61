"""Redis-backed session cache holding redacted user snapshots."""

from __future__ import annotations

import json
import logging
from typing import Any

from redis import Redis
from redis.exceptions import RedisError

from schemas import UserProfile

from ..metrics import SESSION_CACHE_LOOKUPS

logger = logging.getLogger(__name__)


class SessionCache:
    """Time-boxed accelerator in front of the account store.

    The cache is never authoritative: every failure is logged and reported as a
    miss so callers fall back to the repository.
    """

    def __init__(self, client: Redis, *, ttl_seconds: int = 3600, key_prefix: str = "user") -> None:
        self._client = client
        self._ttl = ttl_seconds
        self._key_prefix = key_prefix

    @property
    def ttl_seconds(self) -> int:
        return self._ttl

    def _key(self, user_id: str) -> str:
        return f"{self._key_prefix}:{user_id}"

    def get(self, user_id: str) -> dict[str, Any] | None:
        """Return the cached redacted view for ``user_id`` or ``None`` on a miss."""
        try:
            raw = self._client.get(self._key(user_id))
        except RedisError as exc:
            SESSION_CACHE_LOOKUPS.labels(result="error").inc()
            logger.warning("session cache read failed for user %s: %s", user_id, exc)
            return None

        if raw is None:
            SESSION_CACHE_LOOKUPS.labels(result="miss").inc()
            return None

        try:
            view = json.loads(raw)
            profile = UserProfile.model_validate(view)
        except (TypeError, ValueError) as exc:
            SESSION_CACHE_LOOKUPS.labels(result="error").inc()
            logger.warning("discarding corrupt session cache entry for user %s: %s", user_id, exc)
            return None
        if profile.id != user_id:
            SESSION_CACHE_LOOKUPS.labels(result="error").inc()
            logger.warning("discarding session cache entry for user %s holding user %s", user_id, profile.id)
            return None

        SESSION_CACHE_LOOKUPS.labels(result="hit").inc()
        return view

    def put(self, user_id: str, view: dict[str, Any], ttl_seconds: int | None = None) -> None:
        """Overwrite the entry for ``user_id``, resetting its expiry."""
        ttl = ttl_seconds or self._ttl
        try:
            self._client.set(self._key(user_id), json.dumps(view), ex=ttl)
        except RedisError as exc:
            logger.warning("session cache write failed for user %s: %s", user_id, exc)
