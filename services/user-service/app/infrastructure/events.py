"""Domain event publishing onto a Redis stream."""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

from redis import Redis
from redis.exceptions import RedisError

from schemas import DomainEvent

from ..domain.errors import DependencyUnavailableError

logger = logging.getLogger(__name__)


class EventPublisher(Protocol):
    def publish(self, event_name: str, payload: dict[str, Any]) -> Any: ...


class RedisStreamPublisher:
    """Append user lifecycle events to a capped Redis stream.

    Delivery is at-least-once from the producer side: a failed ``XADD`` is retried
    up to ``attempts`` times, so a write that succeeded but whose reply was lost can
    surface as a duplicate entry for consumers.
    """

    def __init__(
        self,
        client: Redis,
        *,
        stream: str = "user-events",
        maxlen: int = 10000,
        attempts: int = 3,
    ) -> None:
        self._client = client
        self._stream = stream
        self._maxlen = maxlen
        self._attempts = max(1, attempts)

    def publish(self, event_name: str, payload: dict[str, Any]) -> str:
        """Publish an event and return the stream entry id.

        Raises
        ------
        DependencyUnavailableError
            When every attempt failed.
        """
        event = DomainEvent(event=event_name, data=payload)
        fields = {
            "event": event.event,
            "data": json.dumps(event.data),
            "timestamp": event.timestamp.isoformat(),
        }
        last_error: RedisError | None = None
        for attempt in range(1, self._attempts + 1):
            try:
                entry_id = self._client.xadd(
                    self._stream, fields, maxlen=self._maxlen, approximate=True
                )
            except RedisError as exc:
                last_error = exc
                logger.warning(
                    "publish of %s to %s failed (attempt %d/%d): %s",
                    event_name,
                    self._stream,
                    attempt,
                    self._attempts,
                    exc,
                )
                continue
            if isinstance(entry_id, bytes):
                entry_id = entry_id.decode("utf-8")
            logger.debug("published %s to %s as %s", event_name, self._stream, entry_id)
            return entry_id
        raise DependencyUnavailableError("event broker", str(last_error))
