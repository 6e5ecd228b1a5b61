from __future__ import annotations

import json

import pytest

from app.domain.errors import DependencyUnavailableError
from app.infrastructure.events import RedisStreamPublisher


def test_publish_appends_event_envelope(publisher: RedisStreamPublisher, redis_client):
    entry_id = publisher.publish("USER_REGISTERED", {"userId": "u-1", "email": "a@b.com", "name": "Ann"})

    entries = redis_client.xrange("user-events")
    assert len(entries) == 1
    stored_id, fields = entries[0]
    assert stored_id.decode() == entry_id
    assert fields[b"event"] == b"USER_REGISTERED"
    assert json.loads(fields[b"data"]) == {"userId": "u-1", "email": "a@b.com", "name": "Ann"}
    assert fields[b"timestamp"]


def test_publish_raises_when_broker_unreachable(offline_redis):
    publisher = RedisStreamPublisher(offline_redis, attempts=2)
    with pytest.raises(DependencyUnavailableError) as excinfo:
        publisher.publish("USER_LOGGED_IN", {"userId": "u-1", "email": "a@b.com"})
    assert excinfo.value.dependency == "event broker"
